"""Opaque node-ID allocation.

Node IDs are handed out from the ``uid_counter`` table and rendered as
lowercase hex with a ``0x`` prefix. Callers never choose them.

The caller owns the transaction — pass a ``Connection`` inside an
active transaction so the counter bump commits or rolls back together
with the nodes that use the IDs.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select, update

from goalgraph.infrastructure.database.schema import uid_counter

if TYPE_CHECKING:
    from sqlalchemy import Connection

NODE_COUNTER = "node"


def format_uid(value: int) -> str:
    """Render a counter value as an opaque node ID.

    Examples:
        >>> format_uid(26)
        '0x1a'
    """
    return f"0x{value:x}"


def reserve_uids(conn: Connection, count: int) -> list[str]:
    """Claim *count* consecutive node IDs.

    Raises:
        ValueError: If *count* is negative.
    """
    if count < 0:
        msg = f"Cannot reserve a negative number of node IDs: {count}"
        raise ValueError(msg)
    if count == 0:
        return []

    row = conn.execute(
        select(uid_counter.c.next_value).where(uid_counter.c.name == NODE_COUNTER)
    ).one()
    first: int = row.next_value

    conn.execute(
        update(uid_counter)
        .where(uid_counter.c.name == NODE_COUNTER)
        .values(next_value=first + count)
    )
    return [format_uid(value) for value in range(first, first + count)]
