"""Visibility query — which goals a set of org nodes can see.

Seeds are resolved exactly like the identifier resolver does, then a
depth-bounded recursive query follows manager, participator, owner and
parent edges. The bound is what guarantees termination on cyclic data;
each goal is reported once, oldest update first.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from goalgraph.domain.members import GoalSummary, TagRef
from goalgraph.infrastructure.repositories.goals import GoalRepository
from goalgraph.services.resolver import resolve_org_nodes

if TYPE_CHECKING:
    from goalgraph.infrastructure.store import StoreTransaction

DEFAULT_MAX_DEPTH = 10


def visible_goals(
    txn: StoreTransaction,
    dept_xids: Iterable[str] = (),
    duty_xids: Iterable[str] = (),
    user_xids: Iterable[str] = (),
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> list[GoalSummary]:
    """Goals reachable from the given departments, duties and users.

    *max_depth* is the largest number of edges followed from a seed.
    Returns an empty list when no seed resolves or nothing is reachable.

    Raises:
        ValueError: If *max_depth* is below 1.
        StoreQueryError: On store failure.
    """
    if max_depth < 1:
        msg = f"max_depth must be at least 1, got {max_depth}"
        raise ValueError(msg)

    seeds = resolve_org_nodes(txn, dept_xids, duty_xids, user_xids).uids()
    if not seeds:
        return []

    rows = GoalRepository(txn).visible_goal_rows(seeds, max_depth)
    return [_to_summary(row) for row in rows]


def _to_summary(row: dict[str, Any]) -> GoalSummary:
    tag = None
    if row["tag_xid"] is not None:
        tag = TagRef(xid=row["tag_xid"], name=row["tag_name"] or "")
    return GoalSummary(
        xid=row["xid"],
        name=row["name"] or "",
        state=int(row["state"] or 0),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        creator=row["creator_xid"],
        tag=tag,
        uid=row["uid"],
    )
