"""Node upsert — create the org nodes a request needs but the store lacks.

One batched create call per kind. Missing XIDs are collected as a set,
so an XID named as both manager and participator is created once, and
submitted in sorted order so the ``blank-<i>`` placeholders the store
answers with line up with a known sequence.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

from goalgraph.domain.members import MemberSet, is_blank
from goalgraph.domain.nodes import bare_node
from goalgraph.domain.types import ORG_KINDS, NodeKind
from goalgraph.infrastructure.errors import StoreMutationError

if TYPE_CHECKING:
    from goalgraph.infrastructure.store import StoreTransaction
    from goalgraph.services.resolver import OrgIndex

logger = logging.getLogger(__name__)


def required_org_xids(
    kind: NodeKind,
    managers: MemberSet,
    participators: MemberSet,
    creator_xid: str | None = None,
) -> set[str]:
    """Non-blank XIDs of *kind* referenced by one insert request.

    The creator only counts towards users.
    """
    required = {*managers.xids(kind), *participators.xids(kind)}
    if kind is NodeKind.USER and creator_xid is not None:
        required.add(creator_xid)
    return {xid for xid in required if not is_blank(xid)}


def upsert_nodes(
    txn: StoreTransaction,
    kind: NodeKind,
    required: Iterable[str],
    existing: Mapping[str, str],
) -> dict[str, str]:
    """Ensure every XID in *required* has a node of *kind*.

    Returns a new mapping: *existing* plus the node IDs assigned to the
    XIDs that were missing. Blank XIDs are never created.

    Raises:
        StoreMutationError: If the create call fails or the store does
            not answer for every submitted node.
    """
    missing = sorted({xid for xid in required if not is_blank(xid)} - existing.keys())
    merged = dict(existing)
    if not missing:
        return merged

    assigned = txn.create_nodes([bare_node(kind, xid) for xid in missing])
    for i, xid in enumerate(missing):
        uid = assigned.get(f"blank-{i}")
        if uid is None:
            msg = f"Store assigned no node ID for {kind}:{xid} (blank-{i})"
            raise StoreMutationError(msg)
        merged[xid] = uid

    logger.debug("upsert kind=%s created=%d", kind, len(missing))
    return merged


def upsert_org_nodes(
    txn: StoreTransaction,
    orgs: OrgIndex,
    managers: MemberSet,
    participators: MemberSet,
    creator_xid: str,
) -> OrgIndex:
    """Run :func:`upsert_nodes` for departments, duties and users in turn."""
    for kind in ORG_KINDS:
        required = required_org_xids(kind, managers, participators, creator_xid)
        orgs = orgs.with_kind(kind, upsert_nodes(txn, kind, required, orgs.for_kind(kind)))
    return orgs
