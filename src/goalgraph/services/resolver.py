"""Identifier resolution — XIDs to node IDs.

Read-only. One composite statement per call, so the department, duty
and user mappings always come from the same transaction snapshot.
XIDs with no node are simply absent from the result.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from goalgraph.domain.members import clean_xids
from goalgraph.domain.types import ORG_KINDS, NodeKind
from goalgraph.infrastructure.repositories.goals import GoalRepository

if TYPE_CHECKING:
    from goalgraph.infrastructure.store import StoreTransaction


@dataclass(frozen=True)
class OrgIndex:
    """XID → node ID mappings for the three org kinds."""

    departments: dict[str, str] = field(default_factory=dict)
    duties: dict[str, str] = field(default_factory=dict)
    users: dict[str, str] = field(default_factory=dict)

    def for_kind(self, kind: NodeKind) -> dict[str, str]:
        if kind is NodeKind.DEPARTMENT:
            return self.departments
        if kind is NodeKind.DUTY:
            return self.duties
        if kind is NodeKind.USER:
            return self.users
        msg = f"Not an org kind: {kind!r}"
        raise ValueError(msg)

    def with_kind(self, kind: NodeKind, mapping: dict[str, str]) -> OrgIndex:
        """Return a copy with the mapping for *kind* replaced."""
        field_name = {
            NodeKind.DEPARTMENT: "departments",
            NodeKind.DUTY: "duties",
            NodeKind.USER: "users",
        }[kind]
        return replace(self, **{field_name: mapping})

    def uids(self) -> set[str]:
        """Every resolved node ID, all kinds together."""
        return {uid for kind in ORG_KINDS for uid in self.for_kind(kind).values()}

    def to_dict(self) -> dict[str, dict[str, str]]:
        return {
            "departments": dict(self.departments),
            "duties": dict(self.duties),
            "users": dict(self.users),
        }


def resolve_org_nodes(
    txn: StoreTransaction,
    dept_xids: Iterable[str] = (),
    duty_xids: Iterable[str] = (),
    user_xids: Iterable[str] = (),
) -> OrgIndex:
    """Look up existing department, duty and user nodes by XID.

    Blank XIDs are ignored. Raises
    :class:`~goalgraph.infrastructure.errors.StoreQueryError` on failure.
    """
    terms = {
        NodeKind.DEPARTMENT: clean_xids(dept_xids),
        NodeKind.DUTY: clean_xids(duty_xids),
        NodeKind.USER: clean_xids(user_xids),
    }
    mappings: dict[NodeKind, dict[str, str]] = {kind: {} for kind in ORG_KINDS}
    for row in GoalRepository(txn).find_nodes(terms):
        mappings[NodeKind(row["kind"])][row["xid"]] = row["uid"]

    return OrgIndex(
        departments=mappings[NodeKind.DEPARTMENT],
        duties=mappings[NodeKind.DUTY],
        users=mappings[NodeKind.USER],
    )


def resolve_xids(txn: StoreTransaction, kind: NodeKind, xids: Iterable[str]) -> dict[str, str]:
    """Single-kind lookup.

    Goal XIDs are not unique: when a goal was inserted more than once,
    the most recently updated node wins.
    """
    mapping: dict[str, str] = {}
    for row in GoalRepository(txn).find_nodes({kind: clean_xids(xids)}):
        mapping[row["xid"]] = row["uid"]
    return mapping
