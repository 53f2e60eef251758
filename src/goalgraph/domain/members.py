"""Request-scoped values: member sets, edges and goal summaries."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, NamedTuple

from goalgraph.domain.types import NodeKind, Relation


def is_blank(xid: str | None) -> bool:
    """True for ``None``, empty and whitespace-only XIDs."""
    return xid is None or not xid.strip()


def clean_xids(xids: Iterable[str]) -> list[str]:
    """Drop blank XIDs and duplicates, keeping first-seen order.

    Examples:
        >>> clean_xids(["4", " ", "5", "4", ""])
        ['4', '5']
    """
    seen: set[str] = set()
    result: list[str] = []
    for xid in xids:
        if is_blank(xid) or xid in seen:
            continue
        seen.add(xid)
        result.append(xid)
    return result


@dataclass(frozen=True)
class MemberSet:
    """Departments, duties and users holding one relation to a goal.

    Used for both the manager set and the participator set of an insert.
    """

    departments: tuple[str, ...] = ()
    duties: tuple[str, ...] = ()
    users: tuple[str, ...] = ()

    @classmethod
    def of(
        cls,
        departments: Iterable[str] = (),
        duties: Iterable[str] = (),
        users: Iterable[str] = (),
    ) -> MemberSet:
        return cls(tuple(departments), tuple(duties), tuple(users))

    def xids(self, kind: NodeKind) -> tuple[str, ...]:
        """XIDs of *kind* in submission order."""
        if kind is NodeKind.DEPARTMENT:
            return self.departments
        if kind is NodeKind.DUTY:
            return self.duties
        if kind is NodeKind.USER:
            return self.users
        msg = f"Member sets hold org kinds only, got {kind!r}"
        raise ValueError(msg)

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "departments": list(self.departments),
            "duties": list(self.duties),
            "users": list(self.users),
        }


class Edge(NamedTuple):
    """A typed, directed edge ``subject -[relation]-> object``."""

    subject: str
    relation: Relation
    object: str

    def to_dict(self) -> dict[str, str]:
        return {"subject": self.subject, "relation": str(self.relation), "object": self.object}


@dataclass(frozen=True)
class TagRef:
    """Tag identity as shown in goal summaries."""

    xid: str
    name: str


@dataclass(frozen=True)
class GoalSummary:
    """Denormalized goal row returned by the visibility query."""

    xid: str
    name: str
    state: int
    created_at: str | None
    updated_at: str
    creator: str | None = None
    tag: TagRef | None = None
    uid: str = field(default="", compare=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.xid,
            "name": self.name,
            "state": self.state,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "creator": self.creator,
            "tag": {"id": self.tag.xid, "name": self.tag.name} if self.tag else None,
        }
