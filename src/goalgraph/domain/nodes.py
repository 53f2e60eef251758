"""Node variants — the closed set of things the goal graph stores.

Every variant carries the same identity pair: the caller-supplied ``xid``
and the store-assigned ``uid`` (``None`` until persisted). ``kind`` is a
class-level discriminator matching ``nodes.kind`` in the database.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, TypeAlias

from goalgraph.domain.types import NodeKind


@dataclass(frozen=True)
class Department:
    """Organizational department."""

    kind: ClassVar[NodeKind] = NodeKind.DEPARTMENT

    xid: str
    uid: str | None = None

    def attributes(self) -> dict[str, Any]:
        return {}


@dataclass(frozen=True)
class Duty:
    """A duty (position) inside the organization."""

    kind: ClassVar[NodeKind] = NodeKind.DUTY

    xid: str
    uid: str | None = None

    def attributes(self) -> dict[str, Any]:
        return {}


@dataclass(frozen=True)
class User:
    """A person. The only org kind that can own a goal."""

    kind: ClassVar[NodeKind] = NodeKind.USER

    xid: str
    uid: str | None = None

    def attributes(self) -> dict[str, Any]:
        return {}


@dataclass(frozen=True)
class Goal:
    """An igoal.

    ``created_at`` defaults to the insertion time when left empty;
    ``updated_at`` is maintained by the store and ignored on create.
    """

    kind: ClassVar[NodeKind] = NodeKind.GOAL

    xid: str
    name: str = ""
    state: int = 0
    created_at: str | None = None
    updated_at: str | None = None
    uid: str | None = None

    def attributes(self) -> dict[str, Any]:
        return {"name": self.name, "state": self.state, "created_at": self.created_at}


@dataclass(frozen=True)
class Frame:
    """A frame hung under a goal via a ``parent`` edge."""

    kind: ClassVar[NodeKind] = NodeKind.FRAME

    xid: str
    name: str = ""
    uid: str | None = None

    def attributes(self) -> dict[str, Any]:
        return {"name": self.name}


@dataclass(frozen=True)
class Tag:
    """A label attached to goals via ``tag_of``."""

    kind: ClassVar[NodeKind] = NodeKind.TAG

    xid: str
    name: str = ""
    created_at: str | None = None
    uid: str | None = None

    def attributes(self) -> dict[str, Any]:
        return {"name": self.name, "created_at": self.created_at}


Node: TypeAlias = Department | Duty | User | Goal | Frame | Tag

NODE_CLASSES: dict[NodeKind, type[Node]] = {
    NodeKind.DEPARTMENT: Department,
    NodeKind.DUTY: Duty,
    NodeKind.USER: User,
    NodeKind.GOAL: Goal,
    NodeKind.FRAME: Frame,
    NodeKind.TAG: Tag,
}


def bare_node(kind: NodeKind, xid: str) -> Node:
    """Build an unpersisted node of *kind* carrying only its XID."""
    return NODE_CLASSES[kind](xid=xid)

