"""Node kinds and relation kinds of the goal graph.

Both are closed enumerations: every node stored in the graph is one of
:class:`NodeKind`, and every edge carries one :class:`Relation`.
"""

from __future__ import annotations

from enum import StrEnum


class NodeKind(StrEnum):
    """Discriminator stored in ``nodes.kind``."""

    DEPARTMENT = "dept"
    DUTY = "duty"
    USER = "user"
    GOAL = "igoal"
    FRAME = "frame"
    TAG = "tag"


class Relation(StrEnum):
    """Edge predicates stored in ``edges.relation``."""

    MANAGER = "manager"
    PARTICIPATOR = "participator"
    OWNER = "owner"
    PARENT = "parent"
    TAG_OF = "tag_of"


# Org kinds in linker order: departments, duties, users.
ORG_KINDS: tuple[NodeKind, ...] = (NodeKind.DEPARTMENT, NodeKind.DUTY, NodeKind.USER)

# Kinds whose XID is unique in the store (one node per XID).
UNIQUE_KINDS: frozenset[NodeKind] = frozenset({*ORG_KINDS, NodeKind.TAG})

# Relations an org node may hold towards a goal it does not own.
MEMBER_RELATIONS: tuple[Relation, ...] = (Relation.MANAGER, Relation.PARTICIPATOR)

# Relations followed by the visibility closure.
VISIBILITY_RELATIONS: tuple[Relation, ...] = (
    Relation.MANAGER,
    Relation.PARTICIPATOR,
    Relation.OWNER,
    Relation.PARENT,
)
