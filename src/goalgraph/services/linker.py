"""Relationship linking — the typed edges tying org nodes to a goal.

Edge order is fixed (manager/participator per kind, departments first,
then duties, then users, owner last) so the emitted list is
reproducible. XIDs with no resolved node are skipped without error.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from goalgraph.domain.members import Edge, MemberSet, clean_xids
from goalgraph.domain.types import MEMBER_RELATIONS, ORG_KINDS, Relation

if TYPE_CHECKING:
    from goalgraph.services.resolver import OrgIndex


def _members_for(relation: Relation, managers: MemberSet, participators: MemberSet) -> MemberSet:
    match relation:
        case Relation.MANAGER:
            return managers
        case Relation.PARTICIPATOR:
            return participators
        case _:
            msg = f"{relation} is not a member relation"
            raise ValueError(msg)


def build_edges(
    goal_uid: str,
    managers: MemberSet,
    participators: MemberSet,
    creator_uid: str,
    orgs: OrgIndex,
) -> list[Edge]:
    """Build manager, participator and owner edges into *goal_uid*.

    Always ends with exactly one ``owner`` edge from *creator_uid*.
    An XID repeated within one set yields a single edge.
    """
    result: list[Edge] = []
    for kind in ORG_KINDS:
        mapping = orgs.for_kind(kind)
        for relation in MEMBER_RELATIONS:
            members = _members_for(relation, managers, participators)
            for xid in clean_xids(members.xids(kind)):
                uid = mapping.get(xid)
                if uid is not None:
                    result.append(Edge(uid, relation, goal_uid))

    result.append(Edge(creator_uid, Relation.OWNER, goal_uid))
    return result


def parent_edge(child_uid: str, parent_uid: str) -> Edge:
    """``child -[parent]-> parent`` for a goal or frame under a goal."""
    return Edge(child_uid, Relation.PARENT, parent_uid)


def tag_edge(goal_uid: str, tag_uid: str) -> Edge:
    return Edge(goal_uid, Relation.TAG_OF, tag_uid)
