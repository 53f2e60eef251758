"""GoalService — goal insertion, visibility and goal trees.

Insertion pipeline, one store transaction end to end:
BEGIN → GOAL_CREATED → ORGS_RESOLVED → ORGS_UPSERTED → EDGES_LINKED → COMMITTED

A failure at any stage moves the run to ABORTED; nothing it staged is
kept. The stage reached is reported in ``error.detail["stage"]``.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import StrEnum
import logging
from typing import TYPE_CHECKING, Any

from goalgraph.config.models import MAX_VISIBILITY_DEPTH
from goalgraph.domain.members import MemberSet, clean_xids, is_blank
from goalgraph.domain.types import ORG_KINDS, NodeKind, Relation
from goalgraph.infrastructure.errors import StoreError
from goalgraph.services import visibility
from goalgraph.services.base import BaseService
from goalgraph.services.linker import build_edges, parent_edge, tag_edge
from goalgraph.services.resolver import resolve_org_nodes, resolve_xids
from goalgraph.services.result import ServiceResult, failure
from goalgraph.services.telemetry import trace_span, traced
from goalgraph.services.upsert import upsert_org_nodes

if TYPE_CHECKING:
    import networkx as nx

    from goalgraph.domain.nodes import Frame, Goal, Tag
    from goalgraph.infrastructure.store import StoreTransaction

logger = logging.getLogger(__name__)

_GROUP_NAMES = {
    NodeKind.DEPARTMENT: "departments",
    NodeKind.DUTY: "duties",
    NodeKind.USER: "users",
}


class InsertStage(StrEnum):
    BEGIN = "begin"
    GOAL_CREATED = "goal_created"
    ORGS_RESOLVED = "orgs_resolved"
    ORGS_UPSERTED = "orgs_upserted"
    EDGES_LINKED = "edges_linked"
    COMMITTED = "committed"
    ABORTED = "aborted"


class ReferenceNotFoundError(LookupError):
    """A referenced goal (parent) does not exist."""

    def __init__(self, kind: NodeKind, xid: str) -> None:
        self.kind = kind
        self.xid = xid
        super().__init__(f"No {kind} node with XID '{xid}'")


def _advance(goal_xid: str, stage: InsertStage, detail: object = "") -> InsertStage:
    logger.debug("insert_goal %s stage=%s %s", goal_xid, stage, detail)
    return stage


def _blank_count(*member_sets: MemberSet) -> int:
    return sum(
        is_blank(xid)
        for members in member_sets
        for kind in ORG_KINDS
        for xid in members.xids(kind)
    )


def _goal_uid(txn: StoreTransaction, xid: str) -> str:
    found = resolve_xids(txn, NodeKind.GOAL, [xid])
    if xid not in found:
        raise ReferenceNotFoundError(NodeKind.GOAL, xid)
    return found[xid]


class GoalService(BaseService):
    """Inserts goals with their org links and answers visibility queries."""

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    @traced
    def insert_goal(
        self,
        goal: Goal,
        *,
        creator: str,
        managers: MemberSet | None = None,
        participators: MemberSet | None = None,
        parent: str | None = None,
        tag: Tag | None = None,
        timeout: float | None = None,
    ) -> ServiceResult:
        """Insert *goal* and link its managers, participators and creator.

        Missing departments, duties and users are created on the fly;
        blank XIDs are skipped with a warning. Either the goal, every
        new org node and every edge are committed together, or none are.

        Args:
            goal: Unpersisted goal. Its XID need not be unique.
            creator: XID of the owning user (required).
            managers: Org nodes to link via ``manager``.
            participators: Org nodes to link via ``participator``.
            parent: XID of an existing goal to hang this one under.
            tag: Tag to attach; created if no tag holds its XID.
            timeout: Seconds before the whole insert is abandoned.
        """
        op = "insert_goal"
        if is_blank(goal.xid):
            return failure(op, "VALIDATION_FAILED", "Goal XID must not be blank")
        if goal.uid is not None:
            return failure(
                op,
                "VALIDATION_FAILED",
                f"Goal '{goal.xid}' is already persisted as {goal.uid}",
            )
        if is_blank(creator):
            return failure(op, "VALIDATION_FAILED", "Creator XID must not be blank", goal=goal.xid)
        if tag is not None and is_blank(tag.xid):
            return failure(op, "VALIDATION_FAILED", "Tag XID must not be blank", goal=goal.xid)

        managers = managers or MemberSet()
        participators = participators or MemberSet()
        if parent is not None and is_blank(parent):
            parent = None

        warnings: list[str] = []
        blanks = _blank_count(managers, participators)
        if blanks:
            warnings.append(f"Skipped {blanks} blank member XID(s)")

        stage = _advance(goal.xid, InsertStage.BEGIN)
        try:
            with self._store.transaction(timeout=timeout) as txn:
                with trace_span("create_goal"):
                    parent_uid = _goal_uid(txn, parent) if parent is not None else None
                    duplicates = resolve_xids(txn, NodeKind.GOAL, [goal.xid])
                    goal_uid = txn.create_nodes([goal])["blank-0"]
                if duplicates:
                    warnings.append(f"Goal XID '{goal.xid}' was already in use")
                stage = _advance(goal.xid, InsertStage.GOAL_CREATED, goal_uid)

                with trace_span("resolve_orgs"):
                    orgs = resolve_org_nodes(
                        txn,
                        managers.departments + participators.departments,
                        managers.duties + participators.duties,
                        (*managers.users, *participators.users, creator),
                    )
                stage = _advance(goal.xid, InsertStage.ORGS_RESOLVED)

                with trace_span("upsert_orgs") as span:
                    before = len(orgs.uids())
                    orgs = upsert_org_nodes(txn, orgs, managers, participators, creator)
                    if span:
                        span.annotate("created", len(orgs.uids()) - before)
                stage = _advance(goal.xid, InsertStage.ORGS_UPSERTED)

                with trace_span("link_edges"):
                    edge_list = build_edges(
                        goal_uid, managers, participators, orgs.users[creator], orgs
                    )
                    if parent_uid is not None:
                        edge_list.append(parent_edge(goal_uid, parent_uid))
                    if tag is not None:
                        tag_uid = txn.create_nodes([tag])["blank-0"]
                        edge_list.append(tag_edge(goal_uid, tag_uid))
                    added = txn.add_edges(edge_list)
                stage = _advance(goal.xid, InsertStage.EDGES_LINKED, f"edges_added={added}")
        except ReferenceNotFoundError as exc:
            logger.info("insert_goal %s aborted at %s: %s", goal.xid, stage, exc)
            return failure(op, "NOT_FOUND", str(exc), stage=str(stage), goal=goal.xid)
        except StoreError as exc:
            return self._store_failure(op, exc, stage=str(stage), goal=goal.xid)

        stage = _advance(goal.xid, InsertStage.COMMITTED)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "id": goal.xid,
                "uid": goal_uid,
                "creator": creator,
                "parent": parent,
                "tag": tag.xid if tag is not None else None,
                "nodes": orgs.to_dict(),
                "edges": [edge.to_dict() for edge in edge_list],
                "edges_added": added,
                "stage": str(stage),
            },
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # insert_frame
    # ------------------------------------------------------------------

    @traced
    def insert_frame(
        self,
        frame: Frame,
        *,
        parent: str,
        timeout: float | None = None,
    ) -> ServiceResult:
        """Create *frame* under the existing goal *parent*."""
        op = "insert_frame"
        if is_blank(frame.xid):
            return failure(op, "VALIDATION_FAILED", "Frame XID must not be blank")
        if is_blank(parent):
            return failure(op, "VALIDATION_FAILED", "Parent goal XID must not be blank")

        try:
            with self._store.transaction(timeout=timeout) as txn:
                parent_uid = _goal_uid(txn, parent)
                frame_uid = txn.create_nodes([frame])["blank-0"]
                txn.add_edges([parent_edge(frame_uid, parent_uid)])
        except ReferenceNotFoundError as exc:
            return failure(op, "NOT_FOUND", str(exc), frame=frame.xid)
        except StoreError as exc:
            return self._store_failure(op, exc, frame=frame.xid)

        logger.debug("insert_frame %s under %s uid=%s", frame.xid, parent, frame_uid)
        return ServiceResult(
            ok=True,
            op=op,
            data={"id": frame.xid, "uid": frame_uid, "parent": parent},
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @traced
    def visible_goals(
        self,
        departments: Iterable[str] = (),
        duties: Iterable[str] = (),
        users: Iterable[str] = (),
        *,
        max_depth: int | None = None,
        timeout: float | None = None,
    ) -> ServiceResult:
        """Goals visible to the given departments, duties and users.

        *max_depth* defaults to ``[visibility] max_depth``.
        """
        op = "visible_goals"
        depth = self._store.settings.visibility.max_depth if max_depth is None else max_depth
        if not 1 <= depth <= MAX_VISIBILITY_DEPTH:
            return failure(
                op,
                "VALIDATION_FAILED",
                f"max_depth must be between 1 and {MAX_VISIBILITY_DEPTH}, got {depth}",
            )

        try:
            with self._store.snapshot(timeout=timeout) as txn, trace_span("closure") as span:
                items = visibility.visible_goals(
                    txn, departments, duties, users, max_depth=depth
                )
                if span:
                    span.annotate("goals", len(items))
        except StoreError as exc:
            return self._store_failure(op, exc)

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "count": len(items),
                "max_depth": depth,
                "items": [item.to_dict() for item in items],
            },
        )

    @traced
    def resolve(
        self,
        departments: Iterable[str] = (),
        duties: Iterable[str] = (),
        users: Iterable[str] = (),
        *,
        timeout: float | None = None,
    ) -> ServiceResult:
        """Map org XIDs to node IDs without creating anything."""
        op = "resolve"
        requested = {
            NodeKind.DEPARTMENT: clean_xids(departments),
            NodeKind.DUTY: clean_xids(duties),
            NodeKind.USER: clean_xids(users),
        }
        try:
            with self._store.snapshot(timeout=timeout) as txn:
                orgs = resolve_org_nodes(
                    txn,
                    requested[NodeKind.DEPARTMENT],
                    requested[NodeKind.DUTY],
                    requested[NodeKind.USER],
                )
        except StoreError as exc:
            return self._store_failure(op, exc)

        missing = {
            _GROUP_NAMES[kind]: [xid for xid in xids if xid not in orgs.for_kind(kind)]
            for kind, xids in requested.items()
        }
        unresolved = sum(len(xids) for xids in missing.values())
        warnings = [f"{unresolved} XID(s) did not resolve"] if unresolved else []
        return ServiceResult(
            ok=True,
            op=op,
            data={**orgs.to_dict(), "missing": missing},
            warnings=warnings,
        )

    @traced
    def goal_tree(self, goal_xid: str) -> ServiceResult:
        """Nested view of a goal: members, tag, and the goals and frames under it.

        When the XID names several goals, the most recently updated one
        is the root. Cyclic ``parent`` chains are cut at the first repeat
        and reported in warnings.
        """
        op = "goal_tree"
        try:
            g = self._store.graph.graph
        except StoreError as exc:
            return self._store_failure(op, exc)

        candidates = [
            uid
            for uid, attrs in g.nodes(data=True)
            if attrs["kind"] == NodeKind.GOAL and attrs["xid"] == goal_xid
        ]
        if not candidates:
            return failure(op, "NOT_FOUND", f"No goal with XID '{goal_xid}'")
        root = max(candidates, key=lambda uid: (g.nodes[uid]["updated_at"], uid))

        warnings: list[str] = []
        with trace_span("walk"):
            tree, count = _build_tree(g, root, warnings)

        return ServiceResult(
            ok=True,
            op=op,
            data={"root": tree, "count": count},
            warnings=warnings,
        )


# ----------------------------------------------------------------------
# Tree helpers
# ----------------------------------------------------------------------


def _child_uids(g: nx.MultiDiGraph, uid: str) -> list[str]:
    """Goals and frames whose ``parent`` edge points at *uid*, oldest update first."""
    return sorted(
        (
            child
            for child, _, relation in g.in_edges(uid, keys=True)
            if relation == Relation.PARENT
        ),
        key=lambda child: (g.nodes[child]["updated_at"], child),
    )


def _tree_node(g: nx.MultiDiGraph, uid: str) -> dict[str, Any]:
    attrs = g.nodes[uid]
    node: dict[str, Any] = {
        "id": attrs["xid"],
        "kind": attrs["kind"],
        "name": attrs["name"] or "",
    }
    if attrs["kind"] == NodeKind.GOAL:
        node["state"] = attrs["state"]
        node["updated_at"] = attrs["updated_at"]
        node.update(_goal_members(g, uid))
    node["children"] = []
    return node


def _build_tree(
    g: nx.MultiDiGraph, root: str, warnings: list[str]
) -> tuple[dict[str, Any], int]:
    """Iterative depth-first walk down reversed ``parent`` edges from *root*.

    A node reached a second time is reported in *warnings* and not
    expanded again. Returns the nested tree and its node count.
    """
    tree = _tree_node(g, root)
    visited = {root}
    stack = [(child, tree["children"]) for child in reversed(_child_uids(g, root))]
    while stack:
        uid, siblings = stack.pop()
        if uid in visited:
            attrs = g.nodes[uid]
            warnings.append(
                f"Cycle: {attrs['kind']} '{attrs['xid']}' already in tree, not expanded"
            )
            continue
        visited.add(uid)
        node = _tree_node(g, uid)
        siblings.append(node)
        stack.extend((child, node["children"]) for child in reversed(_child_uids(g, uid)))
    return tree, len(visited)


def _goal_members(g: nx.MultiDiGraph, uid: str) -> dict[str, Any]:
    groups: dict[str, dict[str, list[str]]] = {
        str(relation): {name: [] for name in _GROUP_NAMES.values()}
        for relation in (Relation.MANAGER, Relation.PARTICIPATOR)
    }
    creator = None
    for subject, _, relation in g.in_edges(uid, keys=True):
        subject_attrs = g.nodes[subject]
        if relation == Relation.OWNER:
            creator = subject_attrs["xid"]
        elif relation in groups:
            group = _GROUP_NAMES[NodeKind(subject_attrs["kind"])]
            groups[relation][group].append(subject_attrs["xid"])

    tag = None
    for _, obj, relation in g.out_edges(uid, keys=True):
        if relation == Relation.TAG_OF:
            tag_attrs = g.nodes[obj]
            tag = {"id": tag_attrs["xid"], "name": tag_attrs["name"] or ""}

    for members in groups.values():
        for xids in members.values():
            xids.sort()
    return {
        "creator": creator,
        "tag": tag,
        "managers": groups[Relation.MANAGER],
        "participators": groups[Relation.PARTICIPATOR],
    }
