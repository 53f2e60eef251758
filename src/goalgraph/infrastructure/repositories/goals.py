"""Read-side repository for XID lookup and goal visibility.

All statements run through a :class:`StoreTransaction`, so a caller
issuing several of them inside one snapshot reads one consistent state.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, bindparam, or_, select, text

from goalgraph.domain.types import VISIBILITY_RELATIONS, NodeKind, Relation
from goalgraph.infrastructure.database.schema import nodes

if TYPE_CHECKING:
    from goalgraph.infrastructure.store import StoreTransaction

# Depth-bounded closure over the visibility relations, then a projection
# of the goals reached. ``reach`` carries the hop count, so a cycle stops
# growing once :max_depth is hit; UNION drops repeated (uid, depth) rows.
VISIBLE_GOALS_SQL = text(
    """
    WITH RECURSIVE reach(uid, depth) AS (
        SELECT uid, 0 FROM nodes WHERE uid IN :seeds
        UNION
        SELECT e.object_uid, r.depth + 1
        FROM reach AS r
        JOIN edges AS e ON e.subject_uid = r.uid
        WHERE e.relation IN :relations
          AND r.depth < :max_depth
    )
    SELECT g.uid, g.xid, g.name, g.state, g.created_at, g.updated_at,
           t.xid AS tag_xid, t.name AS tag_name,
           u.xid AS creator_xid
    FROM nodes AS g
    LEFT JOIN edges AS te ON te.subject_uid = g.uid AND te.relation = :tag_of
    LEFT JOIN nodes AS t ON t.uid = te.object_uid
    LEFT JOIN edges AS oe ON oe.object_uid = g.uid AND oe.relation = :owner
    LEFT JOIN nodes AS u ON u.uid = oe.subject_uid
    WHERE g.kind = :goal_kind
      AND g.uid IN (SELECT uid FROM reach)
    ORDER BY g.updated_at ASC, g.uid ASC
    """
).bindparams(
    bindparam("seeds", expanding=True),
    bindparam("relations", expanding=True),
)


class GoalRepository:
    """Encapsulates SQL for XID resolution and the visibility closure."""

    def __init__(self, txn: StoreTransaction) -> None:
        self._txn = txn

    def find_nodes(self, terms: Mapping[NodeKind, Iterable[str]]) -> list[dict[str, Any]]:
        """Fetch ``uid, kind, xid, updated_at`` for nodes matching an XID of its kind.

        One statement with one predicate per kind. Kinds with no terms
        are left out; with no terms at all nothing is queried.
        """
        predicates = []
        for kind, xids in terms.items():
            values = sorted(set(xids))
            if values:
                predicates.append(and_(nodes.c.kind == str(kind), nodes.c.xid.in_(values)))
        if not predicates:
            return []

        stmt = (
            select(nodes.c.uid, nodes.c.kind, nodes.c.xid, nodes.c.updated_at)
            .where(or_(*predicates))
            .order_by(nodes.c.kind, nodes.c.xid, nodes.c.updated_at, nodes.c.uid)
        )
        return self._txn.query(stmt)

    def visible_goal_rows(self, seed_uids: Iterable[str], max_depth: int) -> list[dict[str, Any]]:
        """Goal rows reachable from *seed_uids*, oldest update first."""
        seeds = sorted(set(seed_uids))
        if not seeds:
            return []
        return self._txn.query(
            VISIBLE_GOALS_SQL,
            {
                "seeds": seeds,
                "relations": [str(relation) for relation in VISIBILITY_RELATIONS],
                "max_depth": max_depth,
                "tag_of": str(Relation.TAG_OF),
                "owner": str(Relation.OWNER),
                "goal_kind": str(NodeKind.GOAL),
            },
        )
