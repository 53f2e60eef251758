"""GraphEngine — lazy-built NetworkX graph from committed nodes and edges.

Rebuilt after every store transaction, never cached across writes.
Reads that only need the visibility query never build it; goal trees
do, because they walk reverse ``parent`` edges and group members by
kind, which is simpler over an in-memory multigraph.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeAlias

import networkx as nx
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from goalgraph.infrastructure.database.schema import edges, nodes
from goalgraph.infrastructure.errors import StoreQueryError

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

# One org node may hold several relations to the same goal (manager and
# participator), so parallel edges keyed by relation are required.
_Graph: TypeAlias = nx.MultiDiGraph


class GraphEngine:
    """Lazy-loading graph engine backed by the nodes and edges tables."""

    def __init__(self, db: Engine) -> None:
        self._db = db
        self._graph: _Graph | None = None

    @property
    def graph(self) -> _Graph:
        """Return the graph, building from DB on first access.

        Raises:
            StoreQueryError: If the tables cannot be read.
        """
        if self._graph is None:
            try:
                self._graph = self._build_from_db()
            except SQLAlchemyError as exc:
                msg = f"Cannot load graph: {exc}"
                raise StoreQueryError(msg) from exc
        return self._graph

    def invalidate(self) -> None:
        """Clear the cached graph, forcing rebuild on next access."""
        self._graph = None

    def _build_from_db(self) -> _Graph:
        """Build a MultiDiGraph keyed by node uid.

        Node attributes: ``kind``, ``xid``, ``name``, ``state``,
        ``updated_at``. Each edge is keyed by its relation name.
        """
        g: _Graph = nx.MultiDiGraph()
        with self._db.connect() as conn:
            for row in conn.execute(
                select(
                    nodes.c.uid,
                    nodes.c.kind,
                    nodes.c.xid,
                    nodes.c.name,
                    nodes.c.state,
                    nodes.c.updated_at,
                )
            ):
                g.add_node(
                    row.uid,
                    kind=row.kind,
                    xid=row.xid,
                    name=row.name,
                    state=row.state,
                    updated_at=row.updated_at,
                )

            for row in conn.execute(
                select(edges.c.subject_uid, edges.c.relation, edges.c.object_uid)
            ):
                g.add_edge(
                    row.subject_uid,
                    row.object_uid,
                    key=row.relation,
                    relation=row.relation,
                )
        return g
