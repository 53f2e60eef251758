"""Tests for the lazy NetworkX graph."""

from goalgraph.domain.members import Edge
from goalgraph.domain.nodes import Goal, User
from goalgraph.domain.types import Relation
from goalgraph.infrastructure.store import GraphStore


class TestGraphEngine:
    def test_builds_multigraph_keyed_by_relation(self, store: GraphStore) -> None:
        with store.transaction() as txn:
            ids = txn.create_nodes([User(xid="206"), Goal(xid="1004", name="Ship")])
            user, goal = ids["blank-0"], ids["blank-1"]
            txn.add_edges(
                [
                    Edge(user, Relation.OWNER, goal),
                    Edge(user, Relation.MANAGER, goal),
                ]
            )

        g = store.graph.graph
        assert g.nodes[goal]["kind"] == "igoal"
        assert g.nodes[goal]["name"] == "Ship"
        assert g.nodes[user]["xid"] == "206"
        assert set(g[user][goal]) == {"owner", "manager"}

    def test_cached_until_invalidated(self, store: GraphStore) -> None:
        first = store.graph.graph
        assert store.graph.graph is first
        store.graph.invalidate()
        assert store.graph.graph is not first
