"""Tests for GraphStore — transactions, create/edge primitives, deadlines."""

import threading
import time
from pathlib import Path

import pytest
from sqlalchemy import select, text

from tests.conftest import count_rows

from goalgraph.config.settings import GoalGraphSettings
from goalgraph.domain.members import Edge
from goalgraph.domain.nodes import Department, Goal, Tag, User
from goalgraph.domain.types import Relation
from goalgraph.infrastructure.database.schema import nodes
from goalgraph.infrastructure.errors import (
    StoreConnectionError,
    StoreMutationError,
    StoreQueryError,
    StoreTimeoutError,
)
from goalgraph.infrastructure.store import Deadline, GraphStore

# ---------------------------------------------------------------------------
# Store initialization
# ---------------------------------------------------------------------------


class TestGraphStoreInit:
    def test_creates_database(self, store: GraphStore, tmp_path: Path) -> None:
        assert store.path == tmp_path / ".goalgraph" / "goalgraph.db"
        assert store.path.is_file()

    def test_absolute_store_path(self, tmp_path: Path) -> None:
        target = tmp_path / "elsewhere" / "org.db"
        settings = GoalGraphSettings.from_cli(root=tmp_path, store={"path": str(target)})
        s = GraphStore(settings)
        try:
            assert s.path == target
            assert target.is_file()
        finally:
            s.close()

    def test_unopenable_path_raises_connection_error(self, tmp_path: Path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        settings = GoalGraphSettings.from_cli(
            root=tmp_path, store={"path": str(blocker / "g.db")}
        )
        with pytest.raises(StoreConnectionError):
            GraphStore(settings)


# ---------------------------------------------------------------------------
# create_nodes
# ---------------------------------------------------------------------------


class TestCreateNodes:
    def test_placeholders_in_submission_order(self, store: GraphStore) -> None:
        with store.transaction() as txn:
            assigned = txn.create_nodes([Department(xid="4"), Department(xid="5")])
        assert assigned == {"blank-0": "0x1", "blank-1": "0x2"}

    def test_empty_batch(self, store: GraphStore) -> None:
        with store.transaction() as txn:
            assert txn.create_nodes([]) == {}

    def test_unique_kind_returns_existing(self, store: GraphStore) -> None:
        with store.transaction() as txn:
            first = txn.create_nodes([User(xid="206")])["blank-0"]
        with store.transaction() as txn:
            second = txn.create_nodes([User(xid="206")])["blank-0"]
        assert first == second
        assert count_rows(store.engine, "nodes") == 1

    def test_goal_xid_creates_new_node(self, store: GraphStore) -> None:
        with store.transaction() as txn:
            a = txn.create_nodes([Goal(xid="1004")])["blank-0"]
            b = txn.create_nodes([Goal(xid="1004")])["blank-0"]
        assert a != b
        assert count_rows(store.engine, "nodes") == 2

    def test_created_at_defaults_to_now(self, store: GraphStore) -> None:
        with store.transaction() as txn:
            txn.create_nodes([Goal(xid="1004", name="Ship"), Tag(xid="q3")])
        with store.snapshot() as txn:
            rows = txn.query(select(nodes.c.kind, nodes.c.created_at, nodes.c.updated_at))
        for row in rows:
            assert row["created_at"] is not None
            assert row["updated_at"] is not None

    def test_org_nodes_have_no_created_at(self, store: GraphStore) -> None:
        with store.transaction() as txn:
            txn.create_nodes([Department(xid="4")])
        with store.snapshot() as txn:
            rows = txn.query(select(nodes.c.created_at))
        assert rows == [{"created_at": None}]

    def test_persisted_node_rejected(self, store: GraphStore) -> None:
        with pytest.raises(ValueError, match="bare nodes"), store.transaction() as txn:
            txn.create_nodes([User(xid="206", uid="0x9")])


# ---------------------------------------------------------------------------
# add_edges
# ---------------------------------------------------------------------------


class TestAddEdges:
    def test_adds_and_counts(self, store: GraphStore) -> None:
        with store.transaction() as txn:
            ids = txn.create_nodes([Goal(xid="1004"), User(xid="206")])
            added = txn.add_edges(
                [
                    Edge(ids["blank-1"], Relation.OWNER, ids["blank-0"]),
                    Edge(ids["blank-1"], Relation.MANAGER, ids["blank-0"]),
                ]
            )
        assert added == 2

    def test_duplicate_triple_ignored(self, store: GraphStore) -> None:
        with store.transaction() as txn:
            ids = txn.create_nodes([Goal(xid="1004"), User(xid="206")])
            edge = Edge(ids["blank-1"], Relation.OWNER, ids["blank-0"])
            assert txn.add_edges([edge, edge]) == 1
            assert txn.add_edges([edge]) == 0
        assert count_rows(store.engine, "edges") == 1

    def test_unknown_node_fails(self, store: GraphStore) -> None:
        with pytest.raises(StoreMutationError), store.transaction() as txn:
            txn.add_edges([Edge("0x404", Relation.OWNER, "0x405")])

    def test_empty(self, store: GraphStore) -> None:
        with store.transaction() as txn:
            assert txn.add_edges([]) == 0


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


class TestTransactions:
    def test_exception_rolls_back(self, store: GraphStore) -> None:
        with pytest.raises(RuntimeError), store.transaction() as txn:
            txn.create_nodes([Department(xid="4")])
            raise RuntimeError("boom")
        assert count_rows(store.engine, "nodes") == 0

    def test_rollback_releases_reserved_ids(self, store: GraphStore) -> None:
        with pytest.raises(RuntimeError), store.transaction() as txn:
            txn.create_nodes([Department(xid="4")])
            raise RuntimeError("boom")
        with store.transaction() as txn:
            assert txn.create_nodes([Department(xid="5")]) == {"blank-0": "0x1"}

    def test_snapshot_is_read_only(self, store: GraphStore) -> None:
        with pytest.raises(StoreMutationError, match="read-only"), store.snapshot() as txn:
            txn.create_nodes([Department(xid="4")])

    def test_snapshot_sees_committed_data(self, store: GraphStore) -> None:
        with store.transaction() as txn:
            txn.create_nodes([Department(xid="4")])
        with store.snapshot() as txn:
            rows = txn.query(select(nodes.c.xid))
        assert rows == [{"xid": "4"}]

    def test_bad_query_raises_query_error(self, store: GraphStore) -> None:
        with pytest.raises(StoreQueryError), store.snapshot() as txn:
            txn.query(text("SELECT * FROM no_such_table"))

    def test_graph_invalidated_after_write(self, store: GraphStore) -> None:
        assert store.graph.graph.number_of_nodes() == 0
        with store.transaction() as txn:
            txn.create_nodes([Department(xid="4")])
        assert store.graph.graph.number_of_nodes() == 1


class TestConcurrentWriters:
    def test_second_writer_waits_for_first(self, settings: GoalGraphSettings) -> None:
        first, second = GraphStore(settings), GraphStore(settings)
        holding = threading.Event()

        def hold_write_lock() -> None:
            with first.transaction() as txn:
                txn.create_nodes([Department(xid="4")])
                holding.set()
                time.sleep(0.2)

        writer = threading.Thread(target=hold_write_lock)
        writer.start()
        try:
            assert holding.wait(timeout=5)
            with second.transaction() as txn:
                txn.query(select(nodes.c.uid))
                assigned = txn.create_nodes([Department(xid="4"), Department(xid="5")])
        finally:
            writer.join()
            first.close()
            second.close()
        assert assigned["blank-0"] == "0x1"
        assert count_rows(second.engine, "nodes") == 2

    def test_snapshot_reads_while_writer_holds_lock(self, settings: GoalGraphSettings) -> None:
        writer_store, reader_store = GraphStore(settings), GraphStore(settings)
        try:
            with writer_store.transaction() as txn:
                txn.create_nodes([Department(xid="4")])
                with reader_store.snapshot(timeout=1) as snap:
                    assert snap.query(select(nodes.c.xid)) == []
        finally:
            writer_store.close()
            reader_store.close()


# ---------------------------------------------------------------------------
# Deadlines
# ---------------------------------------------------------------------------


class TestDeadline:
    def test_unbounded(self) -> None:
        assert not Deadline.after(None).expired()

    def test_expired(self) -> None:
        assert Deadline(expires_at=0.0).expired()

    def test_expired_deadline_aborts_and_discards(self, store: GraphStore) -> None:
        with pytest.raises(StoreTimeoutError), store.transaction(timeout=1e-9) as txn:
            txn.create_nodes([Department(xid="4")])
        assert count_rows(store.engine, "nodes") == 0

    def test_long_statement_is_interrupted(self, store: GraphStore) -> None:
        endless = text(
            "WITH RECURSIVE c(x) AS (SELECT 1 UNION ALL SELECT x + 1 FROM c) "
            "SELECT MAX(x) FROM c"
        )
        with pytest.raises(StoreTimeoutError), store.snapshot(timeout=0.05) as txn:
            txn.query(endless)

    def test_default_timeout_from_settings(self, tmp_path: Path) -> None:
        settings = GoalGraphSettings.from_cli(root=tmp_path, store={"default_timeout": 1e-9})
        s = GraphStore(settings)
        try:
            with pytest.raises(StoreTimeoutError), s.snapshot() as txn:
                txn.query(select(nodes.c.uid))
        finally:
            s.close()
