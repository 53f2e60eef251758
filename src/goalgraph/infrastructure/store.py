"""GraphStore — transactional access to the goal graph.

The GraphStore is the single dependency injected into every service. It
owns the database engine and the lazily built graph engine, and hands
out :class:`StoreTransaction` objects exposing the three primitives the
rest of the library relies on:

- **query**: run a Core select or ``text()`` template with named params.
- **create_nodes**: create a batch of bare nodes; returns ``blank-<i>``
  placeholders mapped to the assigned node IDs in submission order.
- **add_edges**: add ``(subject, relation, object)`` triples.

Writes inside :meth:`GraphStore.transaction` are committed only when the
block exits normally; any exception discards them. Driver failures are
translated into the :mod:`~goalgraph.infrastructure.errors` taxonomy and
every call is checked against the caller's deadline.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from sqlalchemy import insert, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from goalgraph.domain.types import UNIQUE_KINDS
from goalgraph.infrastructure.database.counters import reserve_uids
from goalgraph.infrastructure.database.engine import WRITE_TRANSACTION, init_database
from goalgraph.infrastructure.database.schema import edges, nodes
from goalgraph.infrastructure.errors import (
    StoreConnectionError,
    StoreError,
    StoreMutationError,
    StoreQueryError,
    StoreTimeoutError,
)
from goalgraph.infrastructure.graph.engine import GraphEngine

if TYPE_CHECKING:
    from sqlalchemy import Connection, Executable, RootTransaction
    from sqlalchemy.engine import Engine

    from goalgraph.config.settings import GoalGraphSettings
    from goalgraph.domain.members import Edge
    from goalgraph.domain.nodes import Node

logger = logging.getLogger(__name__)

# SQLite VM instructions between deadline checks while a statement runs.
_PROGRESS_STEPS = 1000


def _now_iso() -> str:
    """Current UTC time, microsecond precision (sorts chronologically)."""
    return datetime.now(UTC).isoformat(timespec="microseconds")


# ---------------------------------------------------------------------------
# Deadline
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Deadline:
    """Absolute monotonic deadline for one transaction (None = unbounded)."""

    expires_at: float | None = None

    @classmethod
    def after(cls, timeout: float | None) -> Deadline:
        if timeout is None:
            return cls()
        return cls(time.monotonic() + timeout)

    def expired(self) -> bool:
        return self.expires_at is not None and time.monotonic() >= self.expires_at


@contextmanager
def _interrupt_on_deadline(conn: Connection, deadline: Deadline) -> Iterator[None]:
    """Abort running SQLite statements once *deadline* passes."""
    if deadline.expires_at is None:
        yield
        return

    raw = conn.connection.driver_connection
    raw.set_progress_handler(lambda: 1 if deadline.expired() else 0, _PROGRESS_STEPS)
    try:
        yield
    finally:
        raw.set_progress_handler(None, _PROGRESS_STEPS)


# ---------------------------------------------------------------------------
# StoreTransaction: yielded to callers within transaction()/snapshot()
# ---------------------------------------------------------------------------


@dataclass
class StoreTransaction:
    """Active store transaction.

    All reads and writes of one operation go through the same instance,
    so they share one SQLite transaction and one deadline.
    """

    conn: Connection
    deadline: Deadline
    read_only: bool = False

    @contextmanager
    def _guard(self, error_cls: type[StoreError], action: str) -> Iterator[None]:
        """Check the deadline, then translate driver errors for *action*."""
        if self.deadline.expired():
            msg = f"Deadline exceeded before {action}"
            raise StoreTimeoutError(msg)
        try:
            yield
        except OperationalError as exc:
            if self.deadline.expired() or "interrupted" in str(exc.orig):
                msg = f"Deadline exceeded during {action}"
                raise StoreTimeoutError(msg) from exc
            msg = f"{action} failed: {exc.orig}"
            raise error_cls(msg) from exc
        except SQLAlchemyError as exc:
            msg = f"{action} failed: {exc}"
            raise error_cls(msg) from exc

    # ------------------------------------------------------------------
    # query
    # ------------------------------------------------------------------

    def query(
        self,
        statement: Executable,
        params: Mapping[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Execute a read statement and return its rows as dicts."""
        with self._guard(StoreQueryError, "query"):
            rows = self.conn.execute(statement, dict(params or {})).mappings().all()
        return [dict(row) for row in rows]

    # ------------------------------------------------------------------
    # mutate: create
    # ------------------------------------------------------------------

    def create_nodes(self, batch: Sequence[Node]) -> dict[str, str]:
        """Create bare nodes and return ``{"blank-<i>": uid}``.

        Nodes of a unique kind are inserted only if no node of that kind
        already holds the XID; otherwise the existing node ID is returned
        in their slot. The check and the insert are one statement, so
        concurrent first references cannot produce two nodes.

        Raises:
            ValueError: If a node in *batch* already carries a uid.
        """
        self._require_writable("create")
        if not batch:
            return {}
        for node in batch:
            if node.uid is not None:
                msg = f"create_nodes expects bare nodes, {node.kind}:{node.xid} has a uid"
                raise ValueError(msg)

        assigned: dict[str, str] = {}
        with self._guard(StoreMutationError, "create"):
            now = _now_iso()
            uids = reserve_uids(self.conn, len(batch))
            for i, (node, uid) in enumerate(zip(batch, uids, strict=True)):
                values = self._node_values(node, uid, now)
                if node.kind in UNIQUE_KINDS:
                    result = self.conn.execute(
                        sqlite_insert(nodes).values(**values).on_conflict_do_nothing()
                    )
                    if result.rowcount == 0:
                        uid = self.conn.execute(
                            select(nodes.c.uid).where(
                                nodes.c.kind == str(node.kind), nodes.c.xid == node.xid
                            )
                        ).scalar_one()
                        logger.debug(
                            "create.existing kind=%s xid=%s uid=%s", node.kind, node.xid, uid
                        )
                else:
                    self.conn.execute(insert(nodes).values(**values))
                assigned[f"blank-{i}"] = uid
        return assigned

    @staticmethod
    def _node_values(node: Node, uid: str, now: str) -> dict[str, Any]:
        values: dict[str, Any] = {
            "uid": uid,
            "kind": str(node.kind),
            "xid": node.xid,
            "updated_at": now,
        }
        values.update(node.attributes())
        if "created_at" in values and values["created_at"] is None:
            values["created_at"] = now
        return values

    # ------------------------------------------------------------------
    # mutate: edge set
    # ------------------------------------------------------------------

    def add_edges(self, triples: Sequence[Edge]) -> int:
        """Add edges; an already stored triple is skipped.

        Returns the number of edges actually added.
        """
        self._require_writable("add_edges")
        if not triples:
            return 0

        added = 0
        with self._guard(StoreMutationError, "add_edges"):
            now = _now_iso()
            for edge in triples:
                result = self.conn.execute(
                    sqlite_insert(edges)
                    .values(
                        subject_uid=edge.subject,
                        relation=str(edge.relation),
                        object_uid=edge.object,
                        created_at=now,
                    )
                    .on_conflict_do_nothing()
                )
                added += result.rowcount
        return added

    def _require_writable(self, action: str) -> None:
        if self.read_only:
            msg = f"{action} is not allowed in a read-only snapshot"
            raise StoreMutationError(msg)


# ---------------------------------------------------------------------------
# GraphStore
# ---------------------------------------------------------------------------


class GraphStore:
    """Repository encapsulating database and graph access.

    Constructed once from :class:`GoalGraphSettings`. Services receive the
    store via their :class:`~goalgraph.services.base.BaseService`
    constructor.
    """

    def __init__(self, settings: GoalGraphSettings) -> None:
        self._settings = settings
        self._path = settings.store_path
        try:
            self._engine: Engine = init_database(
                self._path, busy_timeout=settings.store.busy_timeout
            )
        except (OSError, SQLAlchemyError) as exc:
            msg = f"Cannot open graph store at {self._path}: {exc}"
            raise StoreConnectionError(msg) from exc
        self._graph = GraphEngine(self._engine)

    @property
    def path(self) -> Path:
        """Location of the SQLite database file."""
        return self._path

    @property
    def engine(self) -> Engine:
        """The underlying SQLAlchemy engine (for direct access when needed)."""
        return self._engine

    @property
    def graph(self) -> GraphEngine:
        """The graph engine (lazy-built from committed nodes and edges)."""
        return self._graph

    @property
    def settings(self) -> GoalGraphSettings:
        return self._settings

    def close(self) -> None:
        """Release pooled connections."""
        self._engine.dispose()

    def _connect(self, **options: Any) -> Connection:
        try:
            return self._engine.connect().execution_options(**options)
        except SQLAlchemyError as exc:
            msg = f"Cannot connect to graph store at {self._path}: {exc}"
            raise StoreConnectionError(msg) from exc

    def _begin(self, conn: Connection) -> RootTransaction:
        try:
            return conn.begin()
        except SQLAlchemyError as exc:
            msg = f"Cannot begin a transaction on {self._path}: {exc}"
            raise StoreConnectionError(msg) from exc

    def _deadline(self, timeout: float | None) -> Deadline:
        if timeout is None:
            timeout = self._settings.store.default_timeout
        return Deadline.after(timeout)

    @contextmanager
    def transaction(self, *, timeout: float | None = None) -> Iterator[StoreTransaction]:
        """Read-write transaction, committed only if the block succeeds.

        The write lock is taken at ``BEGIN``; a concurrent writer waits up
        to ``[store] busy_timeout`` for it.

        Any exception raised inside the block (store errors included)
        discards every staged write. A failing commit surfaces as
        :class:`StoreMutationError`. The graph cache is invalidated on
        exit either way.

        Usage::

            with store.transaction(timeout=2.0) as txn:
                assigned = txn.create_nodes([Goal(xid="1004", name="Ship")])
                txn.add_edges([...])
        """
        deadline = self._deadline(timeout)
        conn = self._connect(**WRITE_TRANSACTION)
        try:
            with _interrupt_on_deadline(conn, deadline):
                trans = self._begin(conn)
                try:
                    yield StoreTransaction(conn=conn, deadline=deadline)
                except BaseException:
                    trans.rollback()
                    raise
                try:
                    trans.commit()
                except OperationalError as exc:
                    if deadline.expired():
                        msg = "Deadline exceeded during commit"
                        raise StoreTimeoutError(msg) from exc
                    msg = f"commit failed: {exc.orig}"
                    raise StoreMutationError(msg) from exc
                except SQLAlchemyError as exc:
                    msg = f"commit failed: {exc}"
                    raise StoreMutationError(msg) from exc
        finally:
            conn.close()
            self._graph.invalidate()

    @contextmanager
    def snapshot(self, *, timeout: float | None = None) -> Iterator[StoreTransaction]:
        """Read-only transaction: one consistent view, always rolled back."""
        deadline = self._deadline(timeout)
        conn = self._connect()
        try:
            with _interrupt_on_deadline(conn, deadline):
                trans = self._begin(conn)
                try:
                    yield StoreTransaction(conn=conn, deadline=deadline, read_only=True)
                finally:
                    trans.rollback()
        finally:
            conn.close()
