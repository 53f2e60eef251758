"""SQLAlchemy Core table definitions for the goal graph store.

Nodes of every kind share one table keyed by an opaque ``uid``. The XID
is unique per kind for org nodes and tags (partial unique index), which
is what makes insert-if-absent safe under concurrent writers. Goals and
frames may repeat an XID: each insertion creates a new node.
"""

from __future__ import annotations

from sqlalchemy import (
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    UniqueConstraint,
)

from goalgraph.domain.types import UNIQUE_KINDS

metadata = MetaData()

nodes = Table(
    "nodes",
    metadata,
    Column("uid", Text, primary_key=True),
    Column("kind", Text, nullable=False),
    Column("xid", Text, nullable=False),
    Column("name", Text),
    Column("state", Integer, default=0, server_default="0"),
    Column("created_at", Text),
    Column("updated_at", Text, nullable=False),
)

edges = Table(
    "edges",
    metadata,
    Column("subject_uid", Text, ForeignKey("nodes.uid"), nullable=False),
    Column("relation", Text, nullable=False),
    Column("object_uid", Text, ForeignKey("nodes.uid"), nullable=False),
    Column("created_at", Text, nullable=False),
    UniqueConstraint("subject_uid", "relation", "object_uid"),
)

uid_counter = Table(
    "uid_counter",
    metadata,
    Column("name", Text, primary_key=True),
    Column("next_value", Integer, nullable=False, default=1, server_default="1"),
)

# ---------------------------------------------------------------------------
# Indexes
# ---------------------------------------------------------------------------

UNIQUE_KIND_VALUES: tuple[str, ...] = tuple(sorted(str(kind) for kind in UNIQUE_KINDS))

Index(
    "uq_nodes_kind_xid",
    nodes.c.kind,
    nodes.c.xid,
    unique=True,
    sqlite_where=nodes.c.kind.in_(UNIQUE_KIND_VALUES),
)
Index("ix_nodes_xid", nodes.c.xid, nodes.c.kind)
Index("ix_nodes_updated_at", nodes.c.updated_at)
Index("ix_edges_subject", edges.c.subject_uid, edges.c.relation)
Index("ix_edges_object", edges.c.object_uid, edges.c.relation)
