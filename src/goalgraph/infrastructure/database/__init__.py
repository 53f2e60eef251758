"""SQLite database engine, schema, and node-ID counter via SQLAlchemy Core."""

from goalgraph.infrastructure.database.counters import format_uid, reserve_uids
from goalgraph.infrastructure.database.engine import create_db_engine, init_database
from goalgraph.infrastructure.database.schema import edges, metadata, nodes, uid_counter

__all__ = [
    "create_db_engine",
    "edges",
    "format_uid",
    "init_database",
    "metadata",
    "nodes",
    "reserve_uids",
    "uid_counter",
]
