"""Baseline graph store schema, matching schema.py.

Revision ID: 001_baseline
Revises: None
Create Date: 2026-10-18

Stores created by ``goalgraph init`` are stamped at this revision
without running it; ``alembic upgrade head`` applies it to an empty database.
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision: str = "001_baseline"
down_revision: str | None = None
branch_labels: tuple[str, ...] | None = None
depends_on: tuple[str, ...] | None = None


def upgrade() -> None:
    op.create_table(
        "nodes",
        sa.Column("uid", sa.Text, primary_key=True),
        sa.Column("kind", sa.Text, nullable=False),
        sa.Column("xid", sa.Text, nullable=False),
        sa.Column("name", sa.Text),
        sa.Column("state", sa.Integer, server_default="0"),
        sa.Column("created_at", sa.Text),
        sa.Column("updated_at", sa.Text, nullable=False),
    )
    op.create_index(
        "uq_nodes_kind_xid",
        "nodes",
        ["kind", "xid"],
        unique=True,
        sqlite_where=sa.text("kind IN ('dept', 'duty', 'tag', 'user')"),
    )
    op.create_index("ix_nodes_xid", "nodes", ["xid", "kind"])
    op.create_index("ix_nodes_updated_at", "nodes", ["updated_at"])

    op.create_table(
        "edges",
        sa.Column("subject_uid", sa.Text, sa.ForeignKey("nodes.uid"), nullable=False),
        sa.Column("relation", sa.Text, nullable=False),
        sa.Column("object_uid", sa.Text, sa.ForeignKey("nodes.uid"), nullable=False),
        sa.Column("created_at", sa.Text, nullable=False),
        sa.UniqueConstraint("subject_uid", "relation", "object_uid"),
    )
    op.create_index("ix_edges_subject", "edges", ["subject_uid", "relation"])
    op.create_index("ix_edges_object", "edges", ["object_uid", "relation"])

    op.create_table(
        "uid_counter",
        sa.Column("name", sa.Text, primary_key=True),
        sa.Column("next_value", sa.Integer, nullable=False, server_default="1"),
    )
    op.execute("INSERT INTO uid_counter (name, next_value) VALUES ('node', 1)")


def downgrade() -> None:
    op.drop_table("edges")
    op.drop_table("nodes")
    op.drop_table("uid_counter")
