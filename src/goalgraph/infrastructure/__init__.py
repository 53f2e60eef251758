"""Infrastructure layer — graph store adapter, schema, graph engine.

This layer depends on stdlib, third-party libs (SQLAlchemy, Alembic,
NetworkX) and the domain layer. It must never import from services,
commands, or output.
"""
