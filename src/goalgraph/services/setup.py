"""SetupService — store creation and migration stamping."""

from __future__ import annotations

from alembic.util import CommandError
from sqlalchemy.exc import SQLAlchemyError

from goalgraph.infrastructure.database.migrations import current_revision, stamp_head
from goalgraph.services.base import BaseService
from goalgraph.services.result import ServiceResult, failure
from goalgraph.services.telemetry import traced


class SetupService(BaseService):
    """Prepares a store for use."""

    @traced
    def init_store(self) -> ServiceResult:
        """Stamp the store at the Alembic head if it carries no revision yet.

        The tables themselves are created when the :class:`GraphStore`
        is opened. Running this twice is harmless.
        """
        op = "init_store"
        path = self._store.path
        try:
            revision = current_revision(path)
            stamped = revision is None
            if stamped:
                stamp_head(path)
                revision = current_revision(path)
        except (SQLAlchemyError, CommandError) as exc:
            return failure(op, "STORE_MUTATION_ERROR", f"Cannot stamp {path}: {exc}")

        return ServiceResult(
            ok=True,
            op=op,
            data={"path": str(path), "revision": revision, "stamped": stamped},
        )
