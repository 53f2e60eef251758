"""BaseService — foundation for goalgraph services.

Every service receives a :class:`GraphStore` at construction time and
owns its transaction boundaries via ``self._store.transaction()`` or
``self._store.snapshot()``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from goalgraph.services.result import ServiceResult, failure

if TYPE_CHECKING:
    from goalgraph.infrastructure.errors import StoreError
    from goalgraph.infrastructure.store import GraphStore

logger = logging.getLogger(__name__)


class BaseService:
    """Base for service-layer classes.

    Usage::

        class GoalService(BaseService):
            def insert_goal(self, goal: Goal, ...) -> ServiceResult:
                with self._store.transaction() as txn:
                    ...
    """

    def __init__(self, store: GraphStore) -> None:
        self._store = store

    @staticmethod
    def _store_failure(op: str, exc: StoreError, **detail: Any) -> ServiceResult:
        """Convert a store exception into a failed result (and log it)."""
        logger.warning("%s failed [%s]: %s", op, exc.code, exc)
        return failure(op, exc.code, str(exc), **detail)
