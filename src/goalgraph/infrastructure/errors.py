"""Graph store error taxonomy.

Every failure crossing the store boundary is one of these. Services map
them onto :class:`~goalgraph.services.result.ServiceError` codes via
:attr:`StoreError.code`; nothing in the library terminates the process.
"""

from __future__ import annotations


class StoreError(Exception):
    """Base class for graph store failures."""

    code = "STORE_ERROR"


class StoreConnectionError(StoreError):
    """The store could not be opened or the connection failed."""

    code = "STORE_CONNECTION_ERROR"


class StoreQueryError(StoreError):
    """A read failed. No partial result is ever returned."""

    code = "STORE_QUERY_ERROR"


class StoreMutationError(StoreError):
    """A create, edge or commit step failed. The transaction is discarded."""

    code = "STORE_MUTATION_ERROR"


class StoreTimeoutError(StoreError):
    """The caller-supplied deadline expired. The transaction is discarded."""

    code = "STORE_TIMEOUT"
