"""Exceptions raised by the vector store.

Engine failures are translated at the storage boundary and always chain the
original ``sqlite3.Error`` as ``__cause__``.
"""


class VectorDBError(Exception):
    """Base class for every vecdb failure."""


class OpenError(VectorDBError):
    """The database file or the collection table could not be opened."""


class TransactionError(VectorDBError):
    """A write, delete or clear was rejected; nothing from that call was applied."""


class CursorError(VectorDBError):
    """A collection scan failed while reading rows."""


__all__ = ["VectorDBError", "OpenError", "TransactionError", "CursorError"]
