"""Persistent storage layer.

SQLite-backed object stores exposing the capability the vector database
needs: open with a one-time schema hook, transactions, put/delete/clear and a
forward cursor.
"""

from .db import store_name
from .store import Cursor, Database, ObjectStore, Transaction, open_database

__all__ = ["Cursor", "Database", "ObjectStore", "Transaction", "open_database", "store_name"]
