"""
lending_library

Book inventory and student lending for a small library, persisted in SQLite.
"""

from .catalog import Catalog
from .directory import Directory
from .engine import LendingEngine, LibrarySnapshot
from .exceptions import (
    BookNotAvailableError,
    InvalidBookError,
    InvalidUserError,
    LibraryError,
    PermissionDeniedError,
    StorageError,
)
from .models import Book, Outcome, Role, User
from .store import SqliteStore

__all__ = [
    "Book",
    "BookNotAvailableError",
    "Catalog",
    "Directory",
    "InvalidBookError",
    "InvalidUserError",
    "LendingEngine",
    "LibraryError",
    "LibrarySnapshot",
    "Outcome",
    "PermissionDeniedError",
    "Role",
    "SqliteStore",
    "StorageError",
    "User",
]
