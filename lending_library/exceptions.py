"""
exceptions.py

Errors raised by the lending library. Policy outcomes such as "already
borrowed" are not errors and are reported through ``models.Outcome``.
"""


class LibraryError(Exception):
    """Base exception for library errors."""


class InvalidUserError(LibraryError):
    """Requested user id does not exist."""

    def __init__(self, user_id):
        super().__init__(f"Invalid user: {user_id}")
        self.user_id = user_id


class InvalidBookError(LibraryError):
    """Requested book id does not exist."""

    def __init__(self, book_id):
        super().__init__(f"Invalid book: {book_id}")
        self.book_id = book_id


class BookNotAvailableError(LibraryError):
    """Book exists but has no copies left."""

    def __init__(self, book_id):
        super().__init__(f"Book not available: {book_id}")
        self.book_id = book_id


class PermissionDeniedError(LibraryError):
    """Acting user lacks librarian privilege."""

    def __init__(self, user_id):
        super().__init__(f"Permission denied for user: {user_id}")
        self.user_id = user_id


class StorageError(LibraryError):
    """The persistent store rejected a statement or is unavailable."""
