"""
engine.py

The lending engine: the only component that writes to the store and to the
in-memory catalog and directory.

Cache contract per operation:

    add_librarian / add_student   one insert, directory updated incrementally
    add_book                      one insert or copies update, catalog reloaded
    borrow_book / return_book     record + copies in one transaction,
                                  catalog and directory updated incrementally
                                  after the commit
    list_state                    no writes, catalog and directory reloaded
"""

from __future__ import annotations

import logging
import pathlib
from dataclasses import dataclass
from typing import Dict, Tuple, Union

import pandas as pd

from .catalog import Catalog
from .directory import Directory
from .exceptions import (
    BookNotAvailableError,
    InvalidBookError,
    InvalidUserError,
    PermissionDeniedError,
)
from .models import Book, Outcome, Role, User
from .store import SqliteStore

logger = logging.getLogger("LendingLibrary.engine")

Result = Tuple[Outcome, str]

BOOK_COLUMNS = ["Book ID", "Title", "Author", "Copies"]
USER_COLUMNS = ["User ID", "Name", "Role", "BorrowedCount", "BorrowedBooks"]


@dataclass(frozen=True)
class LibrarySnapshot:
    """
    Read-only copy of the library taken right after a full reload.

    Attributes:
        books (Tuple[Book, ...]): All books ordered by id.
        users (Tuple[User, ...]): All users ordered by id, students carrying
            their borrowed sets.
    """
    books: Tuple[Book, ...]
    users: Tuple[User, ...]

    def borrowed_by(self) -> Dict[int, Tuple[int, ...]]:
        """Map each student id to the sorted ids of the books they hold."""
        return {u.user_id: tuple(sorted(u.borrowed_books)) for u in self.users if u.can_borrow()}

    def books_frame(self) -> pd.DataFrame:
        rows = [{"Book ID": b.book_id, "Title": b.title, "Author": b.author, "Copies": b.copies}
                for b in self.books]
        return pd.DataFrame(rows, columns=BOOK_COLUMNS)

    def users_frame(self) -> pd.DataFrame:
        """
        One row per user with the borrowed books joined by commas. Librarians
        get a count of 0 and an empty list.
        """
        rows = []
        for u in self.users:
            borrowed = sorted(u.borrowed_books)
            rows.append({
                "User ID": u.user_id,
                "Name": u.name,
                "Role": u.role.value,
                "BorrowedCount": len(borrowed),
                "BorrowedBooks": ",".join(str(b) for b in borrowed),
            })
        return pd.DataFrame(rows, columns=USER_COLUMNS)

    def export_csv(self, directory: Union[str, pathlib.Path]) -> Tuple[pathlib.Path, pathlib.Path]:
        """
        Write ``books.csv`` and ``users.csv`` into ``directory`` (created if
        needed) and return both paths.
        """
        out_dir = pathlib.Path(directory)
        out_dir.mkdir(parents=True, exist_ok=True)
        books_csv = out_dir / "books.csv"
        users_csv = out_dir / "users.csv"
        self.books_frame().to_csv(books_csv, index=False)
        self.users_frame().to_csv(users_csv, index=False)
        logger.info("Exported %d books and %d users to %s", len(self.books), len(self.users), out_dir)
        return books_csv, users_csv


class LendingEngine:
    """
    Orchestrates add / borrow / return over the store, the catalog and the
    directory.

    Validation happens before any write. Fatal problems raise a
    ``LibraryError`` subclass; expected business refusals come back as an
    ``(Outcome, message)`` pair with nothing written.
    """

    def __init__(self, store: SqliteStore):
        self.store = store
        self.catalog = Catalog()
        self.directory = Directory()
        self.reload()

    # ---------------- Cache sync ----------------
    def reload_catalog(self) -> None:
        self.catalog.reload(self.store.scan_all("books").to_dict(orient="records"))

    def reload_directory(self) -> None:
        self.directory.reload(self.store.scan_all("users").to_dict(orient="records"),
                              self.store.scan_all("borrow_records").to_dict(orient="records"))

    def reload(self) -> None:
        self.reload_catalog()
        self.reload_directory()

    # ---------------- Users ----------------
    def add_librarian(self, user_id: int, name: str) -> Result:
        return self._add_user(user_id, name, Role.LIBRARIAN)

    def add_student(self, user_id: int, name: str) -> Result:
        return self._add_user(user_id, name, Role.STUDENT)

    def _add_user(self, user_id: int, name: str, role: Role) -> Result:
        name = (name or "").strip()
        if not name:
            raise ValueError("name cannot be empty")
        if self.store.count_where("users", id=user_id) > 0:
            logger.debug("Attempt to add existing user: %s", user_id)
            return Outcome.DUPLICATE_USER, f"User ID {user_id} already exists."

        self.store.create_user(user_id, name, role.value)
        self.directory.add_user(User(user_id=user_id, name=name, role=role))
        logger.info("Added %s %s", role.value.lower(), user_id)
        return Outcome.SUCCESS, f"{role.value} '{name}' added with ID {user_id}."

    # ---------------- Books ----------------
    def add_book(self, acting_user_id: int, book_id: int, title: str, author: str, copies: int) -> Result:
        """
        Add a new book, or more copies of a known one.

        The same id with the same title merges the copies; the same id with a
        different title is a conflict and nothing is written.

        Raises:
            PermissionDeniedError: acting user is unknown or not a librarian.
            ValueError: copies is negative.
        """
        actor = self.directory.find_user(acting_user_id)
        if actor is None or not self.directory.role_of(actor).can_manage_catalog:
            raise PermissionDeniedError(acting_user_id)
        if copies < 0:
            raise ValueError("copies cannot be negative")

        existing = self.store.get_book(book_id)
        if existing is None:
            self.store.create_book(book_id, title, author, copies)
            outcome = (Outcome.SUCCESS, f"New book '{title}' added with {copies} copies.")
        elif existing["title"] == title:
            self.store.update_book_copies(book_id, int(existing["copies"]) + copies)
            outcome = (Outcome.SUCCESS, f"Book '{title}' matched. Copies increased by {copies}.")
        else:
            logger.debug("Title conflict on book %s: %r vs %r", book_id, existing["title"], title)
            return (Outcome.TITLE_CONFLICT,
                    f"Conflict: book ID {book_id} is already assigned to '{existing['title']}'. "
                    f"Cannot add '{title}' with this ID.")

        self.reload_catalog()
        logger.info("Added %d copies of book %s by librarian %s", copies, book_id, acting_user_id)
        return outcome

    # ---------------- Lending ----------------
    def _resolve(self, user_id: int, book_id: int) -> Tuple[User, Book]:
        user = self.directory.find_user(user_id)
        if user is None:
            raise InvalidUserError(user_id)
        book = self.catalog.find_book(book_id)
        if book is None:
            raise InvalidBookError(book_id)
        return user, book

    def _is_borrowed(self, user_id: int, book_id: int) -> bool:
        return self.store.count_where("borrow_records", user_id=user_id, book_id=book_id) > 0

    def borrow_book(self, student_id: int, book_id: int) -> Result:
        """
        Lend one copy of a book to a student.

        Raises:
            InvalidUserError, InvalidBookError, BookNotAvailableError
        """
        user, book = self._resolve(student_id, book_id)
        if not self.catalog.is_available(book_id):
            raise BookNotAvailableError(book_id)
        if self._is_borrowed(student_id, book_id):
            logger.debug("Book %s already borrowed by %s", book_id, student_id)
            return Outcome.ALREADY_BORROWED, f"Student {student_id} already has '{book.title}'."
        if not user.can_borrow():
            logger.debug("Non-student %s tried to borrow %s", student_id, book_id)
            return Outcome.NOT_A_STUDENT, "Only students can borrow."

        with self.store.transaction():
            self.store.create_borrow_record(student_id, book_id)
            self.store.update_book_copies(book_id, book.copies - 1)

        self.directory.record_borrow(student_id, book_id)
        self.catalog.apply_delta(book_id, -1)
        logger.info("Borrowed %s to %s (%d left)", book_id, student_id, book.copies)
        return Outcome.SUCCESS, f"Borrowed: {book.title}"

    def return_book(self, student_id: int, book_id: int) -> Result:
        """
        Take a copy back from a student.

        Raises:
            InvalidUserError, InvalidBookError
        """
        user, book = self._resolve(student_id, book_id)
        if not self._is_borrowed(student_id, book_id):
            logger.debug("Book %s not held by %s", book_id, student_id)
            return Outcome.NOT_BORROWED, f"User {user.user_id} does not have '{book.title}'."

        with self.store.transaction():
            self.store.delete_borrow_record(student_id, book_id)
            self.store.update_book_copies(book_id, book.copies + 1)

        self.directory.record_return(student_id, book_id)
        self.catalog.apply_delta(book_id, 1)
        logger.info("Book %s returned by %s (%d on shelf)", book_id, student_id, book.copies)
        return Outcome.SUCCESS, f"Returned: {book.title}"

    # ---------------- Reports ----------------
    def list_state(self) -> LibrarySnapshot:
        """Reload everything from the store and return a snapshot of it."""
        self.reload()
        return LibrarySnapshot(books=tuple(b.copy() for b in self.catalog.books()),
                               users=tuple(u.copy() for u in self.directory.users()))
