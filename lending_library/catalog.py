"""
catalog.py

In-memory mirror of the book inventory.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .exceptions import InvalidBookError
from .models import Book

logger = logging.getLogger("LendingLibrary.catalog")


class Catalog:
    """
    Holds books keyed by id, answers availability queries and applies
    copy-count deltas. It never talks to the store; the lending engine feeds
    it rows through ``reload`` and keeps it in step with ``apply_delta``.
    """

    def __init__(self) -> None:
        self._books: Dict[int, Book] = {}

    def __len__(self) -> int:
        return len(self._books)

    def __contains__(self, book_id: object) -> bool:
        return book_id in self._books

    def find_book(self, book_id: int) -> Optional[Book]:
        return self._books.get(book_id)

    def is_available(self, book_id: int) -> bool:
        book = self._books.get(book_id)
        return book is not None and book.is_available()

    def apply_delta(self, book_id: int, delta: int) -> Book:
        """
        Adjust the cached copy count of a book by ``delta``.

        The caller is expected to have checked that the result stays
        non-negative; the guard here only catches programming errors.

        Raises:
            InvalidBookError: book id is not in the catalog.
            ValueError: the delta would take the count below zero.
        """
        book = self._books.get(book_id)
        if book is None:
            raise InvalidBookError(book_id)
        if book.copies + delta < 0:
            raise ValueError(f"copies of book {book_id} would become {book.copies + delta}")
        book.copies += delta
        return book

    def reload(self, records: Iterable[Mapping[str, Any]]) -> None:
        """
        Replace every cached book with the supplied rows.

        Each row needs ``id``, ``title``, ``author`` and ``copies``.
        """
        books: Dict[int, Book] = {}
        for rec in records:
            book_id = int(rec["id"])
            books[book_id] = Book(book_id=book_id, title=str(rec["title"]),
                                  author=str(rec["author"]), copies=int(rec["copies"]))
        self._books = books
        logger.info("Loaded %d books", len(books))

    def books(self) -> List[Book]:
        return [self._books[k] for k in sorted(self._books)]
