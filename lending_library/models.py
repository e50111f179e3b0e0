"""
models.py

Domain records shared by the catalog, the directory and the lending engine.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import Set


class Role(enum.Enum):
    """
    The two kinds of library user. Values are the role text stored in the
    ``users`` table.
    """

    LIBRARIAN = "Librarian"
    STUDENT = "Student"

    @property
    def can_borrow(self) -> bool:
        return self is Role.STUDENT

    @property
    def can_manage_catalog(self) -> bool:
        return self is Role.LIBRARIAN


class Outcome(enum.Enum):
    """
    Expected results of a state-changing operation. Anything other than
    SUCCESS means nothing was written.
    """

    SUCCESS = "success"
    ALREADY_BORROWED = "already borrowed"
    NOT_BORROWED = "does not have this book"
    TITLE_CONFLICT = "title conflict"
    DUPLICATE_USER = "duplicate user id"
    NOT_A_STUDENT = "only students can borrow"

    @property
    def ok(self) -> bool:
        return self is Outcome.SUCCESS


@dataclass
class Book:
    """
    A catalog entry.

    Attributes:
        book_id (int): Unique, stable identifier.
        title (str): Book title; together with the id it forms the catalog key.
        author (str): Author name.
        copies (int): Copies currently on the shelf, never negative.
    """
    book_id: int
    title: str
    author: str
    copies: int = 0

    def is_available(self) -> bool:
        return self.copies > 0

    def copy(self) -> "Book":
        return replace(self)


@dataclass
class User:
    """
    A librarian or a student.

    Attributes:
        user_id (int): Unique, stable identifier.
        name (str): Display name.
        role (Role): Fixed at creation.
        borrowed_books (Set[int]): Ids of books currently held; stays empty
            for users whose role cannot borrow.
    """
    user_id: int
    name: str
    role: Role
    borrowed_books: Set[int] = field(default_factory=set)

    def can_borrow(self) -> bool:
        return self.role.can_borrow

    def copy(self) -> "User":
        return replace(self, borrowed_books=set(self.borrowed_books))
