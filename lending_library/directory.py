"""
directory.py

In-memory mirror of library users and of each student's borrowed books.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .exceptions import StorageError
from .models import Role, User

logger = logging.getLogger("LendingLibrary.directory")


class Directory:
    """
    Holds users keyed by id. Borrowed-book sets live on the student records
    and are only touched through ``record_borrow`` / ``record_return`` or a
    full ``reload``.
    """

    def __init__(self) -> None:
        self._users: Dict[int, User] = {}

    def __len__(self) -> int:
        return len(self._users)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._users

    def find_user(self, user_id: int) -> Optional[User]:
        return self._users.get(user_id)

    @staticmethod
    def role_of(user: User) -> Role:
        return user.role

    def add_user(self, user: User) -> None:
        if user.user_id in self._users:
            raise ValueError(f"user {user.user_id} already cached")
        self._users[user.user_id] = user

    def record_borrow(self, student_id: int, book_id: int) -> None:
        user = self._users.get(student_id)
        if user is None or not user.can_borrow():
            raise ValueError(f"user {student_id} is not a student")
        user.borrowed_books.add(book_id)

    def record_return(self, student_id: int, book_id: int) -> bool:
        """
        Drop ``book_id`` from the student's borrowed set.

        Returns False, leaving everything untouched, when the student is
        unknown or does not hold the book.
        """
        user = self._users.get(student_id)
        if user is None or book_id not in user.borrowed_books:
            return False
        user.borrowed_books.discard(book_id)
        return True

    def reload(self, user_records: Iterable[Mapping[str, Any]],
               borrow_records: Iterable[Mapping[str, Any]]) -> None:
        """
        Rebuild every user from ``(id, name, role)`` rows and reattach borrowed
        sets from ``(user_id, book_id)`` rows.

        Borrow rows that point at an unknown user or at a librarian are
        skipped and logged, they cannot be represented in the cache.
        """
        users: Dict[int, User] = {}
        for rec in user_records:
            try:
                role = Role(str(rec["role"]))
            except ValueError as exc:
                raise StorageError(f"Unknown role {rec['role']!r} for user {rec['id']}") from exc
            user_id = int(rec["id"])
            users[user_id] = User(user_id=user_id, name=str(rec["name"]), role=role)

        for rec in borrow_records:
            user_id, book_id = int(rec["user_id"]), int(rec["book_id"])
            user = users.get(user_id)
            if user is None or not user.can_borrow():
                logger.warning("Skipping borrow record (%s, %s): not a student", user_id, book_id)
                continue
            user.borrowed_books.add(book_id)

        self._users = users
        logger.info("Loaded %d users", len(users))

    def users(self) -> List[User]:
        return [self._users[k] for k in sorted(self._users)]
