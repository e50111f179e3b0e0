"""
store.py

SQLite-backed persistent store for users, books and borrow records.

The store is the durable source of truth; the catalog and the directory are
caches rebuilt from ``scan_all``. Every statement is parameterized. Writes
issued outside ``transaction()`` commit on their own; writes issued inside it
commit or roll back together.
"""

from __future__ import annotations

import contextlib
import logging
import pathlib
import sqlite3
from typing import Any, Dict, Iterator, Optional, Union

import pandas as pd

from .exceptions import StorageError

logger = logging.getLogger("LendingLibrary.store")

# table -> (columns, ORDER BY clause used for scans)
SCHEMA: Dict[str, tuple] = {
    "users": (("id", "name", "role"), "id"),
    "books": (("id", "title", "author", "copies"), "id"),
    "borrow_records": (("user_id", "book_id"), "user_id, book_id"),
}

_DDL = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    role TEXT NOT NULL CHECK (role IN ('Librarian', 'Student'))
);

CREATE TABLE IF NOT EXISTS books (
    id INTEGER PRIMARY KEY,
    title TEXT NOT NULL,
    author TEXT NOT NULL,
    copies INTEGER NOT NULL CHECK (copies >= 0)
);

CREATE TABLE IF NOT EXISTS borrow_records (
    user_id INTEGER NOT NULL,
    book_id INTEGER NOT NULL,
    PRIMARY KEY (user_id, book_id)
);
"""


class SqliteStore:
    """
    Durable record storage owned by a single session.

    Use it as a context manager so the connection is released on every exit
    path::

        with SqliteStore(path) as store:
            engine = LendingEngine(store)
    """

    def __init__(self, db_path: Union[str, pathlib.Path] = ":memory:"):
        self.db_path = str(db_path)
        self._in_transaction = False
        self._conn: Optional[sqlite3.Connection] = None
        try:
            self._conn = sqlite3.connect(self.db_path)
            self._conn.executescript(_DDL)
        except sqlite3.Error as exc:
            self.close()
            raise StorageError(f"Can't open database {self.db_path}: {exc}") from exc
        logger.info("Opened store %s", self.db_path)

    # ---------------- Lifecycle ----------------
    def __enter__(self) -> "SqliteStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        if self._conn is None:
            return
        self._conn.close()
        self._conn = None
        logger.info("Closed store %s", self.db_path)

    @property
    def closed(self) -> bool:
        return self._conn is None

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StorageError("Store is closed")
        return self._conn

    @contextlib.contextmanager
    def transaction(self) -> Iterator["SqliteStore"]:
        """
        Group writes so they commit together or not at all.

        A nested call joins the enclosing transaction.
        """
        conn = self._connection()
        if self._in_transaction:
            yield self
            return
        self._in_transaction = True
        try:
            with conn:
                yield self
        except sqlite3.Error as exc:
            logger.error("Transaction rolled back: %s", exc)
            raise StorageError(f"SQL error: {exc}") from exc
        except Exception:
            logger.error("Transaction rolled back")
            raise
        finally:
            self._in_transaction = False

    def _execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        try:
            return self._connection().execute(sql, params)
        except sqlite3.Error as exc:
            raise StorageError(f"SQL error: {exc}") from exc
        except OverflowError as exc:
            # integers beyond SQLite's signed 64-bit range
            raise StorageError(f"Value out of range: {exc}") from exc

    @staticmethod
    def _check_table(table: str) -> tuple:
        if table not in SCHEMA:
            raise StorageError(f"Unknown table: {table}")
        return SCHEMA[table]

    # ---------------- Writes ----------------
    def create_user(self, user_id: int, name: str, role: str) -> None:
        with self.transaction():
            self._execute("INSERT INTO users (id, name, role) VALUES (?, ?, ?)",
                          (user_id, name, role))
        logger.debug("Inserted user %s (%s)", user_id, role)

    def create_book(self, book_id: int, title: str, author: str, copies: int) -> None:
        with self.transaction():
            self._execute("INSERT INTO books (id, title, author, copies) VALUES (?, ?, ?, ?)",
                          (book_id, title, author, copies))
        logger.debug("Inserted book %s", book_id)

    def update_book_copies(self, book_id: int, new_count: int) -> None:
        with self.transaction():
            cur = self._execute("UPDATE books SET copies = ? WHERE id = ?", (new_count, book_id))
            if cur.rowcount == 0:
                raise StorageError(f"No book row to update: {book_id}")
        logger.debug("Set copies of book %s to %s", book_id, new_count)

    def create_borrow_record(self, user_id: int, book_id: int) -> None:
        with self.transaction():
            self._execute("INSERT INTO borrow_records (user_id, book_id) VALUES (?, ?)",
                          (user_id, book_id))
        logger.debug("Inserted borrow record (%s, %s)", user_id, book_id)

    def delete_borrow_record(self, user_id: int, book_id: int) -> None:
        with self.transaction():
            cur = self._execute("DELETE FROM borrow_records WHERE user_id = ? AND book_id = ?",
                                (user_id, book_id))
            if cur.rowcount == 0:
                raise StorageError(f"No borrow record to delete: ({user_id}, {book_id})")
        logger.debug("Deleted borrow record (%s, %s)", user_id, book_id)

    # ---------------- Reads ----------------
    def count_where(self, table: str, **criteria: Any) -> int:
        """
        Count rows of ``table`` whose columns equal the given values.

        Used for existence checks, e.g. ``count_where("users", id=5)`` or
        ``count_where("borrow_records", user_id=5, book_id=100)``.
        """
        columns, _ = self._check_table(table)
        unknown = set(criteria) - set(columns)
        if unknown:
            raise StorageError(f"Unknown column(s) for {table}: {sorted(unknown)}")
        sql = f"SELECT COUNT(*) FROM {table}"
        if criteria:
            sql += " WHERE " + " AND ".join(f"{col} = ?" for col in criteria)
        return int(self._execute(sql, tuple(criteria.values())).fetchone()[0])

    def get_book(self, book_id: int) -> Optional[Dict[str, Any]]:
        row = self._execute("SELECT id, title, author, copies FROM books WHERE id = ?",
                            (book_id,)).fetchone()
        if row is None:
            return None
        return dict(zip(SCHEMA["books"][0], row))

    def scan_all(self, table: str) -> pd.DataFrame:
        """
        Return every row of ``table`` as a DataFrame ordered by its key.

        An empty table yields an empty frame that still carries the columns.
        """
        columns, order = self._check_table(table)
        sql = f"SELECT {', '.join(columns)} FROM {table} ORDER BY {order}"
        try:
            df = pd.read_sql_query(sql, self._connection())
        except (sqlite3.Error, pd.errors.DatabaseError) as exc:
            raise StorageError(f"Query error on {table}: {exc}") from exc
        logger.debug("Scanned %d rows from %s", len(df), table)
        return df
