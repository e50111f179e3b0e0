"""
cli.py

Interactive text menu over the lending engine.
"""

from __future__ import annotations

import argparse
import logging
from typing import List, Optional

from . import config
from .engine import LendingEngine, LibrarySnapshot
from .exceptions import LibraryError
from .store import SqliteStore

logger = logging.getLogger("LendingLibrary.cli")

DEFAULT_EXPORT_DIR = "exports"


class _Exit(Exception):
    """Raised by prompts when input ends (EOF / Ctrl-C)."""


def input_prompt(prompt: str) -> str:
    """
    Wrapper around built-in input() that returns a stripped string.

    EOF and KeyboardInterrupt end the session.
    """
    try:
        return input(prompt).strip()
    except (EOFError, KeyboardInterrupt):
        print()
        raise _Exit()


def input_int(prompt: str) -> int:
    """Prompt until the answer parses as an integer."""
    while True:
        raw = input_prompt(prompt)
        try:
            return int(raw)
        except ValueError:
            print(f"Not a number: {raw!r}")


def print_menu() -> None:
    print("\n--- Library Lending (CLI) ---")
    print("1. Add Librarian")
    print("2. Add Student")
    print("3. Add Book (as Librarian)")
    print("4. Borrow Book")
    print("5. Return Book")
    print("6. Display All")
    print("7. Exit")
    print("8. Export state to CSV")


def print_snapshot(snapshot: LibrarySnapshot) -> None:
    print("\n=== CURRENT LIBRARY STATE (From DB) ===")
    print("--- Books ---")
    if not snapshot.books:
        print("No books in library.")
    for b in snapshot.books:
        print(f"ID: {b.book_id} | Title: {b.title} | Author: {b.author} | Copies: {b.copies}")

    print("\n--- Users ---")
    if not snapshot.users:
        print("No registered users.")
    for u in snapshot.users:
        print(f"[{u.role.value}] ID: {u.user_id} | Name: {u.name}")
        if u.can_borrow():
            borrowed = " ".join(str(b) for b in sorted(u.borrowed_books)) or "None"
            print(f"   Borrowed Book IDs: {borrowed}")
    print("=============================\n")


def run_choice(engine: LendingEngine, choice: str) -> bool:
    """
    Run one menu choice. Returns False when the user asked to exit.
    """
    if choice == "1":
        uid = input_int("Enter ID: ")
        name = input_prompt("Enter Name: ")
        _, msg = engine.add_librarian(uid, name)
        print(msg)
    elif choice == "2":
        uid = input_int("Enter ID: ")
        name = input_prompt("Enter Name: ")
        _, msg = engine.add_student(uid, name)
        print(msg)
    elif choice == "3":
        uid = input_int("Librarian ID: ")
        bid = input_int("Book ID: ")
        copies = input_int("Copies: ")
        title = input_prompt("Title: ")
        author = input_prompt("Author: ")
        _, msg = engine.add_book(uid, bid, title, author, copies)
        print(msg)
    elif choice == "4":
        uid = input_int("Student ID: ")
        bid = input_int("Book ID: ")
        _, msg = engine.borrow_book(uid, bid)
        print(msg)
    elif choice == "5":
        uid = input_int("Student ID: ")
        bid = input_int("Book ID: ")
        _, msg = engine.return_book(uid, bid)
        print(msg)
    elif choice == "6":
        print_snapshot(engine.list_state())
    elif choice == "7":
        return False
    elif choice == "8":
        target = input_prompt(f"Export directory (default {DEFAULT_EXPORT_DIR}): ") or DEFAULT_EXPORT_DIR
        books_csv, users_csv = engine.list_state().export_csv(target)
        print(f"Saved {books_csv} and {users_csv}")
    else:
        print("Unknown choice. Try again.")
    return True


def cli_loop(engine: LendingEngine) -> None:
    """
    Interactive command loop. Library errors and bad arguments are printed
    and the loop keeps going.
    """
    try:
        while True:
            print_menu()
            choice = input_prompt("Choice: ")
            try:
                if not run_choice(engine, choice):
                    break
            except (LibraryError, ValueError) as e:
                logger.debug("Operation failed: %s", e)
                print(f"Error: {e}")
    except _Exit:
        pass
    print("Goodbye.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Library lending: books, librarians, students and loans")
    parser.add_argument("--db", default=None,
                        help=f"SQLite file (default ${config.DB_ENV_VAR} or ./{config.DEFAULT_DATA_DIR}/{config.DEFAULT_DB_FILE})")
    parser.add_argument("--log-level", default=config.DEFAULT_LOG_LEVEL,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Logging level")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format=config.LOG_FORMAT)

    db_path = config.resolve_db_path(args.db)
    try:
        with SqliteStore(db_path) as store:
            cli_loop(LendingEngine(store))
    except LibraryError as e:
        logger.error("Fatal library error: %s", e)
        return 1
    return 0
