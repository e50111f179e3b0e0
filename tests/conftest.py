import pytest

from lending_library import LendingEngine, SqliteStore


@pytest.fixture
def store(tmp_path):
    """SQLite store in a temporary file, closed after the test."""
    with SqliteStore(tmp_path / "library.db") as s:
        yield s


@pytest.fixture
def engine(store):
    return LendingEngine(store)


@pytest.fixture
def lib(engine):
    """Engine with librarian 1, students 5 and 6, and book 100 (2 copies)."""
    engine.add_librarian(1, "Ramesh")
    engine.add_student(5, "Priya")
    engine.add_student(6, "Arjun")
    engine.add_book(1, 100, "Dune", "Herbert", 2)
    return engine
