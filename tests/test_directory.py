import pytest

from lending_library import Directory, Role, StorageError, User


@pytest.fixture
def directory():
    d = Directory()
    d.reload(
        [{"id": 1, "name": "Ramesh", "role": "Librarian"},
         {"id": 5, "name": "Priya", "role": "Student"}],
        [{"user_id": 5, "book_id": 100}, {"user_id": 5, "book_id": 101}],
    )
    return d


def test_reload_attaches_borrowed_sets(directory):
    assert directory.find_user(5).borrowed_books == {100, 101}
    assert directory.find_user(1).borrowed_books == set()
    assert [u.user_id for u in directory.users()] == [1, 5]


def test_role_of(directory):
    assert directory.role_of(directory.find_user(1)) is Role.LIBRARIAN
    assert directory.role_of(directory.find_user(5)) is Role.STUDENT
    assert directory.find_user(5).can_borrow()
    assert not directory.find_user(1).can_borrow()


def test_reload_skips_rows_that_cannot_be_attached():
    d = Directory()
    d.reload([{"id": 1, "name": "Ramesh", "role": "Librarian"}],
             [{"user_id": 1, "book_id": 100}, {"user_id": 9, "book_id": 100}])
    assert d.find_user(1).borrowed_books == set()
    assert d.find_user(9) is None


def test_reload_unknown_role():
    with pytest.raises(StorageError):
        Directory().reload([{"id": 1, "name": "X", "role": "Janitor"}], [])


def test_record_borrow_and_return(directory):
    directory.record_borrow(5, 102)
    directory.record_borrow(5, 102)
    assert directory.find_user(5).borrowed_books == {100, 101, 102}
    assert directory.record_return(5, 100) is True
    assert directory.record_return(5, 100) is False
    assert directory.record_return(42, 100) is False
    assert directory.find_user(5).borrowed_books == {101, 102}


def test_record_borrow_requires_student(directory):
    with pytest.raises(ValueError):
        directory.record_borrow(1, 100)
    with pytest.raises(ValueError):
        directory.record_borrow(42, 100)


def test_add_user(directory):
    directory.add_user(User(user_id=6, name="Arjun", role=Role.STUDENT))
    assert 6 in directory
    with pytest.raises(ValueError):
        directory.add_user(User(user_id=6, name="Again", role=Role.STUDENT))
