import pytest

from lending_library import Catalog, InvalidBookError


@pytest.fixture
def catalog():
    c = Catalog()
    c.reload([
        {"id": 2, "title": "Foundation", "author": "Asimov", "copies": 0},
        {"id": 1, "title": "Dune", "author": "Herbert", "copies": 2},
    ])
    return c


def test_find_book(catalog):
    assert catalog.find_book(1).title == "Dune"
    assert catalog.find_book(3) is None
    assert [b.book_id for b in catalog.books()] == [1, 2]


def test_is_available(catalog):
    assert catalog.is_available(1)
    assert not catalog.is_available(2)
    assert not catalog.is_available(3)


def test_apply_delta(catalog):
    catalog.apply_delta(1, -2)
    assert catalog.find_book(1).copies == 0
    catalog.apply_delta(2, 3)
    assert catalog.find_book(2).copies == 3


def test_apply_delta_guards(catalog):
    with pytest.raises(ValueError):
        catalog.apply_delta(2, -1)
    assert catalog.find_book(2).copies == 0
    with pytest.raises(InvalidBookError):
        catalog.apply_delta(9, 1)


def test_reload_replaces_everything(catalog):
    catalog.reload([{"id": 7, "title": "Emma", "author": "Austen", "copies": 1}])
    assert len(catalog) == 1
    assert 1 not in catalog
    assert 7 in catalog
