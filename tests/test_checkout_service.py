import pytest

from library_api import checkout_service
from library_api.errors import (
    AlreadyBorrowed, NotBorrowed, StoreError, Unavailable, ValidationError,
)


@pytest.fixture
def conn(pool):
    conn = pool.acquire()
    yield conn
    conn.close()


def test_borrow_decrements_and_records_checkout(pool, conn):
    user_id = pool.add_user()
    book_id = pool.add_book(quantity=2)

    result = checkout_service.borrow_book(conn, user_id, book_id)

    assert result == {"message": "Book borrowed successfully", "user_id": user_id, "book_id": book_id}
    assert pool.available(book_id) == 1
    assert pool.checkouts() == [(user_id, book_id)]


def test_borrow_accepts_string_ids(pool, conn):
    user_id = pool.add_user()
    book_id = pool.add_book()

    result = checkout_service.borrow_book(conn, str(user_id), f" {book_id}")

    assert result["user_id"] == user_id
    assert result["book_id"] == book_id


def test_borrow_then_return_restores_quantity(pool, conn):
    user_id = pool.add_user()
    book_id = pool.add_book(quantity=3)

    checkout_service.borrow_book(conn, user_id, book_id)
    result = checkout_service.return_book(conn, user_id, book_id)

    assert result["message"] == "Book returned successfully"
    assert pool.available(book_id) == 3
    assert pool.checkouts() == []


def test_second_borrow_of_same_pair_is_rejected(pool, conn):
    user_id = pool.add_user()
    book_id = pool.add_book(quantity=2)
    checkout_service.borrow_book(conn, user_id, book_id)

    with pytest.raises(AlreadyBorrowed):
        checkout_service.borrow_book(conn, user_id, book_id)

    assert pool.available(book_id) == 1
    assert pool.checkouts() == [(user_id, book_id)]


def test_already_borrowed_is_checked_before_availability(pool, conn):
    user_id = pool.add_user()
    book_id = pool.add_book(quantity=1)
    checkout_service.borrow_book(conn, user_id, book_id)

    # The last copy is with this user, so the duplicate guard wins
    with pytest.raises(AlreadyBorrowed):
        checkout_service.borrow_book(conn, user_id, book_id)


def test_borrow_unavailable_leaves_quantity_unchanged(pool, conn):
    user_id = pool.add_user()
    book_id = pool.add_book(quantity=1, available=0)

    with pytest.raises(Unavailable):
        checkout_service.borrow_book(conn, user_id, book_id)

    assert pool.available(book_id) == 0
    assert pool.checkouts() == []


def test_return_without_borrow_is_rejected(pool, conn):
    user_id = pool.add_user()
    book_id = pool.add_book(quantity=2, available=2)

    with pytest.raises(NotBorrowed):
        checkout_service.return_book(conn, user_id, book_id)

    assert pool.available(book_id) == 2


def test_unknown_user_and_book(pool, conn):
    user_id = pool.add_user()
    book_id = pool.add_book()

    with pytest.raises(ValidationError, match="User not found"):
        checkout_service.borrow_book(conn, 999, book_id)
    with pytest.raises(ValidationError, match="Book not found"):
        checkout_service.borrow_book(conn, user_id, 999)

    assert pool.checkouts() == []


@pytest.mark.parametrize("user_id, book_id", [
    ("", "1"),
    ("1", ""),
    (None, "1"),
    ("abc", "1"),
    ("1", "1.5"),
])
def test_parse_ids_rejects_missing_or_malformed(user_id, book_id):
    with pytest.raises(ValidationError):
        checkout_service.parse_ids(user_id, book_id)


def test_return_with_inconsistent_quantity_rolls_back(pool, conn):
    user_id = pool.add_user()
    book_id = pool.add_book(quantity=1, available=1)
    # A checkout row that was never counted against the book
    pool.execute("INSERT INTO checkouts (user_id, book_id) VALUES (?, ?)", (user_id, book_id))

    with pytest.raises(StoreError):
        checkout_service.return_book(conn, user_id, book_id)

    assert pool.checkouts() == [(user_id, book_id)]
    assert pool.available(book_id) == 1


def test_quantity_invariant_holds_through_a_sequence(pool, conn):
    users = [pool.add_user(first_name=f"U{i}") for i in range(4)]
    book_id = pool.add_book(quantity=2)

    outcomes = []
    for user_id in users:
        try:
            checkout_service.borrow_book(conn, user_id, book_id)
            outcomes.append("ok")
        except Unavailable:
            outcomes.append("unavailable")
        available = pool.available(book_id)
        assert 0 <= available <= 2

    assert outcomes == ["ok", "ok", "unavailable", "unavailable"]
    assert pool.available(book_id) == 0
    assert len(pool.checkouts()) == 2


def test_duplicate_insert_from_concurrent_borrow_is_already_borrowed(pool, conn, monkeypatch):
    user_id = pool.add_user()
    book_id = pool.add_book(quantity=3)
    checkout_service.borrow_book(conn, user_id, book_id)

    exists = checkout_service._exists

    def miss_checkout_lookup(cursor, sql, params):
        # Another transaction inserted the pair after this lookup ran
        if "FROM checkouts" in sql:
            return False
        return exists(cursor, sql, params)

    monkeypatch.setattr(checkout_service, "_exists", miss_checkout_lookup)

    with pytest.raises(AlreadyBorrowed):
        checkout_service.borrow_book(conn, user_id, book_id)

    assert pool.available(book_id) == 2
    assert pool.checkouts() == [(user_id, book_id)]
