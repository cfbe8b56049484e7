# library_api/checkout_service.py
"""
Borrow and return transactions.

Both operations run on the caller's connection as a single transaction.
Availability is decided by a conditional ``UPDATE`` and its row count, so
the row lock taken by the store serializes concurrent borrowers of the
same book; nothing here locks in-process.
"""
import oracledb

from .db import rollback
from .errors import (
    AlreadyBorrowed, LibraryError, NotBorrowed, StoreError, Unavailable,
    ValidationError,
)
from .logger import api_logger
from .metrics import record_checkout


def parse_ids(user_id, book_id):
    """Validate the raw ``user_id``/``book_id`` values and return them as ints."""
    if user_id in (None, '') or book_id in (None, ''):
        raise ValidationError("User ID and Book ID are required")
    try:
        return int(user_id), int(book_id)
    except (TypeError, ValueError):
        raise ValidationError("User ID and Book ID must be integers") from None


def _exists(cursor, sql, params):
    cursor.execute(sql, params)
    return cursor.fetchone() is not None


def borrow_book(db, user_id, book_id):
    """Check out one copy of ``book_id`` to ``user_id``."""
    user_id, book_id = parse_ids(user_id, book_id)
    params = {'user_id': user_id, 'book_id': book_id}

    try:
        with db.cursor() as cursor:
            if not _exists(cursor, 'SELECT id FROM users WHERE id = :user_id',
                           {'user_id': user_id}):
                raise ValidationError("User not found")

            if _exists(cursor, 'SELECT user_id FROM checkouts '
                               'WHERE user_id = :user_id AND book_id = :book_id', params):
                raise AlreadyBorrowed()

            cursor.execute(
                'UPDATE books SET available_quantity = available_quantity - 1 '
                'WHERE id = :book_id AND available_quantity > 0',
                {'book_id': book_id}
            )
            if cursor.rowcount == 0:
                if not _exists(cursor, 'SELECT id FROM books WHERE id = :book_id',
                               {'book_id': book_id}):
                    raise ValidationError("Book not found")
                raise Unavailable()

            try:
                cursor.execute(
                    'INSERT INTO checkouts (user_id, book_id) VALUES (:user_id, :book_id)',
                    params
                )
            except oracledb.IntegrityError as e:
                # A concurrent borrow of the same pair committed first
                raise AlreadyBorrowed() from e
        db.commit()

    except LibraryError as e:
        rollback(db)
        record_checkout('borrow', type(e).__name__)
        raise
    except oracledb.Error as e:
        rollback(db)
        record_checkout('borrow', 'StoreError')
        raise StoreError("Error borrowing the book") from e

    record_checkout('borrow', 'success')
    api_logger.info(f"User {user_id} borrowed book {book_id}")
    return {"message": "Book borrowed successfully", "user_id": user_id, "book_id": book_id}


def return_book(db, user_id, book_id):
    """Give back ``user_id``'s copy of ``book_id``."""
    user_id, book_id = parse_ids(user_id, book_id)

    try:
        with db.cursor() as cursor:
            cursor.execute(
                'DELETE FROM checkouts WHERE user_id = :user_id AND book_id = :book_id',
                {'user_id': user_id, 'book_id': book_id}
            )
            if cursor.rowcount == 0:
                raise NotBorrowed()

            cursor.execute(
                'UPDATE books SET available_quantity = available_quantity + 1 '
                'WHERE id = :book_id AND available_quantity < quantity',
                {'book_id': book_id}
            )
            if cursor.rowcount == 0:
                raise StoreError(f"Book {book_id} has no outstanding copies to return")
        db.commit()

    except LibraryError as e:
        rollback(db)
        record_checkout('return', type(e).__name__)
        raise
    except oracledb.Error as e:
        rollback(db)
        record_checkout('return', 'StoreError')
        raise StoreError("Error returning the book") from e

    record_checkout('return', 'success')
    api_logger.info(f"User {user_id} returned book {book_id}")
    return {"message": "Book returned successfully", "user_id": user_id, "book_id": book_id}
