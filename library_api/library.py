# library_api/library.py
import oracledb
from flask import Blueprint
from . import checkout_service
from .db import get_db
from .errors import StoreError
from .helper import create_response, rows_to_dicts, request_fields, log_request

bp = Blueprint('library', __name__)


@bp.route('/books/borrow', methods=['POST'])
@log_request
def borrow_book():
    """Borrows a book, decrementing its available quantity."""
    user_id, book_id = checkout_service.parse_ids(*request_fields('user_id', 'book_id'))
    result = checkout_service.borrow_book(get_db(), user_id, book_id)
    return create_response(result, 201)


@bp.route('/books/return', methods=['POST'])
@log_request
def return_book():
    """Returns a book, incrementing its available quantity."""
    user_id, book_id = checkout_service.parse_ids(*request_fields('user_id', 'book_id'))
    result = checkout_service.return_book(get_db(), user_id, book_id)
    return create_response(result, 200)


@bp.route('/checkouts', methods=['GET'])
@log_request
def get_checkouts():
    """Lists active checkouts joined with user and book names."""
    query = """
        SELECT
            u.id AS user_id, u.first_name AS user_first_name, u.last_name AS user_last_name,
            b.id AS book_id, b.title AS book_title
        FROM checkouts c
        JOIN users u ON c.user_id = u.id
        JOIN books b ON c.book_id = b.id
        ORDER BY u.id, b.id
    """
    db = get_db()
    try:
        with db.cursor() as cursor:
            cursor.execute(query)
            records = rows_to_dicts(cursor)
    except oracledb.Error as e:
        raise StoreError("Error fetching checkouts") from e

    return create_response(records, 200)
