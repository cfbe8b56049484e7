# library_api/books.py
import oracledb
from flask import Blueprint
from .db import get_db
from .errors import StoreError
from .helper import create_response, rows_to_dicts, log_request

bp = Blueprint('books', __name__)


@bp.route('', methods=['GET'])
@log_request
def get_all_books():
    """Lists every book with its total and available copies."""
    db = get_db()
    try:
        with db.cursor() as cursor:
            cursor.execute(
                'SELECT id, title, author, quantity, available_quantity FROM books ORDER BY id'
            )
            books = rows_to_dicts(cursor)
    except oracledb.Error as e:
        raise StoreError("Error fetching books") from e

    return create_response(books, 200)
