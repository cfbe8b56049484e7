# library_api/users.py
import oracledb
from flask import Blueprint
from .db import get_db, rollback
from .errors import StoreError, ValidationError
from .helper import create_response, rows_to_dicts, request_fields, log_request

bp = Blueprint('users', __name__)


@bp.route('', methods=['GET'])
@log_request
def get_all_users():
    """Fetches all users."""
    db = get_db()
    try:
        with db.cursor() as cursor:
            cursor.execute('SELECT id AS user_id, first_name, last_name FROM users ORDER BY id')
            users = rows_to_dicts(cursor)
    except oracledb.Error as e:
        raise StoreError("Error fetching users") from e

    return create_response(users, 200)


@bp.route('/add', methods=['POST'])
@log_request
def add_user():
    """Adds a new user."""
    first_name, last_name = request_fields('first_name', 'last_name')
    if not first_name or not last_name:
        raise ValidationError("First name and last name are required")

    db = get_db()
    try:
        with db.cursor() as cursor:
            cursor.execute(
                'INSERT INTO users (first_name, last_name) VALUES (:first_name, :last_name)',
                {'first_name': first_name, 'last_name': last_name}
            )
        db.commit()
    except oracledb.Error as e:
        rollback(db)
        raise StoreError("Error adding user to the database") from e

    return create_response({"first_name": first_name, "last_name": last_name}, 201)
