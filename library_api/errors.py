# library_api/errors.py
"""Error types raised by the library API and their HTTP mapping."""
import oracledb
from werkzeug.exceptions import MethodNotAllowed

from .helper import create_response
from .logger import api_logger
from .metrics import record_error


class LibraryError(Exception):
    """Base class; ``status_code`` and ``message`` drive the HTTP response."""

    status_code = 500
    message = "Internal server error"

    def __init__(self, message=None):
        super().__init__(message or self.message)
        self.message = message or self.message


class ValidationError(LibraryError):
    """Missing or malformed input."""
    status_code = 400
    message = "Invalid request"


class ConflictError(LibraryError):
    """The request conflicts with the current checkout state."""
    status_code = 400
    message = "Request conflicts with current state"


class AlreadyBorrowed(ConflictError):
    message = "You can only borrow one copy of the book"


class Unavailable(ConflictError):
    message = "Book is currently not available"


class NotBorrowed(ConflictError):
    message = "You do not have this book borrowed"


class StoreError(LibraryError):
    """A query against the store failed."""
    status_code = 500
    message = "Database error"


class StoreUnavailable(StoreError):
    """No connection could be obtained from the pool."""
    message = "Unable to connect to database"


def register_error_handlers(app):
    """Map library exceptions and method mismatches to JSON responses."""

    @app.errorhandler(LibraryError)
    def handle_library_error(error):
        if error.status_code >= 500:
            api_logger.error(f"{type(error).__name__}: {error.message}", exc_info=error.__cause__)
        else:
            api_logger.info(f"{type(error).__name__}: {error.message}")
        record_error(type(error).__name__)
        return create_response({"error": error.message}, error.status_code)

    @app.errorhandler(MethodNotAllowed)
    def handle_method_not_allowed(error):
        record_error('MethodNotAllowed')
        headers = {'Allow': ', '.join(error.valid_methods)} if error.valid_methods else None
        return create_response({"error": "Invalid request method"}, 405, headers)

    @app.errorhandler(oracledb.Error)
    def handle_database_error(error):
        # Driver errors that escaped a view without being wrapped
        api_logger.error(f"Unhandled database error: {error}", exc_info=error)
        record_error('StoreError')
        return create_response({"error": StoreError.message}, 500)
