from flask import jsonify, request
from .logger import api_logger
import functools

# --- Helper Function for JSON Responses ---
def create_response(data, status_code, headers=None):
    """Creates a Flask JSON response."""
    response = jsonify(data)
    response.status_code = status_code
    if headers:
        for key, value in headers.items():
            response.headers[key] = value
    return response

# --- Helper to convert DB-API rows to Dictionaries ---
def rows_to_dicts(cursor):
    """Converts cursor results to a list of dictionaries."""
    # Oracle reports upper-case column names; JSON keys are lower-case
    columns = [col[0].lower() for col in cursor.description]
    return [dict(zip(columns, row)) for row in cursor]

# --- Request body parsing ---
def request_fields(*names):
    """Return the named fields from the form body (or a JSON object body).

    Values are stripped; missing fields come back as empty strings.
    """
    data = request.form
    if not data:
        body = request.get_json(silent=True)
        data = body if isinstance(body, dict) else {}
    values = []
    for name in names:
        value = data.get(name)
        values.append(str(value).strip() if value is not None else '')
    return values


# --- Logging Decorator ---
def log_request(f):
    """Decorator to log request and response details."""
    @functools.wraps(f)
    def decorated_function(*args, **kwargs):
        api_logger.info(
            f"[{request.method}] {request.path} - IP: {request.remote_addr}"
        )
        try:
            result = f(*args, **kwargs)
            status_code = getattr(result, 'status_code', 200)
            api_logger.info(f"Response Status: {status_code}")
            return result
        except Exception as e:
            api_logger.debug(f"{f.__name__} raised {type(e).__name__}: {e}")
            raise
    return decorated_function
