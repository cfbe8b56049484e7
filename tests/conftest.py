import os
import sqlite3
import tempfile

import oracledb
import pytest

# Keep test logs out of the working tree
os.environ.setdefault("LIBRARY_LOG_DIR", tempfile.mkdtemp(prefix="library_api_logs_"))

from library_api import create_app
from library_api.config import AppConfig

SCHEMA = """
CREATE TABLE users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    first_name TEXT NOT NULL,
    last_name TEXT NOT NULL
);
CREATE TABLE books (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    author TEXT NOT NULL,
    quantity INTEGER NOT NULL CHECK (quantity >= 0),
    available_quantity INTEGER NOT NULL CHECK (available_quantity BETWEEN 0 AND quantity)
);
CREATE TABLE checkouts (
    user_id INTEGER NOT NULL REFERENCES users (id) ON DELETE CASCADE,
    book_id INTEGER NOT NULL REFERENCES books (id) ON DELETE CASCADE,
    PRIMARY KEY (user_id, book_id)
);
"""


class SQLiteCursor:
    """Cursor with the slice of the oracledb interface the API uses."""

    def __init__(self, conn):
        self._conn = conn
        self._cursor = conn.cursor()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self._cursor.close()

    def __iter__(self):
        return iter(self._cursor)

    @property
    def rowcount(self):
        return self._cursor.rowcount

    @property
    def description(self):
        return self._cursor.description

    def execute(self, sql, params=None):
        try:
            if not self._conn.in_transaction:
                # Take the write lock up front so concurrent writers queue in the store
                self._conn.execute("BEGIN IMMEDIATE")
            self._cursor.execute(sql, params or {})
        except sqlite3.IntegrityError as e:
            raise oracledb.IntegrityError(str(e)) from e
        except sqlite3.Error as e:
            raise oracledb.DatabaseError(str(e)) from e

    def fetchone(self):
        return self._cursor.fetchone()

    def fetchall(self):
        return self._cursor.fetchall()


class SQLiteConnection:
    def __init__(self, path):
        self._conn = sqlite3.connect(
            path, timeout=10, isolation_level=None, check_same_thread=False
        )
        self._conn.execute("PRAGMA foreign_keys = ON")
        self.call_timeout = 0
        self.closed = False

    def cursor(self):
        return SQLiteCursor(self._conn)

    def commit(self):
        if self._conn.in_transaction:
            self._conn.execute("COMMIT")

    def rollback(self):
        if self._conn.in_transaction:
            self._conn.execute("ROLLBACK")

    def ping(self):
        self._conn.execute("SELECT 1")

    def close(self):
        self.closed = True
        self._conn.close()


class SQLitePool:
    """Stands in for an ``oracledb`` pool; one fresh SQLite connection per acquire."""

    def __init__(self, path):
        self.path = path
        self.acquired = []
        conn = sqlite3.connect(path)
        conn.execute("PRAGMA journal_mode=WAL")
        conn.executescript(SCHEMA)
        conn.commit()
        conn.close()

    def acquire(self):
        conn = SQLiteConnection(self.path)
        self.acquired.append(conn)
        return conn

    def query(self, sql, params=()):
        conn = sqlite3.connect(self.path)
        try:
            return conn.execute(sql, params).fetchall()
        finally:
            conn.close()

    def execute(self, sql, params=()):
        conn = sqlite3.connect(self.path)
        try:
            cursor = conn.execute(sql, params)
            conn.commit()
            return cursor.lastrowid
        finally:
            conn.close()

    def add_user(self, first_name="Ada", last_name="Lovelace"):
        return self.execute(
            "INSERT INTO users (first_name, last_name) VALUES (?, ?)", (first_name, last_name)
        )

    def add_book(self, title="Dune", author="Frank Herbert", quantity=2, available=None):
        available = quantity if available is None else available
        return self.execute(
            "INSERT INTO books (title, author, quantity, available_quantity) VALUES (?, ?, ?, ?)",
            (title, author, quantity, available)
        )

    def available(self, book_id):
        return self.query("SELECT available_quantity FROM books WHERE id = ?", (book_id,))[0][0]

    def checkouts(self):
        return self.query("SELECT user_id, book_id FROM checkouts ORDER BY user_id, book_id")


class FailingPool:
    """Pool whose acquisition always fails, as when the database is down."""

    def __init__(self):
        self.calls = 0

    def acquire(self):
        self.calls += 1
        raise oracledb.OperationalError("DPY-6005: cannot connect to database")


@pytest.fixture
def pool(tmp_path):
    return SQLitePool(str(tmp_path / "library.db"))


@pytest.fixture
def app(pool):
    return create_app(AppConfig(), test_config={"TESTING": True, "DB_POOL": pool})


@pytest.fixture
def client(app):
    return app.test_client()
