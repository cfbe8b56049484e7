# init_db.py
# Creates the library schema on the configured Oracle database and seeds it.
# Connection settings come from the same DB_* variables the API uses.
import os
import oracledb
from dotenv import load_dotenv

from library_api.config import AppConfig

SCHEMA = [
    """
    CREATE TABLE users (
        id NUMBER(10) GENERATED BY DEFAULT AS IDENTITY PRIMARY KEY,
        first_name VARCHAR2(100) NOT NULL,
        last_name VARCHAR2(100) NOT NULL
    )
    """,
    """
    CREATE TABLE books (
        id NUMBER(10) GENERATED BY DEFAULT AS IDENTITY PRIMARY KEY,
        title VARCHAR2(255) NOT NULL,
        author VARCHAR2(255) NOT NULL,
        quantity NUMBER(10) NOT NULL CHECK (quantity >= 0),
        available_quantity NUMBER(10) NOT NULL,
        CONSTRAINT books_available_ck CHECK (available_quantity BETWEEN 0 AND quantity)
    )
    """,
    """
    CREATE TABLE checkouts (
        user_id NUMBER(10) NOT NULL REFERENCES users (id) ON DELETE CASCADE,
        book_id NUMBER(10) NOT NULL REFERENCES books (id) ON DELETE CASCADE,
        CONSTRAINT checkouts_pk PRIMARY KEY (user_id, book_id)
    )
    """,
]

DROP = ["DROP TABLE checkouts", "DROP TABLE books", "DROP TABLE users"]

SAMPLE_USERS = [
    ('Alice', 'Smith'),
    ('Bob', 'Jones'),
    ('Charlie', 'Brown'),
]

SAMPLE_BOOKS = [
    {'title': 'The Hobbit', 'author': 'J.R.R. Tolkien', 'quantity': 5},
    {'title': '1984', 'author': 'George Orwell', 'quantity': 3},
    {'title': 'Dune', 'author': 'Frank Herbert', 'quantity': 1},
    {'title': 'The Hitchhiker\'s Guide to the Galaxy', 'author': 'Douglas Adams', 'quantity': 10},
]

TABLE_OR_VIEW_DOES_NOT_EXIST = 942


def init_db(connection, reset=False):
    with connection.cursor() as cursor:
        if reset:
            print("Dropping existing tables...")
            for statement in DROP:
                try:
                    cursor.execute(statement)
                except oracledb.DatabaseError as e:
                    error, = e.args
                    if error.code != TABLE_OR_VIEW_DOES_NOT_EXIST:
                        raise

        print("Creating tables...")
        for statement in SCHEMA:
            cursor.execute(statement)

        print("Inserting sample users...")
        cursor.executemany(
            "INSERT INTO users (first_name, last_name) VALUES (:1, :2)", SAMPLE_USERS
        )

        print("Inserting sample books...")
        cursor.executemany(
            "INSERT INTO books (title, author, quantity, available_quantity) VALUES (:title, :author, :quantity, :quantity)",
            SAMPLE_BOOKS
        )
    connection.commit()


def run():
    dotenv_path = os.path.join(os.path.dirname(__file__), '.env')
    if os.path.exists(dotenv_path):
        load_dotenv(dotenv_path)

    db_config = AppConfig.from_env().database
    params = db_config.pool_params()
    try:
        with oracledb.connect(
            user=params['user'],
            password=params['password'],
            host=params['host'],
            port=params['port'],
            service_name=params['service_name'],
            protocol=params['protocol'],
            ssl_server_dn_match=params['ssl_server_dn_match'],
        ) as connection:
            init_db(connection, reset=os.environ.get('INIT_DB_RESET', '').lower() in ('1', 'true'))
    except oracledb.Error as e:
        print(f"Could not initialize the database - Error occurred: {e}")
        raise SystemExit(1)

    print(f"Database '{db_config.dbname}' initialized successfully with sample data.")


if __name__ == "__main__":
    run()
