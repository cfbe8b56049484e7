# library_api/db.py
import oracledb
from flask import g, current_app
from pybreaker import CircuitBreakerError
from .circuit_breaker import make_db_breaker
from .errors import StoreUnavailable
from .logger import api_logger
from .metrics import db_connections


def create_pool(db_config):
    """Create the process-wide connection pool."""
    try:
        pool = oracledb.create_pool(
            getmode=oracledb.POOL_GETMODE_TIMEDWAIT,
            **db_config.pool_params()
        )
    except oracledb.Error as e:
        api_logger.error(f"Error creating connection pool: {e}")
        raise StoreUnavailable() from e
    api_logger.info(
        f"Database connection pool created for {db_config.host}:{db_config.port}/{db_config.dbname}"
    )
    return pool


def get_db():
    """Get a pooled connection for the current request with circuit breaker protection."""
    if 'db' not in g:
        ext = current_app.extensions['library_db']
        try:
            conn = ext['breaker'].call(ext['pool'].acquire)
        except CircuitBreakerError as e:
            api_logger.error(f"Database circuit breaker is open: {e}")
            raise StoreUnavailable() from e
        except oracledb.Error as e:
            api_logger.error(f"Failed to acquire database connection: {e}")
            raise StoreUnavailable() from e
        conn.call_timeout = ext['call_timeout']
        db_connections.inc()
        g.db = conn
    return g.db


def rollback(db):
    """Roll back the current transaction; a dead connection is logged, not raised."""
    try:
        db.rollback()
    except oracledb.Error as ex:
        api_logger.warning(f"Rollback failed: {ex}")


def close_db(e=None):
    """Roll back anything uncommitted and release the connection back to the pool."""
    db = g.pop('db', None)
    if db is None:
        return
    db_connections.dec()
    rollback(db)
    try:
        db.close()  # returns to pool, not truly closed
    except oracledb.Error as ex:
        api_logger.error(f"Error closing database connection: {ex}")


def init_app(app):
    """Attach the pool (injected via ``DB_POOL`` or created from ``LIBRARY_CONFIG``) and register teardown."""
    config = app.config['LIBRARY_CONFIG']
    pool = app.config.get('DB_POOL')
    if pool is None:
        pool = create_pool(config.database)

    app.extensions['library_db'] = {
        'pool': pool,
        'breaker': make_db_breaker(config.breaker_fail_max, config.breaker_reset_timeout),
        'call_timeout': config.database.call_timeout,
    }

    # Release the connection when the request's app context tears down
    app.teardown_appcontext(close_db)
