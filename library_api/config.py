# library_api/config.py
"""
Process configuration for the library API.

Values are read from environment variables once at startup (``run.py``
loads ``.env`` first) and passed explicitly into ``create_app``.
"""
import os
from dataclasses import dataclass, field

SSL_MODES = ('disable', 'allow', 'prefer', 'require', 'verify-ca', 'verify-full')


class ConfigError(ValueError):
    """Raised when an environment value cannot be used."""


def _int(environ, key, default):
    raw = environ.get(key)
    if raw is None or raw == '':
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from None


def _bool(environ, key, default):
    raw = environ.get(key)
    if raw is None:
        return default
    return raw.lower() in ('true', '1', 't', 'yes')


@dataclass(frozen=True)
class DatabaseConfig:
    """Connection and pool parameters for the Oracle store."""

    host: str = 'localhost'
    port: int = 1521
    user: str = 'library'
    password: str = ''
    dbname: str = 'FREEPDB1'
    sslmode: str = 'disable'
    pool_min: int = 1
    pool_max: int = 5
    pool_increment: int = 1
    pool_timeout: int = 60        # seconds an idle connection is kept
    acquire_timeout: int = 5000   # ms to wait for a free connection
    call_timeout: int = 10000     # ms per database round trip

    def __post_init__(self):
        if self.sslmode not in SSL_MODES:
            raise ConfigError(
                f"sslmode must be one of {', '.join(SSL_MODES)}, got {self.sslmode!r}"
            )
        if self.pool_min < 0 or self.pool_max < 1 or self.pool_min > self.pool_max:
            raise ConfigError("pool bounds must satisfy 0 <= pool_min <= pool_max, pool_max >= 1")

    @property
    def protocol(self):
        """Network protocol for the connect descriptor."""
        return 'tcps' if self.sslmode in ('require', 'verify-ca', 'verify-full') else 'tcp'

    @property
    def ssl_server_dn_match(self):
        return self.sslmode == 'verify-full'

    def pool_params(self):
        """Keyword arguments for ``oracledb.create_pool``."""
        return {
            'user': self.user,
            'password': self.password,
            'host': self.host,
            'port': self.port,
            'service_name': self.dbname,
            'protocol': self.protocol,
            'ssl_server_dn_match': self.ssl_server_dn_match,
            'min': self.pool_min,
            'max': self.pool_max,
            'increment': self.pool_increment,
            'timeout': self.pool_timeout,
            'wait_timeout': self.acquire_timeout,
        }

    @classmethod
    def from_env(cls, environ=None):
        environ = os.environ if environ is None else environ
        return cls(
            host=environ.get('DB_HOST', cls.host),
            port=_int(environ, 'DB_PORT', cls.port),
            user=environ.get('DB_USER', cls.user),
            password=environ.get('DB_PASSWORD', cls.password),
            dbname=environ.get('DB_NAME', cls.dbname),
            sslmode=environ.get('DB_SSLMODE', cls.sslmode).lower(),
            pool_min=_int(environ, 'DB_POOL_MIN', cls.pool_min),
            pool_max=_int(environ, 'DB_POOL_MAX', cls.pool_max),
            pool_increment=_int(environ, 'DB_POOL_INCREMENT', cls.pool_increment),
            pool_timeout=_int(environ, 'DB_POOL_TIMEOUT', cls.pool_timeout),
            acquire_timeout=_int(environ, 'DB_ACQUIRE_TIMEOUT', cls.acquire_timeout),
            call_timeout=_int(environ, 'DB_CALL_TIMEOUT', cls.call_timeout),
        )


@dataclass(frozen=True)
class AppConfig:
    """Top level settings, constructed once per process."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    breaker_fail_max: int = 5
    breaker_reset_timeout: int = 60
    log_level: str = 'INFO'
    host: str = '127.0.0.1'
    port: int = 8080
    debug: bool = False

    @classmethod
    def from_env(cls, environ=None):
        environ = os.environ if environ is None else environ
        return cls(
            database=DatabaseConfig.from_env(environ),
            breaker_fail_max=_int(environ, 'DB_BREAKER_FAIL_MAX', cls.breaker_fail_max),
            breaker_reset_timeout=_int(environ, 'DB_BREAKER_RESET_TIMEOUT', cls.breaker_reset_timeout),
            log_level=environ.get('LOG_LEVEL', cls.log_level).upper(),
            host=environ.get('FLASK_RUN_HOST', cls.host),
            port=_int(environ, 'FLASK_RUN_PORT', cls.port),
            debug=_bool(environ, 'FLASK_DEBUG', cls.debug),
        )
