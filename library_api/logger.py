"""
Centralized logging configuration for the library API.
"""
import logging
import logging.handlers
import os


def setup_logging(log_dir=None, level=None):
    """Configure the ``library_api`` logger with file and console output."""
    logger = logging.getLogger('library_api')
    if logger.handlers:
        # Already configured in this process
        if level:
            logger.setLevel(level)
        return logger

    log_dir = log_dir or os.environ.get(
        'LIBRARY_LOG_DIR',
        os.path.join(os.path.dirname(os.path.dirname(__file__)), 'logs')
    )
    if not os.path.exists(log_dir):
        os.makedirs(log_dir, exist_ok=True)

    logger.setLevel(level or os.environ.get('LOG_LEVEL', 'INFO').upper())

    detailed_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(funcName)s() - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    simple_formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # File handler for all logs
    file_handler = logging.handlers.RotatingFileHandler(
        os.path.join(log_dir, 'app.log'),
        maxBytes=10485760,  # 10MB
        backupCount=10
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(detailed_formatter)
    logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(simple_formatter)
    logger.addHandler(console_handler)

    return logger


api_logger = setup_logging()
