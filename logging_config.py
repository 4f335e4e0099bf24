import logging
import logging.handlers
import os
from typing import Optional

from core.config import Config

# Loggers owned by this project; module loggers hang off these names
PACKAGE_LOGGERS = [
    'grpc_clients',
    'core',
    'lightning_errors',
]


def _rotating_handler(path: str, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path,
        maxBytes=10*1024*1024,  # 10MB
        backupCount=5
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(config: Optional[Config] = None):
    config = config or Config()
    log_level = getattr(logging, config.LOG_LEVEL.upper())
    formatter = logging.Formatter(config.LOG_FORMAT)

    log_dir = config.LOG_DIR
    os.makedirs(log_dir, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Drop handlers from any earlier setup so repeated calls don't duplicate output
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    root_logger.addHandler(_rotating_handler(os.path.join(log_dir, 'gateway.log'), log_level, formatter))
    root_logger.addHandler(_rotating_handler(os.path.join(log_dir, 'errors.log'), logging.ERROR, formatter))

    for logger_name in PACKAGE_LOGGERS:
        logging.getLogger(logger_name).setLevel(log_level)

    # grpc's own logger is noisy at DEBUG
    logging.getLogger('grpc').setLevel(max(log_level, logging.INFO))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
