import os
import logging
from logging.handlers import RotatingFileHandler
from typing import Optional


__version__ = '1.0.0'

_logging_configured = False


def configure_logging(level: str = 'INFO', log_dir: Optional[str] = None):
    """Configure application logging"""
    global _logging_configured

    if _logging_configured:
        return

    log_level = getattr(logging, level.upper(), logging.INFO)

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_formatter = logging.Formatter(
        '[%(asctime)s] %(levelname)s in %(module)s: %(message)s'
    )
    console_handler.setFormatter(console_formatter)
    handlers = [console_handler]

    # File handler (optional, Lambda only has ephemeral /tmp)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, 'space_backup.log'),
            maxBytes=10485760,  # 10MB
            backupCount=10
        )
        file_handler.setLevel(log_level)
        file_formatter = logging.Formatter(
            '[%(asctime)s] %(levelname)s [%(name)s.%(funcName)s:%(lineno)d] %(message)s'
        )
        file_handler.setFormatter(file_formatter)
        handlers.append(file_handler)

    # The Lambda runtime installs its own root handler; replace it
    logging.basicConfig(level=log_level, handlers=handlers, force=True)

    # boto emits a lot at DEBUG
    logging.getLogger('botocore').setLevel(max(log_level, logging.INFO))
    logging.getLogger('urllib3').setLevel(max(log_level, logging.INFO))

    _logging_configured = True
    logging.getLogger(__name__).info(f"Logging configured (level: {logging.getLevelName(log_level)})")
