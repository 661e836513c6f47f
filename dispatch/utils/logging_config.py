"""
Centralized Logging Configuration

Provides consistent logging setup for services embedding the dispatch core.
When running in containers (Docker/Kubernetes/Fly.io), timestamps are omitted
from the Python log formatter since container runtimes add their own timestamps.

Usage:
    from dispatch.utils.logging_config import configure_logging
    configure_logging()
"""
import os
import sys
import logging
from typing import Optional, Union

# Detect container environment
IS_CONTAINERIZED = bool(
    os.environ.get('FLY_APP_NAME') or  # Fly.io
    os.environ.get('KUBERNETES_SERVICE_HOST') or  # Kubernetes
    os.path.exists('/.dockerenv')  # Docker
)

# Log format without timestamp for containers (runtime adds it)
CONTAINER_FORMAT = "[%(name)s] %(levelname)s: %(message)s"

# Log format with timestamp for local development
LOCAL_FORMAT = "[%(asctime)s] [%(name)s] %(levelname)s: %(message)s"

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: Optional[Union[int, str]] = None, force: bool = False) -> None:
    """
    Configure logging for the application.

    Args:
        level: Logging level or level name such as "DEBUG"
            (default: DISPATCH_LOG_LEVEL, INFO)
        force: Force reconfiguration even if already configured
    """
    if level is None:
        from dispatch.config import get_settings
        level = get_settings().log_level
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    root_logger = logging.getLogger()

    # Avoid reconfiguring if already set up (unless forced)
    if root_logger.handlers and not force:
        return

    if force:
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)

    log_format = CONTAINER_FORMAT if IS_CONTAINERIZED else LOCAL_FORMAT
    datefmt = None if IS_CONTAINERIZED else DATE_FORMAT

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(log_format, datefmt=datefmt))

    root_logger.setLevel(level)
    root_logger.addHandler(handler)

    # Per-admission decisions are noisy at DEBUG
    logging.getLogger('dispatch.rate_limiter').setLevel(max(level, logging.INFO))

