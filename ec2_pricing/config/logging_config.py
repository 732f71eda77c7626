# ec2_pricing/config/logging_config.py

"""Logging for the API server, the poller and the dashboard.

Every launch writes ``logs/<prefix>_YYYYmmdd_HHMMSS.log``.  The project
loggers (``ec2_pricing.*``) log everything to that file, while only
warnings reach stderr unless ``LOG_LEVEL`` says otherwise.

uvicorn runs with ``log_config=None`` so its loggers are wired here as
well: server and access lines go to the run file, never to the
terminal.  boto3/botocore are held at WARNING; at DEBUG they dump every
signed request.
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path

from ec2_pricing.config.settings import Settings

PROJECT_LOGGER = "ec2_pricing"

# Loggers owned by uvicorn when it serves the API
SERVER_LOGGERS: tuple[str, ...] = (
    "uvicorn",
    "uvicorn.error",
    "uvicorn.access",
)

# AWS SDK loggers and the HTTP pool underneath them
AWS_SDK_LOGGERS: tuple[str, ...] = ("boto3", "botocore", "urllib3")

_FILE_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | "
    "%(module)s:%(funcName)s:%(lineno)d | %(message)s"
)
_STDERR_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _console_level() -> int:
    level = logging.getLevelName(Settings.LOG_LEVEL.upper())
    return level if isinstance(level, int) else logging.WARNING


def setup_logging(prefix: str = "run") -> Path:
    """Attach the per-run file and stderr handlers.

    Calling it again in the same process keeps the existing handlers and
    only returns a fresh path name.
    """
    Settings.LOGS_DIR.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = Settings.LOGS_DIR / f"{prefix}_{stamp}.log"

    project = logging.getLogger(PROJECT_LOGGER)
    project.setLevel(logging.DEBUG)
    if project.handlers:
        return log_file

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(_FILE_FORMAT, datefmt=_DATE_FORMAT)
    )

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(_console_level())
    stderr_handler.setFormatter(
        logging.Formatter(_STDERR_FORMAT, datefmt=_DATE_FORMAT)
    )

    project.addHandler(file_handler)
    project.addHandler(stderr_handler)

    for name in SERVER_LOGGERS:
        server_logger = logging.getLogger(name)
        server_logger.setLevel(logging.INFO)
        server_logger.handlers = [file_handler]
        server_logger.propagate = False

    for name in AWS_SDK_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    project.info("Logging to %s", log_file)
    return log_file


def log_environment_summary() -> None:
    """Log the effective runtime configuration without secrets."""
    logger = logging.getLogger("ec2_pricing.config")
    logger.info("AWS region: %s", Settings.AWS_REGION)
    logger.info(
        "Pricing API region: %s", Settings.PRICING_API_REGION,
    )
    logger.info(
        "AWS credentials: %s",
        "configured" if os.getenv("AWS_ACCESS_KEY_ID") else "default chain",
    )
    logger.info("Database: %s", Settings.DATABASE_PATH)
    logger.info(
        "SMTP: %s",
        "configured" if Settings.smtp_configured() else "not configured",
    )
