"""Logging configuration for the task ledger."""

import logging
import logging.handlers
import sys
from pathlib import Path

from ..config import Settings

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# 10MB per file, five rotated copies
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5

PROJECT_LOGGERS = (
    "taskledger.main",
    "taskledger.routes",
    "taskledger.repositories",
    "taskledger.storage",
    "taskledger.validation",
    "taskledger.container",
)

THIRD_PARTY_LEVELS = {
    "uvicorn": logging.INFO,
    "uvicorn.access": logging.WARNING,
    "fastapi": logging.INFO,
    "httpx": logging.WARNING,
}


class ColoredFormatter(logging.Formatter):
    """Formatter that wraps the level name in an ANSI colour."""

    RESET = "\033[0m"
    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }

    def format(self, record):
        original = record.levelname
        color = self.LEVEL_COLORS.get(original)
        if color:
            record.levelname = f"{color}{original}{self.RESET}"
        try:
            return super().format(record)
        finally:
            # Other handlers see the same record
            record.levelname = original


def _level(settings: Settings) -> int:
    return getattr(logging, settings.log_level.upper(), logging.INFO)


def _rotating_handler(path: Path, level: int) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUPS,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(settings: Settings) -> None:
    """Install console and rotating file handlers on the root logger.

    Existing root handlers are removed. Everything from DEBUG up goes to
    ``app.log``; errors are duplicated into ``error.log``.

    Args:
        settings: Application settings holding ``log_level`` and ``log_dir``
    """
    level = _level(settings)
    log_dir = settings.log_dir
    log_dir.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(ColoredFormatter(fmt=CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(console)

    root.addHandler(_rotating_handler(log_dir / "app.log", logging.DEBUG))
    root.addHandler(_rotating_handler(log_dir / "error.log", logging.ERROR))

    configure_module_loggers(settings)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured with level: {logging.getLevelName(level)}")
    logger.info(f"Log files will be written to: {log_dir.absolute()}")


def configure_module_loggers(settings: Settings) -> None:
    """Set per-module levels for project and third-party loggers."""
    level = _level(settings)

    for name in PROJECT_LOGGERS:
        logging.getLogger(name).setLevel(level)

    for name, third_party_level in THIRD_PARTY_LEVELS.items():
        logging.getLogger(name).setLevel(third_party_level)

    # Per-call storage chatter is only useful while developing
    if settings.environment == "production":
        logging.getLogger("uvicorn.access").setLevel(logging.ERROR)
        logging.getLogger("taskledger.storage").setLevel(logging.WARNING)


class LoggerMixin:
    """Gives a class a logger named after its module and class."""

    @property
    def logger(self) -> logging.Logger:
        cls = type(self)
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    def log_info(self, message: str, *args, **kwargs):
        self.logger.info(message, *args, **kwargs)

    def log_warning(self, message: str, *args, **kwargs):
        self.logger.warning(message, *args, **kwargs)

    def log_error(self, message: str, *args, **kwargs):
        self.logger.error(message, *args, **kwargs)


def _banner(logger: logging.Logger, title: str, *lines: str) -> None:
    rule = "=" * 60
    logger.info(rule)
    logger.info(title)
    if lines:
        logger.info(rule)
        for line in lines:
            logger.info(line)
    logger.info(rule)


def log_startup_info(settings: Settings) -> None:
    """Log the effective storage and logging configuration."""
    lines = [
        f"Environment: {settings.environment}",
        f"Log Level: {settings.log_level.upper()}",
        f"Storage Backend: {settings.storage_backend}",
        f"Storage Namespace: {settings.app_name} (schema {settings.schema_version})",
    ]
    if settings.storage_backend == "file":
        lines.append(f"Data Directory: {settings.data_dir}")
    lines.append(f"Strict Persistence: {settings.strict_persistence}")

    _banner(logging.getLogger("taskledger.startup"), "Task Ledger Starting", *lines)


def log_shutdown_info() -> None:
    _banner(logging.getLogger("taskledger.shutdown"), "Task Ledger Shutting Down")


__all__ = [
    "setup_logging",
    "LoggerMixin",
    "log_startup_info",
    "log_shutdown_info",
]
