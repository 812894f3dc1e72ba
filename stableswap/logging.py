"""
Logging configuration for the stable → native swap service.
"""
from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

from loguru import logger

# Lazy import settings to avoid circular dependency
_settings = None


def _get_settings():
    """Get settings with lazy loading."""
    global _settings
    if _settings is None:
        from stableswap.settings.config import settings as app_settings

        _settings = app_settings
    return _settings


def _resolve_log_path(default_path: Path) -> Path:
    try:
        default_path.parent.mkdir(parents=True, exist_ok=True)
        return default_path
    except OSError:
        fallback_dir = Path.cwd() / "logs"
        fallback_dir.mkdir(parents=True, exist_ok=True)
        return fallback_dir / default_path.name


def _add_file_sink(path: Path, **kwargs) -> None:
    try:
        logger.add(str(path), **kwargs)
    except PermissionError:
        # Fall back to a temp directory that is always writable
        tmp_dir = Path("/tmp/stableswap_logs")
        tmp_dir.mkdir(parents=True, exist_ok=True)
        logger.add(str(tmp_dir / path.name), **kwargs)


class LoguruHandler(logging.Handler):
    """Route stdlib logging records (web3, urllib3, uvicorn) into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(depth=6, exception=record.exc_info).log(level, record.getMessage())


def setup_logging():
    """Configure loguru logger with appropriate settings."""
    settings = _get_settings()

    logger.remove()
    logger.configure(extra={"service": settings.app_name, "environment": settings.environment})

    log_level = (settings.log_level or "INFO").upper()
    # Allow LOG_LEVEL env override (e.g. debug/trace) used in tests/docker
    env_level = os.getenv("LOG_LEVEL", "").upper()
    if env_level:
        log_level = env_level

    logger.add(
        sys.stdout,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=log_level,
        colorize=True,
    )

    log_path = _resolve_log_path(Path(settings.log_file))
    _add_file_sink(
        log_path,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        level="DEBUG",
        rotation="100 MB",
        retention="30 days",
        compression="zip",
    )
    _add_file_sink(
        log_path.parent / "errors.log",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        level="ERROR",
        rotation="50 MB",
        retention="90 days",
        compression="zip",
    )
    # Swap outcomes (confirmed / failed orchestrations)
    _add_file_sink(
        log_path.parent / "swap_audit.log",
        format="{time:YYYY-MM-DD HH:mm:ss} | {message}",
        level="INFO",
        filter=lambda record: record["extra"].get("SWAP_AUDIT"),
        rotation="50 MB",
        retention="365 days",
        compression="zip",
    )

    root_logger = logging.getLogger()
    root_logger.handlers = []
    root_logger.setLevel(logging.INFO)
    root_logger.addHandler(LoguruHandler())
    for name in ("web3", "urllib3"):
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.info(f"Logging initialized level={log_level} file={log_path}")
    return logger


_log = None


def _get_log():
    """Get or initialize the logger."""
    global _log
    if _log is None:
        try:
            _log = setup_logging()
        except OSError:
            # Sinks could not be created; keep loguru's default stderr sink
            _log = logger
    return _log


log = _get_log()
