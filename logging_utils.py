"""Application logging utilities.

Goals:
- Single, shared app logger used everywhere
- Logs written to per-module files under ./logs/
- UTC timestamp at start of each log line
- Daily log rotation

Implementation notes:
- Uses `TimedRotatingFileHandler` with `when='midnight'` and `utc=True`.
- Also attaches a console handler (stderr) for local development.
- Call `get_logger(__name__)` from any module to get a child logger.
- `COMPANY_ETL_LOG_DIR` overrides the logs directory (relative paths are
  resolved against the project root).
"""

from __future__ import annotations

import logging
import os
import time
from logging.handlers import TimedRotatingFileHandler


class _UTCFormatter(logging.Formatter):
    """Formatter that forces UTC timestamps."""

    converter = staticmethod(time.gmtime)


_APP_LOGGER_NAME = "company_etl"

_LOG_FORMAT = "%(asctime)sZ %(levelname)s pid=%(process)d %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


def _logs_dir() -> str:
    here = os.path.dirname(os.path.abspath(__file__))
    override = (os.getenv("COMPANY_ETL_LOG_DIR") or "").strip()
    if override:
        return override if os.path.isabs(override) else os.path.join(here, override)
    return os.path.join(here, "logs")


def _sanitize_filename(name: str) -> str:
    # Convert e.g. "jobs.migrate_companies" -> "jobs_migrate_companies"
    name = (name or "app").strip() or "app"
    return "".join(ch if (ch.isalnum() or ch in {"-", "_"}) else "_" for ch in name)


def _file_handler(path: str, level: int) -> TimedRotatingFileHandler:
    fh = TimedRotatingFileHandler(
        path,
        when="midnight",
        interval=1,
        backupCount=14,
        utc=True,
        encoding="utf-8",
    )
    fh.setLevel(level)
    fh.setFormatter(_UTCFormatter(fmt=_LOG_FORMAT, datefmt=_DATE_FORMAT))
    return fh


def configure_app_logging(level_name: str = "INFO") -> logging.Logger:
    """Configure and return the root application logger.

    Safe to call multiple times; later calls only adjust the level.
    """

    level = getattr(logging, (level_name or "INFO").upper(), logging.INFO)
    app_logger = logging.getLogger(_APP_LOGGER_NAME)
    app_logger.setLevel(level)

    if getattr(app_logger, "_configured", False):
        for h in app_logger.handlers:
            h.setLevel(level)
        return app_logger

    os.makedirs(_logs_dir(), exist_ok=True)

    sh = logging.StreamHandler()
    sh.setLevel(level)
    sh.setFormatter(_UTCFormatter(fmt=_LOG_FORMAT, datefmt=_DATE_FORMAT))

    app_logger.addHandler(sh)
    app_logger.addHandler(_file_handler(os.path.join(_logs_dir(), "app.log"), level))

    # Do not propagate to the global root logger (prevents double logging).
    app_logger.propagate = False

    app_logger._configured = True  # type: ignore[attr-defined]
    return app_logger


def get_logger(module_name: str | None = None) -> logging.Logger:
    """Get a module-specific logger that writes to its own log file.

    Records also propagate to the shared `company_etl` logger, so they show up
    on the console and in `app.log`.

    Example:
        logger = get_logger(__name__)
    """

    base = configure_app_logging(os.getenv("LOG_LEVEL", "INFO"))

    child_name = module_name or "app"
    logger = logging.getLogger(f"{_APP_LOGGER_NAME}.{child_name}")

    if not getattr(logger, "_file_configured", False):
        logger.setLevel(base.level)
        file_name = _sanitize_filename(child_name) + ".log"
        logger.addHandler(_file_handler(os.path.join(_logs_dir(), file_name), base.level))
        logger._file_configured = True  # type: ignore[attr-defined]

    return logger


def set_level(level_name: str) -> None:
    """Adjust the level of the app logger and every configured child logger."""

    level = getattr(logging, (level_name or "INFO").upper(), logging.INFO)
    configure_app_logging(level_name)
    prefix = _APP_LOGGER_NAME + "."
    for name, obj in logging.root.manager.loggerDict.items():
        if name.startswith(prefix) and isinstance(obj, logging.Logger):
            obj.setLevel(level)
            for h in obj.handlers:
                h.setLevel(level)
