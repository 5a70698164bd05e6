from __future__ import annotations
import logging, sys
import structlog
import structlog.stdlib
from challenge_matrix.config import settings

# chatty third-party loggers kept at WARNING unless SQL_ECHO is on
_QUIET = ("sqlalchemy.engine", "aiosqlite", "urllib3", "multipart")

def configure_logging(level: int | str | None = None):
    if level is None:
        level = settings.log_level
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.processors.EventRenamer("message"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(structlog.processors.JSONRenderer()))
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)
    for name in _QUIET:
        logging.getLogger(name).setLevel(logging.INFO if settings.sql_echo and name == "sqlalchemy.engine" else logging.WARNING)
