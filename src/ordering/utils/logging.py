"""Logging setup for the ordering service.

Everything logs through structlog; stdlib logging is only the sink. The
caller's user id is bound to the structlog context for the duration of a
request so every cart and order log line can be traced back to it.
"""

import logging
import os
import sys

import structlog

_LEVEL_BY_ENV = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}

_JSON_ENVS = ("production", "staging")


def current_env() -> str:
    return (os.getenv("ENVIRONMENT") or os.getenv("PROTEAN_ENV") or "development").lower()


def log_level(env: str | None = None) -> str:
    """`LOG_LEVEL` wins; otherwise the level follows the environment."""
    env = env or current_env()
    return os.getenv("LOG_LEVEL", _LEVEL_BY_ENV.get(env, "INFO")).upper()


def configure_logging(env: str | None = None) -> None:
    env = env or current_env()
    level = log_level(env)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = []
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    root_logger.addHandler(handler)

    # Protean logs every unit of work at INFO
    logging.getLogger("protean").setLevel(logging.WARNING)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
    ]
    if env in _JSON_ENVS:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def bind_caller(user_id: str) -> None:
    """Attach the authenticated user to every log line of the current request."""
    structlog.contextvars.bind_contextvars(user_id=str(user_id))


def clear_caller() -> None:
    structlog.contextvars.clear_contextvars()
