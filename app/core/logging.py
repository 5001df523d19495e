import sys
from logging.config import dictConfig
from typing import Any

from app.core.config import settings

APP_LOGGERS = ("app", "app.api", "app.generation_logic", "app.services")


def build_logging_config(app_level: str = "DEBUG") -> dict[str, Any]:
    """Uvicorn-compatible logging configuration.

    Generation logs (section attempts, retries, batch outcomes) go to stdout at
    *app_level*; uvicorn and provider-client logs stay on their own handlers.
    """
    app_level = app_level.upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "()": "uvicorn.logging.DefaultFormatter",
                "fmt": "%(levelprefix)s %(asctime)s [%(name)s] %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "access": {
                "()": "uvicorn.logging.AccessFormatter",
                "fmt": '%(levelprefix)s %(asctime)s [%(name)s] "%(request_line)s" %(status_code)s',
            },
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": sys.stderr,
                "level": "INFO",
            },
            "access": {
                "class": "logging.StreamHandler",
                "formatter": "access",
                "stream": sys.stdout,
                "level": "INFO",
            },
            "app": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": sys.stdout,
                "level": app_level,
            },
        },
        "loggers": {
            "root": {"handlers": ["default"], "level": "INFO", "propagate": False},
            "uvicorn.error": {"handlers": ["default"], "level": "INFO", "propagate": False},
            "uvicorn.access": {"handlers": ["access"], "level": "INFO", "propagate": False},
            **{name: {"handlers": ["app"], "level": app_level, "propagate": False} for name in APP_LOGGERS},
            # Provider client chatter stays out of the generation logs
            "openai": {"handlers": ["default"], "level": "WARNING", "propagate": False},
            "httpx": {"handlers": ["default"], "level": "WARNING", "propagate": False},
        },
    }


def setup_logging() -> None:
    """Configures application-wide logging using dictConfig."""
    dictConfig(build_logging_config(settings.log_level))
