import logging
import logging.config
from pathlib import Path
from typing import Any, Dict, Optional
from app.core.config import settings

PAYMENT_LOGGERS = ("app.services.payment", "app.services.webhook", "app.services.stripe")


def build_logging_config(log_dir: str, level: str = "INFO") -> Dict[str, Any]:
    """dictConfig for the engine.

    Payment, refund and webhook activity is also written to its own file so
    money movements can be audited apart from request noise.
    """
    def rotating(filename: str, handler_level: str, formatter: str = "detailed") -> Dict[str, Any]:
        return {
            "class": "logging.handlers.RotatingFileHandler",
            "level": handler_level,
            "formatter": formatter,
            "filename": f"{log_dir}/{filename}",
            "maxBytes": 10485760,
            "backupCount": 5,
            "encoding": "utf-8",
        }

    config: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "detailed": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            },
            "audit": {
                "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
                "datefmt": "%Y-%m-%dT%H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "detailed",
                "stream": "ext://sys.stdout",
            },
            "engine_file": rotating("engine.log", level),
            "error_file": rotating("error.log", "ERROR"),
            "payments_file": rotating("payments.log", "INFO", formatter="audit"),
        },
        "root": {
            "level": level,
            "handlers": ["console", "engine_file", "error_file"],
        },
        "loggers": {
            "app": {
                "level": level,
                "handlers": ["console", "engine_file", "error_file"],
                "propagate": False,
            },
            "app.middleware.logging": {
                "level": level,
                "handlers": ["console", "engine_file"],
                "propagate": False,
            },
            "uvicorn.access": {
                "level": "WARNING",
                "handlers": ["console"],
                "propagate": False,
            },
            "stripe": {
                "level": "WARNING",
                "handlers": ["console", "payments_file"],
                "propagate": False,
            },
        },
    }
    for name in PAYMENT_LOGGERS:
        config["loggers"][name] = {
            "level": "INFO",
            "handlers": ["console", "engine_file", "error_file", "payments_file"],
            "propagate": False,
        }
    return config


def configure_logging(level: Optional[str] = None) -> None:
    Path(settings.LOG_DIR).mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(build_logging_config(settings.LOG_DIR, level or settings.LOG_LEVEL))
