"""Logging configuration: plain console output, or JSON lines when LOG_JSON is set."""

import logging
import logging.config
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger.json import JsonFormatter

from fee_registry.core.config import settings


class FeeRegistryJsonFormatter(JsonFormatter):
    """JSON formatter that stamps level, logger name and organization scope."""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        if hasattr(record, "organization_id"):
            log_record["organization_id"] = str(record.organization_id)
        if hasattr(record, "fee_type_id"):
            log_record["fee_type_id"] = str(record.fee_type_id)


def build_logging_config() -> Dict[str, Any]:
    formatter = "json" if settings.log_json else "standard"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            },
            "json": {
                "()": FeeRegistryJsonFormatter,
                "format": "%(timestamp)s %(level)s %(logger)s %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": formatter,
            },
        },
        "loggers": {
            "fee_registry": {
                "handlers": ["console"],
                "level": settings.log_level,
                "propagate": False,
            },
            # SQL echo stays off unless explicitly lowered here
            "sqlalchemy.engine": {
                "handlers": ["console"],
                "level": "WARNING",
                "propagate": False,
            },
        },
    }


def setup_logging() -> logging.Logger:
    """Configure application logging."""
    logging.config.dictConfig(build_logging_config())
    logger = logging.getLogger("fee_registry")
    logger.debug("Logging initialized with level: %s", settings.log_level)
    return logger
