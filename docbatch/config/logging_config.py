import json
import logging
import logging.config
import os
import sys
import time
from typing import Optional


class GCPJSONFormatter(logging.Formatter):
    """
    JSON formatter for Google Cloud Logging with structured fields.

    Outputs logs as JSON with 'severity' field (GCP standard) and makes
    all fields searchable in Cloud Logging console.
    """

    # Standard logging record attributes to exclude from extra fields
    RESERVED_ATTRS = {
        'name', 'msg', 'args', 'created', 'filename', 'funcName',
        'levelname', 'levelno', 'lineno', 'module', 'msecs',
        'message', 'pathname', 'process', 'processName', 'relativeCreated',
        'thread', 'threadName', 'exc_info', 'exc_text', 'stack_info',
        'taskName', 'asctime'
    }

    def format(self, record):
        log_obj = {
            "severity": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        # Custom fields passed with extra={}
        for key, value in record.__dict__.items():
            if key not in self.RESERVED_ATTRS:
                try:
                    json.dumps(value)
                    log_obj[key] = value
                except (TypeError, ValueError):
                    log_obj[key] = str(value)

        return json.dumps(log_obj)


class PipeFormatter(logging.Formatter):
    def formatTime(self, record, datefmt=None):
        # Always HH:MM:SS,mmm
        ct = self.converter(record.created)
        s = time.strftime("%H:%M:%S", ct)
        return f"{s},{int(record.msecs):03d}"

    def format(self, record):
        asctime = f"{self.formatTime(record, self.datefmt):<12}"
        levelname = f"{record.levelname:<7}"
        message = f"{asctime} | {levelname} | [{record.name}] {record.getMessage()}"
        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)
        return message


def _is_gcp_environment() -> bool:
    """Check if running in Google Cloud Platform environment."""
    return (
        os.getenv('K_SERVICE') is not None or  # Cloud Run
        os.getenv('GAE_ENV') is not None or     # App Engine
        os.getenv('ENV_TYPE') == 'gcp'
    )


LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "json": {
            "()": "pythonjsonlogger.json.JsonFormatter",
            "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s",
        },
        "gcp_json": {
            "()": GCPJSONFormatter,
        },
        "pipe": {
            "()": PipeFormatter,
        },
    },
    "handlers": {
        "stderr": {
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stderr",
            "formatter": "json",
        }
    },
    "loggers": {
        "docbatch": {"handlers": ["stderr"], "level": "INFO", "propagate": False},
    },
}


def select_formatter() -> str:
    """Pick the console formatter for the current environment."""
    if sys.stderr.isatty():
        return "pipe"
    if _is_gcp_environment():
        return "gcp_json"
    return "json"


def configure_logging(level: Optional[str] = None) -> None:
    """
    Apply the docbatch logging configuration.

    Library modules only create loggers; applications (and the CLI) call this
    once at startup. ``level`` defaults to the LOG_LEVEL environment variable.
    """
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    config = {**LOGGING}
    config["handlers"] = {"stderr": {**LOGGING["handlers"]["stderr"], "formatter": select_formatter()}}
    config["loggers"] = {"docbatch": {**LOGGING["loggers"]["docbatch"], "level": level}}
    logging.config.dictConfig(config)
