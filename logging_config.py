import logging
import logging.config
from pathlib import Path
from typing_extensions import *

LOGGER_NAMESPACE = "grammar2dfa"


def setup_logging(
    log_level: str = "WARNING",
    log_file: Optional[str] = None,
    enable_console: bool = True,
) -> None:
    """
    Set up logging for the grammar -> DFA pipeline.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to a log file (rotated at 10MB)
        enable_console: Whether to log to stderr
    """
    log_level = log_level.upper()

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "detailed": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "simple": {"format": "%(levelname)s - %(name)s - %(message)s"},
        },
        "handlers": {},
        "loggers": {
            LOGGER_NAMESPACE: {
                # the file handler records DEBUG whatever the console level
                "level": "DEBUG" if log_file else log_level,
                "handlers": [],
                "propagate": False,
            },
        },
    }

    if enable_console:
        # stdout carries the report
        config["handlers"]["console"] = {
            "class": "logging.StreamHandler",
            "level": log_level,
            "formatter": "simple",
            "stream": "ext://sys.stderr",
        }
        config["loggers"][LOGGER_NAMESPACE]["handlers"].append("console")

    if log_file:
        config["handlers"]["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": "DEBUG",
            "formatter": "detailed",
            "filename": log_file,
            "maxBytes": 10485760,  # 10MB
            "backupCount": 5,
            "encoding": "utf8",
        }
        config["loggers"][LOGGER_NAMESPACE]["handlers"].append("file")

    logging.config.dictConfig(config)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for the given module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance under the grammar2dfa namespace
    """
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")
