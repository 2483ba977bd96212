"""dictConfig logging for the blocktap commands.

Log records always go to stderr because stdout carries the result lines that
scripts parse. ``LOG_LEVEL`` sets the blocktap level and ``LOG_FILE`` adds an
appending file handler.
"""
import logging
import logging.config
import os

QUIET_LIBRARIES = ("httpx", "httpcore", "websockets", "solana")


def build_logging_config(level: str = "INFO", log_file: str | None = None) -> dict:
    handlers = {
        "stderr": {
            "class": "logging.StreamHandler",
            "formatter": "plain",
            "stream": "ext://sys.stderr",
        },
    }
    if log_file:
        handlers["logfile"] = {
            "class": "logging.FileHandler",
            "formatter": "plain",
            "filename": log_file,
            "mode": "a",
        }
    names = list(handlers)

    def _logger(lvl: str) -> dict:
        return {"level": lvl, "handlers": names, "propagate": False}

    loggers = {"blocktap": _logger(level.upper())}
    loggers.update({lib: _logger("WARNING") for lib in QUIET_LIBRARIES})

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "plain": {
                "format": "%(asctime)s %(levelname)-7s [%(name)s] %(message)s",
                "datefmt": "%H:%M:%S",
            },
        },
        "handlers": handlers,
        "loggers": loggers,
        "root": {"level": "WARNING", "handlers": names},
    }


def setup_logging(level: str | None = None, log_file: str | None = None) -> dict:
    """Configure logging from the arguments, falling back to the environment."""
    config = build_logging_config(
        level or os.getenv("LOG_LEVEL", "INFO"),
        log_file or os.getenv("LOG_FILE"),
    )
    logging.config.dictConfig(config)
    os.environ.setdefault("PYTHONUNBUFFERED", "1")
    return config
