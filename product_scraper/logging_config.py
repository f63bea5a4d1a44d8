"""Structured logging: human-readable console output plus JSON log files."""

import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from pythonjsonlogger import jsonlogger

from product_scraper.config import settings

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
JSON_FORMAT = "%(timestamp)s %(level)s %(name)s %(message)s"

# Chatty third-party loggers and the level they are capped at
NOISY_LOGGERS = {
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "aiosqlite": logging.WARNING,
}


class ScraperJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter adding timestamp, level and code location fields."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = (
            datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat()
            .replace("+00:00", "Z")
        )
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["location"] = f"{record.filename}:{record.lineno}:{record.funcName}"


def _file_handler(path: Path, level: int, formatter: logging.Formatter) -> logging.Handler:
    # 10 MB per file, five backups
    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(base_dir: Optional[Union[str, Path]] = None) -> logging.Logger:
    """Configure root logging for a scrape run.

    Args:
        base_dir: Directory that receives the logs/ folder. Falls back to
                  settings.log_dir, then the current working directory.
    """
    base = base_dir or settings.log_dir
    logs_dir = (Path(base) if base else Path.cwd()) / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    root_logger.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    root_logger.addHandler(console)

    json_formatter = ScraperJsonFormatter(JSON_FORMAT)
    root_logger.addHandler(_file_handler(logs_dir / "app.log", logging.DEBUG, json_formatter))
    root_logger.addHandler(_file_handler(logs_dir / "error.log", logging.ERROR, json_formatter))

    if not settings.debug:
        for name, level in NOISY_LOGGERS.items():
            logging.getLogger(name).setLevel(level)

    return root_logger


class ContextLoggerAdapter(logging.LoggerAdapter):
    """Adapter attaching fixed context (site, url) to every record.

    Extra fields passed on an individual call win over the fixed context.
    """

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def get_logger(name: str, **context) -> ContextLoggerAdapter:
    """
    Get a logger bound to context fields.

    Args:
        name: Logger name (usually __name__)
        **context: Fields added to each record (e.g. site='amazon', url=...)
    """
    return ContextLoggerAdapter(logging.getLogger(name), context)
