"""Logging for driver code.

Drivers only obtain loggers; the host application decides where records go.
A host that wants the package format calls :func:`configure_logging` once at
startup. Records emitted inside :func:`connection_context` carry the id of the
connection that produced them.
"""
import logging
import json
import contextvars
from contextlib import contextmanager
from typing import Optional

_connection_id_ctx = contextvars.ContextVar("connection_id", default=None)


class ConnectionContextFilter(logging.Filter):
    """Stamps each record with the id of the connection it was logged for."""

    def filter(self, record):
        record.connection_id = _connection_id_ctx.get()
        return True


@contextmanager
def connection_context(connection_id: Optional[str]):
    """Attribute every record logged inside the block to ``connection_id``."""
    token = _connection_id_ctx.set(connection_id)
    try:
        yield
    finally:
        _connection_id_ctx.reset(token)


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with ``connection_id`` when one is bound."""

    _standard_attrs = {
        "args", "asctime", "created", "exc_info", "exc_text", "filename",
        "funcName", "levelname", "levelno", "lineno", "module",
        "msecs", "message", "msg", "name", "pathname", "process",
        "processName", "relativeCreated", "stack_info", "thread", "threadName",
        "taskName", "connection_id",
    }

    def format(self, record: logging.LogRecord) -> str:
        log_record = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }

        if getattr(record, "connection_id", None):
            log_record["connection_id"] = record.connection_id

        for key, value in record.__dict__.items():
            if key not in self._standard_attrs and not key.startswith("_"):
                log_record[key] = value

        return json.dumps(log_record, default=str)


def configure_logging(level: str = "INFO", json_format: bool = False):
    """Install a single stream handler on the root logger.

    Replaces any handlers already installed, so it is meant for hosts that
    hand logging over to this package; driver code never calls it.

    Args:
        level (str): The logging level (default: INFO).
        json_format (bool): Whether to use JSON formatting (default: False).
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.addFilter(ConnectionContextFilter())

    if json_format:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s - [%(connection_id)s] - %(name)s - %(levelname)s - %(message)s"
        ))

    root_logger.addHandler(handler)

    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Logger for a driver channel, e.g. ``dbtools_driver_sdk.driver.sqlite``."""
    return logging.getLogger(name)
