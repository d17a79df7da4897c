"""
Logging setup for the extractor.

Passes log through a PassLogger so each line carries the pass name. When
passes run in worker processes their records travel back to the parent
over a queue (QueueHandler in the worker, QueueListener in the parent).
"""
from __future__ import annotations

import logging
import logging.handlers
from typing import Callable, Optional

CONSOLE_FORMAT = "%(levelname)-7s [%(pass_name)s] %(message)s"

LogCallback = Callable[[str, str, str], None]


class PassLogger(logging.LoggerAdapter):
    """Logger adapter that stamps records with the pass they came from."""

    def __init__(self, logger: logging.Logger, pass_name: str):
        super().__init__(logger, {'pass_name': pass_name})

    def process(self, msg, kwargs):
        extra = dict(kwargs.get('extra') or {})
        extra.setdefault('pass_name', self.extra['pass_name'])
        kwargs['extra'] = extra
        return msg, kwargs


class _PassNameFilter(logging.Filter):
    """Fill in pass_name for records that did not come through a PassLogger."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, 'pass_name'):
            record.pass_name = '-'
        return True


class CallbackHandler(logging.Handler):
    """
    Forward records to a (pass_name, level, message) callback.

    This is the one-way event stream an outer UI subscribes to.
    """

    def __init__(self, callback: LogCallback, level: int = logging.INFO):
        super().__init__(level)
        self.callback = callback
        self.addFilter(_PassNameFilter())

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.callback(record.pass_name, record.levelname, record.getMessage())
        except Exception:
            self.handleError(record)


def get_pass_logger(pass_name: str) -> PassLogger:
    return PassLogger(logging.getLogger(f"parsers.{pass_name}"), pass_name)


def build_console_handler(level: int | str = logging.INFO) -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    handler.addFilter(_PassNameFilter())
    return handler


def setup_logging(
    level: int | str = logging.INFO,
    callback: Optional[LogCallback] = None,
) -> list[logging.Handler]:
    """
    Configure the root logger for a CLI run.

    Returns the installed handlers so a QueueListener can reuse them.
    """
    root = logging.getLogger()
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handlers = [build_console_handler(level)]
    if callback is not None:
        handlers.append(CallbackHandler(callback, level))
    for handler in handlers:
        root.addHandler(handler)
    return handlers


def configure_worker_logging(queue, level: int | str = logging.INFO) -> None:
    """Process-pool initializer: route every record to the parent's queue."""
    root = logging.getLogger()
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.addHandler(logging.handlers.QueueHandler(queue))


def start_queue_listener(queue, handlers: list[logging.Handler]) -> logging.handlers.QueueListener:
    listener = logging.handlers.QueueListener(queue, *handlers, respect_handler_level=True)
    listener.start()
    return listener
