# src/paradoc/logger.py

import logging
import sys
from pathlib import Path
from queue import Queue
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from typing import Union, Optional

LOGGER_NAME = "paradoc"

# --- Custom Log Level for Progress ---
PROGRESS = 25
logging.addLevelName(PROGRESS, "PROGRESS")

def progress(self, msg, *args, **kwargs):
    if self.isEnabledFor(PROGRESS):
        self._log(PROGRESS, msg, args, **kwargs)

logging.Logger.progress = progress


# --- Custom Filters ---
class ExcludeLevelFilter(logging.Filter):
    def __init__(self, levelno: int):
        super().__init__()
        self.levelno = levelno
    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno != self.levelno


class ProgressFormatter(logging.Formatter):
    """Renders PROGRESS records with their phase and counters when present."""
    def format(self, record: logging.LogRecord) -> str:
        msg = super().format(record)
        if record.levelno != PROGRESS:
            return msg
        current = getattr(record, "current", None)
        total = getattr(record, "total", None)
        phase = getattr(record, "phase", None)
        parts = [msg]
        if phase:
            parts.append(f"[{phase}]")
        if current is not None and total:
            parts.append(f"{current}/{total}")
        return " ".join(parts)


# --- Main Configuration Function ---
def setup_logging(
    *,
    level: int = logging.INFO,
    file_path: Optional[Union[str, Path]] = None,
    file_level: Optional[int] = None,
    console: bool = True,
    log_queue: Optional[Queue] = None,
) -> QueueListener:
    """
    Sets up the logging listener architecture.

    OCR worker threads only enqueue records, the listener thread does the
    formatting and I/O.

    Args:
        level: The base logging level for console output.
        file_path: Path to the persistent log file.
        file_level: The logging level for the file.
        console: Also log to stderr.
        log_queue: Queue to use; a new one is created when omitted.

    Returns:
        A QueueListener instance. You must call .start() on it.
    """
    handlers = []

    if console:
        ch = logging.StreamHandler(sys.stderr)
        ch.setLevel(min(level, PROGRESS))
        ch.setFormatter(ProgressFormatter("%(levelname)-8s | %(message)s"))
        handlers.append(ch)

    # File handler
    if file_path:
        fp = Path(file_path)
        fp.parent.mkdir(parents=True, exist_ok=True)
        fh = RotatingFileHandler(fp, maxBytes=5*1024*1024, backupCount=2, encoding="utf-8")
        fh.setLevel(file_level if file_level is not None else level)
        fh.setFormatter(logging.Formatter("%(asctime)s | %(threadName)-22s | %(levelname)-8s | %(message)s"))
        fh.addFilter(ExcludeLevelFilter(PROGRESS))
        handlers.append(fh)

    q = log_queue if log_queue is not None else Queue(-1)
    configure_queue_logging(q, level=min(level, PROGRESS))

    return QueueListener(q, *handlers, respect_handler_level=True)


def configure_queue_logging(log_queue: Queue, level: int = logging.DEBUG):
    """
    Points the package logger at a queue.
    It removes all existing handlers and adds only a QueueHandler.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers.clear()
    logger.addHandler(QueueHandler(log_queue))
    logger.propagate = False
