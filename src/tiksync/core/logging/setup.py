from __future__ import annotations

import logging
from collections import deque
from datetime import datetime, timezone
from pathlib import Path

from pythonjsonlogger import jsonlogger

LOG_PREFIX = "tiksync"
TEXT_FORMAT = "%(asctime)s %(levelname)s [%(correlation_id)s] %(name)s: %(message)s"
JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(correlation_id)s %(message)s"


class CorrelationIdFilter(logging.Filter):
    """Stamps records with the id of the current run (one CLI invocation)."""

    def __init__(self, correlation_id: str):
        super().__init__()
        self._correlation_id = correlation_id

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = self._correlation_id
        return True


def log_paths(log_dir: Path, day: datetime | None = None) -> tuple[Path, Path]:
    """Text and JSON-lines log files for ``day`` (UTC, defaults to today)."""
    stamp = (day or datetime.now(timezone.utc)).strftime("%Y-%m-%d")
    return log_dir / f"{LOG_PREFIX}-{stamp}.log", log_dir / f"{LOG_PREFIX}-{stamp}.jsonl"


def _with_filter(handler: logging.Handler, formatter: logging.Formatter, flt: logging.Filter) -> logging.Handler:
    handler.setFormatter(formatter)
    handler.addFilter(flt)
    return handler


def configure_logging(log_dir: Path, correlation_id: str, level: int = logging.INFO) -> None:
    """Route all logging to stderr, a daily text log and a daily JSON-lines log.

    Existing root handlers are replaced, so calling this again (for example
    once per worker run) does not duplicate output.
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    text_path, json_path = log_paths(log_dir)

    correlation = CorrelationIdFilter(correlation_id)
    text_formatter = logging.Formatter(fmt=TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    json_formatter = jsonlogger.JsonFormatter(fmt=JSON_FORMAT)

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        if isinstance(handler, logging.FileHandler):
            handler.close()
    root.setLevel(level)

    root.addHandler(_with_filter(logging.StreamHandler(), text_formatter, correlation))
    root.addHandler(_with_filter(logging.FileHandler(text_path, encoding="utf-8"), text_formatter, correlation))
    root.addHandler(_with_filter(logging.FileHandler(json_path, encoding="utf-8"), json_formatter, correlation))

    # requests/urllib3 log every connection at DEBUG
    logging.getLogger("urllib3").setLevel(max(level, logging.WARNING))


def get_logger(name: str, correlation_id: str) -> logging.LoggerAdapter:
    return logging.LoggerAdapter(logging.getLogger(name), extra={"correlation_id": correlation_id})


def latest_log_file(log_dir: Path) -> Path | None:
    candidates = sorted(log_dir.glob(f"{LOG_PREFIX}-*.log"))
    return candidates[-1] if candidates else None


def tail_log(log_dir: Path, lines: int = 200) -> list[str]:
    """Return the last ``lines`` lines of the newest text log, oldest first."""
    path = latest_log_file(log_dir)
    if path is None or lines <= 0:
        return []
    with path.open("r", encoding="utf-8", errors="replace") as fh:
        return [line.rstrip("\n") for line in deque(fh, maxlen=lines)]
