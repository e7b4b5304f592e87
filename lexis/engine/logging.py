"""
Lexis Logging — Structured JSON file-based logging with async queue.

Implements:
- configure_logging: stdlib logging level/format from LoggingConfig
- FileLogger: Per-category log files (daily rotation)
- AsyncLogQueue: In-memory queue with background flush (100ms / 50 entries)
- Log entry builders for configuration, fetch and lookup events

Files: <directory>/<category>/<YYYY-MM-DD>.jsonl
"""

from __future__ import annotations

import json
import logging
import threading
from collections import defaultdict
from datetime import date, datetime, timezone
from pathlib import Path
from queue import Empty, Full, Queue
from typing import Any, Dict, List, Optional

logger = logging.getLogger("lexis.engine.logging")

LOG_CATEGORIES = ("configuration", "fetch", "lookup")


class LogEntry:
    """A structured log entry destined for a specific category file."""

    __slots__ = ("category", "data")

    def __init__(self, category: str, data: Dict[str, Any]):
        self.category = category
        self.data = data

    def to_json(self) -> str:
        return json.dumps(self.data, default=str, separators=(",", ":"))


class FileLogger:
    """
    Writes structured JSON log entries to per-category files.
    Files rotate daily: logs/{category}/{YYYY-MM-DD}.jsonl

    Thread-safe — uses a lock per file path.
    """

    def __init__(self, log_dir: str = "logs"):
        self._log_dir = Path(log_dir)
        self._file_locks: Dict[str, threading.Lock] = defaultdict(threading.Lock)
        for category in LOG_CATEGORIES:
            (self._log_dir / category).mkdir(parents=True, exist_ok=True)

    def write(self, entry: LogEntry) -> None:
        """Write a single log entry to the appropriate file."""
        self.write_batch([entry])

    def write_batch(self, entries: List[LogEntry]) -> None:
        """Write a batch of log entries, grouping by file path."""
        grouped: Dict[str, List[LogEntry]] = defaultdict(list)
        for entry in entries:
            grouped[str(self._resolve_path(entry.category))].append(entry)

        for file_path, batch in grouped.items():
            with self._file_locks[file_path]:
                with open(file_path, "a", encoding="utf-8") as f:
                    for entry in batch:
                        f.write(entry.to_json())
                        f.write("\n")

    def _resolve_path(self, category: str) -> Path:
        """Resolve the log file path for today's date."""
        if category not in LOG_CATEGORIES:
            category = "configuration"
        return self._log_dir / category / f"{date.today().isoformat()}.jsonl"

    @property
    def log_dir(self) -> Path:
        return self._log_dir

    def read(self, category: str, day: Optional[date] = None) -> List[Dict[str, Any]]:
        """Read back the entries of one category for one day (default today)."""
        day = day or date.today()
        path = self._log_dir / category / f"{day.isoformat()}.jsonl"
        if not path.exists():
            return []
        entries: List[Dict[str, Any]] = []
        with open(path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    entries.append(json.loads(line))
                except json.JSONDecodeError:
                    continue
        return entries


class AsyncLogQueue:
    """
    Bounded buffer between the asyncio side and FileLogger.

    push() never blocks; a full buffer drops the entry. A daemon thread waits
    up to flush_interval_ms for the first entry, then takes whatever else is
    already buffered (at most flush_batch_size) and writes it in one go.
    stop() writes everything still buffered.
    """

    def __init__(
        self,
        file_logger: FileLogger,
        flush_interval_ms: int = 100,
        flush_batch_size: int = 50,
        max_queue_size: int = 10000,
    ):
        self._file_logger = file_logger
        self._interval = flush_interval_ms / 1000.0
        self._batch_size = flush_batch_size
        self._queue: Queue[LogEntry] = Queue(maxsize=max_queue_size)
        self._stopping = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._dropped_count = 0

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stopping.clear()
        self._thread = threading.Thread(target=self._run, name="lexis-log-flush", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        self._stopping.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
        self._write(self._take_all())
        if self._dropped_count:
            logger.warning(f"{self._dropped_count} log entries dropped (queue full)")

    def push(self, entry: LogEntry) -> bool:
        """Returns False when the entry was dropped."""
        try:
            self._queue.put_nowait(entry)
        except Full:
            self._dropped_count += 1
            return False
        return True

    def _run(self) -> None:
        while not self._stopping.is_set():
            try:
                first = self._queue.get(timeout=self._interval)
            except Empty:
                continue
            batch = [first]
            while len(batch) < self._batch_size:
                try:
                    batch.append(self._queue.get_nowait())
                except Empty:
                    break
            self._write(batch)

    def _take_all(self) -> List[LogEntry]:
        batch: List[LogEntry] = []
        while True:
            try:
                batch.append(self._queue.get_nowait())
            except Empty:
                return batch

    def _write(self, batch: List[LogEntry]) -> None:
        if not batch:
            return
        try:
            self._file_logger.write_batch(batch)
        except OSError as e:
            logger.error(f"Could not write {len(batch)} log entries: {e}")

    @property
    def pending_count(self) -> int:
        return self._queue.qsize()

    @property
    def dropped_count(self) -> int:
        return self._dropped_count


# ---------------------------------------------------------------------------
# Log Entry Builders
# ---------------------------------------------------------------------------

def _base_entry(event: str, level: str, **extra: Any) -> Dict[str, Any]:
    """Build a base log entry with common fields."""
    entry: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": level,
        "event": event,
    }
    entry.update({k: v for k, v in extra.items() if v is not None})
    return entry


def log_configuration_event(
    event: str,
    message: str,
    language: Optional[str] = None,
    source: Optional[str] = None,
    error: Optional[Dict[str, Any]] = None,
) -> LogEntry:
    """Build a configuration pipeline log entry (one per diagnostic event)."""
    data = _base_entry(
        event=event,
        level="ERROR" if error or "fail" in event else "INFO",
        message=message,
        language=language,
        source=source,
        error=error,
    )
    return LogEntry("configuration", data)


def log_fetch(
    language: str,
    url: str,
    status_code: Optional[int],
    duration_ms: float,
    success: bool,
    error: Optional[str] = None,
) -> LogEntry:
    """Build a remote fetch log entry."""
    data = _base_entry(
        event="translation_fetched" if success else "translation_fetch_failed",
        level="INFO" if success else "ERROR",
        language=language,
        url=url,
        status_code=status_code,
        duration_ms=round(duration_ms, 2),
        success=success,
        error=error,
    )
    return LogEntry("fetch", data)


def log_lookup_failure(
    label: Any,
    language: Optional[str],
    error: Dict[str, Any],
) -> LogEntry:
    """Build a lookup failure log entry."""
    data = _base_entry(
        event="lookup_failed",
        level="WARNING",
        label=str(label),
        language=language,
        error=error,
    )
    return LogEntry("lookup", data)


# ---------------------------------------------------------------------------
# Setup + Global Log Queue Singleton
# ---------------------------------------------------------------------------

_global_queue: Optional[AsyncLogQueue] = None


def configure_logging(config: Any) -> Optional[AsyncLogQueue]:
    """
    Apply a LoggingConfig: stdlib level/format for the ``lexis`` logger tree,
    and the JSONL file queue when a directory is configured.

    Args:
        config: lexis.engine.config.LoggingConfig
    """
    root = logging.getLogger("lexis")
    root.setLevel(getattr(logging, config.level, logging.INFO))
    # Host applications that already configured logging keep their handlers
    if not root.handlers and not logging.getLogger().handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(config.format))
        root.addHandler(handler)

    if config.directory:
        return init_logging(
            log_dir=config.directory,
            flush_interval_ms=config.flush_interval_ms,
            flush_batch_size=config.flush_batch_size,
            max_queue_size=config.max_queue_size,
        )
    return None


def init_logging(
    log_dir: str = "logs",
    flush_interval_ms: int = 100,
    flush_batch_size: int = 50,
    max_queue_size: int = 10000,
) -> AsyncLogQueue:
    """Initialize the global async log queue."""
    global _global_queue
    if _global_queue is not None:
        _global_queue.stop()
    _global_queue = AsyncLogQueue(
        file_logger=FileLogger(log_dir=log_dir),
        flush_interval_ms=flush_interval_ms,
        flush_batch_size=flush_batch_size,
        max_queue_size=max_queue_size,
    )
    _global_queue.start()
    return _global_queue


def get_log_queue() -> Optional[AsyncLogQueue]:
    return _global_queue


def log(entry: LogEntry) -> bool:
    """Push a log entry to the global queue. Non-blocking."""
    if _global_queue is None:
        return False
    return _global_queue.push(entry)


def shutdown_logging() -> None:
    """Flush and stop the global log queue."""
    global _global_queue
    if _global_queue:
        _global_queue.stop()
        _global_queue = None
