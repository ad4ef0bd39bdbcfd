"""
Logging for the hook engine.

Hook activity is tagged with the session and hook event it belongs to, via
``extra={"session_id": ..., "hook_event": ...}``. The in-memory ring keeps
those tags so recent activity can be pulled per session.
"""

import logging
import sys
from collections import deque
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from sessionhooks.config import get_settings

# Record attributes copied into ring entries when a caller passes them as extra
CONTEXT_FIELDS = ("session_id", "hook_event")

FILE_LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"


class LogRing:
    """Bounded ring of recent log entries."""

    def __init__(self, maxlen: int = 1000):
        self._entries: deque[dict[str, Any]] = deque(maxlen=maxlen)

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, entry: dict[str, Any]) -> None:
        self._entries.append(entry)

    def recent(
        self,
        limit: int = 100,
        session_id: Optional[str] = None,
        min_level: int = logging.NOTSET,
    ) -> list[dict[str, Any]]:
        """Most recent entries, oldest first, optionally for one session."""
        entries = [
            e for e in self._entries
            if e["levelno"] >= min_level
            and (session_id is None or e.get("session_id") == session_id)
        ]
        return entries[-limit:] if limit < len(entries) else entries

    def clear(self) -> None:
        self._entries.clear()


class RingHandler(logging.Handler):
    """Handler that appends formatted records, with hook context, to a LogRing."""

    def __init__(self, ring: LogRing, level: int = logging.NOTSET):
        super().__init__(level)
        self.ring = ring

    def emit(self, record: logging.LogRecord) -> None:
        try:
            entry = {
                "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
                "level": record.levelname,
                "levelno": record.levelno,
                "logger": record.name,
                "message": self.format(record),
            }
            for field in CONTEXT_FIELDS:
                value = getattr(record, field, None)
                if value is not None:
                    entry[field] = value
            self.ring.append(entry)
        except Exception:
            self.handleError(record)


_ring = LogRing()


def get_log_ring() -> LogRing:
    return _ring


def setup_logging(
    level: Optional[str] = None,
    format_string: Optional[str] = None,
    log_file: Optional[Path] = None,
) -> None:
    """Configure the root logger from settings.

    Console output goes to stderr so stdout stays usable by ``sessionhooks
    hooks list --json`` and friends. When a log file is configured it is
    appended to with timestamped lines.
    """
    settings = get_settings()

    log_level = getattr(logging, (level or settings.log_level).upper())
    console_format = format_string or settings.log_format
    log_file = log_file or settings.log_file

    root = logging.getLogger()
    root.setLevel(log_level)
    root.handlers.clear()

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(logging.Formatter(console_format))
    root.addHandler(console)

    ring_handler = RingHandler(_ring)
    ring_handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(ring_handler)

    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT))
        root.addHandler(file_handler)

    # asyncio reports every subprocess transport at debug level
    logging.getLogger("asyncio").setLevel(logging.WARNING)
