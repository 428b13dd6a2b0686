"""
Leveled progress reporting for clustering runs.

A reporter receives (level, message) pairs and decides whether to emit them
based on its threshold level. The engine only ever calls ``report`` and never
branches on the result, so reporting is purely observational.

Reporter types:
- SilentReporter: drops everything (used when the caller passes no reporter)
- StreamReporter: prints "[LEVEL] message" lines to a text stream
- JsonlReporter: single JSONL file with typed, timestamped events
- TeeReporter: fans out to several reporters
"""

from __future__ import annotations

import json
import sys
import threading
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Optional, TextIO


class LogLevel(Enum):
    """Severity levels, ordered by their integer severity."""

    ALL = -(2 ** 31)
    TRACE = 0
    DEBUG = 1
    INFO = 2
    WARN = 3
    ERROR = 4
    FATAL = 5
    NONE = 2 ** 31 - 1

    @classmethod
    def parse(cls, value) -> LogLevel:
        """Accept a LogLevel or its (case-insensitive) name."""
        if isinstance(value, LogLevel):
            return value
        try:
            return cls[str(value).upper()]
        except KeyError:
            names = ", ".join(level.name for level in cls)
            raise ValueError(f"Unknown log level {value!r}. Expected one of: {names}") from None


class Reporter:
    """
    Base reporter with a threshold level.

    Subclasses implement ``_emit``; ``report`` filters by level first.
    """

    def __init__(self, level: LogLevel = LogLevel.NONE):
        self.level = LogLevel.parse(level)

    def is_enabled(self, level: LogLevel) -> bool:
        return level.value >= self.level.value

    def report(self, level: LogLevel, message: str) -> None:
        if self.is_enabled(level):
            self._emit(level, message)

    def _emit(self, level: LogLevel, message: str) -> None:
        raise NotImplementedError

    def trace(self, message: str) -> None:
        self.report(LogLevel.TRACE, message)

    def debug(self, message: str) -> None:
        self.report(LogLevel.DEBUG, message)

    def info(self, message: str) -> None:
        self.report(LogLevel.INFO, message)

    def warn(self, message: str) -> None:
        self.report(LogLevel.WARN, message)

    def error(self, message: str) -> None:
        self.report(LogLevel.ERROR, message)

    def fatal(self, message: str) -> None:
        self.report(LogLevel.FATAL, message)

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class SilentReporter(Reporter):
    """Reporter that ignores every message."""

    def __init__(self):
        super().__init__(LogLevel.NONE)

    def report(self, level: LogLevel, message: str) -> None:
        pass

    def _emit(self, level: LogLevel, message: str) -> None:
        pass


class StreamReporter(Reporter):
    """Prints one line per message to a text stream (stdout by default)."""

    def __init__(self, stream: Optional[TextIO] = None, level: LogLevel = LogLevel.INFO):
        super().__init__(level)
        self.stream = stream if stream is not None else sys.stdout
        self._lock = threading.Lock()

    def _emit(self, level: LogLevel, message: str) -> None:
        with self._lock:
            print(f"[{level.name}] {message}", file=self.stream, flush=True)


class JsonlReporter(Reporter):
    """
    Writes typed events to a JSONL file.

    Every message becomes a ``report`` event; callers can also write their own
    typed events (e.g. run_start / run_end) through ``log_event``.
    """

    def __init__(self, path: Path, level: LogLevel = LogLevel.DEBUG):
        """
        Initialize reporter.

        Args:
            path: JSONL file to append to (parent directories are created)
            level: Threshold level for ``report`` calls
        """
        super().__init__(level)
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

        # Open file in append mode
        self.file_handle = open(self.path, 'a')

    def _write_event(self, event_type: str, data: dict[str, Any]) -> None:
        """Write typed event to JSONL log."""
        event = {
            "type": event_type,
            "timestamp": datetime.now().isoformat(),
            **data
        }
        with self._lock:
            self.file_handle.write(json.dumps(event) + '\n')
            self.file_handle.flush()  # Ensure streaming writes

    def _emit(self, level: LogLevel, message: str) -> None:
        self._write_event("report", {"level": level.name, "message": message})

    def log_event(self, event_type: str, **data: Any) -> None:
        """Write an arbitrary typed event, bypassing the level threshold."""
        self._write_event(event_type, data)

    def close(self) -> None:
        """Close log file."""
        if getattr(self, 'file_handle', None) and not self.file_handle.closed:
            self.file_handle.close()


class TeeReporter(Reporter):
    """Forwards every enabled message to each wrapped reporter."""

    def __init__(self, *reporters: Reporter, level: LogLevel = LogLevel.ALL):
        super().__init__(level)
        self.reporters = list(reporters)

    def _emit(self, level: LogLevel, message: str) -> None:
        for reporter in self.reporters:
            reporter.report(level, message)

    def close(self) -> None:
        for reporter in self.reporters:
            reporter.close()


_SILENT = SilentReporter()


class Reporters:
    """Factory helpers for the common reporter setups."""

    @staticmethod
    def silent() -> Reporter:
        return _SILENT

    @staticmethod
    def stdout(level: LogLevel = LogLevel.INFO) -> Reporter:
        return StreamReporter(sys.stdout, level)

    @staticmethod
    def stream(stream: TextIO, level: LogLevel = LogLevel.INFO) -> Reporter:
        return StreamReporter(stream, level)

    @staticmethod
    def jsonl(path: Path, level: LogLevel = LogLevel.DEBUG) -> Reporter:
        return JsonlReporter(path, level)

    @staticmethod
    def tee(*reporters: Reporter) -> Reporter:
        return TeeReporter(*reporters)


def resolve_reporter(reporter: Optional[Reporter]) -> Reporter:
    """Substitute the silent reporter for a missing one."""
    return reporter if reporter is not None else _SILENT
