"""Capture femtologging output emitted by one module logger."""

from __future__ import annotations

import contextlib
import dataclasses
import threading
import time
import typing as typ

from femtologging import get_logger


@dataclasses.dataclass(frozen=True, slots=True)
class CapturedLine:
    """One log line delivered by the femtologging worker."""

    level: str
    message: str
    exc_info: object | None = None

    @property
    def is_warning(self) -> bool:
        """Return whether the line was logged at warning level."""
        return self.level in {"WARN", "WARNING"}


class LineCollector:
    """femtologging handler that stores lines and lets tests wait for them."""

    def __init__(self) -> None:
        """Start empty."""
        self.lines: list[CapturedLine] = []
        self._ready = threading.Condition()

    def handle(self, logger: str, level: str, message: str) -> None:
        """Receive a plain record from the worker thread."""
        del logger
        self._store(CapturedLine(level=str(level), message=message))

    def handle_record(self, record: dict[str, object]) -> None:
        """Receive a structured record from the worker thread."""
        self._store(
            CapturedLine(
                level=str(record.get("level", "")),
                message=str(record.get("message", "")),
                exc_info=record.get("exc_info"),
            )
        )

    def _store(self, line: CapturedLine) -> None:
        with self._ready:
            self.lines.append(line)
            self._ready.notify_all()

    def wait_for(self, count: int, timeout: float = 1.0) -> list[CapturedLine]:
        """Block until ``count`` lines arrived and return them."""
        deadline = time.monotonic() + timeout
        with self._ready:
            while len(self.lines) < count:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self._ready.wait(timeout=remaining)
        assert len(self.lines) >= count, (
            f"expected {count} log lines, got {len(self.lines)}"
        )
        return list(self.lines)

    def containing(self, needle: str) -> list[CapturedLine]:
        """Return captured lines whose message contains ``needle``."""
        return [line for line in self.lines if needle in line.message]


@contextlib.contextmanager
def collect_logs(logger_name: str) -> typ.Iterator[LineCollector]:
    """Route every record of ``logger_name`` into a :class:`LineCollector`."""
    logger = get_logger(logger_name)
    previous_level = logger.level
    previous_propagate = logger.propagate
    collector = LineCollector()

    logger.set_level("TRACE")
    logger.set_propagate(False)
    logger.add_handler(collector)
    try:
        yield collector
    finally:
        logger.remove_handler(collector)
        logger.set_level(previous_level)
        logger.set_propagate(previous_propagate)
