"""
Progress Sinks
==============

One-way consumers of ProgressEvents. The runner never reads anything back
from a sink; sinks should stay fast (or buffer) since events are delivered
synchronously with each transition.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Iterable, Protocol, runtime_checkable

from .models import ProgressEvent

logger = logging.getLogger(__name__)


@runtime_checkable
class ProgressSink(Protocol):
    def on_event(self, event: ProgressEvent) -> None: ...


class InMemoryProgressSink:
    """Collects events in arrival order. Safe to share between plans."""

    def __init__(self) -> None:
        self._events: list[ProgressEvent] = []
        self._lock = threading.Lock()

    def on_event(self, event: ProgressEvent) -> None:
        with self._lock:
            self._events.append(event)

    @property
    def events(self) -> list[ProgressEvent]:
        with self._lock:
            return list(self._events)

    def for_plan(self, plan_id: str) -> list[ProgressEvent]:
        return [event for event in self.events if event.plan_id == plan_id]


class LoggingProgressSink:
    def __init__(self, log: logging.Logger | None = None, level: int = logging.INFO):
        self.log = log or logger
        self.level = level

    def on_event(self, event: ProgressEvent) -> None:
        message = f" - {event.message}" if event.message else ""
        self.log.log(
            self.level,
            f"[{event.plan_id[:8]}] {event.step_id} {event.tool_name}: "
            f"{event.from_status.value} -> {event.status.value}{message}",
        )


class FileProgressSink:
    """Appends one line per event to a plain-text progress file."""

    HEADER = "# Plan Progress\n# Timestamp (UTC) | Step | Transition | Message\n"

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def on_event(self, event: ProgressEvent) -> None:
        line = (
            f"{event.timestamp.isoformat()} | {event.step_id} | "
            f"{event.from_status.value} -> {event.status.value} | {event.message or ''}\n"
        )
        with self._lock:
            try:
                if not self.path.exists():
                    self.path.parent.mkdir(parents=True, exist_ok=True)
                    self.path.write_text(self.HEADER, encoding="utf-8")
                with self.path.open("a", encoding="utf-8") as handle:
                    handle.write(line)
            except OSError as exc:
                logger.debug(f"Failed to append {self.path}: {exc}")


class CompositeProgressSink:
    def __init__(self, sinks: Iterable[ProgressSink]):
        self.sinks = list(sinks)

    def on_event(self, event: ProgressEvent) -> None:
        for sink in self.sinks:
            try:
                sink.on_event(event)
            except Exception as exc:
                logger.warning(f"Progress sink {type(sink).__name__} failed: {exc}")
