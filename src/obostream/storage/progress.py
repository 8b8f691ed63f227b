"""
Progress reporting for OBO parse runs.

Provides:
- The observer protocol the parser reports to
- A wall-clock throttle so observers are not flooded
- Ready-made observers that record or log progress
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple, runtime_checkable

logger = logging.getLogger(__name__)

# Minimum wall-clock time between two progress reports
DEFAULT_PROGRESS_INTERVAL = 0.25


@runtime_checkable
class ProgressObserver(Protocol):
    """Receives progress of a parse run."""

    def init(self, total_bytes: int) -> None:
        """Called once before parsing starts."""
        ...

    def update(self, processed_bytes: int, terms: int) -> None:
        """Called periodically, and once more after the pass completes."""
        ...


class ProgressThrottle:
    """
    Rate-limited side channel to a ProgressObserver.

    Reports are plain synchronous calls guarded by an elapsed-time check.
    The first report always goes through. Observer failures are logged and
    dropped so a misbehaving observer cannot abort a parse.
    """

    def __init__(
        self,
        observer: Optional[ProgressObserver],
        interval_seconds: float = DEFAULT_PROGRESS_INTERVAL,
        clock: Callable[[], float] = time.monotonic
    ):
        self.observer = observer
        self.interval_seconds = interval_seconds
        self._clock = clock
        self._last: Optional[float] = None
        self.reports = 0

    @property
    def enabled(self) -> bool:
        return self.observer is not None

    def init(self, total_bytes: int) -> None:
        if self.observer is None:
            return
        try:
            self.observer.init(total_bytes)
        except Exception as e:
            logger.debug(f"Progress observer failed in init: {e}")

    def due(self) -> bool:
        """
        Check the interval and start a new one if it has elapsed.

        Callers that do work to build a report check this first and then
        call ``report``.
        """
        if self.observer is None:
            return False
        now = self._clock()
        if self._last is not None and now - self._last <= self.interval_seconds:
            return False
        self._last = now
        return True

    def maybe_update(self, processed_bytes: int, terms: int) -> bool:
        """Report if the interval has elapsed. Returns True if reported."""
        if not self.due():
            return False
        self.report(processed_bytes, terms)
        return True

    def finish(self, total_bytes: int, terms: int) -> None:
        """Unthrottled final report."""
        if self.observer is None:
            return
        self.report(total_bytes, terms)

    def report(self, processed_bytes: int, terms: int) -> None:
        self.reports += 1
        try:
            self.observer.update(processed_bytes, terms)
        except Exception as e:
            logger.debug(f"Progress observer failed in update: {e}")


@dataclass
class ParseProgress:
    """Progress snapshot of a parse run."""
    total_bytes: int = 0
    processed_bytes: int = 0
    terms: int = 0
    started_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def byte_progress(self) -> float:
        if self.total_bytes == 0:
            return 0.0
        return (self.processed_bytes / self.total_bytes) * 100

    @property
    def elapsed_seconds(self) -> float:
        if not self.started_at:
            return 0.0
        end = self.updated_at or datetime.now()
        return (end - self.started_at).total_seconds()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_bytes": self.total_bytes,
            "processed_bytes": self.processed_bytes,
            "terms": self.terms,
            "byte_progress": self.byte_progress,
            "elapsed_seconds": self.elapsed_seconds,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None
        }


class ProgressRecorder:
    """Observer that keeps the latest ParseProgress and every update seen."""

    def __init__(self):
        self.progress = ParseProgress()
        self.history: List[Tuple[int, int]] = []
        self.init_calls = 0

    def init(self, total_bytes: int) -> None:
        self.init_calls += 1
        self.progress = ParseProgress(total_bytes=total_bytes, started_at=datetime.now())
        self.history = []

    def update(self, processed_bytes: int, terms: int) -> None:
        self.progress.processed_bytes = processed_bytes
        self.progress.terms = terms
        self.progress.updated_at = datetime.now()
        self.history.append((processed_bytes, terms))


class LoggingProgressObserver:
    """Observer that logs percentage and term count at info level."""

    def __init__(self, label: str = "obo"):
        self.label = label
        self.total_bytes = 0

    def init(self, total_bytes: int) -> None:
        self.total_bytes = total_bytes
        logger.info(f"Parsing {self.label} ({total_bytes} bytes)")

    def update(self, processed_bytes: int, terms: int) -> None:
        if self.total_bytes:
            percent = processed_bytes * 100 / self.total_bytes
            logger.info(f"{self.label}: {percent:.1f}% read, {terms} terms")
        else:
            logger.info(f"{self.label}: {processed_bytes} bytes read, {terms} terms")
