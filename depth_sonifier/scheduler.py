"""Timed scan choreographies over a populated depth grid."""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol, Tuple

from .depth_grid import DepthGrid
from .state import ScanKind, ScanState
from .voice_engine import VoiceEngine

LOGGER = logging.getLogger(__name__)

DEFAULT_SCAN_DURATION_S = 5.0

RowHighlightFn = Callable[[Optional[int], float], None]
CompleteFn = Callable[[], None]


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class Clock(Protocol):
    """Delayed-callback facility the scheduler runs on."""

    def now(self) -> float:
        ...

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        ...


@dataclass(order=True)
class _Event:
    due: float
    seq: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class ManualClock:
    """Logical clock with a pending-event queue, advanced explicitly."""

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._queue: List[_Event] = []
        self._counter = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> _Event:
        event = _Event(self._now + max(0.0, delay), next(self._counter), callback)
        heapq.heappush(self._queue, event)
        return event

    @property
    def pending(self) -> int:
        return sum(1 for event in self._queue if not event.cancelled)

    def advance(self, seconds: float) -> int:
        """Move time forward, firing due events in order. Returns the number fired."""
        if seconds < 0:
            raise ValueError("ManualClock cannot move backwards")
        target = self._now + seconds
        fired = 0
        while self._queue and self._queue[0].due <= target:
            event = heapq.heappop(self._queue)
            if event.cancelled:
                continue
            self._now = event.due
            event.callback()
            fired += 1
        self._now = target
        return fired


class AsyncioClock:
    """Clock backed by an asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop or asyncio.get_running_loop()

    def now(self) -> float:
        return self._loop.time()

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self._loop.call_later(delay, callback)


def scan_velocity(normalized_depth: float) -> float:
    """Closer cells play louder: 1.0 at depth 0.0, 0.5 at depth 1.0."""
    return 0.5 + 0.5 * (1.0 - normalized_depth)


class ScanScheduler:
    """Runs one sweep at a time over ``grid`` through ``engine``.

    Each sweep schedules one trigger per row, bottom row first, at
    ``i * duration / rows`` and a teardown at ``duration``. Cancelling, or
    starting another sweep, cancels the pending events, silences every sector
    and returns to idle before anything else fires.
    """

    def __init__(
        self,
        grid: DepthGrid,
        engine: VoiceEngine,
        clock: Clock,
        duration: float = DEFAULT_SCAN_DURATION_S,
    ) -> None:
        if duration <= 0:
            raise ValueError("Scan duration must be greater than zero")
        self._grid = grid
        self._engine = engine
        self._clock = clock
        self._duration = duration
        self._state = ScanState()
        self._handles: List[TimerHandle] = []
        self._on_row: Optional[RowHighlightFn] = None
        self._on_complete: Optional[CompleteFn] = None
        self._highlight: Tuple[Optional[int], float] = (None, 0.0)

    @property
    def state(self) -> ScanState:
        return self._state

    @property
    def active(self) -> bool:
        return self._state.active

    @property
    def duration(self) -> float:
        return self._duration

    @property
    def highlight(self) -> Tuple[Optional[int], float]:
        """Currently highlighted ``(row, intensity)``."""
        return self._highlight

    def start_sequential(
        self,
        column: Optional[int] = None,
        on_row_highlighted: Optional[RowHighlightFn] = None,
        on_complete: Optional[CompleteFn] = None,
        duration: Optional[float] = None,
    ) -> None:
        """Sweep a single column (the centre one by default) bottom to top.

        An out-of-range column or a non-positive duration is logged and ignored;
        a sweep already running keeps going.
        """
        if column is None:
            column = self._grid.columns // 2
        if not 0 <= column < self._grid.columns:
            LOGGER.warning("Ignoring scan of column %s; grid has %d columns", column, self._grid.columns)
            return
        if not self._valid_duration(duration):
            return
        self._begin(ScanKind.SEQUENTIAL, on_row_highlighted, on_complete)
        self._schedule(lambda row: self._trigger_cell(row, column), duration)

    def start_simultaneous(
        self,
        on_row_highlighted: Optional[RowHighlightFn] = None,
        on_complete: Optional[CompleteFn] = None,
        duration: Optional[float] = None,
    ) -> None:
        """Sweep every column of each row together, bottom to top."""
        if not self._valid_duration(duration):
            return
        self._begin(ScanKind.SIMULTANEOUS, on_row_highlighted, on_complete)
        self._schedule(self._trigger_row, duration)

    def cancel(self) -> None:
        """Abort the running sweep without invoking its completion callback."""
        if not self._state.active:
            self._engine.stop_all_notes()
            return
        LOGGER.info(
            "Cancelling %s scan after %.2fs",
            self._state.kind.value,
            self._state.elapsed(self._clock.now()),
        )
        self._teardown()

    # Internal helpers -----------------------------------------------------

    @staticmethod
    def _valid_duration(duration: Optional[float]) -> bool:
        if duration is not None and duration <= 0:
            LOGGER.warning("Ignoring scan with non-positive duration %.2fs", duration)
            return False
        return True

    def _begin(
        self,
        kind: ScanKind,
        on_row: Optional[RowHighlightFn],
        on_complete: Optional[CompleteFn],
    ) -> None:
        if self._state.active:
            LOGGER.info("Replacing running %s scan", self._state.kind.value)
            self._teardown()
        self._engine.stop_all_notes()
        self._state.kind = kind
        self._state.started_at = self._clock.now()
        self._on_row = on_row
        self._on_complete = on_complete
        LOGGER.info("Starting %s scan over %d rows", kind.value, self._grid.rows)

    def _schedule(self, trigger: Callable[[int], None], duration: Optional[float]) -> None:
        total = self._duration if duration is None else duration
        rows = self._grid.rows
        slot = total / rows
        generation = self._state.generation

        def guarded(fn: Callable[[], None]) -> Callable[[], None]:
            def run() -> None:
                if self._state.generation != generation or not self._state.active:
                    return
                fn()

            return run

        for i in range(rows):
            row = rows - 1 - i
            self._handles.append(
                self._clock.call_later(i * slot, guarded(lambda row=row: self._advance(row, trigger)))
            )
        self._handles.append(self._clock.call_later(total, guarded(self._finish)))

    def _advance(self, row: int, trigger: Callable[[int], None]) -> None:
        self._state.row_cursor = row
        trigger(row)

    def _trigger_cell(self, row: int, column: int) -> None:
        depth = self._grid.normalized_depth(row, column)
        if depth is None:
            return
        velocity = scan_velocity(depth)
        # Highlight last: the callback may cancel the sweep.
        self._engine.play_note_for_depth(depth, column, velocity)
        self._set_highlight(row, velocity)

    def _trigger_row(self, row: int) -> None:
        self._engine.stop_all_notes()
        intensity = 0.0
        for column in range(self._grid.columns):
            depth = self._grid.normalized_depth(row, column)
            if depth is None:
                continue
            velocity = scan_velocity(depth)
            self._engine.play_note_for_depth(depth, column, velocity)
            intensity = max(intensity, velocity)
        self._set_highlight(row, intensity)

    def _set_highlight(self, row: Optional[int], intensity: float) -> None:
        self._highlight = (row, intensity)
        if self._on_row is not None:
            self._on_row(row, intensity)

    def _finish(self) -> None:
        on_complete = self._on_complete
        LOGGER.info("%s scan complete", self._state.kind.value.capitalize())
        self._teardown()
        if on_complete is not None:
            on_complete()

    def _teardown(self) -> None:
        for handle in self._handles:
            handle.cancel()
        self._handles.clear()
        self._state.generation += 1
        self._state.reset()
        self._engine.stop_all_notes()
        self._set_highlight(None, 0.0)
        self._on_row = None
        self._on_complete = None


__all__ = [
    "AsyncioClock",
    "Clock",
    "DEFAULT_SCAN_DURATION_S",
    "ManualClock",
    "ScanScheduler",
    "TimerHandle",
    "scan_velocity",
]
