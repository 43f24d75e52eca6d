"""Entry points the UI layer drives: capture, continuous sampling and scans."""

from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence, Tuple

from .configuration import AppConfig
from .depth_grid import PLAUSIBLE_MAX_M, PLAUSIBLE_MIN_M, DepthGrid
from .depth_sampler import DepthBuffer, is_plausible, normalize_depth, sample_depth
from .instruments import Instrument
from .scheduler import Clock, CompleteFn, RowHighlightFn, ScanScheduler, TimerHandle
from .state import Sector
from .voice_engine import VoiceEngine

LOGGER = logging.getLogger(__name__)

DepthSource = Callable[[], Optional[DepthBuffer]]

CONTINUOUS_RADII: Tuple[int, ...] = (8, 6, 4, 2)
PROBE_OFFSETS: Tuple[Tuple[float, float], ...] = (
    (0.0, 0.0),
    (0.05, 0.0),
    (-0.05, 0.0),
    (0.0, -0.05),
    (0.0, 0.05),
)


class DepthSonifier:
    """Ties a depth source, the grid, the voice engine and the scan scheduler."""

    def __init__(
        self,
        engine: VoiceEngine,
        clock: Clock,
        depth_source: DepthSource,
        grid: Optional[DepthGrid] = None,
        *,
        min_depth: float = 0.0,
        max_depth: float = 1.8,
        sequential_duration: float = 5.0,
        simultaneous_duration: float = 5.0,
        period: float = 0.3,
        change_threshold: float = 0.1,
        fallback_depth: float = 0.9,
        radii: Sequence[int] = CONTINUOUS_RADII,
    ) -> None:
        if period <= 0:
            raise ValueError("continuous period must be greater than zero")
        self._engine = engine
        self._clock = clock
        self._depth_source = depth_source
        self._grid = grid or DepthGrid()
        self._min_depth = min_depth
        self._max_depth = max_depth
        self._sequential_duration = sequential_duration
        self._simultaneous_duration = simultaneous_duration
        self._scanner = ScanScheduler(self._grid, engine, clock, sequential_duration)
        self._period = period
        self._change_threshold = change_threshold
        self._fallback_depth = fallback_depth
        self._radii = tuple(radii)
        self._last_depth = 0.0
        self._timer: Optional[TimerHandle] = None

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        engine: VoiceEngine,
        clock: Clock,
        depth_source: DepthSource,
    ) -> "DepthSonifier":
        return cls(
            engine,
            clock,
            depth_source,
            DepthGrid(config.grid.rows, config.grid.columns),
            min_depth=config.depth.min_m,
            max_depth=config.depth.max_m,
            sequential_duration=config.scan.sequential_duration_s,
            simultaneous_duration=config.scan.simultaneous_duration_s,
            period=config.continuous.period_s,
            change_threshold=config.continuous.change_threshold_m,
            fallback_depth=config.continuous.fallback_m,
        )

    @property
    def grid(self) -> DepthGrid:
        return self._grid

    @property
    def engine(self) -> VoiceEngine:
        return self._engine

    @property
    def scanner(self) -> ScanScheduler:
        return self._scanner

    @property
    def last_depth(self) -> float:
        return self._last_depth

    @property
    def continuous_running(self) -> bool:
        return self._timer is not None

    # Grid and scans -------------------------------------------------------

    def capture_grid(self) -> bool:
        """Rebuild the grid from the current depth frame.

        Refused while a scan is reading the grid. A missing frame still yields a
        full grid of fallback values.
        """
        if self._scanner.active:
            LOGGER.warning("Ignoring grid capture while a scan is running")
            return False
        buffer = self._depth_source()
        if buffer is None:
            LOGGER.warning("No depth frame available; grid filled with fallback values")
        self._grid.populate(buffer, self._min_depth, self._max_depth)
        return True

    def start_sequential_scan(
        self,
        column: Optional[int] = None,
        on_row_highlighted: Optional[RowHighlightFn] = None,
        on_complete: Optional[CompleteFn] = None,
    ) -> None:
        self._ensure_grid()
        self._scanner.start_sequential(
            column, on_row_highlighted, on_complete, duration=self._sequential_duration
        )

    def start_simultaneous_scan(
        self,
        on_row_highlighted: Optional[RowHighlightFn] = None,
        on_complete: Optional[CompleteFn] = None,
    ) -> None:
        self._ensure_grid()
        self._scanner.start_simultaneous(
            on_row_highlighted, on_complete, duration=self._simultaneous_duration
        )

    def cancel_scan(self) -> None:
        self._scanner.cancel()

    def change_instrument(self, sector: Sector, instrument: Instrument) -> None:
        self._engine.change_instrument(instrument, sector)

    def _ensure_grid(self) -> None:
        if not self._grid.populated:
            self.capture_grid()

    # Continuous sampling ----------------------------------------------------

    def sample_continuous(self, x: float = 0.5, y: float = 0.5) -> Optional[Tuple[float, float]]:
        """Read the depth around ``(x, y)`` and re-trigger the centre sector on change.

        Returns ``(depth_m, normalized_depth)``, or ``None`` when no frame is
        available. An unreadable point falls back to a fixed mid-range depth
        without sounding.
        """
        buffer = self._depth_source()
        if buffer is None:
            return None

        previous = self._last_depth
        depth = self._probe(buffer, x, y)
        if depth is None:
            LOGGER.debug("No plausible depth near (%.2f, %.2f); using fallback", x, y)
            self._last_depth = self._fallback_depth
            return self._fallback_depth, self._normalize(self._fallback_depth)

        self._last_depth = depth
        normalized = self._normalize(depth)
        if abs(depth - previous) > self._change_threshold:
            self._engine.play_note_for_depth(normalized, Sector.CENTER)
        return depth, normalized

    def start_continuous(self) -> None:
        if self._timer is not None:
            return
        LOGGER.info("Continuous sampling every %.2fs", self._period)
        self._tick()

    def stop_continuous(self) -> None:
        if self._timer is None:
            return
        self._timer.cancel()
        self._timer = None
        LOGGER.info("Continuous sampling stopped")

    def _tick(self) -> None:
        self._timer = self._clock.call_later(self._period, self._tick)
        if self._scanner.active:
            return
        self.sample_continuous()

    def _probe(self, buffer: DepthBuffer, x: float, y: float) -> Optional[float]:
        for dx, dy in PROBE_OFFSETS:
            for radius in self._radii:
                depth = sample_depth(buffer, x + dx, y + dy, radius=radius)
                if is_plausible(depth, PLAUSIBLE_MIN_M, PLAUSIBLE_MAX_M):
                    return depth
        return None

    def _normalize(self, depth: float) -> float:
        return normalize_depth(depth, self._min_depth, self._max_depth)


__all__ = ["CONTINUOUS_RADII", "DepthSonifier", "DepthSource", "PROBE_OFFSETS"]
