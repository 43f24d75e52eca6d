"""Fixed rows x columns grid of depth samples in display orientation."""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple

from .depth_sampler import (
    DEFAULT_MAX_DEPTH_M,
    DEFAULT_MIN_DEPTH_M,
    DepthBuffer,
    is_plausible,
    normalize_depth,
    sample_depth,
)
from .state import GridCell

LOGGER = logging.getLogger(__name__)

DEFAULT_ROWS = 9
DEFAULT_COLUMNS = 3
SAMPLE_RADII: Tuple[int, ...] = (6, 4, 2)
PLAUSIBLE_MIN_M = 0.1
PLAUSIBLE_MAX_M = 5.0


def display_coordinate(row: int, col: int, rows: int, columns: int) -> Tuple[float, float]:
    """Return ``(x, y)`` of a cell centre in display orientation.

    ``x`` runs top (0.0) to bottom (1.0); ``y`` runs right (0.0) to left (1.0),
    with the column index mirrored.
    """
    x = row / rows + 1.0 / (2 * rows)
    y = (columns - 1 - col) / columns + 1.0 / (2 * columns)
    return x, y


def display_to_buffer(x: float, y: float) -> Tuple[float, float]:
    """Map a display coordinate to the sensor buffer's native frame (axis swap)."""
    return y, x


def fallback_depth(row: int, col: int) -> float:
    """Deterministic stand-in depth that grows down the frame."""
    # TODO: interpolate from neighbouring valid cells instead of this fixed ramp.
    return 0.9 + row * 0.1 + col * 0.05


class DepthGrid:
    """Snapshot of a depth buffer sampled on a fixed grid.

    Cells are stored row-major in a single tuple which is rebuilt wholesale on
    every :meth:`populate`; readers holding the previous tuple are unaffected.
    Accessors return ``None`` for out-of-range indices or before the first
    capture.
    """

    def __init__(
        self,
        rows: int = DEFAULT_ROWS,
        columns: int = DEFAULT_COLUMNS,
        radii: Sequence[int] = SAMPLE_RADII,
    ) -> None:
        if rows <= 0 or columns <= 0:
            raise ValueError("Grid dimensions must be positive")
        self._rows = rows
        self._columns = columns
        self._radii = tuple(radii)
        self._cells: Tuple[GridCell, ...] = ()

    @property
    def rows(self) -> int:
        return self._rows

    @property
    def columns(self) -> int:
        return self._columns

    @property
    def populated(self) -> bool:
        return bool(self._cells)

    def populate(
        self,
        buffer: Optional[DepthBuffer],
        min_depth: float = DEFAULT_MIN_DEPTH_M,
        max_depth: float = DEFAULT_MAX_DEPTH_M,
    ) -> None:
        """Sample every cell from ``buffer`` and replace the grid contents."""
        cells = []
        fallbacks = 0
        for row in range(self._rows):
            for col in range(self._columns):
                coordinate = display_coordinate(row, col, self._rows, self._columns)
                raw = None
                if buffer is not None:
                    raw = self._sample_cell(buffer, *display_to_buffer(*coordinate))
                is_fallback = raw is None
                if is_fallback:
                    raw = fallback_depth(row, col)
                    fallbacks += 1
                cells.append(
                    GridCell(
                        raw_depth=raw,
                        normalized_depth=normalize_depth(raw, min_depth, max_depth),
                        coordinate=coordinate,
                        fallback=is_fallback,
                    )
                )
        self._cells = tuple(cells)
        if fallbacks:
            LOGGER.debug("Grid populated with %d/%d fallback cells", fallbacks, len(cells))

    def _sample_cell(self, buffer: DepthBuffer, x: float, y: float) -> Optional[float]:
        for radius in self._radii:
            depth = sample_depth(buffer, x, y, radius=radius)
            if is_plausible(depth, PLAUSIBLE_MIN_M, PLAUSIBLE_MAX_M):
                return depth
        return None

    def cell(self, row: int, col: int) -> Optional[GridCell]:
        if not (0 <= row < self._rows and 0 <= col < self._columns):
            return None
        if not self._cells:
            return None
        return self._cells[row * self._columns + col]

    def raw_depth(self, row: int, col: int) -> Optional[float]:
        cell = self.cell(row, col)
        return cell.raw_depth if cell is not None else None

    def normalized_depth(self, row: int, col: int) -> Optional[float]:
        cell = self.cell(row, col)
        return cell.normalized_depth if cell is not None else None

    def coordinate(self, row: int, col: int) -> Optional[Tuple[float, float]]:
        cell = self.cell(row, col)
        return cell.coordinate if cell is not None else None


__all__ = [
    "DEFAULT_COLUMNS",
    "DEFAULT_ROWS",
    "DepthGrid",
    "PLAUSIBLE_MAX_M",
    "PLAUSIBLE_MIN_M",
    "SAMPLE_RADII",
    "display_coordinate",
    "display_to_buffer",
    "fallback_depth",
]
