"""Windowed sampling and normalisation of raw depth buffers."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Protocol

import numpy as np

MIN_VALID_DEPTH_M = 0.001
DEFAULT_MIN_DEPTH_M = 0.0
DEFAULT_MAX_DEPTH_M = 1.8


class DepthBuffer(Protocol):
    """Read-only view of a depth frame owned by the camera pipeline."""

    @property
    def width(self) -> int:
        ...

    @property
    def height(self) -> int:
        ...

    def read(self, px: int, py: int) -> Optional[float]:
        """Return the distance in metres at a pixel, or ``None`` if invalid."""
        ...


@dataclass(frozen=True)
class ArrayDepthBuffer:
    """Depth buffer backed by a ``(height, width)`` array of metres."""

    data: np.ndarray

    def __post_init__(self) -> None:
        if self.data.ndim != 2:
            raise ValueError(f"Depth array must be 2D, got shape {self.data.shape}")

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    def read(self, px: int, py: int) -> Optional[float]:
        value = float(self.data[py, px])
        if not math.isfinite(value):
            return None
        return value


def clamp(x: float, lower: float, upper: float) -> float:
    """Clamp ``x`` into the inclusive range [``lower``, ``upper``]."""
    if lower > upper:
        raise ValueError("lower bound must be <= upper bound")
    if x < lower:
        return lower
    if x > upper:
        return upper
    return x


def _valid_reading(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value) and value >= MIN_VALID_DEPTH_M


def sample_depth(buffer: DepthBuffer, x: float, y: float, radius: int = 4) -> Optional[float]:
    """Average the valid readings in a square window around a normalised point.

    Args:
        buffer: Depth buffer to read from.
        x: Horizontal buffer coordinate, 0.0 (left) to 1.0 (right). Clamped.
        y: Vertical buffer coordinate, 0.0 (top) to 1.0 (bottom). Clamped.
        radius: Half-width of the sampling window in pixels.

    Returns:
        Mean depth in metres over the valid pixels of the window, or ``None``
        when the window holds no valid reading.
    """
    x = clamp(x, 0.0, 1.0)
    y = clamp(y, 0.0, 1.0)
    width = buffer.width
    height = buffer.height
    center_x = int(x * width)
    center_y = int(y * height)

    total = 0.0
    count = 0
    for dy in range(-radius, radius + 1):
        py = center_y + dy
        if py < 0 or py >= height:
            continue
        for dx in range(-radius, radius + 1):
            px = center_x + dx
            if px < 0 or px >= width:
                continue
            value = buffer.read(px, py)
            if _valid_reading(value):
                total += value  # type: ignore[operator]
                count += 1

    if count == 0:
        return None
    return total / count


def normalize_depth(
    depth: float,
    min_depth: float = DEFAULT_MIN_DEPTH_M,
    max_depth: float = DEFAULT_MAX_DEPTH_M,
) -> float:
    """Rescale ``depth`` so ``min_depth`` maps to 0.0 and ``max_depth`` to 1.0.

    Values outside the calibration range are clamped first. ``min_depth`` must be
    less than ``max_depth``.
    """
    clamped = min(max_depth, max(min_depth, depth))
    return (clamped - min_depth) / (max_depth - min_depth)


def is_plausible(depth: Optional[float], lower: float, upper: float) -> bool:
    """True when ``depth`` is a reading inside the plausibility window."""
    return depth is not None and lower <= depth <= upper


__all__ = [
    "ArrayDepthBuffer",
    "DEFAULT_MAX_DEPTH_M",
    "DEFAULT_MIN_DEPTH_M",
    "DepthBuffer",
    "MIN_VALID_DEPTH_M",
    "clamp",
    "is_plausible",
    "normalize_depth",
    "sample_depth",
]
