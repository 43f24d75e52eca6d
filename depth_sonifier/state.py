"""Dataclasses modelling grid cells, sectors, and scan state."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional, Tuple


class Sector(IntEnum):
    """Horizontal audio region; the value doubles as the grid column index."""

    LEFT = 0
    CENTER = 1
    RIGHT = 2

    @property
    def label(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class GridCell:
    """One populated cell of the depth grid."""

    raw_depth: float
    normalized_depth: float
    coordinate: Tuple[float, float]
    fallback: bool = False


class ScanKind(Enum):
    IDLE = "idle"
    SEQUENTIAL = "sequential"
    SIMULTANEOUS = "simultaneous"


@dataclass
class ScanState:
    """Mutable state maintained by the scan scheduler."""

    kind: ScanKind = ScanKind.IDLE
    row_cursor: Optional[int] = None
    started_at: float = 0.0
    generation: int = 0

    @property
    def active(self) -> bool:
        return self.kind is not ScanKind.IDLE

    def elapsed(self, now: float) -> float:
        if not self.active:
            return 0.0
        return now - self.started_at

    def reset(self) -> None:
        self.kind = ScanKind.IDLE
        self.row_cursor = None
        self.started_at = 0.0
