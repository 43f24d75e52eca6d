"""Configuration loading and dataclasses for the depth sonifier."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml

from .depth_sampler import DEFAULT_MAX_DEPTH_M, DEFAULT_MIN_DEPTH_M
from .instruments import Instrument
from .state import Sector


@dataclass(frozen=True)
class DepthConfig:
    min_m: float = DEFAULT_MIN_DEPTH_M
    max_m: float = DEFAULT_MAX_DEPTH_M


@dataclass(frozen=True)
class GridConfig:
    rows: int = 9
    columns: int = 3


@dataclass(frozen=True)
class ScanConfig:
    sequential_duration_s: float = 5.0
    simultaneous_duration_s: float = 5.0


@dataclass(frozen=True)
class ContinuousConfig:
    period_s: float = 0.3
    change_threshold_m: float = 0.1
    fallback_m: float = 0.9


@dataclass(frozen=True)
class MidiConfig:
    port: str
    channels: Dict[Sector, int]
    pans: Dict[Sector, float]


@dataclass(frozen=True)
class LoggingConfig:
    level: str


@dataclass(frozen=True)
class AppConfig:
    depth: DepthConfig
    grid: GridConfig
    scan: ScanConfig
    continuous: ContinuousConfig
    midi: MidiConfig
    sectors: Dict[Sector, Instrument]
    logging: LoggingConfig


DEFAULT_CHANNELS = {Sector.LEFT: 1, Sector.CENTER: 2, Sector.RIGHT: 3}
DEFAULT_PANS = {Sector.LEFT: -0.7, Sector.CENTER: 0.0, Sector.RIGHT: 0.7}
DEFAULT_INSTRUMENTS = {
    Sector.LEFT: Instrument.HARP,
    Sector.CENTER: Instrument.PIANO,
    Sector.RIGHT: Instrument.SYNTH_PAD,
}


def load_config(path: Path) -> AppConfig:
    """Load configuration from a YAML file."""
    with path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}
    return parse_config(raw)


def parse_config(raw: Mapping[str, Any]) -> AppConfig:
    """Build an :class:`AppConfig` from already-parsed YAML."""
    depth_cfg = _section(raw, "depth")
    grid_cfg = _section(raw, "grid")
    continuous_cfg = _section(raw, "continuous")

    depth = DepthConfig(
        min_m=float(depth_cfg.get("min_m", DEFAULT_MIN_DEPTH_M)),
        max_m=float(depth_cfg.get("max_m", DEFAULT_MAX_DEPTH_M)),
    )
    if depth.min_m >= depth.max_m:
        raise ValueError("depth.min_m must be less than depth.max_m")

    grid = GridConfig(
        rows=int(grid_cfg.get("rows", 9)),
        columns=int(grid_cfg.get("columns", 3)),
    )
    if grid.rows <= 0 or grid.columns <= 0:
        raise ValueError("grid.rows and grid.columns must be positive")

    return AppConfig(
        depth=depth,
        grid=grid,
        scan=_parse_scan(_section(raw, "scan")),
        continuous=ContinuousConfig(
            period_s=float(continuous_cfg.get("period_s", 0.3)),
            change_threshold_m=float(continuous_cfg.get("change_threshold_m", 0.1)),
            fallback_m=float(continuous_cfg.get("fallback_m", 0.9)),
        ),
        midi=_parse_midi(_section(raw, "midi")),
        sectors=_parse_sectors(_section(raw, "sectors")),
        logging=LoggingConfig(level=str(_section(raw, "logging").get("level", "INFO"))),
    )


def _section(raw: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = raw.get(key)
    if not isinstance(value, dict):
        return {}
    return value


def _parse_scan(raw: Mapping[str, Any]) -> ScanConfig:
    duration = float(raw.get("duration_s", 5.0))
    config = ScanConfig(
        sequential_duration_s=float(raw.get("sequential_duration_s", duration)),
        simultaneous_duration_s=float(raw.get("simultaneous_duration_s", duration)),
    )
    if config.sequential_duration_s <= 0 or config.simultaneous_duration_s <= 0:
        raise ValueError("scan durations must be greater than zero")
    return config


def _sector_key(name: Any) -> Sector:
    try:
        return Sector[str(name).strip().upper()]
    except KeyError as exc:
        raise ValueError(f"Unknown sector: {name!r}") from exc


def _parse_midi(raw: Mapping[str, Any]) -> MidiConfig:
    channels = dict(DEFAULT_CHANNELS)
    for name, channel in (raw.get("channels") or {}).items():
        channels[_sector_key(name)] = int(channel)
    pans = dict(DEFAULT_PANS)
    for name, pan in (raw.get("pans") or {}).items():
        pans[_sector_key(name)] = float(pan)
    return MidiConfig(port=str(raw.get("port", "")), channels=channels, pans=pans)


def _parse_sectors(raw: Mapping[str, Any]) -> Dict[Sector, Instrument]:
    sectors = dict(DEFAULT_INSTRUMENTS)
    for name, instrument in raw.items():
        sectors[_sector_key(name)] = Instrument.from_name(str(instrument))
    return sectors


def load_default_config() -> AppConfig:
    """Load the default config.yaml shipped with the package."""
    path = Path(__file__).resolve().parent / "config.yaml"
    return load_config(path)


__all__ = [
    "AppConfig",
    "ContinuousConfig",
    "DepthConfig",
    "GridConfig",
    "LoggingConfig",
    "MidiConfig",
    "ScanConfig",
    "load_config",
    "load_default_config",
    "parse_config",
]
