"""Entrypoint for the depth sonifier asyncio application."""

from __future__ import annotations

import argparse
import asyncio
import importlib
import logging
from pathlib import Path
from typing import Optional, Sequence

from .configuration import AppConfig, load_config, load_default_config
from .midi_io import open_voices
from .scheduler import AsyncioClock
from .sonifier import DepthSonifier, DepthSource
from .voice_engine import VoiceEngine

LOGGER = logging.getLogger(__name__)

SCAN_CHOICES = ("none", "sequential", "simultaneous")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Turn a depth camera feed into spatial music.")
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to configuration YAML. Defaults to bundled config.yaml if omitted.",
    )
    parser.add_argument(
        "--depth-source",
        default="depth_sonifier.depth_stub:get_depth_buffer",
        help="Import path for the depth buffer callable (module:function).",
    )
    parser.add_argument(
        "--scan",
        choices=SCAN_CHOICES,
        default="none",
        help="Run one scan of a freshly captured grid and exit instead of continuous sampling.",
    )
    return parser.parse_args(list(argv) if argv is not None else None)


def resolve_depth_source(spec: str) -> DepthSource:
    if ":" not in spec:
        raise ValueError("Depth source spec must be module:function")
    module_name, func_name = spec.split(":", 1)
    module = importlib.import_module(module_name)
    try:
        func = getattr(module, func_name)
    except AttributeError as exc:
        raise AttributeError(f"{module_name} has no attribute {func_name}") from exc
    if not callable(func):
        raise TypeError(f"{func!r} is not callable")
    return func  # type: ignore[return-value]


def _log_highlight(row: Optional[int], intensity: float) -> None:
    if row is None:
        LOGGER.debug("Highlight cleared")
    else:
        LOGGER.debug("Highlight row=%d intensity=%.2f", row, intensity)


async def run_scan(sonifier: DepthSonifier, kind: str) -> None:
    """Capture a grid, run one scan and wait for it to finish."""
    done = asyncio.Event()
    sonifier.capture_grid()
    if kind == "sequential":
        sonifier.start_sequential_scan(on_row_highlighted=_log_highlight, on_complete=done.set)
    else:
        sonifier.start_simultaneous_scan(on_row_highlighted=_log_highlight, on_complete=done.set)
    try:
        await done.wait()
    except asyncio.CancelledError:
        sonifier.cancel_scan()
        raise


async def run_continuous(sonifier: DepthSonifier) -> None:
    """Sample continuously until cancelled."""
    sonifier.start_continuous()
    try:
        await asyncio.Event().wait()
    except asyncio.CancelledError:
        LOGGER.info("Continuous loop cancelled")
        raise
    finally:
        sonifier.stop_continuous()


async def async_main(args: argparse.Namespace) -> None:
    config: AppConfig = load_config(args.config) if args.config else load_default_config()
    logging.basicConfig(level=getattr(logging, config.logging.level.upper(), logging.INFO))

    depth_source = resolve_depth_source(args.depth_source)
    midi_voices = open_voices(config.midi.port, config.midi.channels, config.midi.pans)
    engine = VoiceEngine(midi_voices.voices, instruments=config.sectors)
    clock = AsyncioClock(asyncio.get_running_loop())
    sonifier = DepthSonifier.from_config(config, engine, clock, depth_source)
    LOGGER.info("MIDI voices open on '%s'", config.midi.port)

    try:
        if args.scan == "none":
            await run_continuous(sonifier)
        else:
            await run_scan(sonifier, args.scan)
    finally:
        engine.stop_all_notes()
        midi_voices.close()


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    try:
        asyncio.run(async_main(args))
    except KeyboardInterrupt:
        LOGGER.info("Interrupted by user")


if __name__ == "__main__":
    main()
