"""Tests for the UI-facing facade and continuous sampling."""

from __future__ import annotations

import numpy as np
import pytest

from depth_sonifier.configuration import parse_config
from depth_sonifier.depth_sampler import ArrayDepthBuffer
from depth_sonifier.instruments import Instrument
from depth_sonifier.sonifier import DepthSonifier
from depth_sonifier.state import Sector


class SwitchableSource:
    def __init__(self, buffer) -> None:
        self.buffer = buffer
        self.reads = 0

    def __call__(self):
        self.reads += 1
        return self.buffer


@pytest.fixture
def source(make_buffer) -> SwitchableSource:
    return SwitchableSource(make_buffer(1.2))


@pytest.fixture
def sonifier(engine, clock, source) -> DepthSonifier:
    return DepthSonifier(engine, clock, source)


def test_capture_grid_populates(sonifier) -> None:
    assert sonifier.capture_grid()
    assert sonifier.grid.raw_depth(0, 0) == pytest.approx(1.2)


def test_capture_refused_during_scan(sonifier, clock, source, make_buffer) -> None:
    sonifier.capture_grid()
    sonifier.start_sequential_scan()
    source.buffer = make_buffer(0.5)
    assert not sonifier.capture_grid()
    assert sonifier.grid.raw_depth(0, 0) == pytest.approx(1.2)
    sonifier.cancel_scan()
    assert sonifier.capture_grid()
    assert sonifier.grid.raw_depth(0, 0) == pytest.approx(0.5)


def test_scan_captures_grid_when_missing(sonifier, clock, voices) -> None:
    done = []
    sonifier.start_sequential_scan(on_complete=lambda: done.append(True))
    assert sonifier.grid.populated
    clock.advance(5.0)
    assert done == [True]
    assert voices[Sector.CENTER].note_ons


def test_sample_continuous_plays_on_change(sonifier, voices, source, make_buffer) -> None:
    depth, normalized = sonifier.sample_continuous()
    assert depth == pytest.approx(1.2)
    assert normalized == pytest.approx(1.2 / 1.8)
    assert len(voices[Sector.CENTER].note_ons) >= 1

    plays = len(voices[Sector.CENTER].note_ons)
    source.buffer = make_buffer(1.25)
    sonifier.sample_continuous()
    assert len(voices[Sector.CENTER].note_ons) == plays

    source.buffer = make_buffer(0.5)
    sonifier.sample_continuous()
    assert len(voices[Sector.CENTER].note_ons) > plays
    assert not voices[Sector.LEFT].note_ons


def test_sample_continuous_uses_neighbouring_probe(engine, clock) -> None:
    data = np.zeros((100, 100))
    data[:, 53:] = 0.8  # Only the probe to the right of centre finds depth.
    sonifier = DepthSonifier(engine, clock, SwitchableSource(ArrayDepthBuffer(data)), radii=(2,))
    depth, _ = sonifier.sample_continuous()
    assert depth == pytest.approx(0.8)


def test_sample_continuous_fallback_is_silent(sonifier, voices, source, make_buffer) -> None:
    source.buffer = make_buffer(0.0)
    assert sonifier.sample_continuous() == (pytest.approx(0.9), pytest.approx(0.5))
    assert not voices[Sector.CENTER].note_ons
    assert sonifier.last_depth == pytest.approx(0.9)


def test_sample_continuous_without_frame(sonifier, source) -> None:
    source.buffer = None
    assert sonifier.sample_continuous() is None


def test_continuous_timer_ticks_and_pauses_for_scans(sonifier, clock, source) -> None:
    sonifier.start_continuous()
    assert sonifier.continuous_running
    assert source.reads == 1
    clock.advance(0.45)
    clock.advance(0.3)
    assert source.reads == 3

    sonifier.capture_grid()
    reads = source.reads
    sonifier.start_sequential_scan()
    clock.advance(0.9)
    assert source.reads == reads

    sonifier.cancel_scan()
    clock.advance(0.3)
    assert source.reads == reads + 1

    sonifier.stop_continuous()
    clock.advance(3.0)
    assert source.reads == reads + 1
    assert not sonifier.continuous_running


def test_change_instrument(sonifier, engine) -> None:
    sonifier.change_instrument(Sector.LEFT, Instrument.OBOE)
    assert engine.instrument(Sector.LEFT) is Instrument.OBOE


def test_from_config(engine, clock, source) -> None:
    config = parse_config({"grid": {"rows": 4, "columns": 3}, "depth": {"max_m": 3.0}})
    sonifier = DepthSonifier.from_config(config, engine, clock, source)
    sonifier.capture_grid()
    assert sonifier.grid.rows == 4
    assert sonifier.grid.normalized_depth(0, 0) == pytest.approx(0.4)
