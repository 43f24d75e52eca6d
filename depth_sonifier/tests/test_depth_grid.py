"""Tests for grid population, orientation and fallback synthesis."""

from __future__ import annotations

import numpy as np
import pytest

from depth_sonifier.depth_grid import DepthGrid, display_coordinate, fallback_depth
from depth_sonifier.depth_sampler import ArrayDepthBuffer


def test_accessors_empty_before_populate() -> None:
    grid = DepthGrid()
    assert not grid.populated
    assert grid.raw_depth(0, 0) is None
    assert grid.normalized_depth(0, 0) is None
    assert grid.coordinate(0, 0) is None


def test_uniform_buffer_fills_every_cell(make_buffer) -> None:
    grid = DepthGrid()
    grid.populate(make_buffer(1.2), 0.0, 1.8)
    for row in range(grid.rows):
        for col in range(grid.columns):
            assert grid.raw_depth(row, col) == pytest.approx(1.2)
            assert grid.normalized_depth(row, col) == pytest.approx(1.2 / 1.8)
            assert not grid.cell(row, col).fallback


def test_out_of_range_indices_return_none(make_buffer) -> None:
    grid = DepthGrid()
    grid.populate(make_buffer(1.0))
    assert grid.raw_depth(9, 0) is None
    assert grid.normalized_depth(0, 3) is None
    assert grid.coordinate(-1, 1) is None


def test_display_coordinates_mirror_columns() -> None:
    x, y = display_coordinate(0, 0, 9, 3)
    assert x == pytest.approx(1 / 18)
    assert y == pytest.approx(5 / 6)
    x, y = display_coordinate(8, 2, 9, 3)
    assert x == pytest.approx(17 / 18)
    assert y == pytest.approx(1 / 6)


def test_invalid_buffer_uses_monotonic_fallback(make_buffer) -> None:
    grid = DepthGrid()
    grid.populate(make_buffer(0.0))
    for col in range(grid.columns):
        depths = [grid.normalized_depth(row, col) for row in range(grid.rows)]
        assert all(d is not None for d in depths)
        assert depths == sorted(depths)
        for row in range(grid.rows):
            assert grid.raw_depth(row, col) == pytest.approx(fallback_depth(row, col))
            assert grid.cell(row, col).fallback


def test_implausible_depth_falls_back(make_buffer) -> None:
    grid = DepthGrid()
    grid.populate(make_buffer(7.0))
    assert grid.raw_depth(4, 1) == pytest.approx(0.9 + 0.4 + 0.05)


def test_missing_buffer_still_populates() -> None:
    grid = DepthGrid()
    grid.populate(None)
    assert grid.populated
    assert grid.raw_depth(0, 0) == pytest.approx(0.9)


def test_buffer_horizontal_axis_maps_to_display_columns() -> None:
    data = np.full((90, 90), 0.5)
    data[:, 45:] = 1.5
    grid = DepthGrid()
    grid.populate(ArrayDepthBuffer(data))
    # Column 0 sits at display y ~0.83, i.e. buffer x ~0.83.
    assert grid.raw_depth(4, 0) == pytest.approx(1.5)
    assert grid.raw_depth(4, 2) == pytest.approx(0.5)


def test_buffer_vertical_axis_maps_to_display_rows() -> None:
    data = np.full((90, 90), 0.5)
    data[45:, :] = 1.5
    grid = DepthGrid()
    grid.populate(ArrayDepthBuffer(data))
    assert grid.raw_depth(0, 1) == pytest.approx(0.5)
    assert grid.raw_depth(8, 1) == pytest.approx(1.5)


def test_smaller_radius_retried_when_wide_window_implausible() -> None:
    data = np.full((21, 21), 20.0)
    data[8:13, 8:13] = 1.0
    grid = DepthGrid(rows=1, columns=1)
    grid.populate(ArrayDepthBuffer(data))
    assert grid.raw_depth(0, 0) == pytest.approx(1.0)
    assert not grid.cell(0, 0).fallback


def test_repopulate_replaces_snapshot(make_buffer) -> None:
    grid = DepthGrid()
    grid.populate(make_buffer(1.0))
    before = grid.cell(3, 1)
    grid.populate(make_buffer(0.5))
    assert before.raw_depth == pytest.approx(1.0)
    assert grid.raw_depth(3, 1) == pytest.approx(0.5)


def test_invalid_dimensions() -> None:
    with pytest.raises(ValueError):
        DepthGrid(rows=0)
