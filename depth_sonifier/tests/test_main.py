"""Tests for the command-line entrypoint helpers."""

from __future__ import annotations

import pytest

from depth_sonifier.depth_sampler import ArrayDepthBuffer
from depth_sonifier.main import parse_args, resolve_depth_source


def test_parse_args_defaults() -> None:
    args = parse_args([])
    assert args.config is None
    assert args.scan == "none"
    assert args.depth_source == "depth_sonifier.depth_stub:get_depth_buffer"


def test_resolve_default_depth_source() -> None:
    source = resolve_depth_source("depth_sonifier.depth_stub:get_depth_buffer")
    buffer = source()
    assert isinstance(buffer, ArrayDepthBuffer)
    assert buffer.width > buffer.height


def test_resolve_depth_source_errors() -> None:
    with pytest.raises(ValueError):
        resolve_depth_source("depth_sonifier.depth_stub")
    with pytest.raises(AttributeError):
        resolve_depth_source("depth_sonifier.depth_stub:missing")
    with pytest.raises(TypeError):
        resolve_depth_source("depth_sonifier.depth_stub:WIDTH")
