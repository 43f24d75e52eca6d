"""Synthetic depth source for running without a depth camera."""

from __future__ import annotations

import numpy as np

from .depth_sampler import ArrayDepthBuffer

WIDTH = 256
HEIGHT = 192


def get_depth_buffer() -> ArrayDepthBuffer:
    """Floor-like ramp: near at the sensor's left edge, far at the right."""
    ramp = np.linspace(0.4, 2.2, WIDTH, dtype=np.float32)
    data = np.tile(ramp, (HEIGHT, 1))
    # A box-shaped obstacle in the middle of the frame.
    data[HEIGHT // 3 : HEIGHT // 2, WIDTH // 3 : 2 * WIDTH // 3] = 0.6
    return ArrayDepthBuffer(data)
