"""
Test Configuration
==================

Pytest fixtures and test configuration for PixelPipe.
"""

import io

import cv2
import numpy as np
import pytest

from pixelpipe.diagnostics import Diagnostics
from pixelpipe.models.frame import Frame


@pytest.fixture
def diag_stream():
    """Captures diagnostic output."""
    return io.StringIO()


@pytest.fixture
def diagnostics(diag_stream):
    """Diagnostics at summary + cause-chain verbosity, writing to diag_stream."""
    return Diagnostics(verbosity=2, stream=diag_stream)


@pytest.fixture
def make_frame():
    """Factory for frames filled with a single RGB colour."""

    def _make(width=2, height=2, rgb=(0, 0, 0), frame_id=None):
        return Frame(
            id=frame_id,
            width=width,
            height=height,
            data=bytes(rgb) * (width * height),
        )

    return _make


@pytest.fixture
def sample_rgb_image():
    """A 4x3 RGB image with distinct pixel values, as a numpy array."""
    rgb = np.zeros((3, 4, 3), dtype=np.uint8)
    rgb[..., 0] = np.arange(4, dtype=np.uint8) * 60      # red ramps across
    rgb[..., 1] = np.arange(3, dtype=np.uint8)[:, None] * 100  # green down
    rgb[..., 2] = 200
    return rgb


@pytest.fixture
def sample_png_bytes(sample_rgb_image):
    """PNG encoding of sample_rgb_image (4x3)."""
    ok, buf = cv2.imencode(".png", cv2.cvtColor(sample_rgb_image, cv2.COLOR_RGB2BGR))
    assert ok
    return buf.tobytes()


@pytest.fixture
def sample_png_path(tmp_path, sample_png_bytes):
    """sample_png_bytes written to a temporary file."""
    path = tmp_path / "sample.png"
    path.write_bytes(sample_png_bytes)
    return path
