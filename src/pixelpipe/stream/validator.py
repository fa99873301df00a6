"""
Buffer Validator
================

The single gate every consumer applies before treating a frame's bytes
as pixels.

Checks (in order):
    1. width and height are present and positive
    2. width * height * 3 fits the platform's native size range
    3. len(data) == width * height * 3

Design Rules:
    - Pure and deterministic, no side effects
    - Overflow is detected before anything is allocated from the product
"""

import sys
from typing import Optional, Tuple

from pixelpipe.errors import InvalidBuffer, InvalidDimensions
from pixelpipe.models.frame import Frame


BYTES_PER_PIXEL = 3

# Largest buffer length the interpreter can address (Py_ssize_t max).
MAX_BUFFER_LEN = sys.maxsize


def expected_length(width: int, height: int) -> int:
    """
    Compute width * height * 3 with overflow checking.

    Raises:
        InvalidBuffer: If any intermediate product exceeds MAX_BUFFER_LEN
    """
    if width != 0 and height > MAX_BUFFER_LEN // width:
        raise InvalidBuffer("width*height*3 overflow")
    pixels = width * height
    if pixels > MAX_BUFFER_LEN // BYTES_PER_PIXEL:
        raise InvalidBuffer("width*height*3 overflow")
    return pixels * BYTES_PER_PIXEL


def validate_buffer(
    width: Optional[int],
    height: Optional[int],
    data_len: int,
) -> Tuple[int, int]:
    """
    Validate declared dimensions against a buffer length.

    Args:
        width: Declared width, may be absent
        height: Declared height, may be absent
        data_len: Length of the pixel buffer in bytes

    Returns:
        Validated (width, height)

    Raises:
        InvalidDimensions: If a dimension is missing or not positive
        InvalidBuffer: On overflow or length mismatch
    """
    if width is None:
        raise InvalidDimensions("missing image.width")
    if height is None:
        raise InvalidDimensions("missing image.height")
    if width <= 0 or height <= 0:
        raise InvalidDimensions(f"non-positive size {width}x{height}")

    expected = expected_length(width, height)
    if data_len != expected:
        raise InvalidBuffer(
            f"byte length {data_len} does not match width*height*3 ({expected})"
        )
    return width, height


def validate_frame(frame: Frame) -> Tuple[int, int]:
    """Apply validate_buffer() to a frame."""
    return validate_buffer(frame.width, frame.height, len(frame.data))
