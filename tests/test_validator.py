"""
Buffer Validator Tests
======================
"""

import pytest

from pixelpipe.errors import ErrorKind, InvalidBuffer, InvalidDimensions
from pixelpipe.stream.validator import (
    MAX_BUFFER_LEN,
    expected_length,
    validate_buffer,
    validate_frame,
)


class TestValidateBuffer:
    """Tests for validate_buffer()."""

    @pytest.mark.parametrize("w,h", [(1, 1), (2, 2), (4, 3), (320, 240), (7, 13)])
    def test_exact_length_validates(self, w, h):
        """A buffer of exactly w*h*3 bytes is accepted."""
        assert validate_buffer(w, h, w * h * 3) == (w, h)

    @pytest.mark.parametrize("delta", [-3, -1, 1, 3])
    def test_wrong_length_is_mismatch(self, delta):
        """Any other length fails as a length mismatch."""
        with pytest.raises(InvalidBuffer, match="does not match"):
            validate_buffer(4, 3, 36 + delta)

    def test_missing_width(self):
        with pytest.raises(InvalidDimensions, match="width"):
            validate_buffer(None, 3, 36)

    def test_missing_height(self):
        with pytest.raises(InvalidDimensions, match="height"):
            validate_buffer(4, None, 36)

    def test_zero_dimension_rejected(self):
        with pytest.raises(InvalidDimensions):
            validate_buffer(0, 3, 0)

    def test_huge_dimensions_overflow(self):
        """2^31 x 2^31 overflows before any length comparison."""
        with pytest.raises(InvalidBuffer, match="overflow") as exc:
            validate_buffer(2**31, 2**31, 12)
        assert exc.value.kind == ErrorKind.INVALID_BUFFER

    def test_overflow_in_first_product(self):
        with pytest.raises(InvalidBuffer, match="overflow"):
            expected_length(MAX_BUFFER_LEN, 2)

    def test_largest_representable_product(self):
        """The boundary value itself is not an overflow."""
        pixels = MAX_BUFFER_LEN // 3
        assert expected_length(pixels, 1) == pixels * 3


class TestValidateFrame:
    """Tests for validate_frame()."""

    def test_valid_frame(self, make_frame):
        assert validate_frame(make_frame(4, 3)) == (4, 3)

    def test_frame_without_dimensions(self):
        from pixelpipe.models.frame import Frame

        with pytest.raises(InvalidDimensions):
            validate_frame(Frame(data=b"\x00" * 12))

    def test_frame_without_data(self):
        from pixelpipe.models.frame import Frame

        with pytest.raises(InvalidBuffer):
            validate_frame(Frame(width=2, height=2))
