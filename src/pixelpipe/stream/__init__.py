"""
Stream Module
=============

Record stream consumption components shared by the viewer and writer.

This module provides the interchange layer for PixelPipe:
    - validate_buffer / validate_frame: Byte-layout gate for pixel buffers
    - LineStreamParser: Line-delimited record parser with passthrough
    - FrameCoalescer: Single-slot mailbox between parser and render loop

Example:
    from pixelpipe.stream import FrameCoalescer, LineStreamParser

    coalescer = FrameCoalescer()
    parser = LineStreamParser(diagnostics)

    for frame in parser.iter_frames(sys.stdin.buffer):
        if not coalescer.push(frame):
            break
"""

from pixelpipe.stream.validator import (
    BYTES_PER_PIXEL,
    MAX_BUFFER_LEN,
    expected_length,
    validate_buffer,
    validate_frame,
)
from pixelpipe.stream.parser import LineStreamParser, ParserMetrics
from pixelpipe.stream.coalescer import FrameCoalescer


__all__ = [
    "BYTES_PER_PIXEL",
    "MAX_BUFFER_LEN",
    "expected_length",
    "validate_buffer",
    "validate_frame",
    "LineStreamParser",
    "ParserMetrics",
    "FrameCoalescer",
]
