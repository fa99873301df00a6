"""
Reader Module
=============

One-shot conversion of a local image into a frame record.
"""

from pixelpipe.reader.source_loader import (
    STDIN_MARKER,
    decode_image,
    load_source,
    parse_dimensions,
    read_input_bytes,
    resize_image,
    resolve_locator,
    run_reader,
)


__all__ = [
    "STDIN_MARKER",
    "decode_image",
    "load_source",
    "parse_dimensions",
    "read_input_bytes",
    "resize_image",
    "resolve_locator",
    "run_reader",
]
