"""
Sink Module
===========

Persistence of frame records to image files.
"""

from pixelpipe.sink.file_sink import FileSink, WriterResult, frame_to_bgr, run_writer


__all__ = [
    "FileSink",
    "WriterResult",
    "frame_to_bgr",
    "run_writer",
]
