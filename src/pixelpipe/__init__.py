"""
PixelPipe
=========

Line-delimited raster frame interchange: read images into frame records,
view a live stream of records, and write records to image files.

Components:
    - models: Frame record
    - stream: Buffer validation, line stream parsing, frame coalescing
    - viewer: Render loop and window backend
    - sink: File persistence
    - reader: One-shot image loading

Example:
    from pixelpipe.reader import load_source
    from pixelpipe.stream import validate_frame

    frame = load_source("photo.png", size=(640, 480))
    width, height = validate_frame(frame)
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
