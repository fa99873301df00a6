"""
Models Module
=============

Data model for the frame pipeline.

Exports:
    - Frame: Immutable frame record (pixel buffer + metadata)
"""

from pixelpipe.models.frame import Frame, RECORD_TYPE


__all__ = [
    "Frame",
    "RECORD_TYPE",
]
