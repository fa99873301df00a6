"""
Viewer Module
=============

Live display of a frame record stream.

Components:
    - RenderLoop: Fixed-cadence state machine driving a window
    - Window / OpenCVWindow: Display backend interface and implementation
    - run_viewer: Producer thread + render loop wiring
"""

from pixelpipe.viewer.window import OpenCVWindow, Window, packed_to_bgr
from pixelpipe.viewer.render_loop import RenderLoop, RenderState, unpack_rgb
from pixelpipe.viewer.app import run_viewer, start_producer


__all__ = [
    "OpenCVWindow",
    "Window",
    "packed_to_bgr",
    "RenderLoop",
    "RenderState",
    "unpack_rgb",
    "run_viewer",
    "start_producer",
]
