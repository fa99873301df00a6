"""
Render Loop
===========

Fixed-cadence consumer of coalesced frames.

States:
    NO_FRAME_YET: initial; a black placeholder framebuffer is shown
    DISPLAYING:   the last valid frame is shown at its own size

Each tick:
    1. drain_latest() from the coalescer
    2. Frame arrived -> validate; on failure warn and keep the previous
       picture, on success resize the framebuffer if needed, unpack the
       RGB bytes, retitle, present
    3. Nothing arrived -> present the existing framebuffer again
    4. Stop when the window is closed or cancel was requested

The loop never blocks on the producer. It owns the window and the
framebuffer exclusively.
"""

import logging
import time
from enum import Enum
from typing import Callable, Optional

import numpy as np

from pixelpipe.diagnostics import Diagnostics
from pixelpipe.errors import InvalidBuffer, InvalidDimensions
from pixelpipe.models.frame import Frame
from pixelpipe.stream.coalescer import FrameCoalescer
from pixelpipe.stream.validator import validate_frame
from pixelpipe.viewer.window import Window


logger = logging.getLogger(__name__)


class RenderState(str, Enum):
    """
    Render loop states.

    Attributes:
        NO_FRAME_YET: Placeholder framebuffer, nothing valid received
        DISPLAYING: A valid frame has been shown
    """

    NO_FRAME_YET = "NO_FRAME_YET"
    DISPLAYING = "DISPLAYING"


def unpack_rgb(data: bytes, width: int, height: int) -> np.ndarray:
    """
    Unpack packed RGB bytes into 0x00RRGGBB words.

    The caller must have validated len(data) == width * height * 3.

    Returns:
        (height, width) uint32 array
    """
    rgb = np.frombuffer(data, dtype=np.uint8).reshape(height, width, 3).astype(np.uint32)
    return (rgb[..., 0] << 16) | (rgb[..., 1] << 8) | rgb[..., 2]


class RenderLoop:
    """
    Window-driving consumer of the frame coalescer.

    Attributes:
        state: Current RenderState
        width: Current framebuffer width
        height: Current framebuffer height
        framebuffer: (height, width) uint32 packed pixels
        frames_displayed: Valid frames shown so far
        frames_rejected: Frames that failed validation

    Example:
        loop = RenderLoop(window, coalescer, diagnostics)
        loop.run()
    """

    def __init__(
        self,
        window: Window,
        coalescer: FrameCoalescer,
        diagnostics: Diagnostics,
        default_width: int = 320,
        default_height: int = 240,
        target_fps: int = 60,
        idle_sleep: float = 0.001,
        title: str = "PixelPipe",
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if target_fps < 1:
            raise ValueError("target_fps must be >= 1")

        self.window = window
        self.coalescer = coalescer
        self.diagnostics = diagnostics
        self.title = title
        self.frame_period = 1.0 / target_fps
        self.idle_sleep = idle_sleep
        self._clock = clock
        self._sleep = sleep

        self.state = RenderState.NO_FRAME_YET
        self.width = default_width
        self.height = default_height
        self.framebuffer = np.zeros((default_height, default_width), dtype=np.uint32)

        self.frames_displayed: int = 0
        self.frames_rejected: int = 0

    def tick(self) -> bool:
        """
        Run one iteration.

        Returns:
            False once the window is closed or cancel was requested.
        """
        frame = self.coalescer.drain_latest()

        if frame is not None:
            try:
                self._show(frame)
            except (InvalidDimensions, InvalidBuffer) as e:
                self.frames_rejected += 1
                self.diagnostics.warn_with_error("failed to display image", e)
                self.window.present(self.framebuffer)
        else:
            self.window.present(self.framebuffer)

        return self.window.is_open() and not self.window.cancel_requested()

    def _show(self, frame: Frame) -> None:
        w, h = validate_frame(frame)

        if (w, h) != (self.width, self.height):
            logger.debug(f"Reallocating framebuffer {self.width}x{self.height} -> {w}x{h}")
            self.width = w
            self.height = h
            self.framebuffer = np.zeros((h, w), dtype=np.uint32)

        self.framebuffer[...] = unpack_rgb(frame.data, w, h)

        self.window.set_title(f"{frame.id or self.title} ({w}x{h})")
        self.window.present(self.framebuffer)

        self.state = RenderState.DISPLAYING
        self.frames_displayed += 1

    def run(self, max_ticks: Optional[int] = None) -> None:
        """
        Tick until the window closes, capped at the target cadence.

        Args:
            max_ticks: Stop after this many ticks (None = until closed)

        The coalescer is closed on exit so the producer's pushes become
        inert.
        """
        ticks = 0
        try:
            while max_ticks is None or ticks < max_ticks:
                started = self._clock()
                if not self.tick():
                    break
                ticks += 1
                remaining = self.frame_period - (self._clock() - started)
                self._sleep(max(remaining, self.idle_sleep))
        finally:
            self.coalescer.close()
            logger.info(
                f"Render loop exiting after {ticks} ticks: "
                f"{self.frames_displayed} displayed, {self.frames_rejected} rejected"
            )
