"""
Window Backend
==============

Narrow interface between the render loop and the display.

The render loop only needs to present a framebuffer, set a title and ask
whether the user wants out. OpenCVWindow provides this on OpenCV HighGUI;
tests substitute a fake implementing the same protocol.

Framebuffer Format:
    numpy uint32 array of shape (height, width), one packed word per
    pixel: 0x00RRGGBB (red most significant, no alpha)
"""

import logging
from typing import Iterable, Protocol

import cv2
import numpy as np

from pixelpipe.errors import InternalFailure


logger = logging.getLogger(__name__)


ESCAPE_KEY = 27


class Window(Protocol):
    """
    Protocol for display backends.

    Implemented by:
        - OpenCVWindow (cv2.imshow)
        - test fakes
    """

    def is_open(self) -> bool:
        ...

    def cancel_requested(self) -> bool:
        ...

    def set_title(self, title: str) -> None:
        ...

    def present(self, framebuffer: np.ndarray) -> None:
        ...

    def close(self) -> None:
        ...


def packed_to_bgr(framebuffer: np.ndarray) -> np.ndarray:
    """
    Convert 0x00RRGGBB words to an OpenCV BGR image.

    Args:
        framebuffer: (H, W) uint32 array

    Returns:
        (H, W, 3) uint8 array in BGR channel order
    """
    return np.dstack((
        framebuffer & 0xFF,
        (framebuffer >> 8) & 0xFF,
        (framebuffer >> 16) & 0xFF,
    )).astype(np.uint8)


class OpenCVWindow:
    """
    Resizable HighGUI window.

    The window pumps its event queue in present() via cv2.waitKey(1) and
    latches the cancel key when it is seen.

    Attributes:
        name: HighGUI window name (also the initial title)
    """

    def __init__(
        self,
        name: str,
        width: int,
        height: int,
        cancel_keys: Iterable[int] = (ESCAPE_KEY, ord("q")),
    ) -> None:
        self.name = name
        self._cancel_keys = frozenset(cancel_keys)
        self._cancelled = False
        self._destroyed = False

        try:
            cv2.namedWindow(name, cv2.WINDOW_NORMAL | cv2.WINDOW_KEEPRATIO)
            cv2.resizeWindow(name, width, height)
        except cv2.error as e:
            raise InternalFailure(f"failed to create window: {e}") from e

        logger.debug(f"Opened window '{name}' at {width}x{height}")

    def is_open(self) -> bool:
        if self._destroyed:
            return False
        try:
            return cv2.getWindowProperty(self.name, cv2.WND_PROP_VISIBLE) >= 1
        except cv2.error:
            return False

    def cancel_requested(self) -> bool:
        return self._cancelled

    def set_title(self, title: str) -> None:
        try:
            cv2.setWindowTitle(self.name, title)
        except cv2.error as e:
            raise InternalFailure(f"failed to set window title: {e}") from e

    def present(self, framebuffer: np.ndarray) -> None:
        """Show the framebuffer and process pending window events."""
        try:
            cv2.imshow(self.name, packed_to_bgr(framebuffer))
            key = cv2.waitKey(1)
        except cv2.error as e:
            raise InternalFailure(f"failed to update window: {e}") from e

        if key != -1 and (key & 0xFF) in self._cancel_keys:
            self._cancelled = True

    def close(self) -> None:
        if self._destroyed:
            return
        self._destroyed = True
        try:
            cv2.destroyWindow(self.name)
        except cv2.error:
            # Already closed by the user.
            pass
