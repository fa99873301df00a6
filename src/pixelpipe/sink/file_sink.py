"""
File Sink
=========

Persists validated frames to one or more image files.

Design Rules:
    - Every frame is validated before its bytes are treated as pixels
    - Each frame is written to EVERY configured path
    - Output format is chosen by OpenCV from each path's extension
    - Parent directories are created as needed
    - A failure on one path is reported and the remaining paths are
      still attempted; nothing is retried
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, List, Sequence, Union

import cv2
import numpy as np

from pixelpipe.diagnostics import Diagnostics
from pixelpipe.errors import IoFailure, InvalidBuffer, InvalidDimensions
from pixelpipe.models.frame import Frame
from pixelpipe.stream.parser import LineStreamParser
from pixelpipe.stream.validator import validate_frame


logger = logging.getLogger(__name__)


def frame_to_bgr(frame: Frame) -> np.ndarray:
    """
    Validate a frame and rebuild it as an OpenCV BGR image.

    Returns:
        (H, W, 3) uint8 array

    Raises:
        InvalidDimensions: If width/height are missing
        InvalidBuffer: If the buffer does not match the dimensions
    """
    w, h = validate_frame(frame)
    rgb = np.frombuffer(frame.data, dtype=np.uint8).reshape(h, w, 3)
    return cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR)


class FileSink:
    """
    Writes each frame to all configured output paths.

    Attributes:
        outputs: Destination paths; extensions select the format
        files_written: Successful file writes so far
        write_errors: Failed file writes so far

    Example:
        sink = FileSink(["out/frame.png", "out/frame.jpg"], diagnostics)
        sink.write(frame)
    """

    def __init__(
        self,
        outputs: Sequence[Union[str, Path]],
        diagnostics: Diagnostics,
    ) -> None:
        self.outputs: List[Path] = [Path(p) for p in outputs]
        self.diagnostics = diagnostics
        self.files_written: int = 0
        self.write_errors: int = 0

        if not self.outputs:
            diagnostics.info("no output FILES provided; images will not be saved")

    def write(self, frame: Frame) -> int:
        """
        Validate a frame and save it to every output path.

        Args:
            frame: Frame to persist

        Returns:
            Number of paths written successfully

        Raises:
            InvalidDimensions: If width/height are missing
            InvalidBuffer: If the buffer does not match the dimensions
        """
        image = frame_to_bgr(frame)

        written = 0
        for path in self.outputs:
            try:
                self._save(image, path)
            except IoFailure as e:
                self.write_errors += 1
                self.diagnostics.warn_with_error(f"failed to save image to '{path}'", e)
                continue
            written += 1
            self.files_written += 1
            logger.debug(f"Saved {frame!r} to {path}")
        return written

    def _save(self, image: np.ndarray, path: Path) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise IoFailure(f"creating directory '{path.parent}'", e) from e

        try:
            ok = cv2.imwrite(str(path), image)
        except cv2.error as e:
            raise IoFailure(f"saving to '{path}'", e) from e
        if not ok:
            raise IoFailure(f"saving to '{path}'")


@dataclass
class WriterResult:
    """Outcome counters of a writer run."""

    frames_accepted: int = 0
    frames_rejected: int = 0


def run_writer(
    sink: FileSink,
    parser: LineStreamParser,
    stdin: BinaryIO,
) -> WriterResult:
    """
    Persist every valid frame read from the record stream.

    Invalid records are reported and skipped; processing continues with
    the next line.

    Raises:
        IoFailure: If reading the record stream fails
    """
    result = WriterResult()

    for frame in parser.iter_frames(stdin):
        try:
            sink.write(frame)
        except (InvalidDimensions, InvalidBuffer) as e:
            result.frames_rejected += 1
            sink.diagnostics.warn_with_error("failed to save image", e)
            continue
        result.frames_accepted += 1

    logger.debug(f"Writer exiting: {parser.metrics.to_dict()}")
    return result
