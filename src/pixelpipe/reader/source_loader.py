"""
Source Loader
=============

One-shot decode of a local image (or stdin) into a single Frame record.

Pipeline:
    1. Resolve the locator (bare path, file: or file:// prefix) to an
       absolute path, or read all of stdin when no locator is given
    2. Decode with OpenCV (alpha dropped, 8 bits per channel)
    3. Resize with Lanczos resampling if a different size was requested
    4. Repack as RGB bytes and wrap in a Frame whose id and source are
       the resolved location

Any failure is fatal for the run and raised as a PipelineError subclass.
"""

import logging
from pathlib import Path
from typing import BinaryIO, Optional, TextIO, Tuple

import cv2
import numpy as np

from pixelpipe.config import ReaderConfig
from pixelpipe.errors import DecodeFailure, IoFailure, InvalidDimensions
from pixelpipe.models.frame import Frame


logger = logging.getLogger(__name__)


STDIN_MARKER = "[stdin]"

_FILE_PREFIXES = ("file://", "file:")


def resolve_locator(locator: str) -> Path:
    """
    Resolve a path or file: URL to an absolute, existing path.

    Raises:
        IoFailure: If the path does not exist or cannot be resolved
    """
    path = locator
    for prefix in _FILE_PREFIXES:
        if path.startswith(prefix):
            path = path[len(prefix):]
            break

    try:
        return Path(path).resolve(strict=True)
    except (OSError, RuntimeError) as e:
        raise IoFailure("resolving input path", e) from e


def read_input_bytes(
    locator: Optional[str],
    stdin: Optional[BinaryIO] = None,
) -> Tuple[bytes, str]:
    """
    Read the raw image bytes.

    Args:
        locator: Path or file: URL; None reads stdin
        stdin: Binary stream used when locator is None

    Returns:
        (bytes, location) where location is a file: URI or STDIN_MARKER
    """
    if locator is not None:
        path = resolve_locator(locator)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise IoFailure("reading input file", e) from e
        return data, path.as_uri()

    if stdin is None:
        raise IoFailure("reading from stdin (no stream available)")
    try:
        data = stdin.read()
    except OSError as e:
        raise IoFailure("reading from stdin", e) from e
    return data, STDIN_MARKER


def decode_image(data: bytes) -> np.ndarray:
    """
    Decode container bytes to a BGR image.

    Returns:
        (H, W, 3) uint8 array

    Raises:
        DecodeFailure: If the bytes are empty or not a supported image
    """
    if not data:
        raise DecodeFailure("input is empty")

    buf = np.frombuffer(data, dtype=np.uint8)
    try:
        bgr = cv2.imdecode(buf, cv2.IMREAD_COLOR | cv2.IMREAD_IGNORE_ORIENTATION)
    except cv2.error as e:
        raise DecodeFailure(str(e)) from e

    if bgr is None:
        raise DecodeFailure("unsupported or corrupt image (cv2.imdecode returned None)")
    if bgr.ndim != 3 or bgr.shape[2] != 3 or bgr.dtype != np.uint8:
        raise DecodeFailure(f"unexpected decoded layout {bgr.shape} {bgr.dtype}")
    return bgr


def resize_image(image: np.ndarray, size: Optional[Tuple[int, int]]) -> np.ndarray:
    """
    Resize to (width, height) with Lanczos resampling if it differs.

    Raises:
        InvalidDimensions: If the target size is not positive
        DecodeFailure: If OpenCV cannot resample the image
    """
    if size is None:
        return image

    target_w, target_h = size
    if target_w <= 0 or target_h <= 0:
        raise InvalidDimensions(f"target size {target_w}x{target_h} must be positive")

    src_h, src_w = image.shape[:2]
    if (target_w, target_h) == (src_w, src_h):
        return image

    logger.debug(f"Resizing {src_w}x{src_h} -> {target_w}x{target_h}")
    try:
        return cv2.resize(image, (target_w, target_h), interpolation=cv2.INTER_LANCZOS4)
    except cv2.error as e:
        raise DecodeFailure(f"resize to {target_w}x{target_h} failed: {e}") from e


def load_source(
    locator: Optional[str] = None,
    size: Optional[Tuple[int, int]] = None,
    stdin: Optional[BinaryIO] = None,
) -> Frame:
    """
    Decode one image into a Frame.

    Args:
        locator: Path or file: URL; None reads stdin
        size: Optional (width, height) target
        stdin: Binary stream used when locator is None

    Returns:
        Frame with packed RGB data and id == source == location
    """
    data, location = read_input_bytes(locator, stdin)
    logger.debug(f"Read {len(data)} bytes from {location}")

    image = resize_image(decode_image(data), size)
    rgb = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
    h, w = rgb.shape[:2]

    return Frame(
        id=location,
        width=w,
        height=h,
        data=rgb.tobytes(),
        source=location,
    )


def parse_dimensions(text: str, limits: Optional[ReaderConfig] = None) -> Tuple[int, int]:
    """
    Parse a WxH size such as "1920x1080" or "1920×1080".

    Args:
        text: Size string, spaces allowed around the parts
        limits: Accepted ranges (defaults: width 160-7680, height 120-4320)

    Returns:
        (width, height)

    Raises:
        InvalidDimensions: On bad format or out-of-range values
    """
    limits = limits or ReaderConfig()
    s = text.strip().replace("×", "x")
    parts = [p.strip() for p in s.split("x")]
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise InvalidDimensions(f"invalid format '{s}'. Use WxH (e.g., 1920x1080)")

    try:
        width = int(parts[0])
    except ValueError:
        raise InvalidDimensions(f"invalid width: {parts[0]}") from None
    try:
        height = int(parts[1])
    except ValueError:
        raise InvalidDimensions(f"invalid height: {parts[1]}") from None

    if not limits.min_width <= width <= limits.max_width:
        raise InvalidDimensions(
            f"width {width} is out of reasonable range "
            f"({limits.min_width}-{limits.max_width})"
        )
    if not limits.min_height <= height <= limits.max_height:
        raise InvalidDimensions(
            f"height {height} is out of reasonable range "
            f"({limits.min_height}-{limits.max_height})"
        )
    return width, height


def run_reader(
    locator: Optional[str],
    size: Optional[Tuple[int, int]],
    stdin: Optional[BinaryIO],
    stdout: TextIO,
) -> Frame:
    """
    Load one image and print its record as a single line on stdout.

    Returns:
        The emitted Frame
    """
    logger.info(f"Starting reader (locator={locator}, size={size})")
    frame = load_source(locator, size, stdin)

    try:
        stdout.write(frame.to_json() + "\n")
        stdout.flush()
    except OSError as e:
        raise IoFailure("writing record to stdout", e) from e

    logger.info(f"Finished reader: {frame!r}")
    return frame
