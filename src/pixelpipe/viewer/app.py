"""
Viewer Application
==================

Wires the record stream to a window.

Architecture:
    Producer thread (daemon) : blocking line reads + parsing -> coalescer
    Main thread              : render loop, owns window and framebuffer

The producer is never joined or cancelled. When the render loop exits
it closes the coalescer; the producer notices on its next push and
stops, or is abandoned at process exit while blocked on a read.
"""

import logging
import threading
from typing import BinaryIO, Optional

from pixelpipe.config import Settings
from pixelpipe.diagnostics import Diagnostics
from pixelpipe.errors import IoFailure
from pixelpipe.stream.coalescer import FrameCoalescer
from pixelpipe.stream.parser import LineStreamParser
from pixelpipe.viewer.render_loop import RenderLoop
from pixelpipe.viewer.window import OpenCVWindow, Window


logger = logging.getLogger(__name__)


def producer_thread(
    parser: LineStreamParser,
    stream: BinaryIO,
    coalescer: FrameCoalescer,
) -> None:
    """Feed parsed frames into the coalescer until EOF or the viewer exits."""
    try:
        for frame in parser.iter_frames(stream):
            if not coalescer.push(frame):
                logger.debug("Viewer gone, producer stopping")
                return
    except IoFailure as e:
        parser.diagnostics.warn_with_error("stdin read error", e)
        return
    logger.debug(f"Producer reached end of stream: {parser.metrics.to_dict()}")


def start_producer(
    parser: LineStreamParser,
    stream: BinaryIO,
    coalescer: FrameCoalescer,
) -> threading.Thread:
    """Start the daemon producer thread."""
    thread = threading.Thread(
        target=producer_thread,
        args=(parser, stream, coalescer),
        name="pixelpipe-producer",
        daemon=True,
    )
    thread.start()
    return thread


def run_viewer(
    settings: Settings,
    diagnostics: Diagnostics,
    stdin: BinaryIO,
    stdout: Optional[BinaryIO] = None,
    passthrough: bool = False,
    window: Optional[Window] = None,
) -> RenderLoop:
    """
    Display the record stream on stdin until the window is closed.

    Args:
        settings: Loaded configuration
        diagnostics: Diagnostic sink
        stdin: Binary record stream
        stdout: Binary stream for passthrough copies
        passthrough: Copy each input line to stdout
        window: Display backend (defaults to an OpenCV window)

    Returns:
        The finished RenderLoop, for its counters

    Raises:
        InternalFailure: If the window backend fails
    """
    cfg = settings.viewer
    logger.info(f"Starting viewer (passthrough={passthrough})")

    if window is None:
        window = OpenCVWindow(
            cfg.title,
            cfg.default_width,
            cfg.default_height,
            cancel_keys=(cfg.cancel_key, ord("q")),
        )

    coalescer = FrameCoalescer()
    parser = LineStreamParser(diagnostics, passthrough=stdout if passthrough else None)
    start_producer(parser, stdin, coalescer)

    loop = RenderLoop(
        window,
        coalescer,
        diagnostics,
        default_width=cfg.default_width,
        default_height=cfg.default_height,
        target_fps=cfg.target_fps,
        idle_sleep=cfg.idle_sleep_ms / 1000.0,
        title=cfg.title,
    )
    try:
        loop.run()
    finally:
        window.close()

    logger.info(f"Viewer exiting: {coalescer.metrics()}")
    return loop
