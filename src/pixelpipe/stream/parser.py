"""
Line Stream Parser
==================

Turns a line-delimited byte stream into a sequence of Frame records.

For each line:
    1. Passthrough (optional): the raw line is copied verbatim to the
       passthrough stream and flushed, before and independent of parsing
    2. Blank lines are skipped silently
    3. The line is parsed as a Frame record; failures are reported and
       the loop moves on to the next line

Error Policy:
    - ParseFailure on a line: non-fatal, reported, counted, skipped
    - OSError reading the input: fatal, raised as IoFailure
    - End of stream: clean end of iteration

The parser works on binary streams (sys.stdin.buffer) so passthrough is
byte-for-byte exact regardless of encoding.
"""

import logging
from typing import BinaryIO, Iterator, Optional

from pixelpipe.diagnostics import Diagnostics
from pixelpipe.errors import IoFailure, ParseFailure
from pixelpipe.models.frame import Frame


logger = logging.getLogger(__name__)


class ParserMetrics:
    """Counters for LineStreamParser observability."""

    __slots__ = (
        "lines_read",
        "frames_parsed",
        "parse_errors",
        "blank_lines",
    )

    def __init__(self) -> None:
        self.lines_read: int = 0
        self.frames_parsed: int = 0
        self.parse_errors: int = 0
        self.blank_lines: int = 0

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {
            "lines_read": self.lines_read,
            "frames_parsed": self.frames_parsed,
            "parse_errors": self.parse_errors,
            "blank_lines": self.blank_lines,
        }


class LineStreamParser:
    """
    Parser for line-delimited frame records with optional passthrough.

    Attributes:
        diagnostics: Sink for parse warnings
        passthrough: Binary stream receiving a verbatim copy of each line
        metrics: Operational counters

    Example:
        parser = LineStreamParser(diagnostics, passthrough=sys.stdout.buffer)
        for frame in parser.iter_frames(sys.stdin.buffer):
            handle(frame)
    """

    def __init__(
        self,
        diagnostics: Diagnostics,
        passthrough: Optional[BinaryIO] = None,
    ) -> None:
        self.diagnostics = diagnostics
        self.passthrough = passthrough
        self.metrics = ParserMetrics()

    def parse_line(self, line: bytes) -> Frame:
        """
        Parse a single record line.

        Raises:
            ParseFailure: If the line is not a valid frame record
        """
        return Frame.from_json(line)

    def iter_frames(self, stream: BinaryIO) -> Iterator[Frame]:
        """
        Yield each successfully parsed frame from the stream.

        Args:
            stream: Binary input stream

        Yields:
            Parsed frames, in input order

        Raises:
            IoFailure: If reading the stream fails
        """
        while True:
            try:
                line = stream.readline()
            except OSError as e:
                raise IoFailure("reading record stream", e) from e

            if not line:
                logger.debug(f"End of record stream: {self.metrics.to_dict()}")
                return

            self.metrics.lines_read += 1
            self._tee(line)

            if not line.strip():
                self.metrics.blank_lines += 1
                continue

            try:
                frame = self.parse_line(line)
            except ParseFailure as e:
                self.metrics.parse_errors += 1
                self.diagnostics.warn_with_error(
                    f"failed to parse Image record on line {self.metrics.lines_read}", e
                )
                continue

            self.metrics.frames_parsed += 1
            yield frame

    def _tee(self, line: bytes) -> None:
        if self.passthrough is None:
            return
        try:
            self.passthrough.write(line)
            self.passthrough.flush()
        except OSError as e:
            # Downstream went away; keep processing records without the copy.
            self.diagnostics.warn_with_error("passthrough output failed, disabling it", e)
            self.passthrough = None
