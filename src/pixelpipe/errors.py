"""
Error Taxonomy
==============

Closed set of failure kinds for the frame pipeline and their mapping to
process exit codes.

Every component raises a subclass of PipelineError rather than a bare
exception, so callers can branch on `error.kind` without inspecting the
concrete type. The CLI maps the kind to a sysexits-style exit code with
exit_code_for().

Kinds:
    - IO: reading, writing or resolving a resource
    - DECODE: malformed source image bytes
    - INVALID_DIMENSIONS: missing or unusable width/height
    - INVALID_BUFFER: byte length mismatch or size overflow
    - PARSE: malformed record text on a line
    - INTERNAL: unexpected backend condition (e.g. window creation)
    - CONFIG: unreadable or invalid configuration

Example:
    from pixelpipe.errors import IoFailure, exit_code_for

    try:
        data = path.read_bytes()
    except OSError as e:
        raise IoFailure("reading input file", e) from e
"""

from enum import Enum, IntEnum
from typing import Iterator, Optional


class ErrorKind(str, Enum):
    """
    Machine-readable failure categories.

    Attributes:
        IO: Resource could not be read, written or resolved
        DECODE: Source image bytes could not be decoded
        INVALID_DIMENSIONS: Width/height absent or out of range
        INVALID_BUFFER: Pixel buffer does not match its dimensions
        PARSE: Record line is not a valid Frame document
        INTERNAL: Unexpected backend failure
        CONFIG: Configuration could not be loaded
    """

    IO = "IO"
    DECODE = "DECODE"
    INVALID_DIMENSIONS = "INVALID_DIMENSIONS"
    INVALID_BUFFER = "INVALID_BUFFER"
    PARSE = "PARSE"
    INTERNAL = "INTERNAL"
    CONFIG = "CONFIG"


class ExitCode(IntEnum):
    """Process exit codes (BSD sysexits.h values)."""

    EX_OK = 0
    EX_USAGE = 64
    EX_DATAERR = 65
    EX_SOFTWARE = 70
    EX_IOERR = 74
    EX_CONFIG = 78


_EXIT_CODES = {
    ErrorKind.IO: ExitCode.EX_IOERR,
    ErrorKind.DECODE: ExitCode.EX_DATAERR,
    ErrorKind.INVALID_DIMENSIONS: ExitCode.EX_USAGE,
    ErrorKind.INVALID_BUFFER: ExitCode.EX_DATAERR,
    ErrorKind.PARSE: ExitCode.EX_DATAERR,
    ErrorKind.INTERNAL: ExitCode.EX_SOFTWARE,
    ErrorKind.CONFIG: ExitCode.EX_CONFIG,
}


class PipelineError(Exception):
    """Base class for all pipeline failures."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class IoFailure(PipelineError):
    """
    Raised when a resource cannot be read, written or resolved.

    Attributes:
        context: What was being done, e.g. "reading input file"
        source: Underlying OS-level error, if any
    """

    kind = ErrorKind.IO

    def __init__(self, context: str, source: Optional[BaseException] = None) -> None:
        if source is not None:
            message = f"I/O error while {context}: {source}"
        else:
            message = f"I/O error while {context}"
        super().__init__(message)
        self.context = context
        self.source = source


class DecodeFailure(PipelineError):
    """Raised when image bytes cannot be decoded."""

    kind = ErrorKind.DECODE

    def __init__(self, reason: str) -> None:
        super().__init__(f"failed to decode image data: {reason}")


class InvalidDimensions(PipelineError):
    """Raised when width/height are missing or outside the accepted range."""

    kind = ErrorKind.INVALID_DIMENSIONS

    def __init__(self, reason: str) -> None:
        super().__init__(f"invalid dimensions: {reason}")


class InvalidBuffer(PipelineError):
    """Raised when a pixel buffer does not fit its declared dimensions."""

    kind = ErrorKind.INVALID_BUFFER

    def __init__(self, reason: str) -> None:
        super().__init__(f"invalid image buffer: {reason}")


class ParseFailure(PipelineError):
    """Raised when a record line is not a valid Frame document."""

    kind = ErrorKind.PARSE

    def __init__(self, reason: str) -> None:
        super().__init__(f"failed to parse frame record: {reason}")


class InternalFailure(PipelineError):
    """Raised on unexpected backend conditions."""

    kind = ErrorKind.INTERNAL


class ConfigError(PipelineError):
    """Raised when the configuration file or environment is invalid."""

    kind = ErrorKind.CONFIG

    def __init__(self, reason: str) -> None:
        super().__init__(f"invalid configuration: {reason}")


def exit_code_for(error: BaseException) -> ExitCode:
    """
    Map an error to its process exit code.

    Args:
        error: Any exception

    Returns:
        ExitCode for the error's kind, EX_SOFTWARE for anything that is
        not a PipelineError.
    """
    if isinstance(error, PipelineError):
        return _EXIT_CODES[error.kind]
    return ExitCode.EX_SOFTWARE


def cause_chain(error: BaseException) -> Iterator[BaseException]:
    """
    Yield the wrapped causes of an error, outermost first, innermost last.

    Follows explicit `__cause__` links, falling back to implicit
    `__context__` unless suppressed.
    """
    seen = {id(error)}
    current = error
    while True:
        if current.__cause__ is not None:
            nxt = current.__cause__
        elif not current.__suppress_context__ and current.__context__ is not None:
            nxt = current.__context__
        else:
            return
        if id(nxt) in seen:
            return
        seen.add(id(nxt))
        yield nxt
        current = nxt
