"""
Diagnostics
===========

User-facing diagnostic output on standard error.

A single Diagnostics instance is built by the CLI at startup and passed
into every component that reports problems. Components never print to
stderr directly and never reach for global state.

Verbosity Levels:
    0 - silent (only fatal ERROR lines)
    1 - summary (INFO/WARN lines)
    2 - summary + cause chain (debug behaves as 2)

Every message is also sent to the standard logging module, so a log
handler configured by setup_logging() sees the same events.
"""

import logging
import sys
from typing import Optional, TextIO

from pixelpipe.errors import ExitCode, cause_chain, exit_code_for


logger = logging.getLogger(__name__)


class Diagnostics:
    """
    Verbosity-gated reporter for warnings, notices and fatal errors.

    Attributes:
        verbosity: 0 silent, 1 summary, 2 summary + cause chain
        debug: Forces cause-chain output
    """

    def __init__(
        self,
        verbosity: int = 0,
        debug: bool = False,
        stream: Optional[TextIO] = None,
    ) -> None:
        self.verbosity = verbosity
        self.debug = debug
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        # Resolved lazily so pytest's capsys replacement is honoured.
        return self._stream if self._stream is not None else sys.stderr

    @property
    def summary(self) -> bool:
        return self.debug or self.verbosity >= 1

    @property
    def detailed(self) -> bool:
        return self.debug or self.verbosity >= 2

    def _emit(self, line: str) -> None:
        self.stream.write(line + "\n")
        self.stream.flush()

    def info(self, msg: str) -> None:
        """Print `INFO: msg` at verbosity >= 1."""
        if self.summary:
            self._emit(f"INFO: {msg}")
        logger.info(msg)

    def warn(self, msg: str) -> None:
        """Print `WARN: msg` at verbosity >= 1."""
        if self.summary:
            self._emit(f"WARN: {msg}")
        logger.warning(msg)

    def warn_with_error(self, msg: str, error: BaseException) -> None:
        """
        Report a non-fatal failure.

        Stderr behavior:
            - verbosity 0: nothing
            - verbosity 1: `WARN: msg`
            - verbosity >= 2 or debug: `WARN: msg: error`
        """
        if self.detailed:
            self._emit(f"WARN: {msg}: {error}")
        elif self.summary:
            self._emit(f"WARN: {msg}")
        logger.warning(f"{msg}: {error}")

    def report_error(self, error: BaseException) -> None:
        """Print the one-line summary, plus the cause chain when detailed."""
        self._emit(f"ERROR: {error}")
        if self.detailed:
            for cause in cause_chain(error):
                self._emit(f"  Caused by: {cause}")

    def handle_error(self, error: BaseException) -> ExitCode:
        """
        Handle a fatal error: log it, print it and map it to an exit code.

        Args:
            error: The failure that ended the run

        Returns:
            Exit code for the error's kind
        """
        logger.error(f"command failed: {error}")
        if self.detailed:
            logger.debug("detailed error", exc_info=error)
        self.report_error(error)
        return exit_code_for(error)
