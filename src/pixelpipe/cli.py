"""
Command-Line Entry Points
=========================

Console scripts for the three tools:

    pixelpipe-reader [URL] [-s WxH]      image -> one record on stdout
    pixelpipe-viewer [-U]                records on stdin -> window
    pixelpipe-writer [-U] [FILES...]     records on stdin -> image files

Common options:
    -v / --verbose   repeatable; 1 = summary, 2 = summary + cause chain
    -d / --debug     cause chains plus debug logging
    --config PATH    YAML configuration file
    --version        print name and version

Each *_main() returns a sysexits exit code; the console-script wrappers
pass it to sys.exit().

Usage:
    pixelpipe-reader photo.jpg --size 640x480 | pixelpipe-writer -U out/a.png | pixelpipe-viewer
"""

import argparse
import logging
import sys
from typing import List, Optional

from pixelpipe import __version__
from pixelpipe.config import Settings, load_config, setup_logging
from pixelpipe.diagnostics import Diagnostics
from pixelpipe.errors import ExitCode
from pixelpipe.reader.source_loader import parse_dimensions, run_reader
from pixelpipe.sink.file_sink import FileSink, run_writer
from pixelpipe.stream.parser import LineStreamParser
from pixelpipe.viewer.app import run_viewer


logger = logging.getLogger(__name__)


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that exits with EX_USAGE on bad arguments."""

    def error(self, message: str) -> None:
        self.print_usage(sys.stderr)
        self.exit(int(ExitCode.EX_USAGE), f"{self.prog}: error: {message}\n")


def build_parser(prog: str, description: str) -> argparse.ArgumentParser:
    """Create a parser with the options shared by all tools."""
    parser = _ArgumentParser(prog=prog, description=description)
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase diagnostic output (repeat for cause chains)",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress INFO and WARN output (overrides -v)",
    )
    parser.add_argument(
        "-d", "--debug",
        action="store_true",
        help="Enable debug output and logging",
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="YAML configuration file",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def _add_union(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-U", "--union",
        action="store_true",
        help="Copy stdin to stdout (pass-through / tee)",
    )


def _run(args: argparse.Namespace, command) -> int:
    verbosity = 0 if args.quiet else args.verbose
    diagnostics = Diagnostics(verbosity=verbosity, debug=args.debug)
    try:
        settings = load_config(args.config)
        setup_logging(settings, debug=args.debug)
        command(settings, diagnostics)
    except Exception as e:
        return int(diagnostics.handle_error(e))
    return int(ExitCode.EX_OK)


# =============================================================================
# pixelpipe-reader
# =============================================================================

def reader_main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser("pixelpipe-reader", "Decode an image into a frame record.")
    parser.add_argument(
        "url",
        nargs="?",
        help="Input image path (file: URLs accepted). Reads stdin if omitted",
    )
    parser.add_argument(
        "-s", "--size",
        metavar="WxH",
        help="Output dimensions, e.g. 1920x1080. Defaults to the native size",
    )
    args = parser.parse_args(argv)

    def command(settings: Settings, diagnostics: Diagnostics) -> None:
        size = parse_dimensions(args.size, settings.reader) if args.size else None
        stdin = sys.stdin.buffer if args.url is None else None
        run_reader(args.url, size, stdin, sys.stdout)

    return _run(args, command)


# =============================================================================
# pixelpipe-viewer
# =============================================================================

def viewer_main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser("pixelpipe-viewer", "Display a stream of frame records.")
    _add_union(parser)
    args = parser.parse_args(argv)

    def command(settings: Settings, diagnostics: Diagnostics) -> None:
        run_viewer(
            settings,
            diagnostics,
            sys.stdin.buffer,
            sys.stdout.buffer,
            passthrough=args.union,
        )

    return _run(args, command)


# =============================================================================
# pixelpipe-writer
# =============================================================================

def writer_main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser("pixelpipe-writer", "Save a stream of frame records to image files.")
    _add_union(parser)
    parser.add_argument(
        "files",
        nargs="*",
        metavar="FILES",
        help="Output file(s); each frame is saved to all of them. "
             "Format is inferred from the extension (.png, .jpg, .bmp, ...)",
    )
    args = parser.parse_args(argv)

    def command(settings: Settings, diagnostics: Diagnostics) -> None:
        sink = FileSink(args.files, diagnostics)
        stream_parser = LineStreamParser(
            diagnostics,
            passthrough=sys.stdout.buffer if args.union else None,
        )
        result = run_writer(sink, stream_parser, sys.stdin.buffer)
        if args.debug:
            diagnostics.info(
                f"writer exiting: {result.frames_accepted} saved, "
                f"{result.frames_rejected} rejected"
            )

    return _run(args, command)


def reader() -> None:
    sys.exit(reader_main())


def viewer() -> None:
    sys.exit(viewer_main())


def writer() -> None:
    sys.exit(writer_main())
