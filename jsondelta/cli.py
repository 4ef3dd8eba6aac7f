"""
Command-line bridge: diff two JSON documents and print the delta.

    jsondelta '{"a": 1}' '{"a": 2}'         → {"a": [1, 2]}
    jsondelta --files old.json new.json

Standard output only ever carries the delta ("{}" when the documents
are equal).  Errors go to standard error with exit status 1.
"""

import argparse
import logging
import re
import sys
from pathlib import Path
from typing import Optional

from .core import DiffOptions
from .errors import ArgumentCountError, JsonDeltaError, JsonParseError
from .formats import diff_documents, to_json, to_text

logger = logging.getLogger(__name__)

LOG_FORMAT = "[%(levelname)s] %(name)s: %(message)s"

# A JSON number such as -1e5 that argparse would take for an option
NEGATIVE_NUMBER = re.compile(r"-(0|[1-9]\d*)(\.\d+)?([eE][+-]?\d+)?")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jsondelta",
        description="Compute the structural delta between two JSON documents.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s '{"a": 1}' '{"a": 2}'
  %(prog)s --files before.json after.json
  %(prog)s --format text '[1, 2, 3]' '[1, 3, 2]'
        """,
    )

    # Counted by hand so that a wrong count is our error, not argparse's
    parser.add_argument(
        "documents",
        nargs="*",
        metavar="JSON",
        help="The two JSON documents to compare (left, then right)",
    )

    parser.add_argument(
        "-f",
        "--files",
        action="store_true",
        help="Treat the two arguments as paths to JSON files",
    )

    parser.add_argument(
        "--format",
        choices=["json", "text"],
        default="json",
        help="Output the delta as JSON (default) or as a text listing",
    )

    parser.add_argument(
        "--indent",
        type=int,
        default=2,
        help="Indentation of the JSON output (default: 2)",
    )

    parser.add_argument(
        "--compact",
        action="store_true",
        help="Print the JSON output on a single line",
    )

    parser.add_argument(
        "--no-moves",
        action="store_true",
        help="Report moved array items as removed and added",
    )

    parser.add_argument(
        "--include-moved-values",
        action="store_true",
        help="Keep the moved value in move deltas",
    )

    parser.add_argument(
        "--no-position-match",
        action="store_true",
        help="Do not pair changed containers that kept their array index",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log debug information to standard error",
    )

    return parser


def setup_logging(verbose: bool = False) -> None:
    """Send jsondelta's log records to standard error."""
    level = logging.DEBUG if verbose else logging.WARNING

    package_logger = logging.getLogger("jsondelta")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.setLevel(level)

    package_logger.setLevel(level)
    package_logger.addHandler(handler)


def read_document(path: str) -> str:
    """
    Read a JSON document from a file.

    Raises OSError if the file cannot be read, and JsonParseError if
    it is not UTF-8 text.
    """
    logger.debug("reading %s", path)
    try:
        return Path(path).read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise JsonParseError(
            path, f"not valid UTF-8 ({e.reason} at byte {e.start})"
        ) from e


def _shield_negative_numbers(argv: list[str]) -> list[str]:
    """
    Prefix bare negative JSON numbers with a space so that argparse
    reads them as documents.  JSON allows the leading whitespace.
    """
    return [" " + arg if NEGATIVE_NUMBER.fullmatch(arg) else arg for arg in argv]


def _unshield(arg: str) -> str:
    if arg.startswith(" ") and NEGATIVE_NUMBER.fullmatch(arg[1:]):
        return arg[1:]
    return arg


def options_from_args(args: argparse.Namespace) -> DiffOptions:
    return DiffOptions(
        detect_moves=not args.no_moves,
        include_value_on_move=args.include_moved_values,
        match_by_position=not args.no_position_match,
    )


def main(argv: Optional[list[str]] = None) -> int:
    """
    CLI entry point.  Returns the process exit status.
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = build_parser()
    args = parser.parse_args(_shield_negative_numbers(argv))
    setup_logging(args.verbose)

    try:
        if len(args.documents) != 2:
            raise ArgumentCountError(len(args.documents))

        left, right = (_unshield(d) for d in args.documents)
        if args.files:
            left = read_document(left)
            right = read_document(right)

        delta = diff_documents(left, right, options_from_args(args))

        if args.format == "text":
            output = to_text(delta)
        else:
            output = to_json(delta, indent=None if args.compact else args.indent)

    except ArgumentCountError as e:
        print(f"Error: {e}", file=sys.stderr)
        print(parser.format_usage(), end="", file=sys.stderr)
        return 1
    except JsonDeltaError as e:
        print(f"Error processing JSON diff: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: Could not read file: {e}", file=sys.stderr)
        return 1

    if output:
        print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
