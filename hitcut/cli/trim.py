from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from hitcut.pipeline.metadata import METADATA_FILENAME
from hitcut.trim import TrimConfigError, require_ffmpeg, trim_from_metadata
from hitcut.util.logs import configure_console

logger = logging.getLogger(__name__)

HELP = """\
Trims audio files based on start times specified in a CSV file

Arguments:
  input_csv    Path to CSV file containing filenames and start times
               (default: note_metadata.csv in current directory)

CSV Format:
  filename,start_time[,end_time]
  (Lines starting with # are treated as comments)

Requirements:
  - ffmpeg must be installed and available in PATH
  - Input audio files should be in OGG format, next to where this runs

Example:
  hitcut-trim note_metadata.csv
"""


def build_parser(prog: str = "hitcut-trim") -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog=prog, add_help=False, formatter_class=argparse.RawTextHelpFormatter)
    p.add_argument("-h", "--help", action="store_true")
    p.add_argument("input_csv", nargs="?", default=METADATA_FILENAME)
    return p


def show_usage(parser: argparse.ArgumentParser) -> int:
    print(f"Usage: {parser.prog} [input_csv]")
    print(HELP)
    return 1


def main(argv: list[str] | None = None, *, prog: str = "hitcut-trim", verbose: bool = False) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    parser = build_parser(prog)
    args, extra = parser.parse_known_args(argv)

    if args.help:
        return show_usage(parser)
    if extra:
        print(f"Error: unexpected arguments: {' '.join(extra)}", file=sys.stderr)
        return show_usage(parser)

    configure_console(verbose=verbose)

    input_csv = Path(args.input_csv)
    if not input_csv.is_file():
        print(f"Error: Input CSV file '{input_csv}' not found", file=sys.stderr)
        return show_usage(parser)

    try:
        ffmpeg = require_ffmpeg()
    except TrimConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        print("Please install ffmpeg and try again", file=sys.stderr)
        return 1

    print(f"Starting audio trimming process using '{input_csv}'")
    print("-" * 45)

    summary = trim_from_metadata(input_csv, ffmpeg=ffmpeg)

    print("-" * 45)
    print("Processing complete!")
    print("Summary:")
    print(f"  Successfully processed: {summary.processed} files")
    print(f"  Skipped: {summary.skipped} files")
    print(f"  Errors encountered: {summary.errors} files")

    return 0 if summary.ok else 1


if __name__ == "__main__":
    sys.exit(main())
