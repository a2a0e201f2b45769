from __future__ import annotations

import argparse
import sys
from pathlib import Path

from marcify.config.loader import ConfigError, load_config
from marcify.logging.init import log_summary, setup_logging
from marcify.services.batch import ProcessingError, process_file
from marcify.services.summary import render_summary_line
from marcify.spreadsheet.reader import StructuralError

"""CLI entrypoint.

Flow:
- Load and validate the config file (-c)
- Convert the SpreadsheetML export (-f) into a MARC file (-o)
- Print the SUMMARY line and return the exit code
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1

DEFAULT_OUTPUT = "output.mrc"
DEFAULT_CONFIG = "marcify.ini"


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="marcify",
        description="OverDrive SpreadsheetML metadata -> MARC records",
    )
    p.add_argument("-f", "--file", dest="source", required=True, help="OverDrive XML export to convert")
    p.add_argument("-o", "--output", default=DEFAULT_OUTPUT, help=f"MARC output file (default: {DEFAULT_OUTPUT})")
    p.add_argument("-c", "--config", default=DEFAULT_CONFIG, help=f"config file (default: {DEFAULT_CONFIG})")
    p.add_argument("-v", "--verbose", action="store_true", help="log a line per record written")
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    # An empty list is a valid argv in tests; only fall back to sys.argv on None.
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)

    logger = setup_logging(verbose=args.verbose)
    if args.verbose:
        logger.debug("verbose mode enabled")

    try:
        cfg = load_config(Path(args.config))
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    source = Path(args.source)
    if not source.is_file():
        logger.error(f"input file not found: {source}")
        return EXIT_FATAL

    logger.info(f"Converting {source} -> {args.output}")
    try:
        result = process_file(source, Path(args.output), cfg)
    except StructuralError as e:
        logger.error(f"input: {e}")
        return EXIT_FATAL
    except ProcessingError as e:
        logger.error(f"processing: {e}")
        return EXIT_FATAL

    # log_summary adds the "SUMMARY " label itself
    log_summary(render_summary_line(result).removeprefix("SUMMARY "))
    return EXIT_SUCCESS


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
