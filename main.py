import argparse
import sys
from typing_extensions import *

import cli
from io_utils import format_report, load_rename_maps, load_test_cases
from logging_config import get_logger, setup_logging
from pipeline import run_batch

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="grammar2dfa",
        description=(
            "Convert regular grammars to DFAs and apply complement, "
            "union or intersection to them."
        ),
    )
    parser.add_argument("input", nargs="?", help="test case file (e.g. input.txt)")
    parser.add_argument("-o", "--output", help="report file (default: stdout)")
    parser.add_argument(
        "--rename-map",
        metavar="FILE",
        help='JSON file of per-case state renames, e.g. {"3": {"S_F_G2S": "S"}}',
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
    )
    parser.add_argument("--log-file", help="also write a detailed log to this file")
    parser.add_argument(
        "-i", "--interactive", action="store_true", help="start the interactive terminal"
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_level, args.log_file)

    if args.interactive:
        cli.main()
        return 0

    if not args.input:
        parser.error("an input file is required unless --interactive is given")

    try:
        cases = load_test_cases(args.input)
        rename_maps = load_rename_maps(args.rename_map) if args.rename_map else None
    except (OSError, ValueError) as e:
        logger.error("Cannot read input: %s", e)
        return 2

    results = run_batch(cases, rename_maps)
    report = format_report(results)

    if args.output:
        try:
            with open(args.output, "w", encoding="utf-8") as f:
                f.write(report)
        except OSError as e:
            logger.error("Cannot write %s: %s", args.output, e)
            return 2
    else:
        sys.stdout.write(report)

    failed = [r.case_id for r in results if not r.ok]
    logger.info("Processed %d test cases, %d failed", len(results), len(failed))
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
