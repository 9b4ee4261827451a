#!/usr/bin/env python3
"""
Chiffres-Z3: Bounded Model Checking for the Numbers Puzzle

Entry point solving one instance of the "numbers" round:

Usage:
    python main.py 25 50 75 100 3 6 --target 952
    python main.py 2 3 --target 5 --bits 8 --no-overflows
    python main.py 1 1 1 --target 100 --timeout 1000 --json-output

The solver will:
1. Search for an exact computation of the target, depth by depth
2. Fall back to the closest reachable value if none exists
3. Print the sequence of stack actions that produces it
"""

import argparse
import json
import sys

from config import settings
from chiffres_z3.core.engine import Engine
from chiffres_z3.core.errors import ConfigurationError
from chiffres_z3.core.state import SearchStatus
from chiffres_z3.tools.decoder import render_trace
from chiffres_z3.utils.logger import configure_logging, get_logger, LogCategory

logger = get_logger(__name__)

EXIT_CODES = {
    SearchStatus.FOUND_EXACT: 0,
    SearchStatus.FOUND_APPROXIMATE: 1,
    SearchStatus.NOT_FOUND: 2,
    SearchStatus.INDETERMINATE: 3,
}
EXIT_CONFIGURATION_ERROR = 4


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command-line arguments for the puzzle instance."""
    parser = argparse.ArgumentParser(
        description="Chiffres-Z3: numbers puzzle solver by bounded model checking",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s 25 50 75 100 3 6 --target 952
  %(prog)s 2 3 --target 5 --bits 8 --no-overflows
  %(prog)s 5 --target 9
        """
    )

    parser.add_argument(
        "numerals",
        nargs="+",
        type=int,
        help="Numerals available for the computation"
    )
    parser.add_argument(
        "--target", "-T",
        type=int,
        required=True,
        help="Value to compute"
    )

    # Configuration overrides
    parser.add_argument(
        "--bits", "-b",
        type=int,
        default=settings.BV_BITS,
        help=f"Bit-vector width of stack values (default: {settings.BV_BITS})"
    )
    parser.add_argument(
        "--no-overflows",
        action="store_true",
        default=settings.NO_OVERFLOWS,
        help="Reject numerals that do not fit in signed bit-vectors of the given width"
    )
    parser.add_argument(
        "--guard-intermediates",
        action="store_true",
        default=settings.GUARD_INTERMEDIATE_OVERFLOW,
        help="Forbid operations whose signed result overflows"
    )
    parser.add_argument(
        "--timeout", "-t",
        type=int,
        default=settings.Z3_TIMEOUT,
        help=f"Z3 timeout per check in ms, 0 for none (default: {settings.Z3_TIMEOUT})"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging including encoded formulas"
    )
    parser.add_argument(
        "--json-output",
        action="store_true",
        help="Print the final result as a single JSON document on stdout; "
             "logs go to stderr as JSON lines"
    )

    return parser.parse_args(argv)


def main(argv=None) -> int:
    """
    Main entry point for Chiffres-Z3.

    Returns:
        Exit code: 0 exact, 1 approximate, 2 not found, 3 indeterminate,
        4 configuration error
    """
    args = parse_args(argv)

    # Apply configuration overrides
    if args.verbose:
        settings.LOG_SHOW_FORMULAS = True
        settings.LOG_LEVEL = "DEBUG"
    if args.json_output:
        settings.LOG_JSON_MODE = True

    configure_logging(
        json_mode=settings.LOG_JSON_MODE,
        show_formulas=settings.LOG_SHOW_FORMULAS,
        log_level=settings.LOG_LEVEL
    )

    logger.info("=" * 60, category=LogCategory.SYSTEM)
    logger.info("Chiffres-Z3 Numbers Puzzle Solver", category=LogCategory.SYSTEM)
    logger.info("=" * 60, category=LogCategory.SYSTEM)

    try:
        engine = Engine(
            args.numerals,
            args.target,
            bv_bits=args.bits,
            no_overflows=args.no_overflows,
            timeout=args.timeout,
            guard_intermediates=args.guard_intermediates
        )
        result = engine.solve()
    except ConfigurationError as e:
        logger.error(f"Invalid parameters: {e}", category=LogCategory.SYSTEM)
        return EXIT_CONFIGURATION_ERROR
    except KeyboardInterrupt:
        logger.warning("Interrupted by user", category=LogCategory.SYSTEM)
        return 130

    if args.json_output:
        print(json.dumps(result.to_summary_dict()))
        return EXIT_CODES[result.status]

    logger.info("=" * 60, category=LogCategory.SYSTEM)
    logger.info(f"Final Status: {result.status.name}", category=LogCategory.SYSTEM)

    if result.status == SearchStatus.FOUND_EXACT:
        logger.info(f"{args.target} reached in {result.depth + 1} actions:", category=LogCategory.SYSTEM)
    elif result.status == SearchStatus.FOUND_APPROXIMATE:
        logger.info(
            f"Closest value {result.value} (distance {result.distance}) "
            f"in {result.depth + 1} actions:",
            category=LogCategory.SYSTEM
        )
    elif result.status == SearchStatus.NOT_FOUND:
        logger.info("No computation exists within the step bound", category=LogCategory.SYSTEM)
    else:
        logger.warning("Solver could not decide within the timeout", category=LogCategory.SYSTEM)

    for line in render_trace(result.trace):
        logger.info(f"  {line}", category=LogCategory.SYSTEM)

    return EXIT_CODES[result.status]


if __name__ == "__main__":
    sys.exit(main())
