#!/usr/bin/env python3
"""
compress_to_size.py - Compress an image to fit under a size limit.

Usage:
    python compress_to_size.py photo.png photo.jpg --ms 500KB
    python compress_to_size.py scan.png scan.webp --ms 1MB --format webp-lossless
    python compress_to_size.py big.jpg small.jpg --ms 200KB -v

Exit codes:
    0  success
    1  invalid input (size, file, settings)
    3  unsupported output format
    4  size limit cannot be met (nothing written)
    5  encoder failed on every attempt
"""

import argparse
import logging
import sys
from pathlib import Path

# Add parent to path when running as script
if __name__ == "__main__":
    sys.path.insert(0, str(Path(__file__).parent))

from size_target.dispatch import format_from_extension, supported_formats
from size_target.errors import BudgetUnattainable, DecodeError, EncodeError, UnsupportedFormat
from size_target.pipeline import compress_file
from size_target.search import (
    SearchConfig,
    DEFAULT_TOLERANCE,
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_SCALE_DECAY,
    DEFAULT_MAX_FALLBACK_ROUNDS,
    DEFAULT_MIN_SCALE,
)
from size_target.units import parse_size

EXIT_OK = 0
EXIT_INVALID_INPUT = 1
EXIT_UNSUPPORTED_FORMAT = 3
EXIT_UNATTAINABLE = 4
EXIT_ENCODE_FAILED = 5


def setup_logging(verbose: bool = False):
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S"
    )


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Compress an image to fit under a maximum file size.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python compress_to_size.py photo.png photo.jpg --ms 500KB
  python compress_to_size.py logo.png logo.png --ms 50KB
  python compress_to_size.py shot.png shot.webp --ms 1.5MB

Sizes: B, KB, MB, GB are 1000-based; KiB, MiB, GiB are 1024-based.

The search lowers quality first and only shrinks the image when even
the lowest quality does not fit. If the limit cannot be met, nothing is
written and the closest size reached is reported.
"""
    )

    parser.add_argument("input", type=Path, help="Input image file")
    parser.add_argument("output", type=Path, help="Output image file")

    parser.add_argument(
        "--ms",
        required=True,
        help="Maximum size (e.g. 500KB, 1MB)"
    )

    parser.add_argument(
        "-f", "--format",
        default="auto",
        type=str.lower,
        help=f"Output format: auto (from output extension), {', '.join(supported_formats())}"
    )

    parser.add_argument(
        "--tolerance",
        type=float,
        default=DEFAULT_TOLERANCE,
        help=f"Stop once within this fraction below the limit (default: {DEFAULT_TOLERANCE})"
    )

    parser.add_argument(
        "--max-iterations",
        type=int,
        default=DEFAULT_MAX_ITERATIONS,
        help=f"Quality search encodes per round (default: {DEFAULT_MAX_ITERATIONS})"
    )

    parser.add_argument(
        "--max-rounds",
        type=int,
        default=DEFAULT_MAX_FALLBACK_ROUNDS,
        help=f"Downscaling rounds (default: {DEFAULT_MAX_FALLBACK_ROUNDS})"
    )

    parser.add_argument(
        "--scale-decay",
        type=float,
        default=DEFAULT_SCALE_DECAY,
        help=f"Scale multiplier per downscaling round (default: {DEFAULT_SCALE_DECAY})"
    )

    parser.add_argument(
        "--min-scale",
        type=float,
        default=DEFAULT_MIN_SCALE,
        help=f"Smallest scale factor tried (default: {DEFAULT_MIN_SCALE})"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output"
    )

    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        budget = parse_size(args.ms)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INVALID_INPUT

    try:
        config = SearchConfig(
            tolerance=args.tolerance,
            max_iterations=args.max_iterations,
            scale_decay=args.scale_decay,
            max_fallback_rounds=args.max_rounds,
            min_scale=args.min_scale,
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INVALID_INPUT

    if not args.input.is_file():
        print(f"Error: File not found: {args.input}", file=sys.stderr)
        return EXIT_INVALID_INPUT

    try:
        fmt = format_from_extension(args.output) if args.format == "auto" else args.format
        result = compress_file(args.input, args.output, budget, fmt, config)
    except UnsupportedFormat as e:
        print(f"Error: {e} (supported: {', '.join(supported_formats())})", file=sys.stderr)
        return EXIT_UNSUPPORTED_FORMAT
    except DecodeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INVALID_INPUT
    except BudgetUnattainable as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_UNATTAINABLE
    except EncodeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ENCODE_FAILED
    except OSError as e:
        print(f"Error: Cannot write {args.output}: {e}", file=sys.stderr)
        return EXIT_INVALID_INPUT

    print(f"\n{result.summary()}")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
