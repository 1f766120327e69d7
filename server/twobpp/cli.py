"""Command line interface for the 2bpp TIFF converter."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .codec import GapPolicy, InvalidSample
from .config import settings
from .convert import convert_file, ensure_input
from .image_proc import UnsupportedImage
from .schemas import Thresholds

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_THRESHOLD_NOT_INT = 2
EXIT_THRESHOLD_RANGE = 3
EXIT_THRESHOLD_ORDER = 4
EXIT_INVALID_SAMPLE = 5
EXIT_IO = 6
EXIT_RESOLUTION = 7

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class UsageError(Exception):
    pass


class _Parser(argparse.ArgumentParser):
    # argparse exits with 2 on bad usage, which is taken by threshold parsing
    def error(self, message: str):
        raise UsageError(message)


def build_parser() -> argparse.ArgumentParser:
    parser = _Parser(
        prog="twobpp",
        description=(
            "Quantize an 8-bit grayscale TIFF to 2 bits per pixel using three thresholds.\n"
            "Samples are classified as: 0 -> 0, (t1, t2] -> 1, (t2, t3] -> 2, (t3, 255] -> 3.\n"
            "If the input file does not exist, a 1000 x 1000 gradient is created there first\n"
            "(for testing purposes) at the given xRes and yRes resolutions."
        ),
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument("input", help="Path to the input TIFF file")
    parser.add_argument("output", help="Path to save the output TIFF file")
    parser.add_argument("t1", help="First threshold (integer 0-255)")
    parser.add_argument("t2", help="Second threshold (integer 0-255)")
    parser.add_argument("t3", help="Third threshold (integer 0-255)")
    parser.add_argument(
        "resolution",
        nargs="*",
        metavar="RES",
        help="xRes and yRes, used only when the gradient test image is generated",
    )
    parser.add_argument(
        "--gap",
        choices=[p.value for p in GapPolicy],
        default=settings.gap_policy,
        help=(
            "How to treat samples in (0, t1], which match no band: "
            "'error' aborts the conversion, 'zero' maps them to code 0"
        ),
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=settings.convert_workers,
        help="Number of threads packing scanlines",
    )
    parser.add_argument(
        "--strict-order",
        action=argparse.BooleanOptionalAction,
        default=settings.strict_threshold_order,
        help="Reject thresholds that are not in ascending order",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=settings.log_level,
        help="Logging level",
    )
    return parser


def parse_ints(values: List[str]) -> Optional[List[int]]:
    try:
        return [int(v) for v in values]
    except ValueError:
        return None


def main(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    parser = build_parser()
    if not argv or any(arg in ("-h", "--help") for arg in argv):
        parser.print_help()
        return EXIT_OK

    try:
        args = parser.parse_args(argv)
        if len(args.resolution) not in (0, 2):
            raise UsageError("expected both xRes and yRes, or neither")
    except UsageError as exc:
        parser.print_usage(sys.stderr)
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_USAGE

    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    values = parse_ints([args.t1, args.t2, args.t3])
    if values is None:
        print("Thresholds must be integer numbers.", file=sys.stderr)
        return EXIT_THRESHOLD_NOT_INT
    if any(v < 0 or v > 255 for v in values):
        print("Thresholds must be between 0 and 255.", file=sys.stderr)
        return EXIT_THRESHOLD_RANGE
    thresholds = Thresholds.of(*values)
    if not thresholds.is_ordered:
        if args.strict_order:
            print("Thresholds must be in ascending order.", file=sys.stderr)
            return EXIT_THRESHOLD_ORDER
        logger.warning("thresholds %s are not in ascending order", values)

    input_path = Path(args.input)
    if not input_path.exists():
        resolution = parse_ints(args.resolution)
        if not resolution:
            print("Resolutions must be integer numbers.", file=sys.stderr)
            return EXIT_RESOLUTION
        try:
            ensure_input(
                input_path,
                resolution[0],
                resolution[1],
                settings.gradient_width,
                settings.gradient_height,
            )
        except OSError as exc:
            print(f"Unable to create the gradient image: {exc}", file=sys.stderr)
            return EXIT_IO

    try:
        convert_file(input_path, args.output, thresholds, GapPolicy(args.gap), args.workers)
    except InvalidSample as exc:
        print(f"Invalid value: {exc}", file=sys.stderr)
        return EXIT_INVALID_SAMPLE
    except (UnsupportedImage, OSError) as exc:
        print(exc, file=sys.stderr)
        return EXIT_IO
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
