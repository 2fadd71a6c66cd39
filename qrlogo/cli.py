"""qrlogo CLI: encode a URI as a PNG QR code, optionally with a centered logo."""

import argparse
import sys

from qrlogo.errors import QRLogoError
from qrlogo.logging import audit, get_logger, setup_logging
from qrlogo.pipeline import DEFAULT_OUTPUT, DEFAULT_SIZE, PipelineConfig, run

log = get_logger("cli")


def _positive_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}") from None
    if n < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {n}")
    return n


def _non_negative_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}") from None
    if n < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {n}")
    return n


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="qrlogo",
        description="Generate a QR code PNG, optionally with a logo in the center.",
    )

    parser.add_argument("-V", "--verbose", action="store_true", help="Enable DEBUG-level logging")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only log errors")
    parser.add_argument("--log-file", default=None, help="Write JSON logs to file")

    parser.add_argument("--uri", required=True, help="URI to encode in the QR code (required)")
    parser.add_argument("--logo", default="",
                        help="Path to logo image (SVG or PNG) to place in center (optional)")
    parser.add_argument("-o", "--output", default=DEFAULT_OUTPUT, help="Output filename")
    parser.add_argument("--size", type=_positive_int, default=DEFAULT_SIZE,
                        help="Size of QR code in pixels")
    parser.add_argument("--border", type=_non_negative_int, default=0,
                        help="Quiet zone width in modules")
    parser.add_argument("--verify", action="store_true",
                        help="Scan the result before saving and fail if it does not decode")
    return parser


def main(argv: list[str] | None = None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.uri:
        parser.error("URI is required")

    if args.verbose:
        level = "DEBUG"
    elif args.quiet:
        level = "ERROR"
    else:
        level = "INFO"
    setup_logging(level=level, log_file=args.log_file)
    audit("cli.start", logger=log, size=args.size, logo=args.logo or None, output=args.output)

    config = PipelineConfig(
        payload=args.uri,
        logo=args.logo,
        output=args.output,
        size=args.size,
        border=args.border,
        verify=args.verify,
    )
    try:
        path = run(config)
    except QRLogoError as e:
        print(f"Error {e.stage}: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"QR code saved to {path}")
    audit("cli.done", logger=log, output=str(path))


if __name__ == "__main__":
    main()
