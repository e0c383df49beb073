#!/usr/bin/env python3

import argparse
import logging
from collections.abc import Sequence

from tipscan.domain.bill import DEFAULT_TIP_PERCENTAGE
from tipscan.runtime.logging import set_log_level
from tipscan.runtime.receipt_pipeline import DEFAULT_OCR_URL


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Receipt amount scanner and tip calculator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  parse <text>               Classify and parse one receipt line
  resolve <file>             Resolve amounts from OCR JSON or a text file
  scan <image>               OCR a receipt photo and resolve its amounts
  tip <amount>               Compute tip and per-person split
  serve [--host] [--port]    Start the scanning API server

Notes:
  receipts/ocr_json/ = raw OCR output saved by scan, readable by resolve
""",
    )

    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # parse command
    parse_parser = subparsers.add_parser("parse", help="Classify and parse one receipt line")
    parse_parser.add_argument("text", help='Receipt line, e.g. "SUBTOTAL $45.67"')
    parse_parser.add_argument("--json", action="store_true", help="Print JSON output")

    # resolve command
    resolve_parser = subparsers.add_parser("resolve", help="Resolve amounts from saved OCR output")
    resolve_parser.add_argument("file", help="OCR JSON (.json) or plain text file, one line per observation")
    resolve_parser.add_argument(
        "--origin",
        choices=("top", "bottom"),
        default="top",
        help="Bounding box origin: top-left (default) or bottom-left (Apple Vision)",
    )
    resolve_parser.add_argument("--json", action="store_true", help="Print JSON output")

    # scan command
    scan_parser = subparsers.add_parser("scan", help="Scan a receipt image")
    scan_parser.add_argument("image", help="Path to receipt image")
    scan_parser.add_argument(
        "--ocr-url", default=DEFAULT_OCR_URL, help=f"OCR service URL (default: {DEFAULT_OCR_URL})"
    )
    scan_parser.add_argument("--no-save", action="store_true", help="Do not save raw OCR JSON")
    scan_parser.add_argument("--debug-overlay", action="store_true", help="Write an image with OCR boxes drawn")
    scan_parser.add_argument("--json", action="store_true", help="Print JSON output")

    # tip command
    tip_parser = subparsers.add_parser("tip", help="Compute tip and per-person split")
    tip_parser.add_argument("amount", help="Bill amount")
    tip_parser.add_argument(
        "--percent",
        type=float,
        default=DEFAULT_TIP_PERCENTAGE,
        help=f"Tip percentage (default: {DEFAULT_TIP_PERCENTAGE:g})",
    )
    tip_parser.add_argument("--people", type=int, default=1, help="Number of people splitting (default: 1)")
    tip_parser.add_argument("--round-up", action="store_true", help="Round the tip up to a whole dollar")
    tip_parser.add_argument("--share", action="store_true", help="Print a one-line summary")

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Start the scanning API server")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Host to bind to (default: 0.0.0.0)")
    serve_parser.add_argument("--port", type=int, default=8080, help="Port to bind to (default: 8080)")

    args = parser.parse_args(argv)

    if args.verbose:
        set_log_level(logging.DEBUG)

    if args.command is None:
        parser.print_help()
        return 1

    if args.command == "parse":
        from tipscan.cli.receipt import cmd_parse

        return cmd_parse(args)
    elif args.command == "resolve":
        from tipscan.cli.receipt import cmd_resolve

        return cmd_resolve(args)
    elif args.command == "scan":
        from tipscan.cli.receipt import cmd_scan

        return cmd_scan(args)
    elif args.command == "tip":
        from tipscan.cli.receipt import cmd_tip

        return cmd_tip(args)
    elif args.command == "serve":
        from tipscan.cli.receipt import cmd_serve

        return cmd_serve(args)

    return 1


if __name__ == "__main__":
    raise SystemExit(main())
