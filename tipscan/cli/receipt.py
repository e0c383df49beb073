"""Receipt and tip command handlers used by the unified CLI."""

import argparse
import json
from pathlib import Path

from tipscan.runtime import get_logger

logger = get_logger(__name__)


def cmd_serve(args: argparse.Namespace) -> int:
    """Start the FastAPI scanning server."""
    import uvicorn

    from tipscan.runtime import scan_server as server

    print(f"Starting scan server on {args.host}:{args.port}")
    print(f"Endpoints: http://{args.host}:{args.port}/scan | /parse | /sessions")
    print("Press Ctrl+C to stop")

    uvicorn.run(server.app, host=args.host, port=args.port)
    return 0


def cmd_parse(args: argparse.Namespace) -> int:
    """Parse one line of receipt text (single-tap mode)."""
    from tipscan.receipt.amount_parser import parse_amount_with_label
    from tipscan.runtime import load_scanner_config

    parsed = parse_amount_with_label(args.text, load_scanner_config())
    if parsed is None:
        print(f"No amount found in: {args.text!r}")
        return 1

    if args.json:
        print(json.dumps({"value": parsed.value, "type": parsed.type.value}))
    else:
        print(f"{parsed.type.value}: ${parsed.value:.2f}")
    return 0


def _print_amounts(amounts_dict: dict, message: str, as_json: bool) -> None:
    if as_json:
        print(json.dumps(amounts_dict, indent=2))
    else:
        print(message)


def cmd_resolve(args: argparse.Namespace) -> int:
    """Resolve amounts from saved OCR output (JSON payload or text lines)."""
    from tipscan.application.receipts.resolve import ResolveFileRequest, run_resolve_file
    from tipscan.receipt.formatter import format_scanned_amounts

    result = run_resolve_file(ResolveFileRequest(path=Path(args.file), origin=args.origin))

    if result.status in ("file_not_found", "invalid_payload"):
        logger.error("%s", result.error)
        print(f"Error: {result.error}")
        return 1

    if result.status == "no_amounts" or result.amounts is None:
        print(f"No amounts found in {result.observation_count} observation(s).")
        return 1

    _print_amounts(result.amounts.to_dict(), format_scanned_amounts(result.amounts), args.json)
    return 0


def cmd_scan(args: argparse.Namespace) -> int:
    """Send a receipt photo to the OCR service and resolve its amounts."""
    from tipscan.application.receipts.scan import ReceiptScanRequest, run_receipt_scan
    from tipscan.receipt.formatter import format_scanned_amounts

    result = run_receipt_scan(
        ReceiptScanRequest(
            image_path=Path(args.image),
            ocr_url=args.ocr_url,
            save_raw=not args.no_save,
            debug_overlay=args.debug_overlay,
        )
    )

    if result.status == "file_not_found":
        logger.error("%s", result.error)
        print(f"Error: {result.error}")
        return 1

    if result.status == "ocr_unavailable":
        logger.error("%s", result.error)
        print(f"OCR service unavailable: {result.error}")
        print("Make sure the OCR service is running before scanning receipts.")
        return 1

    if result.ocr_json_path is not None:
        print(f"OCR JSON saved to: {result.ocr_json_path}")
    if result.overlay_path is not None:
        print(f"Debug overlay created: {result.overlay_path}")

    if result.status == "no_amounts" or result.amounts is None:
        print(f"No amounts found in {result.observation_count} OCR observation(s).")
        return 1

    _print_amounts(result.amounts.to_dict(), format_scanned_amounts(result.amounts), args.json)
    return 0


def cmd_tip(args: argparse.Namespace) -> int:
    """Compute tip, total and per-person split for a bill amount."""
    from tipscan.domain.bill import TipCalculation, parse_bill_input
    from tipscan.receipt.formatter import format_share_text, format_tip_summary

    bill_amount = parse_bill_input(args.amount)
    if bill_amount <= 0:
        print(f"Error: invalid bill amount: {args.amount!r}")
        return 1
    if args.percent < 0:
        print(f"Error: tip percentage must not be negative: {args.percent}")
        return 1

    calculation = TipCalculation(
        bill_amount=bill_amount,
        tip_percentage=args.percent,
        round_up=args.round_up,
        number_of_people=args.people,
    )
    print(format_share_text(calculation) if args.share else format_tip_summary(calculation))
    return 0


def main() -> int:
    """Compatibility entrypoint; delegates to the unified CLI parser."""
    from tipscan.cli.main import main as unified_main

    return unified_main()


if __name__ == "__main__":
    raise SystemExit(main())
