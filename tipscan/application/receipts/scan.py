"""Receipt scan workflow orchestration."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from tipscan.domain.scan import ScannedBillAmounts
from tipscan.receipt.amount_parser import ScannerConfig
from tipscan.receipt.bill_resolver import resolve_document
from tipscan.runtime import load_scanner_config
from tipscan.runtime.receipt_pipeline import (
    OCRServiceUnavailable,
    call_ocr_service,
    create_debug_overlay,
    save_ocr_json,
)

ScanStatus = Literal[
    "file_not_found",
    "ocr_unavailable",
    "no_amounts",
    "amounts_found",
]


@dataclass(frozen=True)
class ReceiptScanRequest:
    """Inputs for running receipt scan workflow."""

    image_path: Path
    ocr_url: str
    save_raw: bool = True
    debug_overlay: bool = False
    config: ScannerConfig | None = None


@dataclass(frozen=True)
class ReceiptScanResult:
    """Outcome from receipt scan workflow."""

    status: ScanStatus
    amounts: ScannedBillAmounts | None = None
    observation_count: int = 0
    ocr_json_path: Path | None = None
    overlay_path: Path | None = None
    error: str | None = None


def run_receipt_scan(request: ReceiptScanRequest) -> ReceiptScanResult:
    """Run scan flow: OCR -> observations -> resolve amounts -> optional debug output."""
    if not request.image_path.exists():
        return ReceiptScanResult(
            status="file_not_found",
            error=f"Receipt file not found: {request.image_path}",
        )

    try:
        raw_ocr_result, observations = call_ocr_service(request.image_path, request.ocr_url)
    except OCRServiceUnavailable as exc:
        return ReceiptScanResult(
            status="ocr_unavailable",
            error=str(exc),
        )

    ocr_json_path = save_ocr_json(raw_ocr_result, request.image_path) if request.save_raw else None
    overlay_path = create_debug_overlay(request.image_path, observations) if request.debug_overlay else None

    amounts = resolve_document(observations, request.config or load_scanner_config())
    return ReceiptScanResult(
        status="no_amounts" if amounts.is_empty else "amounts_found",
        amounts=amounts,
        observation_count=len(observations),
        ocr_json_path=ocr_json_path,
        overlay_path=overlay_path,
    )
