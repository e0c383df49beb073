"""Resolve amounts from saved OCR output (JSON payloads or plain text)."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

from tipscan.domain.scan import ScannedBillAmounts, TextObservation
from tipscan.receipt.amount_parser import ScannerConfig
from tipscan.receipt.bill_resolver import resolve_document
from tipscan.receipt.ocr_helpers import observations_from_lines, observations_from_payload, transform_paddleocr_result
from tipscan.runtime import get_logger, load_scanner_config

logger = get_logger(__name__)

ResolveStatus = Literal[
    "file_not_found",
    "invalid_payload",
    "no_amounts",
    "amounts_found",
]


@dataclass(frozen=True)
class ResolveFileRequest:
    """Inputs for resolving amounts from a file."""

    path: Path
    origin: Literal["top", "bottom"] = "top"
    config: ScannerConfig | None = None


@dataclass(frozen=True)
class ResolveFileResult:
    """Outcome from resolving a file."""

    status: ResolveStatus
    amounts: ScannedBillAmounts | None = None
    observation_count: int = 0
    error: str | None = None


def load_observations(path: Path) -> list[TextObservation]:
    """
    Read observations from a file.

    ``.json`` files may hold a frame payload (``observations``/``lines``) or a
    raw PaddleOCR response as saved by ``save_ocr_json``. Any other file is
    plain text, one observation per line.

    Raises:
        ValueError: If a JSON file is malformed or has an unknown shape
    """
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() != ".json":
        return observations_from_lines(text.splitlines())

    data: Any = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object in {path}")
    if "detections" in data:
        return transform_paddleocr_result(data)
    if "observations" in data or "lines" in data:
        return observations_from_payload(data)
    raise ValueError(f"Unrecognized OCR payload in {path}")


def run_resolve_file(request: ResolveFileRequest) -> ResolveFileResult:
    """Load observations from a file and resolve them as one frame."""
    if not request.path.exists():
        return ResolveFileResult(status="file_not_found", error=f"File not found: {request.path}")

    try:
        observations = load_observations(request.path)
    except (ValueError, KeyError, TypeError) as exc:
        # json.JSONDecodeError is a ValueError
        logger.debug("Invalid payload in %s: %s", request.path, exc)
        return ResolveFileResult(status="invalid_payload", error=str(exc))

    amounts = resolve_document(observations, request.config or load_scanner_config(), origin=request.origin)
    return ResolveFileResult(
        status="no_amounts" if amounts.is_empty else "amounts_found",
        amounts=amounts,
        observation_count=len(observations),
    )
