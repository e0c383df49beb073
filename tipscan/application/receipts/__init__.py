"""Receipt workflows."""

from tipscan.application.receipts.resolve import ResolveFileRequest, load_observations, run_resolve_file
from tipscan.application.receipts.scan import ReceiptScanRequest, run_receipt_scan

__all__ = [
    "ReceiptScanRequest",
    "run_receipt_scan",
    "ResolveFileRequest",
    "run_resolve_file",
    "load_observations",
]
