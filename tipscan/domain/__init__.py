"""Core domain models for tipscan.

This module provides the core data models used throughout the project:
- TextObservation, BoundingBox: OCR input
- AmountType, ParsedAmount, DetectedGratuity, ScannedBillAmounts: scan results
- TipCalculation, SavedBill: tip arithmetic and the stored bill record

Usage:
    from tipscan.domain import ScannedBillAmounts, TextObservation
"""

from tipscan.domain.bill import SavedBill, TipCalculation
from tipscan.domain.scan import (
    AmountType,
    BoundingBox,
    DetectedGratuity,
    ParsedAmount,
    ScannedBillAmounts,
    TextObservation,
)

__all__ = [
    "AmountType",
    "BoundingBox",
    "DetectedGratuity",
    "ParsedAmount",
    "SavedBill",
    "ScannedBillAmounts",
    "TextObservation",
    "TipCalculation",
]
