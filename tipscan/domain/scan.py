"""Data models for receipt amount scanning."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class BoundingBox:
    """Normalized (0-1) position of an OCR token within the image."""

    x: float
    y: float
    width: float
    height: float

    @property
    def x_center(self) -> float:
        return self.x + self.width / 2

    @property
    def y_center(self) -> float:
        return self.y + self.height / 2


@dataclass(frozen=True)
class TextObservation:
    """One OCR-recognized line or token."""

    text: str
    bounding_box: BoundingBox | None = None
    confidence: float = 1.0


class AmountType(Enum):
    """Semantic category of a receipt line."""

    SUBTOTAL = "subtotal"
    TOTAL = "total"
    TAX = "tax"
    GRATUITY = "gratuity"
    UNLABELED = "unlabeled"


@dataclass(frozen=True)
class ParsedAmount:
    """A positive amount read from one line, with its label type."""

    value: float
    type: AmountType


@dataclass(frozen=True)
class DetectedGratuity:
    """Gratuity or service charge already included in the receipt total."""

    amount: float
    percentage: float | None = None
    # Original text like "18% Gratuity"; empty when inferred from amounts alone.
    label: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"amount": self.amount, "percentage": self.percentage, "label": self.label}


@dataclass(frozen=True)
class ScannedBillAmounts:
    """Best guess for the amounts printed on one receipt."""

    subtotal: float | None = None
    total: float | None = None
    gratuity: DetectedGratuity | None = None

    @property
    def has_subtotal(self) -> bool:
        return self.subtotal is not None

    @property
    def has_total(self) -> bool:
        return self.total is not None

    @property
    def has_gratuity(self) -> bool:
        return self.gratuity is not None

    @property
    def has_both(self) -> bool:
        return self.subtotal is not None and self.total is not None

    @property
    def is_empty(self) -> bool:
        """True when nothing was detected (scan not yet successful)."""
        return self.subtotal is None and self.total is None and self.gratuity is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "subtotal": self.subtotal,
            "total": self.total,
            "gratuity": self.gratuity.to_dict() if self.gratuity else None,
        }
