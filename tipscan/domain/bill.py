"""Tip arithmetic and the saved-bill record shape."""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from tipscan.domain.scan import ScannedBillAmounts

PRESET_TIP_PERCENTAGES = (18, 20, 25)
DEFAULT_TIP_PERCENTAGE = 20.0


def parse_bill_input(text: str) -> float:
    """Parse a typed bill amount; anything unparseable counts as 0.0."""
    try:
        value = float(text.strip())
    except ValueError:
        return 0.0
    if math.isnan(value) or math.isinf(value):
        return 0.0
    return value


def parse_people_input(text: str) -> int:
    """Parse a typed party size; invalid or non-positive input counts as 1."""
    try:
        value = int(text.strip())
    except ValueError:
        return 1
    return max(1, value)


@dataclass(frozen=True)
class TipCalculation:
    """Tip, total and per-person split for one bill."""

    bill_amount: float
    tip_percentage: float = DEFAULT_TIP_PERCENTAGE
    round_up: bool = False
    number_of_people: int = 1

    @property
    def people(self) -> int:
        return max(1, self.number_of_people)

    @property
    def tip_amount_before_rounding(self) -> float:
        return self.bill_amount * (self.tip_percentage / 100.0)

    @property
    def tip_amount(self) -> float:
        if self.round_up:
            return float(math.ceil(self.tip_amount_before_rounding))
        return self.tip_amount_before_rounding

    @property
    def total_amount(self) -> float:
        return self.bill_amount + self.tip_amount

    @property
    def amount_per_person(self) -> float:
        return self.total_amount / self.people

    @property
    def tip_per_person(self) -> float:
        return self.tip_amount / self.people


def _per_person(amount: float, people: int) -> float:
    return amount / people if people > 0 else 0.0


@dataclass
class SavedBill:
    """A saved tip calculation as stored in the bill history."""

    bill_amount: float
    tip_percentage: float
    tip_amount: float
    total_amount: float
    number_of_people: int
    amount_per_person: float
    tip_per_person: float | None = None
    # Pre-tax amount from the receipt; the tip is calculated on it.
    subtotal_amount: float | None = None
    # Receipt total including tax and other charges.
    receipt_total: float | None = None
    location_name: str | None = None
    sentiment: str | None = None
    notes: str | None = None
    included_gratuity: float | None = None
    included_gratuity_percentage: float | None = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    date: datetime = field(default_factory=datetime.now)

    def __post_init__(self) -> None:
        if self.tip_per_person is None:
            self.tip_per_person = _per_person(self.tip_amount, self.number_of_people)

    @classmethod
    def from_calculation(
        cls,
        calculation: TipCalculation,
        scanned: ScannedBillAmounts | None = None,
        *,
        location_name: str | None = None,
        sentiment: str | None = None,
        notes: str | None = None,
    ) -> SavedBill:
        """Build a record from a calculation, merging any scanned receipt amounts."""
        bill = cls(
            bill_amount=calculation.bill_amount,
            tip_percentage=calculation.tip_percentage,
            tip_amount=calculation.tip_amount,
            total_amount=calculation.total_amount,
            number_of_people=calculation.people,
            amount_per_person=calculation.amount_per_person,
            tip_per_person=calculation.tip_per_person,
            location_name=location_name,
            sentiment=sentiment,
            notes=notes,
        )
        if scanned is not None:
            bill.subtotal_amount = scanned.subtotal
            bill.receipt_total = scanned.total
            if scanned.gratuity is not None:
                bill.included_gratuity = scanned.gratuity.amount
                bill.included_gratuity_percentage = scanned.gratuity.percentage
        return bill

    @property
    def has_included_gratuity(self) -> bool:
        return self.included_gratuity is not None and self.included_gratuity > 0

    @property
    def total_tips(self) -> float:
        """Included gratuity plus the additional tip."""
        return self.tip_amount + (self.included_gratuity or 0.0)

    @property
    def has_receipt_breakdown(self) -> bool:
        return self.subtotal_amount is not None and self.receipt_total is not None

    @property
    def tax_amount(self) -> float | None:
        """Tax and other charges: receipt total minus subtotal."""
        if self.subtotal_amount is None or self.receipt_total is None:
            return None
        return self.receipt_total - self.subtotal_amount

    @property
    def grand_total(self) -> float:
        if self.receipt_total is not None:
            return self.receipt_total + self.tip_amount
        return self.total_amount

    def recalculate_derived_values(self) -> None:
        self.total_amount = self.bill_amount + self.tip_amount
        self.amount_per_person = _per_person(self.total_amount, self.number_of_people)
        self.tip_per_person = _per_person(self.tip_amount, self.number_of_people)

    def update_tip_percentage(self, percentage: float) -> None:
        self.tip_percentage = percentage
        self.tip_amount = self.bill_amount * (percentage / 100.0)
        self.recalculate_derived_values()

    def update_bill_amount(self, amount: float) -> None:
        self.bill_amount = amount
        self.tip_amount = amount * (self.tip_percentage / 100.0)
        self.recalculate_derived_values()

    def update_number_of_people(self, count: int) -> None:
        self.number_of_people = max(1, count)
        self.recalculate_derived_values()

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the stored record's camelCase keys."""
        return {
            "id": str(self.id),
            "date": self.date.isoformat(),
            "billAmount": self.bill_amount,
            "tipPercentage": self.tip_percentage,
            "tipAmount": self.tip_amount,
            "totalAmount": self.total_amount,
            "numberOfPeople": self.number_of_people,
            "amountPerPerson": self.amount_per_person,
            "tipPerPerson": self.tip_per_person,
            "subtotalAmount": self.subtotal_amount,
            "receiptTotal": self.receipt_total,
            "locationName": self.location_name,
            "sentiment": self.sentiment,
            "notes": self.notes,
            "includedGratuity": self.included_gratuity,
            "includedGratuityPercentage": self.included_gratuity_percentage,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SavedBill:
        """Load a stored record; optional keys may be absent in older records."""
        return cls(
            id=uuid.UUID(str(data["id"])),
            date=datetime.fromisoformat(str(data["date"])),
            bill_amount=float(data["billAmount"]),
            tip_percentage=float(data["tipPercentage"]),
            tip_amount=float(data["tipAmount"]),
            total_amount=float(data["totalAmount"]),
            number_of_people=int(data["numberOfPeople"]),
            amount_per_person=float(data["amountPerPerson"]),
            tip_per_person=_optional_float(data.get("tipPerPerson")),
            subtotal_amount=_optional_float(data.get("subtotalAmount")),
            receipt_total=_optional_float(data.get("receiptTotal")),
            location_name=data.get("locationName"),
            sentiment=data.get("sentiment"),
            notes=data.get("notes"),
            included_gratuity=_optional_float(data.get("includedGratuity")),
            included_gratuity_percentage=_optional_float(data.get("includedGratuityPercentage")),
        )


def _optional_float(value: Any) -> float | None:
    return None if value is None else float(value)
