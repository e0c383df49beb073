"""Tests for tip arithmetic and the saved-bill record."""

from __future__ import annotations

import uuid
from datetime import datetime

from tipscan.domain.bill import (
    PRESET_TIP_PERCENTAGES,
    SavedBill,
    TipCalculation,
    parse_bill_input,
    parse_people_input,
)
from tipscan.domain.scan import DetectedGratuity, ScannedBillAmounts


def _close(a: float | None, b: float) -> bool:
    return a is not None and abs(a - b) < 1e-9


def test_tip_calculation_basic_split() -> None:
    calc = TipCalculation(bill_amount=100.0, tip_percentage=20.0, number_of_people=4)

    assert _close(calc.tip_amount, 20.0)
    assert _close(calc.total_amount, 120.0)
    assert _close(calc.amount_per_person, 30.0)
    assert _close(calc.tip_per_person, 5.0)


def test_round_up_rounds_tip_to_next_dollar() -> None:
    calc = TipCalculation(bill_amount=47.50, tip_percentage=18.0, round_up=True)

    assert _close(calc.tip_amount_before_rounding, 8.55)
    assert calc.tip_amount == 9.0
    assert _close(calc.total_amount, 56.50)


def test_people_are_clamped_to_at_least_one() -> None:
    calc = TipCalculation(bill_amount=50.0, number_of_people=0)

    assert calc.people == 1
    assert _close(calc.amount_per_person, calc.total_amount)


def test_default_and_preset_percentages() -> None:
    assert TipCalculation(bill_amount=10.0).tip_percentage == 20.0
    assert PRESET_TIP_PERCENTAGES == (18, 20, 25)


def test_parse_text_inputs() -> None:
    assert parse_bill_input("86.40") == 86.40
    assert parse_bill_input(" 12 ") == 12.0
    assert parse_bill_input("abc") == 0.0
    assert parse_bill_input("") == 0.0
    assert parse_bill_input("nan") == 0.0
    assert parse_people_input("3") == 3
    assert parse_people_input("0") == 1
    assert parse_people_input("two") == 1


def test_saved_bill_from_calculation_merges_scanned_amounts() -> None:
    calc = TipCalculation(bill_amount=90.00, tip_percentage=20.0, number_of_people=2)
    scanned = ScannedBillAmounts(
        subtotal=90.00,
        total=101.70,
        gratuity=DetectedGratuity(amount=16.20, percentage=18.0, label="Gratuity 18% $16.20"),
    )

    bill = SavedBill.from_calculation(calc, scanned, location_name="Corner Bistro", sentiment="happy")

    assert bill.subtotal_amount == 90.00
    assert bill.receipt_total == 101.70
    assert bill.has_receipt_breakdown
    assert _close(bill.tax_amount, 11.70)
    assert bill.has_included_gratuity
    assert bill.included_gratuity_percentage == 18.0
    assert _close(bill.total_tips, 18.00 + 16.20)
    assert _close(bill.grand_total, 101.70 + 18.00)
    assert bill.location_name == "Corner Bistro"


def test_saved_bill_without_receipt_uses_calculated_total() -> None:
    bill = SavedBill.from_calculation(TipCalculation(bill_amount=50.0))

    assert not bill.has_receipt_breakdown
    assert bill.tax_amount is None
    assert not bill.has_included_gratuity
    assert _close(bill.grand_total, 60.0)


def test_saved_bill_mutators_recalculate() -> None:
    bill = SavedBill.from_calculation(TipCalculation(bill_amount=100.0, number_of_people=2))

    bill.update_tip_percentage(25.0)
    assert _close(bill.tip_amount, 25.0)
    assert _close(bill.total_amount, 125.0)
    assert _close(bill.amount_per_person, 62.5)

    bill.update_bill_amount(200.0)
    assert _close(bill.tip_amount, 50.0)
    assert _close(bill.total_amount, 250.0)

    bill.update_number_of_people(0)
    assert bill.number_of_people == 1
    assert _close(bill.tip_per_person, 50.0)


def test_saved_bill_round_trips_camel_case_record() -> None:
    bill = SavedBill.from_calculation(
        TipCalculation(bill_amount=67.00, tip_percentage=18.0),
        ScannedBillAmounts(subtotal=67.00, total=87.52),
        notes="birthday dinner",
    )

    data = bill.to_dict()
    assert data["billAmount"] == 67.00
    assert data["receiptTotal"] == 87.52
    assert data["notes"] == "birthday dinner"

    restored = SavedBill.from_dict(data)
    assert restored == bill


def test_saved_bill_backfills_missing_tip_per_person() -> None:
    record = {
        "id": str(uuid.uuid4()),
        "date": datetime(2025, 6, 1, 19, 30).isoformat(),
        "billAmount": 80.0,
        "tipPercentage": 20.0,
        "tipAmount": 16.0,
        "totalAmount": 96.0,
        "numberOfPeople": 4,
        "amountPerPerson": 24.0,
    }

    bill = SavedBill.from_dict(record)

    assert _close(bill.tip_per_person, 4.0)
    assert bill.subtotal_amount is None
    assert bill.included_gratuity is None
