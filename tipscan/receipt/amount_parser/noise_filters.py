"""Decoy and noise line detection (suggested-tip tables, menu items, promos)."""

from collections.abc import Iterable

from .common import (
    GRATUITY_KEYWORDS,
    ITEM_LINE_PATTERN,
    LABEL_BLOCK_KEYWORDS,
    PROMO_KEYWORDS,
    TIP_TABLE_PERCENTAGE_ANYWHERE,
    TIP_TABLE_ROW_START,
    TRAILING_PRICE_PATTERN,
    TWO_DECIMAL_PATTERN,
    contains_any,
)
from .normalizer import extract_currency_amounts


def _is_tip_table_header(upper: str) -> bool:
    return "TIP" in upper and "AMOUNT" in upper and "TOTAL" in upper


def is_suggested_tip_line(text: str) -> bool:
    """
    Return True if text belongs to a printed "additional tip" suggestion.

    Receipts with gratuity already included often print a table of optional
    extra tips; those amounts must never be read as the bill.

    Detects:
    - "+18% Tip $12.00 Total $79.00"
    - "Suggested Tip" / "Suggested Gratuity" headers
    - "Tip  Amount  Total" table headers
    - "18%  $6.66  $44.78" rows (common tip percentage plus dollar amounts)
    - any line with two or more dollar amounts and a percent sign
    - "To cover the cost..." surcharge explanations
    """
    if not text:
        return False
    upper = text.upper()

    if "+" in upper and "%" in upper and "TIP" in upper and "TOTAL" in upper:
        return True
    if "SUGGESTED" in upper and ("TIP" in upper or "GRATUITY" in upper):
        return True
    if _is_tip_table_header(upper):
        return True
    if TIP_TABLE_ROW_START.search(text) and "$" in text:
        return True
    if text.count("$") >= 2 and "%" in text:
        return True
    if "TO COVER" in upper or "WON'T BE SURCHARGED" in upper:
        return True
    return False


def detect_tip_suggestion_amounts(transcripts: Iterable[str]) -> set[float]:
    """Collect every amount printed on suggested-tip table lines in one frame."""
    transcripts = list(transcripts)
    blacklist: set[float] = set()

    full_text = "\n".join(transcripts).upper()
    has_table = _is_tip_table_header(full_text) or TIP_TABLE_PERCENTAGE_ANYWHERE.search(full_text) is not None

    for transcript in transcripts:
        amounts = extract_currency_amounts(transcript)
        if not amounts:
            continue
        if has_table:
            # Rows that start with a tip percentage
            if TIP_TABLE_ROW_START.search(transcript):
                blacklist.update(amounts)
            # Tip percentage mid-line with two or more amounts
            elif TIP_TABLE_PERCENTAGE_ANYWHERE.search(transcript) and len(amounts) >= 2:
                blacklist.update(amounts)
        if is_suggested_tip_line(transcript):
            blacklist.update(amounts)

    return blacklist


def is_blacklisted(value: float, blacklist: Iterable[float], tolerance: float = 0.01) -> bool:
    return any(abs(value - amount) < tolerance for amount in blacklist)


def is_item_line(text: str) -> bool:
    """Return True for menu line items like "2  Soda Water  $5.56"."""
    if not text or not ITEM_LINE_PATTERN.search(text):
        return False
    return "$" in text or TRAILING_PRICE_PATTERN.search(text) is not None


def is_promo_text(text: str) -> bool:
    """Return True for promotional copy ("prix fixe", "special offer", ...)."""
    return contains_any(text.lower(), PROMO_KEYWORDS)


def has_gratuity_keyword(text: str) -> bool:
    return contains_any(text.upper(), GRATUITY_KEYWORDS)


def is_label_only_block(text: str) -> bool:
    """Return True if text carries a summary label but no two-decimal number.

    This happens when OCR splits labels and values into separate blocks.
    """
    return contains_any(text.upper(), LABEL_BLOCK_KEYWORDS) and TWO_DECIMAL_PATTERN.search(text) is None
