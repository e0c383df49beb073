"""Numeric normalization of raw OCR text into positive amounts."""

import logging
import re

from .common import (
    CURRENCY_AMOUNT_PATTERN,
    CURRENCY_AMOUNT_TWO_DECIMALS,
    CURRENCY_SYMBOLS,
    NUMBER_PATTERN,
    PERCENTAGE_PATTERN,
    PERCENTAGE_TOKEN_PATTERN,
    TWO_DECIMAL_PATTERN,
)

logger = logging.getLogger(__name__)

# Label words removed before numeric extraction (case-insensitive)
LABEL_WORDS = (
    "total",
    "subtotal",
    "sub total",
    "amount",
    "due",
    "balance",
    "grand",
    "food",
    "pretax",
    "gratuity",
    "service charge",
    "service fee",
    "svc",
    "auto grat",
    "tip",
    "included",
    "added",
    ":",
)

# Thermal printing plus OCR swaps 0/O and 1/I/l and drops doubled letters
OCR_MISREAD_LABEL_WORDS = (
    "totl",
    "t0tal",
    "ttal",
    "totai",
    "subt0tal",
    "subtotl",
    "ammount",
    "am0unt",
    "amont",
    "balanse",
    "baiance",
    "balanc",
    "gratutiy",
    "gratu1ty",
    "svc chrg",
)

# Longest first so "subtotal" is removed whole instead of leaving "sub".
_LABEL_PATTERN = re.compile(
    "|".join(re.escape(word) for word in sorted(LABEL_WORDS + OCR_MISREAD_LABEL_WORDS, key=len, reverse=True)),
    re.IGNORECASE,
)


def strip_currency_symbols(text: str) -> str:
    for symbol in CURRENCY_SYMBOLS:
        text = text.replace(symbol, "")
    return text


def strip_label_words(text: str) -> str:
    return _LABEL_PATTERN.sub("", text)


def _normalize_separators(cleaned: str) -> str:
    """Resolve comma as European decimal separator or thousands separator."""
    if "," in cleaned and "." not in cleaned:
        parts = [part for part in cleaned.split(",") if part]
        # "45,50" / "99,9" -> decimal comma; "1,234" -> thousands separator
        if len(parts) == 2 and len(parts[-1]) <= 2:
            return cleaned.replace(",", ".")
    return cleaned.replace(",", "")


def normalize(text: str) -> float | None:
    """
    Convert a raw OCR token into a positive amount.

    Handles currency symbols, label words (including common OCR misreads),
    thousands separators and European decimal commas.

    Examples:
        "Total: $45.50" -> 45.50
        "€ 123,45"      -> 123.45
        "T0TAL: $87.32" -> 87.32
        "$0.00"         -> None

    Returns:
        The first number found as a float, or None when there is no number
        or the value is not positive.
    """
    if not text:
        return None

    cleaned = strip_currency_symbols(text)
    cleaned = strip_label_words(cleaned)
    cleaned = cleaned.strip()
    cleaned = _normalize_separators(cleaned)

    match = NUMBER_PATTERN.search(cleaned)
    if match is None:
        logger.debug("No numeric substring in %r", text)
        return None

    try:
        value = float(match.group(0))
    except ValueError:
        return None
    if value <= 0:
        logger.debug("Rejecting non-positive amount in %r", text)
        return None
    return value


def extract_currency_amounts(text: str) -> list[float]:
    """Return every currency-prefixed amount in text, in reading order."""
    amounts: list[float] = []
    for match in CURRENCY_AMOUNT_PATTERN.finditer(text):
        try:
            value = float(match.group(1).replace(",", ""))
        except ValueError:
            continue
        if value > 0:
            amounts.append(value)
    return amounts


def has_currency_amount(text: str) -> bool:
    """Return True if text carries a currency amount or a two-decimal number."""
    return CURRENCY_AMOUNT_PATTERN.search(text) is not None or TWO_DECIMAL_PATTERN.search(text) is not None


def extract_percentage(text: str) -> float | None:
    """Extract the first "NN%" / "NN.N%" value from text."""
    match = PERCENTAGE_PATTERN.search(text)
    if match is None:
        return None
    try:
        return float(match.group(1))
    except ValueError:
        return None


def clean_and_parse_amount(text: str) -> float | None:
    """
    Parse an unlabeled line, preferring a currency-prefixed amount.

    Falls back to normalize() after removing percentages so "(18%)" is
    never read as the amount.
    """
    for pattern in (CURRENCY_AMOUNT_TWO_DECIMALS, CURRENCY_AMOUNT_PATTERN):
        match = pattern.search(text)
        if match is None:
            continue
        try:
            value = float(match.group(1).replace(",", ""))
        except ValueError:
            continue
        if value > 0:
            return value

    return normalize(PERCENTAGE_TOKEN_PATTERN.sub("", text))
