"""Label classification of receipt lines (subtotal/tax/gratuity/total)."""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass

from tipscan.domain.scan import AmountType, ParsedAmount

from .common import (
    CURRENCY_AMOUNT_PATTERN,
    DEFAULT_SCANNER_CONFIG,
    PERCENTAGE_TOKEN_PATTERN,
    TWO_DECIMAL_PATTERN,
    ScannerConfig,
    contains_any,
)
from .noise_filters import is_suggested_tip_line
from .normalizer import clean_and_parse_amount, extract_currency_amounts, has_currency_amount

logger = logging.getLogger(__name__)

SUBTOTAL_PATTERNS = (
    "SUBTOTAL",
    "SUB TOTAL",
    "SUB-TOTAL",
    "SUB TOT",
    "FOOD TOTAL",
    "FOOD & BEV",
    "ITEMS TOTAL",
    "PRETAX",
    "PRE-TAX",
    "BEFORE TAX",
    # OCR misreads
    "SUBT0TAL",
    "SUBTOTL",
    "SUB T0TAL",
    "SUBTOTA1",
    "F00D TOTAL",
    "FOOD T0TAL",
)

TAX_PATTERNS = (
    "TOTAL TAX",
    "TOTAL TAXES",
    "TAX:",
    "TAXES:",
    "SALES TAX",
    "STATE TAX",
    "HST:",
    "GST:",
    "PST:",
    "VAT:",
)
TAX_WORD = re.compile(r"\bTAX(?:ES)?\b")

# Surcharges are reported alongside tax, never as the bill total
SURCHARGE_PATTERNS = ("SURCHARGE", "CARD FEE", "CC FEE", "CREDIT CARD FEE")

# "TOTAL AFTER TAX 9.07" is a total even though it mentions tax
TAX_INCLUSIVE_TOTAL = re.compile(r"TOTAL\s+(?:AFTER|INCL\.?|INCLUDING|WITH)\s+(?:TAX|VAT|HST|GST)")

GRATUITY_PATTERNS = (
    "GRATUITY",
    "GRAT ",
    "TIP INCLUDED",
    "TIP ADDED",
    "SERVICE CHARGE",
    "SERVICE FEE",
    "SVC CHARGE",
    "SVC FEE",
    "AUTO GRAT",
    # OCR misreads
    "GRATUTIY",
    "GRATU1TY",
    "GRATULTY",
    "SVC CHRG",
)

EXPLICIT_TOTAL_PATTERNS = (
    "TOTAL DUE",
    "AMOUNT DUE",
    "BALANCE DUE",
    "GRAND TOTAL",
    "CREDIT CARD AUTH",
    "CARD AUTH",
    "CHARGE TOTAL",
)

BARE_TOTAL_PATTERNS = ("TOTAL", "T0TAL", "TOTL", "TTAL", "TOTAI")

GENERIC_TOTAL_PATTERNS = (
    "AMOUNT",
    "BALANCE",
    "DUE",
    # OCR misreads
    "AMMOUNT",
    "AMONT",
    "AM0UNT",
    "BALANC",
    "BALANSE",
    "BAIANCE",
)
AMT_WORD = re.compile(r"\bAMT\b")

# Labels searched (in order) to find where the value starts
VALUE_LABELS: dict[AmountType, tuple[str, ...]] = {
    AmountType.SUBTOTAL: ("SUBTOTAL", "SUB TOTAL", "SUB-TOTAL", "SUB TOT") + SUBTOTAL_PATTERNS[4:],
    AmountType.TOTAL: EXPLICIT_TOTAL_PATTERNS + BARE_TOTAL_PATTERNS + GENERIC_TOTAL_PATTERNS,
    AmountType.TAX: ("TOTAL TAX", "TOTAL TAXES", "TAX", "SALES TAX", "STATE TAX", "HST", "GST", "PST", "VAT")
    + SURCHARGE_PATTERNS,
    AmountType.GRATUITY: ("GRATUITY", "SERVICE CHARGE", "SERVICE FEE", "TIP INCLUDED", "TIP ADDED", "AUTO GRAT")
    + GRATUITY_PATTERNS[6:],
}


@dataclass(frozen=True)
class LabelRule:
    """One classification rule; rules are evaluated in order, first match wins."""

    name: str
    amount_type: AmountType
    # Called with (uppercased_text, original_text)
    predicate: Callable[[str, str], bool]

    def matches(self, text: str) -> bool:
        return self.predicate(text.upper(), text)


def _is_subtotal(upper: str, _text: str) -> bool:
    return contains_any(upper, SUBTOTAL_PATTERNS)


def _is_tax(upper: str, _text: str) -> bool:
    if TAX_INCLUSIVE_TOTAL.search(upper):
        return False
    return contains_any(upper, TAX_PATTERNS) or TAX_WORD.search(upper) is not None


def _is_surcharge(upper: str, _text: str) -> bool:
    return contains_any(upper, SURCHARGE_PATTERNS)


def _is_gratuity(upper: str, text: str) -> bool:
    # A bare sentence mentioning gratuity is not an amount line.
    return contains_any(upper, GRATUITY_PATTERNS) and has_currency_amount(text)


def _is_explicit_total(upper: str, _text: str) -> bool:
    return contains_any(upper, EXPLICIT_TOTAL_PATTERNS) or TAX_INCLUSIVE_TOTAL.search(upper) is not None


def _is_bare_total(upper: str, _text: str) -> bool:
    return contains_any(upper, BARE_TOTAL_PATTERNS) and "TAX" not in upper


def _is_generic_total(upper: str, _text: str) -> bool:
    return contains_any(upper, GENERIC_TOTAL_PATTERNS) or AMT_WORD.search(upper) is not None


# Subtotal must precede total ("TOTAL" occurs inside "SUBTOTAL"), and tax must
# precede total so "Total Tax" is never read as the bill total.
LABEL_RULES: tuple[LabelRule, ...] = (
    LabelRule("subtotal", AmountType.SUBTOTAL, _is_subtotal),
    LabelRule("tax", AmountType.TAX, _is_tax),
    LabelRule("surcharge", AmountType.TAX, _is_surcharge),
    LabelRule("gratuity", AmountType.GRATUITY, _is_gratuity),
    LabelRule("explicit_total", AmountType.TOTAL, _is_explicit_total),
    LabelRule("bare_total", AmountType.TOTAL, _is_bare_total),
    LabelRule("generic_total", AmountType.TOTAL, _is_generic_total),
)


def match_rule(text: str, rules: tuple[LabelRule, ...] = LABEL_RULES) -> LabelRule | None:
    """Return the first rule matching text, or None for unlabeled text."""
    upper = text.upper()
    for rule in rules:
        if rule.predicate(upper, text):
            return rule
    return None


def classify(text: str) -> AmountType:
    """Assign a semantic category to one receipt line."""
    rule = match_rule(text)
    return rule.amount_type if rule is not None else AmountType.UNLABELED


def _label_end(text: str, labels: tuple[str, ...]) -> int | None:
    for label in labels:
        match = re.search(re.escape(label), text, re.IGNORECASE)
        if match:
            return match.end()
    return None


def extract_amount_near_label(text: str, amount_type: AmountType) -> float | None:
    """
    Extract the amount that follows the matched label.

    Handles lines like "Gratuity 18%: $15.00" where a percentage precedes the
    dollar amount. Falls back to the last currency amount on the line, then
    to plain numeric normalization.
    """
    labels = VALUE_LABELS.get(amount_type)
    if labels is None:
        return clean_and_parse_amount(text)

    label_end = _label_end(text, labels)
    if label_end is not None:
        # "18.00%" would otherwise pass for a two-decimal amount
        after_label = PERCENTAGE_TOKEN_PATTERN.sub(" ", text[label_end:])
        for pattern in (CURRENCY_AMOUNT_PATTERN, TWO_DECIMAL_PATTERN):
            match = pattern.search(after_label)
            if match is None:
                continue
            try:
                value = float(match.group(1).replace(",", ""))
            except ValueError:
                continue
            if value > 0:
                return value

    # Label and amount in one short block: the amount nearest the label is usually last.
    amounts = extract_currency_amounts(text)
    if amounts:
        return amounts[-1]

    return clean_and_parse_amount(text)


def parse_amount_with_label(text: str, config: ScannerConfig = DEFAULT_SCANNER_CONFIG) -> ParsedAmount | None:
    """
    Classify a line and read its amount.

    This is the single-tap entry point: one transcript in, one ParsedAmount
    (or None) out.

    Returns:
        None for suggested-tip lines, lines without a positive amount, and
        subtotal/total values below the minimum plausible bill amount.
    """
    if not text or is_suggested_tip_line(text):
        return None

    amount_type = classify(text)
    if amount_type is AmountType.UNLABELED:
        value = clean_and_parse_amount(text)
    else:
        value = extract_amount_near_label(text, amount_type)

    if value is None:
        return None

    if amount_type in (AmountType.SUBTOTAL, AmountType.TOTAL) and value < config.min_labeled_amount:
        logger.debug("Discarding %s %.2f below minimum in %r", amount_type.value, value, text)
        return None

    return ParsedAmount(value=value, type=amount_type)
