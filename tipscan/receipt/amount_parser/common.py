"""Shared constants, patterns and thresholds for receipt amount parsing."""

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from typing import Any

logger = logging.getLogger(__name__)

# Currency symbols stripped before numeric parsing (literal, case-sensitive)
CURRENCY_SYMBOLS = ("$", "€", "£", "¥", "₹", "kr", "CHF")

# "$12.34", "€ 1,234.5", "₹500"
CURRENCY_AMOUNT_PATTERN = re.compile(r"[$€£¥₹]\s*([0-9]+(?:,[0-9]{3})*(?:\.[0-9]{1,2})?)")
CURRENCY_AMOUNT_TWO_DECIMALS = re.compile(r"[$€£¥₹]\s*([0-9]+(?:,[0-9]{3})*\.[0-9]{2})")
TWO_DECIMAL_PATTERN = re.compile(r"([0-9]+\.[0-9]{2})")
TRAILING_PRICE_PATTERN = re.compile(r"[0-9]+\.[0-9]{2}\s*$")
NUMBER_PATTERN = re.compile(r"[0-9]+\.?[0-9]*")
PERCENTAGE_PATTERN = re.compile(r"([0-9]+(?:\.[0-9]+)?)\s*%")
# "(18%)", "20.00%" - removed before parsing unlabeled lines
PERCENTAGE_TOKEN_PATTERN = re.compile(r"\(?[0-9]+(?:\.[0-9]+)?%\)?")

# Common suggested-tip percentages printed on "additional tip" tables
TIP_TABLE_PERCENTAGES = r"(?:15|18|20|22|25|30)"
TIP_TABLE_ROW_START = re.compile(r"^\s*" + TIP_TABLE_PERCENTAGES + r"\s*%", re.IGNORECASE)
TIP_TABLE_PERCENTAGE_ANYWHERE = re.compile(TIP_TABLE_PERCENTAGES + r"\s*%")

# "1  Tendril IPA  $8.33" - small leading quantity followed by an item name
ITEM_LINE_PATTERN = re.compile(r"^\s*[1-9]\s+[A-Za-z]")

# Words that mark promotional copy rather than bill amounts
PROMO_KEYWORDS = ("prix", "offer", "special", "join us")

# Labels whose presence without a number means OCR split label and value apart
LABEL_BLOCK_KEYWORDS = ("SUBTOTAL", "TOTAL", "GRATUITY")

# Any of these anywhere in a frame enables the gratuity heuristic
GRATUITY_KEYWORDS = ("GRATUITY", "GRAT ", "TIP INCLUDED", "SERVICE CHARGE", "AUTO GRAT")


@dataclass(frozen=True)
class ScannerConfig:
    """Tunable thresholds for amount resolution.

    The ratio thresholds were tuned on a small set of sample restaurant
    receipts; override them from TOML rather than editing the defaults.
    """

    # Consensus
    history_size: int = 5
    value_tolerance: float = 0.10

    # Amount sanity
    min_labeled_amount: float = 5.0
    min_gratuity_amount: float = 1.0
    min_reasonable_amount: float = 0.01
    max_reasonable_amount: float = 1000.0
    blacklist_tolerance: float = 0.01

    # Subtotal/total swap band (subtotal as a fraction of total)
    swap_min_ratio: float = 0.8
    swap_max_ratio: float = 1.5

    # Fallback heuristics
    sum_tolerance: float = 0.05
    gratuity_min_rate: float = 0.10
    gratuity_max_rate: float = 0.35
    gratuity_subtotal_min_ratio: float = 0.5
    gratuity_subtotal_max_ratio: float = 0.95
    tax_min_rate: float = 0.03
    tax_max_rate: float = 0.25
    tax_subtotal_min_ratio: float = 0.5
    tax_subtotal_max_ratio: float = 0.98
    pair_min_ratio: float = 0.80
    pair_max_ratio: float = 0.98

    # Spatial grouping
    y_tolerance: float = 0.015
    min_confidence: float = 0.5


DEFAULT_SCANNER_CONFIG = ScannerConfig()


def build_scanner_config(*configs: Mapping[str, Any]) -> ScannerConfig:
    """Merge in-memory TOML configs onto the defaults; later configs win.

    Accepts either a flat mapping or one nested under a ``[scanner]`` table.
    """
    known = {f.name: f.type for f in fields(ScannerConfig)}
    overrides: dict[str, Any] = {}
    for config in configs:
        section = config.get("scanner", config)
        if not isinstance(section, Mapping):
            continue
        for key, value in section.items():
            if key not in known:
                logger.warning("Ignoring unknown scanner setting: %s", key)
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                logger.warning("Ignoring non-numeric scanner setting %s=%r", key, value)
                continue
            overrides[key] = int(value) if known[key] is int else float(value)
    return replace(DEFAULT_SCANNER_CONFIG, **overrides)


def is_reasonable_amount(value: float, config: ScannerConfig = DEFAULT_SCANNER_CONFIG) -> bool:
    """Return True if value is inside the plausible bill amount range."""
    return config.min_reasonable_amount <= value <= config.max_reasonable_amount


def contains_any(text: str, keywords: tuple[str, ...]) -> bool:
    return any(keyword in text for keyword in keywords)
