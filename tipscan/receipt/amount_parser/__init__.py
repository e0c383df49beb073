"""Composable receipt amount parser components."""

from .common import DEFAULT_SCANNER_CONFIG, ScannerConfig, build_scanner_config, is_reasonable_amount
from .label_classifier import (
    LABEL_RULES,
    LabelRule,
    classify,
    extract_amount_near_label,
    match_rule,
    parse_amount_with_label,
)
from .noise_filters import (
    detect_tip_suggestion_amounts,
    has_gratuity_keyword,
    is_blacklisted,
    is_item_line,
    is_label_only_block,
    is_promo_text,
    is_suggested_tip_line,
)
from .normalizer import (
    clean_and_parse_amount,
    extract_currency_amounts,
    extract_percentage,
    has_currency_amount,
    normalize,
)

__all__ = [
    "DEFAULT_SCANNER_CONFIG",
    "LABEL_RULES",
    "LabelRule",
    "ScannerConfig",
    "build_scanner_config",
    "classify",
    "clean_and_parse_amount",
    "detect_tip_suggestion_amounts",
    "extract_amount_near_label",
    "extract_currency_amounts",
    "extract_percentage",
    "has_currency_amount",
    "has_gratuity_keyword",
    "is_blacklisted",
    "is_item_line",
    "is_label_only_block",
    "is_promo_text",
    "is_reasonable_amount",
    "is_suggested_tip_line",
    "match_rule",
    "normalize",
    "parse_amount_with_label",
]
