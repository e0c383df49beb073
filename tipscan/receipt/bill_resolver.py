"""Resolve subtotal/total/gratuity from OCR frames of one receipt.

A live camera delivers a stream of slightly different OCR readings of the
same receipt. Each frame is reduced to candidate amounts; candidates are
pooled over the last few frames and the consensus is what the caller sees.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field, replace

from tipscan.domain.scan import AmountType, DetectedGratuity, ScannedBillAmounts, TextObservation

from .amount_parser.common import DEFAULT_SCANNER_CONFIG, ScannerConfig, is_reasonable_amount
from .amount_parser.label_classifier import parse_amount_with_label
from .amount_parser.noise_filters import (
    detect_tip_suggestion_amounts,
    has_gratuity_keyword,
    is_blacklisted,
    is_item_line,
    is_label_only_block,
    is_promo_text,
    is_suggested_tip_line,
)
from .amount_parser.normalizer import extract_currency_amounts, extract_percentage
from .consensus import ConsensusHistory
from .line_grouping import Origin, group_into_lines, line_text

logger = logging.getLogger(__name__)

AmountsCallback = Callable[[ScannedBillAmounts], None]


@dataclass
class FrameCandidates:
    """Everything one frame contributed before consensus."""

    subtotals: list[float] = field(default_factory=list)
    totals: list[float] = field(default_factory=list)
    gratuities: list[DetectedGratuity] = field(default_factory=list)
    unlabeled: list[float] = field(default_factory=list)
    # Labels seen in blocks without any value (OCR split label and value columns)
    has_label_block: bool = False
    has_gratuity_label: bool = False

    @property
    def has_labeled_amounts(self) -> bool:
        return bool(self.subtotals or self.totals)


def frame_lines(
    observations: Sequence[TextObservation],
    config: ScannerConfig = DEFAULT_SCANNER_CONFIG,
    origin: Origin = "top",
) -> list[str]:
    """Turn one frame's observations into line transcripts.

    Low-confidence observations are dropped. When any observation carries a
    bounding box, tokens are grouped into visual lines first.
    """
    kept = [obs for obs in observations if obs.text and obs.confidence >= config.min_confidence]
    if any(obs.bounding_box is not None for obs in kept):
        return [line_text(line) for line in group_into_lines(kept, config.y_tolerance, origin)]
    return [obs.text for obs in kept]


def collect_frame_candidates(lines: Sequence[str], config: ScannerConfig = DEFAULT_SCANNER_CONFIG) -> FrameCandidates:
    """Classify every line of one frame into candidate amounts."""
    candidates = FrameCandidates()
    blacklist = detect_tip_suggestion_amounts(lines)
    if blacklist:
        logger.debug("Blacklisted suggested-tip amounts: %s", sorted(blacklist))

    for text in lines:
        if is_suggested_tip_line(text) or is_item_line(text):
            continue

        if has_gratuity_keyword(text):
            candidates.has_gratuity_label = True

        if is_label_only_block(text):
            candidates.has_label_block = True
            continue

        parsed = parse_amount_with_label(text, config)
        if parsed is None:
            continue
        if not is_reasonable_amount(parsed.value, config):
            continue
        if is_blacklisted(parsed.value, blacklist, config.blacklist_tolerance):
            continue

        if parsed.type is AmountType.SUBTOTAL:
            candidates.subtotals.append(parsed.value)
        elif parsed.type is AmountType.TOTAL:
            candidates.totals.append(parsed.value)
        elif parsed.type is AmountType.GRATUITY:
            if parsed.value < config.min_gratuity_amount:
                continue
            candidates.gratuities.append(
                DetectedGratuity(amount=parsed.value, percentage=extract_percentage(text), label=text)
            )
        elif parsed.type is AmountType.UNLABELED:
            if is_promo_text(text):
                continue
            for amount in extract_currency_amounts(text):
                if is_reasonable_amount(amount, config) and not is_blacklisted(
                    amount, blacklist, config.blacklist_tolerance
                ):
                    candidates.unlabeled.append(amount)
        # Tax lines are recognized so they never pose as totals; their value is unused.

    return candidates


def correct_swapped_pair(candidates: FrameCandidates, config: ScannerConfig = DEFAULT_SCANNER_CONFIG) -> None:
    """Swap subtotal and total when OCR attached each value to the other label."""
    if not candidates.subtotals or not candidates.totals:
        return
    subtotal = candidates.subtotals[0]
    total = candidates.totals[0]
    if subtotal <= total:
        return
    if total * config.swap_min_ratio < subtotal < total * config.swap_max_ratio:
        logger.debug("Swapping subtotal %.2f and total %.2f", subtotal, total)
        candidates.subtotals = [total]
        candidates.totals = [subtotal]


def _find_gratuity_split(amounts: list[float], largest: float, config: ScannerConfig) -> tuple[float, float] | None:
    """Find (subtotal, gratuity) where subtotal + gratuity + tax == largest."""
    tolerance = largest * config.sum_tolerance
    for subtotal in amounts:
        if subtotal == largest:
            continue
        if not config.gratuity_subtotal_min_ratio < subtotal / largest < config.gratuity_subtotal_max_ratio:
            continue
        for gratuity in amounts:
            if gratuity in (largest, subtotal):
                continue
            if not config.gratuity_min_rate <= gratuity / subtotal <= config.gratuity_max_rate:
                continue
            for tax in amounts:
                if tax in (largest, subtotal, gratuity):
                    continue
                if abs(subtotal + gratuity + tax - largest) <= tolerance:
                    return subtotal, gratuity
    return None


def _find_tax_split(amounts: list[float], largest: float, config: ScannerConfig) -> float | None:
    """Find the subtotal where subtotal + tax == largest."""
    tolerance = largest * config.sum_tolerance
    for subtotal in amounts:
        if subtotal == largest:
            continue
        if not config.tax_subtotal_min_ratio < subtotal / largest < config.tax_subtotal_max_ratio:
            continue
        for tax in amounts:
            if tax in (largest, subtotal):
                continue
            if not config.tax_min_rate <= tax / subtotal <= config.tax_max_rate:
                continue
            if abs(subtotal + tax - largest) <= tolerance:
                return subtotal
    return None


def apply_heuristics(candidates: FrameCandidates, config: ScannerConfig = DEFAULT_SCANNER_CONFIG) -> None:
    """
    Assign unlabeled amounts to subtotal/total/gratuity by their arithmetic.

    Used when a frame shows summary labels in one column and the values in
    another, so no line carries both. The largest amount is the total; the
    rest are searched for subtotal + gratuity + tax (only if a gratuity label
    was seen) or subtotal + tax adding up to it. Failing that, the top two
    amounts are compared by ratio.
    """
    amounts = candidates.unlabeled
    if not amounts:
        return
    largest = max(amounts)

    subtotal: float | None = None
    gratuity: float | None = None
    if candidates.has_gratuity_label:
        split = _find_gratuity_split(amounts, largest, config)
        if split is not None:
            subtotal, gratuity = split
    if subtotal is None:
        subtotal = _find_tax_split(amounts, largest, config)

    if subtotal is not None:
        if subtotal < largest:
            candidates.subtotals.append(subtotal)
            candidates.totals.append(largest)
            if gratuity is not None:
                candidates.gratuities.append(DetectedGratuity(amount=gratuity, percentage=gratuity / subtotal * 100))
        return

    ordered = sorted(amounts, reverse=True)
    if len(ordered) == 1:
        candidates.totals.append(ordered[0])
        return

    first, second = ordered[0], ordered[1]
    ratio = second / first
    if config.pair_min_ratio < ratio < config.pair_max_ratio:
        candidates.subtotals.append(second)
        candidates.totals.append(first)
    elif ratio > config.pair_max_ratio:
        # Near-equal amounts are most likely one value read twice
        candidates.totals.append(first)
    else:
        logger.debug("Unlabeled amounts %.2f/%.2f too far apart to pair", second, first)


def ordered_amounts(amounts: ScannedBillAmounts) -> ScannedBillAmounts:
    """Swap subtotal and total when the subtotal came out larger.

    Candidates from separate frames, or a pair outside the swap band, can
    still leave the larger value labeled as subtotal.
    """
    if amounts.subtotal is None or amounts.total is None or amounts.subtotal <= amounts.total:
        return amounts
    logger.debug("Reordering subtotal %.2f above total %.2f", amounts.subtotal, amounts.total)
    return replace(amounts, subtotal=amounts.total, total=amounts.subtotal)


class BillAmountResolver:
    """Cross-frame amount resolver for one scanning session.

    Not thread-safe on its own; ``ScanSession`` serializes access.
    """

    def __init__(
        self,
        config: ScannerConfig | None = None,
        on_change: AmountsCallback | None = None,
        origin: Origin = "top",
    ) -> None:
        self.config = config or DEFAULT_SCANNER_CONFIG
        self.on_change = on_change
        self.origin = origin
        self.history = ConsensusHistory(self.config.history_size, self.config.value_tolerance)
        self.consensus = ScannedBillAmounts()
        self.last_notified: ScannedBillAmounts | None = None

    def resolve(self, observations: Sequence[TextObservation]) -> ScannedBillAmounts:
        """Process one frame and return the current consensus amounts."""
        candidates = collect_frame_candidates(frame_lines(observations, self.config, self.origin), self.config)
        correct_swapped_pair(candidates, self.config)

        if candidates.has_label_block and candidates.unlabeled and not candidates.has_labeled_amounts:
            apply_heuristics(candidates, self.config)

        self.history.add(candidates.subtotals, candidates.totals, candidates.gratuities)
        self.consensus = ordered_amounts(
            ScannedBillAmounts(
                subtotal=self.history.consensus_subtotal(),
                total=self.history.consensus_total(),
                gratuity=self.history.consensus_gratuity(),
            )
        )
        if self.consensus.is_empty:
            logger.debug("No consensus after frame with %d observations", len(observations))
        self._notify_if_changed(self.consensus)
        return self.consensus

    def _notify_if_changed(self, amounts: ScannedBillAmounts) -> bool:
        if amounts.is_empty or amounts == self.last_notified:
            return False
        self.last_notified = amounts
        if self.on_change is not None:
            self.on_change(amounts)
        return True

    def clear(self) -> None:
        """Forget all readings, e.g. when the receipt leaves the frame."""
        self.history.clear()
        self.consensus = ScannedBillAmounts()
        self.last_notified = None


def resolve_document(
    observations: Sequence[TextObservation],
    config: ScannerConfig | None = None,
    origin: Origin = "top",
) -> ScannedBillAmounts:
    """Resolve amounts from a single still image (one frame, no callback)."""
    return BillAmountResolver(config, origin=origin).resolve(observations)
