"""Tests for per-frame amount resolution and cross-frame consensus."""

from __future__ import annotations

from tipscan.domain.scan import ScannedBillAmounts, TextObservation
from tipscan.receipt.amount_parser import ScannerConfig
from tipscan.receipt.bill_resolver import (
    BillAmountResolver,
    FrameCandidates,
    apply_heuristics,
    collect_frame_candidates,
    correct_swapped_pair,
    frame_lines,
    resolve_document,
)


def _frame(*lines: str) -> list[TextObservation]:
    return [TextObservation(text=line) for line in lines]


def test_labeled_receipt_end_to_end() -> None:
    amounts = resolve_document(_frame("SUB-TOTAL: $90.00", "Hst: $11.70", "TOTAL: $101.70"))

    assert amounts == ScannedBillAmounts(subtotal=90.00, total=101.70, gratuity=None)


def test_receipt_with_included_gratuity_end_to_end() -> None:
    amounts = resolve_document(
        _frame("Subtotal $67.00", "Gratuity (20.00%) $14.59", "Tax $5.93", "Total $87.52")
    )

    assert amounts.subtotal == 67.00
    assert amounts.total == 87.52
    assert amounts.gratuity is not None
    assert amounts.gratuity.amount == 14.59
    assert amounts.gratuity.percentage == 20.0


def test_swapped_subtotal_and_total_are_corrected() -> None:
    amounts = resolve_document(_frame("SUBTOTAL $101.70", "TOTAL $90.00"))

    assert amounts.subtotal == 90.00
    assert amounts.total == 101.70


def test_swap_only_inside_plausible_band() -> None:
    candidates = FrameCandidates(subtotals=[300.00], totals=[100.00])
    correct_swapped_pair(candidates)

    assert candidates.subtotals == [300.00]
    assert candidates.totals == [100.00]


def test_out_of_band_pair_is_still_ordered_in_the_result() -> None:
    amounts = resolve_document(_frame("SUBTOTAL $200.00", "TOTAL $50.00"))

    assert amounts == ScannedBillAmounts(subtotal=50.00, total=200.00)


def test_consensus_across_frames_keeps_subtotal_below_total() -> None:
    resolver = BillAmountResolver()
    resolver.resolve(_frame("SUBTOTAL $90.00"))

    amounts = resolver.resolve(_frame("TOTAL $80.00"))

    assert amounts == ScannedBillAmounts(subtotal=80.00, total=90.00)
    assert resolver.last_notified == amounts


def test_tip_table_decoys_are_excluded() -> None:
    lines = ["18%   $6.66   $44.78", "Total: $101.70"]
    candidates = collect_frame_candidates(lines)

    assert candidates.totals == [101.70]
    assert 6.66 not in candidates.unlabeled + candidates.subtotals + candidates.totals
    assert 44.78 not in candidates.unlabeled + candidates.subtotals + candidates.totals
    assert resolve_document(_frame(*lines)).total == 101.70


def test_blacklist_applies_to_unlabeled_amounts_on_other_lines() -> None:
    lines = ["SUBTOTAL", "TOTAL", "Tip  Amount  Total", "18% $6.66 $44.78", "$44.78", "$37.00", "$40.00"]
    candidates = collect_frame_candidates(lines)

    assert candidates.has_label_block
    assert 44.78 not in candidates.unlabeled
    assert candidates.unlabeled == [37.00, 40.00]


def test_menu_items_and_promos_are_skipped() -> None:
    candidates = collect_frame_candidates(
        ["2  Soda Water  $5.56", "Join us for our prix fixe $45.00", "TOTAL $52.00"]
    )

    assert candidates.unlabeled == []
    assert candidates.totals == [52.00]


def test_small_gratuity_and_unreasonable_amounts_are_ignored() -> None:
    candidates = collect_frame_candidates(["Service Charge $0.50", "TOTAL $1500.00", "Subtotal $20.00"])

    assert candidates.gratuities == []
    assert candidates.totals == []
    assert candidates.subtotals == [20.00]


def test_max_reasonable_amount_is_configurable() -> None:
    config = ScannerConfig(max_reasonable_amount=5000.0)
    candidates = collect_frame_candidates(["TOTAL $1500.00"], config)

    assert candidates.totals == [1500.00]


def test_heuristics_split_subtotal_and_tax_from_separate_blocks() -> None:
    amounts = resolve_document(_frame("SUBTOTAL\nTAX\nTOTAL", "$90.00", "$11.70", "$101.70"))

    assert amounts.subtotal == 90.00
    assert amounts.total == 101.70
    assert amounts.gratuity is None


def test_heuristics_find_gratuity_when_label_seen() -> None:
    amounts = resolve_document(_frame("SUBTOTAL\nGRATUITY\nTAX\nTOTAL", "$67.00", "$14.59", "$5.93", "$87.52"))

    assert amounts.subtotal == 67.00
    assert amounts.total == 87.52
    assert amounts.gratuity is not None
    assert amounts.gratuity.amount == 14.59
    assert amounts.gratuity.percentage is not None
    assert abs(amounts.gratuity.percentage - 14.59 / 67.00 * 100) < 1e-9
    assert amounts.gratuity.label == ""


def test_heuristics_pair_ratio_fallbacks() -> None:
    pair = FrameCandidates(unlabeled=[95.00, 100.00], has_label_block=True)
    apply_heuristics(pair)
    assert (pair.subtotals, pair.totals) == ([95.00], [100.00])

    near_equal = FrameCandidates(unlabeled=[99.50, 100.00], has_label_block=True)
    apply_heuristics(near_equal)
    assert (near_equal.subtotals, near_equal.totals) == ([], [100.00])

    far_apart = FrameCandidates(unlabeled=[50.00, 100.00], has_label_block=True)
    apply_heuristics(far_apart)
    assert (far_apart.subtotals, far_apart.totals) == ([], [])


def test_single_unlabeled_amount_is_total_when_labels_seen() -> None:
    amounts = resolve_document(_frame("TOTAL", "$42.00"))

    assert amounts == ScannedBillAmounts(total=42.00)


def test_unlabeled_amounts_alone_do_not_trigger_heuristics() -> None:
    assert resolve_document(_frame("$42.00", "$50.00")).is_empty


def test_consensus_is_stable_against_outlier_frame() -> None:
    resolver = BillAmountResolver()
    for reading in ("101.70", "101.71", "101.68", "101.70", "101.69"):
        resolver.resolve(_frame(f"TOTAL ${reading}"))

    amounts = resolver.resolve(_frame("TOTAL $5.00"))

    assert amounts.total is not None
    assert abs(amounts.total - 101.70) <= 0.10


def test_change_callback_fires_only_on_new_non_empty_consensus() -> None:
    notified: list[ScannedBillAmounts] = []
    resolver = BillAmountResolver(on_change=notified.append)

    resolver.resolve(_frame("Welcome"))
    resolver.resolve(_frame("TOTAL $50.00"))
    resolver.resolve(_frame("TOTAL $50.00"))
    resolver.resolve(_frame("SUBTOTAL $45.00"))

    assert notified == [
        ScannedBillAmounts(total=50.00),
        ScannedBillAmounts(subtotal=45.00, total=50.00),
    ]
    assert resolver.last_notified == notified[-1]


def test_clear_resets_consensus_and_notification_state() -> None:
    notified: list[ScannedBillAmounts] = []
    resolver = BillAmountResolver(on_change=notified.append)
    resolver.resolve(_frame("TOTAL $50.00"))

    resolver.clear()
    assert resolver.consensus.is_empty
    assert resolver.last_notified is None

    resolver.resolve(_frame("TOTAL $50.00"))
    assert len(notified) == 2


def test_frame_lines_groups_positioned_tokens_and_drops_low_confidence(make_token) -> None:
    observations = [
        make_token("TOTAL", x=0.1, y=0.50),
        make_token("$101.70", x=0.7, y=0.502),
        make_token("$999.99", x=0.7, y=0.70, confidence=0.2),
    ]

    assert frame_lines(observations) == ["TOTAL $101.70"]


def test_resolver_reads_values_split_from_labels_on_same_row(make_token) -> None:
    observations = [
        make_token("SUB-TOTAL:", x=0.05, y=0.60),
        make_token("$90.00", x=0.70, y=0.601),
        make_token("Hst:", x=0.05, y=0.65),
        make_token("$11.70", x=0.70, y=0.651),
        make_token("TOTAL:", x=0.05, y=0.70),
        make_token("$101.70", x=0.70, y=0.699),
    ]

    amounts = resolve_document(observations)

    assert amounts.subtotal == 90.00
    assert amounts.total == 101.70


def test_bottom_left_origin_resolver(make_token) -> None:
    observations = [
        make_token("TOTAL", x=0.05, y=0.30),
        make_token("$101.70", x=0.70, y=0.30),
        make_token("SUBTOTAL", x=0.05, y=0.40),
        make_token("$90.00", x=0.70, y=0.40),
    ]

    amounts = BillAmountResolver(origin="bottom").resolve(observations)

    assert amounts.subtotal == 90.00
    assert amounts.total == 101.70
