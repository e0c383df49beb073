"""Tests for grouping positioned OCR tokens into receipt lines."""

from __future__ import annotations

from tipscan.domain.scan import TextObservation
from tipscan.receipt.line_grouping import group_into_lines, line_text


def _texts(lines: list[list[TextObservation]]) -> list[str]:
    return [line_text(line) for line in lines]


def test_tokens_on_same_row_join_left_to_right(make_token) -> None:
    observations = [
        make_token("$101.70", x=0.7, y=0.505),
        make_token("SUBTOTAL", x=0.1, y=0.40),
        make_token("TOTAL", x=0.1, y=0.50),
        make_token("$90.00", x=0.7, y=0.401),
    ]

    assert _texts(group_into_lines(observations)) == ["SUBTOTAL $90.00", "TOTAL $101.70"]


def test_bottom_left_origin_reads_highest_y_first(make_token) -> None:
    # Apple Vision: y grows upward, so the top of the receipt has the larger y.
    observations = [
        make_token("TOTAL", x=0.1, y=0.40),
        make_token("$101.70", x=0.7, y=0.405),
        make_token("SUBTOTAL", x=0.1, y=0.50),
        make_token("$90.00", x=0.7, y=0.50),
    ]

    assert _texts(group_into_lines(observations, origin="bottom")) == ["SUBTOTAL $90.00", "TOTAL $101.70"]


def test_gap_larger_than_tolerance_starts_new_line(make_token) -> None:
    observations = [
        make_token("Tax", x=0.1, y=0.30),
        make_token("$5.93", x=0.7, y=0.32),
    ]

    assert _texts(group_into_lines(observations)) == ["Tax", "$5.93"]
    assert _texts(group_into_lines(observations, y_tolerance=0.03)) == ["Tax $5.93"]


def test_observations_without_boxes_follow_spatial_lines(make_token) -> None:
    observations = [
        TextObservation(text="Thank you"),
        make_token("TOTAL", x=0.1, y=0.50),
        make_token("$12.00", x=0.6, y=0.50),
    ]

    assert _texts(group_into_lines(observations)) == ["TOTAL $12.00", "Thank you"]


def test_empty_input() -> None:
    assert group_into_lines([]) == []
