"""Spatial grouping of OCR observations into visual receipt lines."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Literal

from tipscan.domain.scan import TextObservation

# Two tokens whose y-centers differ by no more than this share a line
DEFAULT_Y_TOLERANCE = 0.015  # 1.5% of image height

Origin = Literal["top", "bottom"]


def group_into_lines(
    observations: Sequence[TextObservation],
    y_tolerance: float = DEFAULT_Y_TOLERANCE,
    origin: Origin = "top",
) -> list[list[TextObservation]]:
    """
    Group observations by Y-position into lines, top of the receipt first.

    Tokens are walked in reading order; a new line starts whenever the gap to
    the previous token's y-center exceeds ``y_tolerance``. Each line is
    ordered left to right.

    Args:
        observations: OCR tokens for one frame
        y_tolerance: Max y-center gap (normalized) within one line
        origin: "top" for top-left image coordinates, "bottom" for
                bottom-left coordinates (Apple Vision)

    Returns:
        Lines of observations. Observations without a bounding box cannot be
        placed spatially and are appended as single-token lines.
    """
    spatial = [obs for obs in observations if obs.bounding_box is not None]
    unplaced = [obs for obs in observations if obs.bounding_box is None]

    lines: list[list[TextObservation]] = []
    if spatial:
        ordered = sorted(
            spatial,
            key=lambda obs: obs.bounding_box.y_center,  # type: ignore[union-attr]
            reverse=origin == "bottom",
        )

        current: list[TextObservation] = []
        last_y: float | None = None
        for obs in ordered:
            y_center = obs.bounding_box.y_center  # type: ignore[union-attr]
            if last_y is None or abs(y_center - last_y) <= y_tolerance:
                current.append(obs)
            else:
                lines.append(_sort_left_to_right(current))
                current = [obs]
            last_y = y_center
        if current:
            lines.append(_sort_left_to_right(current))

    lines.extend([obs] for obs in unplaced)
    return lines


def _sort_left_to_right(line: list[TextObservation]) -> list[TextObservation]:
    return sorted(line, key=lambda obs: obs.bounding_box.x_center if obs.bounding_box else 0.0)


def line_text(line: Sequence[TextObservation]) -> str:
    """Join a grouped line's tokens left to right."""
    return " ".join(obs.text for obs in line)
