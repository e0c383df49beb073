"""Shared pytest fixtures/options for tipscan tests."""

from __future__ import annotations

import pytest

from tipscan.domain.scan import BoundingBox, TextObservation


def pytest_addoption(parser):
    """Custom pytest option for receipt e2e tests."""
    parser.addoption(
        "--tipscan-e2e-mode",
        action="store",
        default="cached",
        choices=["cached", "live", "both"],
        help=(
            "Receipt E2E mode for tipscan/tests/test_e2e_receipts.py: "
            "cached (.ocr.json / .lines.txt), live (.jpg -> OCR service), or both."
        ),
    )


@pytest.fixture
def make_token():
    """Build a positioned OCR token; y/x are top-left normalized coordinates."""

    def _make(text: str, x: float, y: float, width: float = 0.2, height: float = 0.02, confidence: float = 0.95):
        return TextObservation(
            text=text,
            bounding_box=BoundingBox(x=x, y=y, width=width, height=height),
            confidence=confidence,
        )

    return _make
