"""Live scanning session: frame stream in, consensus amounts out."""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from tipscan.domain.scan import ScannedBillAmounts, TextObservation

from .amount_parser.common import ScannerConfig
from .bill_resolver import AmountsCallback, BillAmountResolver
from .line_grouping import Origin

logger = logging.getLogger(__name__)


class ScanState(Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    CONSENSUS_FOUND = "consensus_found"
    DISMISSED = "dismissed"


@dataclass(frozen=True)
class FrameResult:
    """Outcome of feeding one frame to a session."""

    state: ScanState
    amounts: ScannedBillAmounts
    # True when this frame changed the notified consensus
    changed: bool = False


class ScanSession:
    """
    One receipt scan from first frame to dismissal.

    Frames may arrive from a capture thread or concurrent requests; a lock
    keeps them from interleaving inside the resolver. Once dismissed, the
    session ignores further frames until ``reset()``.
    """

    def __init__(
        self,
        config: ScannerConfig | None = None,
        on_change: AmountsCallback | None = None,
        origin: Origin = "top",
    ) -> None:
        self._config = config
        self._on_change = on_change
        self._origin = origin
        self._lock = threading.Lock()
        self._resolver = self._new_resolver()
        self._state = ScanState.IDLE

    def _new_resolver(self) -> BillAmountResolver:
        return BillAmountResolver(self._config, on_change=self._on_change, origin=self._origin)

    @property
    def state(self) -> ScanState:
        return self._state

    @property
    def amounts(self) -> ScannedBillAmounts:
        return self._resolver.consensus

    def process_frame(self, observations: Sequence[TextObservation]) -> FrameResult:
        with self._lock:
            if self._state is ScanState.DISMISSED:
                return FrameResult(self._state, self._resolver.consensus)
            if self._state is ScanState.IDLE:
                self._state = ScanState.SCANNING

            before = self._resolver.last_notified
            amounts = self._resolver.resolve(observations)
            changed = self._resolver.last_notified is not before

            if not amounts.is_empty and self._state is ScanState.SCANNING:
                logger.debug("Consensus found: %s", amounts)
                self._state = ScanState.CONSENSUS_FOUND
            return FrameResult(self._state, amounts, changed)

    def frames_removed_all(self) -> None:
        """The OCR engine reports no visible text; drop accumulated readings."""
        with self._lock:
            if self._state is ScanState.DISMISSED:
                return
            self._resolver.clear()
            if self._state is ScanState.CONSENSUS_FOUND:
                self._state = ScanState.SCANNING

    def dismiss(self) -> ScannedBillAmounts:
        """Close the session and return the last consensus it reached."""
        with self._lock:
            final = self._resolver.consensus
            self._resolver.clear()
            self._state = ScanState.DISMISSED
            return final

    def reset(self) -> None:
        with self._lock:
            self._resolver = self._new_resolver()
            self._state = ScanState.IDLE
