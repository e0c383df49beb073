"""Cross-frame consensus voting over noisy amount readings."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass

from tipscan.domain.scan import DetectedGratuity


@dataclass
class _Cluster:
    centroid: float
    count: int


def find_consensus_value(history: list[float] | deque[float], tolerance: float = 0.10) -> float | None:
    """
    Return the centroid of the largest cluster of readings.

    Readings are clustered greedily: each joins the first cluster whose
    running-average centroid is within ``tolerance``, else starts a new one.
    Ties go to the cluster established first, so one outlier frame never
    overrides repeated readings.
    """
    clusters: list[_Cluster] = []
    for value in history:
        for cluster in clusters:
            if abs(cluster.centroid - value) <= tolerance:
                new_count = cluster.count + 1
                cluster.centroid = (cluster.centroid * cluster.count + value) / new_count
                cluster.count = new_count
                break
        else:
            clusters.append(_Cluster(centroid=value, count=1))

    best: _Cluster | None = None
    for cluster in clusters:
        if best is None or cluster.count > best.count:
            best = cluster
    return best.centroid if best is not None else None


class ConsensusHistory:
    """Bounded FIFO buffers of subtotal/total/gratuity readings for one session."""

    def __init__(self, max_size: int = 5, tolerance: float = 0.10) -> None:
        self.max_size = max_size
        self.tolerance = tolerance
        self.subtotals: deque[float] = deque(maxlen=max_size)
        self.totals: deque[float] = deque(maxlen=max_size)
        self.gratuities: deque[DetectedGratuity] = deque(maxlen=max_size)

    def add(
        self,
        subtotals: list[float],
        totals: list[float],
        gratuities: list[DetectedGratuity],
    ) -> None:
        self.subtotals.extend(subtotals)
        self.totals.extend(totals)
        self.gratuities.extend(gratuities)

    def clear(self) -> None:
        self.subtotals.clear()
        self.totals.clear()
        self.gratuities.clear()

    def consensus_subtotal(self) -> float | None:
        return find_consensus_value(self.subtotals, self.tolerance)

    def consensus_total(self) -> float | None:
        return find_consensus_value(self.totals, self.tolerance)

    def consensus_gratuity(self) -> DetectedGratuity | None:
        """Consensus amount, with percentage/label from the first matching reading."""
        if not self.gratuities:
            return None
        amount = find_consensus_value([g.amount for g in self.gratuities], self.tolerance)
        if amount is None:
            return None
        for reading in self.gratuities:
            if abs(reading.amount - amount) <= self.tolerance:
                return DetectedGratuity(amount=amount, percentage=reading.percentage, label=reading.label)
        return DetectedGratuity(amount=amount)
