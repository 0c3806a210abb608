"""
Availability Classifier - Closed-form threshold gate on edition counts.

Not a weighted model. All comparisons are strict, so boundary values
are never available.
"""

from typing import Any, Optional

from .config import AvailabilityThresholds


class AvailabilityClassifier:
    """
    Decides whether a token still has collectible editions.

    available iff
        listed > min_listed
        and listed < max_listed
        and sold > min_sold
        and listed > sold
    """

    def __init__(self, thresholds: Optional[AvailabilityThresholds] = None) -> None:
        self.thresholds = thresholds or AvailabilityThresholds()

        # Statistics
        self._stats = {
            "classified": 0,
            "available": 0,
            "unavailable": 0,
            "degenerate": 0,
        }

    def is_available(self, editions_listed: int, editions_sold: int) -> bool:
        t = self.thresholds
        return (
            editions_listed > t.min_listed
            and editions_listed < t.max_listed
            and editions_sold > t.min_sold
            and editions_listed > editions_sold
        )

    @staticmethod
    def sold_rate(editions_listed: int, editions_sold: int) -> float:
        """editions_sold / editions_listed, or 0.0 when nothing is listed."""
        if editions_listed == 0:
            return 0.0
        return editions_sold / editions_listed

    def classify(self, editions_listed: int, editions_sold: int) -> tuple[bool, float]:
        """
        Return (is_available, sold_rate).

        Zero listed editions short-circuits to unavailable with a zero
        sold rate.
        """
        self._stats["classified"] += 1

        if editions_listed == 0:
            self._stats["degenerate"] += 1
            return False, 0.0

        available = self.is_available(editions_listed, editions_sold)
        self._stats["available" if available else "unavailable"] += 1
        return available, self.sold_rate(editions_listed, editions_sold)

    def get_stats(self) -> dict[str, Any]:
        return {
            **self._stats,
            "thresholds": self.thresholds.to_dict(),
        }
