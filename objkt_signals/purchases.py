"""
Purchase Tracker and Cadence Estimator.

Pricing uses only the first sale; later buys are secondary sales.
"""

import math
from decimal import Decimal
from typing import Optional, Sequence

from .models import MarketplaceEventType, TokenEvent


# mutez per tez
MICRO_UNITS = Decimal(1_000_000)


def _buys(events: Sequence[TokenEvent]) -> list[TokenEvent]:
    return [e for e in events if e.marketplace_kind == MarketplaceEventType.LIST_BUY]


def purchase_count(events: Sequence[TokenEvent]) -> int:
    """Number of LIST_BUY events, regardless of creator."""
    return len(_buys(events))


def first_sale_price(events: Sequence[TokenEvent]) -> Optional[Decimal]:
    """Price of the earliest LIST_BUY in display units, or None."""
    for event in events:
        if event.marketplace_kind == MarketplaceEventType.LIST_BUY:
            if event.price is None:
                return None
            return Decimal(event.price) / MICRO_UNITS
    return None


def purchase_timestamps_minutes(events: Sequence[TokenEvent]) -> list[int]:
    """Floored epoch minutes of each LIST_BUY, in ledger order."""
    return [e.epoch_minutes for e in _buys(events)]


def average_collect_interval(timestamps_minutes: Sequence[int]) -> Optional[float]:
    """
    Floored mean gap between consecutive purchases, in minutes.

    Returns None with fewer than two purchases: the interval is
    undefined, not zero.
    """
    if len(timestamps_minutes) < 2:
        return None

    gaps = [
        later - earlier
        for earlier, later in zip(timestamps_minutes, timestamps_minutes[1:])
    ]
    return float(math.floor(sum(gaps) / len(gaps)))
