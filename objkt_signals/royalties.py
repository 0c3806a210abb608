"""Royalty Calculator."""

import logging
from decimal import Decimal
from typing import Sequence

from .models import TokenEvent


logger = logging.getLogger(__name__)


def royalty_percent(events: Sequence[TokenEvent]) -> float:
    """
    Artist royalty as a percentage (0-100).

    Every record carries the same royalty shares, so only the first
    event is read. Amounts are summed and scaled by the decimals of the
    last share.
    """
    if not events:
        return 0.0

    shares = events[0].royalty_shares
    if not shares:
        return 0.0

    total = 0
    decimals = 0
    for share in shares:
        total += share.share_amount
        decimals = share.decimals

    if len({s.decimals for s in shares}) > 1:
        logger.debug(
            f"Heterogeneous royalty decimals {[s.decimals for s in shares]}; "
            f"using last value {decimals}"
        )

    return float(Decimal(total) / (Decimal(10) ** decimals) * 100)
