"""
Token Signal Generator - Folds one token's ledger into a TokenSignal.

Pure and synchronous: no I/O, no shared state beyond counters. Every
non-accept outcome is raised as a TokenSkipped subclass so the caller
can record the reason.
"""

import logging
from typing import Any, Iterable, Optional

from .classifier import AvailabilityClassifier
from .config import SignalConfig, get_config
from .exceptions import (
    AlreadyHeldError,
    DegenerateListingError,
    TokenUnavailableError,
)
from .ledger import is_already_held, net_listed_editions, resolve_artist
from .models import TokenEvent, TokenSignal, sort_events
from .purchases import (
    average_collect_interval,
    first_sale_price,
    purchase_count,
    purchase_timestamps_minutes,
)
from .royalties import royalty_percent


logger = logging.getLogger(__name__)


class TokenSignalGenerator:
    """
    Builds TokenSignal records from event histories.

    Order of checks:
    1. Sort by (timestamp, sequence_id)
    2. Resolve artist (ArtistNotFoundError / MalformedRecordError)
    3. Ownership filter (AlreadyHeldError)
    4. Edition, purchase, royalty and cadence derivations
    5. Availability gate (DegenerateListingError / TokenUnavailableError)
    """

    def __init__(
        self,
        config: Optional[SignalConfig] = None,
        classifier: Optional[AvailabilityClassifier] = None,
    ) -> None:
        self.config = config or get_config()
        self.classifier = classifier or AvailabilityClassifier(self.config.thresholds)

        # Statistics
        self._stats = {
            "signals_generated": 0,
        }

    def generate(self, token_id: str, events: Iterable[TokenEvent]) -> TokenSignal:
        """
        Compute the signal for one token.

        Args:
            token_id: Token identifier from discovery
            events: Token history, any order

        Returns:
            TokenSignal for an available token

        Raises:
            TokenSkipped: Token filtered out; the subclass names why.
        """
        ordered = sort_events(events)

        artist = resolve_artist(ordered)

        if is_already_held(ordered, self.config.self_address):
            raise AlreadyHeldError(
                "Token already held by operator wallet",
                token_id=token_id,
            )

        editions_listed = net_listed_editions(ordered, artist)
        editions_sold = purchase_count(ordered)

        is_available, sold_rate = self.classifier.classify(editions_listed, editions_sold)

        if editions_listed == 0:
            raise DegenerateListingError(
                f"No net listed editions ({editions_sold} sold)",
                token_id=token_id,
                details={"editions_listed": 0, "editions_sold": editions_sold},
            )

        if not is_available:
            raise TokenUnavailableError(
                f"Not available: listed={editions_listed} sold={editions_sold}",
                token_id=token_id,
                editions_listed=editions_listed,
                editions_sold=editions_sold,
            )

        first = ordered[0]
        signal = TokenSignal(
            token_id=token_id,
            artist=artist,
            price=first_sale_price(ordered),
            royalty_percent=royalty_percent(ordered),
            editions_listed=editions_listed,
            editions_sold=editions_sold,
            sold_rate=sold_rate,
            avg_collect_interval_minutes=average_collect_interval(
                purchase_timestamps_minutes(ordered)
            ),
            is_available=is_available,
            token_name=first.token_name,
            fa_contract=first.fa_contract,
        )

        self._stats["signals_generated"] += 1
        return signal

    def get_stats(self) -> dict[str, Any]:
        return {
            **self._stats,
            "classifier": self.classifier.get_stats(),
        }
