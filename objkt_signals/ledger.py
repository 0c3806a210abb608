"""
Provenance folds over a token's ledger: artist, net editions, ownership.

All functions expect events already sorted by (timestamp, sequence_id).
"""

import logging
from typing import Optional, Sequence

from .exceptions import ArtistNotFoundError, MalformedRecordError
from .models import Creator, EventType, MarketplaceEventType, TokenEvent


logger = logging.getLogger(__name__)


def resolve_artist(events: Sequence[TokenEvent]) -> Creator:
    """
    Creator of the earliest LIST_CREATE event.

    Raises:
        ArtistNotFoundError: No LIST_CREATE event in the sequence.
        MalformedRecordError: The earliest LIST_CREATE has no creator.
    """
    for event in events:
        if event.marketplace_kind != MarketplaceEventType.LIST_CREATE:
            continue
        if event.creator is None:
            raise MalformedRecordError(
                "Earliest listing has no creator",
                token_id=event.token_id,
                details={"sequence_id": event.sequence_id},
            )
        return event.creator

    raise ArtistNotFoundError(
        f"No listing found among {len(events)} events",
        token_id=events[0].token_id if events else None,
    )


def net_listed_editions(events: Sequence[TokenEvent], artist: Creator) -> int:
    """
    Editions listed by the artist minus editions they cancelled.

    Secondary listings by other creators never count. The result is
    not clamped and may be zero or negative.
    """
    net = 0
    for event in events:
        if not event.is_by(artist.address):
            continue
        if event.marketplace_kind == MarketplaceEventType.LIST_CREATE:
            net += event.amount
        elif event.marketplace_kind == MarketplaceEventType.LIST_CANCEL:
            net -= event.amount

    if net < 0:
        logger.debug(
            f"Negative net editions ({net}) for artist {artist.address}: "
            f"cancellations exceed listings in the observed window"
        )
    return net


def is_already_held(events: Sequence[TokenEvent], self_address: Optional[str]) -> bool:
    """True if any transfer delivered the token to the operator wallet."""
    if not self_address:
        return False
    return any(
        event.kind == EventType.TRANSFER and event.recipient_address == self_address
        for event in events
    )
