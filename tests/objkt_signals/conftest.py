"""
Shared fixtures for objkt signal tests.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from objkt_signals.config import SignalConfig
from objkt_signals.models import (
    Creator,
    EventType,
    MarketplaceEventType,
    RoyaltyShare,
    TokenEvent,
)


ARTIST = "tz1artist"
COLLECTOR = "tz1collector"
OPERATOR = "tz1operator"

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def build_event(
    seq: int,
    marketplace_kind: MarketplaceEventType = MarketplaceEventType.NONE,
    kind: EventType = EventType.NONE,
    creator: Optional[str] = ARTIST,
    minute: Optional[int] = None,
    amount: int = 0,
    price: Optional[int] = None,
    recipient: Optional[str] = None,
    shares: tuple = ((100_000, 6),),
    token_id: str = "T1",
) -> TokenEvent:
    """One ledger event; timestamp defaults to BASE_TIME + seq minutes."""
    return TokenEvent(
        timestamp=BASE_TIME + timedelta(minutes=seq if minute is None else minute),
        sequence_id=seq,
        kind=kind,
        marketplace_kind=marketplace_kind,
        creator=Creator(address=creator) if creator else None,
        recipient_address=recipient,
        price=price,
        amount=amount,
        royalty_shares=tuple(RoyaltyShare(a, d) for a, d in shares),
        token_id=token_id,
        token_name=f"Token {token_id}",
        fa_contract="KT1contract",
    )


def available_history(token_id: str = "T1", listed: int = 5, sold: int = 3) -> list[TokenEvent]:
    """Mint, one primary listing of `listed` editions, then `sold` buys."""
    events = [
        build_event(1, kind=EventType.MINT, amount=listed, token_id=token_id),
        build_event(2, MarketplaceEventType.LIST_CREATE, amount=listed, token_id=token_id),
    ]
    for i in range(sold):
        seq = 10 + i
        events.append(build_event(
            seq,
            MarketplaceEventType.LIST_BUY,
            creator=COLLECTOR,
            minute=100 + 10 * i,
            amount=1,
            price=2_500_000,
            token_id=token_id,
        ))
    return events


@pytest.fixture
def make_event():
    """Factory for ledger events."""
    return build_event


@pytest.fixture
def config():
    """Config with an explicit operator wallet and default thresholds."""
    return SignalConfig(self_address=OPERATOR, fetch_timeout_seconds=1.0)


@pytest.fixture
def make_history():
    """Factory for an available-by-default token history."""
    return available_history
