"""
Objkt Signals - Available-token signals from marketplace ledgers.

For each candidate token the module folds its event ledger (mint,
transfer, listing, cancellation, purchase) into a TokenSignal:
resolved artist, first-sale price, royalty, net editions listed by the
artist, editions sold, sold rate, purchase cadence and availability.

Usage:
    from objkt_signals import SignalConfig, SignalPipeline

    pipeline = SignalPipeline(SignalConfig(self_address="tz1..."))
    batch = await pipeline.get_available_token_signals(limit=30)

    for signal in batch.signals:
        print(f"{signal.token_id}: {signal.price} tez, sold rate {signal.sold_rate:.2f}")

    for skipped in batch.skipped:
        print(f"skipped {skipped.token_id}: {skipped.reason.value}")

Signal Output:
- price: first sale price in tez (None if never sold)
- royalty_percent: 0-100
- editions_listed: net editions listed by the artist (may be negative)
- editions_sold: number of purchases
- sold_rate: editions_sold / editions_listed
- avg_collect_interval_minutes: None with fewer than two purchases
- is_available: threshold gate on the edition counts

Configuration (environment or .env):
    OBJKT_SELF_ADDRESS, OBJKT_MIN_LISTED, OBJKT_MAX_LISTED,
    OBJKT_MIN_SOLD, OBJKT_CONCURRENCY_LIMIT, OBJKT_FETCH_TIMEOUT_SECONDS,
    OBJKT_DISCOVERY_LIMIT, OBJKT_GRAPHQL_URL
"""

from .classifier import AvailabilityClassifier
from .config import (
    AvailabilityThresholds,
    SignalConfig,
    get_config,
    set_config,
)
from .exceptions import (
    AlreadyHeldError,
    ArtistNotFoundError,
    ConfigurationError,
    DegenerateListingError,
    MalformedRecordError,
    ObjktSignalError,
    RateLimitError,
    TokenSkipped,
    TokenUnavailableError,
    UpstreamFetchError,
)
from .ledger import is_already_held, net_listed_editions, resolve_artist
from .models import (
    Creator,
    EventType,
    MarketplaceEventType,
    RoyaltyShare,
    SignalBatch,
    SkippedToken,
    SkipReason,
    TokenEvent,
    TokenSignal,
    sort_events,
)
from .pipeline import (
    SignalPipeline,
    close_pipeline,
    get_available_token_signals,
    get_pipeline,
)
from .purchases import (
    MICRO_UNITS,
    average_collect_interval,
    first_sale_price,
    purchase_count,
    purchase_timestamps_minutes,
)
from .royalties import royalty_percent
from .signal_generator import TokenSignalGenerator
from .sources import (
    InMemoryTokenSource,
    ObjktGraphQLSource,
    TokenDiscoverySource,
    TokenHistorySource,
)


__all__ = [
    # Pipeline
    "SignalPipeline",
    "get_pipeline",
    "close_pipeline",
    "get_available_token_signals",
    "TokenSignalGenerator",
    "AvailabilityClassifier",

    # Derivations
    "resolve_artist",
    "net_listed_editions",
    "is_already_held",
    "purchase_count",
    "first_sale_price",
    "purchase_timestamps_minutes",
    "average_collect_interval",
    "royalty_percent",
    "MICRO_UNITS",

    # Sources
    "TokenDiscoverySource",
    "TokenHistorySource",
    "InMemoryTokenSource",
    "ObjktGraphQLSource",

    # Models
    "EventType",
    "MarketplaceEventType",
    "SkipReason",
    "Creator",
    "RoyaltyShare",
    "TokenEvent",
    "TokenSignal",
    "SkippedToken",
    "SignalBatch",
    "sort_events",

    # Config
    "SignalConfig",
    "AvailabilityThresholds",
    "get_config",
    "set_config",

    # Exceptions
    "ObjktSignalError",
    "TokenSkipped",
    "ArtistNotFoundError",
    "MalformedRecordError",
    "AlreadyHeldError",
    "DegenerateListingError",
    "TokenUnavailableError",
    "UpstreamFetchError",
    "RateLimitError",
    "ConfigurationError",
]


# Version
__version__ = "1.0.0"
