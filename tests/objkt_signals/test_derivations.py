"""
Tests for the per-token derivations.

============================================================
PURPOSE
============================================================
Covers each fold over a sorted ledger:
1. Artist resolution
2. Net listed editions
3. Purchase tracking and first-sale price
4. Royalty percentage
5. Purchase cadence
6. Ownership filter
7. Availability classification

============================================================
"""

from dataclasses import replace
from datetime import timedelta
from decimal import Decimal

import pytest

from objkt_signals.classifier import AvailabilityClassifier
from objkt_signals.config import AvailabilityThresholds
from objkt_signals.exceptions import ArtistNotFoundError, MalformedRecordError
from objkt_signals.ledger import is_already_held, net_listed_editions, resolve_artist
from objkt_signals.models import Creator, EventType, MarketplaceEventType
from objkt_signals.purchases import (
    average_collect_interval,
    first_sale_price,
    purchase_count,
    purchase_timestamps_minutes,
)
from objkt_signals.royalties import royalty_percent


LIST_CREATE = MarketplaceEventType.LIST_CREATE
LIST_CANCEL = MarketplaceEventType.LIST_CANCEL
LIST_BUY = MarketplaceEventType.LIST_BUY

# 2024-01-01T00:00:00Z in epoch minutes
BASE_MINUTE = 1_704_067_200 // 60


# ============================================================
# ARTIST RESOLVER TESTS
# ============================================================

class TestResolveArtist:
    """Tests for resolve_artist."""

    def test_returns_creator_of_earliest_listing(self, make_event):
        """The first LIST_CREATE wins over later relistings."""
        events = [
            make_event(1, kind=EventType.MINT, creator="tz1minter"),
            make_event(2, LIST_CREATE, creator="tz1artist", amount=10),
            make_event(3, LIST_BUY, creator="tz1buyer"),
            make_event(4, LIST_CREATE, creator="tz1reseller", amount=1),
        ]

        artist = resolve_artist(events)

        assert artist == Creator(address="tz1artist")

    def test_no_listing_raises_not_found(self, make_event):
        """Without LIST_CREATE the artist cannot be resolved."""
        events = [
            make_event(1, kind=EventType.MINT),
            make_event(2, kind=EventType.TRANSFER, recipient="tz1x"),
        ]

        with pytest.raises(ArtistNotFoundError):
            resolve_artist(events)

    def test_empty_history_raises_not_found(self):
        with pytest.raises(ArtistNotFoundError):
            resolve_artist([])

    def test_listing_without_creator_is_malformed(self, make_event):
        events = [make_event(1, LIST_CREATE, creator=None, amount=3)]

        with pytest.raises(MalformedRecordError):
            resolve_artist(events)


# ============================================================
# EDITION LEDGER TESTS
# ============================================================

class TestNetListedEditions:
    """Tests for net_listed_editions."""

    def test_nets_creates_against_cancels_by_artist(self, make_event):
        events = [
            make_event(1, LIST_CREATE, creator="tz1artist", amount=10),
            make_event(2, LIST_CANCEL, creator="tz1artist", amount=3),
            make_event(3, LIST_CREATE, creator="tz1artist", amount=2),
        ]

        assert net_listed_editions(events, Creator("tz1artist")) == 9

    def test_other_creators_do_not_count(self, make_event):
        """Secondary listings and cancellations are ignored."""
        events = [
            make_event(1, LIST_CREATE, creator="tz1artist", amount=10),
            make_event(2, LIST_CREATE, creator="tz1reseller", amount=4),
            make_event(3, LIST_CANCEL, creator="tz1reseller", amount=2),
            make_event(4, LIST_CANCEL, creator=None, amount=5),
        ]

        assert net_listed_editions(events, Creator("tz1artist")) == 10

    def test_buys_do_not_change_listed_count(self, make_event):
        events = [
            make_event(1, LIST_CREATE, creator="tz1artist", amount=5),
            make_event(2, LIST_BUY, creator="tz1artist", amount=1),
        ]

        assert net_listed_editions(events, Creator("tz1artist")) == 5

    def test_negative_result_is_not_clamped(self, make_event):
        events = [
            make_event(1, LIST_CREATE, creator="tz1artist", amount=2),
            make_event(2, LIST_CANCEL, creator="tz1artist", amount=5),
        ]

        assert net_listed_editions(events, Creator("tz1artist")) == -3

    def test_fully_cancelled_is_zero(self, make_event):
        events = [
            make_event(1, LIST_CREATE, creator="tz1artist", amount=4),
            make_event(2, LIST_CANCEL, creator="tz1artist", amount=4),
        ]

        assert net_listed_editions(events, Creator("tz1artist")) == 0


# ============================================================
# PURCHASE TRACKER TESTS
# ============================================================

class TestPurchaseTracker:
    """Tests for purchase count, first-sale price and timestamps."""

    def test_counts_buys_regardless_of_creator(self, make_event):
        events = [
            make_event(1, LIST_CREATE, amount=5),
            make_event(2, LIST_BUY, creator="tz1a"),
            make_event(3, LIST_BUY, creator="tz1b"),
            make_event(4, LIST_BUY, creator=None),
            make_event(5, MarketplaceEventType.OFFER_CREATE),
        ]

        assert purchase_count(events) == 3

    def test_first_sale_price_uses_first_buy_only(self, make_event):
        events = [
            make_event(1, LIST_CREATE, amount=5),
            make_event(2, LIST_BUY, price=2_500_000),
            make_event(3, LIST_BUY, price=9_000_000),
        ]

        assert first_sale_price(events) == Decimal("2.5")

    def test_first_sale_price_without_buys_is_none(self, make_event):
        events = [make_event(1, LIST_CREATE, amount=5)]

        assert first_sale_price(events) is None

    def test_first_sale_price_keeps_micro_precision(self, make_event):
        events = [make_event(1, LIST_BUY, price=1)]

        assert first_sale_price(events) == Decimal("0.000001")

    def test_purchase_timestamps_in_epoch_minutes(self, make_event):
        events = [
            make_event(1, LIST_CREATE, minute=0, amount=5),
            make_event(2, LIST_BUY, minute=100),
            make_event(3, LIST_BUY, minute=110),
        ]

        assert purchase_timestamps_minutes(events) == [BASE_MINUTE + 100, BASE_MINUTE + 110]

    def test_purchase_timestamps_floor_seconds(self, make_event):
        event = make_event(1, LIST_BUY, minute=0)
        event = replace(event, timestamp=event.timestamp + timedelta(seconds=119))

        assert purchase_timestamps_minutes([event]) == [BASE_MINUTE + 1]


# ============================================================
# ROYALTY CALCULATOR TESTS
# ============================================================

class TestRoyaltyPercent:
    """Tests for royalty_percent."""

    def test_single_share(self, make_event):
        events = [make_event(1, shares=((30_000, 6),))]

        assert royalty_percent(events) == 3.0

    def test_shares_are_summed(self, make_event):
        events = [make_event(1, shares=((50_000, 6), (25_000, 6)))]

        assert royalty_percent(events) == 7.5

    def test_only_first_event_is_read(self, make_event):
        events = [
            make_event(1, shares=((30_000, 6),)),
            make_event(2, shares=((999_999, 6),)),
        ]

        assert royalty_percent(events) == 3.0

    def test_last_share_decimals_are_used(self, make_event):
        events = [make_event(1, shares=((1, 2), (100, 4)))]

        assert royalty_percent(events) == pytest.approx(1.01)

    def test_no_shares_is_zero(self, make_event):
        events = [make_event(1, shares=())]

        assert royalty_percent(events) == 0.0

    def test_no_events_is_zero(self):
        assert royalty_percent([]) == 0.0


# ============================================================
# CADENCE ESTIMATOR TESTS
# ============================================================

class TestAverageCollectInterval:
    """Tests for average_collect_interval."""

    def test_average_is_floored(self):
        """Gaps [10, 15] average 12.5, floored to 12."""
        assert average_collect_interval([100, 110, 125]) == 12

    def test_single_purchase_is_undefined(self):
        result = average_collect_interval([100])

        assert result is None

    def test_no_purchases_is_undefined(self):
        assert average_collect_interval([]) is None

    def test_same_minute_purchases(self):
        assert average_collect_interval([50, 50, 50]) == 0.0


# ============================================================
# OWNERSHIP FILTER TESTS
# ============================================================

class TestIsAlreadyHeld:
    """Tests for is_already_held."""

    def test_transfer_to_self_is_held(self, make_event):
        events = [
            make_event(1, LIST_CREATE, amount=5),
            make_event(2, kind=EventType.TRANSFER, recipient="tz1operator"),
        ]

        assert is_already_held(events, "tz1operator") is True

    def test_transfer_to_other_is_not_held(self, make_event):
        events = [make_event(1, kind=EventType.TRANSFER, recipient="tz1other")]

        assert is_already_held(events, "tz1operator") is False

    def test_non_transfer_to_self_is_not_held(self, make_event):
        """Only TRANSFER events count."""
        events = [
            make_event(1, kind=EventType.MINT, recipient="tz1operator"),
            make_event(2, LIST_BUY, recipient="tz1operator"),
        ]

        assert is_already_held(events, "tz1operator") is False

    def test_missing_self_address_never_matches(self, make_event):
        events = [make_event(1, kind=EventType.TRANSFER, recipient=None)]

        assert is_already_held(events, None) is False
        assert is_already_held(events, "") is False


# ============================================================
# AVAILABILITY CLASSIFIER TESTS
# ============================================================

class TestAvailabilityClassifier:
    """Tests for AvailabilityClassifier with default thresholds 1/100/2."""

    @pytest.fixture
    def classifier(self):
        return AvailabilityClassifier(AvailabilityThresholds())

    def test_typical_token_is_available(self, classifier):
        assert classifier.is_available(5, 3) is True

    @pytest.mark.parametrize(
        "listed, sold",
        [
            (1, 0),     # exactly min_listed
            (100, 3),   # exactly max_listed
            (10, 2),    # exactly min_sold
            (50, 50),   # listed == sold
            (5, 6),     # oversold
            (-3, 3),    # negative net listing
        ],
    )
    def test_boundaries_are_not_available(self, classifier, listed, sold):
        assert classifier.is_available(listed, sold) is False

    def test_just_inside_boundaries(self, classifier):
        assert classifier.is_available(99, 3) is True
        assert classifier.is_available(4, 3) is True

    def test_sold_rate(self, classifier):
        assert classifier.sold_rate(5, 3) == pytest.approx(0.6)

    def test_zero_listed_is_degenerate(self, classifier):
        available, rate = classifier.classify(0, 3)

        assert available is False
        assert rate == 0.0
        assert classifier.get_stats()["degenerate"] == 1

    def test_classify_returns_rate(self, classifier):
        available, rate = classifier.classify(5, 3)

        assert available is True
        assert rate == pytest.approx(0.6)

    def test_custom_thresholds(self):
        classifier = AvailabilityClassifier(
            AvailabilityThresholds(min_listed=10, max_listed=20, min_sold=0)
        )

        assert classifier.is_available(15, 1) is True
        assert classifier.is_available(5, 1) is False
        assert classifier.is_available(25, 1) is False

    def test_stats_count_outcomes(self, classifier):
        classifier.classify(5, 3)
        classifier.classify(1, 0)

        stats = classifier.get_stats()

        assert stats["classified"] == 2
        assert stats["available"] == 1
        assert stats["unavailable"] == 1
        assert stats["thresholds"]["max_listed"] == 100
