"""
Objkt Signal Data Models - Ledger events and computed token signals.

Events are immutable once parsed. A TokenSignal is a pure function of
its token's event sequence and is recomputed, never patched.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, Optional


class EventType(Enum):
    """Lifecycle class of a ledger event."""
    MINT = "mint"
    TRANSFER = "transfer"
    NONE = "null"


class MarketplaceEventType(Enum):
    """Marketplace semantics of a ledger event."""
    LIST_CREATE = "list_create"
    LIST_CANCEL = "list_cancel"
    LIST_BUY = "list_buy"
    OFFER_CREATE = "offer_create"
    NONE = "null"


class SkipReason(Enum):
    """Why a candidate token was left out of the signal output."""
    ARTIST_NOT_FOUND = "artist_not_found"
    MALFORMED_RECORD = "malformed_record"
    ALREADY_HELD = "already_held"
    DEGENERATE_LISTING = "degenerate_listing"
    UNAVAILABLE = "unavailable"
    FETCH_FAILED = "fetch_failed"
    FETCH_TIMEOUT = "fetch_timeout"


def _malformed(message: str, **details: Any) -> Exception:
    # exceptions imports SkipReason from this module
    from .exceptions import MalformedRecordError

    return MalformedRecordError(message, details=details or None)


def _parse_enum(enum_cls: type, value: Any) -> Any:
    """Map an upstream string to a closed enum; null maps to NONE."""
    if value is None:
        return enum_cls.NONE
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        raise _malformed(
            f"Unrecognized {enum_cls.__name__} value: {value!r}",
            field=enum_cls.__name__,
            value=value,
        )


def _parse_int(raw: dict[str, Any], key: str, default: Optional[int] = None) -> Optional[int]:
    value = raw.get(key)
    if value is None:
        return default
    if isinstance(value, bool):
        raise _malformed(f"Field {key!r} is not an integer: {value!r}", field=key)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise _malformed(f"Field {key!r} is not an integer: {value!r}", field=key, value=value)


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise _malformed(f"Invalid timestamp: {value!r}")
    else:
        raise _malformed(f"Missing or invalid timestamp: {value!r}")
    return _as_utc(parsed)


def _as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class Creator:
    """
    Identity of the party that created a ledger event.

    Only the address is required; social handles are carried through
    for presentation.
    """
    address: str
    alias: Optional[str] = None
    twitter: Optional[str] = None
    instagram: Optional[str] = None
    tzdomain: Optional[str] = None
    email: Optional[str] = None
    facebook: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "alias": self.alias,
            "twitter": self.twitter,
            "instagram": self.instagram,
            "tzdomain": self.tzdomain,
            "email": self.email,
            "facebook": self.facebook,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Creator":
        address = data.get("address")
        if not address or not isinstance(address, str):
            raise _malformed("Creator record has no address", creator=data)
        return cls(
            address=address,
            alias=data.get("alias"),
            twitter=data.get("twitter"),
            instagram=data.get("instagram"),
            tzdomain=data.get("tzdomain"),
            email=data.get("email"),
            facebook=data.get("facebook"),
        )


@dataclass(frozen=True)
class RoyaltyShare:
    """One royalty entitlement, worth share_amount / 10**decimals."""
    share_amount: int
    decimals: int

    def to_dict(self) -> dict[str, Any]:
        return {"share_amount": self.share_amount, "decimals": self.decimals}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RoyaltyShare":
        # objkt names the field "amount"
        key = "share_amount" if "share_amount" in data else "amount"
        return cls(
            share_amount=_parse_int(data, key, 0),
            decimals=_parse_int(data, "decimals", 0),
        )


@dataclass(frozen=True)
class TokenEvent:
    """
    One immutable ledger record for a token.

    Ordering key is (timestamp, sequence_id).
    """
    timestamp: datetime
    sequence_id: int
    kind: EventType = EventType.NONE
    marketplace_kind: MarketplaceEventType = MarketplaceEventType.NONE
    creator: Optional[Creator] = None
    recipient_address: Optional[str] = None
    price: Optional[int] = None  # micro-units (mutez)
    amount: int = 0
    royalty_shares: tuple[RoyaltyShare, ...] = ()

    # Token metadata, repeated on every record
    token_id: Optional[str] = None
    token_name: Optional[str] = None
    fa_contract: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "timestamp", _as_utc(self.timestamp))
        object.__setattr__(self, "royalty_shares", tuple(self.royalty_shares))

    @property
    def sort_key(self) -> tuple[datetime, int]:
        return (self.timestamp, self.sequence_id)

    @property
    def epoch_minutes(self) -> int:
        """Whole minutes since the epoch, floored."""
        return int(self.timestamp.timestamp()) // 60

    def is_by(self, address: str) -> bool:
        return self.creator is not None and self.creator.address == address

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "sequence_id": self.sequence_id,
            "kind": self.kind.value,
            "marketplace_kind": self.marketplace_kind.value,
            "creator": self.creator.to_dict() if self.creator else None,
            "recipient_address": self.recipient_address,
            "price": self.price,
            "amount": self.amount,
            "royalty_shares": [s.to_dict() for s in self.royalty_shares],
            "token_id": self.token_id,
            "token_name": self.token_name,
            "fa_contract": self.fa_contract,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TokenEvent":
        """
        Parse one upstream event row.

        Accepts both the objkt GraphQL row shape (id, event_type,
        marketplace_event_type, creator_address, token.royalties) and
        the shape produced by to_dict().

        Raises:
            MalformedRecordError: On missing required fields or
                unrecognized event kinds.
        """
        if not isinstance(data, dict):
            raise _malformed(f"Event row is not a mapping: {type(data).__name__}")

        sequence_key = "sequence_id" if "sequence_id" in data else "id"
        sequence_id = _parse_int(data, sequence_key)
        if sequence_id is None:
            raise _malformed("Event row has no id", row=data)

        creator_data = data.get("creator")
        if isinstance(creator_data, dict):
            creator: Optional[Creator] = Creator.from_dict(creator_data)
        elif data.get("creator_address"):
            creator = Creator(address=data["creator_address"])
        else:
            creator = None

        token = data.get("token") or {}
        shares_data = data.get("royalty_shares")
        if shares_data is None:
            shares_data = token.get("royalties") or []

        token_id = data.get("token_id", token.get("token_id"))

        return cls(
            timestamp=_parse_timestamp(data.get("timestamp")),
            sequence_id=sequence_id,
            kind=_parse_enum(EventType, data.get("kind", data.get("event_type"))),
            marketplace_kind=_parse_enum(
                MarketplaceEventType,
                data.get("marketplace_kind", data.get("marketplace_event_type")),
            ),
            creator=creator,
            recipient_address=data.get("recipient_address"),
            price=_parse_int(data, "price"),
            amount=_parse_int(data, "amount", 0),
            royalty_shares=tuple(RoyaltyShare.from_dict(s) for s in shares_data),
            token_id=str(token_id) if token_id is not None else None,
            token_name=data.get("token_name", token.get("name")),
            fa_contract=data.get("fa_contract"),
        )


def sort_events(events: Iterable[TokenEvent]) -> list[TokenEvent]:
    """Return events ordered ascending by (timestamp, sequence_id)."""
    return sorted(events, key=lambda e: e.sort_key)


@dataclass
class TokenSignal:
    """
    Computed acquisition signal for one token.

    avg_collect_interval_minutes is None when fewer than two purchases
    exist; treat that as insufficient history, not as zero.
    """
    token_id: str
    artist: Creator
    price: Optional[Decimal]
    royalty_percent: float
    editions_listed: int
    editions_sold: int
    sold_rate: float
    avg_collect_interval_minutes: Optional[float]
    is_available: bool

    token_name: Optional[str] = None
    fa_contract: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "token_id": self.token_id,
            "token_name": self.token_name,
            "fa_contract": self.fa_contract,
            "artist": self.artist.to_dict(),
            "price": float(self.price) if self.price is not None else None,
            "royalty_percent": self.royalty_percent,
            "editions_listed": self.editions_listed,
            "editions_sold": self.editions_sold,
            "sold_rate": self.sold_rate,
            "avg_collect_interval_minutes": self.avg_collect_interval_minutes,
            "is_available": self.is_available,
        }


@dataclass
class SkippedToken:
    """Diagnostic entry for a token that produced no signal."""
    token_id: str
    reason: SkipReason
    detail: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "token_id": self.token_id,
            "reason": self.reason.value,
            "detail": self.detail,
        }


RANKING_FIELDS = ("sold_rate", "avg_collect_interval_minutes")


@dataclass
class SignalBatch:
    """
    Result of one pipeline run.

    signals keeps discovery order; skipped lists every candidate that
    was filtered out or failed, with the reason.
    """
    signals: list[TokenSignal] = field(default_factory=list)
    skipped: list[SkippedToken] = field(default_factory=list)
    candidates: int = 0
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None
    errors: list[str] = field(default_factory=list)

    @property
    def accepted_count(self) -> int:
        return len(self.signals)

    @property
    def skip_summary(self) -> dict[str, int]:
        summary: dict[str, int] = {}
        for entry in self.skipped:
            summary[entry.reason.value] = summary.get(entry.reason.value, 0) + 1
        return summary

    def ranked(self, by: str = "sold_rate") -> list[TokenSignal]:
        """
        Signals sorted best-first by a ranking field.

        sold_rate ranks descending; avg_collect_interval_minutes ranks
        ascending (faster collecting first) with undefined cadence last.
        """
        if by not in RANKING_FIELDS:
            raise ValueError(f"Unknown ranking field: {by}")
        if by == "sold_rate":
            return sorted(self.signals, key=lambda s: -s.sold_rate)
        return sorted(
            self.signals,
            key=lambda s: (
                s.avg_collect_interval_minutes is None,
                s.avg_collect_interval_minutes or 0.0,
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "signals": [s.to_dict() for s in self.signals],
            "skipped": [s.to_dict() for s in self.skipped],
            "candidates": self.candidates,
            "accepted": self.accepted_count,
            "skip_summary": self.skip_summary,
            "errors": self.errors,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }
