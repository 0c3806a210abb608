"""
Objkt Signal Exceptions - Error hierarchy for best-effort batches.

Nothing here is fatal to a batch. TokenSkipped subclasses mark a token
as filtered out; UpstreamFetchError marks a collaborator failure for a
single token. The pipeline catches both and records a diagnostic.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from .models import SkipReason


class ObjktSignalError(Exception):
    """Base exception for all objkt signal errors."""

    def __init__(
        self,
        message: str,
        token_id: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.token_id = token_id
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc)
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "token_id": self.token_id,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


class TokenSkipped(ObjktSignalError):
    """A token produced no signal. Normal filtering outcome."""

    reason: SkipReason = SkipReason.UNAVAILABLE


class ArtistNotFoundError(TokenSkipped):
    """No LIST_CREATE event exists, so the artist cannot be resolved."""

    reason = SkipReason.ARTIST_NOT_FOUND


class MalformedRecordError(TokenSkipped):
    """An event row is missing a required field or has an unknown kind."""

    reason = SkipReason.MALFORMED_RECORD


class AlreadyHeldError(TokenSkipped):
    """The operator wallet already received this token."""

    reason = SkipReason.ALREADY_HELD


class DegenerateListingError(TokenSkipped):
    """Net listed editions is zero; sold rate is undefined."""

    reason = SkipReason.DEGENERATE_LISTING


class TokenUnavailableError(TokenSkipped):
    """Edition counts fall outside the availability thresholds."""

    reason = SkipReason.UNAVAILABLE

    def __init__(
        self,
        message: str,
        token_id: Optional[str] = None,
        editions_listed: int = 0,
        editions_sold: int = 0,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, token_id, details)
        self.editions_listed = editions_listed
        self.editions_sold = editions_sold


class UpstreamFetchError(ObjktSignalError):
    """Discovery or history collaborator failed."""

    def __init__(
        self,
        message: str,
        token_id: Optional[str] = None,
        source_name: str = "",
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, token_id, details)
        self.source_name = source_name
        self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update({
            "source_name": self.source_name,
            "status_code": self.status_code,
        })
        return data


class RateLimitError(UpstreamFetchError):
    """Upstream API rejected the request with a rate limit."""

    def __init__(
        self,
        message: str,
        token_id: Optional[str] = None,
        source_name: str = "",
        retry_after_seconds: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, token_id, source_name, 429, details)
        self.retry_after_seconds = retry_after_seconds


class ConfigurationError(ObjktSignalError):
    """Invalid configuration."""
    pass
