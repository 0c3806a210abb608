"""
Pydantic Schemas for the objkt signal endpoint.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel


# =============================================================
# SIGNAL SCHEMAS
# =============================================================

class ArtistSchema(BaseModel):
    """Resolved artist identity."""
    address: str
    alias: Optional[str] = None
    twitter: Optional[str] = None
    instagram: Optional[str] = None
    tzdomain: Optional[str] = None
    email: Optional[str] = None
    facebook: Optional[str] = None


class TokenSignalResponse(BaseModel):
    """One available token."""
    token_id: str
    token_name: Optional[str] = None
    fa_contract: Optional[str] = None
    artist: ArtistSchema
    price: Optional[float] = None
    royalty_percent: float
    editions_listed: int
    editions_sold: int
    sold_rate: float
    avg_collect_interval_minutes: Optional[float] = None  # null = fewer than 2 purchases
    is_available: bool


class SkippedTokenResponse(BaseModel):
    """Diagnostic entry for a skipped candidate."""
    token_id: str
    reason: str
    detail: str = ""


# =============================================================
# BATCH SCHEMAS
# =============================================================

class SignalBatchResponse(BaseModel):
    """Full result of one pipeline run."""
    signals: List[TokenSignalResponse]
    skipped: List[SkippedTokenResponse]
    candidates: int
    accepted: int
    skip_summary: Dict[str, int]
    errors: List[str] = []
    started_at: str
    finished_at: Optional[str] = None
