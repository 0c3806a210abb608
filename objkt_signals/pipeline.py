"""
Signal Pipeline - Main orchestrator for the module.

Coordinates:
- Candidate discovery
- Bounded concurrent history fetches
- Per-token signal generation
- Diagnostics for every skipped token

Best-effort over a batch: a caller always receives a (possibly empty)
SignalBatch, never an exception from a single token.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Optional, Sequence, Union

from .config import SignalConfig, get_config
from .exceptions import (
    ArtistNotFoundError,
    MalformedRecordError,
    TokenSkipped,
    UpstreamFetchError,
)
from .models import SignalBatch, SkipReason, SkippedToken, TokenEvent, TokenSignal
from .signal_generator import TokenSignalGenerator
from .sources import ObjktGraphQLSource, TokenDiscoverySource, TokenHistorySource


logger = logging.getLogger(__name__)


# (discovery index, signal or None, skip entry or None)
_TokenResult = tuple[int, Optional[TokenSignal], Optional[SkippedToken]]


class SignalPipeline:
    """
    Computes available-token signals over a batch of candidates.

    Usage:
        pipeline = SignalPipeline(SignalConfig(self_address="tz1..."))
        batch = await pipeline.get_available_token_signals(limit=30)

        for signal in batch.signals:
            print(signal.token_id, signal.sold_rate)
        for skipped in batch.skipped:
            print(skipped.token_id, skipped.reason.value)
    """

    def __init__(
        self,
        config: Optional[SignalConfig] = None,
        discovery_source: Optional[TokenDiscoverySource] = None,
        history_source: Optional[TokenHistorySource] = None,
    ) -> None:
        self.config = config or get_config()
        self.config.validate()

        self.generator = TokenSignalGenerator(self.config)

        self._discovery_source = discovery_source
        self._history_source = history_source
        self._default_source: Optional[ObjktGraphQLSource] = None

        # Statistics
        self._stats = {
            "batches": 0,
            "candidates": 0,
            "accepted": 0,
            "skipped": 0,
            "discovery_failures": 0,
            **{f"skipped_{reason.value}": 0 for reason in SkipReason},
        }

    @property
    def discovery_source(self) -> TokenDiscoverySource:
        if self._discovery_source is None:
            self._discovery_source = self._get_default_source()
        return self._discovery_source

    @property
    def history_source(self) -> TokenHistorySource:
        if self._history_source is None:
            self._history_source = self._get_default_source()
        return self._history_source

    def _get_default_source(self) -> ObjktGraphQLSource:
        if self._default_source is None:
            self._default_source = ObjktGraphQLSource(self.config)
        return self._default_source

    # ─────────────────────────────────────────────────────────────
    # Public API
    # ─────────────────────────────────────────────────────────────

    async def get_available_token_signals(self, limit: Optional[int] = None) -> SignalBatch:
        """
        Discover candidates and compute their signals.

        Args:
            limit: Max candidates to discover (default: config.discovery_limit)

        Returns:
            SignalBatch; empty with an error entry if discovery fails
        """
        if limit is None:
            limit = self.config.discovery_limit

        try:
            token_ids = await asyncio.wait_for(
                self.discovery_source.discover_candidate_tokens(limit),
                timeout=self.config.fetch_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.error(
                f"Candidate discovery timed out after {self.config.fetch_timeout_seconds}s"
            )
            return self._failed_discovery("discovery: timed out")
        except UpstreamFetchError as e:
            logger.error(f"Candidate discovery failed: {e.message}")
            return self._failed_discovery(f"discovery: {e.message}")
        except Exception as e:
            logger.error(f"Unexpected candidate discovery error: {e!r}")
            return self._failed_discovery(f"discovery: {e!r}")

        logger.info(f"Discovered {len(token_ids)} candidate tokens")
        return await self.compute_signals(token_ids)

    async def compute_signals(
        self,
        token_ids: Sequence[str],
        history_source: Optional[TokenHistorySource] = None,
    ) -> SignalBatch:
        """
        Compute signals for the given candidates.

        Output order equals input order restricted to accepted tokens,
        whatever order the fetches complete in. Duplicate ids are
        processed once, at their first position.
        """
        history_source = history_source or self.history_source
        batch = SignalBatch()

        unique_ids = list(dict.fromkeys(str(t) for t in token_ids))
        batch.candidates = len(unique_ids)

        # Limit concurrent fetches
        semaphore = asyncio.Semaphore(self.config.concurrency_limit)

        async def process(index: int, token_id: str) -> _TokenResult:
            async with semaphore:
                fetched = await self._fetch_history(history_source, token_id)
            if isinstance(fetched, SkippedToken):
                return index, None, fetched
            return (index, *self._generate(token_id, fetched))

        results = await asyncio.gather(
            *(process(i, t) for i, t in enumerate(unique_ids))
        )

        for _, signal, skipped in sorted(results, key=lambda r: r[0]):
            if signal is not None:
                batch.signals.append(signal)
            elif skipped is not None:
                batch.skipped.append(skipped)

        batch.finished_at = datetime.now(timezone.utc)
        self._record_batch(batch)

        logger.info(
            f"Signal batch: {batch.accepted_count}/{batch.candidates} accepted, "
            f"skipped {batch.skip_summary}"
        )
        return batch

    def get_stats(self) -> dict[str, Any]:
        """Get pipeline statistics."""
        return {
            **self._stats,
            "generator_stats": self.generator.get_stats(),
        }

    async def close(self) -> None:
        """Cleanup resources."""
        if self._default_source is not None:
            await self._default_source.close()
            self._default_source = None

    # ─────────────────────────────────────────────────────────────
    # Internal methods
    # ─────────────────────────────────────────────────────────────

    async def _fetch_history(
        self,
        history_source: TokenHistorySource,
        token_id: str,
    ) -> Union[list[TokenEvent], SkippedToken]:
        """Fetch one history under the per-fetch deadline."""
        try:
            return await asyncio.wait_for(
                history_source.fetch_token_history(token_id),
                timeout=self.config.fetch_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"[{token_id}] History fetch timed out after "
                f"{self.config.fetch_timeout_seconds}s"
            )
            return SkippedToken(token_id, SkipReason.FETCH_TIMEOUT, "history fetch timed out")
        except TokenSkipped as e:
            logger.warning(f"[{token_id}] Unparseable history: {e.message}")
            return SkippedToken(token_id, e.reason, e.message)
        except UpstreamFetchError as e:
            logger.warning(f"[{token_id}] History fetch failed: {e.message}")
            return SkippedToken(token_id, SkipReason.FETCH_FAILED, e.message)
        except Exception as e:
            logger.error(f"[{token_id}] Unexpected history fetch error: {e}")
            return SkippedToken(token_id, SkipReason.FETCH_FAILED, str(e))

    def _generate(
        self,
        token_id: str,
        events: list[TokenEvent],
    ) -> tuple[Optional[TokenSignal], Optional[SkippedToken]]:
        try:
            return self.generator.generate(token_id, events), None
        except (ArtistNotFoundError, MalformedRecordError) as e:
            logger.warning(f"[{token_id}] Insufficient provenance: {e.message}")
            return None, SkippedToken(token_id, e.reason, e.message)
        except TokenSkipped as e:
            logger.debug(f"[{token_id}] Filtered ({e.reason.value}): {e.message}")
            return None, SkippedToken(token_id, e.reason, e.message)
        except Exception as e:
            logger.error(f"[{token_id}] Signal computation failed: {e}")
            return None, SkippedToken(token_id, SkipReason.MALFORMED_RECORD, str(e))

    def _failed_discovery(self, error: str) -> SignalBatch:
        self._stats["discovery_failures"] += 1
        batch = SignalBatch(errors=[error])
        batch.finished_at = datetime.now(timezone.utc)
        return batch

    def _record_batch(self, batch: SignalBatch) -> None:
        self._stats["batches"] += 1
        self._stats["candidates"] += batch.candidates
        self._stats["accepted"] += batch.accepted_count
        self._stats["skipped"] += len(batch.skipped)
        for entry in batch.skipped:
            self._stats[f"skipped_{entry.reason.value}"] += 1


# Singleton instance
_default_pipeline: Optional[SignalPipeline] = None


def get_pipeline() -> SignalPipeline:
    """Get the default signal pipeline."""
    global _default_pipeline
    if _default_pipeline is None:
        _default_pipeline = SignalPipeline()
    return _default_pipeline


async def get_available_token_signals(limit: Optional[int] = None) -> SignalBatch:
    """Convenience function running the default pipeline once."""
    pipeline = get_pipeline()
    return await pipeline.get_available_token_signals(limit)


async def close_pipeline() -> None:
    """Close the default pipeline if one was created."""
    global _default_pipeline
    if _default_pipeline is not None:
        await _default_pipeline.close()
        _default_pipeline = None
