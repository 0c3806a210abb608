"""
Token Sources - Abstract collaborator interfaces for the pipeline.

The pipeline only knows these two contracts. How candidates are ranked
or histories are fetched (GraphQL, REST, cache) is up to the source.
"""

from abc import ABC, abstractmethod

from ..models import TokenEvent


class TokenDiscoverySource(ABC):
    """Supplies candidate token ids, most recently transacted first."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    async def discover_candidate_tokens(self, limit: int) -> list[str]:
        """
        Return up to `limit` token ids in ranked order.

        Raises:
            UpstreamFetchError: On any upstream failure.
        """
        pass


class TokenHistorySource(ABC):
    """Supplies the complete event history of one token."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    async def fetch_token_history(self, token_id: str) -> list[TokenEvent]:
        """
        Return every event of the token. Need not be sorted.

        Raises:
            UpstreamFetchError: On any upstream failure.
            MalformedRecordError: When a row cannot be parsed.
        """
        pass

    async def close(self) -> None:
        """Cleanup resources. Override if needed."""
        pass
