"""In-memory token source for replaying captured histories."""

from typing import Any, Iterable, Optional, Union

from ..exceptions import UpstreamFetchError
from ..models import TokenEvent
from .base import TokenDiscoverySource, TokenHistorySource


class InMemoryTokenSource(TokenDiscoverySource, TokenHistorySource):
    """
    Dict-backed discovery and history source.

    Histories may hold TokenEvent objects or raw rows; raw rows are
    parsed with TokenEvent.from_dict on fetch.
    """

    def __init__(
        self,
        histories: Optional[dict[str, Iterable[Union[TokenEvent, dict[str, Any]]]]] = None,
        ranking: Optional[list[str]] = None,
    ) -> None:
        self._histories = {k: list(v) for k, v in (histories or {}).items()}
        self._ranking = list(ranking) if ranking is not None else list(self._histories)

    @property
    def name(self) -> str:
        return "memory"

    def add_history(
        self,
        token_id: str,
        events: Iterable[Union[TokenEvent, dict[str, Any]]],
    ) -> None:
        self._histories[token_id] = list(events)
        if token_id not in self._ranking:
            self._ranking.append(token_id)

    async def discover_candidate_tokens(self, limit: int) -> list[str]:
        return self._ranking[:limit]

    async def fetch_token_history(self, token_id: str) -> list[TokenEvent]:
        if token_id not in self._histories:
            raise UpstreamFetchError(
                f"No history for token {token_id}",
                token_id=token_id,
                source_name=self.name,
            )
        return [
            e if isinstance(e, TokenEvent) else TokenEvent.from_dict(e)
            for e in self._histories[token_id]
        ]
