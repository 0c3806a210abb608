"""
Objkt GraphQL Source - data.objkt.com v3 integration.

Discovery ranks tokens by their most recent purchase. History returns
every non-reverted, timestamped event of one token.
"""

import asyncio
import logging
from typing import Any, Optional

import aiohttp

from ..config import SignalConfig, get_config
from ..exceptions import RateLimitError, UpstreamFetchError
from ..models import MarketplaceEventType, TokenEvent
from .base import TokenDiscoverySource, TokenHistorySource


logger = logging.getLogger(__name__)


DISCOVERY_QUERY = """
query GetTokens($limit: Int!, $order_by: [event_order_by!], $where: event_bool_exp!) {
  event(order_by: $order_by, limit: $limit, where: $where) {
    token_pk
  }
}
"""

HISTORY_QUERY = """
query GetTokenEvents($where: event_bool_exp!, $order_by: [event_order_by!]) {
  event(where: $where, order_by: $order_by) {
    id
    event_type
    marketplace_event_type
    creator_address
    creator {
      address
      alias
      twitter
      instagram
      tzdomain
    }
    recipient_address
    amount
    price
    timestamp
    fa_contract
    token {
      name
      token_id
      royalties {
        amount
        decimals
      }
    }
  }
}
"""


class ObjktGraphQLSource(TokenDiscoverySource, TokenHistorySource):
    """
    Objkt v3 GraphQL client.

    HTTP errors, GraphQL error payloads and unparseable bodies raise
    UpstreamFetchError; the pipeline turns those into per-token skips.
    """

    MAX_RETRIES = 2
    RETRY_BACKOFF_SECONDS = 1.0

    HEADERS = {
        "content-type": "application/json",
        "Accept-Encoding": "*",
    }

    def __init__(
        self,
        config: Optional[SignalConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.config = config or get_config()
        self.url = self.config.graphql_url
        self._session = session
        self._owns_session = session is None

        # Statistics
        self._stats = {
            "requests": 0,
            "errors": 0,
            "rate_limits_hit": 0,
        }

    @property
    def name(self) -> str:
        return "objkt"

    async def __aenter__(self) -> "ObjktGraphQLSource":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.config.request_timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
        return self._session

    # ─────────────────────────────────────────────────────────────
    # Public API
    # ─────────────────────────────────────────────────────────────

    async def discover_candidate_tokens(self, limit: int) -> list[str]:
        variables = {
            "limit": limit,
            "order_by": [{"id": "desc"}, {"timestamp": "desc"}],
            "where": {
                "marketplace_event_type": {"_eq": MarketplaceEventType.LIST_BUY.value},
            },
        }
        data = await self._query(DISCOVERY_QUERY, variables)

        token_ids: list[str] = []
        for row in data.get("event") or []:
            token_pk = row.get("token_pk")
            if token_pk is None:
                continue
            token_id = str(token_pk)
            if token_id not in token_ids:
                token_ids.append(token_id)
        return token_ids

    async def fetch_token_history(self, token_id: str) -> list[TokenEvent]:
        variables = {
            "where": {
                "timestamp": {"_is_null": False},
                "reverted": {"_neq": True},
                "token_pk": {"_eq": int(token_id) if token_id.isdigit() else token_id},
            },
            "order_by": [{"id": "asc"}, {"timestamp": "asc"}],
        }
        data = await self._query(HISTORY_QUERY, variables, token_id=token_id)

        # Rows carry the per-contract token.token_id; tag them with the pk instead
        return [
            TokenEvent.from_dict({**row, "token_id": token_id})
            for row in data.get("event") or []
        ]

    def get_stats(self) -> dict[str, Any]:
        return {**self._stats, "url": self.url}

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    # ─────────────────────────────────────────────────────────────
    # Internal methods
    # ─────────────────────────────────────────────────────────────

    async def _query(
        self,
        query: str,
        variables: dict[str, Any],
        token_id: Optional[str] = None,
    ) -> dict[str, Any]:
        """Run a GraphQL query with retry on transient failures."""
        attempt = 0
        while True:
            try:
                return await self._post_graphql(query, variables, token_id)
            except RateLimitError:
                self._stats["rate_limits_hit"] += 1
                raise
            except UpstreamFetchError as e:
                self._stats["errors"] += 1
                logger.warning(
                    f"[{self.name}] Query failed (attempt {attempt + 1}): {e.message}"
                )
                # Retry only server-side and transport failures
                if e.status_code is not None and e.status_code < 500:
                    raise
                if attempt >= self.MAX_RETRIES:
                    raise
            attempt += 1
            await asyncio.sleep(self.RETRY_BACKOFF_SECONDS * attempt)

    async def _post_graphql(
        self,
        query: str,
        variables: dict[str, Any],
        token_id: Optional[str] = None,
    ) -> dict[str, Any]:
        session = await self._get_session()
        self._stats["requests"] += 1

        try:
            async with session.post(
                self.url,
                json={"query": query, "variables": variables},
                headers=self.HEADERS,
            ) as response:
                if response.status == 429:
                    retry_after = response.headers.get("Retry-After")
                    raise RateLimitError(
                        "objkt rate limit exceeded",
                        token_id=token_id,
                        source_name=self.name,
                        retry_after_seconds=int(retry_after) if retry_after and retry_after.isdigit() else None,
                    )

                if response.status != 200:
                    body = await response.text()
                    raise UpstreamFetchError(
                        f"objkt returned HTTP {response.status}",
                        token_id=token_id,
                        source_name=self.name,
                        status_code=response.status,
                        details={"body": body[:500]},
                    )

                try:
                    payload = await response.json(content_type=None)
                except ValueError as e:
                    raise UpstreamFetchError(
                        f"objkt returned invalid JSON: {e}",
                        token_id=token_id,
                        source_name=self.name,
                        status_code=response.status,
                    )

        except aiohttp.ClientError as e:
            raise UpstreamFetchError(
                f"objkt request failed: {e}",
                token_id=token_id,
                source_name=self.name,
            )
        except asyncio.TimeoutError:
            raise UpstreamFetchError(
                f"objkt request timed out after {self.config.request_timeout_seconds}s",
                token_id=token_id,
                source_name=self.name,
            )

        if not isinstance(payload, dict):
            raise UpstreamFetchError(
                "objkt returned a non-object payload",
                token_id=token_id,
                source_name=self.name,
                status_code=200,
            )

        if payload.get("errors"):
            logger.warning(f"[{self.name}] GraphQL errors: {payload['errors']}")
            raise UpstreamFetchError(
                "objkt GraphQL query returned errors",
                token_id=token_id,
                source_name=self.name,
                status_code=200,
                details={"errors": payload["errors"]},
            )

        return payload.get("data") or {}
