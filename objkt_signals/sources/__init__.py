"""Token discovery and history sources."""

from .base import TokenDiscoverySource, TokenHistorySource
from .memory import InMemoryTokenSource
from .objkt import ObjktGraphQLSource

__all__ = [
    "TokenDiscoverySource",
    "TokenHistorySource",
    "InMemoryTokenSource",
    "ObjktGraphQLSource",
]
