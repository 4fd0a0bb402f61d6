"""Shared request data types."""

from collections.abc import AsyncIterator
from dataclasses import dataclass

from core.router import MatchResult

HeaderPairs = tuple[tuple[str, str], ...]


@dataclass(frozen=True)
class ProxyRequest:
    """Prepared data for an upstream request."""

    method: str
    target_url: str
    headers: HeaderPairs
    body: AsyncIterator[bytes] | None
    match: MatchResult

    @property
    def prefix(self) -> str:
        return self.match.matched_prefix
