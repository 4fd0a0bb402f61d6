"""Prefix route table and longest-prefix matching."""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass

import httpx

from core.exceptions import ConfigurationError


@dataclass(frozen=True)
class RouteEntry:
    """A path prefix and the upstream it forwards to."""

    prefix: str
    upstream_base_url: str


@dataclass(frozen=True)
class MatchResult:
    """Routing decision for a request."""

    matched_prefix: str
    upstream_base_url: str


class RouteTable:
    """Immutable, longest-prefix-first sequence of route entries."""

    def __init__(self, entries: list[RouteEntry]):
        self._entries = tuple(sorted(entries, key=lambda e: len(e.prefix), reverse=True))

    def __iter__(self) -> Iterator[RouteEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def match(self, path: str) -> MatchResult | None:
        """Return the most specific entry matching ``path``, if any."""
        for entry in self._entries:
            if path == entry.prefix or path.startswith(entry.prefix + "/"):
                return MatchResult(entry.prefix, entry.upstream_base_url)
        return None


def build_route_table(hosts: Mapping[str, str]) -> RouteTable:
    """Build the route table from a ``key -> hostname`` mapping.

    Raises:
        ConfigurationError: If the mapping is empty or any entry is malformed.
    """
    if not hosts:
        raise ConfigurationError("No upstream hosts configured")

    return RouteTable([
        RouteEntry(_prefix_for(key), _base_url_for(key, hostname))
        for key, hostname in hosts.items()
    ])


def _prefix_for(key: str) -> str:
    # Nested keys ("api/v2") are allowed, empty segments are not
    if not isinstance(key, str) or not all(key.split("/")) or any(c in "?#" or c.isspace() for c in key):
        raise ConfigurationError(f"Invalid route key {key!r}")
    return f"/{key}"


def _base_url_for(key: str, hostname: str) -> str:
    if not isinstance(hostname, str) or not hostname.strip():
        raise ConfigurationError(f"Empty upstream host for {key!r}")
    hostname = hostname.strip().rstrip("/")
    if any(c in "/?#@" or c.isspace() for c in hostname):
        raise ConfigurationError(f"Malformed upstream host for {key!r}: {hostname!r}")

    try:
        url = httpx.URL(f"https://{hostname}")
    except httpx.InvalidURL as e:
        raise ConfigurationError(f"Malformed upstream host for {key!r}: {e}") from e
    if not url.host:
        raise ConfigurationError(f"Malformed upstream host for {key!r}: {hostname!r}")

    return f"https://{hostname}"
