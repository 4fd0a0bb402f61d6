"""Header construction for upstream requests and client responses.

Header sets are built as immutable tuples of ``(name, value)`` pairs before
any request or response object is created from them.
"""

from collections.abc import Iterable

from core.request_types import HeaderPairs

ALLOW_METHODS = "GET, POST, PUT, DELETE, PATCH, OPTIONS"
ALLOW_HEADERS = "Content-Type, Authorization, X-Requested-With, Accept, Origin, Range"
PREFLIGHT_MAX_AGE = "86400"

CORS_HEADERS: HeaderPairs = (
    ("access-control-allow-origin", "*"),
    ("access-control-allow-methods", ALLOW_METHODS),
    ("access-control-allow-headers", ALLOW_HEADERS),
)
PREFLIGHT_HEADERS: HeaderPairs = CORS_HEADERS + (("access-control-max-age", PREFLIGHT_MAX_AGE),)

# Connection-scoped headers, never forwarded in either direction
HOP_BY_HOP = frozenset({
    "connection",
    "keep-alive",
    "proxy-connection",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailer",
    "upgrade",
})
FORWARDED_OVERRIDES = frozenset({
    "host",
    "x-forwarded-for",
    "x-forwarded-host",
    "x-forwarded-proto",
})
# Message framing is redone by httpx upstream and by the ASGI server downstream
FRAMING = frozenset({"transfer-encoding"})
# Upstream-origin policies that would block cross-origin use through the proxy
STRIPPED_SECURITY = frozenset({"content-security-policy", "x-frame-options"})


class HeaderBuilder:
    """Build header sets for the forwarded request and the client response."""

    def build_upstream_headers(
        self,
        inbound: Iterable[tuple[str, str]],
        *,
        upstream_host: str,
        client_ip: str,
        forwarded_host: str,
        forwarded_proto: str,
    ) -> HeaderPairs:
        """Copy inbound headers, replacing Host and the X-Forwarded-* set."""
        inbound = list(inbound)
        hop_by_hop = HOP_BY_HOP | connection_tokens(inbound)
        copied = [
            (key, value)
            for key, value in inbound
            if key.lower() not in hop_by_hop
            and key.lower() not in FRAMING
            and key.lower() not in FORWARDED_OVERRIDES
        ]
        return (
            ("host", upstream_host),
            *copied,
            ("x-forwarded-for", client_ip),
            ("x-forwarded-host", forwarded_host),
            ("x-forwarded-proto", forwarded_proto.rstrip(":")),
        )

    def build_client_headers(
        self,
        upstream: Iterable[tuple[str, str]],
        location: str | None = None,
    ) -> HeaderPairs:
        """Copy upstream response headers, adding CORS and dropping unsafe ones.

        When ``location`` is given it replaces any upstream Location header.
        """
        upstream = list(upstream)
        hop_by_hop = HOP_BY_HOP | connection_tokens(upstream)
        overridden = {name for name, _ in CORS_HEADERS}
        if location is not None:
            overridden.add("location")

        copied = [
            (key.lower(), value)
            for key, value in upstream
            if key.lower() not in overridden
            and key.lower() not in hop_by_hop
            and key.lower() not in FRAMING
            and key.lower() not in STRIPPED_SECURITY
        ]
        if location is not None:
            copied.append(("location", location))
        return (*copied, *CORS_HEADERS)

    def build_preflight_headers(self) -> HeaderPairs:
        return PREFLIGHT_HEADERS


def connection_tokens(headers: Iterable[tuple[str, str]]) -> frozenset[str]:
    """Header names listed in Connection, which are hop-by-hop as well."""
    return frozenset(
        token.strip().lower()
        for key, value in headers
        if key.lower() == "connection"
        for token in value.split(",")
        if token.strip()
    )


def decode_headers(raw: Iterable[tuple[bytes, bytes]]) -> HeaderPairs:
    """Decode raw header bytes losslessly."""
    return tuple((key.decode("latin-1"), value.decode("latin-1")) for key, value in raw)


def encode_headers(headers: HeaderPairs) -> list[tuple[bytes, bytes]]:
    """Encode header pairs for ASGI (lowercase names) or httpx."""
    return [(key.lower().encode("latin-1"), value.encode("latin-1")) for key, value in headers]
