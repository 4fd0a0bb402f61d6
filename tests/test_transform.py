import pytest

from conftest import RecordingLogger, upstream_response
from core.headers import HeaderBuilder
from core.request_types import ProxyRequest
from core.router import MatchResult
from core.transform import ResponseTransformer, text_response

PROXY_ORIGIN = "https://proxy.example.org"
TARGET = "https://d1.api.example.com/start?x=1"


def _transformer(logger=None):
    return ResponseTransformer(HeaderBuilder(), logger or RecordingLogger())


def _proxy_request(target_url=TARGET, prefix="/d1"):
    match = MatchResult(prefix, "https://d1.api.example.com")
    return ProxyRequest("GET", target_url, (), None, match)


async def _read(response) -> bytes:
    return b"".join([chunk async for chunk in response.body_iterator])


@pytest.mark.parametrize(
    ("location", "expected"),
    [
        ("https://d1.api.example.com/new/path", "https://proxy.example.org/d1/new/path"),
        ("https://d1.api.example.com/new?a=1&b=2", "https://proxy.example.org/d1/new?a=1&b=2"),
        ("/login?next=%2Fhome", "https://proxy.example.org/d1/login?next=%2Fhome"),
        ("other", "https://proxy.example.org/d1/other"),
        ("https://d1.api.example.com:443/x", "https://proxy.example.org/d1/x"),
        ("https://d1.api.example.com", "https://proxy.example.org/d1/"),
        ("https://d1.api.example.com/x#frag", "https://proxy.example.org/d1/x"),
    ],
)
def test_same_origin_redirect_is_rewritten(location, expected):
    assert _transformer().rewrite_location(location, TARGET, PROXY_ORIGIN, "/d1") == expected


@pytest.mark.parametrize(
    "location",
    [
        "https://other.example.com/x",
        "http://d1.api.example.com/x",
        "https://d1.api.example.com:8443/x",
        "//cdn.example.com/asset",
    ],
)
def test_cross_origin_redirect_is_not_rewritten(location):
    assert _transformer().rewrite_location(location, TARGET, PROXY_ORIGIN, "/d1") is None


@pytest.mark.asyncio
async def test_transform_copies_status_headers_and_body():
    upstream = upstream_response(
        201,
        b'{"ok": true}',
        [
            ("content-type", "application/json"),
            ("content-security-policy", "default-src 'none'"),
            ("x-frame-options", "DENY"),
            ("set-cookie", "a=1"),
            ("set-cookie", "b=2"),
        ],
    )

    response = _transformer().transform(upstream, _proxy_request(), PROXY_ORIGIN)

    assert response.status_code == 201
    assert await _read(response) == b'{"ok": true}'
    assert upstream.is_closed
    headers = response.raw_headers
    assert (b"content-type", b"application/json") in headers
    assert (b"access-control-allow-origin", b"*") in headers
    assert [v for k, v in headers if k == b"set-cookie"] == [b"a=1", b"b=2"]
    assert not any(k in (b"content-security-policy", b"x-frame-options") for k, _ in headers)


@pytest.mark.asyncio
async def test_transform_rewrites_same_origin_redirect_and_logs_it():
    logger = RecordingLogger()
    upstream = upstream_response(302, headers={"location": "https://d1.api.example.com/new/path"})

    response = _transformer(logger).transform(upstream, _proxy_request(), PROXY_ORIGIN)

    assert (b"location", b"https://proxy.example.org/d1/new/path") in response.raw_headers
    assert logger.redirects == [
        ("/d1", "https://d1.api.example.com/new/path", "https://proxy.example.org/d1/new/path")
    ]
    await _read(response)


@pytest.mark.asyncio
async def test_transform_passes_external_redirect_through():
    logger = RecordingLogger()
    upstream = upstream_response(301, headers={"location": "https://other.example.com/x"})

    response = _transformer(logger).transform(upstream, _proxy_request(), PROXY_ORIGIN)

    assert [v for k, v in response.raw_headers if k == b"location"] == [b"https://other.example.com/x"]
    assert logger.redirects == [("/d1", "https://other.example.com/x", None)]
    await _read(response)


@pytest.mark.asyncio
async def test_location_outside_redirect_status_is_untouched():
    logger = RecordingLogger()
    upstream = upstream_response(201, headers={"location": "https://d1.api.example.com/created/1"})

    response = _transformer(logger).transform(upstream, _proxy_request(), PROXY_ORIGIN)

    assert (b"location", b"https://d1.api.example.com/created/1") in response.raw_headers
    assert logger.redirects == []
    await _read(response)


def test_preflight_response():
    response = _transformer().preflight()

    assert response.status_code == 204
    assert response.body == b""
    assert (b"access-control-max-age", b"86400") in response.raw_headers
    assert (b"access-control-allow-origin", b"*") in response.raw_headers


def test_text_response_sets_plain_text_content_type():
    response = text_response("hello", 404)

    assert response.status_code == 404
    assert response.body == b"hello"
    assert (b"content-type", b"text/plain;charset=UTF-8") in response.raw_headers
    assert (b"content-length", b"5") in response.raw_headers


@pytest.mark.asyncio
async def test_unparseable_redirect_location_passes_through():
    logger = RecordingLogger()
    upstream = upstream_response(302, headers={"location": "https://d1.api.example.com:abc/x"})

    response = _transformer(logger).transform(upstream, _proxy_request(), PROXY_ORIGIN)

    assert response.status_code == 302
    assert [v for k, v in response.raw_headers if k == b"location"] == [b"https://d1.api.example.com:abc/x"]
    assert logger.redirects == [("/d1", "https://d1.api.example.com:abc/x", None)]
    await _read(response)
