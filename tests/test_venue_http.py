"""Tests for the venue HTTP transport."""

import httpx
import pytest

from swapintent.errors import (
    MalformedResponse,
    NetworkUnavailable,
    RequestConstructionError,
    VenueRejection,
)
from swapintent.venue.http import VenueHttpClient


def client_for(handler, base_url="https://api.test") -> VenueHttpClient:
    return VenueHttpClient(base_url, "secret-key", transport=httpx.MockTransport(handler))


class TestRequests:
    """Tests for request construction."""

    @pytest.mark.asyncio
    async def test_bearer_header_and_params(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers["Authorization"]
            seen["url"] = str(request.url)
            return httpx.Response(200, json={"ok": True})

        data = await client_for(handler).get("/quote", params={"amount": "100"})

        assert data == {"ok": True}
        assert seen["auth"] == "Bearer secret-key"
        assert seen["url"] == "https://api.test/quote?amount=100"

    @pytest.mark.asyncio
    async def test_post_json_body(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = request.content
            seen["method"] = request.method
            return httpx.Response(201, json={"orderHash": "0x1"})

        data = await client_for(handler).post("/submit", json={"signature": "0xabc"})

        assert data == {"orderHash": "0x1"}
        assert seen["method"] == "POST"
        assert b'"signature"' in seen["body"]

    @pytest.mark.asyncio
    async def test_empty_body_is_empty_dict(self):
        data = await client_for(lambda request: httpx.Response(201)).post("/submit/secret", json={})
        assert data == {}

    @pytest.mark.asyncio
    async def test_trailing_slash_base_url(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            return httpx.Response(200, json={})

        await client_for(handler, base_url="https://api.test/").get("/x")
        assert seen["path"] == "/x"


class TestErrorMapping:
    """Tests for the three failure kinds plus malformed payloads."""

    @pytest.mark.asyncio
    async def test_non_2xx_is_rejection(self):
        def handler(request):
            return httpx.Response(400, json={"description": "bad amount"})

        with pytest.raises(VenueRejection) as exc_info:
            await client_for(handler).get("/quote")

        error = exc_info.value
        assert error.status_code == 400
        assert error.body == {"description": "bad amount"}
        assert error.url == "https://api.test/quote"

    @pytest.mark.asyncio
    async def test_rejection_with_text_body(self):
        with pytest.raises(VenueRejection) as exc_info:
            await client_for(lambda request: httpx.Response(502, text="Bad Gateway")).get("/x")

        assert exc_info.value.body == "Bad Gateway"

    @pytest.mark.asyncio
    async def test_transport_error_is_network_unavailable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(NetworkUnavailable) as exc_info:
            await client_for(handler).get("/status")

        assert "connection refused" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_timeout_is_network_unavailable(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(NetworkUnavailable):
            await client_for(handler).get("/status")

    @pytest.mark.asyncio
    async def test_unserializable_body_is_construction_error(self):
        def handler(request):
            raise AssertionError("request must not be sent")

        with pytest.raises(RequestConstructionError):
            await client_for(handler).post("/submit", json={"value": object()})

    @pytest.mark.asyncio
    async def test_unsupported_scheme_is_construction_error(self):
        client = VenueHttpClient("ftp://api.test", "key")

        with pytest.raises(RequestConstructionError):
            await client.get("/quote")

    @pytest.mark.asyncio
    async def test_bad_json_is_malformed(self):
        with pytest.raises(MalformedResponse):
            await client_for(lambda request: httpx.Response(200, text="<html>")).get("/x")

    @pytest.mark.asyncio
    async def test_bad_content_encoding_is_malformed(self):
        def handler(request):
            return httpx.Response(200, headers={"Content-Encoding": "gzip"}, stream=httpx.ByteStream(b"not gzip"))

        with pytest.raises(MalformedResponse):
            await client_for(handler).get("/status")

    @pytest.mark.asyncio
    async def test_redirect_loop_is_network_unavailable(self):
        def handler(request):
            raise httpx.TooManyRedirects("Exceeded maximum allowed redirects.", request=request)

        with pytest.raises(NetworkUnavailable) as exc_info:
            await client_for(handler).get("/status")

        assert "redirects" in str(exc_info.value)
