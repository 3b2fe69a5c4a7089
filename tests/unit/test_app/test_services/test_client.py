"""
test_client.py - RelayClient 테스트

httpx.MockTransport로 Relay 응답을 흉내냄 (네트워크 없음).
"""

import httpx
import pytest

from src.app.services.client import RelayClient
from src.domain.errors import ErrorCodes
from src.domain.schemas import ColorizeFailure, ColorizeSuccess, UploadedImage


def make_image(data: bytes = b"\x89PNG fake") -> UploadedImage:
    return UploadedImage(data=data, name="page.png", size=len(data), mime_type="image/png")


def client_with(handler) -> RelayClient:
    return RelayClient(transport=httpx.MockTransport(handler))


class TestRequest:
    """전송 형식."""

    @pytest.mark.asyncio
    async def test_posts_multipart_field(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["method"] = request.method
            seen["body"] = request.read()
            return httpx.Response(200, json={
                "success": True,
                "data": {"colorizedImageBase64": "aGk=", "processingTime": 10},
            })

        result = await client_with(handler).colorize(make_image(b"PIXELS"))

        assert isinstance(result, ColorizeSuccess)
        assert seen["method"] == "POST"
        assert seen["path"] == "/api/colorize-manga"
        assert b'name="mangaImage"' in seen["body"]
        assert b'filename="page.png"' in seen["body"]
        assert b"PIXELS" in seen["body"]

    def test_from_config_remote_url(self):
        client = RelayClient.from_config(None, {"ui": {"relay_url": "https://relay.example/", "relay_timeout": 12}})

        assert client.base_url == "https://relay.example"
        assert client.timeout == 12.0
        assert client.transport is None


class TestResponses:
    """응답 정규화."""

    @pytest.mark.asyncio
    async def test_success_without_image_downgraded(self):
        def handler(request):
            return httpx.Response(200, json={
                "success": True,
                "data": {"colorizedImageUrl": "", "colorizedImageBase64": "", "processingTime": 10},
            })

        result = await client_with(handler).colorize(make_image())

        assert isinstance(result, ColorizeFailure)
        assert result.code == ErrorCodes.MISSING_IMAGE_DATA

    @pytest.mark.asyncio
    async def test_error_envelope_passthrough(self):
        def handler(request):
            return httpx.Response(429, json={
                "success": False,
                "error": {
                    "message": "Rate limit exceeded. Please try again later.",
                    "code": "RATE_LIMIT_EXCEEDED",
                    "status": 429,
                },
            })

        result = await client_with(handler).colorize(make_image())

        assert result.code == ErrorCodes.RATE_LIMIT_EXCEEDED
        assert result.http_status == 429
        assert result.message == "Rate limit exceeded. Please try again later."

    @pytest.mark.asyncio
    async def test_non_json_error_body(self):
        def handler(request):
            return httpx.Response(502, text="<html>Bad Gateway</html>")

        result = await client_with(handler).colorize(make_image())

        assert result.code == ErrorCodes.PROCESSING_ERROR
        assert result.message == "HTTP 502: Bad Gateway"
        assert result.http_status == 502

    @pytest.mark.asyncio
    async def test_malformed_2xx_body(self):
        def handler(request):
            return httpx.Response(200, text="ok")

        result = await client_with(handler).colorize(make_image())

        assert result.code == ErrorCodes.INVALID_RESPONSE


class TestTransportErrors:
    """Relay 도달 실패."""

    @pytest.mark.asyncio
    async def test_connect_error(self):
        def handler(request):
            raise httpx.ConnectError("All connection attempts failed", request=request)

        result = await client_with(handler).colorize(make_image())

        assert result.code == ErrorCodes.PROCESSING_ERROR
        assert result.message == "All connection attempts failed"
        assert result.http_status == 500

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("read timed out", request=request)

        result = await client_with(handler).colorize(make_image())

        assert result.code == ErrorCodes.PROCESSING_ERROR
        assert "timed out" in result.message
