"""
test_anthropic.py - Claude Provider 테스트

Claude는 픽셀 출력이 없으므로 결과는 항상 텍스트 전용.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import anthropic
import httpx
import pytest

from src.app.providers.anthropic import ClaudeColorizeProvider, map_anthropic_error
from src.app.providers.base import ProviderError
from src.core.encoding import encode_image
from src.domain.errors import ErrorCodes

# =============================================================================
# Fixtures
# =============================================================================


def status_error(error_class, status: int, message: str = "error"):
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    response = httpx.Response(status, request=request)
    return error_class(message, response=response, body=None)


@pytest.fixture
def provider():
    provider = ClaudeColorizeProvider(api_key="sk-ant-test", model="claude-test")
    provider._client = MagicMock()
    provider._client.messages.create = AsyncMock(return_value=SimpleNamespace(
        id="msg_123",
        model="claude-test-20250101",
        content=[
            SimpleNamespace(type="text", text="The sky should be "),
            SimpleNamespace(type="text", text="a soft blue."),
        ],
    ))
    return provider


# =============================================================================
# Tests
# =============================================================================


class TestClaudeColorizeProvider:
    """요청 형식과 응답 파싱."""

    def test_text_only_model(self):
        assert ClaudeColorizeProvider.supports_image_output is False

    def test_client_lazy_init(self):
        provider = ClaudeColorizeProvider(api_key="sk-ant-test")

        assert provider._client is None
        client = provider._get_client()

        assert isinstance(client, anthropic.AsyncAnthropic)
        assert provider._get_client() is client

    @pytest.mark.asyncio
    async def test_request_shape(self, provider):
        await provider.colorize(b"PIXELS", "image/jpg", "SYSTEM", "Please colorize")

        kwargs = provider._client.messages.create.call_args.kwargs
        assert kwargs["model"] == "claude-test"
        assert kwargs["system"] == "SYSTEM"
        assert kwargs["max_tokens"] == 4096
        assert kwargs["temperature"] == 0.7
        image_block, text_block = kwargs["messages"][0]["content"]
        assert image_block["source"] == {
            "type": "base64",
            "media_type": "image/jpeg",
            "data": encode_image(b"PIXELS"),
        }
        assert text_block == {"type": "text", "text": "Please colorize"}

    @pytest.mark.asyncio
    async def test_text_response(self, provider):
        output = await provider.colorize(b"PIXELS", "image/png", "SYSTEM", "text")

        assert output.text == "The sky should be a soft blue."
        assert not output.has_image
        assert output.model_requested == "claude-test"
        assert output.model_used == "claude-test-20250101"
        assert output.request_id == "msg_123"


class TestErrorMapping:
    """anthropic SDK 예외 → 에러 코드."""

    @pytest.mark.parametrize("error_class,status,code", [
        (anthropic.AuthenticationError, 401, ErrorCodes.INVALID_API_KEY),
        (anthropic.PermissionDeniedError, 403, ErrorCodes.INVALID_API_KEY),
        (anthropic.RateLimitError, 429, ErrorCodes.RATE_LIMIT_EXCEEDED),
        (anthropic.NotFoundError, 404, ErrorCodes.MODEL_UNAVAILABLE),
        (anthropic.InternalServerError, 500, ErrorCodes.MODEL_UNAVAILABLE),
    ])
    def test_typed_errors(self, error_class, status, code):
        assert map_anthropic_error(status_error(error_class, status)) == code

    def test_credit_balance_message(self):
        error = status_error(
            anthropic.BadRequestError, 400, "Your credit balance is too low to access the API."
        )

        assert map_anthropic_error(error) == ErrorCodes.INSUFFICIENT_CREDITS

    @pytest.mark.asyncio
    async def test_api_error_raises_provider_error(self, provider):
        provider._client.messages.create.side_effect = status_error(
            anthropic.RateLimitError, 429, "rate_limit_error"
        )

        with pytest.raises(ProviderError) as exc_info:
            await provider.colorize(b"PIXELS", "image/png", "SYSTEM", "text")

        assert exc_info.value.code == ErrorCodes.RATE_LIMIT_EXCEEDED
        assert exc_info.value.message == "Rate limit exceeded. Please try again later."
