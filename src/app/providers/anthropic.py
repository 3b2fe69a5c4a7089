"""
Anthropic (Claude) Provider.

Claude는 이미지 입력만 받고 픽셀 출력은 없음 → supports_image_output=False.
결과는 항상 텍스트 설명만 담김 (이미지를 합성하지 않음).

예외 매핑 (anthropic SDK 예외 타입 기반):
- AuthenticationError, PermissionDeniedError → INVALID_API_KEY
- RateLimitError → RATE_LIMIT_EXCEEDED
- NotFoundError, InternalServerError → MODEL_UNAVAILABLE
- 그 외 (예: 400 "credit balance is too low") → 메시지 부분일치
"""

import logging
from typing import Any

import anthropic

from src.core.encoding import encode_image
from src.domain.errors import ErrorCodes

from .base import (
    ColorizationOutput,
    ColorizeProvider,
    LLMCallParams,
    build_provider_error,
    classify_error_message,
    compute_hash,
    normalize_mime_type,
)

logger = logging.getLogger(__name__)

EXCEPTION_TO_CODE: tuple[tuple[type[Exception], str], ...] = (
    (anthropic.AuthenticationError, ErrorCodes.INVALID_API_KEY),
    (anthropic.PermissionDeniedError, ErrorCodes.INVALID_API_KEY),
    (anthropic.RateLimitError, ErrorCodes.RATE_LIMIT_EXCEEDED),
    (anthropic.NotFoundError, ErrorCodes.MODEL_UNAVAILABLE),
    (anthropic.InternalServerError, ErrorCodes.MODEL_UNAVAILABLE),
)


def map_anthropic_error(error: Exception) -> str:
    """예외 타입 → 에러 코드. 매핑 없으면 메시지 부분일치."""
    for exc_type, code in EXCEPTION_TO_CODE:
        if isinstance(error, exc_type):
            return code
    return classify_error_message(str(error))


class ClaudeColorizeProvider(ColorizeProvider):
    """
    Claude API Provider.

    Usage:
        provider = ClaudeColorizeProvider(api_key="sk-ant-...")
        output = await provider.colorize(image_bytes, "image/png", prompt, text)
    """

    name = "anthropic"
    label = "Anthropic"
    supports_image_output = False

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-20250514",
        max_tokens: int = 4096,
        temperature: float = 0.7,
        timeout: float = 60.0,
    ):
        """
        Args:
            api_key: Anthropic API 키 (Relay가 주입)
            model: 모델 ID (config에서 주입)
            max_tokens: 출력 토큰 상한
            temperature: 샘플링 온도
            timeout: 전송 타임아웃(초)
        """
        self.api_key = api_key
        self.model = model
        self.params = LLMCallParams(max_tokens=max_tokens, temperature=temperature)
        self.timeout = timeout
        self._client: Any = None

    def _get_client(self) -> Any:
        """Anthropic 클라이언트 (lazy init). SDK 자체 재시도는 끔."""
        if self._client is None:
            self._client = anthropic.AsyncAnthropic(
                api_key=self.api_key,
                max_retries=0,
                timeout=self.timeout,
            )
        return self._client

    async def colorize(
        self,
        image_bytes: bytes,
        mime_type: str,
        system_prompt: str,
        user_text: str,
    ) -> ColorizationOutput:
        try:
            client = self._get_client()
            response = await client.messages.create(
                model=self.model,
                system=system_prompt,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {
                                "type": "image",
                                "source": {
                                    "type": "base64",
                                    "media_type": normalize_mime_type(mime_type),
                                    "data": encode_image(image_bytes),
                                },
                            },
                            {"type": "text", "text": user_text},
                        ],
                    }
                ],
                **self.params.to_dict(),
            )
        except anthropic.APIError as e:
            code = map_anthropic_error(e)
            logger.error(f"Anthropic API error ({code}): {e}", exc_info=True)
            raise build_provider_error(code, self.label, e) from e

        text = "".join(
            block.text
            for block in response.content
            if getattr(block, "type", None) == "text"
        )

        return ColorizationOutput(
            text=text,
            provider=self.name,
            model_requested=self.model,
            model_used=getattr(response, "model", None) or self.model,
            model_params=self.params.to_dict(),
            request_id=getattr(response, "id", None),
            prompt_hash=compute_hash(system_prompt),
        )
