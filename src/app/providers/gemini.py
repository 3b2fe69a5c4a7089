"""
Google Gemini Provider.

예외 매핑 (google.api_core.exceptions 기반):
- Unauthenticated, PermissionDenied → INVALID_API_KEY
- ResourceExhausted → RATE_LIMIT_EXCEEDED (쿼터/레이트리밋)
- NotFound, ServiceUnavailable → MODEL_UNAVAILABLE
- InvalidArgument 및 기타 → 에러 메시지 부분일치
  (잘못된 키는 InvalidArgument "API key not valid"로 오기도 함)
"""

import logging
from typing import Any

import google.generativeai as genai
from google.api_core.exceptions import (
    GoogleAPIError,
    NotFound,
    PermissionDenied,
    ResourceExhausted,
    ServiceUnavailable,
    Unauthenticated,
)

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

# =============================================================================
# Exception Mapping
# =============================================================================

EXCEPTION_TO_CODE: tuple[tuple[type[Exception], str], ...] = (
    (Unauthenticated, ErrorCodes.INVALID_API_KEY),
    (PermissionDenied, ErrorCodes.INVALID_API_KEY),
    (ResourceExhausted, ErrorCodes.RATE_LIMIT_EXCEEDED),
    (NotFound, ErrorCodes.MODEL_UNAVAILABLE),
    (ServiceUnavailable, ErrorCodes.MODEL_UNAVAILABLE),
)


def map_google_error(error: Exception) -> str:
    """예외 타입 → 에러 코드. 매핑 없으면 메시지 부분일치."""
    for exc_type, code in EXCEPTION_TO_CODE:
        if isinstance(error, exc_type):
            return code
    return classify_error_message(str(error))


class GeminiColorizeProvider(ColorizeProvider):
    """
    Gemini Provider.

    Usage:
        provider = GeminiColorizeProvider(api_key="AI...", model="gemini-2.0-flash")
        output = await provider.colorize(image_bytes, "image/jpeg", prompt, text)
    """

    name = "gemini"
    label = "Google Gemini"
    # 이미지 생성 지원 모델은 inline_data 파트를 돌려줌
    supports_image_output = True

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        max_tokens: int = 4096,
        temperature: float = 0.7,
    ):
        """
        Args:
            api_key: Google API 키 (Relay가 주입)
            model: 모델 ID (config에서 주입)
            max_tokens: 출력 토큰 상한
            temperature: 샘플링 온도
        """
        self.api_key = api_key
        self.model = model
        self.params = LLMCallParams(max_tokens=max_tokens, temperature=temperature)
        self._client: Any = None

    def _get_client(self) -> Any:
        """Gemini 클라이언트 (lazy init)."""
        if self._client is None:
            genai.configure(api_key=self.api_key)
            self._client = genai
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
            model_instance = client.GenerativeModel(
                self.model,
                system_instruction=system_prompt,
                generation_config={
                    "max_output_tokens": self.params.max_tokens,
                    "temperature": self.params.temperature,
                },
            )

            image_part = {
                "mime_type": normalize_mime_type(mime_type),
                "data": image_bytes,
            }

            response = await model_instance.generate_content_async(
                [user_text, image_part]
            )

        except GoogleAPIError as e:
            code = map_google_error(e)
            logger.error(f"Gemini API error ({code}): {e}", exc_info=True)
            raise build_provider_error(code, self.label, e) from e

        except Exception as e:
            code = classify_error_message(str(e))
            logger.error(f"Gemini call failed with unexpected error: {e}", exc_info=True)
            raise build_provider_error(code, self.label, e) from e

        return self._parse_response(response, system_prompt)

    def _parse_response(self, response: Any, system_prompt: str) -> ColorizationOutput:
        """
        응답 파트 순회.

        text 파트는 이어붙이고, 첫 inline_data 이미지 파트만 사용.
        """
        texts: list[str] = []
        image_bytes: bytes | None = None
        image_mime: str | None = None

        candidates = getattr(response, "candidates", None) or []
        parts = candidates[0].content.parts if candidates else []

        for part in parts:
            text = getattr(part, "text", None)
            if isinstance(text, str) and text:
                texts.append(text)

            inline = getattr(part, "inline_data", None)
            data = getattr(inline, "data", None) if inline is not None else None
            if image_bytes is None and isinstance(data, bytes) and data:
                image_bytes = data
                image_mime = getattr(inline, "mime_type", None) or "image/png"

        return ColorizationOutput(
            text="".join(texts),
            image_bytes=image_bytes,
            image_mime_type=image_mime,
            provider=self.name,
            model_requested=self.model,
            model_used=self.model,
            model_params=self.params.to_dict(),
            prompt_hash=compute_hash(system_prompt),
        )
