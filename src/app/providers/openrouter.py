"""
OpenRouter Provider (OpenAI 호환 chat/completions).

에러 매핑 (HTTP status 우선):
- 401 → INVALID_API_KEY
- 402 → INSUFFICIENT_CREDITS
- 429 → RATE_LIMIT_EXCEEDED
- 502/503 → MODEL_UNAVAILABLE
- 그 외 → 에러 메시지 부분일치 (best-effort)
"""

import logging
from typing import Any

import httpx

from src.core.encoding import parse_data_url, to_data_url
from src.domain.errors import ErrorCodes

from .base import (
    ColorizationOutput,
    ColorizeProvider,
    LLMCallParams,
    ProviderError,
    build_provider_error,
    classify_error_message,
    compute_hash,
    normalize_mime_type,
)

logger = logging.getLogger(__name__)

STATUS_TO_CODE = {
    401: ErrorCodes.INVALID_API_KEY,
    402: ErrorCodes.INSUFFICIENT_CREDITS,
    429: ErrorCodes.RATE_LIMIT_EXCEEDED,
    502: ErrorCodes.MODEL_UNAVAILABLE,
    503: ErrorCodes.MODEL_UNAVAILABLE,
}


class OpenRouterProvider(ColorizeProvider):
    """
    OpenRouter Provider.

    Usage:
        provider = OpenRouterProvider(api_key="sk-or-...")
        output = await provider.colorize(image_bytes, "image/png", prompt, text)
    """

    name = "openrouter"
    label = "OpenRouter"
    # 이미지 출력 모델이면 message.images[]로 data URL이 돌아옴
    supports_image_output = True

    BASE_URL = "https://openrouter.ai/api/v1"

    def __init__(
        self,
        api_key: str,
        model: str = "google/gemini-2.0-flash-exp:free",
        max_tokens: int = 4096,
        temperature: float = 0.7,
        timeout: float = 60.0,
        base_url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Args:
            api_key: OpenRouter API 키 (Relay가 주입)
            model: 모델 ID (config에서 주입)
            max_tokens: 출력 토큰 상한
            temperature: 샘플링 온도
            timeout: 전송 타임아웃(초)
            base_url: API 베이스 URL (테스트/프록시용)
            http_client: 외부에서 주입한 httpx 클라이언트 (없으면 호출마다 생성)
        """
        self.api_key = api_key
        self.model = model
        self.params = LLMCallParams(max_tokens=max_tokens, temperature=temperature)
        self.timeout = timeout
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self._http_client = http_client

    async def colorize(
        self,
        image_bytes: bytes,
        mime_type: str,
        system_prompt: str,
        user_text: str,
    ) -> ColorizationOutput:
        payload = self._build_payload(image_bytes, mime_type, system_prompt, user_text)

        try:
            response = await self._post(payload)
        except httpx.TimeoutException as e:
            logger.error(f"OpenRouter request timed out: {e}")
            raise build_provider_error(
                ErrorCodes.COLORIZATION_FAILED, self.label, f"Request timed out: {e}"
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"OpenRouter transport error: {e}", exc_info=True)
            raise build_provider_error(
                classify_error_message(str(e)), self.label, e
            ) from e

        body = self._parse_body(response)

        if response.status_code >= 400:
            raise self._error_from_response(response.status_code, body, response.text)

        # 200이어도 본문에 error 객체가 올 수 있음
        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            error_status = body["error"].get("code")
            raise self._error_from_response(
                error_status if isinstance(error_status, int) else 500,
                body,
                response.text,
            )

        return self._parse_output(body, system_prompt)

    async def _post(self, payload: dict[str, Any]) -> httpx.Response:
        url = f"{self.base_url}/chat/completions"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        if self._http_client is not None:
            return await self._http_client.post(url, json=payload, headers=headers)

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(url, json=payload, headers=headers)

    def _build_payload(
        self,
        image_bytes: bytes,
        mime_type: str,
        system_prompt: str,
        user_text: str,
    ) -> dict[str, Any]:
        """시스템 지시문 + (텍스트, 이미지) 사용자 메시지."""
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": user_text},
                        {
                            "type": "image_url",
                            "image_url": {
                                "url": to_data_url(
                                    image_bytes, normalize_mime_type(mime_type)
                                ),
                            },
                        },
                    ],
                },
            ],
            **self.params.to_dict(),
        }

    def _parse_body(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return None

    def _error_from_response(
        self,
        status: int,
        body: Any,
        raw_text: str,
    ) -> ProviderError:
        """HTTP status → 코드. 매핑 없으면 에러 메시지 부분일치."""
        message = raw_text
        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            message = str(body["error"].get("message") or raw_text)

        code = STATUS_TO_CODE.get(status) or classify_error_message(message)
        logger.error(f"OpenRouter returned {status}: {message}")
        return build_provider_error(code, self.label, message, upstream_status=status)

    def _parse_output(self, body: Any, system_prompt: str) -> ColorizationOutput:
        """
        응답 파싱.

        choices[0].message.content: 텍스트 (문자열 또는 파트 리스트)
        choices[0].message.images[]: 이미지 출력 모델일 때만 존재
        """
        if not isinstance(body, dict) or not body.get("choices"):
            raise build_provider_error(
                ErrorCodes.COLORIZATION_FAILED,
                self.label,
                "Malformed response: missing choices",
            )

        message = body["choices"][0].get("message") or {}
        text = self._extract_text(message.get("content"))

        image_bytes: bytes | None = None
        image_mime: str | None = None
        for image in message.get("images") or []:
            url = (image.get("image_url") or {}).get("url", "")
            if url.startswith("data:"):
                try:
                    image_mime, image_bytes = parse_data_url(url)
                except ValueError as e:
                    logger.warning(f"Ignoring undecodable image part: {e}")
                    continue
                break

        return ColorizationOutput(
            text=text,
            image_bytes=image_bytes,
            image_mime_type=image_mime,
            provider=self.name,
            model_requested=self.model,
            model_used=body.get("model") or self.model,
            model_params=self.params.to_dict(),
            request_id=body.get("id"),
            prompt_hash=compute_hash(system_prompt),
        )

    def _extract_text(self, content: Any) -> str:
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            return "".join(
                part.get("text", "")
                for part in content
                if isinstance(part, dict) and part.get("type") == "text"
            )
        return ""
