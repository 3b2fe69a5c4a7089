"""
AI Provider 추상 인터페이스.

- Provider 추상화로 외부 모델 교체 가능 (openrouter / gemini / anthropic)
- model_requested + model_used 기록
- 재시도 없음: colorize() 한 번 = 외부 호출 한 번

에러 분류 2단계:
1. 클라이언트 라이브러리의 구조화된 에러(예외 타입, HTTP status)로 매핑
2. 매핑 불가 시에만 에러 문자열 부분일치 (best-effort, 권위 없음)
"""

import hashlib
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from src.domain.errors import ErrorCodes

# =============================================================================
# Call Parameters
# =============================================================================

@dataclass
class LLMCallParams:
    """
    모델 호출 파라미터 기록.

    출력 크기 상한과 고정 샘플링 온도.
    """
    max_tokens: int
    temperature: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }


def compute_hash(content: str) -> str:
    """SHA-256 해시 계산 (프롬프트 버전 추적용)."""
    return f"sha256:{hashlib.sha256(content.encode()).hexdigest()[:16]}"


def normalize_mime_type(mime_type: str) -> str:
    """image/jpg 별칭을 표준 image/jpeg로 정규화."""
    lowered = mime_type.lower()
    if lowered == "image/jpg":
        return "image/jpeg"
    return lowered


# =============================================================================
# Result Data Classes
# =============================================================================

@dataclass
class ColorizationOutput:
    """
    외부 모델 호출 결과.

    image_bytes는 모델이 실제로 이미지 파트를 돌려줬을 때만 채워짐.
    텍스트 전용 모델이면 항상 None (합성하지 않음).
    """
    text: str = ""
    image_bytes: bytes | None = None
    image_mime_type: str | None = None

    # 모델 추적
    provider: str | None = None
    model_requested: str | None = None
    model_used: str | None = None
    model_params: dict[str, Any] = field(default_factory=dict)
    request_id: str | None = None
    prompt_hash: str | None = None

    @property
    def has_image(self) -> bool:
        return bool(self.image_bytes)


# =============================================================================
# Provider Exceptions
# =============================================================================

class ProviderError(Exception):
    """Provider 관련 에러. code/status는 Relay 응답에 그대로 실림."""

    def __init__(
        self,
        code: str,
        message: str,
        status: int = 500,
        **context: Any,
    ) -> None:
        self.code = code
        self.message = message
        self.status = status
        self.context = context
        super().__init__(f"[{code}] {message}")

    @property
    def details(self) -> str | None:
        details = self.context.get("details")
        return str(details) if details is not None else None


# 코드별 사용자 메시지 ({provider}는 표시용 이름)
USER_MESSAGES = {
    ErrorCodes.INVALID_API_KEY: "Invalid API key. Please check your {provider} configuration.",
    ErrorCodes.RATE_LIMIT_EXCEEDED: "Rate limit exceeded. Please try again later.",
    ErrorCodes.INSUFFICIENT_CREDITS: "Insufficient credits in {provider} account.",
    ErrorCodes.MODEL_UNAVAILABLE: "The requested model is not available. Please try again later.",
    ErrorCodes.COLORIZATION_FAILED: "Failed to colorize manga image. Please try again.",
}

CODE_STATUS = {
    ErrorCodes.INVALID_API_KEY: 401,
    ErrorCodes.INSUFFICIENT_CREDITS: 402,
    ErrorCodes.RATE_LIMIT_EXCEEDED: 429,
    ErrorCodes.MODEL_UNAVAILABLE: 503,
    ErrorCodes.COLORIZATION_FAILED: 500,
}


def classify_error_message(message: str | None) -> str:
    """
    에러 문자열 부분일치 분류 (최후 수단).

    제3자 에러 문구에 의존하므로 문구가 바뀌면 틀릴 수 있음.
    구조화된 매핑이 불가능할 때만 사용.

    Returns:
        ErrorCodes 값 (매칭 실패 시 COLORIZATION_FAILED)
    """
    text = (message or "").lower()

    if "api key" in text or "api_key" in text or "unauthorized" in text:
        return ErrorCodes.INVALID_API_KEY
    if "rate limit" in text or "too many requests" in text or "quota" in text:
        return ErrorCodes.RATE_LIMIT_EXCEEDED
    if "credits" in text or "credit balance" in text or "payment" in text:
        return ErrorCodes.INSUFFICIENT_CREDITS
    if "model" in text and "not available" in text:
        return ErrorCodes.MODEL_UNAVAILABLE

    return ErrorCodes.COLORIZATION_FAILED


def build_provider_error(
    code: str,
    provider_label: str,
    original: Exception | str | None = None,
    **context: Any,
) -> ProviderError:
    """코드 → ProviderError (사용자 메시지 + status + 원본 메시지 details)."""
    template = USER_MESSAGES.get(code, USER_MESSAGES[ErrorCodes.COLORIZATION_FAILED])
    details = str(original) if original is not None else None
    return ProviderError(
        code,
        template.format(provider=provider_label),
        status=CODE_STATUS.get(code, 500),
        details=details or "Unknown error occurred",
        **context,
    )


# =============================================================================
# Abstract Provider
# =============================================================================

class ColorizeProvider(ABC):
    """
    컬러화 Provider 추상 인터페이스.

    역할: 고정 지시문 + 이미지 → 멀티모달 요청 1회
    """

    name: str = "base"
    label: str = "AI provider"

    # 모델 계열이 픽셀 출력을 돌려줄 수 있는지 (텍스트 전용이면 False)
    supports_image_output: bool = False

    model: str

    @abstractmethod
    async def colorize(
        self,
        image_bytes: bytes,
        mime_type: str,
        system_prompt: str,
        user_text: str,
    ) -> ColorizationOutput:
        """
        이미지 컬러화 요청.

        Args:
            image_bytes: 원본 이미지 바이트
            mime_type: 선언된 MIME 타입
            system_prompt: 고정 시스템 지시문
            user_text: 사용자 메시지 텍스트

        Returns:
            ColorizationOutput

        Raises:
            ProviderError: 외부 호출 실패 (코드 분류 완료 상태)
        """
        ...
