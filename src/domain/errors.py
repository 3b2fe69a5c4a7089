"""
Error definitions for the colorizer.

규칙:
- 조용한 실패 금지 → 모든 실패는 code + status를 가진 봉투로 변환
- 재시도 가능 여부는 에러 분류(taxonomy)가 결정, 호출자가 추측하지 않음
- Relay는 경계 밖으로 예외를 던지지 않음 (봉투로 변환 후 반환)
"""

from typing import Any


class ColorizeError(Exception):
    """
    컬러화 흐름의 기본 에러.

    Usage:
        raise ProcessingError(ErrorCodes.COLORIZATION_FAILED, "Failed...", details=str(e))
    """

    default_status = 500
    retryable = True

    def __init__(
        self,
        code: str,
        message: str,
        status: int | None = None,
        **context: Any,
    ) -> None:
        self.code = code
        self.message = message
        self.status = status if status is not None else self.default_status
        self.context = context
        super().__init__(f"[{code}] {message}")

    @property
    def details(self) -> str | None:
        details = self.context.get("details")
        return str(details) if details is not None else None

    def to_dict(self) -> dict[str, Any]:
        """로그/JSON 직렬화용."""
        return {
            "code": self.code,
            "message": self.message,
            "status": self.status,
            "retryable": self.retryable,
            **self.context,
        }


class ValidationError(ColorizeError):
    """사용자가 입력을 바꿔야 하는 에러 (자동 재시도 무의미)."""

    default_status = 400
    retryable = False


class ConfigurationError(ColorizeError):
    """운영자가 고쳐야 하는 에러: 자격증명 누락/무효, 크레딧 소진."""

    default_status = 500
    retryable = False


class TransientServiceError(ColorizeError):
    """레이트리밋 등 일시 장애. 사용자 주도 재시도만 (자동 스케줄 없음)."""

    default_status = 429
    retryable = True


class ProcessingError(ColorizeError):
    """외부 모델 처리 실패 (catch-all)."""

    default_status = 500
    retryable = True


class UnexpectedError(ColorizeError):
    """알려진 패턴에 맞지 않는 예외. 원본 메시지는 details에 보존."""

    default_status = 500
    retryable = True


# =============================================================================
# Error Codes
# =============================================================================

class ErrorCodes:
    """에러 코드 상수. 새 코드 추가 시 NON_RETRYABLE_CODES도 함께 검토."""

    # === Relay: 요청 검증 ===
    MISSING_API_KEY = "MISSING_API_KEY"
    MISSING_IMAGE = "MISSING_IMAGE"
    INVALID_FILE_TYPE = "INVALID_FILE_TYPE"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"

    # === Relay: 외부 모델 실패 분류 ===
    INVALID_API_KEY = "INVALID_API_KEY"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    INSUFFICIENT_CREDITS = "INSUFFICIENT_CREDITS"
    MODEL_UNAVAILABLE = "MODEL_UNAVAILABLE"
    COLORIZATION_FAILED = "COLORIZATION_FAILED"

    # === Normalizer ===
    INVALID_RESPONSE = "INVALID_RESPONSE"
    MISSING_IMAGE_DATA = "MISSING_IMAGE_DATA"
    PROCESSING_ERROR = "PROCESSING_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"

    # === UI ===
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNEXPECTED_ERROR = "UNEXPECTED_ERROR"
    DOWNLOAD_ERROR = "DOWNLOAD_ERROR"


# 설정/입력 계열: 같은 요청을 다시 보내도 결과가 같음
NON_RETRYABLE_CODES = frozenset({
    ErrorCodes.MISSING_API_KEY,
    ErrorCodes.INVALID_API_KEY,
    ErrorCodes.INSUFFICIENT_CREDITS,
    ErrorCodes.VALIDATION_ERROR,
    ErrorCodes.MISSING_IMAGE,
    ErrorCodes.INVALID_FILE_TYPE,
    ErrorCodes.FILE_TOO_LARGE,
})


def is_retryable_code(code: str) -> bool:
    """에러 코드 기준 재시도 가능 여부."""
    return code not in NON_RETRYABLE_CODES


_CODE_TO_ERROR_CLASS: dict[str, type[ColorizeError]] = {
    ErrorCodes.MISSING_API_KEY: ConfigurationError,
    ErrorCodes.INVALID_API_KEY: ConfigurationError,
    ErrorCodes.INSUFFICIENT_CREDITS: ConfigurationError,
    ErrorCodes.RATE_LIMIT_EXCEEDED: TransientServiceError,
    ErrorCodes.MODEL_UNAVAILABLE: TransientServiceError,
    ErrorCodes.MISSING_IMAGE: ValidationError,
    ErrorCodes.INVALID_FILE_TYPE: ValidationError,
    ErrorCodes.FILE_TOO_LARGE: ValidationError,
    ErrorCodes.VALIDATION_ERROR: ValidationError,
    ErrorCodes.COLORIZATION_FAILED: ProcessingError,
    ErrorCodes.PROCESSING_ERROR: ProcessingError,
}


def error_for_code(
    code: str,
    message: str,
    status: int | None = None,
    **context: Any,
) -> ColorizeError:
    """
    에러 코드 → taxonomy 예외 인스턴스.

    알 수 없는 코드는 UnexpectedError.
    """
    error_class = _CODE_TO_ERROR_CLASS.get(code, UnexpectedError)
    return error_class(code, message, status, **context)
