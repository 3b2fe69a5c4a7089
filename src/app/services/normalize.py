"""
Response Normalizer: Relay 응답 → UI가 소비하는 안정된 계약.

규칙:
- 객체가 아니거나 필수 필드가 없으면 INVALID_RESPONSE (500)
- 이미지 참조 없는 "성공"은 MISSING_IMAGE_DATA (500)로 강등
- 실패 봉투는 그대로 통과 (code/status 보존)
- 멱등: normalize_response(normalize_response(x)) == normalize_response(x)
"""

import logging
from typing import Any

from src.app.providers.base import CODE_STATUS, USER_MESSAGES, classify_error_message
from src.domain.errors import ErrorCodes
from src.domain.schemas import ColorizeFailure, ColorizeResponse, ColorizeSuccess

logger = logging.getLogger(__name__)

INVALID_RESPONSE_MESSAGE = "Received an invalid response from the colorization service."
MISSING_IMAGE_DATA_MESSAGE = "No colorized image was returned by the colorization service."
UNKNOWN_ERROR_MESSAGE = "An unknown error occurred"


def _invalid(details: str) -> ColorizeFailure:
    return ColorizeFailure(
        message=INVALID_RESPONSE_MESSAGE,
        code=ErrorCodes.INVALID_RESPONSE,
        http_status=500,
        details=details,
    )


def _missing_image(success: ColorizeSuccess) -> ColorizeFailure:
    # 모델 설명 문구는 details로 보존 (텍스트 전용 모델 안내 포함)
    return ColorizeFailure(
        message=MISSING_IMAGE_DATA_MESSAGE,
        code=ErrorCodes.MISSING_IMAGE_DATA,
        http_status=500,
        details=success.description or success.message or None,
    )


def _optional_str(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def normalize_response(raw: Any) -> ColorizeResponse:
    """
    Relay 원시 응답 분류.

    Args:
        raw: 파싱된 JSON 본문 (dict) 또는 이미 정규화된 응답

    Returns:
        ColorizeSuccess (이미지 참조 보장) | ColorizeFailure
    """
    if isinstance(raw, ColorizeFailure):
        return raw
    if isinstance(raw, ColorizeSuccess):
        return raw if raw.has_image else _missing_image(raw)

    if not isinstance(raw, dict):
        return _invalid(f"Expected a JSON object, got {type(raw).__name__}")

    success = raw.get("success")
    if not isinstance(success, bool):
        return _invalid("Missing boolean 'success' field")

    if not success:
        error = raw.get("error")
        if not isinstance(error, dict) or not isinstance(error.get("message"), str):
            return _invalid("Failure envelope without 'error.message'")
        status = error.get("status")
        return ColorizeFailure(
            message=error["message"],
            code=_optional_str(error.get("code")) or ErrorCodes.UNKNOWN_ERROR,
            http_status=status if isinstance(status, int) else 500,
            details=_optional_str(error.get("details")),
        )

    data = raw.get("data")
    if not isinstance(data, dict):
        return _invalid("Success envelope without 'data' object")

    processing_time = data.get("processingTime", 0)
    if isinstance(processing_time, bool) or not isinstance(processing_time, int | float):
        return _invalid("Non-numeric 'data.processingTime'")

    normalized = ColorizeSuccess(
        processing_time_ms=int(processing_time),
        image_url=_optional_str(data.get("colorizedImageUrl")) or "",
        image_base64=_optional_str(data.get("colorizedImageBase64")) or "",
        image_mime_type=_optional_str(data.get("colorizedImageMimeType")) or "image/png",
        description=_optional_str(data.get("description")),
        message=_optional_str(raw.get("message")) or "",
        model_response=_optional_str(data.get("modelResponse")),
        image_generated=bool(data.get("imageGenerated", False)),
    )

    if not normalized.has_image:
        logger.warning("Relay reported success without image data")
        return _missing_image(normalized)

    return normalized


def normalize_transport_failure(
    status: int | None = None,
    reason: str | None = None,
    body: Any = None,
    error: Exception | None = None,
) -> ColorizeFailure:
    """
    Relay에 닿지 못했거나 non-2xx + 봉투가 아닌 본문일 때.

    메시지 결정 순서: 본문 error.message → "HTTP <status>: <reason>" → 예외 문자열.
    메시지가 있으면 부분일치 분류 (매칭 실패 시 PROCESSING_ERROR),
    메시지가 전혀 없으면 UNKNOWN_ERROR.
    """
    message: str | None = None
    if isinstance(body, dict):
        body_error = body.get("error")
        if isinstance(body_error, dict):
            message = _optional_str(body_error.get("message"))
    if message is None and status is not None:
        message = f"HTTP {status}: {reason or 'Error'}"
    if message is None and error is not None:
        message = _optional_str(str(error))

    if message is None:
        return ColorizeFailure(
            message=UNKNOWN_ERROR_MESSAGE,
            code=ErrorCodes.UNKNOWN_ERROR,
            http_status=status or 500,
            details=type(error).__name__ if error is not None else None,
        )

    code = classify_error_message(message)
    if code == ErrorCodes.COLORIZATION_FAILED:
        return ColorizeFailure(
            message=message,
            code=ErrorCodes.PROCESSING_ERROR,
            http_status=status or 500,
            details=message,
        )

    return ColorizeFailure(
        message=USER_MESSAGES[code].format(provider="AI provider"),
        code=code,
        http_status=CODE_STATUS[code],
        details=message,
    )
