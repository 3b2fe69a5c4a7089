"""
Relay Service: 서버 측 컬러화 중계.

흐름:
1. 자격증명 확인 (없으면 외부 호출 전에 MISSING_API_KEY)
2. 파일 존재/타입/크기 재검증 (클라이언트 검증을 신뢰하지 않음)
3. 외부 모델 1회 호출 (재시도 없음)
4. 결과 또는 실패를 봉투(ColorizeResponse)로 변환

규칙:
- colorize()는 예외를 던지지 않음 → 항상 ColorizeSuccess | ColorizeFailure
- 텍스트 전용 모델이면 이미지 필드를 비운 성공 봉투 (픽셀을 합성하지 않음)
"""

import logging
import time
from collections.abc import Callable
from typing import Any

from src.app.providers import ColorizeProvider, ProviderError, create_provider
from src.app.providers.base import build_provider_error, classify_error_message
from src.app.services.validate import ImageValidator
from src.core.encoding import encode_image
from src.core.ids import generate_request_id
from src.core.logging import mask_secret
from src.domain.constants import (
    API_KEY_ENV_VARS,
    DEFAULT_PROVIDER,
    IMAGE_READY_MESSAGE,
    MANGA_COLORIZATION_PROMPT,
    MANGA_COLORIZATION_USER_TEXT,
    TEXT_ONLY_DESCRIPTION,
    TEXT_ONLY_MESSAGE,
)
from src.domain.errors import (
    ColorizeError,
    ConfigurationError,
    ErrorCodes,
    ValidationError,
    error_for_code,
)
from src.domain.schemas import ColorizeFailure, ColorizeResponse, ColorizeSuccess

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[str, dict[str, Any]], ColorizeProvider]


def failure_from_error(error: ColorizeError) -> ColorizeFailure:
    """taxonomy 예외 → 실패 봉투."""
    return ColorizeFailure(
        message=error.message,
        code=error.code,
        http_status=error.status,
        details=error.details,
    )


class ColorizeRelay:
    """
    컬러화 중계기.

    Usage:
        relay = ColorizeRelay(api_key=os.getenv("OPENROUTER_API_KEY"), config=config)
        response = await relay.colorize(data, "page.png", "image/png")
        return JSONResponse(response.to_dict(), status_code=...)
    """

    def __init__(
        self,
        api_key: str | None,
        config: dict[str, Any] | None = None,
        provider_factory: ProviderFactory = create_provider,
        validator: ImageValidator | None = None,
    ):
        """
        Args:
            api_key: 외부 모델 자격증명 (요청 시점에 읽어서 주입)
            config: 전체 설정 (ai.*, upload.* 사용)
            provider_factory: (api_key, ai_config) → Provider
            validator: 서버 측 파일 검증기 (없으면 config로 생성)
        """
        self.api_key = api_key
        self.config = config or {}
        self.ai_config: dict[str, Any] = self.config.get("ai", {}) or {}
        self.provider_factory = provider_factory
        self.validator = validator or ImageValidator.from_config(self.config)

    @property
    def provider_name(self) -> str:
        return self.ai_config.get("provider", DEFAULT_PROVIDER)

    # =========================================================================
    # Request Checks
    # =========================================================================

    def _check_credentials(self) -> ColorizeError | None:
        if self.api_key:
            return None
        env_var = API_KEY_ENV_VARS.get(self.provider_name, "API key")
        return ConfigurationError(
            ErrorCodes.MISSING_API_KEY,
            f"API key is not configured. Please add {env_var} to your environment variables.",
        )

    def _check_file(
        self,
        filename: str | None,
        mime_type: str | None,
        size: int | None,
    ) -> ColorizeError | None:
        if size is None or not filename:
            return ValidationError(
                ErrorCodes.MISSING_IMAGE,
                "Manga image is required",
            )

        if not self.validator.is_allowed_type(mime_type):
            return ValidationError(
                ErrorCodes.INVALID_FILE_TYPE,
                "Invalid file type. Please upload JPEG, PNG, or WebP images.",
                mime_type=mime_type,
            )

        if size > self.validator.max_size:
            max_mb = round(self.validator.max_size / (1024 * 1024))
            return ValidationError(
                ErrorCodes.FILE_TOO_LARGE,
                f"File too large. Maximum size is {max_mb}MB.",
                status=413,
                size=size,
            )

        return None

    def precheck(
        self,
        filename: str | None,
        mime_type: str | None,
        size: int | None,
    ) -> ColorizeFailure | None:
        """
        본문을 읽기 전에 가능한 검사 (자격증명, 파일 존재/타입/크기).

        Args:
            filename: 업로드 파일명
            mime_type: 선언된 MIME 타입
            size: 업로드 파트 크기 (모르면 None → MISSING_IMAGE)

        Returns:
            거절 시 ColorizeFailure, 통과 시 None
        """
        error = self._check_credentials() or self._check_file(filename, mime_type, size)
        if error is None:
            return None
        logger.warning(f"Colorize request rejected: {error.code} ({error.message})")
        return failure_from_error(error)

    # =========================================================================
    # Colorize
    # =========================================================================

    async def colorize(
        self,
        data: bytes | None,
        filename: str | None,
        mime_type: str | None,
    ) -> ColorizeResponse:
        """
        컬러화 요청 처리.

        Args:
            data: 업로드된 이미지 바이트 (파트 없으면 None)
            filename: 업로드 파일명
            mime_type: 선언된 MIME 타입

        Returns:
            ColorizeSuccess | ColorizeFailure (예외를 던지지 않음)
        """
        request_id = generate_request_id()
        error = self._check_credentials() or self._check_file(
            filename,
            mime_type,
            len(data) if data is not None else None,
        )
        if error is not None:
            logger.warning(f"[{request_id}] Colorize request rejected: {error.code} ({error.message})")
            return failure_from_error(error)

        size_mb = len(data) / (1024 * 1024)
        logger.info(f"[{request_id}] Processing manga image: {filename} ({size_mb:.2f}MB, {mime_type})")

        logger.debug(
            f"[{request_id}] Calling {self.provider_name} with key {mask_secret(self.api_key)}"
        )
        started = time.perf_counter()
        try:
            provider = self.provider_factory(self.api_key, self.ai_config)
            output = await provider.colorize(
                data,
                mime_type,
                MANGA_COLORIZATION_PROMPT,
                MANGA_COLORIZATION_USER_TEXT,
            )
        except ProviderError as e:
            logger.error(f"[{request_id}] Colorization failed: {e.code} ({e.details})")
            return failure_from_error(
                error_for_code(e.code, e.message, e.status, details=e.details)
            )
        except Exception as e:
            # 알려진 패턴 밖: 부분일치로 한 번 더 분류, 원문은 details로
            code = classify_error_message(str(e))
            logger.error(f"[{request_id}] Unexpected colorization error ({code}): {e}", exc_info=True)
            provider_error = build_provider_error(code, "AI provider", e)
            return failure_from_error(
                error_for_code(
                    provider_error.code,
                    provider_error.message,
                    provider_error.status,
                    details=provider_error.details,
                )
            )

        processing_time_ms = int((time.perf_counter() - started) * 1000)
        logger.info(
            f"[{request_id}] Colorization finished in {processing_time_ms}ms "
            f"(model={output.model_used}, image={output.has_image})"
        )

        if output.has_image:
            return ColorizeSuccess(
                processing_time_ms=processing_time_ms,
                image_base64=encode_image(output.image_bytes),
                image_mime_type=output.image_mime_type or "image/png",
                description=output.text or None,
                message=IMAGE_READY_MESSAGE,
                model_response=output.text or None,
                image_generated=True,
            )

        return ColorizeSuccess(
            processing_time_ms=processing_time_ms,
            description=TEXT_ONLY_DESCRIPTION,
            message=TEXT_ONLY_MESSAGE,
            model_response=output.text or None,
            image_generated=False,
        )

