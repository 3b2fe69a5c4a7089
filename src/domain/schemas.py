"""
Data schemas for the colorizer.

규칙:
- ColorizeResponse는 태그드 유니온: ColorizeSuccess | ColorizeFailure
- 성공은 이미지 참조(imageUrl / imageBase64) 중 하나 이상을 가져야 의미가 있음
  (둘 다 없으면 Normalizer가 MISSING_IMAGE_DATA로 강등)
- 와이어 포맷 키는 camelCase, 파이썬 필드는 snake_case
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from src.domain.errors import is_retryable_code

if TYPE_CHECKING:
    from src.app.services.preview import PreviewHandle

# =============================================================================
# Enums
# =============================================================================

class FileValidationError(str, Enum):
    """클라이언트 측 파일 검증 에러 태그."""
    INVALID_FILE_TYPE = "invalid-file-type"
    FILE_TOO_LARGE = "file-too-large"
    NO_FILE_SELECTED = "no-file-selected"
    UPLOAD_FAILED = "upload-failed"


class GenerationState(str, Enum):
    """UI 상태 머신 상태. ColorizeSession만 변경한다."""
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


class LoadingStage(str, Enum):
    """로딩 중 표시용 단계 (실제 진행률 아님)."""
    PREPARING = "preparing"
    UPLOADING = "uploading"
    PROCESSING = "processing"
    GENERATING = "generating"
    FINISHING = "finishing"


# =============================================================================
# Upload
# =============================================================================

@dataclass
class UploadedImage:
    """
    사용자가 선택한 이미지.

    선택 시 생성, ColorizeSession이 소유.
    교체/제거/세션 종료 시 preview 핸들을 정확히 한 번 해제.
    """
    data: bytes
    name: str
    size: int
    mime_type: str
    preview: "PreviewHandle | None" = None

    @property
    def preview_url(self) -> str | None:
        return self.preview.url if self.preview is not None else None


# =============================================================================
# Relay Response (tagged union)
# =============================================================================

@dataclass
class ColorizeSuccess:
    """Relay 성공 응답."""
    processing_time_ms: int
    image_url: str = ""
    image_base64: str = ""
    image_mime_type: str = "image/png"
    description: str | None = None
    message: str = ""
    model_response: str | None = None
    # 외부 모델이 실제 픽셀을 돌려줬는지 (텍스트 전용 모델이면 항상 False)
    image_generated: bool = False

    success: bool = field(default=True, init=False)

    @property
    def has_image(self) -> bool:
        return bool(self.image_url or self.image_base64)

    def to_dict(self) -> dict[str, Any]:
        """와이어 포맷 (JSON 응답 본문)."""
        return {
            "success": True,
            "data": {
                "colorizedImageUrl": self.image_url,
                "colorizedImageBase64": self.image_base64,
                "colorizedImageMimeType": self.image_mime_type,
                "description": self.description,
                "processingTime": self.processing_time_ms,
                "modelResponse": self.model_response,
                "imageGenerated": self.image_generated,
            },
            "message": self.message,
        }


@dataclass
class ColorizeFailure:
    """Relay/Normalizer 실패 응답."""
    message: str
    code: str
    http_status: int = 500
    details: str | None = None

    success: bool = field(default=False, init=False)

    def to_dict(self) -> dict[str, Any]:
        """와이어 포맷 (JSON 응답 본문). details는 있을 때만."""
        error: dict[str, Any] = {
            "message": self.message,
            "code": self.code,
            "status": self.http_status,
        }
        if self.details is not None:
            error["details"] = self.details
        return {"success": False, "error": error}


ColorizeResponse = ColorizeSuccess | ColorizeFailure


# =============================================================================
# UI-facing State
# =============================================================================

@dataclass
class ErrorState:
    """UI 에러 상태. is_retryable은 에러 코드에서 파생."""
    message: str
    code: str
    http_status: int
    is_retryable: bool
    details: str | None = None
    observed_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_failure(cls, failure: ColorizeFailure) -> "ErrorState":
        return cls(
            message=failure.message or "An unknown error occurred",
            code=failure.code or "UNKNOWN_ERROR",
            http_status=failure.http_status or 500,
            details=failure.details,
            is_retryable=is_retryable_code(failure.code),
        )


@dataclass
class ColorizedResult:
    """성공 결과 (UI 표시/다운로드용)."""
    image_url: str
    image_base64: str
    image_mime_type: str
    description: str | None
    processing_time_ms: int
    colorized_at: datetime
    model_used: str | None = None
    prompt_version: str | None = None
    original_image_name: str | None = None

    @classmethod
    def from_success(
        cls,
        success: ColorizeSuccess,
        original: UploadedImage | None = None,
        model_used: str | None = None,
        prompt_version: str | None = None,
    ) -> "ColorizedResult":
        return cls(
            image_url=success.image_url,
            image_base64=success.image_base64,
            image_mime_type=success.image_mime_type,
            description=success.description,
            processing_time_ms=success.processing_time_ms,
            colorized_at=datetime.now(UTC),
            model_used=model_used,
            prompt_version=prompt_version,
            original_image_name=original.name if original else None,
        )

    @property
    def display_url(self) -> str:
        """img src로 쓸 수 있는 URL (원격 URL 우선, 없으면 data URL)."""
        if self.image_url:
            return self.image_url
        return f"data:{self.image_mime_type};base64,{self.image_base64}"


@dataclass
class DownloadOptions:
    """다운로드 재인코딩 옵션."""
    format: str = "png"  # "png" | "jpeg"
    quality: int | None = None  # JPEG 전용 (1-95)
    filename: str | None = None
