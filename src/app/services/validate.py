"""
Validation Service: 업로드 후보 파일 검증.

규칙:
- 허용 MIME 타입은 닫힌 집합 (JPEG 별칭 2개, PNG, WebP)
- 내용 스니핑 없음: MIME만 맞으면 손상된 바이트도 통과
  (실패는 이후 Relay/렌더러 단계에서 드러남)
- 크기 상한 초과는 거절 (압축/절단하지 않음), 상한과 같으면 허용
- 부수효과 없는 순수 함수
"""

from dataclasses import dataclass
from typing import Any

from src.domain.constants import MAX_FILE_SIZE, SUPPORTED_IMAGE_TYPES
from src.domain.schemas import FileValidationError


@dataclass
class ImageValidationResult:
    """검증 결과. is_valid=False면 error 태그가 반드시 있음."""
    is_valid: bool
    error: FileValidationError | None = None


class ImageValidator:
    """
    업로드 이미지 검증기.

    Usage:
        validator = ImageValidator.from_config(config)
        result = validator.validate("image/png", 2_000_000)
    """

    def __init__(
        self,
        allowed_types: tuple[str, ...] = SUPPORTED_IMAGE_TYPES,
        max_size: int = MAX_FILE_SIZE,
    ):
        self.allowed_types = tuple(t.lower() for t in allowed_types)
        self.max_size = max_size

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "ImageValidator":
        upload_config = config.get("upload", {}) or {}
        return cls(
            allowed_types=tuple(
                upload_config.get("allowed_types", SUPPORTED_IMAGE_TYPES)
            ),
            max_size=int(upload_config.get("max_file_size", MAX_FILE_SIZE)),
        )

    def is_allowed_type(self, mime_type: str | None) -> bool:
        """선언된 MIME 타입이 허용 목록에 있는지."""
        if not mime_type:
            return False
        return mime_type.lower() in self.allowed_types

    def validate(
        self,
        mime_type: str | None,
        size: int | None,
    ) -> ImageValidationResult:
        """
        후보 파일 검증.

        Args:
            mime_type: 선언된 MIME 타입 (파일 없으면 None)
            size: 바이트 크기 (파일 없으면 None)

        Returns:
            ImageValidationResult
        """
        if mime_type is None and size is None:
            return ImageValidationResult(
                is_valid=False, error=FileValidationError.NO_FILE_SELECTED
            )

        if not self.is_allowed_type(mime_type):
            return ImageValidationResult(
                is_valid=False, error=FileValidationError.INVALID_FILE_TYPE
            )

        if size is not None and size > self.max_size:
            return ImageValidationResult(
                is_valid=False, error=FileValidationError.FILE_TOO_LARGE
            )

        return ImageValidationResult(is_valid=True)

    def get_error_message(self, error: FileValidationError) -> str:
        """검증 에러 태그 → 사용자 메시지."""
        max_mb = round(self.max_size / (1024 * 1024))

        if error == FileValidationError.INVALID_FILE_TYPE:
            return "Please select a valid image file (JPG, PNG, or WebP)"
        elif error == FileValidationError.FILE_TOO_LARGE:
            return f"File size must be less than {max_mb}MB"
        elif error == FileValidationError.UPLOAD_FAILED:
            return "Failed to upload image. Please try again."
        elif error == FileValidationError.NO_FILE_SELECTED:
            return "No file selected"

        return "An error occurred during upload"


def validate_image_file(
    mime_type: str | None,
    size: int | None,
) -> ImageValidationResult:
    """기본 정책(4개 MIME, 10MB)으로 검증."""
    return ImageValidator().validate(mime_type, size)
