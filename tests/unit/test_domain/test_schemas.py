"""
test_schemas.py - 응답 봉투/UI 상태 스키마 테스트
"""

from datetime import UTC, datetime

from src.domain.errors import ErrorCodes
from src.domain.schemas import (
    ColorizedResult,
    ColorizeFailure,
    ColorizeSuccess,
    ErrorState,
    UploadedImage,
)


class TestColorizeSuccess:
    """성공 봉투 와이어 포맷."""

    def test_to_dict_wire_shape(self):
        success = ColorizeSuccess(
            processing_time_ms=1234,
            image_base64="aGVsbG8=",
            description="Colorized",
            message="done",
            model_response="text",
            image_generated=True,
        )

        assert success.to_dict() == {
            "success": True,
            "data": {
                "colorizedImageUrl": "",
                "colorizedImageBase64": "aGVsbG8=",
                "colorizedImageMimeType": "image/png",
                "description": "Colorized",
                "processingTime": 1234,
                "modelResponse": "text",
                "imageGenerated": True,
            },
            "message": "done",
        }

    def test_has_image(self):
        assert ColorizeSuccess(processing_time_ms=1, image_url="https://x/y.png").has_image
        assert ColorizeSuccess(processing_time_ms=1, image_base64="abc").has_image
        assert not ColorizeSuccess(processing_time_ms=1).has_image

    def test_success_discriminant(self):
        assert ColorizeSuccess(processing_time_ms=1).success is True


class TestColorizeFailure:
    """실패 봉투 와이어 포맷."""

    def test_to_dict_without_details(self):
        failure = ColorizeFailure(message="Manga image is required", code="MISSING_IMAGE", http_status=400)

        assert failure.to_dict() == {
            "success": False,
            "error": {"message": "Manga image is required", "code": "MISSING_IMAGE", "status": 400},
        }

    def test_to_dict_with_details(self):
        failure = ColorizeFailure(message="m", code="COLORIZATION_FAILED", details="raw")

        assert failure.to_dict()["error"]["details"] == "raw"
        assert failure.success is False


class TestErrorState:
    """ErrorState.from_failure."""

    def test_rate_limit_retryable(self):
        state = ErrorState.from_failure(
            ColorizeFailure(message="slow", code=ErrorCodes.RATE_LIMIT_EXCEEDED, http_status=429)
        )

        assert state.is_retryable is True
        assert state.http_status == 429
        assert state.observed_at.tzinfo is not None

    def test_invalid_key_not_retryable(self):
        state = ErrorState.from_failure(
            ColorizeFailure(message="bad", code=ErrorCodes.INVALID_API_KEY, http_status=401)
        )

        assert state.is_retryable is False

    def test_empty_message_defaulted(self):
        state = ErrorState.from_failure(ColorizeFailure(message="", code=""))

        assert state.message == "An unknown error occurred"
        assert state.code == "UNKNOWN_ERROR"


class TestColorizedResult:
    """ColorizedResult 변환."""

    def test_from_success_with_metadata(self):
        success = ColorizeSuccess(processing_time_ms=900, image_base64="abc", description="d")
        original = UploadedImage(data=b"x", name="page.png", size=1, mime_type="image/png")

        result = ColorizedResult.from_success(
            success, original=original, model_used="m", prompt_version="1.0"
        )

        assert result.processing_time_ms == 900
        assert result.original_image_name == "page.png"
        assert result.model_used == "m"
        assert result.prompt_version == "1.0"
        assert result.colorized_at <= datetime.now(UTC)

    def test_display_url_prefers_remote(self):
        result = ColorizedResult.from_success(
            ColorizeSuccess(processing_time_ms=1, image_url="https://cdn/x.png", image_base64="abc")
        )

        assert result.display_url == "https://cdn/x.png"

    def test_display_url_data_url(self):
        result = ColorizedResult.from_success(
            ColorizeSuccess(processing_time_ms=1, image_base64="abc", image_mime_type="image/jpeg")
        )

        assert result.display_url == "data:image/jpeg;base64,abc"


class TestUploadedImage:
    """UploadedImage preview_url."""

    def test_preview_url_none_without_handle(self):
        image = UploadedImage(data=b"x", name="a.png", size=1, mime_type="image/png")

        assert image.preview_url is None
