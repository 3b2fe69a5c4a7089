"""
Download Service: 결과 이미지 PNG/JPEG 재인코딩.

- 결과 소스 우선순위: image_base64 → data URL → 원격 URL (httpx로 가져옴)
- JPEG는 알파 채널을 흰 배경에 합성해 RGB로 저장
- 실패는 DOWNLOAD_ERROR (재시도 가능)
"""

import io
import logging
from datetime import datetime

import httpx
from PIL import Image, UnidentifiedImageError

from src.core.encoding import decode_image, parse_data_url
from src.domain.constants import (
    DEFAULT_JPEG_QUALITY,
    DOWNLOAD_FILENAME_PREFIX,
    DOWNLOAD_FORMATS,
)
from src.domain.errors import ErrorCodes, ProcessingError
from src.domain.schemas import ColorizedResult, DownloadOptions
from src.utils.formatting import generate_filename, is_valid_image_url

logger = logging.getLogger(__name__)

DOWNLOAD_ERROR_MESSAGE = "Failed to download the image. Please try again."

MEDIA_TYPES = {
    "png": "image/png",
    "jpeg": "image/jpeg",
}


def _download_error(details: str) -> ProcessingError:
    return ProcessingError(
        ErrorCodes.DOWNLOAD_ERROR,
        DOWNLOAD_ERROR_MESSAGE,
        details=details,
    )


async def load_result_bytes(
    result: ColorizedResult,
    http_client: httpx.AsyncClient | None = None,
) -> bytes:
    """
    결과 이미지 원본 바이트.

    Raises:
        ProcessingError: DOWNLOAD_ERROR (소스 없음, 디코딩/다운로드 실패)
    """
    try:
        if result.image_base64:
            return decode_image(result.image_base64)

        if result.image_url.startswith("data:"):
            _, data = parse_data_url(result.image_url)
            return data

        if result.image_url:
            if not is_valid_image_url(result.image_url):
                raise _download_error(f"Unsupported image URL: {result.image_url[:64]}")
            if http_client is not None:
                response = await http_client.get(result.image_url)
            else:
                async with httpx.AsyncClient(timeout=30.0) as client:
                    response = await client.get(result.image_url)
            response.raise_for_status()
            return response.content

    except ValueError as e:
        raise _download_error(f"Invalid image data: {e}") from e
    except httpx.HTTPError as e:
        raise _download_error(f"Failed to fetch image: {e}") from e

    raise _download_error("Result has no image data")


def reencode_image(
    data: bytes,
    image_format: str = "png",
    quality: int | None = None,
) -> bytes:
    """
    이미지 바이트 → PNG/JPEG 바이트.

    Args:
        data: 원본 이미지 바이트 (형식 무관, Pillow가 읽을 수 있으면 됨)
        image_format: "png" | "jpeg"
        quality: JPEG 품질 (기본 90)

    Raises:
        ProcessingError: DOWNLOAD_ERROR
    """
    image_format = image_format.lower()
    if image_format == "jpg":
        image_format = "jpeg"
    if image_format not in DOWNLOAD_FORMATS:
        raise _download_error(f"Unsupported download format: {image_format}")

    try:
        with Image.open(io.BytesIO(data)) as image:
            image.load()
            buffer = io.BytesIO()

            if image_format == "jpeg":
                rgb = _flatten_to_rgb(image)
                rgb.save(
                    buffer,
                    format="JPEG",
                    quality=quality or DEFAULT_JPEG_QUALITY,
                )
            else:
                image.save(buffer, format="PNG")

    except UnidentifiedImageError as e:
        raise _download_error(f"Unsupported or corrupted image: {e}") from e
    except OSError as e:
        raise _download_error(f"Image re-encoding failed: {e}") from e

    return buffer.getvalue()


def _flatten_to_rgb(image: Image.Image) -> Image.Image:
    """알파 채널을 흰 배경에 합성 (JPEG는 투명도 없음)."""
    if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    return image.convert("RGB")


async def prepare_download(
    result: ColorizedResult,
    options: DownloadOptions,
    http_client: httpx.AsyncClient | None = None,
    now: datetime | None = None,
) -> tuple[bytes, str, str]:
    """
    다운로드 응답 준비.

    Returns:
        (바이트, 파일명, media type)
    """
    image_format = options.format.lower()
    if image_format == "jpg":
        image_format = "jpeg"

    source = await load_result_bytes(result, http_client=http_client)
    payload = reencode_image(source, image_format, options.quality)
    filename = options.filename or generate_filename(
        DOWNLOAD_FILENAME_PREFIX, image_format, now
    )

    logger.info(f"Prepared download {filename} ({len(payload)} bytes)")
    return payload, filename, MEDIA_TYPES[image_format]
