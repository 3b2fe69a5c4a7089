"""
표시용 포맷 유틸리티.

UI 뷰(Jinja2 필터)와 다운로드 파일명에서 사용.
"""

from datetime import datetime
from urllib.parse import urlparse

from src.domain.constants import DOWNLOAD_FILENAME_PREFIX

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def format_file_size(num_bytes: int) -> str:
    """
    바이트 수 → 사람이 읽기 쉬운 크기.

    예: 0 → "0 Bytes", 2621440 → "2.5 MB"
    """
    if num_bytes <= 0:
        return "0 Bytes"

    index = 0
    value = float(num_bytes)
    while value >= 1024 and index < len(_SIZE_UNITS) - 1:
        value /= 1024
        index += 1

    # 2.50 → 2.5, 3.00 → 3
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {_SIZE_UNITS[index]}"


def format_processing_time(milliseconds: int) -> str:
    """
    처리 시간 표시.

    예: 850 → "850ms", 12000 → "12s", 65000 → "1m 5s"
    """
    if milliseconds < 1000:
        return f"{milliseconds}ms"

    seconds = round(milliseconds / 1000)
    if seconds < 60:
        return f"{seconds}s"

    minutes, remaining = divmod(seconds, 60)
    return f"{minutes}m {remaining}s"


def format_elapsed(seconds: float) -> str:
    """경과/남은 시간 표시 (초 단위)."""
    whole = max(0, int(seconds))
    if whole < 60:
        return f"{whole}s"
    minutes, remaining = divmod(whole, 60)
    return f"{minutes}m {remaining}s"


def generate_filename(
    prefix: str = DOWNLOAD_FILENAME_PREFIX,
    image_format: str = "png",
    now: datetime | None = None,
) -> str:
    """
    다운로드 파일명 생성.

    포맷: {prefix}-YYYY-MM-DD-HH-MM-SS.{format}
    """
    now = now or datetime.now()
    return f"{prefix}-{now.strftime('%Y-%m-%d-%H-%M-%S')}.{image_format}"


def is_valid_image_url(url: str | None) -> bool:
    """data:image/ URL 또는 http(s) URL인지 확인."""
    if not url or not isinstance(url, str):
        return False

    if url.startswith("data:image/"):
        return True

    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)
