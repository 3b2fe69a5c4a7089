"""
test_formatting.py - 표시용 포맷 유틸리티 테스트
"""

from datetime import datetime

import pytest

from src.utils.formatting import (
    format_elapsed,
    format_file_size,
    format_processing_time,
    generate_filename,
    is_valid_image_url,
)


class TestFormatFileSize:
    """format_file_size 테스트."""

    @pytest.mark.parametrize("num_bytes,expected", [
        (0, "0 Bytes"),
        (500, "500 Bytes"),
        (1024, "1 KB"),
        (1536, "1.5 KB"),
        (2621440, "2.5 MB"),
        (10 * 1024 * 1024, "10 MB"),
        (3 * 1024 ** 3, "3 GB"),
    ])
    def test_sizes(self, num_bytes, expected):
        assert format_file_size(num_bytes) == expected


class TestFormatProcessingTime:
    """format_processing_time 테스트."""

    @pytest.mark.parametrize("ms,expected", [
        (850, "850ms"),
        (12000, "12s"),
        (65000, "1m 5s"),
    ])
    def test_times(self, ms, expected):
        assert format_processing_time(ms) == expected


class TestFormatElapsed:
    """format_elapsed 테스트."""

    def test_seconds_and_minutes(self):
        assert format_elapsed(7.9) == "7s"
        assert format_elapsed(125) == "2m 5s"
        assert format_elapsed(-3) == "0s"


class TestGenerateFilename:
    """generate_filename 테스트."""

    def test_format(self):
        now = datetime(2024, 3, 5, 14, 7, 9)

        assert generate_filename("manga-colorized", "png", now) == (
            "manga-colorized-2024-03-05-14-07-09.png"
        )

    def test_default_prefix(self):
        assert generate_filename(image_format="jpeg").startswith("manga-colorized-")


class TestIsValidImageUrl:
    """is_valid_image_url 테스트."""

    @pytest.mark.parametrize("url,expected", [
        ("data:image/png;base64,abc", True),
        ("https://example.com/a.png", True),
        ("http://example.com/a.png", True),
        ("ftp://example.com/a.png", False),
        ("data:text/plain;base64,abc", False),
        ("", False),
        (None, False),
    ])
    def test_urls(self, url, expected):
        assert is_valid_image_url(url) is expected
