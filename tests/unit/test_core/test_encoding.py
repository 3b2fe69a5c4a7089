"""
test_encoding.py - base64 / data URL 인코딩 테스트
"""

import pytest

from src.core.encoding import decode_image, encode_image, parse_data_url, to_data_url


class TestEncodeDecode:
    """encode_image / decode_image."""

    def test_round_trip_binary(self):
        payload = bytes(range(256)) * 4

        assert decode_image(encode_image(payload)) == payload

    def test_empty_payload(self):
        assert encode_image(b"") == ""
        assert decode_image("") == b""

    def test_invalid_base64_raises(self):
        with pytest.raises(ValueError, match="Invalid base64"):
            decode_image("not*base64!")


class TestDataUrl:
    """to_data_url / parse_data_url."""

    def test_to_data_url(self):
        assert to_data_url(b"abc", "image/png") == "data:image/png;base64,YWJj"

    def test_parse_data_url(self):
        mime_type, data = parse_data_url("data:image/jpeg;base64,YWJj")

        assert mime_type == "image/jpeg"
        assert data == b"abc"

    def test_parse_rejects_non_data_url(self):
        with pytest.raises(ValueError, match="Not a data URL"):
            parse_data_url("https://example.com/a.png")

    def test_parse_rejects_non_base64_data_url(self):
        with pytest.raises(ValueError, match="base64"):
            parse_data_url("data:text/plain,hello")
