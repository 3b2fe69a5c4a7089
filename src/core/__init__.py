"""
Core layer: 도메인 독립 유틸리티.

역할:
- 인코딩 (base64 / data URL)
- ID 생성
- 로깅 설정
"""

from .encoding import decode_image, encode_image, parse_data_url, to_data_url
from .ids import generate_preview_token, generate_request_id, generate_session_id
from .logging import mask_secret, setup_logging

__all__ = [
    # encoding
    "encode_image",
    "decode_image",
    "to_data_url",
    "parse_data_url",
    # ids
    "generate_session_id",
    "generate_preview_token",
    "generate_request_id",
    # logging
    "setup_logging",
    "mask_secret",
]
