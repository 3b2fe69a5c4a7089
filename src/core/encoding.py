"""
Encoder: 바이너리 이미지 ↔ 전송용 텍스트 (base64).

규칙:
- 길이 보존/가역 인코딩: decode(encode(x)) == x
- data URL은 "data:<mime>;base64,<payload>" 형식만 다룸
"""

import base64
import binascii


def encode_image(data: bytes) -> str:
    """바이트 → base64 문자열 (prefix 없음)."""
    return base64.b64encode(data).decode("ascii")


def decode_image(encoded: str) -> bytes:
    """
    base64 문자열 → 바이트.

    Raises:
        ValueError: 올바른 base64가 아닐 때
    """
    try:
        return base64.b64decode(encoded, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 payload: {e}") from e


def to_data_url(data: bytes, mime_type: str) -> str:
    """바이트 → data URL (멀티모달 요청의 이미지 파트용)."""
    return f"data:{mime_type};base64,{encode_image(data)}"


def parse_data_url(url: str) -> tuple[str, bytes]:
    """
    data URL → (mime_type, bytes).

    Raises:
        ValueError: base64 data URL이 아닐 때
    """
    if not url.startswith("data:"):
        raise ValueError("Not a data URL")

    header, sep, payload = url[len("data:"):].partition(",")
    if not sep or not header.endswith(";base64"):
        raise ValueError("Only base64 data URLs are supported")

    mime_type = header[: -len(";base64")] or "application/octet-stream"
    return mime_type, decode_image(payload)
