"""
ID 생성: session_id, preview token, request_id
"""

import secrets
import uuid
from datetime import UTC, datetime


def generate_session_id() -> str:
    """
    UI 세션 ID 생성.

    포맷: UUID v4 문자열 (쿠키/hidden input에 그대로 사용)
    """
    return str(uuid.uuid4())


def generate_preview_token() -> str:
    """
    Preview 핸들 토큰 생성.

    URL 경로에 들어가므로 URL-safe, 추측 불가.
    """
    return secrets.token_urlsafe(16)


def generate_request_id() -> str:
    """
    Relay 요청 ID 생성 (로그 상관관계용).

    포맷: REQ-{timestamp}-{uuid[:8]}
    """
    now = datetime.now(UTC)
    timestamp = now.strftime("%Y%m%d%H%M%S")
    unique = uuid.uuid4().hex[:8]

    return f"REQ-{timestamp}-{unique}"
