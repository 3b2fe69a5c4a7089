"""
Application Services.

역할:
- validate: 업로드 후보 파일 검증
- relay: 서버 측 컬러화 중계 (외부 모델 1회 호출)
- normalize: Relay 응답 → UI 계약
- client: UI → Relay HTTP 호출
- session: UI 상태 머신
- preview: 업로드 미리보기 핸들
- download: 결과 PNG/JPEG 재인코딩
"""

from .client import RelayClient
from .download import prepare_download
from .normalize import normalize_response, normalize_transport_failure
from .preview import PreviewHandle, PreviewStore
from .relay import ColorizeRelay
from .session import ColorizeSession, SessionRegistry
from .validate import ImageValidator, validate_image_file

__all__ = [
    "ColorizeRelay",
    "RelayClient",
    "ColorizeSession",
    "SessionRegistry",
    "PreviewHandle",
    "PreviewStore",
    "ImageValidator",
    "validate_image_file",
    "normalize_response",
    "normalize_transport_failure",
    "prepare_download",
]
