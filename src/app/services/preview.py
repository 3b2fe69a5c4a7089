"""
Preview Store: 업로드 이미지 미리보기 핸들.

브라우저 object URL 역할을 서버에서 대신함.
핸들은 교체/제거/세션 종료 시 정확히 한 번 해제된다.
"""

import logging
import threading
from dataclasses import dataclass, field

from src.core.ids import generate_preview_token

logger = logging.getLogger(__name__)

PREVIEW_URL_PREFIX = "/ui/preview"


@dataclass
class PreviewHandle:
    """미리보기 핸들. release()는 최초 호출에서만 실제 해제."""
    token: str
    store: "PreviewStore" = field(repr=False)
    released: bool = False

    @property
    def url(self) -> str:
        return f"{PREVIEW_URL_PREFIX}/{self.token}"

    def release(self) -> bool:
        """
        핸들 해제.

        Returns:
            이번 호출에서 해제했으면 True, 이미 해제된 상태면 False
        """
        if self.released:
            return False
        self.released = True
        self.store.revoke(self.token)
        return True


class PreviewStore:
    """
    프로세스 내 미리보기 저장소.

    Usage:
        store = PreviewStore()
        handle = store.register(data, "image/png")
        data, mime = store.get(handle.token)
        handle.release()
    """

    def __init__(self):
        self._items: dict[str, tuple[bytes, str]] = {}
        self._lock = threading.Lock()

    def register(self, data: bytes, mime_type: str) -> PreviewHandle:
        token = generate_preview_token()
        with self._lock:
            self._items[token] = (data, mime_type)
        return PreviewHandle(token=token, store=self)

    def get(self, token: str) -> tuple[bytes, str] | None:
        with self._lock:
            return self._items.get(token)

    def revoke(self, token: str) -> None:
        with self._lock:
            removed = self._items.pop(token, None)
        if removed is None:
            logger.warning(f"Preview token already revoked: {token}")

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
