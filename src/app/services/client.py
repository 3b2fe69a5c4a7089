"""
Relay Client: UI 세션 → Relay 엔드포인트 HTTP 호출.

기본은 같은 앱을 ASGITransport로 프로세스 내 호출,
ui.relay_url이 있으면 원격 Relay로 보냄.
모든 응답은 Normalizer를 거쳐 반환 (예외를 던지지 않음, 취소 제외).
"""

import logging
from typing import Any

import httpx

from src.app.services.normalize import normalize_response, normalize_transport_failure
from src.domain.constants import COLORIZE_ENDPOINT_PATH, COLORIZE_FORM_FIELD
from src.domain.schemas import ColorizeFailure, ColorizeResponse, UploadedImage

logger = logging.getLogger(__name__)

IN_PROCESS_BASE_URL = "http://relay.local"
DEFAULT_RELAY_TIMEOUT = 60.0


class RelayClient:
    """
    Relay HTTP 클라이언트.

    Usage:
        client = RelayClient.for_app(app)               # 프로세스 내
        client = RelayClient(base_url="https://...")     # 원격
        response = await client.colorize(image)
    """

    def __init__(
        self,
        base_url: str = IN_PROCESS_BASE_URL,
        timeout: float = DEFAULT_RELAY_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def for_app(cls, app: Any, timeout: float = DEFAULT_RELAY_TIMEOUT) -> "RelayClient":
        return cls(transport=httpx.ASGITransport(app=app), timeout=timeout)

    @classmethod
    def from_config(cls, app: Any, config: dict[str, Any]) -> "RelayClient":
        ui_config = config.get("ui", {}) or {}
        timeout = float(ui_config.get("relay_timeout", DEFAULT_RELAY_TIMEOUT))
        relay_url = ui_config.get("relay_url")
        if relay_url:
            return cls(base_url=relay_url, timeout=timeout)
        return cls.for_app(app, timeout=timeout)

    async def colorize(self, image: UploadedImage) -> ColorizeResponse:
        """
        이미지 1장 전송.

        Raises:
            asyncio.CancelledError: 호출 태스크가 취소된 경우 (전송도 중단됨)
        """
        files = {COLORIZE_FORM_FIELD: (image.name, image.data, image.mime_type)}

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                transport=self.transport,
                timeout=self.timeout,
            ) as client:
                response = await client.post(COLORIZE_ENDPOINT_PATH, files=files)
        except httpx.TimeoutException as e:
            logger.error(f"Relay request timed out after {self.timeout}s")
            return normalize_transport_failure(
                error=RuntimeError(f"Relay request timed out after {self.timeout}s: {e}")
            )
        except httpx.HTTPError as e:
            logger.error(f"Relay unreachable: {e}")
            return normalize_transport_failure(error=e)

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.is_success:
            return normalize_response(body)

        if isinstance(body, dict) and body.get("success") is False:
            normalized = normalize_response(body)
            if isinstance(normalized, ColorizeFailure):
                return normalized

        logger.warning(f"Relay returned HTTP {response.status_code} without envelope")
        return normalize_transport_failure(
            status=response.status_code,
            reason=response.reason_phrase,
            body=body,
        )
