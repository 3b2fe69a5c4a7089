"""
Logging setup.

모든 모듈은 logging.getLogger(__name__)만 사용하고,
핸들러/레벨 설정은 여기서 한 번만 한다.
"""

import logging
from typing import Any

DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(config: dict[str, Any] | None = None) -> None:
    """
    config의 logging 섹션으로 루트 로거 설정.

    Args:
        config: 전체 설정 (logging.level, logging.format 사용)
    """
    log_config = (config or {}).get("logging", {}) or {}
    level_name = str(log_config.get("level", "INFO")).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format=log_config.get("format", DEFAULT_LOG_FORMAT),
    )
    logging.getLogger("src").setLevel(level)


def mask_secret(value: str | None, visible: int = 6) -> str:
    """API 키 등 비밀값을 로그용으로 축약."""
    if not value:
        return "(unset)"
    if len(value) <= visible:
        return "*" * len(value)
    return f"{value[:visible]}..."
