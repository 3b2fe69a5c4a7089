"""
FastAPI 애플리케이션 진입점.

실행:
- 개발: uv run uvicorn src.app.main:app --reload
- 프로덕션: uv run uvicorn src.app.main:app
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles

# Routes
from src.app.routes import colorize, ui
from src.app.services.client import RelayClient
from src.app.services.preview import PreviewStore
from src.app.services.session import ColorizeSession, SessionRegistry
from src.app.services.validate import ImageValidator
from src.core.logging import setup_logging
from src.domain.constants import (
    DEFAULT_ESTIMATED_TIME,
    DEFAULT_MODELS,
    DEFAULT_PROVIDER,
    DEFAULT_SESSION_IDLE_TIMEOUT,
)

logger = logging.getLogger(__name__)

# =============================================================================
# Configuration
# =============================================================================


def load_config(config_path: Path | None = None) -> dict:
    """설정 파일 로드."""
    if config_path is None:
        # 프로젝트 루트의 default.yaml
        config_path = Path(__file__).parent.parent.parent / "default.yaml"

    if not config_path.exists():
        return {}

    with open(config_path, encoding="utf-8") as f:
        data: dict[Any, Any] = yaml.safe_load(f) or {}
        return data


def build_session_registry(app: FastAPI, config: dict[str, Any]) -> SessionRegistry:
    """세션 레지스트리 (Relay 클라이언트/미리보기 저장소 공유)."""
    relay_client = RelayClient.from_config(app, config)
    validator = ImageValidator.from_config(config)
    ai_config = config.get("ai", {}) or {}
    provider = ai_config.get("provider", DEFAULT_PROVIDER)
    model_label = ai_config.get("model") or DEFAULT_MODELS.get(provider)
    ui_config = config.get("ui", {}) or {}
    estimated_time = int(ui_config.get("estimated_time", DEFAULT_ESTIMATED_TIME))
    idle_timeout = float(
        ui_config.get("session_idle_timeout", DEFAULT_SESSION_IDLE_TIMEOUT)
    )

    def factory(session_id: str) -> ColorizeSession:
        return ColorizeSession(
            session_id,
            relay_client=relay_client,
            preview_store=app.state.preview_store,
            validator=validator,
            estimated_time=estimated_time,
            model_label=model_label,
        )

    return SessionRegistry(factory, idle_timeout=idle_timeout)


# =============================================================================
# Lifespan
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    애플리케이션 생명주기 관리.

    시작 시: .env/설정 로드, 로깅, 세션 레지스트리
    종료 시: 모든 세션 teardown (진행 중 요청 중단 + 미리보기 해제)
    """
    # Startup
    load_dotenv()
    app.state.config = load_config()
    setup_logging(app.state.config)
    app.state.preview_store = PreviewStore()
    app.state.sessions = build_session_registry(app, app.state.config)
    logger.info("Manga colorizer started")

    yield

    # Shutdown
    await app.state.sessions.shutdown()


# =============================================================================
# App Instance
# =============================================================================

app = FastAPI(
    title="Manga Colorizer",
    description="흑백 만화 이미지 → 외부 멀티모달 모델 컬러화 중계",
    version="0.1.0",
    lifespan=lifespan,
)

# Static files (CSS, JS)
static_dir = Path(__file__).parent / "static"
if static_dir.exists():
    app.mount("/static", StaticFiles(directory=static_dir), name="static")

app.add_exception_handler(RequestValidationError, colorize.request_validation_handler)


# =============================================================================
# Routes
# =============================================================================

# 페이지 라우트 (HTML + HTMX 조각)
app.include_router(ui.router, tags=["UI"])

# API 라우트
app.include_router(colorize.api_router, prefix="/api", tags=["Colorize API"])


# =============================================================================
# Root Endpoints
# =============================================================================


@app.get("/health")
async def health() -> dict[str, str]:
    """헬스 체크."""
    return {"status": "ok"}


# =============================================================================
# CLI Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.app.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
