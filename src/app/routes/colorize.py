"""
Colorize Routes: Relay HTTP 엔드포인트.

- POST /api/colorize-manga → multipart (mangaImage) → JSON 봉투

상태 코드:
- 200: 처리됨 (실제 픽셀 생성 여부와 무관, data.imageGenerated 참고)
- 400: 이미지 누락 / 지원하지 않는 타입
- 401 / 402 / 429 / 503: 외부 모델 실패 분류
- 413: 크기 초과
- 500: 자격증명 누락, 처리 실패
"""

import logging
import os

from fastapi import APIRouter, Depends, File, Request, UploadFile
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.app.services.relay import ColorizeRelay
from src.domain.constants import API_KEY_ENV_VARS, COLORIZE_FORM_FIELD, DEFAULT_PROVIDER
from src.domain.errors import ErrorCodes
from src.domain.schemas import ColorizeFailure, ColorizeSuccess

logger = logging.getLogger(__name__)

api_router = APIRouter()


def get_relay(request: Request) -> ColorizeRelay:
    """
    요청마다 Relay 생성.

    자격증명은 요청 시점에 환경변수에서 읽어 생성자로 주입.
    """
    config = request.app.state.config
    ai_config = config.get("ai", {}) or {}
    provider = ai_config.get("provider", DEFAULT_PROVIDER)
    env_var = API_KEY_ENV_VARS.get(provider, "")
    api_key = os.environ.get(env_var) if env_var else None
    return ColorizeRelay(api_key=api_key or None, config=config)


@api_router.post("/colorize-manga")
async def colorize_manga(
    manga_image: UploadFile | None = File(None, alias=COLORIZE_FORM_FIELD),
    relay: ColorizeRelay = Depends(get_relay),
) -> JSONResponse:
    """
    만화 이미지 컬러화.

    Relay가 모든 실패를 봉투로 변환하므로 여기서는 상태 코드만 결정.
    크기 초과(413 FILE_TOO_LARGE)는 본문을 읽기 전에 파트 크기로 거절.
    """
    data: bytes | None = None
    filename: str | None = None
    mime_type: str | None = None

    if manga_image is not None:
        filename = manga_image.filename
        mime_type = manga_image.content_type
        if manga_image.size is not None:
            rejection = relay.precheck(filename, mime_type, manga_image.size)
            if rejection is not None:
                return JSONResponse(content=rejection.to_dict(), status_code=rejection.http_status)
        data = await manga_image.read()

    response = await relay.colorize(data, filename, mime_type)

    if isinstance(response, ColorizeSuccess):
        return JSONResponse(content=response.to_dict(), status_code=200)
    return JSONResponse(content=response.to_dict(), status_code=response.http_status)


async def request_validation_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """
    폼 파싱 실패 → 실패 봉투 (MISSING_IMAGE / 400).

    multipart가 아닌 본문 등 FastAPI 기본 422 대신 와이어 계약 유지.
    /api 밖의 경로는 FastAPI 기본 처리.
    """
    if not request.url.path.startswith("/api/"):
        return await request_validation_exception_handler(request, exc)

    logger.warning(f"Malformed request to {request.url.path}: {exc.errors()}")
    failure = ColorizeFailure(
        message="Manga image is required",
        code=ErrorCodes.MISSING_IMAGE,
        http_status=400,
        details=str(exc.errors()),
    )
    return JSONResponse(content=failure.to_dict(), status_code=failure.http_status)
