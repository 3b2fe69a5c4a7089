"""
UI Routes: 컬러화 화면 (Jinja2 + HTMX).

- GET  /                    → 메인 화면 (세션 생성 또는 재사용)
- POST /ui/upload           → 이미지 선택 (검증 + 미리보기)
- POST /ui/remove           → 이미지 제거
- POST /ui/colorize         → 컬러화 시작 (loading 중이면 no-op)
- GET  /ui/status           → 로딩 뷰 폴링 (표시용 단계)
- POST /ui/cancel           → 취소 (전송 중단)
- POST /ui/retry            → 재시도 (재시도 가능 에러만)
- POST /ui/dismiss          → idle로
- POST /ui/another          → 결과 닫고 같은 이미지로 idle
- POST /ui/close            → 세션 종료 (미리보기 해제)
- GET  /ui/preview/{token}  → 업로드 미리보기 바이트
- GET  /ui/download         → PNG/JPEG 재인코딩 다운로드

모든 POST는 #app 패널 전체를 다시 렌더링 (HTMX outerHTML swap).
세션은 GET / 에서만 생성. 모르는 session_id는 404 + HX-Redirect: / (새 화면으로).
"""

import logging
from pathlib import Path

from fastapi import APIRouter, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates

from src.app.services.download import prepare_download
from src.app.services.preview import PreviewStore
from src.app.services.session import ColorizeSession, SessionRegistry
from src.core.ids import generate_session_id
from src.domain.constants import (
    COLORIZE_FORM_FIELD,
    DEFAULT_JPEG_QUALITY,
    DOWNLOAD_FORMATS,
    UPLOAD_ACCEPT_ATTR,
)
from src.domain.errors import ColorizeError
from src.domain.schemas import ColorizeFailure, DownloadOptions, GenerationState
from src.utils.formatting import (
    format_elapsed,
    format_file_size,
    format_processing_time,
)

logger = logging.getLogger(__name__)

# Jinja2 템플릿 설정
_templates_dir = Path(__file__).parent.parent / "templates"
jinja_templates = Jinja2Templates(directory=_templates_dir)
jinja_templates.env.filters["file_size"] = format_file_size
jinja_templates.env.filters["processing_time"] = format_processing_time
jinja_templates.env.filters["elapsed"] = format_elapsed

router = APIRouter()


# =============================================================================
# Session Helpers
# =============================================================================


def _registry(request: Request) -> SessionRegistry:
    registry: SessionRegistry = request.app.state.sessions
    return registry


def _session(request: Request, session_id: str) -> ColorizeSession:
    """
    살아 있는 세션 조회.

    만료됐거나 모르는 id면 404. HTMX는 HX-Redirect를 따라 새 화면을 염.
    """
    session = _registry(request).get(session_id)
    if session is None:
        logger.info(f"[{session_id}] Unknown or expired session")
        raise HTTPException(
            status_code=404,
            detail={"code": "SESSION_NOT_FOUND", "message": "Session expired. Reload the page."},
            headers={"HX-Redirect": "/"},
        )
    return session


def _render_panel(request: Request, session: ColorizeSession) -> HTMLResponse:
    return jinja_templates.TemplateResponse(
        request,
        "partials/panel.html",
        _context(session),
    )


def _context(session: ColorizeSession) -> dict:
    return {
        "session": session,
        "state": session.state.value,
        "image": session.image,
        "result": session.result,
        "error": session.error,
        "download_error": session.download_error,
        "progress": session.loading_progress(),
        "accept": UPLOAD_ACCEPT_ATTR,
        "formats": DOWNLOAD_FORMATS,
    }


# =============================================================================
# Page
# =============================================================================


@router.get("/", response_class=HTMLResponse)
async def index(request: Request, session_id: str | None = None) -> HTMLResponse:
    """메인 화면. session_id가 살아 있으면 재사용."""
    registry = _registry(request)
    if session_id is None or registry.get(session_id) is None:
        session_id = generate_session_id()

    session = registry.create(session_id)
    return jinja_templates.TemplateResponse(request, "index.html", _context(session))


# =============================================================================
# State Transitions
# =============================================================================


@router.post("/ui/upload", response_class=HTMLResponse)
async def upload_image(
    request: Request,
    session_id: str = Form(...),
    manga_image: UploadFile | None = File(None, alias=COLORIZE_FORM_FIELD),
) -> HTMLResponse:
    session = _session(request, session_id)

    if manga_image is None or not manga_image.filename:
        session.select_image(None, None, None)
        return _render_panel(request, session)

    # 파트 크기/타입으로 먼저 거절 (read()로 본문을 메모리에 올리기 전)
    if manga_image.size is not None:
        validation = session.check_upload(manga_image.content_type, manga_image.size)
        if not validation.is_valid:
            return _render_panel(request, session)

    data = await manga_image.read()
    session.select_image(data, manga_image.filename, manga_image.content_type)

    return _render_panel(request, session)


@router.post("/ui/remove", response_class=HTMLResponse)
async def remove_image(request: Request, session_id: str = Form(...)) -> HTMLResponse:
    session = _session(request, session_id)
    session.remove_image()
    return _render_panel(request, session)


@router.post("/ui/colorize", response_class=HTMLResponse)
async def start_colorize(request: Request, session_id: str = Form(...)) -> HTMLResponse:
    session = _session(request, session_id)
    session.colorize()
    return _render_panel(request, session)


@router.get("/ui/status", response_class=HTMLResponse)
async def status(request: Request, session_id: str) -> HTMLResponse:
    """로딩 중 1초 간격 폴링. loading이 끝나면 폴링 트리거 없는 패널 반환."""
    session = _session(request, session_id)
    return _render_panel(request, session)


@router.post("/ui/cancel", response_class=HTMLResponse)
async def cancel_colorize(request: Request, session_id: str = Form(...)) -> HTMLResponse:
    session = _session(request, session_id)
    session.cancel()
    return _render_panel(request, session)


@router.post("/ui/retry", response_class=HTMLResponse)
async def retry_colorize(request: Request, session_id: str = Form(...)) -> HTMLResponse:
    session = _session(request, session_id)
    session.retry()
    return _render_panel(request, session)


@router.post("/ui/dismiss", response_class=HTMLResponse)
async def dismiss(request: Request, session_id: str = Form(...)) -> HTMLResponse:
    session = _session(request, session_id)
    session.dismiss()
    return _render_panel(request, session)


@router.post("/ui/another", response_class=HTMLResponse)
async def colorize_another(request: Request, session_id: str = Form(...)) -> HTMLResponse:
    session = _session(request, session_id)
    session.colorize_another()
    return _render_panel(request, session)


@router.post("/ui/close")
async def close_session(request: Request, session_id: str = Form(...)) -> Response:
    """페이지 종료 시 sendBeacon으로 호출."""
    _registry(request).close(session_id)
    return Response(status_code=204)


# =============================================================================
# Preview / Download
# =============================================================================


@router.get("/ui/preview/{token}")
async def preview(request: Request, token: str) -> Response:
    store: PreviewStore = request.app.state.preview_store
    item = store.get(token)
    if item is None:
        return Response(status_code=404)

    data, mime_type = item
    return Response(
        content=data,
        media_type=mime_type,
        headers={"Cache-Control": "no-store"},
    )


@router.get("/ui/download")
async def download(
    request: Request,
    session_id: str,
    image_format: str = Query("png", alias="format"),
    quality: int = DEFAULT_JPEG_QUALITY,
) -> Response:
    """
    결과 이미지 다운로드.

    실패 시 세션에 DOWNLOAD_ERROR를 남기고 메인 화면으로 되돌림.
    """
    session = _registry(request).get(session_id)
    if session is None:
        return RedirectResponse("/", status_code=303)
    if session.state != GenerationState.SUCCESS or session.result is None:
        return RedirectResponse(f"/?session_id={session.session_id}", status_code=303)

    options = DownloadOptions(format=image_format, quality=quality)
    try:
        payload, filename, media_type = await prepare_download(session.result, options)
    except ColorizeError as e:
        logger.error(f"[{session.session_id}] Download failed: {e.details}")
        session.report_download_error(ColorizeFailure(
            message=e.message,
            code=e.code,
            http_status=e.status,
            details=e.details,
        ))
        return RedirectResponse(f"/?session_id={session.session_id}", status_code=303)

    return Response(
        content=payload,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
