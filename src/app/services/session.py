"""
Colorize Session: UI 상태 머신 (서버 측, 브라우저 세션당 1개).

상태: idle → loading → {success | error}

전이:
- idle/success/error → loading: colorize() (이미지 보유 + loading 아님)
- loading → success | error: Relay + Normalizer 결과
- error → loading: retry() (재시도 가능 에러만)
- any → idle: dismiss(), 새 이미지 선택, 이미지 제거, cancel()

규칙:
- loading 중 colorize()는 no-op (동시 제출 1건)
- 취소는 토큰 + 태스크 취소: 전송 중단, 늦게 온 응답은 폐기
- 미리보기 핸들은 교체/제거/teardown 시 정확히 한 번 해제
"""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from src.app.services.client import RelayClient
from src.app.services.preview import PreviewStore
from src.app.services.validate import ImageValidationResult, ImageValidator
from src.domain.constants import (
    DEFAULT_ESTIMATED_TIME,
    DEFAULT_SESSION_IDLE_TIMEOUT,
    LOADING_STAGE_DESCRIPTIONS,
    LOADING_STAGE_MESSAGES,
    LOADING_STAGE_SCHEDULE,
    PROMPT_VERSION,
)
from src.domain.errors import ErrorCodes
from src.domain.schemas import (
    ColorizedResult,
    ColorizeFailure,
    ColorizeResponse,
    ColorizeSuccess,
    ErrorState,
    GenerationState,
    LoadingStage,
    UploadedImage,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Loading Progress (표시용)
# =============================================================================

@dataclass
class LoadingProgress:
    """로딩 뷰 데이터. 경과 시간만으로 계산 (실제 진행률 아님)."""
    stage: LoadingStage
    message: str
    description: str
    percent: int
    elapsed_seconds: int
    remaining_seconds: int


def loading_stage(elapsed_seconds: float) -> tuple[LoadingStage, int]:
    """경과 시간 → (단계, 표시 퍼센트)."""
    current_name, _, current_percent = LOADING_STAGE_SCHEDULE[0]
    for name, starts_at, percent in LOADING_STAGE_SCHEDULE:
        if elapsed_seconds >= starts_at:
            current_name, current_percent = name, percent
    return LoadingStage(current_name), current_percent


def build_loading_progress(
    elapsed_seconds: float,
    estimated_seconds: int = DEFAULT_ESTIMATED_TIME,
) -> LoadingProgress:
    stage, percent = loading_stage(elapsed_seconds)
    elapsed = max(0, int(elapsed_seconds))
    return LoadingProgress(
        stage=stage,
        message=LOADING_STAGE_MESSAGES[stage.value],
        description=LOADING_STAGE_DESCRIPTIONS[stage.value],
        percent=percent,
        elapsed_seconds=elapsed,
        remaining_seconds=max(0, estimated_seconds - elapsed),
    )


# =============================================================================
# Cancellation
# =============================================================================

class CancellationToken:
    """제출 1건에 붙는 취소 토큰."""

    def __init__(self):
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


# =============================================================================
# Session
# =============================================================================

class ColorizeSession:
    """
    세션 상태 머신.

    GenerationState, 보유 이미지, 결과/에러는 이 클래스만 변경한다.

    Usage:
        session = ColorizeSession(session_id, relay_client, preview_store)
        session.select_image(data, "page.png", "image/png")
        session.colorize()
        await session.wait()
    """

    def __init__(
        self,
        session_id: str,
        relay_client: RelayClient,
        preview_store: PreviewStore,
        validator: ImageValidator | None = None,
        estimated_time: int = DEFAULT_ESTIMATED_TIME,
        model_label: str | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.session_id = session_id
        self.relay_client = relay_client
        self.preview_store = preview_store
        self.validator = validator or ImageValidator()
        self.estimated_time = estimated_time
        self.model_label = model_label
        self.clock = clock

        self.state = GenerationState.IDLE
        self.image: UploadedImage | None = None
        self.result: ColorizedResult | None = None
        self.error: ErrorState | None = None
        self.upload_error: str | None = None
        self.download_error: ErrorState | None = None
        self.loading_started_at: float | None = None

        self._token: CancellationToken | None = None
        self._task: asyncio.Task | None = None

    @property
    def can_colorize(self) -> bool:
        return self.image is not None and self.state != GenerationState.LOADING

    # =========================================================================
    # Image
    # =========================================================================

    def check_upload(
        self,
        mime_type: str | None,
        size: int | None,
    ) -> ImageValidationResult:
        """
        타입/크기만으로 검증 (본문을 읽기 전에도 호출 가능).

        실패 시 upload_error 설정, 이미지/상태는 그대로.
        """
        validation = self.validator.validate(mime_type, size)
        if not validation.is_valid:
            self.upload_error = self.validator.get_error_message(validation.error)
            logger.info(f"[{self.session_id}] Image rejected: {validation.error.value}")
        return validation

    def select_image(
        self,
        data: bytes | None,
        name: str | None,
        mime_type: str | None,
    ) -> ImageValidationResult:
        """
        새 이미지 선택.

        검증 실패 시 기존 이미지/상태는 그대로 두고 upload_error만 설정.
        성공 시 이전 미리보기 해제, 결과/에러 초기화, idle로.
        """
        validation = self.check_upload(
            mime_type if data is not None else None,
            len(data) if data is not None else None,
        )
        if not validation.is_valid:
            return validation

        self._abandon_in_flight()
        self._release_image()

        self.image = UploadedImage(
            data=data,
            name=name or "image",
            size=len(data),
            mime_type=mime_type,
            preview=self.preview_store.register(data, mime_type),
        )
        self.upload_error = None
        self._reset_to_idle()
        logger.info(f"[{self.session_id}] Image selected: {self.image.name} ({self.image.size} bytes)")
        return validation

    def remove_image(self) -> None:
        self._abandon_in_flight()
        self._release_image()
        self.upload_error = None
        self._reset_to_idle()

    # =========================================================================
    # Transitions
    # =========================================================================

    def colorize(self) -> bool:
        """
        컬러화 시작 (실행 중인 이벤트 루프 필요).

        Returns:
            새 요청을 시작했으면 True. loading 중이거나 이미지가 없으면 False.
        """
        if self.state == GenerationState.LOADING:
            logger.debug(f"[{self.session_id}] Colorize ignored: already loading")
            return False

        if self.image is None:
            self.result = None
            self.error = ErrorState.from_failure(ColorizeFailure(
                message="Please upload a manga image before colorizing.",
                code=ErrorCodes.VALIDATION_ERROR,
                http_status=400,
            ))
            self.state = GenerationState.ERROR
            return False

        token = CancellationToken()
        self._token = token
        self.result = None
        self.error = None
        self.state = GenerationState.LOADING
        self.loading_started_at = self.clock()

        self._task = asyncio.create_task(self._run(token, self.image))
        logger.info(f"[{self.session_id}] Colorize started: {self.image.name}")
        return True

    def retry(self) -> bool:
        """error → loading. 재시도 불가 에러면 no-op."""
        if self.state != GenerationState.ERROR:
            return False
        if self.error is not None and not self.error.is_retryable:
            return False
        return self.colorize()

    def cancel(self) -> bool:
        """loading → idle. 전송 중인 요청은 중단, 늦은 응답은 폐기."""
        if self.state != GenerationState.LOADING:
            return False
        self._abandon_in_flight()
        self._reset_to_idle()
        logger.info(f"[{self.session_id}] Colorize cancelled")
        return True

    def dismiss(self) -> None:
        """any → idle (이미지는 유지)."""
        self._abandon_in_flight()
        self._reset_to_idle()

    def colorize_another(self) -> None:
        """success → idle, 이미지 유지."""
        if self.state == GenerationState.SUCCESS:
            self._reset_to_idle()

    def report_download_error(self, failure: ColorizeFailure) -> None:
        """다운로드 실패 표시. 결과와 상태는 유지."""
        self.download_error = ErrorState.from_failure(failure)

    def teardown(self) -> asyncio.Task | None:
        """
        세션 종료: 요청 중단 + 미리보기 해제.

        Returns:
            취소한 진행 중 태스크 (없으면 None). 종료 시 호출자가 await.
        """
        task = self._abandon_in_flight()
        self._release_image()
        self._reset_to_idle()
        return task

    async def wait(self) -> None:
        """진행 중인 요청 완료 대기 (취소된 경우 조용히 반환)."""
        task = self._task
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            if not task.cancelled():
                raise

    def loading_progress(self) -> LoadingProgress | None:
        if self.state != GenerationState.LOADING or self.loading_started_at is None:
            return None
        return build_loading_progress(
            self.clock() - self.loading_started_at,
            self.estimated_time,
        )

    # =========================================================================
    # Internal
    # =========================================================================

    async def _run(self, token: CancellationToken, image: UploadedImage) -> None:
        try:
            response = await self.relay_client.colorize(image)
        except asyncio.CancelledError:
            logger.info(f"[{self.session_id}] Relay call aborted")
            raise
        except Exception as e:
            logger.error(f"[{self.session_id}] Unexpected colorize error: {e}", exc_info=True)
            response = ColorizeFailure(
                message="An unexpected error occurred while colorizing your manga. Please try again.",
                code=ErrorCodes.UNEXPECTED_ERROR,
                http_status=500,
                details=str(e) or type(e).__name__,
            )
        self._complete(token, response)

    def _complete(self, token: CancellationToken, response: ColorizeResponse) -> bool:
        """응답 반영. 취소됐거나 현재 토큰이 아니면 폐기."""
        if token.cancelled or token is not self._token:
            logger.info(f"[{self.session_id}] Discarding stale colorize response")
            return False

        self._token = None
        self._task = None
        self.loading_started_at = None

        if isinstance(response, ColorizeSuccess):
            self.result = ColorizedResult.from_success(
                response,
                original=self.image,
                model_used=self.model_label,
                prompt_version=PROMPT_VERSION,
            )
            self.error = None
            self.state = GenerationState.SUCCESS
            logger.info(f"[{self.session_id}] Colorize succeeded in {response.processing_time_ms}ms")
        else:
            self.result = None
            self.error = ErrorState.from_failure(response)
            self.state = GenerationState.ERROR
            logger.info(f"[{self.session_id}] Colorize failed: {response.code} ({response.http_status})")
        return True

    def _abandon_in_flight(self) -> asyncio.Task | None:
        """진행 중 요청 취소. 취소한 태스크 반환."""
        if self._token is not None:
            self._token.cancel()
            self._token = None
        task = self._task
        self._task = None
        if task is not None and not task.done():
            task.cancel()
            return task
        return None

    def _release_image(self) -> None:
        if self.image is not None and self.image.preview is not None:
            self.image.preview.release()
        self.image = None

    def _reset_to_idle(self) -> None:
        self.state = GenerationState.IDLE
        self.result = None
        self.error = None
        self.download_error = None
        self.loading_started_at = None


# =============================================================================
# Registry
# =============================================================================

class SessionRegistry:
    """
    세션 id → ColorizeSession.

    마지막 접근 후 idle_timeout이 지난 세션은 접근 시점에 정리 (loading 중인 세션 제외).
    페이지 종료 beacon이 유실돼도 세션이 쌓이지 않음.
    """

    def __init__(
        self,
        factory: Callable[[str], ColorizeSession],
        idle_timeout: float = DEFAULT_SESSION_IDLE_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._factory = factory
        self.idle_timeout = idle_timeout
        self.clock = clock
        self._sessions: dict[str, ColorizeSession] = {}
        self._last_seen: dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self, session_id: str) -> ColorizeSession:
        """새 세션 생성 (같은 id가 있으면 그대로 반환)."""
        self.sweep()
        session = self._sessions.get(session_id)
        if session is None:
            session = self._factory(session_id)
            self._sessions[session_id] = session
            logger.info(f"[{session_id}] Session opened ({len(self._sessions)} active)")
        self._last_seen[session_id] = self.clock()
        return session

    def get(self, session_id: str) -> ColorizeSession | None:
        """살아 있는 세션 조회. 만료됐거나 없으면 None (생성하지 않음)."""
        self.sweep()
        session = self._sessions.get(session_id)
        if session is not None:
            self._last_seen[session_id] = self.clock()
        return session

    def sweep(self) -> int:
        """
        유휴 세션 정리.

        Returns:
            정리한 세션 수
        """
        now = self.clock()
        expired = [
            session_id
            for session_id, seen in self._last_seen.items()
            if now - seen > self.idle_timeout
            and self._sessions[session_id].state != GenerationState.LOADING
        ]
        for session_id in expired:
            logger.info(f"[{session_id}] Session expired after {self.idle_timeout:.0f}s idle")
            self.close(session_id)
        return len(expired)

    def close(self, session_id: str) -> asyncio.Task | None:
        """세션 제거 + teardown. 취소한 진행 중 태스크 반환."""
        self._last_seen.pop(session_id, None)
        session = self._sessions.pop(session_id, None)
        if session is None:
            return None
        return session.teardown()

    async def shutdown(self) -> None:
        """모든 세션 종료, 취소된 태스크가 끝날 때까지 대기."""
        tasks = [
            task
            for task in (self.close(session_id) for session_id in list(self._sessions))
            if task is not None
        ]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
