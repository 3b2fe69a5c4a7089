"""
test_ui_flow.py - 컬러화 화면 E2E 테스트

흐름: 페이지 → 업로드(미리보기) → 컬러화 → 결과/에러 → 다운로드
UI는 프로세스 내 Relay(ASGITransport)를 거쳐 FakeProvider를 호출.
"""

import asyncio
import re
import time

import pytest
from fastapi.testclient import TestClient

from conftest import FakeProvider, make_image_bytes
from src.app.main import app
from src.app.providers.base import ColorizationOutput, ProviderError
from src.app.routes.colorize import get_relay
from src.app.services.relay import ColorizeRelay
from src.domain.errors import ErrorCodes
from src.domain.schemas import GenerationState

SESSION_ID = "e2e-session"

# =============================================================================
# Fixtures
# =============================================================================


class SlowProvider(FakeProvider):
    """취소 테스트용: 응답을 오래 붙잡고 있음."""

    async def colorize(self, *args, **kwargs):
        await asyncio.sleep(30)
        return await super().colorize(*args, **kwargs)


@pytest.fixture
def client():
    with TestClient(app) as client:
        client.app.state.sessions.create(SESSION_ID)
        yield client
    app.dependency_overrides.clear()


def use_provider(provider) -> None:
    app.dependency_overrides[get_relay] = lambda: ColorizeRelay(
        api_key="sk-test",
        config={"ai": {"provider": "openrouter", "model": "test/model"}},
        provider_factory=lambda api_key, ai_config: provider,
    )


def image_provider() -> FakeProvider:
    return FakeProvider(output=ColorizationOutput(
        text="Colored.",
        image_bytes=make_image_bytes("PNG", mode="RGBA"),
        image_mime_type="image/png",
        model_used="fake-model",
    ))


def upload(client, data: bytes | None = None, name: str = "page.png", mime_type: str = "image/png"):
    return client.post(
        "/ui/upload",
        data={"session_id": SESSION_ID},
        files={"mangaImage": (name, data or make_image_bytes(), mime_type)},
    )


def wait_until_settled(client, timeout: float = 5.0):
    """loading이 끝날 때까지 대기."""
    session = client.app.state.sessions.get(SESSION_ID)
    deadline = time.monotonic() + timeout
    while session.state == GenerationState.LOADING and time.monotonic() < deadline:
        time.sleep(0.02)
    return session


# =============================================================================
# Page
# =============================================================================


class TestPage:
    """메인 화면."""

    def test_index_loads(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert "Manga Colorizer" in response.text
        assert 'name="mangaImage"' in response.text

    def test_colorize_disabled_without_image(self, client):
        response = client.get("/")

        assert "disabled" in response.text

    def test_index_opens_session(self, client):
        response = client.get("/")

        session_id = re.search(r'name="session_id" value="([^"]+)"', response.text).group(1)
        assert client.app.state.sessions.get(session_id) is not None
        assert len(client.app.state.sessions) == 2

    def test_index_reuses_live_session(self, client):
        response = client.get("/", params={"session_id": SESSION_ID})

        assert f'value="{SESSION_ID}"' in response.text
        assert len(client.app.state.sessions) == 1


class TestUnknownSession:
    """모르는/만료된 session_id는 세션을 만들지 않음."""

    def test_status_poll_does_not_create(self, client):
        response = client.get("/ui/status", params={"session_id": "forged-id"})

        assert response.status_code == 404
        assert response.headers["hx-redirect"] == "/"
        assert client.app.state.sessions.get("forged-id") is None
        assert len(client.app.state.sessions) == 1

    @pytest.mark.parametrize("path", [
        "/ui/remove", "/ui/colorize", "/ui/cancel", "/ui/retry", "/ui/dismiss", "/ui/another",
    ])
    def test_transitions_reject_unknown(self, client, path):
        response = client.post(path, data={"session_id": "forged-id"})

        assert response.status_code == 404
        assert len(client.app.state.sessions) == 1

    def test_upload_rejects_unknown(self, client, png_bytes):
        response = client.post(
            "/ui/upload",
            data={"session_id": "forged-id"},
            files={"mangaImage": ("page.png", png_bytes, "image/png")},
        )

        assert response.status_code == 404
        assert len(client.app.state.preview_store) == 0

    def test_download_redirects_home(self, client):
        response = client.get(
            "/ui/download",
            params={"session_id": "forged-id"},
            follow_redirects=False,
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/"
        assert len(client.app.state.sessions) == 1


# =============================================================================
# Upload
# =============================================================================


class TestUpload:
    """업로드 + 미리보기."""

    def test_preview_served(self, client, png_bytes):
        upload(client, png_bytes)
        session = client.app.state.sessions.get(SESSION_ID)

        response = client.get(session.image.preview_url)

        assert response.status_code == 200
        assert response.content == png_bytes
        assert response.headers["cache-control"] == "no-store"

    def test_invalid_type_message(self, client):
        response = upload(client, b"GIF89a", name="anim.gif", mime_type="image/gif")

        assert "Please select a valid image file (JPG, PNG, or WebP)" in response.text

    def test_remove_revokes_preview(self, client):
        upload(client)
        preview_url = client.app.state.sessions.get(SESSION_ID).image.preview_url

        client.post("/ui/remove", data={"session_id": SESSION_ID})

        assert client.get(preview_url).status_code == 404


# =============================================================================
# Colorize
# =============================================================================


class TestColorizeFlow:
    """컬러화 → 결과 / 에러."""

    def test_success_and_download(self, client):
        use_provider(image_provider())
        upload(client)

        response = client.post("/ui/colorize", data={"session_id": SESSION_ID})
        assert response.status_code == 200

        session = wait_until_settled(client)
        assert session.state == GenerationState.SUCCESS

        panel = client.get("/ui/status", params={"session_id": SESSION_ID})
        assert "Colorized result" in panel.text

        download = client.get("/ui/download", params={"session_id": SESSION_ID, "format": "jpeg"})
        assert download.status_code == 200
        assert download.headers["content-type"] == "image/jpeg"
        assert "manga-colorized-" in download.headers["content-disposition"]
        assert download.content[:3] == b"\xff\xd8\xff"

    def test_text_only_model_shows_error(self, client):
        use_provider(FakeProvider())
        upload(client)

        client.post("/ui/colorize", data={"session_id": SESSION_ID})
        session = wait_until_settled(client)

        assert session.state == GenerationState.ERROR
        assert session.error.code == ErrorCodes.MISSING_IMAGE_DATA

    def test_rate_limit_then_retry(self, client):
        use_provider(FakeProvider(error=ProviderError(
            ErrorCodes.RATE_LIMIT_EXCEEDED,
            "Rate limit exceeded. Please try again later.",
            status=429,
        )))
        upload(client)

        client.post("/ui/colorize", data={"session_id": SESSION_ID})
        session = wait_until_settled(client)
        assert session.error.code == ErrorCodes.RATE_LIMIT_EXCEEDED

        panel = client.get("/ui/status", params={"session_id": SESSION_ID})
        assert "Try again" in panel.text

        use_provider(image_provider())
        client.post("/ui/retry", data={"session_id": SESSION_ID})
        session = wait_until_settled(client)

        assert session.state == GenerationState.SUCCESS

    def test_cancel_returns_to_idle(self, client):
        use_provider(SlowProvider())
        upload(client)

        client.post("/ui/colorize", data={"session_id": SESSION_ID})
        response = client.post("/ui/cancel", data={"session_id": SESSION_ID})

        session = client.app.state.sessions.get(SESSION_ID)
        assert response.status_code == 200
        assert session.state == GenerationState.IDLE
        assert session.image is not None

    def test_download_without_result_redirects(self, client):
        upload(client)

        response = client.get(
            "/ui/download",
            params={"session_id": SESSION_ID},
            follow_redirects=False,
        )

        assert response.status_code == 303
        assert response.headers["location"] == f"/?session_id={SESSION_ID}"

    def test_close_session(self, client):
        upload(client)
        preview_url = client.app.state.sessions.get(SESSION_ID).image.preview_url

        response = client.post("/ui/close", data={"session_id": SESSION_ID})

        assert response.status_code == 204
        assert client.app.state.sessions.get(SESSION_ID) is None
        assert client.get(preview_url).status_code == 404
