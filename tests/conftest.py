"""
Pytest fixtures for the colorizer tests.

테스트 구성:
- 외부 모델은 항상 FakeProvider 또는 MockTransport로 대체 (네트워크 호출 없음)
- 이미지 바이트는 Pillow로 즉석 생성
"""

import io
from pathlib import Path
from typing import Any

import pytest
import yaml
from PIL import Image

from src.app.providers.base import ColorizationOutput, ColorizeProvider

# =============================================================================
# Path Fixtures
# =============================================================================

@pytest.fixture
def project_root() -> Path:
    """프로젝트 루트 경로."""
    return Path(__file__).parent.parent


@pytest.fixture
def default_config_path(project_root: Path) -> Path:
    """default.yaml 경로."""
    return project_root / "default.yaml"


@pytest.fixture
def default_config(default_config_path: Path) -> dict:
    """기본 설정 로드."""
    with open(default_config_path, encoding="utf-8") as f:
        return yaml.safe_load(f)


# =============================================================================
# Image Fixtures
# =============================================================================

def make_image_bytes(
    image_format: str = "PNG",
    size: tuple[int, int] = (8, 8),
    mode: str = "L",
) -> bytes:
    """테스트용 이미지 바이트 (흑백 만화 대용)."""
    color: Any = 128 if mode == "L" else (200, 50, 50, 128)
    image = Image.new(mode, size, color)
    buffer = io.BytesIO()
    image.save(buffer, format=image_format)
    return buffer.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes("PNG")


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_image_bytes("JPEG")


@pytest.fixture
def rgba_png_bytes() -> bytes:
    return make_image_bytes("PNG", mode="RGBA")


# =============================================================================
# Provider Fixtures
# =============================================================================

class FakeProvider(ColorizeProvider):
    """
    호출 횟수를 세는 Provider.

    output 또는 error 중 하나를 돌려줌.
    """

    name = "fake"
    label = "Fake AI"
    supports_image_output = True

    def __init__(
        self,
        output: ColorizationOutput | None = None,
        error: Exception | None = None,
    ):
        self.model = "fake-model"
        self.output = output or ColorizationOutput(
            text="A vivid description.",
            provider=self.name,
            model_requested=self.model,
            model_used=self.model,
        )
        self.error = error
        self.calls: list[dict[str, Any]] = []

    async def colorize(
        self,
        image_bytes: bytes,
        mime_type: str,
        system_prompt: str,
        user_text: str,
    ) -> ColorizationOutput:
        self.calls.append({
            "image_bytes": image_bytes,
            "mime_type": mime_type,
            "system_prompt": system_prompt,
            "user_text": user_text,
        })
        if self.error is not None:
            raise self.error
        return self.output


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def test_config() -> dict:
    """테스트용 설정 (작은 업로드 상한)."""
    return {
        "ai": {
            "provider": "openrouter",
            "model": "test/model",
            "max_tokens": 256,
            "temperature": 0.7,
        },
        "upload": {
            "max_file_size": 1024,
        },
        "ui": {
            "estimated_time": 45,
        },
    }
