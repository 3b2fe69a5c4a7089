"""
AI Provider Abstraction.

외부 모델 교체 가능하게 설계.
모델명/파라미터는 config(ai.*)만 SSOT, 자격증명은 호출자가 주입.
"""

from typing import Any

from src.domain.constants import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_MODEL_TIMEOUT,
    DEFAULT_MODELS,
    DEFAULT_PROVIDER,
    DEFAULT_TEMPERATURE,
)

from .anthropic import ClaudeColorizeProvider
from .base import (
    ColorizationOutput,
    ColorizeProvider,
    ProviderError,
    classify_error_message,
)
from .gemini import GeminiColorizeProvider
from .openrouter import OpenRouterProvider

PROVIDERS: dict[str, type[ColorizeProvider]] = {
    "openrouter": OpenRouterProvider,
    "gemini": GeminiColorizeProvider,
    "anthropic": ClaudeColorizeProvider,
}


def create_provider(api_key: str, ai_config: dict[str, Any] | None = None) -> ColorizeProvider:
    """
    config의 ai 섹션으로 Provider 생성.

    Args:
        api_key: 외부 API 자격증명 (비어 있으면 안 됨, Relay가 먼저 확인)
        ai_config: config["ai"]

    Raises:
        ValueError: 알 수 없는 provider 이름
    """
    ai_config = ai_config or {}
    name = ai_config.get("provider", DEFAULT_PROVIDER)
    if name not in PROVIDERS:
        raise ValueError(f"Unknown AI provider: {name!r}")

    kwargs: dict[str, Any] = {
        "api_key": api_key,
        "model": ai_config.get("model") or DEFAULT_MODELS[name],
        "max_tokens": int(ai_config.get("max_tokens", DEFAULT_MAX_TOKENS)),
        "temperature": float(ai_config.get("temperature", DEFAULT_TEMPERATURE)),
    }
    if name in ("openrouter", "anthropic"):
        kwargs["timeout"] = float(ai_config.get("timeout", DEFAULT_MODEL_TIMEOUT))
    if name == "openrouter" and ai_config.get("base_url"):
        kwargs["base_url"] = ai_config["base_url"]

    return PROVIDERS[name](**kwargs)


__all__ = [
    "ColorizeProvider",
    "ColorizationOutput",
    "ProviderError",
    "classify_error_message",
    "OpenRouterProvider",
    "GeminiColorizeProvider",
    "ClaudeColorizeProvider",
    "PROVIDERS",
    "create_provider",
]
