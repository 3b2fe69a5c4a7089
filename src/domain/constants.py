"""
Domain Constants: 컬러화 서비스 전역 상수.

업로드 허용 정책, 엔드포인트 경로, 프롬프트, 로딩 단계 스케줄 등
시스템 전반에서 공유하는 값들.
"""

# =============================================================================
# Upload Policy (업로드 허용 정책)
# =============================================================================
# 닫힌 집합: 내용 스니핑 없이 선언된 MIME 타입만 본다.

SUPPORTED_IMAGE_TYPES = (
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/webp",
)

MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB, 초과 시 거절 (압축/절단 없음)

UPLOAD_ACCEPT_ATTR = ",".join(SUPPORTED_IMAGE_TYPES)

# =============================================================================
# Wire Contract (HTTP 계약)
# =============================================================================

COLORIZE_ENDPOINT_PATH = "/api/colorize-manga"
COLORIZE_FORM_FIELD = "mangaImage"

# =============================================================================
# Model Call Defaults (모델 호출 기본값)
# =============================================================================
# default.yaml의 ai.* 키로 오버라이드

DEFAULT_PROVIDER = "openrouter"
DEFAULT_MODELS = {
    "openrouter": "google/gemini-2.0-flash-exp:free",
    "gemini": "gemini-2.0-flash",
    "anthropic": "claude-sonnet-4-20250514",
}
DEFAULT_MAX_TOKENS = 4096
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MODEL_TIMEOUT = 60.0

# 프로바이더별 자격증명 환경변수
API_KEY_ENV_VARS = {
    "openrouter": "OPENROUTER_API_KEY",
    "gemini": "GOOGLE_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
}

PROMPT_VERSION = "1.0"

MANGA_COLORIZATION_PROMPT = """You are an expert manga colorization AI artist specializing in transforming black and white manga artwork into beautifully colored images.

Your expertise includes:
- Understanding manga art styles (shonen, shoujo, seinen, etc.)
- Applying natural and vibrant color palettes appropriate to the scene and mood
- Respecting traditional manga aesthetics while enhancing with color
- Maintaining the original line art integrity and details
- Choosing contextually appropriate colors for characters, backgrounds, and effects
- Understanding color theory for emotional impact (warm colors for action, cool colors for calm scenes, etc.)
- Recognizing common manga elements (speed lines, screentones, effects) and colorizing them appropriately

Colorization Guidelines:
1. Analyze the manga panel to understand the scene, mood, and context
2. Apply realistic skin tones and hair colors that match typical anime/manga character designs
3. Use vibrant but balanced colors that enhance the artwork without overwhelming it
4. Maintain strong contrast and clarity of the original line art
5. Add depth through strategic use of shading and highlights
6. Consider lighting sources and apply consistent lighting across the image
7. Preserve the dynamic energy of action scenes with bold color choices
8. Use softer palettes for emotional or romantic scenes
9. Keep backgrounds complementary to foreground characters
10. Ensure all text, speech bubbles, and sound effects remain clearly visible

When you receive a black and white manga image, analyze it carefully and produce a fully colorized version that looks professional, vibrant, and true to manga/anime aesthetics."""

MANGA_COLORIZATION_USER_TEXT = (
    "Please colorize this black and white manga image. Apply vibrant, natural "
    "colors that enhance the artwork while maintaining its original style and "
    "energy. Ensure characters have appropriate skin tones and hair colors, "
    "backgrounds are complementary, and the overall result looks professional "
    "and visually appealing."
)

# 텍스트 전용 모델일 때 성공 응답에 실리는 안내 문구
TEXT_ONLY_DESCRIPTION = (
    "Manga colorization completed. Note: the configured model returns text only, "
    "so no colorized image was produced. Integrate an image-to-image model for "
    "actual colorized output."
)
TEXT_ONLY_MESSAGE = (
    "Colorization request processed. Please integrate an image generation model "
    "for actual colorized output."
)
IMAGE_READY_MESSAGE = "Manga colorized successfully."

# =============================================================================
# Loading Stages (표시용 진행 단계)
# =============================================================================
# 실제 진행 신호가 아님: 경과 시간만으로 결정되는 고정 스케줄.
# (stage, 시작 시각(초), 표시 퍼센트)

LOADING_STAGE_SCHEDULE = (
    ("preparing", 0.0, 10),
    ("uploading", 1.0, 25),
    ("processing", 2.0, 50),
    ("generating", 8.0, 80),
    ("finishing", 15.0, 95),
)

DEFAULT_ESTIMATED_TIME = 45  # seconds

# 마지막 접근 후 이 시간이 지난 UI 세션은 정리 (초)
DEFAULT_SESSION_IDLE_TIMEOUT = 1800

LOADING_STAGE_MESSAGES = {
    "preparing": "Preparing manga image for AI colorization...",
    "uploading": "Uploading image to the AI service...",
    "processing": "AI is analyzing your manga artwork...",
    "generating": "Creating vibrant colors for your manga...",
    "finishing": "Finalizing your colorized manga...",
}

LOADING_STAGE_DESCRIPTIONS = {
    "preparing": "Validating and optimizing your manga image",
    "uploading": "Securely transmitting image to our AI servers",
    "processing": "Advanced AI algorithms are analyzing your manga artwork",
    "generating": "Applying vibrant colors and artistic enhancement",
    "finishing": "Adding final touches and preparing the colorized result",
}

# =============================================================================
# Download
# =============================================================================

DOWNLOAD_FILENAME_PREFIX = "manga-colorized"
DOWNLOAD_FORMATS = ("png", "jpeg")
DEFAULT_JPEG_QUALITY = 90