"""Configuration constants, recognition options, and .env loading.

WHY: Centralizes all configurable values so they are easy to find,
update, and override. Segmentation thresholds, recognition options, and
translation endpoint defaults are plain data — not buried in logic.

HOW: python-dotenv loads the .env file on import. Constants are defined
as module-level values. The load_translation_api_key() function provides
a clear error when the key is missing.

RULES:
- DEFAULT_GAP_THRESHOLD is in seconds (2.0 unless overridden)
- RECOGNITION_LEVELS and RECOGNITION_LANGUAGES are forwarded opaquely
  to the OCR capability; only their membership is validated here
- API key is loaded from .env via python-dotenv, never hardcoded
- All defaults can be overridden via environment variables
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# Segmentation
# ---------------------------------------------------------------------------

DEFAULT_GAP_THRESHOLD = float(os.getenv("CAPTION_GAP_THRESHOLD", "2.0"))
"""Max seconds between consecutive same-text observations in one segment."""

DEFAULT_MAX_SEGMENT_CHARS = int(os.getenv("CAPTION_MAX_SEGMENT_CHARS", "80"))
"""Length fallback for sentence partitioning of transcript words."""

DEFAULT_LANGUAGE = os.getenv("CAPTION_DEFAULT_LANGUAGE", "en")

# Sampling step of the frame-sampled OCR producer (one frame per second).
DEFAULT_FRAME_INTERVAL = 1.0

# ---------------------------------------------------------------------------
# OCR recognition options
# ---------------------------------------------------------------------------

RECOGNITION_LEVELS: set[str] = {"fast", "accurate"}

RECOGNITION_LANGUAGES: set[str] = {
    "en-US", "fr-FR", "it-IT", "de-DE", "es-ES", "pt-BR",
    "zh-Hans", "zh-Hant", "ja-JP", "ko-KR", "ru-RU", "uk-UA",
}
"""Language tags understood by the OCR capability."""

DEFAULT_RECOGNITION_LEVEL = os.getenv("CAPTION_RECOGNITION_LEVEL", "accurate")
DEFAULT_RECOGNITION_LANGUAGE = os.getenv("CAPTION_RECOGNITION_LANGUAGE", "en-US")

# ---------------------------------------------------------------------------
# Translation service
# ---------------------------------------------------------------------------

TRANSLATION_BASE_URL = os.getenv("TRANSLATION_BASE_URL", "http://localhost:8080/v1")


def load_translation_api_key() -> str:
    """Load the translation service API key from the environment.

    RULES:
    - Raises ValueError if the key is missing or empty
    - Never returns a default/placeholder value
    """
    key = os.getenv("TRANSLATION_API_KEY", "").strip()
    if not key:
        raise ValueError(
            "Translation API key not configured. "
            "Add TRANSLATION_API_KEY to the .env file in the app folder."
        )
    return key
