"""Translation API client package — async HTTP interface to a translation service.

WHY: Dual-language subtitles need translated text per segment. This
package encapsulates all translation-service communication behind an
async client class.

RULES:
- All HTTP calls go through TranslationClient (no direct httpx usage elsewhere)
- Authentication is via Bearer token from config
"""

from caption_studio.api.client import TranslationAPIError, TranslationClient
from caption_studio.api.models import TranslationItem, TranslationResult

__all__ = ["TranslationAPIError", "TranslationClient", "TranslationItem", "TranslationResult"]
