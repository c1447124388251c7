"""Async HTTP client for a machine-translation service.

WHY: Dual-language subtitles need a translation for every segment.
Translation runs on an external service, and results may come back after
the user has already split or merged segments, so every request carries
the segment id as a correlation identifier.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. TranslationClient is
an async context manager — enter it to get an authenticated client, exit
to close the connection pool. translate_segments() sends batches to
POST /translate and returns the results keyed by id.

RULES:
- Always use the async context manager (async with TranslationClient() as client:)
- Requests are batched (DEFAULT_BATCH_SIZE items per call)
- Non-2xx responses raise TranslationAPIError; no automatic retry
- Results whose id was not requested are discarded
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Tuple

import httpx

from caption_studio.api.models import TranslationItem, TranslationResult
from caption_studio.config import TRANSLATION_BASE_URL, load_translation_api_key

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 50


class TranslationAPIError(Exception):
    """Raised when the translation service returns an error response.

    RULES:
    - Always include status_code and message
    - message is the response body text or a summary
    """

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"Translation API error {status_code}: {message}")


class TranslationClient:
    """Async client for the translation service.

    RULES:
    - Use as: async with TranslationClient() as client: ...
    - api_key defaults to load_translation_api_key() from .env
    - base_url defaults to TRANSLATION_BASE_URL from config
    - transport is for tests (httpx.MockTransport)
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_key = api_key or load_translation_api_key()
        self._base_url = (base_url or TRANSLATION_BASE_URL).rstrip("/")
        self._batch_size = batch_size
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> TranslationClient:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"Authorization": f"Bearer {self._api_key}"},
            timeout=httpx.Timeout(60.0, connect=10.0),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError(
                "TranslationClient must be used as an async context manager: "
                "async with TranslationClient() as client: ..."
            )
        return self._client

    async def translate_segments(
        self,
        items: Iterable[Tuple[str, str]],
        source_language: str,
        target_language: str,
    ) -> List[TranslationResult]:
        """Translate (segment_id, text) pairs.

        Args:
            items: Pairs of segment id and source text.
            source_language: Language tag of the source text.
            target_language: Language tag to translate into.

        Returns:
            TranslationResults for the requested ids, in response order.
        """
        client = self._ensure_client()
        pending = [TranslationItem(id=i, text=t) for i, t in items]
        results: List[TranslationResult] = []

        for offset in range(0, len(pending), self._batch_size):
            batch = pending[offset:offset + self._batch_size]
            requested = {item.id for item in batch}
            body = {
                "source_language": source_language,
                "target_language": target_language,
                "items": [item.to_dict() for item in batch],
            }
            resp = await client.post("/translate", json=body)
            if resp.status_code != 200:
                raise TranslationAPIError(resp.status_code, resp.text)

            for raw in resp.json().get("items", []):
                result = TranslationResult.from_dict(raw)
                if result.id not in requested:
                    logger.warning("Ignoring translation for unrequested id %s", result.id)
                    continue
                results.append(result)

        logger.info(
            "Translated %d of %d segments (%s → %s)",
            len(results), len(pending), source_language, target_language,
        )
        return results
