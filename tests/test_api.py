"""Tests for the async translation client.

WHY: The client is the only code that talks to the translation service.
If batching, authentication, or id filtering break, dual-language
subtitles silently lose lines or attach text to the wrong segment.

HOW: httpx.MockTransport stands in for the service. Its handler records
every request and answers with canned JSON. Coroutines are driven with
asyncio.run().

RULES:
- No network access; every request goes through MockTransport
- api_key is passed explicitly except where env loading is under test
"""

import asyncio
import json

import httpx
import pytest

from caption_studio.api.client import TranslationAPIError, TranslationClient
from caption_studio.api.models import TranslationItem, TranslationResult
from caption_studio.config import load_translation_api_key


def _echo_handler(requests):
    """Translate by upper-casing, recording each request."""

    def handler(request):
        requests.append(request)
        body = json.loads(request.content)
        items = [{"id": i["id"], "text": i["text"].upper()} for i in body["items"]]
        return httpx.Response(200, json={"items": items})

    return handler


def _translate(transport, items, batch_size=50):
    async def _run():
        async with TranslationClient(
            api_key="test-key",
            base_url="http://translate.test/v1",
            batch_size=batch_size,
            transport=transport,
        ) as client:
            return await client.translate_segments(items, source_language="en", target_language="fr")

    return asyncio.run(_run())


class TestTranslateSegments:

    def test_request_shape(self):
        requests = []
        results = _translate(httpx.MockTransport(_echo_handler(requests)), [("s1", "hello")])

        assert results == [TranslationResult(id="s1", text="HELLO")]
        assert len(requests) == 1
        request = requests[0]
        assert request.method == "POST"
        assert request.url.path == "/v1/translate"
        assert request.headers["Authorization"] == "Bearer test-key"
        assert json.loads(request.content) == {
            "source_language": "en",
            "target_language": "fr",
            "items": [{"id": "s1", "text": "hello"}],
        }

    def test_batches(self):
        requests = []
        items = [("s{}".format(i), "t{}".format(i)) for i in range(5)]
        results = _translate(httpx.MockTransport(_echo_handler(requests)), items, batch_size=2)

        assert [len(json.loads(r.content)["items"]) for r in requests] == [2, 2, 1]
        assert [r.id for r in results] == ["s0", "s1", "s2", "s3", "s4"]

    def test_empty_input_sends_nothing(self):
        requests = []
        assert _translate(httpx.MockTransport(_echo_handler(requests)), []) == []
        assert requests == []

    def test_unrequested_ids_dropped(self):
        def handler(request):
            return httpx.Response(200, json={"items": [
                {"id": "s1", "text": "un"},
                {"id": "intruder", "text": "x"},
            ]})

        results = _translate(httpx.MockTransport(handler), [("s1", "one")])
        assert results == [TranslationResult(id="s1", text="un")]

    def test_error_status_raises(self):
        def handler(request):
            return httpx.Response(401, text="bad key")

        with pytest.raises(TranslationAPIError) as exc_info:
            _translate(httpx.MockTransport(handler), [("s1", "one")])
        assert exc_info.value.status_code == 401
        assert exc_info.value.message == "bad key"

    def test_requires_context_manager(self):
        client = TranslationClient(api_key="k")
        with pytest.raises(RuntimeError):
            asyncio.run(client.translate_segments([("s1", "x")], "en", "fr"))


class TestModels:

    def test_item_to_dict(self):
        assert TranslationItem(id="a", text="b").to_dict() == {"id": "a", "text": "b"}

    def test_result_from_dict(self):
        assert TranslationResult.from_dict({"id": 7, "text": "x"}) == TranslationResult(id="7", text="x")

    def test_result_requires_fields(self):
        with pytest.raises(KeyError):
            TranslationResult.from_dict({"id": "a"})


class TestApiKey:

    def test_missing_key(self, monkeypatch):
        monkeypatch.delenv("TRANSLATION_API_KEY", raising=False)
        with pytest.raises(ValueError, match="TRANSLATION_API_KEY"):
            load_translation_api_key()

    def test_key_from_env(self, monkeypatch):
        monkeypatch.setenv("TRANSLATION_API_KEY", "  secret  ")
        assert load_translation_api_key() == "secret"

    def test_client_uses_env_key(self, monkeypatch):
        monkeypatch.setenv("TRANSLATION_API_KEY", "env-key")
        requests = []

        async def _run():
            async with TranslationClient(
                base_url="http://translate.test/v1",
                transport=httpx.MockTransport(_echo_handler(requests)),
            ) as client:
                await client.translate_segments([("s1", "x")], "en", "fr")

        asyncio.run(_run())
        assert requests[0].headers["Authorization"] == "Bearer env-key"
