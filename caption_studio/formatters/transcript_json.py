"""Structured transcript JSON formatter and decoder.

WHY: SRT loses word-level timing and confidence. The JSON form keeps
every word so a transcript can be saved, re-opened, and edited again
with nothing lost, and it reads like common speech-to-text output
(``word``/``start``/``end``/``probability``).

HOW: The encoder writes ``{text, segments, language}`` where each segment
carries its id, timing, text, optional translation, and words. Output is
validated against the packaged JSON schema before returning. The decoder
parses, validates against the same schema, and rebuilds
TranscriptSegments from the word lists.

RULES:
- Top-level ``text`` is all segment texts joined by one space
- Segment ``start``/``end``/``text`` are derived; the decoder trusts only
  ``words`` (and ``id``, when present)
- Decoding reproduces word values, order, and count exactly
- Any parse or schema failure raises TranscriptDecodeError
- Output suffix: ".json", pretty-printed UTF-8 (indent=2, no ASCII escaping)
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

import jsonschema

from caption_studio.core.errors import TranscriptDecodeError
from caption_studio.core.ir import Segment, Transcript, TranscriptSegment, Word, new_segment_id
from caption_studio.formatters.base import BaseFormatter, FormatterOutput

_SCHEMA_PATH = Path(__file__).resolve().parent.parent / "schemas" / "transcript.schema.json"

_CACHED_SCHEMA: dict[str, Any] | None = None


def _get_schema() -> dict[str, Any]:
    """Load the transcript JSON schema, cached after the first call."""
    global _CACHED_SCHEMA
    if _CACHED_SCHEMA is None:
        with open(_SCHEMA_PATH, encoding="utf-8") as f:
            _CACHED_SCHEMA = json.load(f)
    return _CACHED_SCHEMA


def _word_to_dict(word: Word) -> dict[str, Any]:
    return {
        "word": word.text,
        "start": word.start,
        "end": word.end,
        "probability": word.confidence,
    }


def _segment_to_dict(segment: Segment, translation: str | None) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": segment.id,
        "start": segment.start,
        "end": segment.end,
        "text": segment.text,
    }
    if translation is not None:
        data["translation"] = translation
    data["words"] = [_word_to_dict(w) for w in segment.words]
    return data


def transcript_to_dict(transcript: Transcript) -> dict[str, Any]:
    """Build the JSON-ready dict for a transcript (not yet validated)."""
    return {
        "text": " ".join(s.text for s in transcript.segments),
        "segments": [
            _segment_to_dict(s, transcript.translations.get(s.id))
            for s in transcript.segments
        ],
        "language": transcript.language,
    }


@dataclass
class DecodedTranscript:
    """Result of decoding transcript JSON."""

    language: str
    segments: List[TranscriptSegment]
    translations: Dict[str, str] = field(default_factory=dict)


def decode_transcript_json(content: str | bytes) -> DecodedTranscript:
    """Parse transcript JSON back into editable segments.

    Raises:
        TranscriptDecodeError: Invalid JSON, schema mismatch, or
            duplicate segment ids.
    """
    try:
        data = json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise TranscriptDecodeError("Transcript is not valid JSON: {}".format(e)) from e

    try:
        jsonschema.validate(instance=data, schema=_get_schema())
    except jsonschema.ValidationError as e:
        raise TranscriptDecodeError("Transcript does not match schema: {}".format(e.message)) from e

    segments: List[TranscriptSegment] = []
    translations: Dict[str, str] = {}
    seen_ids = set()
    for raw in data["segments"]:
        segment_id = raw.get("id") or new_segment_id()
        if segment_id in seen_ids:
            raise TranscriptDecodeError("Duplicate segment id: {}".format(segment_id))
        seen_ids.add(segment_id)
        words = tuple(
            Word(
                text=w["word"],
                start=float(w["start"]),
                end=float(w["end"]),
                confidence=float(w["probability"]),
            )
            for w in raw["words"]
        )
        segments.append(TranscriptSegment(words=words, id=segment_id))
        if "translation" in raw:
            translations[segment_id] = raw["translation"]

    return DecodedTranscript(
        language=data["language"],
        segments=segments,
        translations=translations,
    )


class JSONFormatter(BaseFormatter):
    """Formatter that produces word-level transcript JSON.

    Raises jsonschema.ValidationError if the generated JSON does not
    conform to the packaged schema.
    """

    @property
    def name(self) -> str:
        return "Transcript JSON"

    def format(self, transcript: Transcript) -> List[FormatterOutput]:
        output = transcript_to_dict(transcript)
        jsonschema.validate(instance=output, schema=_get_schema())
        content = json.dumps(output, indent=2, ensure_ascii=False)
        return [
            FormatterOutput(
                suffix=".json",
                content=content,
                media_type="application/json",
            )
        ]
