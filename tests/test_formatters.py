"""Unit tests for all formatter modules.

WHY: Each formatter turns the segment list into a file someone else will
load. A wrong timestamp carry, a swapped dual-language line, or JSON
that does not decode back produces subtitles that drift, confuse
viewers, or lose edits.

HOW: Tests run each formatter against small hand-built transcripts:
  - SRT: exact cue text, timestamp rounding and carry, normalization
  - Dual SRT: translation line first, original-only fallback
  - JSON: schema validation, exact decode round trip, decode errors
  - Plain text: one line per segment, indented translation

RULES:
- Schema validation uses the packaged transcript.schema.json
- Decoded segments are compared by value (frozen dataclasses)
"""

import json
from pathlib import Path

import jsonschema
import pytest

from caption_studio.core.errors import TranscriptDecodeError
from caption_studio.core.ir import (
    Observation,
    Transcript,
    TranscriptSegment,
    VisualSegment,
    Word,
)
from caption_studio.core.segmenter import segment_observations
from caption_studio.formatters import FORMATTERS
from caption_studio.formatters.base import normalize_text
from caption_studio.formatters.plain_text import PlainTextFormatter
from caption_studio.formatters.srt import DualSRTFormatter, SRTFormatter, format_srt_time
from caption_studio.formatters.transcript_json import (
    JSONFormatter,
    decode_transcript_json,
)

SCHEMA_PATH = Path(__file__).resolve().parent.parent / "caption_studio" / "schemas" / "transcript.schema.json"


def _load_schema():
    with open(SCHEMA_PATH) as f:
        return json.load(f)


def _visual(text, start, end):
    return VisualSegment(text=text, observations=(Observation(text, start), Observation(text, end)))


def _content(formatter, transcript):
    outputs = formatter.format(transcript)
    assert len(outputs) == 1
    return outputs[0].content


# ---------------------------------------------------------------------------
# SRT timestamps
# ---------------------------------------------------------------------------


class TestSRTTime:
    """format_srt_time() renders HH:MM:SS,mmm with carry."""

    @pytest.mark.parametrize("seconds, expected", [
        (0.0, "00:00:00,000"),
        (1.234, "00:00:01,234"),
        (2.5, "00:00:02,500"),
        (3661.5, "01:01:01,500"),
        (59.9996, "00:01:00,000"),
        (3599.9999, "01:00:00,000"),
        (-0.5, "00:00:00,000"),
    ])
    def test_values(self, seconds, expected):
        assert format_srt_time(seconds) == expected

    def test_hours_beyond_two_digits(self):
        assert format_srt_time(360000.0) == "100:00:00,000"


# ---------------------------------------------------------------------------
# SRT
# ---------------------------------------------------------------------------


class TestSRTFormatter:
    """Single-language SubRip output."""

    def test_exact_cue(self):
        transcript = Transcript(segments=[_visual("hello  world", 1.234, 2.5)])
        assert _content(SRTFormatter(), transcript) == "1\n00:00:01,234 --> 00:00:02,500\nhello world\n\n"

    def test_indices_and_order(self, loaded_document):
        content = _content(SRTFormatter(), loaded_document.to_transcript())
        assert content == (
            "1\n00:00:00,120 --> 00:00:00,940\nHow are you today?\n\n"
            "2\n00:00:01,200 --> 00:00:01,780\nI am fine.\n\n"
        )

    def test_text_trimmed(self):
        transcript = Transcript(segments=[_visual("  padded\ttext ", 0.0, 1.0)])
        assert "\npadded text\n" in _content(SRTFormatter(), transcript)

    def test_ignores_translations(self, loaded_document):
        loaded_document.apply_translation(loaded_document.segments[0].id, "Bonjour")
        assert "Bonjour" not in _content(SRTFormatter(), loaded_document.to_transcript())

    def test_empty_transcript(self):
        assert _content(SRTFormatter(), Transcript(segments=[])) == ""

    def test_output_metadata(self):
        output = SRTFormatter().format(Transcript(segments=[]))[0]
        assert output.suffix == ".srt"
        assert output.media_type == "application/x-subrip"


class TestDualSRTFormatter:
    """Translated line over original line."""

    def test_translation_first(self):
        segment = _visual("hello world", 1.0, 2.0)
        transcript = Transcript(segments=[segment], translations={segment.id: "bonjour le monde"})
        assert _content(DualSRTFormatter(), transcript) == (
            "1\n00:00:01,000 --> 00:00:02,000\nbonjour le monde\nhello world\n\n"
        )

    def test_missing_translation_falls_back(self):
        first = _visual("one", 0.0, 1.0)
        second = _visual("two", 2.0, 3.0)
        transcript = Transcript(segments=[first, second], translations={second.id: "deux"})
        content = _content(DualSRTFormatter(), transcript)
        assert content == (
            "1\n00:00:00,000 --> 00:00:01,000\none\n\n"
            "2\n00:00:02,000 --> 00:00:03,000\ndeux\ntwo\n\n"
        )

    def test_blank_translation_ignored(self):
        segment = _visual("one", 0.0, 1.0)
        transcript = Transcript(segments=[segment], translations={segment.id: "   "})
        assert _content(DualSRTFormatter(), transcript) == "1\n00:00:00,000 --> 00:00:01,000\none\n\n"

    def test_output_suffix(self):
        assert DualSRTFormatter().format(Transcript(segments=[]))[0].suffix == "-dual.srt"


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------


class TestJSONFormatter:
    """Word-level transcript JSON and its decoder."""

    def test_schema_validation(self, loaded_document):
        data = json.loads(_content(JSONFormatter(), loaded_document.to_transcript()))
        jsonschema.validate(instance=data, schema=_load_schema())

    def test_top_level_fields(self, loaded_document):
        data = json.loads(_content(JSONFormatter(), loaded_document.to_transcript()))
        assert data["text"] == "How are you today? I am fine."
        assert data["language"] == "en"
        assert len(data["segments"]) == 2

    def test_word_fields(self, loaded_document):
        data = json.loads(_content(JSONFormatter(), loaded_document.to_transcript()))
        assert data["segments"][0]["words"][0] == {
            "word": "How", "start": 0.12, "end": 0.25, "probability": 0.97,
        }

    def test_translation_included(self, loaded_document):
        first = loaded_document.segments[0].id
        loaded_document.apply_translation(first, "Comment ça va ?")
        data = json.loads(_content(JSONFormatter(), loaded_document.to_transcript()))
        assert data["segments"][0]["translation"] == "Comment ça va ?"
        assert "translation" not in data["segments"][1]

    def test_non_ascii_not_escaped(self):
        segment = TranscriptSegment(words=(Word("café", 0.0, 1.0),))
        content = _content(JSONFormatter(), Transcript(segments=[segment], language="fr"))
        assert "café" in content

    def test_visual_segments_encode(self, sample_observations):
        transcript = Transcript(segments=segment_observations(sample_observations), language="en")
        data = json.loads(_content(JSONFormatter(), transcript))
        assert [s["text"] for s in data["segments"]] == ["Welcome", "Chapter 1", "Welcome"]
        assert data["segments"][0]["words"] == [
            {"word": "Welcome", "start": 0.0, "end": 1.0, "probability": 1.0},
        ]

    def test_visual_segments_decode_to_same_text(self, sample_observations):
        visual = segment_observations(sample_observations)
        decoded = decode_transcript_json(_content(JSONFormatter(), Transcript(segments=visual)))
        assert [(s.id, s.text, s.start, s.end) for s in decoded.segments] == [
            (s.id, s.text, s.start, s.end) for s in visual
        ]

    def test_round_trip_is_exact(self, loaded_document):
        first = loaded_document.segments[0].id
        loaded_document.apply_translation(first, "Comment vas-tu ?")
        transcript = loaded_document.to_transcript()

        decoded = decode_transcript_json(_content(JSONFormatter(), transcript))

        assert decoded.language == "en"
        assert tuple(decoded.segments) == loaded_document.segments
        assert decoded.translations == {first: "Comment vas-tu ?"}

    def test_output_metadata(self):
        output = JSONFormatter().format(Transcript(segments=[]))[0]
        assert output.suffix == ".json"
        assert output.media_type == "application/json"


class TestDecodeTranscriptJSON:
    """decode_transcript_json() rejects anything it cannot rebuild."""

    def _minimal(self, **segment):
        base = {
            "start": 0.0, "end": 1.0, "text": "hi",
            "words": [{"word": "hi", "start": 0.0, "end": 1.0, "probability": 0.9}],
        }
        base.update(segment)
        return {"text": "hi", "language": "en", "segments": [base]}

    def test_missing_id_generates_one(self):
        decoded = decode_transcript_json(json.dumps(self._minimal()))
        assert decoded.segments[0].id
        assert decoded.segments[0].text == "hi"

    def test_accepts_bytes(self):
        decoded = decode_transcript_json(json.dumps(self._minimal()).encode("utf-8"))
        assert len(decoded.segments) == 1

    def test_invalid_json(self):
        with pytest.raises(TranscriptDecodeError):
            decode_transcript_json("{not json")

    def test_schema_mismatch(self):
        data = self._minimal()
        del data["language"]
        with pytest.raises(TranscriptDecodeError, match="schema"):
            decode_transcript_json(json.dumps(data))

    def test_segment_without_words(self):
        with pytest.raises(TranscriptDecodeError):
            decode_transcript_json(json.dumps(self._minimal(words=[])))

    def test_probability_out_of_range(self):
        words = [{"word": "hi", "start": 0.0, "end": 1.0, "probability": 1.5}]
        with pytest.raises(TranscriptDecodeError):
            decode_transcript_json(json.dumps(self._minimal(words=words)))

    def test_duplicate_ids(self):
        data = self._minimal(id="dup")
        data["segments"].append(dict(data["segments"][0]))
        with pytest.raises(TranscriptDecodeError, match="Duplicate"):
            decode_transcript_json(json.dumps(data))


# ---------------------------------------------------------------------------
# Plain text
# ---------------------------------------------------------------------------


class TestPlainTextFormatter:
    """One line per segment, translation indented beneath."""

    def test_lines(self, loaded_document):
        content = _content(PlainTextFormatter(), loaded_document.to_transcript())
        assert content == "How are you today?\nI am fine.\n"

    def test_translation_indented(self, loaded_document):
        loaded_document.apply_translation(loaded_document.segments[1].id, "Je vais bien.")
        content = _content(PlainTextFormatter(), loaded_document.to_transcript())
        assert content == "How are you today?\nI am fine.\n  Je vais bien.\n"

    def test_empty(self):
        assert _content(PlainTextFormatter(), Transcript(segments=[])) == ""

    def test_output_suffix(self):
        assert PlainTextFormatter().format(Transcript(segments=[]))[0].suffix == ".txt"


class TestRegistry:

    def test_keys(self):
        assert set(FORMATTERS) == {"srt", "dual_srt", "json", "plain_text"}

    def test_names_are_strings(self):
        for formatter_cls in FORMATTERS.values():
            assert isinstance(formatter_cls().name, str)

    def test_every_format_returns_one_output_and_leaves_transcript(self, loaded_document):
        loaded_document.apply_translation(loaded_document.segments[0].id, "Comment vas-tu ?")
        transcript = loaded_document.to_transcript("talk.json")
        before = (list(transcript.segments), dict(transcript.translations))
        for key, formatter_cls in FORMATTERS.items():
            outputs = formatter_cls().format(transcript)
            assert len(outputs) == 1, key
            assert outputs[0].suffix[0] in ".-", key
        assert (list(transcript.segments), dict(transcript.translations)) == before

    def test_normalize_text(self):
        assert normalize_text("  two\t words \n") == "two words"
