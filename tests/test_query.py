"""Tests for keyword search and playhead lookup over segment lists."""

from caption_studio.core.ir import Observation, VisualSegment
from caption_studio.core.query import search_segments, segment_at
from caption_studio.core.segmenter import segment_observations


class TestSearchSegments:

    def test_case_insensitive_substring(self, loaded_document):
        matches = search_segments(loaded_document.segments, "TODAY")
        assert [s.text for s in matches] == ["How are you today?"]

    def test_preserves_order(self, sample_observations):
        segments = segment_observations(sample_observations)
        matches = search_segments(segments, "welcome")
        assert [s.start for s in matches] == [0.0, 6.0]

    def test_empty_keyword_matches_nothing(self, loaded_document):
        assert search_segments(loaded_document.segments, "") == []
        assert search_segments(loaded_document.segments, "   ") == []

    def test_no_match(self, loaded_document):
        assert search_segments(loaded_document.segments, "goodbye") == []


class TestSegmentAt:

    def test_inside_and_on_edges(self, loaded_document):
        first, second = loaded_document.segments
        assert segment_at(loaded_document.segments, 0.5) == first
        assert segment_at(loaded_document.segments, 0.12) == first
        assert segment_at(loaded_document.segments, 1.78) == second

    def test_between_segments(self, loaded_document):
        assert segment_at(loaded_document.segments, 1.0) is None

    def test_visual_segment_instant(self):
        segment = VisualSegment(text="x", observations=(Observation("x", 3.0),))
        assert segment_at([segment], 3.0) is segment
        assert segment_at([segment], 3.1) is None
