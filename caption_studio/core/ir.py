"""Intermediate representation dataclasses for observations and segments.

WHY: OCR frames and speech transcription produce flat, high-frequency
streams. The segmentation engine, the editable document, and every
formatter need the same well-typed units — observations in, segments
out — so each stage can be built and tested on its own.

HOW: Frozen dataclasses form the hierarchy:
  Rect              — a bounding region with union()
  Observation       — one timestamped text detection (frame or word)
  Word              — a timestamped token owned by a TranscriptSegment
  TranscriptSegment — an editable run of one or more Words
  VisualSegment     — a run of identical OCR observations
  Transcript        — the formatter input: segments plus metadata

RULES:
- All times are float seconds
- Segment text is always derived from its words/observations, never
  stored separately, so text and timing cannot drift apart
- A segment with no words/observations cannot be constructed
- Everything except Transcript is immutable; history snapshots share
  these objects safely
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence, Tuple, Union

from caption_studio.core.errors import EmptySegmentError


def new_segment_id() -> str:
    """Return a fresh UUID4 string for a segment."""
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Rect:
    """Axis-aligned bounding region of detected text."""

    x: float
    y: float
    width: float
    height: float

    def union(self, other: Optional[Rect]) -> Rect:
        """Smallest Rect enclosing both regions."""
        if other is None:
            return self
        left = min(self.x, other.x)
        top = min(self.y, other.y)
        right = max(self.x + self.width, other.x + other.width)
        bottom = max(self.y + self.height, other.y + other.height)
        return Rect(x=left, y=top, width=right - left, height=bottom - top)


@dataclass(frozen=True)
class Observation:
    """A single timestamped text detection.

    Produced by a frame-sampled OCR producer (one per sampled frame, with
    a region) or by a word-level transcription producer (one per word).

    RULES:
    - time: seconds; streams are ordered by non-decreasing time
    - end_time: None for frame detections
    - confidence: 0.0–1.0
    """

    text: str
    time: float
    end_time: Optional[float] = None
    confidence: float = 1.0
    region: Optional[Rect] = None


@dataclass(frozen=True)
class Word:
    """A timestamped token within a transcript segment."""

    text: str
    start: float
    end: float
    confidence: float = 1.0


@dataclass(frozen=True)
class TranscriptSegment:
    """An editable, contiguous run of Words.

    RULES:
    - words is a non-empty tuple (lists are converted on construction)
    - start/end come from the first/last word
    - text is the words joined with single spaces
    """

    words: Tuple[Word, ...]
    id: str = field(default_factory=new_segment_id)

    def __post_init__(self) -> None:
        if not isinstance(self.words, tuple):
            object.__setattr__(self, "words", tuple(self.words))
        if not self.words:
            raise EmptySegmentError("A transcript segment needs at least one word")

    @property
    def start(self) -> float:
        return self.words[0].start

    @property
    def end(self) -> float:
        return self.words[-1].end

    @property
    def text(self) -> str:
        return " ".join(w.text for w in self.words)


@dataclass(frozen=True)
class VisualSegment:
    """A run of on-screen text detections sharing the same content.

    RULES:
    - observations is a non-empty tuple in time order
    - start/end are the first/last observation times
    - bounding_region is the union of all member regions (None if no
      member carried one)
    """

    text: str
    observations: Tuple[Observation, ...]
    bounding_region: Optional[Rect] = None
    id: str = field(default_factory=new_segment_id)

    def __post_init__(self) -> None:
        if not isinstance(self.observations, tuple):
            object.__setattr__(self, "observations", tuple(self.observations))
        if not self.observations:
            raise EmptySegmentError("A visual segment needs at least one observation")

    @property
    def start(self) -> float:
        return self.observations[0].time

    @property
    def end(self) -> float:
        return self.observations[-1].time

    @property
    def words(self) -> Tuple[Word, ...]:
        """The caption's whitespace tokens, each spanning the whole run.

        Confidence is the lowest member confidence, so words read back from
        an export rebuild exactly this text.
        """
        confidence = min(o.confidence for o in self.observations)
        return tuple(
            Word(text=token, start=self.start, end=self.end, confidence=confidence)
            for token in self.text.split()
        )


Segment = Union[TranscriptSegment, VisualSegment]


@dataclass
class Transcript:
    """The formatter input: an ordered segment list plus metadata.

    RULES:
    - segments: ordered by start time
    - language: ISO 639-1 tag of the source text ("" when unknown)
    - translations: segment id → translated text, for dual-language output
    - source_filename: original media/observation filename (output naming)
    """

    segments: Sequence[Segment]
    language: str = ""
    translations: Dict[str, str] = field(default_factory=dict)
    source_filename: str = ""
