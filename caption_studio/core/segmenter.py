"""Temporal segmentation of observation streams and word partitioning.

WHY: OCR samples a frame every second and reports the same caption over
and over; transcription reports one token per word. Editors need the
stable runs, not the raw samples. This module is the bridge between the
flat observation stream and the segment IR.

HOW: ObservationClusterer keeps one in-progress aggregate per active key.
An observation extends its key's aggregate while the gap to that
aggregate's last observation stays under the threshold; otherwise the
old aggregate is finalized and a new one starts. At end of stream all
active aggregates are finalized and the result is sorted by start time.
partition_words() cuts a word list into TranscriptSegments using a
caller-supplied boundary predicate.

RULES:
- Default key is exact, case-sensitive text
- Empty (or whitespace-only) observations neither start nor extend a run
- Same text reappearing after a long gap is a new, distinct segment
- Input must be ordered by non-decreasing time; this is a precondition,
  not checked here (see adapters.check_monotonic)
- Cancelling discards active aggregates; no partial segment surfaces
"""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from caption_studio.config import DEFAULT_GAP_THRESHOLD, DEFAULT_MAX_SEGMENT_CHARS
from caption_studio.core.errors import SegmentationCancelled
from caption_studio.core.ir import Observation, Rect, TranscriptSegment, VisualSegment, Word

logger = logging.getLogger(__name__)

KeyFn = Callable[[Observation], Any]
BoundaryFn = Callable[[Word, Word], bool]

# Sentence-ending punctuation, Latin and CJK, optionally followed by
# closing quotes or brackets.
_SENTENCE_END_RE = re.compile(r"[.!?…。！？][\"'”’)\]」』]*$")


def text_key(observation: Observation) -> str:
    """Default clustering key: the exact observation text."""
    return observation.text


@dataclass
class _Aggregate:
    """In-progress run of same-key observations."""

    start: float
    observations: List[Observation] = field(default_factory=list)
    region: Optional[Rect] = None

    @property
    def last(self) -> Observation:
        return self.observations[-1]

    def add(self, observation: Observation) -> None:
        self.observations.append(observation)
        if observation.region is not None:
            self.region = observation.region.union(self.region)

    def to_segment(self) -> VisualSegment:
        return VisualSegment(
            text=self.observations[0].text,
            observations=tuple(self.observations),
            bounding_region=self.region,
        )


class ObservationClusterer:
    """Incremental form of the segmentation engine.

    WHY: Observations may still be arriving from the OCR producer while
    the first segments are already useful for a progress preview. The
    clusterer accepts observations one by one and can report a
    provisional list at any point.

    HOW: ``feed()`` applies the clustering rule to one observation.
    ``partial()`` returns finished plus active aggregates, sorted.
    ``finish()`` finalizes everything and returns the terminal list.
    ``cancel()`` drops active aggregates.

    RULES:
    - feed() after finish() or cancel() raises RuntimeError
    - partial() is a preview only; hand finish() output to the document
    """

    def __init__(
        self,
        gap_threshold: float = DEFAULT_GAP_THRESHOLD,
        key: Optional[KeyFn] = None,
    ) -> None:
        if gap_threshold <= 0:
            raise ValueError("gap_threshold must be positive, got {}".format(gap_threshold))
        self.gap_threshold = gap_threshold
        self._key = key or text_key
        self._active: Dict[Any, _Aggregate] = {}
        self._completed: List[VisualSegment] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def feed(self, observation: Observation) -> None:
        """Apply one observation to the active aggregates."""
        if self._closed:
            raise RuntimeError("Clusterer is closed; no more observations accepted")
        if not observation.text.strip():
            return

        key = self._key(observation)
        aggregate = self._active.get(key)
        if aggregate is not None and observation.time - aggregate.last.time < self.gap_threshold:
            aggregate.add(observation)
            return

        if aggregate is not None:
            # Gap exceeded: the earlier run is complete.
            logger.debug(
                "Run %r from %.3fs closed by a %.3fs gap",
                key, aggregate.start, observation.time - aggregate.last.time,
            )
            self._completed.append(aggregate.to_segment())

        fresh = _Aggregate(start=observation.time)
        fresh.add(observation)
        self._active[key] = fresh

    def feed_all(self, observations: Iterable[Observation]) -> None:
        for observation in observations:
            self.feed(observation)

    def partial(self) -> List[VisualSegment]:
        """Provisional segment list including still-active runs."""
        provisional = self._completed + [a.to_segment() for a in self._active.values()]
        return _sorted_by_start(provisional)

    def finish(self) -> List[VisualSegment]:
        """Finalize all active runs and return the terminal segment list."""
        if self._closed:
            raise RuntimeError("Clusterer is already closed")
        self._closed = True
        self._completed.extend(a.to_segment() for a in self._active.values())
        self._active.clear()
        segments = _sorted_by_start(self._completed)
        logger.debug("Finalized %d segments", len(segments))
        return segments

    def cancel(self) -> None:
        """Discard active runs and refuse further input."""
        self._closed = True
        dropped = len(self._active)
        self._active.clear()
        self._completed.clear()
        logger.debug("Clusterer cancelled, dropped %d active runs", dropped)


def _sorted_by_start(segments: Sequence[VisualSegment]) -> List[VisualSegment]:
    # sorted() is stable, so ties keep emission order.
    return sorted(segments, key=lambda s: s.start)


def segment_observations(
    observations: Iterable[Observation],
    gap_threshold: float = DEFAULT_GAP_THRESHOLD,
    key: Optional[KeyFn] = None,
    cancel_event: Optional[threading.Event] = None,
) -> List[VisualSegment]:
    """Cluster a time-ordered observation stream into segments.

    Args:
        observations: Observations ordered by non-decreasing time.
        gap_threshold: Max seconds between consecutive same-key
            observations inside one segment (strictly less than).
        key: Clustering key function; defaults to exact text.
        cancel_event: Checked before each observation; when set, the
            run aborts and nothing is returned.

    Returns:
        VisualSegments sorted by start time.

    Raises:
        SegmentationCancelled: If cancel_event was set mid-stream.
    """
    clusterer = ObservationClusterer(gap_threshold=gap_threshold, key=key)
    for observation in observations:
        if cancel_event is not None and cancel_event.is_set():
            clusterer.cancel()
            raise SegmentationCancelled("Segmentation cancelled mid-stream")
        clusterer.feed(observation)
    return clusterer.finish()


# ---------------------------------------------------------------------------
# Word partitioning
# ---------------------------------------------------------------------------


def punctuation_boundary(prev: Word, next_word: Word) -> bool:
    """True when ``prev`` ends a sentence."""
    return bool(_SENTENCE_END_RE.search(prev.text))


def make_sentence_boundary(max_chars: int = DEFAULT_MAX_SEGMENT_CHARS) -> BoundaryFn:
    """Build a boundary predicate: sentence punctuation, or length fallback.

    The returned predicate tracks the character count of the segment
    being built, so a fresh one is needed for every partitioning run.
    """
    state = {"length": 0, "started": False}

    def boundary(prev: Word, next_word: Word) -> bool:
        if not state["started"]:
            state["length"] = len(prev.text)
            state["started"] = True
        projected = state["length"] + 1 + len(next_word.text)
        if punctuation_boundary(prev, next_word) or projected > max_chars:
            state["length"] = len(next_word.text)
            return True
        state["length"] = projected
        return False

    return boundary


def partition_words(
    words: Sequence[Word],
    boundary: BoundaryFn,
) -> List[TranscriptSegment]:
    """Cut a word list into TranscriptSegments.

    ``boundary(prev, next)`` returning True starts a new segment before
    ``next``. Word order and timing are kept as-is.
    """
    if not words:
        return []

    segments: List[TranscriptSegment] = []
    current: List[Word] = [words[0]]
    for prev, word in zip(words, words[1:]):
        if boundary(prev, word):
            segments.append(TranscriptSegment(words=tuple(current)))
            current = [word]
        else:
            current.append(word)
    segments.append(TranscriptSegment(words=tuple(current)))
    return segments
