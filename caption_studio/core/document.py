"""Editable transcript document with snapshot-based undo/redo.

WHY: The segments produced from a transcription are a starting point;
editors split long lines, merge fragments, and fix misrecognised words.
Every one of those edits must be undoable, and a rejected edit must
never leave the transcript half-changed.

HOW: TranscriptDocument owns an ordered tuple of TranscriptSegments and
the current selection. Each mutating operation validates its inputs
first, then pushes a HistorySnapshot of the current state, then swaps in
the new state. Because Words and segments are frozen dataclasses, a
snapshot is just the current tuple — a deep copy by construction.

RULES:
- Segments stay time-ascending; ids are unique within the document
- A successful mutation pushes exactly one snapshot and clears redo
- A failed precondition raises before the push: no state change at all
- load() and load_segments() start a fresh baseline (history cleared)
- split_at() keeps original word timestamps; replace_text() stamps every
  new word with the segment's overall start/end and confidence 1.0
- Translations are keyed by segment id and snapshotted with the segments;
  undo/redo keeps a live translation only for segments whose words did
  not change, otherwise it takes the snapshot's
- Not thread-safe; DocumentController is the single writer
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from caption_studio.config import DEFAULT_LANGUAGE
from caption_studio.core.errors import (
    EmptySegmentError,
    InvalidIndexError,
    UnknownSegmentError,
)
from caption_studio.core.ir import Transcript, TranscriptSegment, Word
from caption_studio.core.segmenter import BoundaryFn, make_sentence_boundary, partition_words

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HistorySnapshot:
    """Immutable copy of the document state taken before a mutation."""

    segments: Tuple[TranscriptSegment, ...]
    selected_segment_id: Optional[str]
    translations: Dict[str, str] = field(default_factory=dict)


class History:
    """Undo and redo stacks of HistorySnapshots.

    Branching history is not supported: recording a new snapshot
    discards everything on the redo stack.
    """

    def __init__(self) -> None:
        self.undo_stack: List[HistorySnapshot] = []
        self.redo_stack: List[HistorySnapshot] = []

    def record(self, snapshot: HistorySnapshot) -> None:
        self.undo_stack.append(snapshot)
        self.redo_stack.clear()

    def clear(self) -> None:
        self.undo_stack.clear()
        self.redo_stack.clear()


class TranscriptDocument:
    """The authoritative, user-editable segment list.

    Args:
        language: ISO 639-1 tag of the transcript text.
    """

    def __init__(self, language: str = DEFAULT_LANGUAGE) -> None:
        self.language = language
        self._segments: Tuple[TranscriptSegment, ...] = ()
        self._selected_id: Optional[str] = None
        self._translations: Dict[str, str] = {}
        self.history = History()

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def segments(self) -> Tuple[TranscriptSegment, ...]:
        return self._segments

    @property
    def selected_segment_id(self) -> Optional[str]:
        return self._selected_id

    @property
    def selected_segment(self) -> Optional[TranscriptSegment]:
        if self._selected_id is None:
            return None
        return self.get(self._selected_id)

    @property
    def can_undo(self) -> bool:
        return bool(self.history.undo_stack)

    @property
    def can_redo(self) -> bool:
        return bool(self.history.redo_stack)

    def __len__(self) -> int:
        return len(self._segments)

    def index_of(self, segment_id: str) -> int:
        """Position of a segment, raising UnknownSegmentError if absent."""
        for i, segment in enumerate(self._segments):
            if segment.id == segment_id:
                return i
        raise UnknownSegmentError(segment_id)

    def get(self, segment_id: str) -> TranscriptSegment:
        return self._segments[self.index_of(segment_id)]

    def snapshot(self) -> HistorySnapshot:
        return HistorySnapshot(
            segments=self._segments,
            selected_segment_id=self._selected_id,
            translations=dict(self._translations),
        )

    def translation_for(self, segment_id: str) -> Optional[str]:
        return self._translations.get(segment_id)

    def to_transcript(self, source_filename: str = "") -> Transcript:
        """Project the current state into the formatter IR."""
        live_ids = {s.id for s in self._segments}
        return Transcript(
            segments=list(self._segments),
            language=self.language,
            translations={k: v for k, v in self._translations.items() if k in live_ids},
            source_filename=source_filename,
        )

    # ------------------------------------------------------------------
    # Baselines
    # ------------------------------------------------------------------

    def load(self, words: Sequence[Word], boundary: Optional[BoundaryFn] = None) -> None:
        """Replace the whole document with segments partitioned from words.

        Args:
            words: Transcribed words in time order.
            boundary: ``boundary(prev, next)`` → True starts a new segment
                before ``next``. Defaults to sentence punctuation with a
                length fallback.
        """
        if boundary is None:
            boundary = make_sentence_boundary()
        segments = partition_words(words, boundary)
        self._reset(tuple(segments))
        logger.info("Loaded %d words into %d segments", len(words), len(segments))

    def load_segments(
        self,
        segments: Sequence[TranscriptSegment],
        translations: Optional[Dict[str, str]] = None,
    ) -> None:
        """Replace the whole document with already-built segments."""
        ids = {s.id for s in segments}
        if len(ids) != len(segments):
            raise ValueError("Segment ids must be unique within a document")
        ordered = tuple(sorted(segments, key=lambda s: s.start))
        self._reset(ordered)
        if translations:
            self._translations = {k: v for k, v in translations.items() if k in ids}
        logger.info("Loaded %d segments", len(ordered))

    def _reset(self, segments: Tuple[TranscriptSegment, ...]) -> None:
        self._segments = segments
        self._selected_id = None
        self._translations = {}
        self.history.clear()

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def select(self, segment_id: Optional[str]) -> None:
        """Set the selection. Pure navigation, no history entry."""
        if segment_id is not None:
            self.index_of(segment_id)
        self._selected_id = segment_id

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def split_at(self, segment_id: str, word_index: int) -> Tuple[TranscriptSegment, TranscriptSegment]:
        """Split a segment before ``word_index``.

        Requires ``0 < word_index < len(words)``; splitting at either end
        would create an empty segment and is rejected.

        Returns:
            The two new segments, in order.

        Raises:
            UnknownSegmentError: No segment has this id.
            InvalidIndexError: word_index is not strictly inside the segment.
        """
        index = self.index_of(segment_id)
        target = self._segments[index]
        if not 0 < word_index < len(target.words):
            raise InvalidIndexError(
                "Cannot split a {}-word segment at word {}".format(len(target.words), word_index)
            )

        head = TranscriptSegment(words=target.words[:word_index])
        tail = TranscriptSegment(words=target.words[word_index:])
        self._commit(
            self._segments[:index] + (head, tail) + self._segments[index + 1:],
            selected_id=tail.id,
        )
        logger.debug("Split segment %s at word %d", segment_id, word_index)
        return head, tail

    def merge(self, segment_index: int) -> TranscriptSegment:
        """Merge the segment at ``segment_index`` with the one after it.

        Raises:
            InvalidIndexError: The index is out of range or names the last
                segment.
        """
        if not 0 <= segment_index < len(self._segments) - 1:
            raise InvalidIndexError(
                "Cannot merge segment {} of {}".format(segment_index, len(self._segments))
            )

        first = self._segments[segment_index]
        second = self._segments[segment_index + 1]
        merged = TranscriptSegment(words=first.words + second.words)
        self._commit(
            self._segments[:segment_index] + (merged,) + self._segments[segment_index + 2:],
            selected_id=merged.id,
        )
        logger.debug("Merged segments %s and %s into %s", first.id, second.id, merged.id)
        return merged

    def merge_segments(self, segment_id: str) -> TranscriptSegment:
        """Merge the identified segment with the one after it."""
        return self.merge(self.index_of(segment_id))

    def replace_text(self, segment_id: str, new_text: str) -> TranscriptSegment:
        """Replace a segment's words with whitespace-separated ``new_text``.

        Every new word spans the segment's original overall start and end;
        free-text edits give up per-word timing. The segment keeps its id.

        Raises:
            UnknownSegmentError: No segment has this id.
            EmptySegmentError: new_text contains no words.
        """
        index = self.index_of(segment_id)
        target = self._segments[index]
        tokens = new_text.split()
        if not tokens:
            raise EmptySegmentError("Replacement text for {} has no words".format(segment_id))

        start, end = target.start, target.end
        replacement = TranscriptSegment(
            words=tuple(Word(text=t, start=start, end=end, confidence=1.0) for t in tokens),
            id=target.id,
        )
        # The old translation no longer matches the text.
        translations = {k: v for k, v in self._translations.items() if k != segment_id}
        self._commit(
            self._segments[:index] + (replacement,) + self._segments[index + 1:],
            selected_id=self._selected_id,
            translations=translations,
        )
        return replacement

    def _commit(
        self,
        segments: Tuple[TranscriptSegment, ...],
        selected_id: Optional[str],
        translations: Optional[Dict[str, str]] = None,
    ) -> None:
        self.history.record(self.snapshot())
        self._segments = segments
        self._selected_id = selected_id
        if translations is not None:
            self._translations = translations

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def undo(self) -> bool:
        """Restore the previous state. Returns False when there is none."""
        if not self.history.undo_stack:
            return False
        previous = self.history.undo_stack.pop()
        self.history.redo_stack.append(self.snapshot())
        self._restore(previous)
        return True

    def redo(self) -> bool:
        """Re-apply the last undone state. Returns False when there is none."""
        if not self.history.redo_stack:
            return False
        following = self.history.redo_stack.pop()
        self.history.undo_stack.append(self.snapshot())
        self._restore(following)
        return True

    def _restore(self, snapshot: HistorySnapshot) -> None:
        # Translations that arrived after the snapshot still apply to
        # segments whose words are unchanged.
        current = {s.id: s for s in self._segments}
        translations = dict(snapshot.translations)
        for segment in snapshot.segments:
            if current.get(segment.id) == segment and segment.id in self._translations:
                translations[segment.id] = self._translations[segment.id]
        self._segments = snapshot.segments
        self._selected_id = snapshot.selected_segment_id
        self._translations = translations

    # ------------------------------------------------------------------
    # Translation
    # ------------------------------------------------------------------

    def apply_translation(self, segment_id: str, text: str) -> None:
        """Attach translated text to a segment by id."""
        self.index_of(segment_id)
        self._translations[segment_id] = text
