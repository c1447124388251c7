"""Single-writer owner of the editable transcript document.

WHY: split, merge, replace_text, undo and redo each read and rewrite the
whole segment list, so they do not commute. Translation responses and
segmentation results arrive from other threads. One owner serialising
all access keeps the document consistent without the document itself
knowing about threads.

HOW: DocumentController wraps a TranscriptDocument and holds a
threading.RLock around every operation. Translation results are applied
by segment id, never by position, since edits may have moved segments
since the request was sent.

RULES:
- Every public method acquires self._lock
- Read methods return immutable values (tuples, frozen segments)
- A translation for a segment that no longer exists is logged and dropped
- load_from_worker() waits for a terminal result before touching the
  document; a cancelled run leaves the document as it was
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional, Sequence, Tuple, Union

from caption_studio.core.document import TranscriptDocument
from caption_studio.core.errors import UnknownSegmentError
from caption_studio.core.ir import Transcript, TranscriptSegment, VisualSegment, Word
from caption_studio.core.segmenter import BoundaryFn
from caption_studio.core.worker import SegmentationWorker
from caption_studio.formatters.transcript_json import decode_transcript_json

logger = logging.getLogger(__name__)


def visual_to_transcript_segments(segments: Sequence[VisualSegment]) -> List[TranscriptSegment]:
    """Turn OCR segments into editable segments, one word per token.

    Every word spans the whole run, the same stamping replace_text uses.
    """
    converted: List[TranscriptSegment] = []
    for seg in segments:
        words = seg.words
        if words:
            converted.append(TranscriptSegment(words=words, id=seg.id))
    return converted


class DocumentController:
    """Thread-safe facade over a TranscriptDocument."""

    def __init__(self, document: Optional[TranscriptDocument] = None) -> None:
        self._document = document or TranscriptDocument()
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_words(
        self,
        words: Sequence[Word],
        language: Optional[str] = None,
        boundary: Optional[BoundaryFn] = None,
    ) -> None:
        with self._lock:
            if language is not None:
                self._document.language = language
            self._document.load(words, boundary)

    def load_segments(
        self,
        segments: Sequence[TranscriptSegment],
        language: Optional[str] = None,
        translations: Optional[Dict[str, str]] = None,
    ) -> None:
        with self._lock:
            if language is not None:
                self._document.language = language
            self._document.load_segments(segments, translations)

    def load_from_worker(
        self,
        worker: SegmentationWorker,
        timeout: Optional[float] = None,
    ) -> int:
        """Wait for a background run and load its terminal segments.

        Returns:
            The number of segments loaded.

        Raises:
            SegmentationCancelled: The run was cancelled; nothing loaded.
        """
        # Wait outside the lock so readers are not blocked meanwhile.
        visual = worker.result(timeout)
        segments = visual_to_transcript_segments(visual)
        with self._lock:
            self._document.load_segments(segments)
        return len(segments)

    def import_json(self, content: Union[str, bytes]) -> int:
        """Replace the document with a transcript saved by JSONFormatter.

        The content is decoded in full before the document is touched, so
        a failed import leaves segments, history and translations as they
        were.

        Returns:
            The number of segments loaded.

        Raises:
            TranscriptDecodeError: Unparsable or schema-invalid content.
        """
        decoded = decode_transcript_json(content)
        with self._lock:
            self._document.language = decoded.language
            self._document.load_segments(decoded.segments, decoded.translations)
        return len(decoded.segments)

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def select(self, segment_id: Optional[str]) -> None:
        with self._lock:
            self._document.select(segment_id)

    def split_at(self, segment_id: str, word_index: int) -> Tuple[TranscriptSegment, TranscriptSegment]:
        with self._lock:
            return self._document.split_at(segment_id, word_index)

    def merge(self, segment_index: int) -> TranscriptSegment:
        with self._lock:
            return self._document.merge(segment_index)

    def merge_segments(self, segment_id: str) -> TranscriptSegment:
        with self._lock:
            return self._document.merge_segments(segment_id)

    def replace_text(self, segment_id: str, new_text: str) -> TranscriptSegment:
        with self._lock:
            return self._document.replace_text(segment_id, new_text)

    def undo(self) -> bool:
        with self._lock:
            return self._document.undo()

    def redo(self) -> bool:
        with self._lock:
            return self._document.redo()

    # ------------------------------------------------------------------
    # Projections
    # ------------------------------------------------------------------

    @property
    def segments(self) -> Tuple[TranscriptSegment, ...]:
        with self._lock:
            return self._document.segments

    @property
    def selected_segment_id(self) -> Optional[str]:
        with self._lock:
            return self._document.selected_segment_id

    @property
    def language(self) -> str:
        with self._lock:
            return self._document.language

    def to_transcript(self, source_filename: str = "") -> Transcript:
        with self._lock:
            return self._document.to_transcript(source_filename)

    # ------------------------------------------------------------------
    # Translation
    # ------------------------------------------------------------------

    def apply_translation(self, segment_id: str, text: str) -> bool:
        """Apply one translation result. Returns False if the id is gone."""
        with self._lock:
            try:
                self._document.apply_translation(segment_id, text)
            except UnknownSegmentError:
                logger.warning("Dropping translation for missing segment %s", segment_id)
                return False
            return True

    async def translate(self, client, target_language: str) -> int:
        """Translate every current segment and apply results by id.

        Args:
            client: An entered TranslationClient (or anything with the
                same translate_segments coroutine).
            target_language: Language tag to translate into.

        Returns:
            Number of translations applied.
        """
        with self._lock:
            items = [(s.id, s.text) for s in self._document.segments]
            source_language = self._document.language
        if not items:
            return 0

        results = await client.translate_segments(
            items,
            source_language=source_language,
            target_language=target_language,
        )
        applied = sum(1 for r in results if self.apply_translation(r.id, r.text))
        logger.info("Applied %d of %d translations", applied, len(items))
        return applied
