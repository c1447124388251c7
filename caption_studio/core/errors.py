"""Exception taxonomy for segmentation, editing, and import.

WHY: Callers (CLI, controller, UI layers) need to tell a rejected edit
apart from a broken input file or a cancelled run. One exception class
per condition makes that an ``except`` clause instead of string matching.

RULES:
- Every class derives from CaptionStudioError
- Document errors are raised before any state change, so catching one
  means the document and its history are exactly as they were
- File I/O errors are never wrapped — OSError propagates as-is
"""

from __future__ import annotations


class CaptionStudioError(Exception):
    """Base class for all caption_studio errors."""


class InvalidIndexError(CaptionStudioError, IndexError):
    """A split or merge index is out of range for the target segment(s)."""


class UnknownSegmentError(CaptionStudioError, KeyError):
    """No segment with the given id exists in the document."""

    def __init__(self, segment_id: str) -> None:
        self.segment_id = segment_id
        super().__init__(segment_id)

    def __str__(self) -> str:
        return "Unknown segment id: {}".format(self.segment_id)


class EmptySegmentError(CaptionStudioError, ValueError):
    """An operation would create a segment with no words/observations."""


class MalformedObservationStreamError(CaptionStudioError, ValueError):
    """Observation timestamps decrease somewhere in the stream.

    Attributes:
        index: Position of the first out-of-order observation.
    """

    def __init__(self, index: int, previous: float, current: float) -> None:
        self.index = index
        super().__init__(
            "Observation {} at {:.3f}s precedes the previous one at {:.3f}s".format(
                index, current, previous,
            )
        )


class TranscriptDecodeError(CaptionStudioError, ValueError):
    """Transcript JSON is unparsable or does not match the schema."""


class SegmentationCancelled(CaptionStudioError):
    """A segmentation run was cancelled before the stream ended."""
