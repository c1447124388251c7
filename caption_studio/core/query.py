"""Read-only lookups over segment lists.

Keyword search (case-insensitive substring) and the segment under the
playhead. Both work on either segment variant.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from caption_studio.core.ir import Segment


def search_segments(segments: Sequence[Segment], keyword: str) -> List[Segment]:
    """Segments whose text contains ``keyword``, ignoring case.

    An empty or whitespace-only keyword matches nothing.
    """
    needle = keyword.strip().casefold()
    if not needle:
        return []
    return [s for s in segments if needle in s.text.casefold()]


def segment_at(segments: Sequence[Segment], time: float) -> Optional[Segment]:
    """First segment whose [start, end] range contains ``time``."""
    for segment in segments:
        if segment.start <= time <= segment.end:
            return segment
    return None
