"""Formatter contract shared by the subtitle, JSON and plain-text exports.

WHY: A Transcript can hold OCR runs, edited speech segments, or a mix,
plus translations keyed by segment id. The exporters differ only in how
they lay those segments out, so cli.py picks them by key from FORMATTERS
and writes whatever FormatterOutputs come back.

HOW: A formatter reads segment start/end/text (and, where it needs
them, words and translations) and never mutates the Transcript.
FormatterOutput carries the suffix that cli.py appends to the input
stem, e.g. ``".srt"`` or ``"-dual.srt"``.

RULES:
- Timing comes from the segments as given; formatters never re-segment
- A segment without a translation renders its source text only
- normalize_text() is the single whitespace rule for rendered lines
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from caption_studio.core.ir import Transcript


@dataclass
class FormatterOutput:
    """One output file produced by a formatter.

    Attributes:
        suffix: Appended to the input stem, e.g. ``"-dual.srt"`` gives
                ``"clip-dual.srt"``.
        content: The file content as a string or bytes.
        media_type: MIME type, e.g. ``"application/x-subrip"``.
    """

    suffix: str
    content: str | bytes
    media_type: str


def normalize_text(text: str) -> str:
    """Collapse whitespace runs to one space and trim both ends."""
    return " ".join(text.split())


class BaseFormatter(ABC):
    """An export format, registered under a key in FORMATTERS."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Label shown in CLI status lines."""

    @abstractmethod
    def format(self, transcript: Transcript) -> list[FormatterOutput]:
        """Render the transcript. Every current format returns one output."""
