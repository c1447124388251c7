"""Plain text transcript formatter.

WHY: Editors need a simple, readable transcript for review and quick
reference — no timecodes, no JSON, just the segment text.

HOW: One line per segment in document order, whitespace-normalized.
When a segment has a translation, it follows on the next line,
indented by two spaces.

RULES:
- Empty transcript → empty string; otherwise content ends with "\\n"
- Output suffix: ".txt"
- Media type: "text/plain"
"""

from __future__ import annotations

from typing import List

from caption_studio.core.ir import Transcript
from caption_studio.formatters.base import BaseFormatter, FormatterOutput, normalize_text


class PlainTextFormatter(BaseFormatter):
    """Formatter that produces one line of text per segment."""

    @property
    def name(self) -> str:
        return "Plain Text"

    def format(self, transcript: Transcript) -> List[FormatterOutput]:
        lines: List[str] = []
        for segment in transcript.segments:
            lines.append(normalize_text(segment.text))
            translated = transcript.translations.get(segment.id)
            if translated and translated.strip():
                lines.append("  " + normalize_text(translated))

        content = "\n".join(lines)
        if content:
            content += "\n"

        return [
            FormatterOutput(
                suffix=".txt",
                content=content,
                media_type="text/plain",
            )
        ]
