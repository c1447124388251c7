"""SubRip (SRT) formatter, single- and dual-language.

WHY: SRT is the lingua franca of subtitle players and editors. Segments
already carry final timing, so SRT output is a direct, deterministic
rendering with no re-segmentation.

HOW: One cue per segment in document order:
``{index}\\n{start} --> {end}\\n{text}\\n\\n``. The dual-language variant
puts the translated line first and the original line second; segments
without a translation emit only the original line.

RULES:
- Indices are 1-based
- Timestamps are HH:MM:SS,mmm, zero-padded
- Cue text is whitespace-normalized (runs collapsed, ends trimmed)
- Every cue, including the last, ends with a blank line
- Media type: "application/x-subrip"
"""

from __future__ import annotations

from typing import List, Optional

from caption_studio.core.ir import Segment, Transcript
from caption_studio.formatters.base import BaseFormatter, FormatterOutput, normalize_text


def format_srt_time(seconds: float) -> str:
    """Convert seconds to an SRT timestamp, HH:MM:SS,mmm.

    Milliseconds are rounded, and a fraction that rounds up to 1000 ms
    carries into the seconds field.
    """
    total_ms = int(round(max(seconds, 0.0) * 1000))
    hours, rem = divmod(total_ms, 3_600_000)
    minutes, rem = divmod(rem, 60_000)
    secs, millis = divmod(rem, 1000)
    return "{:02d}:{:02d}:{:02d},{:03d}".format(hours, minutes, secs, millis)


def _cue(index: int, segment: Segment, lines: List[str]) -> str:
    return "{}\n{} --> {}\n{}\n\n".format(
        index,
        format_srt_time(segment.start),
        format_srt_time(segment.end),
        "\n".join(lines),
    )


def render_srt(transcript: Transcript, bilingual: bool = False) -> str:
    """Render all segments as SRT cues.

    Args:
        transcript: Segments in document order.
        bilingual: Prepend each segment's translation line when present.
    """
    cues: List[str] = []
    for index, segment in enumerate(transcript.segments, 1):
        lines = [normalize_text(segment.text)]
        if bilingual:
            translated: Optional[str] = transcript.translations.get(segment.id)
            if translated and translated.strip():
                lines.insert(0, normalize_text(translated))
        cues.append(_cue(index, segment, lines))
    return "".join(cues)


class SRTFormatter(BaseFormatter):
    """Formatter that produces one SRT cue per segment."""

    @property
    def name(self) -> str:
        return "SubRip (SRT)"

    def format(self, transcript: Transcript) -> List[FormatterOutput]:
        return [
            FormatterOutput(
                suffix=".srt",
                content=render_srt(transcript),
                media_type="application/x-subrip",
            )
        ]


class DualSRTFormatter(BaseFormatter):
    """Formatter that produces translated-over-original SRT cues.

    RULES:
    - Line order inside a cue: translation first, original second
    - Output suffix: "-dual.srt"
    """

    @property
    def name(self) -> str:
        return "Dual-language SRT"

    def format(self, transcript: Transcript) -> List[FormatterOutput]:
        return [
            FormatterOutput(
                suffix="-dual.srt",
                content=render_srt(transcript, bilingual=True),
                media_type="application/x-subrip",
            )
        ]
