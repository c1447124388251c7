"""Output formatter registry — pluggable format hub.

WHY: The CLI and controller need a single lookup to find the right
formatter by name. A central dict makes it trivial to add new formats:
create the formatter class, import it here, add one line.

HOW: FORMATTERS maps string keys to formatter *classes* (not instances).
Callers instantiate as needed: ``formatter = FORMATTERS["srt"]()``.

RULES:
- Keys are snake_case identifiers (used in CLI flags, config, etc.)
- Values are BaseFormatter subclasses (not instances)
- Every formatter listed here must be importable without side effects
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from caption_studio.formatters.plain_text import PlainTextFormatter
from caption_studio.formatters.srt import DualSRTFormatter, SRTFormatter
from caption_studio.formatters.transcript_json import JSONFormatter

if TYPE_CHECKING:
    from caption_studio.formatters.base import BaseFormatter

FORMATTERS: dict[str, type[BaseFormatter]] = {
    "srt": SRTFormatter,
    "dual_srt": DualSRTFormatter,
    "json": JSONFormatter,
    "plain_text": PlainTextFormatter,
}
