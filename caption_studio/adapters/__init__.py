"""Adapters between external producers and the caption_studio IR.

WHY: OCR and transcription producers each speak their own JSON dialect.
Adapters normalise them into Observations and Words so the core never
sees producer-specific shapes.

RULES:
- Adapters only build IR objects; they never segment or format
"""

from caption_studio.adapters.observation_adapter import (
    RecognitionOptions,
    check_monotonic,
    frame_times,
    parse_observations,
    parse_transcription,
    sample_frame_observations,
)

__all__ = [
    "RecognitionOptions",
    "check_monotonic",
    "frame_times",
    "parse_observations",
    "parse_transcription",
    "sample_frame_observations",
]
