"""Caption Studio — temporal text segmentation and editable transcripts.

WHY: OCR frame detections and word-level speech transcription are noisy,
high-frequency signals. Editors need a handful of stable, time-ranged
segments they can split, merge, and rewrite, then export as subtitles.

HOW: Four stages — ingest (adapters), segment (core engine), edit (the
transcript document with undo/redo), export (pluggable formatters). Each
stage is independently testable.

RULES:
- All formatters consume the same Transcript IR
- The Document is only mutated through its own operations
- Adding a new output format = one new formatter module, no core changes
"""

__version__ = "0.1.0"
