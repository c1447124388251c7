"""Core segmentation, document, and intermediate representation modules.

WHY: The core package contains the stable heart of the project — the IR
dataclasses, the temporal segmentation engine, and the editable
transcript document. These are consumed by all formatters and adapters.

HOW: ir.py defines the data structures, segmenter.py builds segments
from observation streams, document.py owns the editable segment list
and its history, controller.py serialises access to it, worker.py runs
segmentation in the background, query.py holds read-only lookups.

RULES:
- IR dataclasses are the contract — change with care
- Segmentation logic is format-agnostic — no formatter logic here
- Only DocumentController touches a document from more than one thread
"""
