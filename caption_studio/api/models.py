"""Translation API request and response dataclasses.

WHY: The translation service exchanges flat JSON objects. Typed
dataclasses make the shapes explicit and catch field mismatches early.

HOW: Each dataclass maps 1:1 to a JSON object. Factory methods
(from_dict) handle parsing from raw API responses.

RULES:
- id is the client-supplied correlation identifier (a segment id); the
  service echoes it back unchanged
- text is the translated text for that id
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class TranslationItem:
    """One text to translate, tagged with its segment id."""

    id: str
    text: str

    def to_dict(self) -> dict:
        return {"id": self.id, "text": self.text}


@dataclass
class TranslationResult:
    """One translated text, keyed by the id it was requested under."""

    id: str
    text: str

    @classmethod
    def from_dict(cls, data: dict) -> TranslationResult:
        """Parse a TranslationResult from a raw API response dict.

        RULES:
        - id and text are always required
        """
        return cls(id=str(data["id"]), text=str(data["text"]))
