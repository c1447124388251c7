"""Shared test fixtures for the caption_studio test suite.

WHY: Most test modules need the same small transcription and OCR
samples. Centralizing fixtures here avoids duplication and keeps the
expected segment boundaries in one place.

HOW: Pytest fixtures provide a word list with two sentences, a loaded
TranscriptDocument built from it, and a frame-sampled OCR observation
stream with one repeated caption separated by a long gap.

RULES:
- Word timings are hand-picked, strictly increasing, in seconds
- SAMPLE_WORDS contains exactly two sentences (4 + 3 words)
- SAMPLE_OBSERVATIONS yields three segments at the default 2.0s gap
"""

from typing import List

import pytest

from caption_studio.core.document import TranscriptDocument
from caption_studio.core.ir import Observation, Rect, Word
from caption_studio.core.segmenter import punctuation_boundary

SAMPLE_WORDS: List[Word] = [
    Word(text="How",    start=0.12, end=0.25, confidence=0.97),
    Word(text="are",    start=0.26, end=0.38, confidence=0.95),
    Word(text="you",    start=0.39, end=0.51, confidence=0.96),
    Word(text="today?", start=0.52, end=0.94, confidence=0.93),
    Word(text="I",      start=1.20, end=1.26, confidence=0.98),
    Word(text="am",     start=1.27, end=1.38, confidence=0.97),
    Word(text="fine.",  start=1.39, end=1.78, confidence=0.90),
]

SAMPLE_OBSERVATIONS: List[Observation] = [
    Observation(text="Welcome", time=0.0, region=Rect(10, 10, 100, 20)),
    Observation(text="Welcome", time=1.0, region=Rect(12, 8, 100, 20)),
    Observation(text="", time=2.0),
    Observation(text="Chapter 1", time=3.0),
    Observation(text="Chapter 1", time=4.0),
    Observation(text="", time=5.0),
    Observation(text="Welcome", time=6.0),
]


@pytest.fixture
def sample_words():
    """Two sentences of transcribed words."""
    return list(SAMPLE_WORDS)


@pytest.fixture
def sample_observations():
    """Frame-sampled OCR detections, one per second."""
    return list(SAMPLE_OBSERVATIONS)


@pytest.fixture
def loaded_document(sample_words):
    """A document holding the two sample sentences as two segments."""
    document = TranscriptDocument(language="en")
    document.load(sample_words, punctuation_boundary)
    return document
