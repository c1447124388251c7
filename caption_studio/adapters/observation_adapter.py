"""Adapters from external producers to the observation and word IR.

WHY: OCR and speech-to-text services each emit their own JSON shapes.
The segmentation engine and the document only understand Observation
and Word, so every producer output passes through here first.

HOW: parse_observations() and parse_transcription() accept several key
spellings (the names common speech and OCR tools emit) and build frozen
IR objects. sample_frame_observations() is the frame-sampled OCR
producer: it calls a recognizer on each (timestamp, image) frame and
joins the detected strings into one Observation per frame.
check_monotonic() verifies the ordering precondition on demand, and
frame_times() yields the sampling timestamps for a clip of known length.

RULES:
- Non-dict items and words with no text are skipped, never guessed at
- Missing confidence defaults to 1.0; missing end defaults to start
- A confidence outside [0, 1] is rejected with ValueError
- RecognitionOptions values are validated, then passed through untouched
- sample_frame_observations() stops at the next frame once cancel_event
  is set
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, List, Optional, Sequence, Tuple

from caption_studio.config import (
    DEFAULT_FRAME_INTERVAL,
    DEFAULT_LANGUAGE,
    DEFAULT_RECOGNITION_LANGUAGE,
    DEFAULT_RECOGNITION_LEVEL,
    RECOGNITION_LANGUAGES,
    RECOGNITION_LEVELS,
)
from caption_studio.core.errors import MalformedObservationStreamError
from caption_studio.core.ir import Observation, Rect, Word

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecognitionOptions:
    """Options forwarded to the OCR capability.

    RULES:
    - level: one of RECOGNITION_LEVELS ("fast", "accurate")
    - language: one of RECOGNITION_LANGUAGES (e.g. "en-US", "zh-Hans")
    """

    level: str = DEFAULT_RECOGNITION_LEVEL
    language: str = DEFAULT_RECOGNITION_LANGUAGE

    def __post_init__(self) -> None:
        if self.level not in RECOGNITION_LEVELS:
            raise ValueError(
                "Unknown recognition level '{}'. Available: {}".format(
                    self.level, ", ".join(sorted(RECOGNITION_LEVELS))
                )
            )
        if self.language not in RECOGNITION_LANGUAGES:
            raise ValueError(
                "Unsupported recognition language '{}'. Available: {}".format(
                    self.language, ", ".join(sorted(RECOGNITION_LANGUAGES))
                )
            )


Recognizer = Callable[[Any, RecognitionOptions], Sequence[str]]


def _first(item: dict, *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in item and item[key] is not None:
            return item[key]
    return default


def _confidence(item: dict, *keys: str) -> float:
    value = float(_first(item, *keys, default=1.0))
    if not 0.0 <= value <= 1.0:
        raise ValueError("Confidence {} is outside [0, 1]".format(value))
    return value


def _parse_region(raw: Any) -> Optional[Rect]:
    if isinstance(raw, dict):
        return Rect(
            x=float(raw.get("x", 0.0)),
            y=float(raw.get("y", 0.0)),
            width=float(raw.get("width", raw.get("w", 0.0))),
            height=float(raw.get("height", raw.get("h", 0.0))),
        )
    if isinstance(raw, (list, tuple)) and len(raw) == 4:
        x, y, w, h = (float(v) for v in raw)
        return Rect(x=x, y=y, width=w, height=h)
    return None


def parse_observations(data: Any) -> List[Observation]:
    """Parse a list of raw OCR detections into Observations.

    Accepted keys: text/detected_text, time/timestamp, end_time/end,
    confidence, region/bbox (dict or [x, y, w, h]).
    """
    if not isinstance(data, list):
        raise ValueError("Observation input must be a JSON list")

    observations: List[Observation] = []
    for item in data:
        if not isinstance(item, dict):
            continue
        text = _first(item, "text", "detected_text", default="")
        time = _first(item, "time", "timestamp")
        if time is None:
            logger.warning("Skipping observation without a timestamp: %r", text)
            continue
        end_time = _first(item, "end_time", "end")
        observations.append(Observation(
            text=str(text),
            time=float(time),
            end_time=float(end_time) if end_time is not None else None,
            confidence=_confidence(item, "confidence"),
            region=_parse_region(_first(item, "region", "bbox")),
        ))
    return observations


def _parse_word(item: dict) -> Optional[Word]:
    text = _first(item, "word", "text", "w", default="")
    text = str(text).strip()
    if not text:
        return None
    start = float(_first(item, "start", "s", default=0.0))
    end = float(_first(item, "end", "e", default=start))
    return Word(
        text=text,
        start=start,
        end=end,
        confidence=_confidence(item, "probability", "confidence", "score"),
    )


def parse_transcription(data: Any) -> Tuple[List[Word], str]:
    """Parse transcription output into a flat word list and language tag.

    Accepts three shapes:
      1. ``{"language": ..., "segments": [{"words": [...]}, ...]}``
      2. ``{"language": ..., "words": [...]}``
      3. A flat list of word objects

    Returns:
        (words, language); language falls back to DEFAULT_LANGUAGE.
    """
    language = DEFAULT_LANGUAGE
    raw_words: List[Any] = []

    if isinstance(data, dict):
        language = str(data.get("language") or DEFAULT_LANGUAGE)
        if isinstance(data.get("segments"), list):
            for segment in data["segments"]:
                if isinstance(segment, dict) and isinstance(segment.get("words"), list):
                    raw_words.extend(segment["words"])
        elif isinstance(data.get("words"), list):
            raw_words = data["words"]
    elif isinstance(data, list):
        raw_words = data
    else:
        raise ValueError("Transcription input must be a JSON object or list")

    words: List[Word] = []
    for item in raw_words:
        if not isinstance(item, dict):
            continue
        word = _parse_word(item)
        if word is not None:
            words.append(word)
    return words, language


def check_monotonic(observations: Sequence[Observation]) -> None:
    """Raise if any observation's time is less than its predecessor's.

    Equal timestamps are allowed.
    """
    for i in range(1, len(observations)):
        previous = observations[i - 1].time
        current = observations[i].time
        if current < previous:
            raise MalformedObservationStreamError(i, previous, current)


def frame_times(duration: float, interval: float = DEFAULT_FRAME_INTERVAL) -> Iterator[float]:
    """Sampling timestamps 0, interval, 2*interval, ... strictly below duration."""
    if interval <= 0:
        raise ValueError("interval must be positive, got {}".format(interval))
    step = 0
    while step * interval < duration:
        yield step * interval
        step += 1


def sample_frame_observations(
    frames: Iterable[Tuple[float, Any]],
    recognizer: Recognizer,
    options: Optional[RecognitionOptions] = None,
    cancel_event: Optional[threading.Event] = None,
) -> Iterator[Observation]:
    """Run OCR over sampled frames, yielding one Observation per frame.

    Args:
        frames: (timestamp, image) pairs in time order, e.g. one per
            frame_times() step.
        recognizer: ``recognizer(image, options)`` → detected strings, top
            candidate per text region.
        options: Recognition level/language, forwarded as-is.
        cancel_event: Stops the producer before the next frame when set.

    Yields:
        Observations whose text is the detected strings joined by a space;
        frames with no detections yield an empty-text observation, which
        the segmentation engine discards.
    """
    options = options or RecognitionOptions()
    for timestamp, image in frames:
        if cancel_event is not None and cancel_event.is_set():
            logger.info("Frame sampling cancelled at %.3fs", timestamp)
            return
        detected = recognizer(image, options)
        text = " ".join(s for s in detected if s)
        yield Observation(text=text, time=float(timestamp))
