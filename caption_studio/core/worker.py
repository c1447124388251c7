"""Background segmentation of an observation stream that is still arriving.

WHY: Frame-sampled OCR is slow — a minute of video is sixty recognizer
calls. Segmentation should keep up with the producer instead of waiting
for the whole stream, and the user must be able to abort a long run
without a half-built segment list leaking into the editable document.

HOW: SegmentationWorker runs an ObservationClusterer on a daemon thread.
Producers push observations with submit() and signal end of stream with
close(). The thread drains a queue.Queue in arrival order and can publish
provisional lists through an on_update callback. result() blocks until
the terminal list is ready. cancel() sets a threading.Event that the
thread checks between observations.

RULES:
- Observations are processed strictly in arrival order
- on_update receives previews only; result() is the terminal list
- After cancel(), result() raises SegmentationCancelled
- Exceptions raised on the worker thread are re-raised by result()
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Any, Callable, List, Optional

from caption_studio.config import DEFAULT_GAP_THRESHOLD
from caption_studio.core.errors import SegmentationCancelled
from caption_studio.core.ir import Observation, VisualSegment
from caption_studio.core.segmenter import KeyFn, ObservationClusterer

logger = logging.getLogger(__name__)

# Sentinel that marks end of stream on the queue.
_END = object()

# How long the thread waits on an empty queue before rechecking cancel.
_POLL_INTERVAL_S = 0.1


class SegmentationWorker:
    """Cluster observations on a background thread.

    Args:
        gap_threshold: Passed to the clusterer.
        key: Optional clustering key function.
        on_update: Called on the worker thread with a provisional
            segment list after each accepted observation.
    """

    def __init__(
        self,
        gap_threshold: float = DEFAULT_GAP_THRESHOLD,
        key: Optional[KeyFn] = None,
        on_update: Optional[Callable[[List[VisualSegment]], None]] = None,
    ) -> None:
        self._clusterer = ObservationClusterer(gap_threshold=gap_threshold, key=key)
        self._on_update = on_update
        self._queue: queue.Queue = queue.Queue()
        self._cancel_event = threading.Event()
        self._done = threading.Event()
        self._result: Optional[List[VisualSegment]] = None
        self._error: Optional[BaseException] = None
        self._closed = False
        self._thread = threading.Thread(
            target=self._run,
            name="segmentation-worker",
            daemon=True,
        )
        self._thread.start()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def submit(self, observation: Observation) -> None:
        """Queue one observation for clustering."""
        if self._closed:
            raise RuntimeError("Worker input is closed")
        self._queue.put(observation)

    def close(self) -> None:
        """Signal that no more observations will arrive."""
        if not self._closed:
            self._closed = True
            self._queue.put(_END)

    def cancel(self) -> None:
        """Abort the run; active aggregates are discarded."""
        self._closed = True
        self._cancel_event.set()

    def result(self, timeout: Optional[float] = None) -> List[VisualSegment]:
        """Block until the terminal segment list is available.

        Raises:
            SegmentationCancelled: The run was cancelled.
            TimeoutError: timeout elapsed before the run finished.
        """
        if not self._done.wait(timeout):
            raise TimeoutError("Segmentation still running after {}s".format(timeout))
        if self._error is not None:
            raise self._error
        assert self._result is not None
        return self._result

    def _run(self) -> None:
        try:
            while True:
                if self._cancel_event.is_set():
                    self._clusterer.cancel()
                    raise SegmentationCancelled("Segmentation cancelled mid-stream")
                try:
                    item: Any = self._queue.get(timeout=_POLL_INTERVAL_S)
                except queue.Empty:
                    continue
                if item is _END:
                    break
                self._clusterer.feed(item)
                if self._on_update is not None:
                    self._on_update(self._clusterer.partial())
            # A cancel that raced with end of stream still wins.
            if self._cancel_event.is_set():
                self._clusterer.cancel()
                raise SegmentationCancelled("Segmentation cancelled mid-stream")
            self._result = self._clusterer.finish()
            logger.info("Background segmentation produced %d segments", len(self._result))
        except SegmentationCancelled as e:
            logger.info("Background segmentation cancelled")
            self._error = e
        except Exception as e:
            logger.exception("Background segmentation failed")
            self._error = e
        finally:
            self._done.set()
