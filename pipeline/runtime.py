"""
pipeline/runtime.py

Start / stop API wiring the FrameHandoff, the WorkerLoop and, optionally, a
frame source pumped on its own thread (standing in for a camera callback).

    handle = start(settings, recorder, errors.append, window_size=128)
    handle.on_frame(frame)      # from the acquisition thread, never blocks
    stop(handle)
"""

from typing import Any, Dict, Iterable, Optional, Union
import logging
import threading
import time

from speckle.config import DEFAULT_WINDOW_SIZE
from speckle.fft_engine import SpectralEngine
from speckle.frame import Frame
from .handoff import FrameHandoff
from .worker import (
    DEFAULT_WAIT_TIMEOUT,
    ArtifactSink,
    ConfigProvider,
    ErrorSink,
    WorkerLoop,
)

logger = logging.getLogger(__name__)


class FramePump:
    """
    Feeds frames from an iterable (or an object with a frames() iterator) into
    a callback on a background thread, optionally one every `interval` seconds.
    Stops at the end of the source or when stop() is called.
    """

    def __init__(self, source: Any, on_frame, interval: Optional[float] = None):
        self.source = source
        self.on_frame = on_frame
        self.interval = interval
        self.frames_sent = 0
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.finished = threading.Event()

    def _iter_frames(self) -> Iterable[Frame]:
        if hasattr(self.source, "frames"):
            return self.source.frames()
        return iter(self.source)

    def start(self) -> None:
        self._thread = threading.Thread(target=self._run, name="speckle-frame-pump", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        try:
            for frame in self._iter_frames():
                if self._stop_event.is_set():
                    break
                self.on_frame(frame)
                self.frames_sent += 1
                if self.interval:
                    if self._stop_event.wait(self.interval):
                        break
        except Exception:
            logger.exception("Frame source failed after %d frames.", self.frames_sent)
        finally:
            self.finished.set()
            logger.info("Frame pump finished after %d frames.", self.frames_sent)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop_event.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        self._thread = None


class SpeckleHandle:
    """Running pipeline returned by start(). Also usable as a context manager."""

    def __init__(self, handoff: FrameHandoff, worker: WorkerLoop, pump: Optional[FramePump] = None):
        self.handoff = handoff
        self.worker = worker
        self.pump = pump
        self._stopped = False

    def on_frame(self, frame: Frame) -> bool:
        """Acquisition callback: offer the frame and return immediately."""
        return self.handoff.offer(frame)

    @property
    def running(self) -> bool:
        return not self._stopped

    def stats(self) -> Dict[str, int]:
        h = self.handoff.stats
        out = {
            "offered": h.offered,
            "accepted": h.accepted,
            "dropped": h.dropped,
            "replaced": h.replaced,
            "frames_processed": self.worker.frames_processed,
            "cycles_completed": self.worker.cycles_completed,
            "errors": self.worker.errors,
        }
        if self.pump is not None:
            out["frames_sent"] = self.pump.frames_sent
        return out

    def stop(self) -> None:
        if self._stopped:
            return
        self._stopped = True
        if self.pump is not None:
            self.pump.stop()
        self.worker.stop()

    def __enter__(self) -> "SpeckleHandle":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()


def start(
    get_config: ConfigProvider,
    artifact_sink: ArtifactSink,
    error_sink: Optional[ErrorSink] = None,
    *,
    window_size: int = DEFAULT_WINDOW_SIZE,
    engine: Optional[SpectralEngine] = None,
    wait_timeout: float = DEFAULT_WAIT_TIMEOUT,
    frame_source: Union[Iterable[Frame], Any, None] = None,
    source_interval: Optional[float] = None,
) -> SpeckleHandle:
    """
    Create the handoff slot and worker, start the worker, and optionally pump
    `frame_source` into it. Returns the handle used to feed frames and stop.
    """
    handoff = FrameHandoff()
    worker = WorkerLoop(
        handoff,
        get_config,
        artifact_sink,
        error_sink=error_sink,
        window_size=window_size,
        engine=engine,
        wait_timeout=wait_timeout,
    )
    worker.start()
    handle = SpeckleHandle(handoff, worker)
    if frame_source is not None:
        handle.pump = FramePump(frame_source, handle.on_frame, interval=source_interval)
        handle.pump.start()
    return handle


def stop(handle: SpeckleHandle) -> None:
    """Stop the pump (if any) and the worker. Safe to call more than once."""
    t0 = time.monotonic()
    handle.stop()
    logger.debug("Pipeline stopped in %.3fs.", time.monotonic() - t0)
