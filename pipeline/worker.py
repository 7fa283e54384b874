"""
pipeline/worker.py

Background worker driving the speckle processing cycle.

Per claimed frame:
  1) read the current ConfigSnapshot
  2) extract the centered window
  3) power spectrum of the window, staged into a copy of the accumulator
  4) when the staged accumulator is due:
       inverse transform -> shift quadrants -> high-pass -> visualizations -> reset
  5) emit the artifacts, then commit the staged accumulator

Any failure in 1-5 abandons the cycle: the committed accumulator is untouched,
the error goes to the error sink, and the loop moves on to the next frame.
"""

from enum import Enum
from typing import Any, Callable, List, NamedTuple, Optional
import logging
import threading

import numpy as np

from speckle.accumulator import Accumulator
from speckle.config import ConfigSnapshot, DEFAULT_WINDOW_SIZE
from speckle.extraction import frame_window
from speckle.fft_engine import SpectralEngine, shift_quadrants
from speckle.filters import highpass_filter
from speckle.frame import Frame
from visuals.visualizer import (
    false_color_visualization,
    grayscale_visualization,
    window_visualization,
)
from .handoff import FrameHandoff

logger = logging.getLogger(__name__)

DEFAULT_WAIT_TIMEOUT = 1.0


class WorkerState(Enum):
    STOPPED = "stopped"
    RUNNING = "running"
    STOPPING = "stopping"


class ArtifactKind(Enum):
    WINDOW = "window"
    SPECTRUM = "spectrum"
    ACCUMULATED_SPECTRUM = "accumulated_spectrum"
    AUTOCORRELATION = "autocorrelation"


class Artifact(NamedTuple):
    kind: ArtifactKind
    image: np.ndarray
    frame_sequence: Optional[int]
    cycle: int


ArtifactSink = Callable[[Artifact], Any]
ErrorSink = Callable[[str], Any]
ConfigProvider = Callable[[], ConfigSnapshot]


class WorkerLoop:
    """
    Consumer side of the FrameHandoff.

    Parameters
    ----------
    handoff : FrameHandoff
        Slot shared with the acquisition side.
    get_config : callable
        Returns the ConfigSnapshot to use; called once at the start of every cycle.
    artifact_sink : callable
        Receives every Artifact, on the worker thread.
    error_sink : callable, optional
        Receives a message for every abandoned cycle.
    window_size : int
        Side of the processing window.
    engine : SpectralEngine, optional
        Transform wrapper; defaults to numpy's FFT.
    wait_timeout : float
        Longest wait for a frame before the stop flag is re-checked.
    """

    def __init__(
        self,
        handoff: FrameHandoff,
        get_config: ConfigProvider,
        artifact_sink: ArtifactSink,
        error_sink: Optional[ErrorSink] = None,
        window_size: int = DEFAULT_WINDOW_SIZE,
        engine: Optional[SpectralEngine] = None,
        wait_timeout: float = DEFAULT_WAIT_TIMEOUT,
    ):
        if int(window_size) < 2:
            raise ValueError("window_size must be >= 2.")
        if wait_timeout is None or wait_timeout <= 0:
            raise ValueError("wait_timeout must be a positive number of seconds.")
        self.handoff = handoff
        self.get_config = get_config
        self.artifact_sink = artifact_sink
        self.error_sink = error_sink
        self.window_size = int(window_size)
        self.engine = engine or SpectralEngine()
        self.wait_timeout = float(wait_timeout)

        self._state = WorkerState.STOPPED
        self._state_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._accumulator: Optional[Accumulator] = None

        self.frames_processed = 0
        self.cycles_completed = 0
        self.errors = 0

    # --- lifecycle ---
    @property
    def state(self) -> WorkerState:
        return self._state

    @property
    def accumulator(self) -> Optional[Accumulator]:
        return self._accumulator

    def start(self) -> None:
        with self._state_lock:
            if self._state is not WorkerState.STOPPED:
                raise RuntimeError(f"Worker cannot start from state {self._state.value}.")
            if self.handoff.closed:
                raise RuntimeError("Worker cannot start on a closed handoff.")
            self._accumulator = Accumulator((self.window_size, self.window_size))
            self._stop_event.clear()
            self._state = WorkerState.RUNNING
            self._thread = threading.Thread(target=self._run, name="speckle-worker", daemon=True)
            self._thread.start()
        logger.info("Worker started (window %d, wait timeout %.2fs).", self.window_size, self.wait_timeout)

    def stop(self, timeout: Optional[float] = None) -> None:
        """
        Ask the loop to finish and wait for it. A cycle already in progress runs
        to completion; nothing is emitted once this returns (unless `timeout`
        expires first, which is logged).
        """
        with self._state_lock:
            if self._state is not WorkerState.RUNNING:
                return
            self._state = WorkerState.STOPPING
            self._stop_event.set()
        self.handoff.close()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
            if thread.is_alive():
                logger.warning("Worker thread still running after %.2fs.", timeout)
        self._thread = None
        with self._state_lock:
            self._state = WorkerState.STOPPED
        logger.info(
            "Worker stopped after %d frames, %d cycles, %d errors.",
            self.frames_processed, self.cycles_completed, self.errors,
        )

    # --- loop ---
    def _run(self) -> None:
        while not self._stop_event.is_set():
            frame = self.handoff.wait_and_claim(self.wait_timeout)
            if frame is None:
                continue
            try:
                self.process_frame(frame)
            except Exception as exc:
                self.errors += 1
                logger.exception("Processing cycle for frame %s abandoned.", frame.sequence)
                self._report_error(f"{type(exc).__name__}: {exc}")
            finally:
                self.handoff.mark_ready()

    def _report_error(self, message: str) -> None:
        if self.error_sink is None:
            return
        try:
            self.error_sink(message)
        except Exception:
            logger.exception("Error sink raised while reporting: %s", message)

    def process_frame(self, frame: Frame) -> List[Artifact]:
        """
        Run one processing cycle on `frame` and emit its artifacts.
        Exceptions propagate; the loop turns them into error reports.
        A sink that raises abandons the cycle too: the accumulator is only
        committed after the last artifact was delivered.
        Returns the emitted artifacts (empty for skipped frames).
        """
        if self._accumulator is None:
            self._accumulator = Accumulator((self.window_size, self.window_size))
        config = self.get_config()
        if not frame.is_mono8:
            logger.debug("Skipping frame %s with pixel format %s.", frame.sequence, frame.pixel_format)
            return []

        resize = config.resize_for_display
        cycle = self.cycles_completed

        window = frame_window(frame, self.window_size)
        spectrum = self.engine.forward(window.astype(np.float64))

        staged = self._accumulator.copy()
        staged.add(spectrum)

        artifacts = [
            Artifact(ArtifactKind.WINDOW, window_visualization(window, resize=resize), frame.sequence, cycle),
            Artifact(
                ArtifactKind.SPECTRUM,
                grayscale_visualization(spectrum, log_scale=True, shift_quadrants=True, resize=resize),
                frame.sequence,
                cycle,
            ),
        ]

        completed = staged.is_due(config.accumulation_length)
        if completed:
            ac = self.engine.inverse(staged.sum)
            # center the zero-lag peak before filtering
            shift_quadrants(ac)
            filtered = highpass_filter(ac, config.filter_size)
            artifacts.append(
                Artifact(
                    ArtifactKind.ACCUMULATED_SPECTRUM,
                    grayscale_visualization(staged.sum, log_scale=True, shift_quadrants=True, resize=resize),
                    frame.sequence,
                    cycle,
                )
            )
            artifacts.append(
                Artifact(
                    ArtifactKind.AUTOCORRELATION,
                    false_color_visualization(filtered, resize=resize),
                    frame.sequence,
                    cycle,
                )
            )
            staged.reset()

        for artifact in artifacts:
            self.artifact_sink(artifact)

        # commit only once every artifact was delivered
        self._accumulator = staged
        self.frames_processed += 1
        if completed:
            self.cycles_completed += 1
            logger.debug("Accumulation cycle %d completed at frame %s.", cycle, frame.sequence)
        return artifacts
