# io_utils/sinks.py
"""
Artifact and error sinks for the live pipeline.

- ArtifactRecorder: keeps the latest image per artifact kind (plus a bounded
  history) and lets other threads wait for a given kind
- ArtifactSaver: writes every artifact to a PNG file
- ErrorLog: collects error messages reported by the worker
- fan_out(*sinks): one sink calling several others in order

All sinks are called on the worker thread and return quickly; a slow sink
delays the processing of the next frame.
"""

from collections import defaultdict, deque
from typing import Callable, Deque, Dict, List, Optional
import logging
import threading

from .file_utils import make_artifact_filename
from .image_handler import save_image

logger = logging.getLogger(__name__)


def _kind_name(kind) -> str:
    return getattr(kind, "value", str(kind))


class ArtifactRecorder:
    def __init__(self, history: int = 32):
        self._cond = threading.Condition()
        self._latest: Dict[str, object] = {}
        self._history: Dict[str, Deque] = defaultdict(lambda: deque(maxlen=history))
        self._counts: Dict[str, int] = defaultdict(int)

    def __call__(self, artifact) -> None:
        name = _kind_name(artifact.kind)
        with self._cond:
            self._latest[name] = artifact
            self._history[name].append(artifact)
            self._counts[name] += 1
            self._cond.notify_all()

    def latest(self, kind) -> Optional[object]:
        with self._cond:
            return self._latest.get(_kind_name(kind))

    def history(self, kind) -> List[object]:
        with self._cond:
            return list(self._history.get(_kind_name(kind), ()))

    def count(self, kind) -> int:
        with self._cond:
            return self._counts.get(_kind_name(kind), 0)

    def latest_images(self) -> Dict[str, object]:
        with self._cond:
            return {k: a.image for k, a in self._latest.items()}

    def wait_for(self, kind, count: int = 1, timeout: Optional[float] = None) -> bool:
        """Block until at least `count` artifacts of `kind` were recorded. False on timeout."""
        name = _kind_name(kind)
        with self._cond:
            return self._cond.wait_for(lambda: self._counts.get(name, 0) >= count, timeout=timeout)


class ArtifactSaver:
    """
    Save artifacts as PNG files under out_dir.
    `kinds` restricts which artifact kinds are written (all when None).
    """

    def __init__(self, out_dir: str, kinds=None):
        self.out_dir = out_dir
        self.kinds = None if kinds is None else {_kind_name(k) for k in kinds}
        self.saved: List[str] = []

    def __call__(self, artifact) -> None:
        name = _kind_name(artifact.kind)
        if self.kinds is not None and name not in self.kinds:
            return
        path = make_artifact_filename(name, artifact.cycle, artifact.frame_sequence, outdir=self.out_dir)
        save_image(path, artifact.image)
        self.saved.append(path)
        logger.debug("Saved %s", path)


class ErrorLog:
    def __init__(self):
        self._lock = threading.Lock()
        self.messages: List[str] = []

    def __call__(self, message: str) -> None:
        logger.warning("Processing error: %s", message)
        with self._lock:
            self.messages.append(message)

    def __len__(self) -> int:
        with self._lock:
            return len(self.messages)


def fan_out(*sinks: Callable) -> Callable:
    """Combine sinks; each receives every artifact, in the given order."""
    def _sink(artifact) -> None:
        for s in sinks:
            s(artifact)
    return _sink
