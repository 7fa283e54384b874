# pipeline/__init__.py
"""
Live processing pipeline: frame handoff, worker loop and start/stop API.
"""
from .handoff import FrameHandoff, HandoffStats, SlotState
from .worker import Artifact, ArtifactKind, WorkerLoop, WorkerState
from .runtime import FramePump, SpeckleHandle, start, stop

__all__ = [
    "FrameHandoff",
    "HandoffStats",
    "SlotState",
    "Artifact",
    "ArtifactKind",
    "WorkerLoop",
    "WorkerState",
    "FramePump",
    "SpeckleHandle",
    "start",
    "stop",
]
