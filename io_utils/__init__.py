# io_utils/__init__.py
"""
I/O helpers package: image files, frame sources and artifact sinks.
"""
from .image_handler import read_image, save_image
from .file_utils import make_artifact_filename, make_run_dir, save_parameters_txt
from .frame_sources import (
    FrameSource,
    NpyFrameSource,
    AviFrameSource,
    ImageFolderSource,
    SyntheticSpeckleSource,
    PointSourceFrames,
)
from .sinks import ArtifactRecorder, ArtifactSaver, ErrorLog, fan_out

__all__ = [
    "read_image",
    "save_image",
    "make_artifact_filename",
    "make_run_dir",
    "save_parameters_txt",
    "FrameSource",
    "NpyFrameSource",
    "AviFrameSource",
    "ImageFolderSource",
    "SyntheticSpeckleSource",
    "PointSourceFrames",
    "ArtifactRecorder",
    "ArtifactSaver",
    "ErrorLog",
    "fan_out",
]
