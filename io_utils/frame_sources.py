"""
Frame sources feeding the live pipeline without a camera.

Every source yields speckle.frame.Frame objects from frames():
- NpyFrameSource: (H, W) or (N, H, W) stack saved with np.save
- AviFrameSource: video file decoded with OpenCV, converted to grayscale
- ImageFolderSource: sorted image files read with Pillow
- SyntheticSpeckleSource: simulated short-exposure speckle of a single or double star
- PointSourceFrames: a single bright pixel at the frame center
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterator, Optional
import logging
import time

import cv2
import numpy as np

from speckle.frame import Frame
from .image_handler import read_image

logger = logging.getLogger(__name__)


def _as_uint8(frame: np.ndarray) -> np.ndarray:
    """uint16 Mono12-style data is shifted down by 4 bits; other dtypes are clipped."""
    if frame.dtype == np.uint8:
        return frame
    if frame.dtype == np.uint16:
        return (frame >> 4).astype(np.uint8)
    return np.clip(frame, 0, 255).astype(np.uint8)


class FrameSource(ABC):
    """
    Abstract base class for a frame source.

    Subclasses MUST set:
      - self.shape: (H, W)

    and MUST implement:
      - frames(): yields Frame objects of that shape
    """

    shape: tuple[int, int]

    @abstractmethod
    def frames(self) -> Iterator[Frame]:
        raise NotImplementedError

    def __iter__(self) -> Iterator[Frame]:
        return self.frames()


class NpyFrameSource(FrameSource):
    def __init__(self, path: str | Path, *, loop: bool = False):
        self.path = Path(path)
        self.loop = loop
        data = np.load(self.path, mmap_mode="r")
        if data.ndim == 2:
            data = data[None, ...]
        if data.ndim != 3:
            raise ValueError(f"Expected (H, W) or (N, H, W) array in {self.path}, got shape {data.shape}.")
        self._data = data
        self.shape = (int(data.shape[1]), int(data.shape[2]))

    def __len__(self) -> int:
        return int(self._data.shape[0])

    def frames(self) -> Iterator[Frame]:
        seq = 0
        while True:
            for i in range(self._data.shape[0]):
                img = _as_uint8(np.asarray(self._data[i]))
                yield Frame.from_array(img, timestamp=time.time(), sequence=seq)
                seq += 1
            if not self.loop:
                break


class AviFrameSource(FrameSource):
    """
    Video file source.

    - Reads frames via cv2.VideoCapture
    - Converts color -> grayscale
    - Checks for shape consistency
    """

    def __init__(self, path: str | Path):
        self.path = str(path)
        cap = cv2.VideoCapture(self.path)
        if not cap.isOpened():
            raise FileNotFoundError(f"Could not open video: {self.path}")
        ok, frame = cap.read()
        cap.release()
        if not ok or frame is None:
            raise ValueError(f"Could not read first frame from: {self.path}")
        frame2d = self._to_2d_uint8(frame)
        self.shape = (int(frame2d.shape[0]), int(frame2d.shape[1]))

    @staticmethod
    def _to_2d_uint8(frame: np.ndarray) -> np.ndarray:
        if frame.ndim == 3:
            frame = cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
        if frame.ndim != 2:
            raise ValueError(f"Expected 2D frame after conversion, got shape {frame.shape}")
        return _as_uint8(frame)

    def frames(self) -> Iterator[Frame]:
        cap = cv2.VideoCapture(self.path)
        if not cap.isOpened():
            raise FileNotFoundError(f"Could not open video: {self.path}")
        seq = 0
        try:
            while True:
                ok, frame = cap.read()
                if not ok or frame is None:
                    break
                frame2d = self._to_2d_uint8(frame)
                if frame2d.shape != self.shape:
                    raise ValueError(
                        f"Frame shape changed. Expected {self.shape}, got {frame2d.shape}."
                    )
                yield Frame.from_array(frame2d, timestamp=time.time(), sequence=seq)
                seq += 1
        finally:
            cap.release()


class ImageFolderSource(FrameSource):
    def __init__(self, folder: str | Path, pattern: str = "*.png"):
        self.paths = sorted(Path(folder).glob(pattern))
        if not self.paths:
            raise FileNotFoundError(f"No images matching {pattern} in {folder}")
        first, _ = read_image(str(self.paths[0]))
        self.shape = (int(first.shape[0]), int(first.shape[1]))

    def frames(self) -> Iterator[Frame]:
        for seq, p in enumerate(self.paths):
            arr, meta = read_image(str(p))
            if arr.shape != self.shape:
                logger.warning("Skipping %s: shape %s differs from %s.", p, arr.shape, self.shape)
                continue
            yield Frame.from_array(arr, timestamp=time.time(), sequence=seq)


class SyntheticSpeckleSource(FrameSource):
    """
    Short-exposure speckle images of a point source (optionally a binary).

    Each frame draws an independent random phase screen over a circular pupil;
    the instantaneous PSF is |IFFT(pupil * exp(i*phase))|^2. A companion of
    relative brightness `companion_ratio` at offset `separation` (dy, dx) adds a
    shifted copy of the same PSF, which shows up as side peaks in the
    autocorrelation.

    Parameters
    ----------
    width, height : int
        Full frame size.
    speckle_size : int
        Side of the simulated PSF patch (pasted at the frame center).
    pupil_radius : float
        Pupil radius in frequency pixels; smaller means larger speckles.
    n_frames : int, optional
        Number of frames; None means endless.
    stride : int, optional
        Row pitch of the produced buffers (>= width) to mimic a padded ROI.
    """

    def __init__(
        self,
        width: int = 320,
        height: int = 240,
        *,
        speckle_size: int = 128,
        pupil_radius: float = 12.0,
        separation: Optional[tuple[int, int]] = None,
        companion_ratio: float = 0.6,
        noise: float = 2.0,
        n_frames: Optional[int] = None,
        stride: Optional[int] = None,
        seed: Optional[int] = None,
    ):
        if speckle_size > min(width, height):
            raise ValueError("speckle_size must fit inside the frame.")
        self.shape = (int(height), int(width))
        self.stride = int(width) if stride is None else int(stride)
        if self.stride < width:
            raise ValueError("stride must be >= width.")
        self.speckle_size = int(speckle_size)
        self.pupil_radius = float(pupil_radius)
        self.separation = separation
        self.companion_ratio = float(companion_ratio)
        self.noise = float(noise)
        self.n_frames = n_frames
        self._rng = np.random.default_rng(seed)

        n = self.speckle_size
        u = np.fft.fftfreq(n) * n
        uu, vv = np.meshgrid(u, u, indexing="ij")
        self._pupil = (np.hypot(uu, vv) <= self.pupil_radius).astype(np.float64)

    def speckle_patch(self) -> np.ndarray:
        """One float PSF patch (speckle_size x speckle_size), peak normalized to 1."""
        phase = self._rng.uniform(0.0, 2.0 * np.pi, self._pupil.shape)
        field = np.fft.ifft2(self._pupil * np.exp(1j * phase))
        psf = np.abs(field) ** 2
        psf = np.fft.fftshift(psf)
        if self.separation is not None:
            dy, dx = self.separation
            psf = psf + self.companion_ratio * np.roll(psf, (int(dy), int(dx)), axis=(0, 1))
        peak = float(psf.max())
        return psf / peak if peak > 0 else psf

    def render(self) -> np.ndarray:
        """One full (H, W) uint8 image."""
        h, w = self.shape
        img = np.zeros((h, w), dtype=np.float64)
        n = self.speckle_size
        y0 = h // 2 - n // 2
        x0 = w // 2 - n // 2
        img[y0:y0 + n, x0:x0 + n] = 240.0 * self.speckle_patch()
        if self.noise > 0:
            img += self._rng.normal(0.0, self.noise, img.shape)
        return np.clip(np.rint(img), 0, 255).astype(np.uint8)

    def frames(self) -> Iterator[Frame]:
        seq = 0
        h, w = self.shape
        while self.n_frames is None or seq < self.n_frames:
            img = self.render()
            if self.stride != w:
                padded = np.zeros((h, self.stride), dtype=np.uint8)
                padded[:, :w] = img
                buf = padded.reshape(-1)
            else:
                buf = img.reshape(-1)
            yield Frame(w, h, buf, stride=self.stride, timestamp=time.time(), sequence=seq)
            seq += 1


class PointSourceFrames(FrameSource):
    """`n_frames` identical frames with one bright pixel at (height//2, width//2)."""

    def __init__(self, width: int = 256, height: int = 256, n_frames: int = 5, value: int = 255):
        self.shape = (int(height), int(width))
        self.n_frames = int(n_frames)
        self.value = int(value)

    def image(self) -> np.ndarray:
        h, w = self.shape
        img = np.zeros((h, w), dtype=np.uint8)
        img[h // 2, w // 2] = self.value
        return img

    def frames(self) -> Iterator[Frame]:
        img = self.image()
        for seq in range(self.n_frames):
            yield Frame.from_array(img, timestamp=time.time(), sequence=seq)
