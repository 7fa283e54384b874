"""
speckle/frame.py

Frame value type passed from the acquisition side to the processing worker.

A Frame wraps an 8-bit row-major pixel buffer whose rows may be padded:
`stride` is the number of bytes between the starts of two consecutive rows and
may exceed `width` when the acquisition region-of-interest is narrower than the
sensor. Frames are treated as immutable; `clone()` makes the explicit deep copy
used when a frame changes owner at the handoff slot.
"""

from typing import Optional, Union
import numpy as np

MONO8 = "Mono8"

BufferLike = Union[bytes, bytearray, memoryview, np.ndarray]


def _as_flat_uint8(buffer: BufferLike) -> np.ndarray:
    if isinstance(buffer, np.ndarray):
        if buffer.dtype != np.uint8:
            buffer = buffer.astype(np.uint8)
        return np.ascontiguousarray(buffer).reshape(-1)
    return np.frombuffer(buffer, dtype=np.uint8)


class Frame:
    """
    One acquired image.

    Parameters
    ----------
    width, height : int
        Image geometry in pixels, both > 0.
    buffer : bytes-like or np.ndarray
        Pixel data, at least stride * (height - 1) + width bytes.
    stride : int, optional
        Row pitch in bytes. Defaults to width.
    pixel_format : str
        Acquisition encoding ("Mono8", "BayerRG8", ...). Only Mono8 is processed.
    timestamp : float, optional
        Acquisition time in seconds.
    sequence : int, optional
        Frame number in the acquisition sequence.
    """

    __slots__ = ("width", "height", "stride", "buffer", "pixel_format", "timestamp", "sequence")

    def __init__(
        self,
        width: int,
        height: int,
        buffer: BufferLike,
        stride: Optional[int] = None,
        pixel_format: str = MONO8,
        timestamp: Optional[float] = None,
        sequence: Optional[int] = None,
    ):
        width = int(width)
        height = int(height)
        stride = width if stride is None else int(stride)
        if width <= 0 or height <= 0:
            raise ValueError(f"Frame dimensions must be positive, got {width}x{height}.")
        if stride < width:
            raise ValueError(f"Frame stride ({stride}) must be >= width ({width}).")
        data = _as_flat_uint8(buffer)
        if data.size < stride * (height - 1) + width:
            raise ValueError(
                f"Frame buffer too short: {data.size} bytes for {width}x{height} pixels at stride {stride}."
            )
        self.width = width
        self.height = height
        self.stride = stride
        self.buffer = data
        self.pixel_format = str(pixel_format)
        self.timestamp = timestamp
        self.sequence = sequence

    @classmethod
    def from_array(
        cls,
        image: np.ndarray,
        pixel_format: str = MONO8,
        timestamp: Optional[float] = None,
        sequence: Optional[int] = None,
    ) -> "Frame":
        """Build a Frame from a 2D uint8 array (stride taken from the array's row length)."""
        if image.ndim != 2:
            raise ValueError("Frame.from_array expects a 2D array.")
        arr = np.ascontiguousarray(image, dtype=np.uint8)
        h, w = arr.shape
        return cls(w, h, arr, stride=w, pixel_format=pixel_format, timestamp=timestamp, sequence=sequence)

    def clone(self) -> "Frame":
        """Deep copy: the returned frame shares no memory with this one."""
        data = np.array(self.buffer, dtype=np.uint8, copy=True)
        data.setflags(write=False)
        return Frame(
            self.width,
            self.height,
            data,
            stride=self.stride,
            pixel_format=self.pixel_format,
            timestamp=self.timestamp,
            sequence=self.sequence,
        )

    @property
    def is_mono8(self) -> bool:
        return self.pixel_format == MONO8

    def to_array(self) -> np.ndarray:
        """Return the visible pixels as a (height, width) uint8 view."""
        rows = self.buffer[: self.stride * (self.height - 1) + self.width]
        full = np.lib.stride_tricks.as_strided(
            rows, shape=(self.height, self.width), strides=(self.stride, 1), writeable=False
        )
        return full

    def __repr__(self) -> str:
        return (
            f"Frame({self.width}x{self.height}, stride={self.stride}, "
            f"format={self.pixel_format!r}, sequence={self.sequence})"
        )
