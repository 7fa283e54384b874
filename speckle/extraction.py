"""
speckle/extraction.py

Crop the processing window out of a raw 8-bit frame buffer.

The window is a centered square of `window_size` pixels. The source buffer is
row-major with a row pitch (`source_stride`) that may exceed the visible width.
Geometry that would put the window on or past the buffer edges yields an
all-zero window instead of an error: the extraction runs on the live path and
must never bring it down.
"""

from typing import Optional
import logging
import numpy as np

from .frame import Frame, BufferLike, _as_flat_uint8

logger = logging.getLogger(__name__)


def _area_is_valid(
    x: int, y: int, width: int, height: int, x_limit: int, y_limit: int, stride: int, size: int
) -> bool:
    """
    Window must start at least one pixel inside the source and end strictly before its edges.
    The buffer must also hold every byte of the last copied row.
    """
    if width <= 0 or height <= 0:
        return False
    if not (x > 0 and y > 0 and (x + width) < x_limit and (y + height) < y_limit):
        return False
    return (y + height - 1) * stride + x + width <= size


def _copy_rows(src: np.ndarray, x: int, y: int, width: int, height: int, stride: int) -> np.ndarray:
    out = np.empty((height, width), dtype=np.uint8)
    for row in range(height):
        start = (y + row) * stride + x
        out[row, :] = src[start:start + width]
    return out


def extract_window(
    source: BufferLike,
    source_width: int,
    source_height: int,
    source_stride: int,
    window_size: int,
) -> np.ndarray:
    """
    Extract the centered window_size x window_size crop.

    Parameters
    ----------
    source : bytes-like or np.ndarray
        Raw 8-bit pixels, row-major.
    source_width, source_height : int
        Visible image geometry; the crop is centered on (source_width//2, source_height//2).
    source_stride : int
        Row pitch of `source` in bytes.
    window_size : int
        Side of the square window.

    Returns
    -------
    np.ndarray
        uint8 array of shape (window_size, window_size). All zeros when the
        window does not fit inside the source with a one pixel margin.
    """
    window_size = int(window_size)
    if window_size < 0:
        raise ValueError("window_size must be >= 0.")
    if window_size == 0:
        return np.zeros((0, 0), dtype=np.uint8)
    x0 = int(source_width) // 2 - window_size // 2
    y0 = int(source_height) // 2 - window_size // 2
    src = _as_flat_uint8(source)
    if not _area_is_valid(
        x0, y0, window_size, window_size, int(source_stride), int(source_height), int(source_stride), src.size
    ):
        logger.debug(
            "Window %d does not fit in %dx%d (stride %d); returning zeros.",
            window_size, source_width, source_height, source_stride,
        )
        return np.zeros((window_size, window_size), dtype=np.uint8)
    return _copy_rows(src, x0, y0, window_size, window_size, int(source_stride))


def extract_buffer_area(
    source: BufferLike,
    x: int,
    y: int,
    width: int,
    height: int,
    cam_width: int,
    cam_height: int,
    stride: Optional[int] = None,
) -> bytes:
    """
    Extract an arbitrary width x height rectangle starting at (x, y) as flat bytes.
    Same validity rule as extract_window; invalid geometry gives width*height zero bytes.
    The horizontal bound is `cam_width`; `stride` defaults to it.
    """
    stride = int(cam_width) if stride is None else int(stride)
    src = _as_flat_uint8(source)
    if not _area_is_valid(
        int(x), int(y), int(width), int(height), int(cam_width), int(cam_height), stride, src.size
    ):
        return bytes(max(int(width), 0) * max(int(height), 0))
    return _copy_rows(src, int(x), int(y), int(width), int(height), stride).tobytes()


def frame_window(frame: Frame, window_size: int) -> np.ndarray:
    """Centered window of a Frame, honoring its stride."""
    return extract_window(frame.buffer, frame.width, frame.height, frame.stride, window_size)
