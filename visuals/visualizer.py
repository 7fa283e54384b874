"""
visuals/visualizer.py

Turn floating-point spectra / autocorrelations into 8-bit display images.

APIs:
- grayscale_visualization(matrix, log_scale=False, shift_quadrants=False, resize=False) -> (H,W) uint8
- false_color_visualization(matrix, shift_quadrants=False, resize=False) -> (H,W,3) uint8 RGB
- window_visualization(window, resize=False) -> (H,W) uint8
- upscale_for_display(image, factor=2) -> nearest-neighbour enlarged copy

Notes:
- Inputs are never modified; shifting and log scaling happen on a float64 copy.
- Normalization is min-max over the whole (shifted, log-scaled) matrix, so the
  minimum maps to exactly 0 and the maximum to exactly 255. A constant matrix maps to 0.
"""

import numpy as np
import cv2

from speckle.fft_engine import shift_quadrants as _shift_quadrants
from .colormap import false_color_map

# Floor applied before the natural log so zero / negative power does not become -inf
LOG_EPSILON = 1e-12


def upscale_for_display(image: np.ndarray, factor: int = 2) -> np.ndarray:
    """Enlarge by an integer factor with nearest-neighbour interpolation."""
    factor = int(factor)
    if factor < 1:
        raise ValueError("Upscale factor must be >= 1.")
    if factor == 1:
        return image.copy()
    return cv2.resize(image, None, fx=factor, fy=factor, interpolation=cv2.INTER_NEAREST)


def _minmax(a: np.ndarray) -> np.ndarray:
    """Scale a to [0, 1]; all zeros when the range is empty or non-finite."""
    amin = float(np.min(a))
    amax = float(np.max(a))
    if np.isfinite(amin) and np.isfinite(amax) and amax > amin:
        return (a - amin) / (amax - amin)
    return np.zeros_like(a, dtype=np.float64)


def _prepare(matrix: np.ndarray, shift_quadrants: bool) -> np.ndarray:
    a = np.array(matrix, dtype=np.float64, copy=True)
    if a.ndim != 2:
        raise ValueError("Visualization expects a 2D matrix.")
    if shift_quadrants:
        _shift_quadrants(a)
    return a


def grayscale_visualization(
    matrix: np.ndarray,
    log_scale: bool = False,
    shift_quadrants: bool = False,
    resize: bool = False,
) -> np.ndarray:
    """
    Min-max normalized 8-bit grayscale view of a float matrix.

    Parameters
    ----------
    matrix : np.ndarray
        2D float data (e.g. a power spectrum with DC at [0, 0]).
    log_scale : bool
        Apply ln(max(v, LOG_EPSILON)) before normalizing.
    shift_quadrants : bool
        Center the [0, 0] term first.
    resize : bool
        2x nearest-neighbour upscale, applied last.
    """
    a = _prepare(matrix, shift_quadrants)
    if log_scale:
        a = np.log(np.maximum(a, LOG_EPSILON))
    norm = _minmax(a)
    out = np.rint(norm * 255.0).astype(np.uint8)
    if resize:
        out = upscale_for_display(out)
    return out


def false_color_visualization(
    matrix: np.ndarray,
    shift_quadrants: bool = False,
    resize: bool = False,
) -> np.ndarray:
    """
    False-colored RGB view: min-max to [0, 1], then visuals.colormap.false_color_map.
    Channel bytes are truncated (int(255 * c)), not rounded.
    """
    a = _prepare(matrix, shift_quadrants)
    norm = _minmax(a)
    rgb = false_color_map(norm, 0.0, 1.0)
    out = (255.0 * rgb).astype(np.uint8)
    if resize:
        out = upscale_for_display(out)
    return out


def window_visualization(window: np.ndarray, resize: bool = False) -> np.ndarray:
    """Raw extracted window as uint8, optionally upscaled."""
    out = np.clip(np.asarray(window), 0, 255).astype(np.uint8)
    if resize:
        out = upscale_for_display(out)
    return out
