# io_utils/image_handler.py
"""
Image read/write helpers using Pillow.

Functions:
- read_image(path) -> (H x W) uint8 grayscale array and meta dict
- save_image(path, array) -> writes an 8-bit grayscale or RGB image
"""

from PIL import Image
import os
import numpy as np
from typing import Tuple


def read_image(path: str) -> Tuple[np.ndarray, dict]:
    """
    Read an image from `path` as 8-bit grayscale and return (array, meta).
    Color images are converted with Pillow's "L" conversion; meta keeps the original mode and size.
    """
    with Image.open(path) as img:
        mode = img.mode
        size = img.size
        gray = img.convert("L")
        arr = np.asarray(gray)
    meta = {"mode": mode, "size": size, "was_color": mode not in ("L", "1", "I;16", "I")}
    return arr, meta


def save_image(path: str, array: np.ndarray) -> str:
    """
    Save an image array to `path`. Accepts HxW (grayscale) or HxWx3 (RGB).
    Casts floats to uint8 by clipping to 0..255.
    """
    if array.ndim == 2:
        mode = "L"
    elif array.ndim == 3 and array.shape[2] == 3:
        mode = "RGB"
    else:
        raise ValueError("save_image expects HxW or HxWx3 array.")

    # Cast to uint8 if necessary
    if np.issubdtype(array.dtype, np.floating):
        arr = np.clip(array, 0.0, 255.0).astype(np.uint8)
    else:
        arr = array.astype(np.uint8)

    d = os.path.dirname(path)
    if d:
        os.makedirs(d, exist_ok=True)
    img = Image.fromarray(np.ascontiguousarray(arr))
    if img.mode != mode:
        img = img.convert(mode)
    img.save(path)
    return path
