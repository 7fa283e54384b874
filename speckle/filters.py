import numpy as np
import cv2


# --- Box blur & high-pass ---
def box_blur(m: np.ndarray, size: int) -> np.ndarray:
    """
    Normalized size x size box blur with replicated borders.
    The kernel anchor is (size // 2, size // 2), so even sizes are off-center by half a pixel.
    """
    size = int(size)
    if size < 1:
        raise ValueError("Box blur size must be >= 1.")
    src = np.ascontiguousarray(m, dtype=np.float64)
    if src.ndim != 2:
        raise ValueError("box_blur expects a 2D array.")
    return cv2.boxFilter(
        src,
        ddepth=-1,
        ksize=(size, size),
        normalize=True,
        borderType=cv2.BORDER_REPLICATE,
    )


def highpass_filter(autocorrelation: np.ndarray, filter_size: int) -> np.ndarray:
    """
    Subtract the local mean (box blur of filter_size) from the autocorrelation.

    Removes the broad pedestal around the zero-lag peak and keeps the narrow
    correlation features. filter_size <= 1 returns the input object itself.
    The input must already be quadrant-shifted: blurring the unshifted array
    would mix values across the wrap-around at the corners.
    """
    if filter_size is None or int(filter_size) <= 1:
        return autocorrelation
    ac = np.asarray(autocorrelation, dtype=np.float64)
    return ac - box_blur(ac, int(filter_size))
