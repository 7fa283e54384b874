"""
visuals/plots.py

Matplotlib summary figures for the live pipeline's artifacts.

APIs:
- plot_artifact_panel(images, out_path=None, title=None)
- fig_to_array(fig) -> np.ndarray (H,W,3) uint8

Notes:
- If out_path is None, functions return the matplotlib Figure object (caller can save or display).
"""

from typing import Mapping, Optional
import os
import numpy as np
import matplotlib.pyplot as plt

# Panel order and titles, keyed by artifact kind name
PANEL_LAYOUT = (
    ("window", "Window"),
    ("spectrum", "Power spectrum (frame)"),
    ("accumulated_spectrum", "Power spectrum (accumulated)"),
    ("autocorrelation", "Autocorrelation (filtered)"),
)


# Helper to ensure outdir exists
def _ensure_outdir(out_path: Optional[str]):
    if out_path is None:
        return None
    d = os.path.dirname(out_path)
    if d:
        os.makedirs(d, exist_ok=True)
    return out_path


def _save_or_return(fig: plt.Figure, out_path: Optional[str]):
    if out_path is not None:
        _ensure_outdir(out_path)
        fig.savefig(out_path, bbox_inches="tight")
        plt.close(fig)
        return out_path
    else:
        return fig


def fig_to_array(fig: plt.Figure) -> np.ndarray:
    """
    Convert a Matplotlib figure to an HxWx3 uint8 RGB numpy array.
    """
    fig.canvas.draw()
    rgba = np.asarray(fig.canvas.buffer_rgba())
    return np.ascontiguousarray(rgba[..., :3])


def plot_artifact_panel(
    images: Mapping,
    out_path: Optional[str] = None,
    title: Optional[str] = "Live speckle",
):
    """
    2x2 panel of the four artifact images.

    `images` maps artifact kinds (ArtifactKind members or their string values)
    to uint8 images; missing kinds leave an empty, labelled axis.
    """
    by_name = {getattr(k, "value", k): v for k, v in images.items()}
    fig, axs = plt.subplots(2, 2, figsize=(8, 8))
    for ax, (name, label) in zip(axs.ravel(), PANEL_LAYOUT):
        img = by_name.get(name)
        if img is not None:
            if img.ndim == 2:
                ax.imshow(img, cmap="gray", vmin=0, vmax=255, interpolation="nearest")
            else:
                ax.imshow(img, interpolation="nearest")
        ax.set_title(label)
        ax.axis("off")
    if title:
        fig.suptitle(title)
    return _save_or_return(fig, out_path)

