"""
visuals/colormap.py

Four-band piecewise-linear false-color map (blue -> cyan -> green -> yellow -> red).

Every value starts from white (1, 1, 1); each band only overwrites two of the
three channels, so the third keeps whatever the starting value was:

    band                       red                 green                 blue
    [0,    .25)             0                   4v                    (1)
    [.25,  .5 )             0                   (1)                   1 + 4(.25 - v)
    [.5,   .75)             4(v - .5)           (1)                   0
    [.75,  1  ]             (1)                 1 + 4(.75 - v)        0

(v relative to [vmin, vmax]; parenthesised entries are held over.)

APIs:
- false_color(v, vmin, vmax) -> (r, g, b) floats in [0, 1]
- false_color_map(values, vmin, vmax) -> (..., 3) float64 array
"""

from typing import Tuple
import numpy as np


def false_color(v: float, vmin: float, vmax: float) -> Tuple[float, float, float]:
    """Scalar reference implementation of the map."""
    r, g, b = 1.0, 1.0, 1.0
    v = min(max(v, vmin), vmax)
    dv = vmax - vmin
    if dv <= 0:
        return 0.0, 0.0, 1.0
    if v < vmin + 0.25 * dv:
        r = 0.0
        g = 4 * (v - vmin) / dv
    elif v < vmin + 0.5 * dv:
        r = 0.0
        b = 1 + 4 * (vmin + 0.25 * dv - v) / dv
    elif v < vmin + 0.75 * dv:
        r = 4 * (v - vmin - 0.5 * dv) / dv
        b = 0.0
    else:
        g = 1 + 4 * (vmin + 0.75 * dv - v) / dv
        b = 0.0
    return r, g, b


def false_color_map(values: np.ndarray, vmin: float = 0.0, vmax: float = 1.0) -> np.ndarray:
    """
    Vectorized false_color over an array. Returns shape values.shape + (3,), RGB order.
    A degenerate range (vmax <= vmin) maps everything to pure blue, as false_color does.
    """
    v = np.clip(np.asarray(values, dtype=np.float64), vmin, vmax)
    rgb = np.ones(v.shape + (3,), dtype=np.float64)
    dv = float(vmax) - float(vmin)
    if dv <= 0:
        rgb[..., 0] = 0.0
        rgb[..., 1] = 0.0
        return rgb

    b1 = v < vmin + 0.25 * dv
    b2 = (~b1) & (v < vmin + 0.5 * dv)
    b3 = (~b1) & (~b2) & (v < vmin + 0.75 * dv)
    b4 = ~(b1 | b2 | b3)

    r = rgb[..., 0]
    g = rgb[..., 1]
    b = rgb[..., 2]

    r[b1] = 0.0
    g[b1] = 4 * (v[b1] - vmin) / dv

    r[b2] = 0.0
    b[b2] = 1 + 4 * (vmin + 0.25 * dv - v[b2]) / dv

    r[b3] = 4 * (v[b3] - vmin - 0.5 * dv) / dv
    b[b3] = 0.0

    g[b4] = 1 + 4 * (vmin + 0.75 * dv - v[b4]) / dv
    b[b4] = 0.0
    return rgb
