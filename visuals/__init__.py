# visuals/__init__.py
"""
Visual helpers for the live speckle project.
Provides display mapping (grayscale / false color) and summary plots.
"""
from .colormap import false_color, false_color_map
from .visualizer import (
    grayscale_visualization,
    false_color_visualization,
    window_visualization,
    upscale_for_display,
)

__all__ = [
    "false_color",
    "false_color_map",
    "grayscale_visualization",
    "false_color_visualization",
    "window_visualization",
    "upscale_for_display",
]
