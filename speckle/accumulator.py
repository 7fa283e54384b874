"""
speckle/accumulator.py

Running sum of power spectra over one accumulation cycle.
Owned by the single worker thread, so there is no locking here.
"""

from typing import Tuple
import numpy as np


class Accumulator:
    def __init__(self, shape: Tuple[int, int]):
        self.shape = (int(shape[0]), int(shape[1]))
        self.sum = np.zeros(self.shape, dtype=np.float64)
        self.count = 0

    def add(self, spectrum: np.ndarray) -> None:
        """Add one power spectrum. Raises ValueError (state untouched) on shape mismatch."""
        if spectrum.shape != self.shape:
            raise ValueError(
                f"Spectrum shape {spectrum.shape} does not match accumulator shape {self.shape}."
            )
        self.sum += spectrum
        self.count += 1

    def reset(self) -> None:
        self.sum.fill(0.0)
        self.count = 0

    def is_due(self, accumulation_length: int) -> bool:
        return self.count >= accumulation_length

    def copy(self) -> "Accumulator":
        other = Accumulator(self.shape)
        other.sum[...] = self.sum
        other.count = self.count
        return other

    def __repr__(self) -> str:
        return f"Accumulator(shape={self.shape}, count={self.count})"
