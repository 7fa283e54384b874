'''
FFT engine helpers.

- SpectralEngine: wraps a forward/inverse 2D DFT pair (numpy.fft by default)
  - forward: power spectrum |F|^2 of a real window
  - inverse: real part of the inverse transform of an accumulated power spectrum
    (the autocorrelation, by Wiener-Khinchin)
- power_spectrum / autocorrelation: function-style wrappers around a default engine
- shift_quadrants: in-place quadrant swap that centers the zero-frequency / zero-lag term
'''

from typing import Callable, Optional
import numpy as np

Transform = Callable[[np.ndarray], np.ndarray]


class TransformError(RuntimeError):
    """The external DFT failed or returned an array of unexpected shape."""


class SpectralEngine:
    """
    Forward / inverse spectral computations on square windows.

    The transform callables receive a complex128 array (real channel = data,
    imaginary channel = 0) and must return a complex array of the same shape.
    numpy's inverse is normalized by 1/(M*N), so inverse(forward-transform(x))
    gives back x; the absolute scale of the autocorrelation is irrelevant for
    display since every visualization is min-max normalized.
    """

    def __init__(
        self,
        forward_transform: Optional[Transform] = None,
        inverse_transform: Optional[Transform] = None,
    ):
        self.forward_transform = forward_transform or np.fft.fft2
        self.inverse_transform = inverse_transform or np.fft.ifft2

    @staticmethod
    def _embed(real: np.ndarray, name: str) -> np.ndarray:
        if real.ndim != 2:
            raise ValueError(f"{name} expects a 2D array, got shape {real.shape}.")
        buf = np.zeros(real.shape, dtype=np.complex128)
        buf.real = real
        return buf

    def _run(self, transform: Transform, buf: np.ndarray, name: str) -> np.ndarray:
        try:
            out = np.asarray(transform(buf))
        except Exception as exc:
            raise TransformError(f"{name} transform failed: {exc}") from exc
        if out.shape != buf.shape:
            raise TransformError(
                f"{name} transform returned shape {out.shape}, expected {buf.shape}."
            )
        return out

    def forward(self, window: np.ndarray) -> np.ndarray:
        """
        Power spectrum of a real 2D window: real^2 + imag^2 of its DFT.
        DC stays at [0, 0]; no shift, no normalization.
        """
        buf = self._embed(np.asarray(window, dtype=np.float64), "forward")
        F = self._run(self.forward_transform, buf, "forward")
        re = np.real(F)
        im = np.imag(F)
        return re * re + im * im

    def inverse(self, spectrum: np.ndarray) -> np.ndarray:
        """
        Inverse transform of a (power) spectrum placed in the real channel.
        Returns the real part only; zero lag stays at [0, 0].
        """
        buf = self._embed(np.asarray(spectrum, dtype=np.float64), "inverse")
        out = self._run(self.inverse_transform, buf, "inverse")
        return np.ascontiguousarray(np.real(out))


_default_engine = SpectralEngine()


def power_spectrum(window: np.ndarray) -> np.ndarray:
    """Power spectrum with the default numpy transform."""
    return _default_engine.forward(window)


def autocorrelation(spectrum: np.ndarray) -> np.ndarray:
    """Autocorrelation (real part of the inverse DFT) with the default numpy transform."""
    return _default_engine.inverse(spectrum)


def shift_quadrants(m: np.ndarray) -> np.ndarray:
    """
    Swap quadrants in place so the [0, 0] element moves to the center.

    Top-left <-> bottom-right and top-right <-> bottom-left, with blocks of
    (rows // 2, cols // 2). For even shapes this equals np.fft.fftshift and is
    its own inverse. For odd shapes the last row and column are not moved.
    Returns `m` for chaining.
    """
    if m.ndim < 2:
        raise ValueError("shift_quadrants expects an array with at least 2 dimensions.")
    cy = m.shape[0] // 2
    cx = m.shape[1] // 2
    if cy == 0 or cx == 0:
        return m
    tmp = m[:cy, :cx].copy()
    m[:cy, :cx] = m[cy:2 * cy, cx:2 * cx]
    m[cy:2 * cy, cx:2 * cx] = tmp
    tmp = m[:cy, cx:2 * cx].copy()
    m[:cy, cx:2 * cx] = m[cy:2 * cy, :cx]
    m[cy:2 * cy, :cx] = tmp
    return m
