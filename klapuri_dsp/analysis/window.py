# klapuri_dsp/analysis/window.py
from __future__ import annotations
import numpy as np
from scipy.signal import get_window

from klapuri_dsp.types.errors import FrameShapeError


class HammingWindow:
    """
    Fenêtre de Hamming symétrique, appliquée en place.

        w[i] = 0.54 - 0.46 * cos(2π i / (N - 1))
    """

    def __init__(self, size: int):
        if size < 2:
            raise ValueError(f"window size must be >= 2, got {size}")
        self._coefficients = get_window("hamming", size, fftbins=False).astype(np.float64)
        self._coefficients.setflags(write=False)

    @property
    def size(self) -> int:
        return self._coefficients.size

    @property
    def coefficients(self) -> np.ndarray:
        return self._coefficients

    def apply(self, samples: np.ndarray) -> np.ndarray:
        """Multiplie `samples` en place par les coefficients ; renvoie le même buffer."""
        if samples.shape != self._coefficients.shape:
            raise FrameShapeError("window input length", self.size, int(np.size(samples)))
        samples *= self._coefficients
        return samples
