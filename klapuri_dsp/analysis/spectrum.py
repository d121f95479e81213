# klapuri_dsp/analysis/spectrum.py
from __future__ import annotations
import numpy as np
from scipy.fft import fft

from klapuri_dsp.analysis.window import HammingWindow
from klapuri_dsp.types.errors import FrameShapeError


class SpectralTransformer:
    """FFT complète (non normalisée) d'une frame fenêtrée par Hamming."""

    def __init__(self, frame_size: int):
        self.frame_size = frame_size
        self.window = HammingWindow(frame_size)

    def transform(self, frame: np.ndarray) -> np.ndarray:
        """
        Fenêtre `frame` en place puis renvoie son spectre complexe (longueur frame_size).

        Si `frame` n'est pas un ndarray flottant, une copie float64 est fenêtrée
        à la place (le buffer d'origine n'est alors pas modifié).
        """
        if not (isinstance(frame, np.ndarray) and np.issubdtype(frame.dtype, np.floating)):
            frame = np.asarray(frame, dtype=np.float64)
        if frame.ndim != 1 or frame.size != self.frame_size:
            raise FrameShapeError("frame length", self.frame_size, int(frame.size))

        self.window.apply(frame)
        return fft(frame, norm="backward")
