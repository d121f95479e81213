# klapuri_dsp/analysis/whitening.py
"""
Blanchiment spectral (Klapuri 2005, éq. 2–4).

1) « magnitude warping » : compression log normalisée par un facteur g
   calculé sur la bande utile [min_freq_index, max_freq_index] ;
2) retrait du plancher de bruit par sous-bandes à croissance géométrique.
"""
from __future__ import annotations
import math
from typing import Iterator, Tuple

import numpy as np

from klapuri_dsp.types.dataclasses import AudioDescriptor
from klapuri_dsp.types.errors import FrameShapeError


class Whitener:

    def __init__(self, descriptor: AudioDescriptor,
                 noise_exponent: float = 4.0 / 3.0, noise_min_width: int = 5):
        self.descriptor = descriptor
        self.noise_exponent = noise_exponent
        self.noise_min_width = noise_min_width
        # les sous-bandes ne dépendent que du descripteur : calculées une fois
        self._sub_bands = tuple(self.iter_sub_bands())

    def whiten(self, spectrum: np.ndarray) -> np.ndarray:
        """Spectre complexe → spectre blanchi réel, >= 0, même longueur."""
        spectrum = np.asarray(spectrum)
        if spectrum.ndim != 1 or spectrum.size != self.descriptor.frame_size:
            raise FrameShapeError("spectrum length", self.descriptor.frame_size, int(spectrum.size))

        warped = self.warp_magnitudes(np.abs(spectrum))
        return self.remove_noise(warped)

    def scaling_factor(self, magnitudes: np.ndarray) -> float:
        """g = (moyenne des racines cubiques des |X| sur la bande utile)³."""
        d = self.descriptor
        usable = magnitudes[d.min_freq_index:d.max_freq_index + 1]
        return float(np.mean(np.cbrt(usable)) ** 3)

    def warp_magnitudes(self, magnitudes: np.ndarray) -> np.ndarray:
        g = self.scaling_factor(magnitudes)
        if g <= 0.0 or not np.isfinite(g):
            # spectre nul sur la bande utile : pas de division par zéro
            return np.zeros(magnitudes.shape, dtype=np.float64)
        return np.log1p(magnitudes / g)

    def iter_sub_bands(self) -> Iterator[Tuple[int, int]]:
        """
        Sous-bandes [start, end) de la bande utile :
        end = max(start + noise_min_width, floor(start ** noise_exponent)),
        tronquées à max_freq_index + 1.
        """
        d = self.descriptor
        start = d.min_freq_index
        stop = d.max_freq_index + 1
        while start < stop:
            end = max(start + self.noise_min_width, int(math.floor(start ** self.noise_exponent)))
            yield start, min(end, stop)
            start = end

    def remove_noise(self, warped: np.ndarray) -> np.ndarray:
        # diviseur = population de toute la bande utile, pas celle de la sous-bande
        population = self.descriptor.num_usable_buckets
        out = warped.copy()
        for start, end in self._sub_bands:
            level = out[start:end].sum() / population
            out[start:end] = np.maximum(out[start:end] - level, 0.0)
        return out
