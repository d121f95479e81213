# klapuri_dsp/analysis/bands.py
from __future__ import annotations
import math
from typing import Iterator, List, Optional, Sequence

import numpy as np

from klapuri_dsp.types.dataclasses import AudioDescriptor, Band
from klapuri_dsp.utils.log import klap_log


def triangular_coefficients(min_index: int, max_index: int, size: int) -> np.ndarray:
    """
    Fenêtre triangulaire d'une bande, sur `size` buckets :
        c[i] = 1 - 2|centre - i| / n_buckets   pour i dans [min, max], 0 ailleurs
    """
    coeffs = np.zeros(size, dtype=np.float64)
    n_buckets = max_index + 1 - min_index
    centre = (min_index + max_index) / 2.0
    idx = np.arange(min_index, min(max_index, size - 1) + 1)
    coeffs[idx] = 1.0 - (np.abs(centre - idx) * 2.0) / n_buckets
    return coeffs


def make_band(low_index: int, descriptor: AudioDescriptor,
              ratio: float = 2.0 ** (2.0 / 3.0), min_width_hz: float = 100.0) -> Band:
    bucket = descriptor.bucket_size_hz
    f_low = low_index * bucket
    f_high = max(f_low + min_width_hz, f_low * ratio)
    max_index = int(math.ceil(f_high / bucket))
    return Band(
        min_index=low_index,
        max_index=max_index,
        coefficients=triangular_coefficients(low_index, max_index, descriptor.frame_size),
    )


class BandModel:
    """
    Découpage de la bande utile en bandes qui se chevauchent et croissent
    géométriquement (~2/3 d'octave, au moins 100 Hz de large).

    Chaque bande démarre au milieu de la précédente ; la dernière bande
    atteint ou dépasse max_freq_index. Immuable une fois construit.
    """

    def __init__(self, descriptor: AudioDescriptor,
                 ratio: float = 2.0 ** (2.0 / 3.0), min_width_hz: float = 100.0,
                 debug: bool = False):
        self.descriptor = descriptor
        self.ratio = ratio
        self.min_width_hz = min_width_hz
        self._bands = tuple(self._build())
        klap_log(debug, f"{len(self._bands)} bands over buckets "
                        f"[{descriptor.min_freq_index}, {descriptor.max_freq_index}] "
                        f"→ {[(b.min_index, b.max_index) for b in self._bands]}")

    def _build(self) -> List[Band]:
        d = self.descriptor
        bands: List[Band] = []
        band = make_band(d.min_freq_index, d, self.ratio, self.min_width_hz)
        while band.max_index < d.max_freq_index:
            bands.append(band)
            # chevauchement au milieu ; au moins un bucket d'avance si la bande est étroite
            low = max((band.min_index + band.max_index) // 2, band.min_index + 1)
            band = make_band(low, d, self.ratio, self.min_width_hz)
        bands.append(band)
        return bands

    @property
    def bands(self) -> Sequence[Band]:
        return self._bands

    def __len__(self) -> int:
        return len(self._bands)

    def __iter__(self) -> Iterator[Band]:
        return iter(self._bands)

    def __getitem__(self, i: int) -> Band:
        return self._bands[i]

    def band_containing(self, index: int) -> List[Band]:
        """Toutes les bandes (chevauchement) qui couvrent le bucket `index`."""
        return [b for b in self._bands if index in b]

    def first_band_containing(self, index: int) -> Optional[Band]:
        hits = self.band_containing(index)
        return hits[0] if hits else None
