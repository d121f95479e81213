# klapuri_dsp/analysis/klapuri_weights.py
"""
Poids Klapuri (2005) par bandes.

Pour chaque bande, deux passes indépendantes sur le spectre blanchi :
- multi-harmonique : somme pondérée des partiels de f présents dans la bande,
  au meilleur décalage admissible (tolérance d'inharmonicité, éq. 5) ;
- mono-harmonique : candidats dont un seul partiel tombe dans la bande.
Les deux vecteurs sont combinés par maximum élément par élément.

Agrégation globale : union des top-k candidats de chaque bande, puis somme
des carrés des poids de ces candidats sur toutes les bandes.
"""
from __future__ import annotations
import math
from typing import List, Optional, Sequence, Union

import numpy as np

from klapuri_dsp.analysis.bands import BandModel
from klapuri_dsp.types.dataclasses import AudioDescriptor, Band
from klapuri_dsp.types.enums import RoundingMode
from klapuri_dsp.types.errors import FrameShapeError
from klapuri_dsp.types.schemas import AnalysisConfig
from klapuri_dsp.utils.topk import union_top_k

BandWeights = Union[Sequence[np.ndarray], np.ndarray]


def partial_normalisation(n_partials: int) -> float:
    """Évite de favoriser les F0 qui ont beaucoup de partiels dans la bande."""
    return 0.75 / n_partials + 0.25


def offset_window(f: int, band: Band, inharmonicity: float) -> range:
    """
    Décalages admissibles pour le candidat f dans la bande.

    Décalage nominal : premier multiple de f >= band.min_index.
    Largeur : band.max_index * (sqrt(1 + β(h² - 1)) - 1), h = band.max_index // f.
    Si la fenêtre dépasse une période de f, on cherche sur toute la période.
    """
    min_offset = int(math.ceil(band.min_index / f)) * f - band.min_index
    h = band.max_index // f
    delta = band.max_index * (math.sqrt(1.0 + inharmonicity * (h * h - 1.0)) - 1.0)
    max_offset = int(min_offset + delta)
    if max_offset > min_offset + f - 1:
        min_offset, max_offset = 0, f - 1
    return range(min_offset, max_offset + 1)


class KlapuriWeightCalculator:

    def __init__(self, descriptor: AudioDescriptor,
                 config: Optional[AnalysisConfig] = None,
                 band_model: Optional[BandModel] = None):
        cfg = config or AnalysisConfig()
        self.descriptor = descriptor
        self.inharmonicity = cfg.inharmonicity
        self.rounding = cfg.rounding
        self.top_k = cfg.top_k
        self.min_global_index = cfg.min_global_index
        self.band_model = band_model or BandModel(descriptor, cfg.band_ratio, cfg.band_min_width_hz)

    # ------------------------------------------------------------------
    # Poids locaux (par bande)
    # ------------------------------------------------------------------
    def weights_size(self, band: Band) -> int:
        return max(self.descriptor.max_freq_index, band.max_index + 1)

    def multi_harmonic_weights(self, whitened: np.ndarray, band: Band) -> np.ndarray:
        """Candidats f ∈ [min_freq_index, n_buckets - 1] ayant plusieurs partiels dans la bande."""
        weights = np.zeros(self.weights_size(band), dtype=np.float64)
        weighted = whitened * band.coefficients

        for f in range(max(self.descriptor.min_freq_index, 1), band.num_buckets):
            best = 0.0
            for offset in offset_window(f, band, self.inharmonicity):
                partials = weighted[band.min_index + offset: band.max_index + 1: f]
                if partials.size == 0:
                    continue
                best = max(best, float(partials.sum()) * partial_normalisation(partials.size))
            weights[f] = best
        return weights

    def _candidates(self, ks: np.ndarray, h: int) -> np.ndarray:
        if self.rounding is RoundingMode.FLOOR:
            return ks // h
        return np.floor(ks / h + 0.5).astype(np.int64)

    def single_harmonic_weights(self, whitened: np.ndarray, band: Band) -> np.ndarray:
        """
        Candidats dont seul le h-ième partiel tombe dans la bande : pour h = 1, 2, ...
        on balaie [k0, k1] et w[k/h] = max(w[k/h], X[k] c[k]) jusqu'à plage vide.
        """
        weights = np.zeros(self.weights_size(band), dtype=np.float64)
        weighted = whitened * band.coefficients
        lo, span = band.min_index, band.min_index + band.num_buckets

        h = 1
        k0 = max(span // 2, lo)
        k1 = band.max_index
        while k0 <= k1:
            ks = np.arange(k0, k1 + 1)
            np.maximum.at(weights, self._candidates(ks, h), weighted[ks])

            h += 1
            k0 = max((span * h) // (h + 1), lo)
            # au-delà de band.max_index la fenêtre triangulaire est nulle
            k1 = min(((lo - 1) * h) // (h - 1), band.max_index)
        return weights

    def calculate_band_weights(self, whitened: np.ndarray, band: Band) -> np.ndarray:
        return np.maximum(self.multi_harmonic_weights(whitened, band),
                          self.single_harmonic_weights(whitened, band))

    def calculate_weights(self, whitened: np.ndarray) -> List[np.ndarray]:
        """Un vecteur de poids par bande."""
        whitened = np.asarray(whitened, dtype=np.float64)
        if whitened.ndim != 1 or whitened.size != self.descriptor.frame_size:
            raise FrameShapeError("whitened spectrum length", self.descriptor.frame_size, int(whitened.size))
        return [self.calculate_band_weights(whitened, band) for band in self.band_model]

    # ------------------------------------------------------------------
    # Agrégation globale
    # ------------------------------------------------------------------
    def weight_matrix(self, band_weights: BandWeights) -> np.ndarray:
        """Empile les vecteurs par bande (complétés par des zéros) : (n_bands, n_buckets)."""
        width = max([self.descriptor.max_freq_index + 1] + [len(w) for w in band_weights])
        matrix = np.zeros((len(band_weights), width), dtype=np.float64)
        for i, w in enumerate(band_weights):
            matrix[i, :len(w)] = w
        return matrix

    def calculate_global_weights(self, band_weights: BandWeights) -> np.ndarray:
        """
        Poids global par candidat : Σ_bandes w_b[c]² pour c dans l'union des top-k,
        restreint à min_global_index < c <= max_freq_index ; 0 ailleurs.

        Pas de correction d'inharmonicité ici ; le seuil bas (5 buckets par défaut)
        compense la dominance parasite des très basses fréquences.
        """
        rows = [np.asarray(w, dtype=np.float64) for w in band_weights]
        matrix = self.weight_matrix(band_weights)
        out = np.zeros(matrix.shape[1], dtype=np.float64)

        candidates = union_top_k(rows, self.top_k)
        keep = (candidates > self.min_global_index) & (candidates <= self.descriptor.max_freq_index)
        selected = candidates[keep]
        out[selected] = np.sum(matrix[:, selected] ** 2, axis=0)
        return out
