from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional

import numpy as np


@dataclass(frozen=True)
class AudioDescriptor:
    sample_rate: int
    frame_size: int
    bucket_size_hz: float
    min_freq_index: int        # bucket de freq_min (50 Hz)
    max_freq_index: int        # bucket de freq_max (6 kHz)
    freq_min: float = 50.0
    freq_max: float = 6000.0

    @property
    def num_usable_buckets(self) -> int:
        return self.max_freq_index + 1 - self.min_freq_index

    def bucket_to_hz(self, index: int) -> float:
        return index * self.bucket_size_hz


@dataclass(frozen=True)
class Band:
    min_index: int
    max_index: int
    coefficients: np.ndarray = field(repr=False, compare=False)  # fenêtre triangulaire

    @property
    def num_buckets(self) -> int:
        return self.max_index + 1 - self.min_index

    @property
    def centre(self) -> float:
        return (self.min_index + self.max_index) / 2.0

    def __contains__(self, index: int) -> bool:
        return self.min_index <= index <= self.max_index


@dataclass
class FrameAnalysis:
    index: int
    offset: int
    whitened: np.ndarray = field(repr=False)
    band_weights: Optional[np.ndarray] = field(default=None, repr=False)   # (n_bands, n_buckets)
    global_weights: Optional[np.ndarray] = field(default=None, repr=False)

    # ✅ meilleur candidat F0 (rempli par le pipeline si les poids sont calculés)
    best_candidate_index: Optional[int] = None
    best_candidate_hz: Optional[float] = None
    best_candidate_note: Optional[str] = None

    @property
    def has_weights(self) -> bool:
        return self.global_weights is not None
