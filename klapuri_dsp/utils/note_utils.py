from __future__ import annotations
from typing import Optional

import librosa


def hz_to_bucket(freq: float, bucket_size_hz: float) -> int:
    """Bucket FFT le plus proche d'une fréquence (Hz)."""
    if bucket_size_hz <= 0:
        raise ValueError(f"bucket_size_hz must be > 0, got {bucket_size_hz}")
    return int(round(freq / bucket_size_hz))


def bucket_to_note(index: int, bucket_size_hz: float) -> Optional[str]:
    """
    Nom de note (ex: 'A3') du centre d'un bucket.
    La résolution d'un bucket est grossière en grave (~1.6 demi-ton à 220 Hz
    pour 2048 points à 44.1 kHz) : le nom est indicatif.
    """
    f = index * bucket_size_hz
    if f <= 0:
        return None
    return librosa.hz_to_note(f)
