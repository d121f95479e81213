from __future__ import annotations
import math
import numbers
from typing import Optional

from pydantic import ValidationError

from klapuri_dsp.types.dataclasses import AudioDescriptor
from klapuri_dsp.types.errors import ConfigurationError
from klapuri_dsp.types.schemas import AnalysisConfig


def load_config(**overrides) -> AnalysisConfig:
    """Construit un AnalysisConfig ; toute erreur de validation → ConfigurationError."""
    try:
        return AnalysisConfig(**overrides)
    except ValidationError as e:
        raise ConfigurationError(str(e)) from e


def make_descriptor(sample_rate: int, config: Optional[AnalysisConfig] = None) -> AudioDescriptor:
    """
    Dérive les constantes d'analyse à partir du sample rate et de la taille de frame.

    bucket_size_hz = sample_rate / frame_size (ou résolution explicite du config)
    min_freq_index = floor(freq_min / bucket_size_hz)
    max_freq_index = ceil(freq_max / bucket_size_hz)

    Lève ConfigurationError si 0 <= min < max <= frame_size // 2 n'est pas respecté.
    """
    cfg = config or AnalysisConfig()
    if isinstance(sample_rate, bool) or not isinstance(sample_rate, numbers.Integral) or sample_rate <= 0:
        raise ConfigurationError(f"sample_rate must be a positive integer, got {sample_rate!r}")

    bucket = cfg.bucket_size_hz if cfg.bucket_size_hz is not None else sample_rate / cfg.frame_size
    min_index = int(math.floor(cfg.freq_min / bucket))
    max_index = int(math.ceil(cfg.freq_max / bucket))

    if not (0 <= min_index < max_index):
        raise ConfigurationError(
            f"degenerate bucket range [{min_index}, {max_index}] "
            f"(bucket={bucket:.3f} Hz, range={cfg.freq_min}-{cfg.freq_max} Hz)"
        )
    if max_index > cfg.frame_size // 2:
        raise ConfigurationError(
            f"max_freq_index {max_index} exceeds Nyquist bucket {cfg.frame_size // 2} "
            f"(sample_rate={sample_rate}, frame_size={cfg.frame_size})"
        )

    return AudioDescriptor(
        sample_rate=int(sample_rate),
        frame_size=cfg.frame_size,
        bucket_size_hz=bucket,
        min_freq_index=min_index,
        max_freq_index=max_index,
        freq_min=cfg.freq_min,
        freq_max=cfg.freq_max,
    )
