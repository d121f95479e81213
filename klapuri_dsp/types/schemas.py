# klapuri_dsp/types/schemas.py
from __future__ import annotations
import os
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from klapuri_dsp.types.enums import RoundingMode


# ===== Tunables ==============================================================
KLAP_FRAME_SIZE      = int(os.getenv("KLAP_FRAME_SIZE",      "2048"))
KLAP_FREQ_MIN        = float(os.getenv("KLAP_FREQ_MIN",      "50"))
KLAP_FREQ_MAX        = float(os.getenv("KLAP_FREQ_MAX",      "6000"))
KLAP_WEIGHT_INTERVAL = int(os.getenv("KLAP_WEIGHT_INTERVAL", "100"))


# ────────────────────────────────────────────────────────────────────────────
# Analysis configuration
# ────────────────────────────────────────────────────────────────────────────
class AnalysisConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Framing / FFT
    frame_size: int = Field(KLAP_FRAME_SIZE, description="FFT frame size (samples, power of two)")
    hop_size: Optional[int] = Field(None, description="Hop between frames (default frame_size // 8)")
    bucket_size_hz: Optional[float] = Field(
        None, description="Explicit bucket resolution (Hz); default sample_rate / frame_size"
    )

    # Usable range of F0 candidates / harmonics
    freq_min: float = Field(KLAP_FREQ_MIN, description="Lowest F0 candidate (Hz)")
    freq_max: float = Field(KLAP_FREQ_MAX, description="Highest frequency considered (Hz)")

    # Bands
    band_ratio: float = Field(2.0 ** (2.0 / 3.0), description="Upper/lower frequency ratio of a band")
    band_min_width_hz: float = Field(100.0, description="Minimum band width (Hz)")

    # Whitening (noise floor sub-bands)
    noise_exponent: float = Field(4.0 / 3.0, description="Sub-band end = start ** noise_exponent")
    noise_min_width: int = Field(5, description="Minimum sub-band width (buckets)")

    # Weights
    inharmonicity: float = Field(0.01, description="Inharmonicity tolerance β (Klapuri eq. 5)")
    rounding: RoundingMode = Field(RoundingMode.HALF_UP, description="Bucket → candidate mapping")
    top_k: int = Field(3, description="Candidates kept per band for global aggregation")
    min_global_index: int = Field(
        5, description="Candidates at or below this bucket are ignored by the global aggregation"
    )
    weight_interval: int = Field(
        KLAP_WEIGHT_INTERVAL, description="Compute weights every n-th frame (1 = every frame)"
    )

    @field_validator("frame_size")
    @classmethod
    def validate_frame_size(cls, v: int) -> int:
        if v < 16 or (v & (v - 1)) != 0:
            raise ValueError(f"frame_size must be a power of two >= 16, got {v}")
        return v

    @field_validator("hop_size", "noise_min_width", "top_k", "weight_interval")
    @classmethod
    def validate_positive_int(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v <= 0:
            raise ValueError(f"must be > 0, got {v}")
        return v

    @field_validator("bucket_size_hz", "band_min_width_hz")
    @classmethod
    def validate_positive_float(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v <= 0:
            raise ValueError(f"must be > 0, got {v}")
        return v

    @field_validator("band_ratio", "noise_exponent")
    @classmethod
    def validate_growth(cls, v: float) -> float:
        if v <= 1.0:
            raise ValueError(f"growth factor must be > 1, got {v}")
        return v

    @field_validator("inharmonicity", "min_global_index")
    @classmethod
    def validate_non_negative(cls, v):
        if v < 0:
            raise ValueError(f"must be >= 0, got {v}")
        return v

    @model_validator(mode="after")
    def validate_range(self) -> "AnalysisConfig":
        if not (0 < self.freq_min < self.freq_max):
            raise ValueError(f"need 0 < freq_min < freq_max, got [{self.freq_min}, {self.freq_max}]")
        return self

    @property
    def effective_hop_size(self) -> int:
        return self.hop_size if self.hop_size is not None else self.frame_size // 8
