# klapuri_dsp/analysis/pipeline.py
"""
Estimateur F0 (Klapuri 2005) sur un signal mono déjà décodé.

Chaîne par frame : Hamming + FFT → blanchiment → poids par bandes → poids global.
Le descripteur, la fenêtre et le modèle de bandes sont en lecture seule : les
frames peuvent être traitées en parallèle (ThreadPoolExecutor), les résultats
sont remis dans l'ordre des frames.
"""
from __future__ import annotations
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Iterator, List, Optional, Tuple

import numpy as np
import librosa

from klapuri_dsp.analysis.bands import BandModel
from klapuri_dsp.analysis.klapuri_weights import KlapuriWeightCalculator
from klapuri_dsp.analysis.spectrum import SpectralTransformer
from klapuri_dsp.analysis.whitening import Whitener
from klapuri_dsp.core.descriptor import make_descriptor
from klapuri_dsp.types.dataclasses import FrameAnalysis
from klapuri_dsp.types.errors import FrameShapeError
from klapuri_dsp.types.schemas import AnalysisConfig
from klapuri_dsp.utils.log import klap_log
from klapuri_dsp.utils.note_utils import bucket_to_note


class F0Estimator:

    def __init__(self, sample_rate: int, config: Optional[AnalysisConfig] = None, debug: bool = False):
        self.config = config or AnalysisConfig()
        self.debug = debug
        self.descriptor = make_descriptor(sample_rate, self.config)

        cfg, d = self.config, self.descriptor
        self.transformer = SpectralTransformer(d.frame_size)
        self.whitener = Whitener(d, cfg.noise_exponent, cfg.noise_min_width)
        self.band_model = BandModel(d, cfg.band_ratio, cfg.band_min_width_hz, debug=debug)
        self.calculator = KlapuriWeightCalculator(d, cfg, self.band_model)

        klap_log(debug, f"sr={d.sample_rate} | N={d.frame_size} | bucket={d.bucket_size_hz:.3f} Hz "
                        f"| buckets=[{d.min_freq_index}, {d.max_freq_index}] | bands={len(self.band_model)}")

    # ------------------------------------------------------------------
    def process_frame(self, frame: np.ndarray, index: int = 0, offset: int = 0,
                      compute_weights: bool = True) -> FrameAnalysis:
        """Analyse une frame (copiée : le buffer de l'appelant n'est pas fenêtré)."""
        buf = np.array(frame, dtype=np.float64, copy=True)
        spectrum = self.transformer.transform(buf)
        whitened = self.whitener.whiten(spectrum)
        result = FrameAnalysis(index=index, offset=offset, whitened=whitened)
        if not compute_weights:
            return result

        band_weights = self.calculator.calculate_weights(whitened)
        result.band_weights = self.calculator.weight_matrix(band_weights)
        result.global_weights = self.calculator.calculate_global_weights(band_weights)

        peak = int(np.argmax(result.global_weights))
        if result.global_weights[peak] > 0.0:
            result.best_candidate_index = peak
            result.best_candidate_hz = self.descriptor.bucket_to_hz(peak)
            result.best_candidate_note = bucket_to_note(peak, self.descriptor.bucket_size_hz)
        klap_log(self.debug, f"frame {index} @ {offset}: best={result.best_candidate_index} "
                             f"({result.best_candidate_note})")
        return result

    def iter_frames(self, signal: np.ndarray) -> Iterator[Tuple[int, np.ndarray]]:
        """
        (offset, frame) des frames qui se chevauchent, hop = frame_size // 8 par défaut.
        Seules les frames strictement contenues (offset + N < len) sont produites.
        """
        y = np.asarray(signal, dtype=np.float64)
        if y.ndim != 1:
            raise FrameShapeError("signal ndim (mono expected)", 1, y.ndim)
        n, hop = self.descriptor.frame_size, self.config.effective_hop_size
        if y.size <= n:
            return
        frames = librosa.util.frame(y[:-1], frame_length=n, hop_length=hop)
        for i in range(frames.shape[-1]):
            yield i * hop, frames[:, i]

    def iter_analyze(self, signal: np.ndarray,
                     weight_interval: Optional[int] = None) -> Iterator[FrameAnalysis]:
        """Analyse paresseuse : arrêter l'itération suffit à annuler le traitement."""
        interval = weight_interval or self.config.weight_interval
        for i, (offset, frame) in enumerate(self.iter_frames(signal)):
            yield self.process_frame(frame, i, offset, compute_weights=(i + 1) % interval == 0)

    def analyze(self, signal: np.ndarray, weight_interval: Optional[int] = None,
                max_workers: Optional[int] = None) -> List[FrameAnalysis]:
        """
        Analyse toutes les frames du signal, dans l'ordre.

        weight_interval : poids calculés toutes les n frames (comptage à partir de 1)
        max_workers     : > 1 → frames traitées en parallèle
        """
        t0 = time.perf_counter()
        interval = weight_interval or self.config.weight_interval

        if max_workers is not None and max_workers > 1:
            jobs = [(i, off, fr) for i, (off, fr) in enumerate(self.iter_frames(signal))]
            with ThreadPoolExecutor(max_workers=max_workers) as ex:
                results = list(ex.map(
                    lambda job: self.process_frame(job[2], job[0], job[1],
                                                   compute_weights=(job[0] + 1) % interval == 0),
                    jobs,
                ))
        else:
            results = list(self.iter_analyze(signal, interval))

        elapsed_ms = (time.perf_counter() - t0) * 1000.0
        audio_ms = 1000.0 * np.size(signal) / self.descriptor.sample_rate
        klap_log(self.debug, f"took {elapsed_ms:.0f}ms to transform {audio_ms:.0f}ms of audio "
                             f"({len(results)} frames)")
        return results
