# klapuri_dsp/utils/topk.py
from __future__ import annotations
import numpy as np


def top_k(values: np.ndarray, k: int = 3) -> np.ndarray:
    """
    Indices des k plus grandes valeurs, ordre décroissant.

    Équivalent d'un balayage gauche→droite qui maintient une fenêtre triée
    de taille k avec comparaison stricte : à valeur égale, l'indice le plus
    tôt rencontré gagne (tri stable sur -values).
    Si len(values) < k, renvoie tous les indices.
    """
    values = np.asarray(values, dtype=float)
    if k <= 0 or values.size == 0:
        return np.empty(0, dtype=int)
    order = np.argsort(-values, kind="stable")
    return order[:k]


def union_top_k(rows, k: int = 3) -> np.ndarray:
    """Union (triée, sans doublons) des top-k de chaque ligne."""
    picks = [top_k(row, k) for row in rows]
    if not picks:
        return np.empty(0, dtype=int)
    return np.unique(np.concatenate(picks))
