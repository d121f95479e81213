# klapuri_dsp/types/errors.py
"""
Taxonomie des erreurs de l'analyse Klapuri.

- ConfigurationError : paramètres audio/analyse incohérents (fatal, avant toute frame)
- FrameShapeError    : frame ou spectre de mauvaise taille (fatal pour l'appel)
"""


class KlapuriError(ValueError):
    """Base de toutes les erreurs levées par klapuri_dsp."""


class ConfigurationError(KlapuriError):
    pass


class FrameShapeError(KlapuriError):
    def __init__(self, what: str, expected: int, got: int):
        super().__init__(f"{what}: expected {expected}, got {got}")
        self.expected = expected
        self.got = got
