from enum import Enum


class RoundingMode(Enum):
    HALF_UP = "half_up"   # round(k / h), 0.5 arrondi vers le haut
    FLOOR = "floor"       # division entière k // h
