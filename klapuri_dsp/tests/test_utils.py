import numpy as np
import pytest

from klapuri_dsp.utils.note_utils import bucket_to_note, hz_to_bucket
from klapuri_dsp.utils.topk import top_k, union_top_k


def test_top_k_descending():
    v = np.array([0.1, 3.0, 2.0, 5.0, 1.0])
    assert top_k(v, 3).tolist() == [3, 1, 2]


def test_top_k_ties_favour_earliest_index():
    v = np.array([1.0, 2.0, 2.0, 2.0, 2.0])
    assert top_k(v, 3).tolist() == [1, 2, 3]


def test_top_k_short_input():
    assert top_k(np.array([4.0, 7.0]), 3).tolist() == [1, 0]
    assert top_k(np.array([]), 3).size == 0
    assert top_k(np.array([1.0]), 0).size == 0


def test_union_top_k_collapses_duplicates():
    rows = [np.array([0.0, 5.0, 4.0, 3.0, 0.0]),
            np.array([0.0, 1.0, 0.0, 2.0, 3.0])]
    assert union_top_k(rows, 3).tolist() == [1, 2, 3, 4]
    assert union_top_k([], 3).size == 0


def test_hz_to_bucket():
    assert hz_to_bucket(220.0, 44100 / 2048) == 10
    assert hz_to_bucket(0.0, 21.0) == 0
    with pytest.raises(ValueError):
        hz_to_bucket(220.0, 0.0)


def test_bucket_to_note():
    assert bucket_to_note(0, 21.5) is None
    assert bucket_to_note(10, 22.0) == "A3"
