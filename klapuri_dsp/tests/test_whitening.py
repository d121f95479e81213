import numpy as np
import pytest

from klapuri_dsp.analysis.whitening import Whitener
from klapuri_dsp.core.descriptor import make_descriptor
from klapuri_dsp.types.errors import FrameShapeError


@pytest.fixture
def whitener():
    return Whitener(make_descriptor(44100))


def random_spectrum(n, seed=0, scale=100.0):
    rng = np.random.default_rng(seed)
    return scale * (rng.standard_normal(n) + 1j * rng.standard_normal(n))


@pytest.mark.parametrize("seed", [0, 1, 2])
def test_output_non_negative(whitener, seed):
    out = whitener.whiten(random_spectrum(2048, seed))
    assert out.shape == (2048,)
    assert np.all(out >= 0)


def test_all_zero_spectrum(whitener):
    out = whitener.whiten(np.zeros(2048, dtype=complex))
    assert np.all(out == 0.0)


def test_scaling_factor_uses_usable_band_only(whitener):
    d = whitener.descriptor
    mags = np.zeros(2048)
    mags[d.min_freq_index:d.max_freq_index + 1] = 8.0
    mags[0] = 1e6   # DC hors bande : ignoré
    assert whitener.scaling_factor(mags) == pytest.approx(8.0)


def test_out_of_band_buckets_keep_warped_value(whitener):
    d = whitener.descriptor
    spec = random_spectrum(2048, 3)
    mags = np.abs(spec)
    g = whitener.scaling_factor(mags)
    out = whitener.whiten(spec)
    outside = np.r_[0:d.min_freq_index, d.max_freq_index + 1:2048]
    np.testing.assert_allclose(out[outside], np.log1p(mags[outside] / g))


def test_noise_removal_subtracts_population_mean(whitener):
    d = whitener.descriptor
    warped = np.ones(2048)
    out = whitener.remove_noise(warped)
    population = d.num_usable_buckets
    for start, end in whitener.iter_sub_bands():
        expected = 1.0 - (end - start) / population
        np.testing.assert_allclose(out[start:end], expected)


def test_sub_bands_tile_usable_range(whitener):
    d = whitener.descriptor
    bands = list(whitener.iter_sub_bands())
    assert bands[0][0] == d.min_freq_index
    assert bands[-1][1] == d.max_freq_index + 1
    for (s0, e0), (s1, e1) in zip(bands, bands[1:]):
        assert e0 == s1
    # largeur min 5, puis croissance en start ** (4/3)
    assert bands[0] == (2, 7)
    assert bands[1] == (7, 13)


def test_wrong_length(whitener):
    with pytest.raises(FrameShapeError):
        whitener.whiten(np.zeros(1024, dtype=complex))
