import numpy as np
import pytest

from klapuri_dsp.analysis.bands import BandModel, make_band, triangular_coefficients
from klapuri_dsp.core.descriptor import load_config, make_descriptor


@pytest.fixture(scope="module")
def descriptor():
    return make_descriptor(44100)


@pytest.fixture(scope="module")
def model(descriptor):
    return BandModel(descriptor)


def test_first_bands(model):
    # 2 * 21.53 Hz + 100 Hz → bucket 7 ; départ suivant au milieu (4)
    assert (model[0].min_index, model[0].max_index) == (2, 7)
    assert (model[1].min_index, model[1].max_index) == (4, 9)
    assert (model[2].min_index, model[2].max_index) == (6, 11)


def test_model_covers_usable_range(model, descriptor):
    assert len(model) > 0
    assert model[0].min_index == descriptor.min_freq_index
    assert model[-1].max_index >= descriptor.max_freq_index
    for band in list(model)[:-1]:
        assert band.max_index < descriptor.max_freq_index


def test_bands_ordered_and_overlapping(model):
    bands = list(model)
    for a, b in zip(bands, bands[1:]):
        assert a.min_index < b.min_index
        assert a.max_index <= b.max_index
        assert b.min_index <= a.max_index


def test_bands_grow_geometrically(model, descriptor):
    bucket = descriptor.bucket_size_hz
    for band in model:
        f_low = band.min_index * bucket
        f_high = band.max_index * bucket
        assert f_high >= f_low + 100.0 - 1e-9
        assert f_high >= f_low * 2 ** (2 / 3) - 1e-9


def test_triangular_coefficients(model):
    band = model[3]
    c = band.coefficients
    assert c.size == 2048
    inside = np.arange(band.min_index, band.max_index + 1)
    outside = np.setdiff1d(np.arange(2048), inside)
    assert np.all(c[outside] == 0.0)
    expected = 1.0 - 2.0 * np.abs(band.centre - inside) / band.num_buckets
    np.testing.assert_allclose(c[inside], expected)
    assert np.all(c[inside] > 0)
    assert c.max() <= 1.0


def test_triangular_coefficients_odd_band():
    c = triangular_coefficients(10, 14, 32)
    # centre 12, 5 buckets
    np.testing.assert_allclose(c[10:15], [0.2, 0.6, 1.0, 0.6, 0.2])


def test_band_containing(model):
    hits = model.band_containing(10)
    assert hits and all(10 in b for b in hits)
    assert model.first_band_containing(10) is hits[0]
    assert model.first_band_containing(5000) is None


def test_make_band_min_width(descriptor):
    band = make_band(100, descriptor)
    # au-dessus de ~150 Hz, le rapport 2^(2/3) domine
    assert band.max_index == int(np.ceil(100 * 2 ** (2 / 3)))
    assert band.num_buckets == band.max_index - 99


def test_band_model_progresses_with_coarse_buckets():
    d = make_descriptor(48000, load_config(frame_size=64))
    model = BandModel(d)
    assert model[-1].max_index >= d.max_freq_index
    starts = [b.min_index for b in model]
    assert starts == sorted(set(starts))
