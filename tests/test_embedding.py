import numpy as np
import pytest

from phasespace.embedding import FixedDelayEmbedding, PhaseSpaceSet, build_fixed_embedding, delay_embed
from phasespace.errors import ConfigurationError, InsufficientDataError


def test_embedding_shape():
    ts = np.random.default_rng(0).normal(size=400)
    emb = build_fixed_embedding(ts, sample_size=100, tau=2, n=3)
    assert emb.points.shape == (97, 3)
    assert emb.delays == (0, 2, 4)


def test_embedding_values():
    ts = np.arange(10, dtype=float) * 1.5
    emb = build_fixed_embedding(ts, sample_size=5, tau=1, n=2)

    # window starts at floor(10 / 4) = 2 and holds 6 samples
    window = ts[2:8]
    assert len(emb) == 5
    for j in range(5):
        np.testing.assert_allclose(emb[j], [window[j], window[j + 1]])


@pytest.mark.parametrize(
    "sample_size,tau,n",
    [(50, 1, 2), (50, 3, 3), (100, 7, 4), (200, 43, 3), (30, 10, 2)],
)
def test_point_count_and_coordinates(sample_size, tau, n):
    rng = np.random.default_rng(sample_size + tau + n)
    x = rng.normal(size=600)
    emb = build_fixed_embedding(x, sample_size=sample_size, tau=tau, n=n, window_offset=0.25)

    offset = int(np.floor(len(x) * 0.25))
    window = x[offset : offset + sample_size + 1]
    assert len(emb) == sample_size + 1 - (n - 1) * tau
    assert emb.dimension == n
    for j in (0, len(emb) // 2, len(emb) - 1):
        for m in range(n):
            assert emb[j][m] == window[j + m * tau]


def test_placeholders_are_filtered():
    x = np.append(np.arange(40, dtype=float), np.nan)
    emb = build_fixed_embedding(x, sample_size=20, tau=2, n=3, window_offset=0.0)
    assert np.isfinite(emb.points).all()
    np.testing.assert_allclose(emb[0], [0.0, 2.0, 4.0])


def test_window_offset_is_configurable():
    x = np.arange(100, dtype=float)
    emb = build_fixed_embedding(x, sample_size=10, tau=1, n=2, window_offset=0.5)
    np.testing.assert_allclose(emb[0], [50.0, 51.0])


def test_window_too_short_for_embedding():
    with pytest.raises(InsufficientDataError):
        build_fixed_embedding(np.arange(40, dtype=float), sample_size=5, tau=3, n=3)


def test_series_too_short_for_window():
    with pytest.raises(InsufficientDataError):
        build_fixed_embedding(np.arange(20, dtype=float), sample_size=1000, tau=1, n=2)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"tau": 0},
        {"n": 1},
        {"sample_size": 0},
        {"window_offset": 1.0},
    ],
)
def test_invalid_parameters(kwargs):
    params = {"sample_size": 10, "tau": 1, "n": 2}
    params.update(kwargs)
    with pytest.raises(ConfigurationError):
        build_fixed_embedding(np.arange(100, dtype=float), **params)


def test_phase_space_set_is_read_only():
    emb = FixedDelayEmbedding(delay=1, dimension=2, sample_size=10).embed(np.arange(50, dtype=float))
    with pytest.raises(ValueError):
        emb.points[0, 0] = 99.0
    assert np.asarray(emb).shape == (10, 2)


def test_phase_space_set_rejects_repeated_delays():
    with pytest.raises(ConfigurationError):
        PhaseSpaceSet(np.zeros((5, 2)), delays=[3, 3])


def test_delay_embed_multivariate():
    data = np.column_stack([np.arange(10.0), 100 + np.arange(10.0)])
    y = delay_embed(data, delays=[0, 2, 1], source_indices=[0, 0, 1])
    assert y.shape == (8, 3)
    np.testing.assert_allclose(y[0], [0.0, 2.0, 101.0])


def test_array_copy_is_writable_and_independent():
    emb = build_fixed_embedding(np.arange(50, dtype=float), sample_size=10, tau=1, n=2)
    a = np.array(emb)
    a[0, 0] = 5.0
    assert emb[0, 0] == 12.0
    assert np.asarray(emb).flags.writeable is False
