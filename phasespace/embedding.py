from abc import ABC, abstractmethod

import numpy as np
from numpy.lib.stride_tricks import as_strided

from .deltas import finite_values
from .errors import ConfigurationError, InputError, InsufficientDataError


class PhaseSpaceSet:
    """Read-only trajectory of delay-coordinate points.

    Row i is the point ``(x_s0[i + d0], x_s1[i + d1], ...)`` where ``dk`` is
    the delay and ``sk`` the source series of coordinate k.
    """

    def __init__(self, points, delays, source_indices=None):
        pts = np.array(points, dtype=float)
        if pts.ndim == 1:
            pts = pts.reshape(-1, 1)
        if pts.ndim != 2:
            raise InputError("points must be 2D (n_points, dimension)")

        delays = tuple(int(d) for d in delays)
        if source_indices is None:
            source_indices = (0,) * len(delays)
        source_indices = tuple(int(s) for s in source_indices)

        if len(delays) != pts.shape[1] or len(source_indices) != pts.shape[1]:
            raise ConfigurationError(
                f"{pts.shape[1]} coordinates but {len(delays)} delays / {len(source_indices)} sources"
            )
        if len(set(zip(delays, source_indices))) != len(delays):
            raise ConfigurationError(f"delays must be pairwise distinct: {delays}")

        pts.setflags(write=False)
        self._points = pts
        self._delays = delays
        self._source_indices = source_indices

    @property
    def points(self):
        return self._points

    @property
    def delays(self):
        return self._delays

    @property
    def source_indices(self):
        return self._source_indices

    @property
    def dimension(self):
        return self._points.shape[1]

    def column(self, k):
        return self._points[:, k]

    def __len__(self):
        return self._points.shape[0]

    def __getitem__(self, item):
        return self._points[item]

    def __iter__(self):
        return iter(self._points)

    def __array__(self, dtype=None, copy=None):
        if dtype is not None:
            return self._points.astype(dtype)
        return self._points.copy() if copy else self._points

    def __repr__(self):
        return (
            f"PhaseSpaceSet(n_points={len(self)}, dimension={self.dimension}, "
            f"delays={list(self._delays)})"
        )


class DelayEmbedder(ABC):
    """Anything that turns a scalar series into a :class:`PhaseSpaceSet`."""

    @abstractmethod
    def embed(self, series) -> PhaseSpaceSet:
        raise NotImplementedError


def delay_embed(x, delays, source_indices=None):
    """Embed with arbitrary per-coordinate delays.

    ``x`` is 1D, or 2D with one column per source series.
    """
    data = np.asarray(x, dtype=float)
    if data.ndim == 1:
        data = data.reshape(-1, 1)
    delays = [int(d) for d in delays]
    if source_indices is None:
        source_indices = [0] * len(delays)
    if not delays:
        raise ConfigurationError("need at least one delay")
    if min(delays) < 0:
        raise ConfigurationError("delays must be >= 0")

    n_rows = data.shape[0] - max(delays)
    if n_rows <= 0:
        raise InsufficientDataError(
            f"series too short for embedding: len={data.shape[0]}, max delay={max(delays)}"
        )
    cols = [data[d : d + n_rows, s] for d, s in zip(delays, source_indices)]
    return np.column_stack(cols)


class FixedDelayEmbedding(DelayEmbedder):
    """Takens' delay embedding with caller-chosen parameters.

    Given a time series x(t), create vectors:
      X(j) = [x(j), x(j+τ), x(j+2τ), ..., x(j+(n-1)τ)]

    over a window of ``sample_size + 1`` samples starting at
    ``floor(len * window_offset)`` of the finite part of the series.

    Parameters
    ---------
    delay : int
        Time delay τ.
    dimension : int
        Embedding dimension n.
    sample_size : int
        Window length minus one.
    window_offset : float
        Window start as a fraction of the series length.
    """

    def __init__(self, delay=43, dimension=3, sample_size=1000, window_offset=0.25):
        self.delay = int(delay)
        self.dimension = int(dimension)
        self.sample_size = int(sample_size)
        self.window_offset = float(window_offset)

        if self.delay < 1:
            raise ConfigurationError("delay must be >= 1")
        if self.dimension < 2:
            raise ConfigurationError("dimension must be >= 2")
        if self.sample_size <= 0:
            raise ConfigurationError("sample_size must be > 0")
        if not 0.0 <= self.window_offset < 1.0:
            raise ConfigurationError("window_offset must be in [0, 1)")

    def window(self, series):
        x = finite_values(series)
        offset = int(np.floor(len(x) * self.window_offset))
        stop = offset + self.sample_size + 1
        if stop > len(x):
            raise InsufficientDataError(
                f"need {stop} finite samples for offset={offset}, "
                f"sample_size={self.sample_size}; got {len(x)}"
            )
        return x[offset:stop]

    def transform(self, window):
        x = np.ascontiguousarray(window, dtype=float)
        delay, dim = self.delay, self.dimension

        n_rows = len(x) - (dim - 1) * delay
        if n_rows <= 0:
            raise InsufficientDataError(
                f"window too short for embedding: len={len(x)}, dim={dim}, delay={delay}"
            )

        # shape: (n_rows, dim)
        # strides: 1 step in the series for the next row; delay steps for the next column
        shape = (n_rows, dim)
        strides = (x.strides[0], delay * x.strides[0])
        embedded = as_strided(x, shape=shape, strides=strides).copy()
        return PhaseSpaceSet(embedded, delays=[k * delay for k in range(dim)])

    def embed(self, series):
        return self.transform(self.window(series))


def build_fixed_embedding(series, sample_size=1000, tau=43, n=3, window_offset=0.25):
    """Fixed-parameter embedding of a window of ``series``.

    Returns ``sample_size + 1 - (n - 1) * tau`` points.
    """
    embedder = FixedDelayEmbedding(
        delay=tau, dimension=n, sample_size=sample_size, window_offset=window_offset
    )
    return embedder.embed(series)
