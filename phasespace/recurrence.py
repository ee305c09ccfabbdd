"""Recurrence matrices of embedded trajectories.

R[i, j] = 1  if ||x_i - x_j|| <= ε  else 0

Rows are computed in blocks with ``scipy.spatial.distance.cdist``. Blocks
write disjoint rows, so they can be dispatched to joblib workers.
"""

from __future__ import annotations

import logging

import numpy as np
from joblib import Parallel, delayed
from scipy.spatial.distance import cdist

from .errors import ConfigurationError, DegenerateEmbeddingError, EmptyEmbeddingError

logger = logging.getLogger(__name__)

DEFAULT_EPSILON_FRACTION = 0.1


class RecurrenceMatrix:
    """Binary, symmetric recurrence matrix and the threshold that produced it."""

    def __init__(self, matrix, epsilon):
        m = np.asarray(matrix, dtype=np.uint8)
        m.setflags(write=False)
        self._matrix = m
        self.epsilon = float(epsilon)

    @property
    def matrix(self):
        return self._matrix

    @property
    def shape(self):
        return self._matrix.shape

    @property
    def n_recurrences(self):
        return int(self._matrix.sum(dtype=np.int64))

    @property
    def recurrence_rate(self):
        n = self._matrix.shape[0]
        return self.n_recurrences / float(n * n)

    def __len__(self):
        return self._matrix.shape[0]

    def __array__(self, dtype=None, copy=None):
        if dtype is not None:
            return self._matrix.astype(dtype)
        return self._matrix.copy() if copy else self._matrix

    def __repr__(self):
        return f"RecurrenceMatrix(n={len(self)}, epsilon={self.epsilon:.4g}, rate={self.recurrence_rate:.3f})"


def _points(phase_space):
    x = np.asarray(phase_space, dtype=float)
    if x.ndim == 1:
        x = x.reshape(-1, 1)
    if x.ndim != 2:
        raise EmptyEmbeddingError("phase space must be 2D (n_points, dimension)")
    if len(x) < 2:
        raise EmptyEmbeddingError(f"need at least 2 embedded points, got {len(x)}")
    return x


def default_threshold(phase_space, fraction=DEFAULT_EPSILON_FRACTION):
    """ε = fraction * std of all coordinates pooled across dimensions."""
    x = _points(phase_space)
    return float(fraction * np.std(x))


def _row_block(x, start, stop, epsilon):
    d = cdist(x[start:stop], x, metric="euclidean")
    return start, d <= epsilon


def build_recurrence_matrix(phase_space, epsilon=None, n_jobs=1, block_size=512):
    """Threshold the pairwise Euclidean distances of an embedded trajectory.

    Parameters
    ---------
    phase_space : PhaseSpaceSet | array-like
        (n_points, dimension) trajectory.
    epsilon : float | None
        Recurrence threshold. Defaults to :func:`default_threshold`.
    n_jobs : int
        joblib workers for the row blocks (1 = serial).
    block_size : int
        Rows per block.
    """
    x = _points(phase_space)

    if epsilon is None:
        epsilon = default_threshold(x)
        if epsilon <= 0:
            raise DegenerateEmbeddingError("all embedded points coincide; default ε is 0")
    epsilon = float(epsilon)
    if not np.isfinite(epsilon) or epsilon <= 0:
        raise ConfigurationError(f"epsilon must be > 0, got {epsilon}")
    block_size = int(block_size)
    if block_size < 1:
        raise ConfigurationError("block_size must be >= 1")

    n = len(x)
    starts = range(0, n, block_size)
    if n_jobs == 1:
        blocks = [_row_block(x, s, min(s + block_size, n), epsilon) for s in starts]
    else:
        blocks = Parallel(n_jobs=n_jobs)(delayed(_row_block)(x, s, min(s + block_size, n), epsilon) for s in starts)

    R = np.zeros((n, n), dtype=np.uint8)
    for start, rows in blocks:
        R[start : start + len(rows)] = rows

    # cdist round-off can break exact symmetry at the threshold
    R = R | R.T
    np.fill_diagonal(R, 1)

    rm = RecurrenceMatrix(R, epsilon)
    logger.info("Recurrence matrix: n=%d, epsilon=%.4g, rate=%.3f", n, epsilon, rm.recurrence_rate)
    return rm
