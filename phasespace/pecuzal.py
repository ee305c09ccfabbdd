"""Automatic delay embedding (PECUZAL).

Greedy search that grows the embedding one delay coordinate at a time:

  1. start from the (standardized) series itself, delay 0;
  2. for every untried delay τ in [0, tmax] (and every source series),
     append x(t + τ) and score the trial embedding with the L-statistic of
     Uzal et al. (2011);
  3. keep the best trial if it lowers L, otherwise stop.

The continuity statistic ⟨ε*⟩ of Pecora et al. (2007) is computed for every
candidate as well. It is reported for each accepted coordinate and, with
``peaks_only=True``, restricts the candidates to its local maxima as in
Kraemer et al. (2021).

Neighbour searches skip pairs closer than the Theiler window in time, so
temporally adjacent samples are not mistaken for recurrences.
"""

from __future__ import annotations

import logging
from typing import NamedTuple

import numpy as np
from scipy.spatial import cKDTree
from scipy.stats import binom

from .delay import estimate_theiler_window
from .embedding import DelayEmbedder, PhaseSpaceSet, delay_embed
from .errors import (
    ConfigurationError,
    DegenerateEmbeddingError,
    InputError,
    InsufficientDataError,
)

logger = logging.getLogger(__name__)


class EmbeddingCandidate(NamedTuple):
    delay: int
    source: int
    dimension: int
    l_statistic: float
    threshold: float


class AutomaticEmbeddingResult(NamedTuple):
    embedding: PhaseSpaceSet
    delays: list
    source_indices: list
    l_statistics: list
    thresholds: list


def jitter(series, scale=1e-12, seed=None):
    """Add ``scale`` * N(0, 1) noise to break exact ties between samples."""
    x = np.asarray(series, dtype=float)
    rng = np.random.default_rng(seed)
    return x + scale * rng.standard_normal(x.shape)


def _as_matrix(series):
    data = np.asarray(series, dtype=float)
    if data.ndim == 1:
        data = data.reshape(-1, 1)
    if data.ndim != 2 or data.shape[1] == 0:
        raise InputError("series must be 1D or 2D (n_samples, n_series)")
    if not np.isfinite(data).all():
        raise InputError("series contains NaN/inf")
    return data


def _standardize(data):
    mu = data.mean(axis=0)
    sigma = data.std(axis=0)
    sigma[sigma == 0] = 1.0
    return (data - mu) / sigma


def _theiler_neighbours(points, k, theiler):
    """k nearest neighbours of every point, skipping |i - j| <= theiler.

    Returns the indices of the points that have k such neighbours and a
    (n_fiducial, k) array of neighbour indices, nearest first.
    """
    n = len(points)
    kk = min(n, k + 2 * theiler + 1)
    tree = cKDTree(points)
    _, idx = tree.query(points, k=kk)
    idx = np.asarray(idx).reshape(n, -1)

    rows = np.arange(n)[:, None]
    valid = (np.abs(idx - rows) > theiler) & (idx < n)
    enough = valid.sum(axis=1) >= k
    # stable sort keeps the distance order among the valid neighbours
    order = np.argsort(~valid, axis=1, kind="stable")[:, :k]
    nb = np.take_along_axis(idx, order, axis=1)
    return np.flatnonzero(enough), nb[enough]


def l_statistic(points, theiler, k=3, horizon=None):
    """Uzal et al. cost function L of a trajectory (lower is better).

    For every fiducial point i and its k neighbours U(i):

      ε²(i)   = mean squared pairwise distance inside U(i)
      E²(i,T) = spread of U(i) after T steps around its centroid
      σ²      = < E²(i,T) / ε²(i) >  averaged over i and T = 1..horizon
      α²      = 1 / < 1 / ε²(i) >
      L       = log10(sqrt(σ²) * sqrt(α²))

    Returns NaN or inf when neighbourhoods collapse to a single point.
    """
    y = np.asarray(points, dtype=float)
    if y.ndim == 1:
        y = y.reshape(-1, 1)
    horizon = int(horizon) if horizon else max(int(theiler), 1)

    n = len(y) - horizon
    if n <= k + 2 * theiler + 1:
        return np.nan

    fid, nb = _theiler_neighbours(y[:n], k, theiler)
    if len(fid) == 0:
        return np.nan

    hood = np.concatenate([fid[:, None], nb], axis=1)
    pts = y[hood]
    centred = pts - pts.mean(axis=1, keepdims=True)
    eps2 = (2.0 / k) * np.sum(centred**2, axis=(1, 2))

    e2 = np.zeros(len(fid))
    for t in range(1, horizon + 1):
        fwd = y[hood + t]
        spread = fwd - fwd.mean(axis=1, keepdims=True)
        e2 += np.mean(np.sum(spread**2, axis=2), axis=1)
    e2 /= horizon

    with np.errstate(divide="ignore", invalid="ignore"):
        sigma2 = np.mean(e2 / eps2)
        alpha2 = 1.0 / np.mean(1.0 / eps2)
        return float(np.log10(np.sqrt(sigma2) * np.sqrt(alpha2)))


def _binomial_levels(k_min, k_max, p, alpha):
    """Smallest number of neighbours inside the ε-ball that rejects 'random mapping'."""
    ks, ls = [], []
    for k in range(k_min, k_max + 1):
        counts = np.arange(1, k + 1)
        rejected = binom.sf(counts - 1, k, p) < alpha
        if rejected.any():
            ks.append(k)
            ls.append(int(counts[rejected][0]))
    return ks, ls


def continuity_statistic(data, delays, sources, tmax, theiler, k_max=13, k_min=8, p=0.5, alpha=0.05):
    """Pecora's averaged continuity statistic ⟨ε*⟩ for every delay 0..tmax.

    ``data`` is (n_samples, n_series), already standardized. Returns an
    array of shape (n_series, tmax + 1).
    """
    ks, ls = _binomial_levels(k_min, k_max, p, alpha)
    if not ks:
        raise ConfigurationError(f"no neighbourhood size in {k_min}..{k_max} is significant at alpha={alpha}")

    n = len(data) - tmax
    y = delay_embed(data, delays, sources)[:n]
    fid, nb = _theiler_neighbours(y, k_max, theiler)

    out = np.full((data.shape[1], tmax + 1), np.nan)
    if len(fid) == 0:
        return out

    for s in range(data.shape[1]):
        for tau in range(tmax + 1):
            z = data[tau : tau + n, s]
            dz = np.abs(z[nb] - z[fid][:, None])
            eps_star = np.full(len(fid), np.inf)
            for k, level in zip(ks, ls):
                eps_k = np.sort(dz[:, :k], axis=1)[:, level - 1]
                eps_star = np.minimum(eps_star, eps_k)
            out[s, tau] = float(np.mean(eps_star))
    return out


def _local_maxima(curve):
    peaks = np.zeros(len(curve), dtype=bool)
    if len(curve) >= 3:
        inner = (curve[1:-1] > curve[:-2]) & (curve[1:-1] >= curve[2:])
        peaks[1:-1] = inner
    return peaks


def create_automatic_embedding(
    series,
    tmax=200,
    theiler=None,
    k=3,
    tolerance=0.0,
    peaks_only=False,
    max_dimension=None,
    k_continuity=13,
    alpha=0.05,
    p=0.5,
):
    """Select delays and embedding dimension by minimizing the L-statistic.

    Parameters
    ---------
    series : array-like
        1D series, or 2D array with one column per source series. Must be
        finite; break exact ties first (see :func:`jitter`).
    tmax : int
        Largest delay considered.
    theiler : int | None
        Theiler window. If None, estimated from the AMI minimum of the
        first series (default 10 when there is none).
    k : int
        Neighbours per fiducial point in the L-statistic.
    tolerance : float
        Minimum decrease of L needed to accept another coordinate.
    peaks_only : bool
        Only try delays at local maxima of the continuity statistic.
    max_dimension : int | None
        Optional cap on the final dimension.

    Returns
    -------
    AutomaticEmbeddingResult
        ``(embedding, delays, source_indices, l_statistics, thresholds)``.
        ``l_statistics[d]`` is the L of the (d+1)-dimensional embedding and
        ``thresholds[d]`` the ⟨ε*⟩ at which coordinate d was accepted (NaN
        for the first one).
    """
    data = _as_matrix(series)
    tmax = int(tmax)
    k = int(k)
    if tmax < 0:
        raise ConfigurationError("tmax must be >= 0")
    if k < 1:
        raise ConfigurationError("k must be >= 1")
    if max_dimension is not None and int(max_dimension) < 1:
        raise ConfigurationError("max_dimension must be >= 1")

    if np.all(np.ptp(data, axis=0) == 0):
        raise DegenerateEmbeddingError("series is constant; every neighbourhood has zero size")

    if theiler is None:
        theiler = estimate_theiler_window(data[:, 0])
    theiler = int(theiler)
    if theiler < 0:
        raise ConfigurationError("theiler must be >= 0")
    horizon = max(theiler, 1)

    n_samples, n_series = data.shape
    needed = tmax + horizon + max(k, k_continuity) + 2 * theiler + 2
    if n_samples < needed:
        raise InsufficientDataError(
            f"need at least {needed} samples for tmax={tmax}, theiler={theiler}; got {n_samples}"
        )

    logger.info("Theiler window: %d", theiler)

    z = _standardize(data)
    pool_size = (tmax + 1) * n_series
    cap = pool_size if max_dimension is None else min(int(max_dimension), pool_size)

    delays, sources = [0], [0]
    current_l = l_statistic(delay_embed(z, delays, sources), theiler, k, horizon)
    if not np.isfinite(current_l):
        raise DegenerateEmbeddingError("L-statistic of the initial embedding is not finite")

    accepted = [EmbeddingCandidate(0, 0, 1, current_l, np.nan)]

    while len(delays) < cap:
        eps_star = continuity_statistic(z, delays, sources, tmax, theiler, k_max=k_continuity, alpha=alpha, p=p)
        untried = np.ones_like(eps_star, dtype=bool)
        for d, s in zip(delays, sources):
            untried[s, d] = False
        if peaks_only:
            for s in range(n_series):
                untried[s] &= _local_maxima(eps_star[s])

        pool = [(int(tau), int(s)) for s, tau in zip(*np.nonzero(untried))]
        ls = np.array(
            [l_statistic(delay_embed(z, delays + [tau], sources + [s]), theiler, k, horizon) for tau, s in pool]
        )
        finite = np.isfinite(ls)
        if not finite.any():
            if len(delays) == 1:
                raise DegenerateEmbeddingError("no candidate delay gives a finite L-statistic")
            break

        best = int(np.argmin(np.where(finite, ls, np.inf)))
        tau, s = pool[best]
        l_best = float(ls[best])
        logger.debug("dimension %d: best delay %d (series %d), L=%.4f", len(delays) + 1, tau, s, l_best)

        if not l_best < current_l - tolerance:
            logger.info("L does not decrease (%.4f -> %.4f); stopping at dimension %d", current_l, l_best, len(delays))
            break

        delays.append(tau)
        sources.append(s)
        current_l = l_best
        accepted.append(EmbeddingCandidate(tau, s, len(delays), l_best, float(eps_star[s, tau])))
        logger.info("Accepted delay %d (series %d): L=%.4f", tau, s, l_best)

    embedding = PhaseSpaceSet(delay_embed(data, delays, sources), delays, sources)
    l_stats = [c.l_statistic for c in accepted]
    logger.info("Optimal time delays = %s", delays)
    logger.info("L-statistics = %s", [round(v, 4) for v in l_stats])

    return AutomaticEmbeddingResult(
        embedding=embedding,
        delays=list(delays),
        source_indices=list(sources),
        l_statistics=l_stats,
        thresholds=[c.threshold for c in accepted],
    )


class PecuzalEmbedding(DelayEmbedder):
    """Embedder that chooses its own delays; see :func:`create_automatic_embedding`."""

    def __init__(self, tmax=200, theiler=None, k=3, tolerance=0.0, peaks_only=False, max_dimension=None):
        self.tmax = int(tmax)
        self.theiler = theiler
        self.k = int(k)
        self.tolerance = float(tolerance)
        self.peaks_only = bool(peaks_only)
        self.max_dimension = max_dimension
        self.result_ = None

    def fit(self, series):
        self.result_ = create_automatic_embedding(
            series,
            tmax=self.tmax,
            theiler=self.theiler,
            k=self.k,
            tolerance=self.tolerance,
            peaks_only=self.peaks_only,
            max_dimension=self.max_dimension,
        )
        return self

    @property
    def delays(self):
        if self.result_ is None:
            raise ValueError("not fitted; call fit() first")
        return self.result_.delays

    def embed(self, series):
        return self.fit(series).result_.embedding
