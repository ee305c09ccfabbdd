"""Delay estimation from the first minimum of the average mutual information."""

import logging

import numpy as np
from sklearn.metrics import mutual_info_score

from .deltas import finite_values
from .errors import ConfigurationError, InsufficientDataError, NoLocalMinimumFoundError

logger = logging.getLogger(__name__)

MIN_SAMPLES = 10


def _bin_series(x, n_bins):
    # Constant series: everything in one bin
    xmin, xmax = float(np.min(x)), float(np.max(x))
    if xmax - xmin <= 0:
        return np.zeros_like(x, dtype=int)
    bins = np.linspace(xmin, xmax, n_bins + 1)
    return np.digitize(x, bins[1:-1], right=False)


def _prepare(series):
    x = finite_values(series)
    if len(x) < MIN_SAMPLES:
        raise InsufficientDataError(f"series too short for delay estimation: {len(x)} samples")
    return x


def default_max_delay(n_samples, cap=50):
    return int(min(cap, max(5, n_samples // 10)))


def ami_curve(series, max_delay=None, n_bins=30):
    """Mutual information between the series and its lag-k copy, k = 1..max_delay."""
    x = _prepare(series)
    if n_bins < 2:
        raise ConfigurationError("n_bins must be >= 2")
    if max_delay is None:
        max_delay = default_max_delay(len(x))
    max_delay = int(max_delay)
    if max_delay < 2:
        raise ConfigurationError("max_delay must be >= 2")
    if max_delay >= len(x) - 1:
        raise InsufficientDataError(f"max_delay={max_delay} too large for {len(x)} samples")

    x_binned = _bin_series(x, int(n_bins))
    ami_values = [mutual_info_score(x_binned[:-tau], x_binned[tau:]) for tau in range(1, max_delay + 1)]
    return np.asarray(ami_values)


def estimate_delay(series, max_delay=None, n_bins=30):
    """Return the first lag at which the AMI curve has a local minimum."""
    ami_values = ami_curve(series, max_delay=max_delay, n_bins=n_bins)

    # First local minimum: derivative changes from negative to positive.
    d = np.diff(ami_values)
    for i in range(1, len(d)):
        if d[i - 1] < 0 and d[i] > 0:
            return i + 1  # tau index starts at 1

    raise NoLocalMinimumFoundError(
        f"mutual information has no local minimum for lags 1..{len(ami_values)}"
    )


def estimate_theiler_window(series, default=10, max_delay=None, n_bins=30):
    """Theiler window for neighbour searches, falling back to ``default``."""
    try:
        w = estimate_delay(series, max_delay=max_delay, n_bins=n_bins)
    except NoLocalMinimumFoundError as e:
        logger.warning("%s; using default Theiler window %d", e, default)
        return int(default)
    logger.info("Estimated Theiler window: %d", w)
    return w
