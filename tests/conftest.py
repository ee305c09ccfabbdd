import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest


def make_gbm(n=500, mu=0.0005, sigma=0.02, s0=100, seed=0):
    """Geometric Brownian Motion (realistic stock prices)."""
    rng = np.random.default_rng(seed)
    return s0 * np.exp(np.cumsum(rng.normal(mu, sigma, n)))


@pytest.fixture
def price_frame():
    close = make_gbm(900, seed=7)
    open_ = np.concatenate([[100.0], close[:-1]]) * (1 + 0.001 * np.random.default_rng(8).normal(size=900))
    return pd.DataFrame({"open": open_, "close": close})
