"""Price deltas (first differences) of raw price columns."""

from __future__ import annotations

import numpy as np
import pandas as pd

from .errors import EmptyInputError, InputError

# Tracked price column -> delta column name.
DELTA_COLUMNS = {"open": "deltaO", "close": "deltaC"}


def add_deltas(series):
    """Return ``series[i+1] - series[i]`` for every i (length ``len - 1``)."""
    x = np.asarray(series, dtype=float)
    if x.ndim == 2 and 1 in x.shape:
        x = x.reshape(-1)
    if x.ndim != 1:
        raise InputError("series must be 1D")
    if len(x) < 2:
        raise EmptyInputError(f"need at least 2 samples for deltas, got {len(x)}")
    return np.diff(x)


def add_delta_columns(frame: pd.DataFrame, columns=("open", "close")) -> pd.DataFrame:
    """Copy ``frame`` and add one delta column per tracked price column.

    The delta columns keep the frame's length, so the last row holds a NaN
    placeholder. Use :func:`finite_values` before embedding.
    """
    missing = [c for c in columns if c not in frame.columns]
    if missing:
        raise InputError(f"missing price columns: {missing}")

    out = frame.copy()
    for col in columns:
        name = DELTA_COLUMNS.get(col, f"delta_{col}")
        deltas = add_deltas(out[col].to_numpy(dtype=float))
        out[name] = np.append(deltas, np.nan)
    return out


def finite_values(values):
    """Drop NaN/inf placeholders and return a float array."""
    x = np.asarray(values, dtype=float).reshape(-1)
    return x[np.isfinite(x)]
