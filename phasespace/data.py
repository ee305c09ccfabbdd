"""Price loaders: local CSV files or a yfinance download."""

from __future__ import annotations

import os
import time

import pandas as pd
import yfinance as yf

from .errors import InputError

REQUIRED_COLUMNS = ("open", "close")


def _normalize_columns(frame: pd.DataFrame) -> pd.DataFrame:
    # yfinance may return (field, ticker) MultiIndex columns
    if isinstance(frame.columns, pd.MultiIndex):
        frame = frame.copy()
        frame.columns = frame.columns.get_level_values(0)
    frame = frame.rename(columns=lambda c: str(c).strip().lower())
    missing = [c for c in REQUIRED_COLUMNS if c not in frame.columns]
    if missing:
        raise InputError(f"price data is missing columns {missing}; have {list(frame.columns)}")
    return frame


def load_prices(path) -> pd.DataFrame:
    """Read a CSV with at least ``open`` and ``close`` columns (any case)."""
    if not os.path.isfile(path):
        raise InputError(f"no such price file: {path}")
    frame = pd.read_csv(path)
    if frame.empty:
        raise InputError(f"{path} contains no rows")
    return _normalize_columns(frame)


def download_prices(ticker, start, end, max_retries=3, pause=1.5) -> pd.DataFrame:
    last_err = None
    for attempt in range(max_retries):
        try:
            data = yf.download(ticker, start=start, end=end, progress=False)
            if data is not None and not data.empty:
                return _normalize_columns(data)
        except Exception as e:
            last_err = e
        if attempt + 1 < max_retries:
            time.sleep(pause)
    raise InputError(f"Failed to download {ticker}: {last_err}")
