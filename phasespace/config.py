"""Analysis parameters and their JSON persistence."""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, fields

from .errors import ConfigurationError


@dataclass
class AnalysisConfig:
    # Fixed embedding
    sample_size: int = 1000
    tau: int = 43
    dimension: int = 3
    fixed_window_offset: float = 0.25

    # Automatic embedding
    tmax: int = 200
    theiler: int | None = None
    default_theiler: int = 10
    auto_window_offset: float = 1.0 / 3.0
    jitter_scale: float = 1e-12
    seed: int | None = None
    peaks_only: bool = False
    max_dimension: int | None = None

    # Delay estimation
    n_bins: int = 30

    # Recurrence
    epsilon: float | None = None
    epsilon_fraction: float = 0.1
    n_jobs: int = 1

    # Which delta column feeds the embedding
    column: str = "deltaO"

    def validate(self):
        if self.sample_size <= 0:
            raise ConfigurationError("sample_size must be > 0")
        if self.tau < 1:
            raise ConfigurationError("tau must be >= 1")
        if self.dimension < 2:
            raise ConfigurationError("dimension must be >= 2")
        if self.tmax < 0:
            raise ConfigurationError("tmax must be >= 0")
        if self.theiler is not None and self.theiler < 0:
            raise ConfigurationError("theiler must be >= 0")
        for name in ("fixed_window_offset", "auto_window_offset"):
            v = getattr(self, name)
            if not 0.0 <= v < 1.0:
                raise ConfigurationError(f"{name} must be in [0, 1)")
        if self.epsilon is not None and self.epsilon <= 0:
            raise ConfigurationError("epsilon must be > 0")
        if self.epsilon_fraction <= 0:
            raise ConfigurationError("epsilon_fraction must be > 0")
        return self

    def to_dict(self):
        return asdict(self)


def load_config(path) -> AnalysisConfig:
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    known = {f.name for f in fields(AnalysisConfig)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigurationError(f"unknown config keys in {path}: {unknown}")
    return AnalysisConfig(**raw).validate()


def save_config(config: AnalysisConfig, path):
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(config.to_dict(), f, indent=2)
    return path
