"""End-to-end analysis: deltas -> embedding -> recurrence matrix.

This module only sequences the pure core operations and returns their
values. Showing figures or waiting for the user is left to the caller
(see ``phasespace.cli``).
"""

from __future__ import annotations

import numpy as np

from .config import AnalysisConfig
from .delay import estimate_theiler_window
from .deltas import add_delta_columns, finite_values
from .embedding import build_fixed_embedding
from .errors import InputError
from .pecuzal import create_automatic_embedding, jitter
from .recurrence import build_recurrence_matrix, default_threshold


class PhaseSpaceAnalysis:
    def __init__(self, config: AnalysisConfig | None = None):
        self.config = (config or AnalysisConfig()).validate()

    def prepare(self, frame):
        """Add delta columns to a copy of ``frame`` and return the chosen finite deltas."""
        cfg = self.config
        with_deltas = add_delta_columns(frame)
        if cfg.column not in with_deltas.columns:
            raise InputError(f"unknown delta column {cfg.column!r}")
        return finite_values(with_deltas[cfg.column].to_numpy())

    def fixed_embedding(self, series):
        cfg = self.config
        return build_fixed_embedding(
            series,
            sample_size=cfg.sample_size,
            tau=cfg.tau,
            n=cfg.dimension,
            window_offset=cfg.fixed_window_offset,
        )

    def automatic_embedding(self, series):
        """PECUZAL on the tail of ``series`` after a seeded tie-breaking jitter."""
        cfg = self.config
        x = finite_values(series)
        start = int(np.floor(len(x) * cfg.auto_window_offset))
        sample = jitter(x[start:], scale=cfg.jitter_scale, seed=cfg.seed)

        theiler = cfg.theiler
        if theiler is None:
            theiler = estimate_theiler_window(sample, default=cfg.default_theiler, n_bins=cfg.n_bins)

        result = create_automatic_embedding(
            sample,
            tmax=cfg.tmax,
            theiler=theiler,
            peaks_only=cfg.peaks_only,
            max_dimension=cfg.max_dimension,
        )
        return result, theiler

    def recurrence(self, embedding):
        cfg = self.config
        epsilon = cfg.epsilon
        if epsilon is None:
            epsilon = default_threshold(embedding, fraction=cfg.epsilon_fraction)
        return build_recurrence_matrix(embedding, epsilon=epsilon, n_jobs=cfg.n_jobs)

    def run(self, frame, automatic=False):
        print("=" * 60)
        print("PHASE SPACE ANALYSIS")
        print("=" * 60)

        print(" [1/3] Computing price deltas...")
        series = self.prepare(frame)
        print(f"  {len(series)} finite deltas in column {self.config.column}")

        out = {"automatic": bool(automatic)}
        if automatic:
            print(" [2/3] Automatic embedding (PECUZAL)...")
            result, theiler = self.automatic_embedding(series)
            embedding = result.embedding
            out.update(
                theiler=theiler,
                delays=result.delays,
                source_indices=result.source_indices,
                l_statistics=result.l_statistics,
                thresholds=result.thresholds,
            )
        else:
            cfg = self.config
            print(f" [2/3] Fixed embedding: tau={cfg.tau}, n={cfg.dimension}, sample_size={cfg.sample_size}")
            embedding = self.fixed_embedding(series)
            out["delays"] = list(embedding.delays)
        print(f"  {len(embedding)} points in dimension {embedding.dimension}")

        print(" [3/3] Recurrence matrix...")
        rm = self.recurrence(embedding)
        print(f"  epsilon={rm.epsilon:.4g}, recurrence rate={rm.recurrence_rate:.3f}")

        out.update(embedding=embedding, recurrence=rm)
        return out

    @staticmethod
    def figures(result, width=500, height=500):
        from .visualization import plot_recurrence, plot_trajectory

        return (
            plot_trajectory(result["embedding"]),
            plot_recurrence(result["recurrence"], width=width, height=height),
        )
