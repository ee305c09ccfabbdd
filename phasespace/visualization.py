"""Matplotlib rendering of trajectories and recurrence matrices.

Only finished arrays come in here; nothing in this module computes
embeddings or thresholds.
"""

from __future__ import annotations

import os

import matplotlib.pyplot as plt
import numpy as np


def grayscale(matrix, width=500, height=500):
    """Block-average a recurrence matrix down to at most ``height`` x ``width`` cells.

    Each cell holds the fraction of recurrent pairs it covers, in [0, 1].
    """
    m = np.asarray(matrix, dtype=float)
    n_rows, n_cols = m.shape
    height = max(1, min(int(height), n_rows))
    width = max(1, min(int(width), n_cols))

    row_edges = np.linspace(0, n_rows, height + 1).astype(int)
    col_edges = np.linspace(0, n_cols, width + 1).astype(int)

    sums = np.add.reduceat(m, col_edges[:-1], axis=1)
    sums = np.add.reduceat(sums, row_edges[:-1], axis=0)
    counts = np.outer(np.diff(row_edges), np.diff(col_edges))
    return sums / counts


def plot_trajectory(phase_space, title=None, ax=None, color="blue"):
    """3D line+marker plot of the first three embedding coordinates."""
    x = np.asarray(phase_space, dtype=float)
    if x.ndim != 2 or x.shape[1] < 2:
        raise ValueError("trajectory needs at least 2 coordinates")

    if ax is None:
        fig = plt.figure(figsize=(8, 8))
        ax = fig.add_subplot(111, projection="3d" if x.shape[1] >= 3 else None)
    else:
        fig = ax.figure

    if x.shape[1] >= 3:
        ax.plot(x[:, 0], x[:, 1], x[:, 2], "-o", color=color, markersize=2, linewidth=0.5, label="Points")
        ax.set_zlabel("x(t + 2τ)")
        ax.view_init(elev=30, azim=45)
    else:
        ax.plot(x[:, 0], x[:, 1], "-o", color=color, markersize=2, linewidth=0.5, label="Points")
    ax.set_xlabel("x(t)")
    ax.set_ylabel("x(t + τ)")

    if title is None:
        delays = getattr(phase_space, "delays", None)
        title = f"Embedding: delays={list(delays)}, n={x.shape[1]}" if delays else f"Embedding: n={x.shape[1]}"
    ax.set_title(title)
    return fig


def plot_recurrence(recurrence, width=500, height=500, ax=None, cmap="viridis"):
    """Heatmap of the (rasterized) recurrence matrix, labelled with ε."""
    image = grayscale(np.asarray(recurrence), width=width, height=height)
    n = len(recurrence)

    if ax is None:
        fig, ax = plt.subplots(figsize=(7, 6))
    else:
        fig = ax.figure

    im = ax.imshow(image, cmap=cmap, origin="lower", extent=(0, n, 0, n), vmin=0.0, vmax=1.0)
    cbar = fig.colorbar(im, ax=ax)
    cbar.set_label("Recurrence")

    epsilon = getattr(recurrence, "epsilon", None)
    title = "Recurrence Matrix (heatmap)"
    if epsilon is not None:
        title += f", ε={epsilon:.4g}"
    ax.set_title(title)
    ax.set_xlabel("Point index")
    ax.set_ylabel("Point index")
    return fig


def save_figure(fig, path, dpi=150):
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    fig.savefig(path, dpi=dpi, bbox_inches="tight")
    return path
