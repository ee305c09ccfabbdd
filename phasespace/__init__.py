"""Phase-space reconstruction and recurrence analysis of price deltas.

Programmatic use:
  from phasespace import build_fixed_embedding, build_recurrence_matrix
"""

from .deltas import add_delta_columns, add_deltas
from .delay import estimate_delay, estimate_theiler_window
from .embedding import DelayEmbedder, FixedDelayEmbedding, PhaseSpaceSet, build_fixed_embedding
from .errors import (
    ConfigurationError,
    DegenerateEmbeddingError,
    EmptyEmbeddingError,
    EmptyInputError,
    InputError,
    InsufficientDataError,
    NoLocalMinimumFoundError,
    NumericalError,
    PhaseSpaceError,
)
from .pecuzal import AutomaticEmbeddingResult, PecuzalEmbedding, create_automatic_embedding, jitter
from .recurrence import RecurrenceMatrix, build_recurrence_matrix, default_threshold

__all__ = [
    "add_deltas",
    "add_delta_columns",
    "estimate_delay",
    "estimate_theiler_window",
    "DelayEmbedder",
    "FixedDelayEmbedding",
    "PhaseSpaceSet",
    "build_fixed_embedding",
    "AutomaticEmbeddingResult",
    "PecuzalEmbedding",
    "create_automatic_embedding",
    "jitter",
    "RecurrenceMatrix",
    "build_recurrence_matrix",
    "default_threshold",
    "PhaseSpaceError",
    "InputError",
    "EmptyInputError",
    "InsufficientDataError",
    "EmptyEmbeddingError",
    "NumericalError",
    "DegenerateEmbeddingError",
    "NoLocalMinimumFoundError",
    "ConfigurationError",
]
