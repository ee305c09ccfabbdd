"""Exception hierarchy for the phase-space pipeline.

Bad arguments and bad data are ``ValueError`` subclasses so callers that
already catch ``ValueError`` keep working.
"""


class PhaseSpaceError(Exception):
    """Base class for every error raised by this package."""


class InputError(PhaseSpaceError, ValueError):
    """Malformed or too-short input series."""


class EmptyInputError(InputError):
    pass


class InsufficientDataError(InputError):
    pass


class EmptyEmbeddingError(InputError):
    pass


class NumericalError(PhaseSpaceError, ArithmeticError):
    """A statistic could not be computed on the given data."""


class DegenerateEmbeddingError(NumericalError):
    pass


class NoLocalMinimumFoundError(NumericalError):
    pass


class ConfigurationError(PhaseSpaceError, ValueError):
    """Invalid parameter value."""
