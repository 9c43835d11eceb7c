"""Exception hierarchy for alphabeta."""

import numpy as np


class AlphaBetaError(Exception):
    """Base class for all alphabeta errors."""


class InvalidInputError(AlphaBetaError, ValueError):
    """
    Input data violates an invariant of the model.

    Raised before any optimization starts, e.g. state proportions that do
    not sum to one, an empty divergence table, or mismatched vector lengths.
    """


class SingularMatrixError(AlphaBetaError, np.linalg.LinAlgError):
    """A transition matrix could not be inverted for a negative power."""


class FitError(AlphaBetaError, RuntimeError):
    """No optimization trial produced a usable (finite) model."""


class PedigreeError(AlphaBetaError, ValueError):
    """Node list, edge list or methylation data could not be interpreted."""
