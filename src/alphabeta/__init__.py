"""
alphabeta: epimutation rate estimation from pedigree methylation data

Fits the AlphaBeta model of per-generation methylation gain (alpha) and
loss (beta) to pairwise divergences between the samples of a pedigree.
"""

__version__ = "0.1.0"

from alphabeta.errors import (
    AlphaBetaError,
    InvalidInputError,
    SingularMatrixError,
    FitError,
    PedigreeError,
)
from alphabeta.config import AlphaBetaConfig
from alphabeta.core.data import PairwiseDivergenceTable
from alphabeta.core.model import Model
from alphabeta.core.cost import CostFunction
from alphabeta.core.divergence import compute_divergence
from alphabeta.core.fitting import FitResult, ModelFitter, fit
from alphabeta.core.analysis import Analysis, RawBootstrapMatrix
from alphabeta.core.bootstrap import BootstrapEngine, BootstrapResult, bootstrap
from alphabeta.pedigree import Pedigree

__all__ = [
    "AlphaBetaError",
    "InvalidInputError",
    "SingularMatrixError",
    "FitError",
    "PedigreeError",
    "AlphaBetaConfig",
    "PairwiseDivergenceTable",
    "Model",
    "CostFunction",
    "compute_divergence",
    "FitResult",
    "ModelFitter",
    "fit",
    "Analysis",
    "RawBootstrapMatrix",
    "BootstrapEngine",
    "BootstrapResult",
    "bootstrap",
    "Pedigree",
    "__version__",
]
