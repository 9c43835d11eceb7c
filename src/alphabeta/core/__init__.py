"""Core model: transition matrices, divergence prediction, fitting and bootstrap."""

from alphabeta.core.transitions import generation_matrix, matrix_power, power_stack
from alphabeta.core.equilibrium import (
    p_uu_est,
    p_um_est,
    p_mm_est,
    steady_state,
    methylation_level,
    equilibrium_frequencies,
)
from alphabeta.core.data import PairwiseDivergenceTable
from alphabeta.core.model import Model
from alphabeta.core.divergence import DivergenceResult, compute_divergence
from alphabeta.core.cost import CostFunction
from alphabeta.core.parallel import parallel_map
from alphabeta.core.fitting import FitResult, ModelFitter, TrialResult, fit
from alphabeta.core.analysis import Analysis, ConfidenceInterval, RawBootstrapMatrix
from alphabeta.core.bootstrap import BootstrapEngine, BootstrapResult, bootstrap

__all__ = [
    "generation_matrix",
    "matrix_power",
    "power_stack",
    "p_uu_est",
    "p_um_est",
    "p_mm_est",
    "steady_state",
    "methylation_level",
    "equilibrium_frequencies",
    "PairwiseDivergenceTable",
    "Model",
    "DivergenceResult",
    "compute_divergence",
    "CostFunction",
    "parallel_map",
    "FitResult",
    "ModelFitter",
    "TrialResult",
    "fit",
    "Analysis",
    "ConfidenceInterval",
    "RawBootstrapMatrix",
    "BootstrapEngine",
    "BootstrapResult",
    "bootstrap",
]
