"""
Equilibrium (steady-state) probabilities implied by alpha and beta.

Closed forms for the stationary distribution of the generation matrix.
Inputs are promoted to numpy floats so a vanishing ``alpha + beta`` yields
nan/inf instead of raising; callers decide how to treat such values.
"""

from typing import Tuple

import numpy as np


def _denominator(alpha: np.float64, beta: np.float64) -> np.float64:
    total = alpha + beta
    return total * ((total - 1.0) ** 2 - 2.0)


def p_uu_est(alpha: float, beta: float) -> float:
    """
    Equilibrium probability of the UU (unmethylated) state.

    Example:
        >>> round(p_uu_est(3.974271e-09, 1.519045e-07), 7)
        0.9745041
    """
    a, b = np.float64(alpha), np.float64(beta)
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(b * ((1.0 - b) ** 2 - (1.0 - a) ** 2 - 1.0) / _denominator(a, b))


def p_mm_est(alpha: float, beta: float) -> float:
    """Equilibrium probability of the MM (methylated) state."""
    a, b = np.float64(alpha), np.float64(beta)
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(a * ((1.0 - a) ** 2 - (1.0 - b) ** 2 - 1.0) / _denominator(a, b))


def p_um_est(alpha: float, beta: float) -> float:
    """Equilibrium probability of the intermediate UM state."""
    a, b = np.float64(alpha), np.float64(beta)
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(4.0 * a * b * (a + b - 2.0) / _denominator(a, b))


def steady_state(alpha: float, beta: float) -> float:
    """
    Steady-state Pr(UU) used by the equilibrium penalty of the cost function.

    Args:
        alpha: Methylation gain rate
        beta: Methylation loss rate

    Returns:
        Long-run proportion of unmethylated sites
    """
    return p_uu_est(alpha, beta)


def methylation_level(alpha: float, beta: float) -> float:
    """Long-run methylation level, Pr(MM) + 0.5 * Pr(UM)."""
    return p_mm_est(alpha, beta) + 0.5 * p_um_est(alpha, beta)


def equilibrium_frequencies(alpha: float, beta: float) -> Tuple[float, float, float]:
    """
    Stationary distribution over (UU, UM, MM).

    Returns:
        (pr_uu, pr_um, pr_mm), summing to one for alpha + beta > 0
    """
    return p_uu_est(alpha, beta), p_um_est(alpha, beta), p_mm_est(alpha, beta)
