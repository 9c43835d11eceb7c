"""
Expected divergence between two samples of a pedigree.

For a pair with last common ancestor at generation t0 and samples at t1 and
t2, the ancestor's state distribution is obtained by propagating the
generation-0 state vector t0 generations. Conditioned on each ancestral
state, the two lineages evolve independently for t1 - t0 and t2 - t0
generations; the rows of the corresponding matrix powers are the lineage
state vectors. Discordant state pairs score 0.5 per differing allele.
"""

from dataclasses import dataclass

import numpy as np

from alphabeta.core.data import PairwiseDivergenceTable
from alphabeta.core.equilibrium import steady_state
from alphabeta.core.transitions import (
    MM,
    UM,
    UU,
    generation_matrix,
    matrix_power,
    power_stack,
)


@dataclass
class DivergenceResult:
    """
    Predicted divergence for every row of a table.

    Attributes:
        dt1t2: Predicted divergence per row, in table order
        puuinf_est: Equilibrium Pr(UU) implied by alpha and beta
    """

    dt1t2: np.ndarray
    puuinf_est: float


def initial_state(p_mm: float, p_uu: float, weight: float) -> np.ndarray:
    """Generation-0 state vector [Pr(UU), Pr(UM), Pr(MM)]."""
    return np.array([p_uu, weight * p_mm, (1.0 - weight) * p_mm])


def conditional_divergence(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """
    Divergence between two lineages with state vectors a and b.

    Works on the last axis, so a and b may be stacks of state vectors.
    """
    a0, a1, a2 = a[..., 0], a[..., 1], a[..., 2]
    b0, b1, b2 = b[..., 0], b[..., 1], b[..., 2]
    return (
        0.5 * (a0 * b1 + a1 * b0 + a1 * b2 + a2 * b1)
        + (a0 * b2 + a2 * b0)
    )


def ancestor_matrices(genmatrix: np.ndarray, powers: np.ndarray, t0: np.ndarray) -> np.ndarray:
    """
    G ** t0 for every row.

    Non-negative generations come from the precomputed stack; a negative
    generation (ancestor before generation 0) uses the inverse matrix.

    Raises:
        SingularMatrixError: If a negative generation needs an inverse that
            does not exist
    """
    matrices = powers[np.maximum(t0, 0)]
    for t in np.unique(t0[t0 < 0]):
        matrices[t0 == t] = matrix_power(genmatrix, int(t))
    return matrices


def compute_divergence(
    table: PairwiseDivergenceTable,
    p_mm: float,
    p_um: float,
    p_uu: float,
    alpha: float,
    beta: float,
    weight: float,
) -> DivergenceResult:
    """
    Predict the divergence of every sample pair in a table.

    Pure function of its inputs. Degenerate parameters produce nan or inf
    entries rather than exceptions.

    Args:
        table: Pairwise divergence table (only generations are used)
        p_mm: Proportion of MM sites at generation 0
        p_um: Proportion of UM sites at generation 0 (folded into weight)
        p_uu: Proportion of UU sites at generation 0
        alpha: Methylation gain rate
        beta: Methylation loss rate
        weight: Share of p_mm placed in the UM state at generation 0

    Returns:
        DivergenceResult with one prediction per row

    Raises:
        SingularMatrixError: If a row has a negative t0 and the generation
            matrix cannot be inverted
    """
    t0, t1, t2 = table.generations()

    with np.errstate(all="ignore"):
        genmatrix = generation_matrix(alpha, beta)
        max_power = int(max(t0.max(), 0, (t1 - t0).max(), (t2 - t0).max()))
        powers = power_stack(genmatrix, max_power)

        svt0 = initial_state(p_mm, p_uu, weight) @ ancestor_matrices(genmatrix, powers, t0)
        t1t0 = powers[t1 - t0]
        t2t0 = powers[t2 - t0]

        dt1t2_uu = conditional_divergence(t1t0[:, UU, :], t2t0[:, UU, :])
        dt1t2_um = conditional_divergence(t1t0[:, UM, :], t2t0[:, UM, :])
        dt1t2_mm = conditional_divergence(t1t0[:, MM, :], t2t0[:, MM, :])

        dt1t2 = svt0[:, UU] * dt1t2_uu + svt0[:, UM] * dt1t2_um + svt0[:, MM] * dt1t2_mm

        puuinf_est = steady_state(alpha, beta)

    return DivergenceResult(dt1t2=dt1t2, puuinf_est=puuinf_est)
