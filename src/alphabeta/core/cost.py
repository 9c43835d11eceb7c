"""Least-squares objective with an equilibrium penalty."""

from typing import Sequence, Union

import numpy as np

from alphabeta.core.data import PairwiseDivergenceTable
from alphabeta.core.divergence import DivergenceResult, compute_divergence
from alphabeta.core.model import Model
from alphabeta.errors import InvalidInputError

PROBABILITY_TOLERANCE = 1e-9


def validate_state_proportions(p_mm: float, p_um: float, p_uu: float) -> None:
    """
    Check that generation-0 state proportions form a distribution.

    Raises:
        InvalidInputError: If a proportion is outside [0, 1] or they do not sum to one
    """
    for name, value in (("p_mm", p_mm), ("p_um", p_um), ("p_uu", p_uu)):
        if not 0.0 <= value <= 1.0:
            raise InvalidInputError(f"{name} must be within [0, 1], got {value}")
    total = p_mm + p_um + p_uu
    if abs(total - 1.0) > PROBABILITY_TOLERANCE:
        raise InvalidInputError(
            f"State proportions must sum to 1, got {p_mm} + {p_um} + {p_uu} = {total}"
        )


class CostFunction:
    """
    Objective minimized by the model fitter.

    cost(θ) = Σ_i (d_i - intercept - pred_i)² + w · n · (Pr(UU)_∞ - eqp)²

    The penalty is scaled by the number of rows (not averaged) so it stays
    commensurate with the summed squared residuals.

    Attributes:
        table: Observed pairwise divergences
        p_mm, p_um, p_uu: Generation-0 state proportions
        eqp: Target equilibrium Pr(UU)
        eqp_weight: Strength of the equilibrium penalty
    """

    def __init__(
        self,
        table: PairwiseDivergenceTable,
        p_mm: float,
        p_um: float,
        p_uu: float,
        eqp: float,
        eqp_weight: float,
    ):
        validate_state_proportions(p_mm, p_um, p_uu)
        self.table = table
        self.p_mm = p_mm
        self.p_um = p_um
        self.p_uu = p_uu
        self.eqp = eqp
        self.eqp_weight = eqp_weight

    @classmethod
    def from_p0uu(
        cls,
        table: PairwiseDivergenceTable,
        p0uu: float,
        eqp: float,
        eqp_weight: float,
    ) -> "CostFunction":
        """Generation 0 split into UU (p0uu) and MM (1 - p0uu), no UM."""
        return cls(table, p_mm=1.0 - p0uu, p_um=0.0, p_uu=p0uu, eqp=eqp, eqp_weight=eqp_weight)

    def divergence(self, model: Model) -> DivergenceResult:
        return compute_divergence(
            self.table,
            self.p_mm,
            self.p_um,
            self.p_uu,
            model.alpha,
            model.beta,
            model.weight,
        )

    def predict(self, model: Model) -> np.ndarray:
        """Predicted observed divergence: intercept + model divergence."""
        return model.intercept + self.divergence(model).dt1t2

    def residuals(self, model: Model) -> np.ndarray:
        return self.table.d - self.predict(model)

    def least_squares(self, model: Model) -> float:
        """Sum of squared residuals without the equilibrium penalty."""
        with np.errstate(all="ignore"):
            return float(np.sum(self.residuals(model) ** 2))

    def cost(self, params: Union[Model, Sequence[float], np.ndarray]) -> float:
        """
        Evaluate the objective.

        Args:
            params: Model or vector [alpha, beta, weight, intercept]

        Returns:
            Objective value; nan for degenerate parameter regions
        """
        model = params if isinstance(params, Model) else Model.from_vector(params)
        divergence = self.divergence(model)

        with np.errstate(all="ignore"):
            square_sum = np.sum((self.table.d - model.intercept - divergence.dt1t2) ** 2)
            penalty = (
                self.eqp_weight
                * self.table.n_rows
                * (divergence.puuinf_est - self.eqp) ** 2
            )
        return float(square_sum + penalty)

    def __call__(self, params: Union[Model, Sequence[float], np.ndarray]) -> float:
        return self.cost(params)
