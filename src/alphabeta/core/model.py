"""The four-parameter epimutation model."""

import logging
import warnings
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Dict, Optional, Sequence, Union

import numpy as np

from alphabeta.core.equilibrium import p_mm_est, p_um_est, p_uu_est, steady_state
from alphabeta.errors import InvalidInputError

logger = logging.getLogger(__name__)

PARAMETER_NAMES = ("alpha", "beta", "weight", "intercept")

# Relative jitter used when warm-starting a simplex around an estimate.
VARIANCE = 0.1
# Stand-in for parameters that are exactly zero, so the jitter range is not empty.
ZERO_FALLBACK = 0.1
# Divergence bound used when the data has no positive divergence.
FALLBACK_MAX_DIVERGENCE = 0.1


def intercept_bound(max_divergence: float) -> float:
    """
    Upper bound for random intercepts.

    A non-positive maximum divergence warns and falls back to
    FALLBACK_MAX_DIVERGENCE.
    """
    if not max_divergence > 0.0:
        warnings.warn(
            f"Maximum observed divergence is {max_divergence}; check your data. "
            f"Using {FALLBACK_MAX_DIVERGENCE} to bound the intercept.",
            RuntimeWarning,
            stacklevel=3,
        )
        return FALLBACK_MAX_DIVERGENCE
    return max_divergence


@dataclass(frozen=True)
class Model:
    """
    Parameters of the AlphaBeta model.

    Attributes:
        alpha: Methylation gain rate per allele and generation
        beta: Methylation loss rate per allele and generation
        weight: Share of the generation-0 methylated mass placed in UM
        intercept: Offset between observed and predicted divergence
    """

    alpha: float
    beta: float
    weight: float
    intercept: float

    @classmethod
    def default(cls) -> "Model":
        """Reference parameter set used in regression tests."""
        return cls(
            alpha=0.0001179555,
            beta=0.0001180614,
            weight=0.03693534,
            intercept=0.003023981,
        )

    @classmethod
    def random(
        cls,
        max_divergence: float,
        rng: Optional[np.random.Generator] = None,
    ) -> "Model":
        """
        Draw a random starting point for the optimizer.

        alpha and beta are log-uniform on [1e-9, 1e-2], weight is uniform on
        [0, 0.1] and intercept uniform on [0, max_divergence].

        Args:
            max_divergence: Largest observed divergence (bounds the intercept)
            rng: Random number generator (default: fresh generator)
        """
        if rng is None:
            rng = np.random.default_rng()

        max_divergence = intercept_bound(max_divergence)
        return cls(
            alpha=float(10.0 ** rng.uniform(-9.0, -2.0)),
            beta=float(10.0 ** rng.uniform(-9.0, -2.0)),
            weight=float(rng.uniform(0.0, 0.1)),
            intercept=float(rng.uniform(0.0, max_divergence)),
        )

    def vary(self, rng: Optional[np.random.Generator] = None) -> "Model":
        """
        Randomly perturb every parameter by up to 10% of its magnitude.

        Zero-valued parameters are perturbed around ZERO_FALLBACK instead.
        Values are not clamped, so weight may leave [0, 1].
        """
        if rng is None:
            rng = np.random.default_rng()

        varied = []
        for name, value in zip(PARAMETER_NAMES, self.to_vector()):
            if value == 0.0:
                logger.warning(f"Parameter {name} is zero; perturbing around {ZERO_FALLBACK}")
                value = ZERO_FALLBACK
            spread = abs(value) * VARIANCE
            varied.append(float(rng.uniform(value - spread, value + spread)))
        return Model.from_vector(varied)

    def to_vector(self) -> np.ndarray:
        return np.array([self.alpha, self.beta, self.weight, self.intercept], dtype=float)

    @classmethod
    def from_vector(cls, vector: Sequence[float]) -> "Model":
        if len(vector) != len(PARAMETER_NAMES):
            raise InvalidInputError(
                f"Expected {len(PARAMETER_NAMES)} parameters, got {len(vector)}"
            )
        return cls(*(float(v) for v in vector))

    @property
    def pr_mm(self) -> float:
        return p_mm_est(self.alpha, self.beta)

    @property
    def pr_um(self) -> float:
        return p_um_est(self.alpha, self.beta)

    @property
    def pr_uu(self) -> float:
        return p_uu_est(self.alpha, self.beta)

    @property
    def steady_state(self) -> float:
        """Equilibrium Pr(UU) implied by alpha and beta."""
        return steady_state(self.alpha, self.beta)

    def is_finite(self) -> bool:
        return bool(np.all(np.isfinite(self.to_vector())))

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)

    def to_file(self, path: Union[str, Path]) -> None:
        """Write the parameters as 'Name value' lines."""
        content = (
            f"Alpha {self.alpha}\n"
            f"Beta {self.beta}\n"
            f"Weight {self.weight}\n"
            f"Intercept {self.intercept}\n"
        )
        Path(path).write_text(content)
        logger.info(f"Wrote model to {path}")

    def __str__(self) -> str:
        return (
            "Model:\n"
            f"\tAlpha: {self.alpha}\n"
            f"\tBeta: {self.beta}\n"
            f"\tWeight: {self.weight}\n"
            f"\tIntercept: {self.intercept}"
        )
