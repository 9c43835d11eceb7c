"""
Point estimation of the AlphaBeta model.

The cost surface is non-convex, so the derivative-free Nelder-Mead simplex
method is restarted from many random simplices. Every trial is independent
and runs on the worker pool; the trial whose best model has the smallest
least-squares error on the full table wins.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np
from scipy import optimize

from alphabeta.config import AlphaBetaConfig
from alphabeta.core.cost import CostFunction
from alphabeta.core.data import PairwiseDivergenceTable
from alphabeta.core.model import Model, intercept_bound
from alphabeta.core.parallel import ProgressHook, parallel_map
from alphabeta.errors import FitError, InvalidInputError

logger = logging.getLogger(__name__)

N_VERTICES = 5


@dataclass
class TrialResult:
    """
    Outcome of one Nelder-Mead run.

    Attributes:
        model: Best vertex found
        cost: Objective value at the best vertex (penalty included)
        n_iterations: Iterations performed
        converged: Whether the tolerances were met before the iteration cap
    """

    model: Model
    cost: float
    n_iterations: int
    converged: bool


@dataclass
class FitResult:
    """
    Result of the multi-start fit.

    Attributes:
        model: Selected model (smallest least-squares error)
        predicted_divergence: intercept + predicted divergence, per table row
        residuals: Observed minus predicted divergence, per table row
        least_squares: Sum of squared residuals of the selected model
        n_usable_starts: Trials with a finite least-squares error
        starts: All trial outcomes, in trial order (None for failed trials)
    """

    model: Model
    predicted_divergence: np.ndarray
    residuals: np.ndarray
    least_squares: float
    n_usable_starts: int
    starts: List[Optional[TrialResult]] = field(default_factory=list, repr=False)

    def __repr__(self) -> str:
        return (
            f"FitResult(alpha={self.model.alpha:.4e}, beta={self.model.beta:.4e}, "
            f"LSE={self.least_squares:.4e}, usable={self.n_usable_starts}/{len(self.starts)})"
        )


def _finite_or_inf(value: float) -> float:
    return value if math.isfinite(value) else math.inf


def run_nelder_mead(
    cost: CostFunction,
    initial_simplex: Sequence[Model],
    max_iter: int,
    xatol: float,
    fatol: float,
) -> TrialResult:
    """
    Minimize the cost function from a given simplex.

    Non-finite objective values are reported to the optimizer as +inf so
    they always rank below real costs. Hitting the iteration cap is not an
    error: the best vertex so far is returned.

    Args:
        cost: Objective
        initial_simplex: N_VERTICES models forming the starting simplex
        max_iter: Iteration cap
        xatol: Absolute simplex-size tolerance
        fatol: Absolute cost-spread tolerance
    """
    simplex = np.array([m.to_vector() for m in initial_simplex])

    def objective(x: np.ndarray) -> float:
        return _finite_or_inf(cost(x))

    result = optimize.minimize(
        objective,
        simplex[0],
        method="Nelder-Mead",
        options={
            "initial_simplex": simplex,
            "maxiter": max_iter,
            "xatol": xatol,
            "fatol": fatol,
        },
    )
    if not result.success:
        logger.debug(f"Nelder-Mead stopped early: {result.message}")

    return TrialResult(
        model=Model.from_vector(result.x),
        cost=float(result.fun),
        n_iterations=int(result.nit),
        converged=bool(result.success),
    )


@dataclass
class _StartTask:
    cost: CostFunction
    max_divergence: float
    seed: np.random.SeedSequence
    max_iter: int
    xatol: float
    fatol: float


def _run_start(task: _StartTask) -> TrialResult:
    rng = np.random.default_rng(task.seed)
    simplex = [Model.random(task.max_divergence, rng) for _ in range(N_VERTICES)]
    return run_nelder_mead(task.cost, simplex, task.max_iter, task.xatol, task.fatol)


def rank_trials(
    cost: CostFunction,
    trials: Sequence[Optional[TrialResult]],
) -> List[Tuple[float, int]]:
    """
    Rank trials by least-squares error on the full table.

    The equilibrium penalty is part of the optimized objective but not of
    the ranking. Failed trials are skipped
    and non-finite errors sort last.

    Returns:
        (least_squares, trial_index) pairs, best first
    """
    scored = []
    for idx, trial in enumerate(trials):
        if trial is None:
            continue
        lse = cost.least_squares(trial.model)
        scored.append((_finite_or_inf(lse), idx))
    scored.sort(key=lambda pair: pair[0])
    return scored


class ModelFitter:
    """
    Multi-start Nelder-Mead estimator.

    Usage:
        fitter = ModelFitter(AlphaBetaConfig(iterations=500, seed=1))
        result = fitter.fit(table, p0uu=0.75, eqp=0.75, eqp_weight=1.0)
    """

    def __init__(self, config: Optional[AlphaBetaConfig] = None):
        self.config = (config or AlphaBetaConfig()).validate()

    def fit(
        self,
        table: PairwiseDivergenceTable,
        p0uu: float,
        eqp: float,
        eqp_weight: float,
        n_starts: Optional[int] = None,
        progress: Optional[ProgressHook] = None,
        seed: Optional[int] = None,
    ) -> FitResult:
        """
        Fit the model to a divergence table.

        Args:
            table: Observed pairwise divergences
            p0uu: Proportion of unmethylated sites at generation 0
            eqp: Target equilibrium Pr(UU) for the penalty term
            eqp_weight: Penalty strength
            n_starts: Number of random restarts (default: config.iterations)
            progress: Hook called once per finished trial
            seed: Seed overriding config.seed

        Returns:
            FitResult with the selected model, predictions and residuals

        Raises:
            InvalidInputError: On invalid inputs
            FitError: If no trial produced a finite least-squares error
        """
        n_starts = self.config.iterations if n_starts is None else n_starts
        if n_starts < 1:
            raise InvalidInputError(f"n_starts must be positive, got {n_starts}")
        seed = self.config.seed if seed is None else seed

        cost = CostFunction.from_p0uu(table, p0uu, eqp, eqp_weight)

        max_divergence = intercept_bound(table.max_divergence)

        logger.info(f"Fitting model with {n_starts} random starts on {table.n_rows} pairs")
        seeds = np.random.SeedSequence(seed).spawn(n_starts)
        tasks = [
            _StartTask(
                cost=cost,
                max_divergence=max_divergence,
                seed=s,
                max_iter=self.config.fit_max_iter,
                xatol=self.config.xatol,
                fatol=self.config.fatol,
            )
            for s in seeds
        ]
        trials = parallel_map(
            _run_start,
            tasks,
            max_workers=self.config.max_workers,
            executor=self.config.executor,
            progress=progress,
        )

        ranking = rank_trials(cost, trials)
        usable = [(lse, idx) for lse, idx in ranking if math.isfinite(lse)]
        if not usable:
            raise FitError(
                f"None of the {n_starts} starts produced a finite least-squares error"
            )

        best_lse, best_idx = usable[0]
        best = trials[best_idx].model
        if not best.is_finite():
            raise FitError(f"Selected model has non-finite parameters: {best}")

        predicted_divergence = cost.predict(best)
        residuals = table.d - predicted_divergence

        logger.info(
            f"Best of {len(usable)} usable starts: alpha={best.alpha:.4e}, "
            f"beta={best.beta:.4e}, LSE={best_lse:.4e}"
        )
        return FitResult(
            model=best,
            predicted_divergence=predicted_divergence,
            residuals=residuals,
            least_squares=best_lse,
            n_usable_starts=len(usable),
            starts=trials,
        )


def fit(
    table: PairwiseDivergenceTable,
    p0uu: float,
    eqp: float,
    eqp_weight: float,
    n_starts: int,
    progress: Optional[ProgressHook] = None,
    config: Optional[AlphaBetaConfig] = None,
    seed: Optional[int] = None,
) -> FitResult:
    """Multi-start fit; see ModelFitter.fit."""
    return ModelFitter(config).fit(
        table, p0uu, eqp, eqp_weight, n_starts=n_starts, progress=progress, seed=seed
    )
