"""
Residual-resampling bootstrap of the fitted model.

Each replicate adds resampled residuals to the predicted divergence, refits
the model from a simplex around the point estimate and records the refitted
parameters together with their equilibrium probabilities.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from alphabeta.config import AlphaBetaConfig
from alphabeta.core.analysis import Analysis, RawBootstrapMatrix
from alphabeta.core.cost import CostFunction
from alphabeta.core.data import PairwiseDivergenceTable
from alphabeta.core.fitting import N_VERTICES, run_nelder_mead
from alphabeta.core.model import Model
from alphabeta.core.parallel import ProgressHook, parallel_map
from alphabeta.errors import FitError, InvalidInputError

logger = logging.getLogger(__name__)


@dataclass
class BootstrapResult:
    """
    Attributes:
        analysis: Summary statistics of the replicates
        raw_matrix: Successful replicates, one row each
        n_failed: Replicates dropped after a numerical failure
    """

    analysis: Analysis
    raw_matrix: RawBootstrapMatrix
    n_failed: int = 0


@dataclass
class _ReplicateTask:
    table: PairwiseDivergenceTable
    model: Model
    predicted_divergence: np.ndarray
    residuals: np.ndarray
    p0uu: float
    eqp: float
    eqp_weight: float
    seed: np.random.SeedSequence
    max_iter: int
    xatol: float
    fatol: float


def _run_replicate(task: _ReplicateTask) -> Optional[np.ndarray]:
    rng = np.random.default_rng(task.seed)

    resampled = rng.choice(task.residuals, size=task.table.n_rows, replace=True)
    table = task.table.with_divergence(task.predicted_divergence + resampled)
    cost = CostFunction.from_p0uu(table, task.p0uu, task.eqp, task.eqp_weight)

    simplex = [task.model] + [task.model.vary(rng) for _ in range(N_VERTICES - 1)]
    refit = run_nelder_mead(cost, simplex, task.max_iter, task.xatol, task.fatol).model
    if not refit.is_finite():
        logger.debug(f"Discarding replicate with non-finite parameters: {refit.to_vector()}")
        return None

    return np.array(
        [
            refit.alpha,
            refit.beta,
            refit.weight,
            refit.intercept,
            refit.pr_mm,
            refit.pr_um,
            refit.pr_uu,
        ]
    )


class BootstrapEngine:
    """
    Parallel residual bootstrap.

    Replicates are independent; each owns a generator spawned from one
    SeedSequence, so a seeded run is reproducible for any pool size.
    """

    def __init__(self, config: Optional[AlphaBetaConfig] = None):
        self.config = (config or AlphaBetaConfig()).validate()

    def run(
        self,
        table: PairwiseDivergenceTable,
        model: Model,
        predicted_divergence: np.ndarray,
        residuals: np.ndarray,
        p0uu: float,
        eqp: float,
        eqp_weight: float,
        n_boot: Optional[int] = None,
        progress: Optional[ProgressHook] = None,
        seed: Optional[int] = None,
    ) -> BootstrapResult:
        """
        Run the bootstrap.

        Args:
            table: Observed pairwise divergences
            model: Point estimate (vertex 0 of every refit simplex)
            predicted_divergence: intercept + predicted divergence per row
            residuals: Observed minus predicted divergence per row
            p0uu: Proportion of unmethylated sites at generation 0
            eqp: Target equilibrium Pr(UU)
            eqp_weight: Penalty strength
            n_boot: Number of replicates (default: config.iterations)
            progress: Hook called once per finished replicate
            seed: Seed overriding config.seed

        Returns:
            BootstrapResult with the analysis and the replicate matrix

        Raises:
            InvalidInputError: On mismatched lengths or n_boot < 2
            FitError: If fewer than two replicates succeed
        """
        n_boot = self.config.iterations if n_boot is None else n_boot
        if n_boot < 2:
            raise InvalidInputError(f"n_boot must be at least 2, got {n_boot}")
        seed = self.config.seed if seed is None else seed

        predicted_divergence = np.asarray(predicted_divergence, dtype=float)
        residuals = np.asarray(residuals, dtype=float)
        for name, values in (("predicted_divergence", predicted_divergence), ("residuals", residuals)):
            if values.shape != (table.n_rows,):
                raise InvalidInputError(
                    f"{name} must have one value per table row ({table.n_rows}), "
                    f"got shape {values.shape}"
                )

        # Validates the state proportions once, before any task starts.
        CostFunction.from_p0uu(table, p0uu, eqp, eqp_weight)

        logger.info(f"Bootstrapping model with {n_boot} replicates")
        seeds = np.random.SeedSequence(seed).spawn(n_boot)
        tasks = [
            _ReplicateTask(
                table=table,
                model=model,
                predicted_divergence=predicted_divergence,
                residuals=residuals,
                p0uu=p0uu,
                eqp=eqp,
                eqp_weight=eqp_weight,
                seed=s,
                max_iter=self.config.boot_max_iter,
                xatol=self.config.xatol,
                fatol=self.config.fatol,
            )
            for s in seeds
        ]
        rows: List[Optional[np.ndarray]] = parallel_map(
            _run_replicate,
            tasks,
            max_workers=self.config.max_workers,
            executor=self.config.executor,
            progress=progress,
        )

        usable = [row for row in rows if row is not None]
        n_failed = n_boot - len(usable)
        if n_failed:
            logger.warning(f"{n_failed} of {n_boot} bootstrap replicates failed")
        if len(usable) < 2:
            raise FitError(f"Only {len(usable)} of {n_boot} bootstrap replicates succeeded")

        raw_matrix = RawBootstrapMatrix(np.vstack(usable))
        return BootstrapResult(
            analysis=raw_matrix.analyze(),
            raw_matrix=raw_matrix,
            n_failed=n_failed,
        )


def bootstrap(
    table: PairwiseDivergenceTable,
    model: Model,
    predicted_divergence: np.ndarray,
    residuals: np.ndarray,
    p0uu: float,
    eqp: float,
    eqp_weight: float,
    n_boot: int,
    progress: Optional[ProgressHook] = None,
    config: Optional[AlphaBetaConfig] = None,
    seed: Optional[int] = None,
) -> Analysis:
    """Bootstrap analysis of a fitted model; see BootstrapEngine.run."""
    result = BootstrapEngine(config).run(
        table,
        model,
        predicted_divergence,
        residuals,
        p0uu,
        eqp,
        eqp_weight,
        n_boot=n_boot,
        progress=progress,
        seed=seed,
    )
    return result.analysis
