"""
End-to-end AlphaBeta run.

Build the pedigree, compute the pairwise divergence table and the
generation-0 unmethylated proportion, fit the model, bootstrap it and write
the reports into the output directory.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from alphabeta.config import AlphaBetaConfig
from alphabeta.core.analysis import Analysis
from alphabeta.core.bootstrap import BootstrapEngine, BootstrapResult
from alphabeta.core.data import PairwiseDivergenceTable
from alphabeta.core.equilibrium import methylation_level
from alphabeta.core.fitting import FitResult, ModelFitter
from alphabeta.core.model import Model
from alphabeta.core.parallel import ProgressHook
from alphabeta.pedigree import Pedigree

logger = logging.getLogger(__name__)

PEDIGREE_FILE = "pedigree.txt"
MODEL_FILE = "model.txt"
ANALYSIS_FILE = "analysis.txt"
BOOTSTRAP_PLOT_FILE = "bootstrap.png"

# Called with a stage label and its number of steps; returns the stage's hook.
ProgressFactory = Callable[[str, Optional[int]], ProgressHook]


@dataclass
class RunResult:
    """
    Everything produced by one run.

    Attributes:
        model: Fitted model
        fit: Multi-start fit details
        analysis: Bootstrap summary
        bootstrap: Bootstrap replicates and failure count
        table: Pairwise divergence table of the pedigree
        p0uu: Proportion of unmethylated sites at generation 0
        obs_steady_state: Observed steady-state methylation level, 1 - p0uu
    """

    model: Model
    fit: FitResult
    analysis: Analysis
    bootstrap: BootstrapResult
    table: PairwiseDivergenceTable
    p0uu: float
    obs_steady_state: float

    @property
    def pred_steady_state(self) -> float:
        """Steady-state methylation level predicted by the model."""
        return methylation_level(self.model.alpha, self.model.beta)


def _hook(
    progress_factory: Optional[ProgressFactory],
    label: str,
    total: Optional[int],
) -> Optional[ProgressHook]:
    if progress_factory is None:
        return None
    return progress_factory(label, total)


def build_pedigree(
    config: AlphaBetaConfig,
    progress_factory: Optional[ProgressFactory] = None,
) -> Pedigree:
    logger.info(f"Building pedigree from {config.nodes} and {config.edges}")
    return Pedigree.from_files(
        config.nodes,
        config.edges,
        posterior_max_filter=config.posterior_max_filter,
        progress=_hook(progress_factory, "Loading methylation data", None),
    )


def divergence_table(
    pedigree: Pedigree,
    progress_factory: Optional[ProgressFactory] = None,
) -> PairwiseDivergenceTable:
    n = len(pedigree.sampled_nodes())
    return pedigree.divergence_table(
        progress=_hook(progress_factory, "Calculating divergences", n * (n - 1) // 2)
    )


def run(
    config: AlphaBetaConfig,
    progress_factory: Optional[ProgressFactory] = None,
) -> RunResult:
    """
    Run the full estimation.

    The equilibrium penalty targets the observed generation-0 unmethylated
    proportion (eqp = p0uu).

    Args:
        config: Run configuration
        progress_factory: Optional factory of per-stage progress hooks

    Returns:
        RunResult

    Raises:
        PedigreeError: If the pedigree cannot be built
        InvalidInputError: On invalid configuration or data
        FitError: If fitting or bootstrapping yields no usable result
    """
    config = config.validate()

    pedigree = build_pedigree(config, progress_factory)
    table = divergence_table(pedigree, progress_factory)
    p0uu = pedigree.p0uu()
    logger.info(f"Proportion of unmethylated sites at generation 0: {p0uu:.6f}")

    fit_result = ModelFitter(config).fit(
        table,
        p0uu=p0uu,
        eqp=p0uu,
        eqp_weight=config.eqp_weight,
        progress=_hook(progress_factory, "Fitting model", config.iterations),
    )
    boot_result = BootstrapEngine(config).run(
        table,
        fit_result.model,
        fit_result.predicted_divergence,
        fit_result.residuals,
        p0uu=p0uu,
        eqp=p0uu,
        eqp_weight=config.eqp_weight,
        progress=_hook(progress_factory, "Bootstrapping", config.iterations),
    )

    result = RunResult(
        model=fit_result.model,
        fit=fit_result,
        analysis=boot_result.analysis,
        bootstrap=boot_result,
        table=table,
        p0uu=p0uu,
        obs_steady_state=1.0 - p0uu,
    )
    write_reports(result, config)
    return result


def write_reports(result: RunResult, config: AlphaBetaConfig) -> None:
    """Write pedigree, model, analysis and (optionally) the bootstrap plot."""
    output = config.output
    output.mkdir(parents=True, exist_ok=True)

    result.table.to_file(output / PEDIGREE_FILE)
    result.model.to_file(output / MODEL_FILE)
    result.analysis.to_file(output / ANALYSIS_FILE)

    if config.plot:
        try:
            import matplotlib.pyplot as plt

            from alphabeta.plot import bootstrap_boxplot

            fig = bootstrap_boxplot(result.bootstrap.raw_matrix, output / BOOTSTRAP_PLOT_FILE)
            plt.close(fig)
        except (OSError, ValueError, RuntimeError) as exc:
            logger.warning(f"Could not draw bootstrap plot: {exc}")
