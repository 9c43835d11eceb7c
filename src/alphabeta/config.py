"""Run configuration passed explicitly to the fitting and bootstrap stages."""

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional

import numpy as np

from alphabeta.errors import InvalidInputError

EXECUTORS = ("thread", "process")


@dataclass
class AlphaBetaConfig:
    """Configuration of an AlphaBeta run."""

    nodes: Path = field(default_factory=lambda: Path("nodelist.txt"))
    """Node list: filename, node name, generation, methylation flag (Y/N)."""

    edges: Path = field(default_factory=lambda: Path("edgelist.txt"))
    """Edge list: from, to and an optional generation difference."""

    output: Path = field(default_factory=lambda: Path("."))
    """Directory receiving reports; existing files are overwritten."""

    iterations: int = 1000
    """Number of multi-start trials and of bootstrap replicates."""

    posterior_max_filter: float = 0.99
    """Minimum posterior probability for a site call to be used."""

    eqp_weight: float = 1.0
    """Weight of the equilibrium penalty in the cost function."""

    fit_max_iter: int = 10_000
    """Nelder-Mead iteration cap for each multi-start trial."""

    boot_max_iter: int = 1_000
    """Nelder-Mead iteration cap for each bootstrap refit."""

    xatol: float = 1e-10
    """Absolute simplex-size tolerance for Nelder-Mead termination."""

    fatol: float = float(np.finfo(float).eps)
    """Absolute cost-spread tolerance for Nelder-Mead termination."""

    max_workers: Optional[int] = None
    """Worker pool size (None: executor default, 1: run inline)."""

    executor: str = "thread"
    """Worker pool flavour: "thread" or "process"."""

    seed: Optional[int] = None
    """Seed for reproducible runs (None: fresh entropy)."""

    plot: bool = True
    """Draw the bootstrap boxplot next to the reports."""

    def __post_init__(self):
        self.nodes = Path(self.nodes)
        self.edges = Path(self.edges)
        self.output = Path(self.output)

    @classmethod
    def from_output_dir(cls, output_dir: Path, iterations: int = 1000) -> "AlphaBetaConfig":
        """Node and edge lists expected inside the output directory."""
        output_dir = Path(output_dir)
        return cls(
            nodes=output_dir / "nodelist.txt",
            edges=output_dir / "edgelist.txt",
            output=output_dir,
            iterations=iterations,
        )

    def with_overrides(self, **changes) -> "AlphaBetaConfig":
        return replace(self, **changes)

    def validate(self) -> "AlphaBetaConfig":
        """
        Check value ranges.

        Raises:
            InvalidInputError: On the first invalid field
        """
        if self.iterations < 1:
            raise InvalidInputError(f"iterations must be positive, got {self.iterations}")
        if not 0.0 <= self.posterior_max_filter <= 1.0:
            raise InvalidInputError(
                f"posterior_max_filter must be within [0, 1], got {self.posterior_max_filter}"
            )
        if self.eqp_weight < 0.0:
            raise InvalidInputError(f"eqp_weight must be non-negative, got {self.eqp_weight}")
        if self.fit_max_iter < 1 or self.boot_max_iter < 1:
            raise InvalidInputError("Iteration caps must be positive")
        if self.max_workers is not None and self.max_workers < 1:
            raise InvalidInputError(f"max_workers must be positive, got {self.max_workers}")
        if self.executor not in EXECUTORS:
            raise InvalidInputError(
                f"Unknown executor {self.executor!r}; choose from {EXECUTORS}"
            )
        return self
