"""
Summary statistics of bootstrap replicates.

The replicate matrix has one row per successful bootstrap refit and the
columns listed in RAW_COLUMNS. The summary reports mean, Bessel-corrected
standard deviation and a 95% equal-tailed quantile interval (linear
interpolation) for every column plus the ratio beta/alpha.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, NamedTuple, Sequence, Union

import numpy as np
import pandas as pd

from alphabeta.errors import InvalidInputError

logger = logging.getLogger(__name__)

RAW_COLUMNS = ("alpha", "beta", "weight", "intercept", "pr_mm", "pr_um", "pr_uu")

# Report order and labels of the summarized quantities.
REPORT_KEYS = (
    ("alpha", "Alpha"),
    ("beta", "Beta"),
    ("alphabeta", "AlphaBeta"),
    ("weight", "Weight"),
    ("intercept", "Intercept"),
    ("pr_mm", "PrMM"),
    ("pr_um", "PrUM"),
    ("pr_uu", "PrUU"),
)

CI_PROBABILITIES = (0.025, 0.975)


class ConfidenceInterval(NamedTuple):
    """Lower and upper quantile bounds."""

    lower: float
    upper: float

    def __str__(self) -> str:
        return f"{self.lower}-{self.upper}"


@dataclass(frozen=True)
class Analysis:
    """
    Bootstrap summary of the fitted model.

    ``alphabeta`` is the ratio beta/alpha computed per replicate.
    """

    alpha: float
    beta: float
    alphabeta: float
    weight: float
    intercept: float
    pr_mm: float
    pr_um: float
    pr_uu: float

    sd_alpha: float
    sd_beta: float
    sd_alphabeta: float
    sd_weight: float
    sd_intercept: float
    sd_pr_mm: float
    sd_pr_um: float
    sd_pr_uu: float

    ci_alpha: ConfidenceInterval
    ci_beta: ConfidenceInterval
    ci_alphabeta: ConfidenceInterval
    ci_weight: ConfidenceInterval
    ci_intercept: ConfidenceInterval
    ci_pr_mm: ConfidenceInterval
    ci_pr_um: ConfidenceInterval
    ci_pr_uu: ConfidenceInterval

    def to_dict(self) -> Dict[str, Union[float, list]]:
        """Flat dictionary; intervals become [lower, upper] lists."""
        data: Dict[str, Union[float, list]] = {}
        for key, _ in REPORT_KEYS:
            data[key] = getattr(self, key)
        for key, _ in REPORT_KEYS:
            data[f"sd_{key}"] = getattr(self, f"sd_{key}")
        for key, _ in REPORT_KEYS:
            data[f"ci_{key}"] = list(getattr(self, f"ci_{key}"))
        return data

    def report_lines(self) -> List[str]:
        lines = [f"{label}\t{getattr(self, key)}" for key, label in REPORT_KEYS]
        lines += [f"SD{label}\t{getattr(self, 'sd_' + key)}" for key, label in REPORT_KEYS]
        lines += [f"CI{label}\t{getattr(self, 'ci_' + key)}" for key, label in REPORT_KEYS]
        return lines

    def to_file(self, path: Union[str, Path]) -> None:
        """Write the tab separated report (means, then SDs, then CIs)."""
        Path(path).write_text("\n".join(self.report_lines()) + "\n")
        logger.info(f"Wrote bootstrap analysis to {path}")

    def print_summary(self) -> None:
        """Print bootstrap summary."""
        print("=" * 70)
        print("BOOTSTRAP ANALYSIS")
        print("=" * 70)
        print(f"{'':<12}{'mean':>16}{'sd':>16}{'2.5%':>16}{'97.5%':>16}")
        for key, label in REPORT_KEYS:
            ci = getattr(self, f"ci_{key}")
            print(
                f"{label:<12}{getattr(self, key):>16.6e}"
                f"{getattr(self, 'sd_' + key):>16.6e}"
                f"{ci.lower:>16.6e}{ci.upper:>16.6e}"
            )
        print("=" * 70)

    def __str__(self) -> str:
        return "\n".join(self.report_lines())


def confidence_interval(values: np.ndarray) -> ConfidenceInterval:
    lower, upper = np.quantile(values, CI_PROBABILITIES, method="linear")
    return ConfidenceInterval(float(lower), float(upper))


class RawBootstrapMatrix:
    """
    Replicate results, one row per bootstrap refit.

    Attributes:
        values: (n_replicates, 7) array with columns RAW_COLUMNS
    """

    def __init__(self, values: Union[np.ndarray, Sequence[Sequence[float]]]):
        values = np.asarray(values, dtype=float)
        if values.ndim != 2 or values.shape[1] != len(RAW_COLUMNS):
            raise InvalidInputError(
                f"Bootstrap matrix must have shape (n, {len(RAW_COLUMNS)}), got {values.shape}"
            )
        if values.shape[0] < 2:
            raise InvalidInputError(
                f"At least 2 replicates are needed for a standard deviation, got {values.shape[0]}"
            )
        self.values = values

    def column(self, name: str) -> np.ndarray:
        return self.values[:, RAW_COLUMNS.index(name)]

    @property
    def n_replicates(self) -> int:
        return self.values.shape[0]

    def __len__(self) -> int:
        return self.n_replicates

    def analyze(self) -> Analysis:
        """Summarize the replicates."""
        columns = {name: self.column(name) for name in RAW_COLUMNS}
        with np.errstate(divide="ignore", invalid="ignore"):
            columns["alphabeta"] = columns["beta"] / columns["alpha"]

        fields = {}
        for key, _ in REPORT_KEYS:
            col = columns[key]
            fields[key] = float(np.mean(col))
            fields[f"sd_{key}"] = float(np.std(col, ddof=1))
            fields[f"ci_{key}"] = confidence_interval(col)
        return Analysis(**fields)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.values, columns=list(RAW_COLUMNS))

    def __repr__(self) -> str:
        return f"RawBootstrapMatrix(n_replicates={self.n_replicates})"
