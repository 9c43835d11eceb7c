"""Pairwise divergence table consumed by the fitting and bootstrap routines."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from alphabeta.errors import InvalidInputError

logger = logging.getLogger(__name__)

COLUMNS = ("t0", "t1", "t2", "d")
FILE_HEADER = ("time0", "time1", "time2", "D.value")


def _column(values: Any) -> np.ndarray:
    array = np.array(values, dtype=float).reshape(-1)
    array.setflags(write=False)
    return array


@dataclass(frozen=True, eq=False)
class PairwiseDivergenceTable:
    """
    Observed divergence between every pair of methylation-bearing samples.

    One row per unordered pair, so a pedigree with n sampled methylomes
    yields n * (n - 1) / 2 rows. Columns are read-only numpy arrays; the
    table can be shared between parallel tasks without copying.

    Attributes:
        t0: Generation of the last common ancestor of the pair
        t1: Generation of the first sample
        t2: Generation of the second sample
        d: Observed divergence in [0, 1]
        metadata: Free-form annotations (sample names, source file, ...)
    """

    t0: np.ndarray
    t1: np.ndarray
    t2: np.ndarray
    d: np.ndarray
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self):
        for name in COLUMNS:
            object.__setattr__(self, name, _column(getattr(self, name)))

        lengths = {len(getattr(self, name)) for name in COLUMNS}
        if len(lengths) != 1:
            raise InvalidInputError(
                f"Columns of a divergence table must have equal length, got {lengths}"
            )
        if len(self.d) == 0:
            raise InvalidInputError("Divergence table is empty")

        generations = np.concatenate([self.t0, self.t1, self.t2])
        if not np.all(np.isfinite(generations)):
            raise InvalidInputError("Generations must be finite")
        if not np.all(generations == np.round(generations)):
            raise InvalidInputError("Generations must be whole numbers")
        if np.any(self.t0 > np.minimum(self.t1, self.t2)):
            bad = int(np.argmax(self.t0 > np.minimum(self.t1, self.t2)))
            raise InvalidInputError(
                f"Row {bad}: common ancestor generation {self.t0[bad]:g} is later "
                f"than sample generations ({self.t1[bad]:g}, {self.t2[bad]:g})"
            )
        if not np.all(np.isfinite(self.d)):
            raise InvalidInputError("Observed divergences must be finite")

    @classmethod
    def from_rows(
        cls,
        rows: Iterable[Sequence[float]],
        **metadata,
    ) -> "PairwiseDivergenceTable":
        """
        Create from (t0, t1, t2, d) tuples.

        Example:
            >>> table = PairwiseDivergenceTable.from_rows([(0, 0, 1, 0.01), (0, 1, 1, 0.02)])
            >>> table.n_rows
            2
        """
        rows = [tuple(row) for row in rows]
        if any(len(row) != 4 for row in rows):
            raise InvalidInputError("Every row needs exactly four values (t0, t1, t2, d)")
        if not rows:
            raise InvalidInputError("Divergence table is empty")
        t0, t1, t2, d = zip(*rows)
        return cls(t0=t0, t1=t1, t2=t2, d=d, metadata=metadata)

    @classmethod
    def from_array(cls, array: np.ndarray, **metadata) -> "PairwiseDivergenceTable":
        """Create from an (n, 4) array with columns t0, t1, t2, d."""
        array = np.asarray(array, dtype=float)
        if array.ndim != 2 or array.shape[1] != 4:
            raise InvalidInputError(f"Expected an (n, 4) array, got shape {array.shape}")
        return cls(t0=array[:, 0], t1=array[:, 1], t2=array[:, 2], d=array[:, 3], metadata=metadata)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "PairwiseDivergenceTable":
        """
        Read a pedigree divergence file.

        The first line is a header and is skipped; the remaining lines hold
        four whitespace, tab or comma separated numbers: time0, time1, time2
        and the divergence value.
        """
        path = Path(path)
        df = pd.read_csv(path, sep=r"[\s,]+", engine="python", header=0)
        if df.shape[1] < 4:
            raise InvalidInputError(f"{path} must have four columns, found {df.shape[1]}")
        logger.debug(f"Read {len(df)} divergence rows from {path}")
        return cls.from_array(df.iloc[:, :4].to_numpy(dtype=float), source=str(path))

    def to_frame(self) -> pd.DataFrame:
        """Columns t0, t1, t2, d as a DataFrame."""
        return pd.DataFrame({name: getattr(self, name) for name in COLUMNS})

    def to_file(self, path: Union[str, Path]) -> None:
        """Write in the tab separated format understood by from_file."""
        df = self.to_frame()
        df.columns = list(FILE_HEADER)
        df.to_csv(path, sep="\t", index=False)
        logger.info(f"Wrote divergence of pedigree to {path}")

    def as_array(self) -> np.ndarray:
        """(n, 4) copy of the table."""
        return np.column_stack([self.t0, self.t1, self.t2, self.d])

    def with_divergence(self, d: Sequence[float]) -> "PairwiseDivergenceTable":
        """
        Copy of the table with the divergence column replaced.

        Raises:
            InvalidInputError: If d does not have one value per row
        """
        d = np.asarray(d, dtype=float)
        if d.shape != self.d.shape:
            raise InvalidInputError(
                f"Replacement divergence has {d.size} values, table has {self.n_rows} rows"
            )
        return PairwiseDivergenceTable(
            t0=self.t0, t1=self.t1, t2=self.t2, d=d, metadata=dict(self.metadata)
        )

    def generations(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Integer generation columns (t0, t1, t2)."""
        return (
            self.t0.astype(np.int64),
            self.t1.astype(np.int64),
            self.t2.astype(np.int64),
        )

    @property
    def n_rows(self) -> int:
        return len(self.d)

    @property
    def max_divergence(self) -> float:
        return float(np.max(self.d))

    def __len__(self) -> int:
        return self.n_rows

    def __repr__(self) -> str:
        return (
            f"PairwiseDivergenceTable(rows={self.n_rows}, "
            f"max_generation={int(max(self.t1.max(), self.t2.max()))}, "
            f"max_divergence={self.max_divergence:.4g})"
        )
