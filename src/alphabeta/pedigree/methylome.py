"""
Methylome tables: per-site methylation calls of one sample.

A methylome file lists one cytosine per line with at least a chromosome, a
position, a posterior probability of the call and the call itself (U, I or
M). Files written by methylation callers come with or without a header and
with various separators; both are sniffed from the first line.
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from alphabeta.errors import PedigreeError

logger = logging.getLogger(__name__)

DEFAULT_COLUMNS = (
    "chromosome",
    "location",
    "strand",
    "context",
    "counts.methylated",
    "counts.total",
    "posteriorMax",
    "status",
    "rc.meth.lvl",
    "context.trinucleotide",
)

STATUS_CODES = {"U": 0, "I": 1, "M": 2}

SEPARATORS = ("\t", ",", ";")


def _sniff(first_line: str):
    """Return (separator, has_header) for a methylome file."""
    separator = next((sep for sep in SEPARATORS if sep in first_line), None)
    first_field = first_line.split(separator or None, 1)[0].strip() if first_line.strip() else ""
    has_header = not first_field.isdigit()
    return separator, has_header


def load_methylome(
    path: Union[str, Path],
    column_names: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """
    Load a methylome file into a DataFrame.

    Args:
        path: Methylome file
        column_names: Names replacing the file's columns, in order. Names
            starting with "_" mark columns to drop.

    Returns:
        DataFrame with rows lacking a chromosome removed

    Raises:
        PedigreeError: If the file is missing, empty or the names do not fit
    """
    path = Path(path)
    if not path.exists():
        raise PedigreeError(f"The methylation data file {path} could not be opened")

    with open(path) as handle:
        first_line = handle.readline()
    if not first_line.strip():
        raise PedigreeError(f"Methylation data file {path} is empty")

    separator, has_header = _sniff(first_line)
    df = pd.read_csv(
        path,
        sep=separator if separator is not None else r"\s+",
        header=0 if has_header else None,
    )

    if column_names is not None:
        if len(column_names) != df.shape[1]:
            raise PedigreeError(
                f"{path} has {df.shape[1]} columns but {len(column_names)} names were given"
            )
        df.columns = list(column_names)
    elif not has_header:
        df.columns = [
            DEFAULT_COLUMNS[i] if i < len(DEFAULT_COLUMNS) else str(col)
            for i, col in enumerate(df.columns)
        ]
    elif "seqnames" in df.columns:
        df = df.rename(columns={"seqnames": "chromosome"})

    if "chromosome" in df.columns:
        df = df[df["chromosome"].notna()]

    df = df.drop(columns=[c for c in df.columns if str(c).startswith("_")])
    logger.debug(f"Loaded {len(df)} sites from {path}")
    return df.reset_index(drop=True)


def status_to_numeric(status: pd.Series) -> np.ndarray:
    """
    Encode methylation calls: U -> 0, I -> 1, M -> 2.

    Raises:
        PedigreeError: On any other call
    """
    codes = status.astype(str).str.strip().map(STATUS_CODES)
    if codes.isna().any():
        unknown = sorted(set(status[codes.isna()].astype(str)))
        raise PedigreeError(f"Unknown methylation status {unknown[:5]}")
    return codes.to_numpy(dtype=np.int64)


def _join_keys(a: pd.DataFrame, b: pd.DataFrame) -> List[str]:
    keys = ["chromosome", "location"]
    for key in keys + ["status"]:
        if key not in a.columns or key not in b.columns:
            raise PedigreeError(f"Methylomes must both have a {key!r} column")
    if "strand" in a.columns and "strand" in b.columns:
        keys.append("strand")
    return keys


def passes_filter(df: pd.DataFrame, posterior_max_filter: float) -> pd.Series:
    """Sites whose call posterior is at least posterior_max_filter."""
    if "posteriorMax" not in df.columns:
        return pd.Series(True, index=df.index)
    return df["posteriorMax"] >= posterior_max_filter


def sample_divergence(
    a: pd.DataFrame,
    b: pd.DataFrame,
    posterior_max_filter: float,
) -> float:
    """
    Divergence between two methylomes.

    Sites are matched on chromosome and location (and strand when both
    files carry it). Only sites whose calls pass the posterior filter in
    both samples are compared. Calls differ by 0, 1 or 2 alleles; the
    divergence is the summed difference over twice the number of compared
    sites.

    Returns:
        Divergence in [0, 1], or nan if no site could be compared
    """
    keys = _join_keys(a, b)
    left = a[passes_filter(a, posterior_max_filter)][keys + ["status"]]
    right = b[passes_filter(b, posterior_max_filter)][keys + ["status"]]
    merged = left.merge(right, on=keys, how="inner", suffixes=("_a", "_b"))

    n_compared = len(merged)
    if n_compared == 0:
        logger.warning("No sites passed the posterior filter in both samples")
        return float("nan")

    diff = np.abs(status_to_numeric(merged["status_a"]) - status_to_numeric(merged["status_b"]))
    return float(diff.sum() / (2.0 * n_compared))


def proportion_unmethylated(df: pd.DataFrame, posterior_max_filter: float) -> float:
    """Fraction of U calls among the sites passing the posterior filter."""
    calls = df.loc[passes_filter(df, posterior_max_filter), "status"].astype(str).str.strip()
    if calls.empty:
        return float("nan")
    return float((calls == "U").mean())
