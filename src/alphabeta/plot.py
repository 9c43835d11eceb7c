"""Diagnostic plots of bootstrap results."""

from pathlib import Path
from typing import Optional, Union

import numpy as np

from alphabeta.core.analysis import RawBootstrapMatrix


def bootstrap_boxplot(
    raw_matrix: RawBootstrapMatrix,
    output_path: Optional[Union[str, Path]] = None,
):
    """
    Boxplots of the bootstrapped alpha and beta estimates.

    Args:
        raw_matrix: Bootstrap replicates
        output_path: Optional path to save the figure (e.g. bootstrap.png)

    Returns:
        matplotlib Figure object
    """
    import matplotlib.pyplot as plt

    alphas = raw_matrix.column("alpha")
    betas = raw_matrix.column("beta")

    fig, ax = plt.subplots(figsize=(8, 6))
    boxes = ax.boxplot([alphas, betas], widths=0.5, patch_artist=True)
    ax.set_xticks([1, 2], labels=["Alpha", "Beta"])
    for patch, color in zip(boxes["boxes"], ("tab:red", "tab:blue")):
        patch.set_facecolor(color)
        patch.set_alpha(0.4)

    top = float(np.nanmax(np.concatenate([alphas, betas])))
    if np.isfinite(top) and top > 0:
        ax.set_ylim(0.0, top * 1.3)

    ax.set_ylabel("Epimutation rate", fontsize=12)
    ax.set_title("Bootstrap Boxplot", fontsize=14, fontweight="bold")
    ax.grid(True, alpha=0.3, axis="y")
    fig.tight_layout()

    if output_path:
        fig.savefig(output_path, dpi=200, bbox_inches="tight")

    return fig
