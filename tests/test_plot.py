"""Tests for bootstrap plots."""

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np

from alphabeta.core.analysis import RawBootstrapMatrix
from alphabeta.plot import bootstrap_boxplot


def make_matrix():
    rng = np.random.default_rng(0)
    values = np.column_stack(
        [
            rng.normal(2e-3, 1e-4, 20),
            rng.normal(6e-3, 1e-4, 20),
            np.full(20, 0.05),
            np.full(20, 2e-3),
            np.full(20, 0.4),
            np.full(20, 0.2),
            np.full(20, 0.4),
        ]
    )
    return RawBootstrapMatrix(values)


def test_boxplot_returns_figure():
    fig = bootstrap_boxplot(make_matrix())
    ax = fig.axes[0]
    assert ax.get_title() == "Bootstrap Boxplot"
    assert [t.get_text() for t in ax.get_xticklabels()] == ["Alpha", "Beta"]
    assert ax.get_ylim()[1] > 6e-3
    plt.close(fig)


def test_boxplot_saved(tmp_path):
    path = tmp_path / "bootstrap.png"
    fig = bootstrap_boxplot(make_matrix(), path)
    plt.close(fig)
    assert path.exists()
    assert path.stat().st_size > 0
