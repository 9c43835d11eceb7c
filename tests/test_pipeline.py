"""End-to-end runs on a small pedigree."""

import numpy as np
import pytest

from alphabeta import pipeline
from alphabeta.config import AlphaBetaConfig
from alphabeta.core.data import PairwiseDivergenceTable
from alphabeta.errors import InvalidInputError, PedigreeError


def small_config(pedigree_dir, **changes):
    config = AlphaBetaConfig.from_output_dir(pedigree_dir, iterations=4).with_overrides(
        output=pedigree_dir / "out",
        fit_max_iter=200,
        boot_max_iter=50,
        max_workers=1,
        seed=11,
    )
    return config.with_overrides(**changes)


def test_run_writes_reports(pedigree_dir):
    config = small_config(pedigree_dir)
    result = pipeline.run(config)

    out = config.output
    for name in (
        pipeline.PEDIGREE_FILE,
        pipeline.MODEL_FILE,
        pipeline.ANALYSIS_FILE,
        pipeline.BOOTSTRAP_PLOT_FILE,
    ):
        assert (out / name).exists(), name

    table = PairwiseDivergenceTable.from_file(out / pipeline.PEDIGREE_FILE)
    np.testing.assert_allclose(table.d, [0.25, 0.125, 0.375])

    assert result.p0uu == pytest.approx(0.5)
    assert result.obs_steady_state == pytest.approx(0.5)
    assert result.model.is_finite()
    assert result.bootstrap.raw_matrix.n_replicates + result.bootstrap.n_failed == 4
    assert 0.0 <= result.pred_steady_state <= 1.0

    model_lines = (out / pipeline.MODEL_FILE).read_text().splitlines()
    assert model_lines[0].startswith("Alpha")


def test_run_without_plot(pedigree_dir):
    config = small_config(pedigree_dir, plot=False)
    pipeline.run(config)
    assert not (config.output / pipeline.BOOTSTRAP_PLOT_FILE).exists()
    assert (config.output / pipeline.ANALYSIS_FILE).exists()


def test_run_is_reproducible(pedigree_dir):
    first = pipeline.run(small_config(pedigree_dir, plot=False))
    second = pipeline.run(small_config(pedigree_dir, plot=False))
    assert first.model.to_dict() == second.model.to_dict()
    np.testing.assert_array_equal(
        first.bootstrap.raw_matrix.values, second.bootstrap.raw_matrix.values
    )


def test_progress_stages(pedigree_dir):
    stages = {}

    def factory(label, total):
        stages[label] = [total, 0]

        def hook():
            stages[label][1] += 1

        return hook

    pipeline.run(small_config(pedigree_dir, plot=False), progress_factory=factory)

    assert stages["Loading methylation data"] == [None, 4]
    assert stages["Calculating divergences"] == [3, 3]
    assert stages["Fitting model"] == [4, 4]
    assert stages["Bootstrapping"] == [4, 4]


def test_invalid_config(pedigree_dir):
    with pytest.raises(InvalidInputError):
        pipeline.run(small_config(pedigree_dir, iterations=0))


def test_missing_nodelist(tmp_path):
    config = AlphaBetaConfig.from_output_dir(tmp_path, iterations=4)
    with pytest.raises(PedigreeError):
        pipeline.run(config)
