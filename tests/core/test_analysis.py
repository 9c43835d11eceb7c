"""
Unit tests for alphabeta.core.analysis module.
"""

import numpy as np
import pytest

from alphabeta.core.analysis import RAW_COLUMNS, ConfidenceInterval, RawBootstrapMatrix
from alphabeta.errors import InvalidInputError


@pytest.fixture
def raw():
    rng = np.random.default_rng(0)
    n = 500
    values = np.column_stack(
        [
            rng.normal(1e-3, 1e-4, n),
            rng.normal(3e-3, 2e-4, n),
            rng.normal(0.05, 0.01, n),
            rng.normal(2e-3, 1e-4, n),
            rng.normal(0.2, 0.01, n),
            rng.normal(0.1, 0.01, n),
            rng.normal(0.7, 0.01, n),
        ]
    )
    return RawBootstrapMatrix(values)


class TestRawBootstrapMatrix:
    """Test construction of the replicate matrix."""

    def test_wrong_width_raises(self):
        with pytest.raises(InvalidInputError):
            RawBootstrapMatrix(np.zeros((4, 6)))

    def test_single_replicate_raises(self):
        with pytest.raises(InvalidInputError):
            RawBootstrapMatrix(np.zeros((1, 7)))

    def test_columns(self, raw):
        assert len(raw) == 500
        np.testing.assert_array_equal(raw.column("beta"), raw.values[:, 1])
        assert list(raw.to_frame().columns) == list(RAW_COLUMNS)


class TestAnalysis:
    """Test summary statistics."""

    def test_means_and_bessel_corrected_sd(self, raw):
        analysis = raw.analyze()
        alphas = raw.column("alpha")
        assert analysis.alpha == pytest.approx(np.mean(alphas))
        assert analysis.sd_alpha == pytest.approx(np.std(alphas, ddof=1))
        assert analysis.sd_pr_uu == pytest.approx(np.std(raw.column("pr_uu"), ddof=1))

    def test_alphabeta_is_mean_of_ratios(self, raw):
        analysis = raw.analyze()
        ratios = raw.column("beta") / raw.column("alpha")
        assert analysis.alphabeta == pytest.approx(np.mean(ratios))
        assert analysis.sd_alphabeta == pytest.approx(np.std(ratios, ddof=1))

    def test_confidence_intervals_bracket_mean(self, raw):
        analysis = raw.analyze()
        for key in ("alpha", "beta", "alphabeta", "weight", "intercept", "pr_mm", "pr_um", "pr_uu"):
            ci = getattr(analysis, f"ci_{key}")
            assert ci.lower <= getattr(analysis, key) <= ci.upper

    def test_linear_interpolated_quantiles(self):
        values = np.tile(np.arange(5, dtype=float)[:, None], (1, 7)) + 1.0
        analysis = RawBootstrapMatrix(values).analyze()
        # Linear interpolation on [1, 2, 3, 4, 5]: positions 0.1 and 3.9.
        assert analysis.ci_alpha.lower == pytest.approx(1.1)
        assert analysis.ci_alpha.upper == pytest.approx(4.9)

    def test_constant_replicates(self):
        analysis = RawBootstrapMatrix(np.full((10, 7), 0.5)).analyze()
        assert analysis.sd_alpha == 0.0
        assert analysis.ci_alpha == ConfidenceInterval(0.5, 0.5)
        assert analysis.alphabeta == 1.0

    def test_to_dict(self, raw):
        data = raw.analyze().to_dict()
        assert len(data) == 24
        assert len(data["ci_beta"]) == 2

    def test_to_file_order(self, raw, tmp_path):
        path = tmp_path / "analysis.txt"
        analysis = raw.analyze()
        analysis.to_file(path)
        lines = path.read_text().splitlines()
        assert [line.split("\t")[0] for line in lines[:3]] == ["Alpha", "Beta", "AlphaBeta"]
        assert lines[8].startswith("SDAlpha\t")
        assert lines[16] == f"CIAlpha\t{analysis.ci_alpha.lower}-{analysis.ci_alpha.upper}"
        assert len(lines) == 24

    def test_print_summary(self, raw, capsys):
        raw.analyze().print_summary()
        out = capsys.readouterr().out
        assert "BOOTSTRAP ANALYSIS" in out
        assert "AlphaBeta" in out
