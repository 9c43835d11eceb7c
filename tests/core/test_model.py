"""
Unit tests for alphabeta.core.model module.
"""

import numpy as np
import pytest

from alphabeta.core.equilibrium import p_uu_est
from alphabeta.core.model import FALLBACK_MAX_DIVERGENCE, Model, intercept_bound
from alphabeta.errors import InvalidInputError


@pytest.fixture
def rng():
    return np.random.default_rng(42)


class TestRandomModel:
    """Test random starting points."""

    def test_ranges(self, rng):
        for _ in range(200):
            m = Model.random(0.05, rng)
            assert 1e-9 <= m.alpha <= 1e-2
            assert 1e-9 <= m.beta <= 1e-2
            assert 0.0 <= m.weight <= 0.1
            assert 0.0 <= m.intercept <= 0.05

    def test_reproducible(self):
        a = Model.random(0.1, np.random.default_rng(7))
        b = Model.random(0.1, np.random.default_rng(7))
        assert a == b

    def test_non_positive_max_divergence_warns(self, rng):
        with pytest.warns(RuntimeWarning):
            m = Model.random(0.0, rng)
        assert 0.0 <= m.intercept <= 0.1

    def test_intercept_bound(self):
        assert intercept_bound(0.3) == 0.3
        with pytest.warns(RuntimeWarning, match="Maximum observed divergence"):
            assert intercept_bound(0.0) == FALLBACK_MAX_DIVERGENCE


class TestVary:
    """Test warm-start perturbations."""

    def test_within_ten_percent(self, rng):
        model = Model.default()
        for _ in range(100):
            varied = model.vary(rng)
            for original, new in zip(model.to_vector(), varied.to_vector()):
                assert abs(new - original) <= 0.1 * abs(original) + 1e-18

    def test_zero_parameter_uses_fallback(self, rng):
        varied = Model(alpha=1e-3, beta=1e-3, weight=0.0, intercept=0.0).vary(rng)
        assert 0.09 <= varied.weight <= 0.11
        assert 0.09 <= varied.intercept <= 0.11

    def test_no_clamping(self):
        model = Model(alpha=1e-3, beta=1e-3, weight=0.99, intercept=0.01)
        weights = [model.vary(np.random.default_rng(s)).weight for s in range(200)]
        assert max(weights) > 1.0


class TestConversions:
    """Test vector, dict and file conversions."""

    def test_vector_round_trip(self):
        model = Model.default()
        assert Model.from_vector(model.to_vector()) == model

    def test_from_vector_wrong_length(self):
        with pytest.raises(InvalidInputError):
            Model.from_vector([1.0, 2.0, 3.0])

    def test_equilibrium_accessors(self):
        model = Model(alpha=0.2, beta=0.5, weight=0.0, intercept=0.0)
        assert np.isclose(model.pr_uu, p_uu_est(0.2, 0.5))
        assert np.isclose(model.pr_uu + model.pr_um + model.pr_mm, 1.0)
        assert model.steady_state == model.pr_uu

    def test_is_finite(self):
        assert Model.default().is_finite()
        assert not Model(alpha=np.nan, beta=0.1, weight=0.0, intercept=0.0).is_finite()

    def test_to_file(self, tmp_path):
        path = tmp_path / "model.txt"
        Model(alpha=0.5, beta=0.25, weight=0.125, intercept=0.0625).to_file(path)
        assert path.read_text() == "Alpha 0.5\nBeta 0.25\nWeight 0.125\nIntercept 0.0625\n"

    def test_to_dict(self):
        assert Model.default().to_dict() == {
            "alpha": 0.0001179555,
            "beta": 0.0001180614,
            "weight": 0.03693534,
            "intercept": 0.003023981,
        }
