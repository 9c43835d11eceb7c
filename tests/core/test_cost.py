"""
Unit tests for alphabeta.core.cost module.
"""

import math

import numpy as np
import pytest

from alphabeta.core.cost import CostFunction, validate_state_proportions
from alphabeta.core.data import PairwiseDivergenceTable
from alphabeta.core.model import Model
from alphabeta.errors import InvalidInputError

PR_UU = 0.695 / 1.337  # equilibrium Pr(UU) for alpha=0.2, beta=0.5


@pytest.fixture
def model():
    return Model(alpha=0.2, beta=0.5, weight=0.0, intercept=0.01)


@pytest.fixture
def table():
    return PairwiseDivergenceTable.from_rows([(0, 0, 1, 0.3)])


class TestStateProportions:
    """Test validation of generation-0 proportions."""

    def test_valid(self):
        validate_state_proportions(0.25, 0.0, 0.75)

    def test_not_summing_to_one(self):
        with pytest.raises(InvalidInputError):
            CostFunction(PairwiseDivergenceTable.from_rows([(0, 0, 1, 0.1)]), 0.3, 0.3, 0.3, 0.5, 1.0)

    def test_out_of_range(self):
        with pytest.raises(InvalidInputError):
            validate_state_proportions(1.5, 0.0, -0.5)

    def test_from_p0uu_splits_into_uu_and_mm(self, table):
        cost = CostFunction.from_p0uu(table, 0.75, 0.75, 1.0)
        assert (cost.p_uu, cost.p_um, cost.p_mm) == (0.75, 0.0, 0.25)


class TestCost:
    """Test the objective against hand-derived values."""

    def test_single_row_golden_value(self, table, model):
        cost = CostFunction.from_p0uu(table, 0.75, eqp=0.5, eqp_weight=2.0)
        expected = 0.015 ** 2 + 2.0 * 1 * (PR_UU - 0.5) ** 2
        assert np.isclose(cost(model), expected, rtol=1e-12)

    def test_vector_and_model_agree(self, table, model):
        cost = CostFunction.from_p0uu(table, 0.75, eqp=0.5, eqp_weight=1.0)
        assert cost(model.to_vector()) == cost(model)
        assert cost(list(model.to_vector())) == cost.cost(model)

    def test_predict_and_residuals(self, table, model):
        cost = CostFunction.from_p0uu(table, 0.75, eqp=0.5, eqp_weight=1.0)
        np.testing.assert_allclose(cost.predict(model), [0.285])
        np.testing.assert_allclose(cost.residuals(model), [0.015])
        assert np.isclose(cost.least_squares(model), 0.015 ** 2)

    def test_penalty_added_once_and_scaled_by_rows(self):
        table = PairwiseDivergenceTable.from_rows([(0, 0, 0, 0.01)] * 3)
        model = Model(alpha=0.2, beta=0.5, weight=0.0, intercept=0.0)
        cost = CostFunction.from_p0uu(table, 0.75, eqp=0.4, eqp_weight=5.0)
        expected = 3 * 0.01 ** 2 + 5.0 * 3 * (PR_UU - 0.4) ** 2
        assert np.isclose(cost(model), expected, rtol=1e-12)

    def test_zero_weight_is_least_squares(self, table, model):
        cost = CostFunction.from_p0uu(table, 0.75, eqp=0.1, eqp_weight=0.0)
        assert np.isclose(cost(model), cost.least_squares(model))

    def test_degenerate_parameters_give_nan(self, table):
        cost = CostFunction.from_p0uu(table, 0.75, eqp=0.5, eqp_weight=1.0)
        assert math.isnan(cost([0.0, 0.0, 0.0, 0.0]))

    def test_overflowing_parameters_give_non_finite_cost(self):
        table = PairwiseDivergenceTable.from_rows([(0, 0, 2, 0.1), (0, 1, 3, 0.2)])
        cost = CostFunction.from_p0uu(table, 0.75, eqp=0.75, eqp_weight=1.0)
        assert not math.isfinite(cost([1e200, 1e-3, 0.05, 0.0]))
        assert not math.isfinite(cost.least_squares(Model(1e200, 1e-3, 0.05, 0.0)))
