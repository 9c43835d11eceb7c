"""
Unit tests for alphabeta.core.equilibrium module.
"""

import math

import numpy as np

from alphabeta.core.equilibrium import (
    equilibrium_frequencies,
    methylation_level,
    p_mm_est,
    p_um_est,
    p_uu_est,
    steady_state,
)
from alphabeta.core.transitions import generation_matrix


class TestEquilibriumFrequencies:
    """Test closed-form stationary probabilities."""

    def test_reference_value(self):
        assert round(p_uu_est(3.974271e-09, 1.519045e-07), 7) == 0.9745041

    def test_hand_derived_values(self):
        denominator = 1.337
        assert np.isclose(p_uu_est(0.2, 0.5), 0.695 / denominator)
        assert np.isclose(p_mm_est(0.2, 0.5), 0.122 / denominator)
        assert np.isclose(p_um_est(0.2, 0.5), 0.52 / denominator)

    def test_sum_to_one(self):
        for alpha in [1e-6, 1e-3, 0.1, 0.4]:
            for beta in [1e-6, 1e-3, 0.1, 0.4]:
                assert np.isclose(sum(equilibrium_frequencies(alpha, beta)), 1.0)

    def test_stationary_under_generation_matrix(self):
        alpha, beta = 0.013, 0.041
        pi = np.array(equilibrium_frequencies(alpha, beta))
        np.testing.assert_allclose(pi @ generation_matrix(alpha, beta), pi, rtol=1e-10)

    def test_equal_rates_are_symmetric(self):
        uu, um, mm = equilibrium_frequencies(0.05, 0.05)
        assert np.isclose(uu, mm)
        assert np.isclose(methylation_level(0.05, 0.05), 0.5)

    def test_steady_state_is_pr_uu(self):
        assert steady_state(0.2, 0.5) == p_uu_est(0.2, 0.5)

    def test_methylation_level(self):
        alpha, beta = 0.2, 0.5
        expected = p_mm_est(alpha, beta) + 0.5 * p_um_est(alpha, beta)
        assert np.isclose(methylation_level(alpha, beta), expected)

    def test_vanishing_rates_give_nan(self):
        assert math.isnan(p_uu_est(0.0, 0.0))
        assert math.isnan(p_mm_est(0.0, 0.0))
