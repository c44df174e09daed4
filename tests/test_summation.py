import math

import numpy as np
import pytest

from aad_montecarlo.stochastic.summation import kahan_mean, kahan_sum


def _naive_sum(values):
    total = 0.0
    for x in values:
        total += x
    return total


def test_kahan_sum_empty_and_small():
    assert kahan_sum([]) == 0.0
    assert kahan_sum([0.1] * 10) == pytest.approx(1.0, abs=1e-15)
    assert math.isnan(kahan_mean([]))


def test_kahan_sum_follows_ieee_for_non_finite_input():
    assert kahan_sum([1.0, np.inf, 2.0]) == np.inf
    assert math.isnan(kahan_sum([np.inf, -np.inf]))
    assert math.isnan(kahan_sum([1.0, np.nan]))


def test_kahan_sum_matches_exact_sum_on_random_data():
    values = np.random.default_rng(0).normal(size=100_000) * 1e6
    assert kahan_sum(values) == pytest.approx(math.fsum(values), rel=1e-12, abs=1e-6)


def test_average_of_large_mixed_sign_values_beats_naive_summation():
    n = 1_000_000
    values = np.tile([1e8, 3e-9, -1e8, 3e-9], n // 4)
    reference = math.fsum(values) / n

    compensated = kahan_mean(values)
    naive = _naive_sum(values.tolist()) / n

    compensated_error = abs(compensated - reference)
    naive_error = abs(naive - reference)
    assert compensated_error <= 1e-10 * abs(reference)
    assert naive_error > 0.5 * abs(reference)
    assert compensated_error < naive_error
