import math
import threading
import warnings

import numpy as np
import pytest

from aad_montecarlo import PreconditionViolation, RandomVariable
from aad_montecarlo.errors import OperatorArityError


def _x():
    return RandomVariable(0.0, [1.0, 2.0, 3.0, 4.0])


def test_squared_average_and_variance():
    X = _x()
    assert X.squared().get_average() == 7.5
    average = X.average()
    assert average.is_deterministic()
    assert average.double_value() == 2.5
    assert X.get_variance() == 1.25


def test_deterministic_and_stochastic_shapes():
    assert RandomVariable(0.0, 3.0).size() == 1
    assert RandomVariable(0.0, 3.0).is_deterministic()
    # a single realization collapses to a deterministic value
    single = RandomVariable(0.0, [5.0])
    assert single.is_deterministic()
    assert single.double_value() == 5.0
    assert _x().size() == 4
    assert not _x().is_deterministic()


def test_get_and_out_of_range():
    X = _x()
    assert X.get(2) == 3.0
    assert RandomVariable(0.0, 7.0).get(123) == 7.0
    with pytest.raises(IndexError):
        X.get(4)
    with pytest.raises(IndexError):
        X.get(-1)


def test_double_value_requires_deterministic():
    with pytest.raises(PreconditionViolation):
        _x().double_value()
    assert float(RandomVariable(1.0, 2.5)) == 2.5


def test_identity_laws():
    X = _x()
    assert X.add(0.0).equals(X)
    assert X.mult(1.0).equals(X)
    np.testing.assert_array_equal(X.sub(X).get_realizations(), np.zeros(4))
    np.testing.assert_array_equal(X.div(X).get_realizations(), np.ones(4))


def test_broadcast_commutativity():
    scalar = RandomVariable(1.0, 2.0)
    X = _x()
    left = scalar.add(X)
    right = X.add(scalar)
    assert left.equals(right)
    assert left.size() == X.size()
    np.testing.assert_array_equal(left.get_realizations(), [3.0, 4.0, 5.0, 6.0])


def test_result_time_is_max_of_operand_times():
    early = RandomVariable(2.0, 1.0)
    late = RandomVariable(5.0, [1.0, 2.0])
    assert early.mult(late).filtration_time == 5.0
    assert late.mult(early).filtration_time == 5.0
    assert early.choose(late, 0.0).filtration_time == 5.0
    # plain numbers never move the time
    assert (early + 1.0).filtration_time == 2.0


def test_stochastic_sizes_must_agree():
    with pytest.raises(PreconditionViolation):
        _x().add(RandomVariable(0.0, [1.0, 2.0, 3.0]))
    with pytest.raises(PreconditionViolation):
        _x().add_product(RandomVariable(0.0, [1.0, 2.0]), 1.0)


def test_python_operators():
    X = _x()
    np.testing.assert_array_equal((X + 1).get_realizations(), [2.0, 3.0, 4.0, 5.0])
    np.testing.assert_array_equal((1 + X).get_realizations(), [2.0, 3.0, 4.0, 5.0])
    np.testing.assert_array_equal((10 - X).get_realizations(), [9.0, 8.0, 7.0, 6.0])
    np.testing.assert_array_equal((12 / X).get_realizations(), [12.0, 6.0, 4.0, 3.0])
    np.testing.assert_array_equal((X ** 2).get_realizations(), [1.0, 4.0, 9.0, 16.0])
    np.testing.assert_array_equal((-X).get_realizations(), [-1.0, -2.0, -3.0, -4.0])
    np.testing.assert_array_equal(abs(-X).get_realizations(), [1.0, 2.0, 3.0, 4.0])


def test_reversed_and_compound_operators():
    X = _x()
    np.testing.assert_array_equal(X.bus(10.0).get_realizations(), [9.0, 8.0, 7.0, 6.0])
    np.testing.assert_array_equal(X.vid(12.0).get_realizations(), [12.0, 6.0, 4.0, 3.0])
    np.testing.assert_array_equal(X.cap(2.5).get_realizations(), [1.0, 2.0, 2.5, 2.5])
    np.testing.assert_array_equal(X.floor(2.5).get_realizations(), [2.5, 2.5, 3.0, 4.0])
    np.testing.assert_array_equal(X.add_product(2.0, X).get_realizations(), [3.0, 6.0, 9.0, 12.0])
    np.testing.assert_array_equal(X.add_ratio(X, 2.0).get_realizations(), [1.5, 3.0, 4.5, 6.0])
    np.testing.assert_array_equal(X.sub_ratio(X, 2.0).get_realizations(), [0.5, 1.0, 1.5, 2.0])
    np.testing.assert_allclose(X.accrue(0.5, 2.0).get_realizations(), [2.0, 4.0, 6.0, 8.0])
    np.testing.assert_allclose(X.discount(0.5, 2.0).get_realizations(), [0.5, 1.0, 1.5, 2.0])
    np.testing.assert_array_equal(
        X.add_sum_product([1.0, X], [X, 1.0]).get_realizations(), [3.0, 6.0, 9.0, 12.0])
    with pytest.raises(PreconditionViolation):
        X.add_sum_product([1.0], [1.0, 2.0])


def test_barrier_select():
    trigger = RandomVariable(0.0, [-1.0, 0.0, 1.0])
    selected = trigger.choose(10.0, RandomVariable(0.0, [20.0, 21.0, 22.0]))
    np.testing.assert_array_equal(selected.get_realizations(), [20.0, 10.0, 10.0])
    assert RandomVariable(0.0, -1.0).choose(1.0, 2.0).double_value() == 2.0


def test_pow_requires_deterministic_exponent():
    X = _x()
    np.testing.assert_allclose(X.pow(0.5).get_realizations(), np.sqrt([1.0, 2.0, 3.0, 4.0]))
    assert X.pow(RandomVariable(0.0, 2.0)).get(3) == 16.0
    with pytest.raises(PreconditionViolation):
        X.pow(X)


def test_ieee_edge_cases_do_not_raise():
    values = RandomVariable(0.0, [1.0, 0.0, -1.0])
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        logs = values.log().get_realizations()
        roots = values.sqrt().get_realizations()
        inverses = values.invert().get_realizations()
        zero_division = RandomVariable.constant(1.0).div(0.0).double_value()
        nan_log = RandomVariable.constant(-1.0).log().double_value()
    assert logs[0] == 0.0 and logs[1] == -np.inf and math.isnan(logs[2])
    assert math.isnan(roots[2])
    assert inverses[1] == np.inf
    assert zero_division == np.inf
    assert math.isnan(nan_log)
    np.testing.assert_array_equal(values.log().is_nan().get_realizations(), [0.0, 0.0, 1.0])


def test_apply_with_custom_kernels():
    X = _x()
    np.testing.assert_array_equal(X.apply(lambda x: x * 3.0).get_realizations(), [3.0, 6.0, 9.0, 12.0])
    np.testing.assert_array_equal(X.apply(np.add, 1.0).get_realizations(), [2.0, 3.0, 4.0, 5.0])
    assert X.apply(lambda x, y, z: x + y + z, 1.0, 2.0).get(0) == 4.0
    with pytest.raises(OperatorArityError):
        X.apply(lambda *a: a[0], 1.0, 2.0, 3.0)


def test_summary_statistics():
    X = _x()
    assert X.get_sum() == 10.0
    assert X.get_min() == 1.0
    assert X.get_max() == 4.0
    assert X.get_sample_variance() == pytest.approx(5.0 / 3.0)
    assert X.get_standard_deviation() == pytest.approx(math.sqrt(1.25))
    assert X.get_standard_error() == pytest.approx(math.sqrt(1.25) / 2.0)
    assert X.min().double_value() == 1.0
    assert X.max().double_value() == 4.0
    assert X.variance().filtration_time == 0.0
    constant = RandomVariable(0.0, 3.0)
    assert constant.get_average() == 3.0
    assert constant.get_variance() == 0.0
    assert constant.get_standard_error() == 0.0


def test_empty_values_give_nan_aggregates():
    empty = RandomVariable(0.0, np.array([]))
    assert empty.size() == 0
    assert math.isnan(empty.get_average())
    assert math.isnan(empty.get_variance())
    assert math.isnan(empty.get_quantile(0.5))


def test_probability_weighted_aggregates():
    X = _x()
    p = RandomVariable(0.0, [0.1, 0.2, 0.3, 0.4])
    assert X.get_average(p) == pytest.approx(3.0)
    assert X.get_variance(p) == pytest.approx(1.0)
    assert X.get_standard_deviation(p) == pytest.approx(1.0)
    assert X.get_standard_error(p) == pytest.approx(0.5)
    uniform = RandomVariable(0.0, [0.25] * 4)
    assert X.get_average(uniform) == pytest.approx(X.get_average())


def test_quantiles():
    X = RandomVariable(0.0, [4.0, 1.0, 3.0, 2.0])
    assert X.get_quantile(0.0) == 1.0
    assert X.get_quantile(0.5) == 3.0
    assert X.get_quantile(1.0) == 4.0
    assert X.get_quantile_expectation(0.0, 1.0) == 2.5
    # swapped bounds
    assert X.get_quantile_expectation(0.5, 0.0) == 2.0


def test_histogram():
    X = _x()
    np.testing.assert_allclose(X.get_histogram([1.5, 3.0]), [0.25, 0.5, 0.25])
    np.testing.assert_allclose(RandomVariable(0.0, 2.0).get_histogram([1.5, 3.0]), [0.0, 1.0, 0.0])

    values = RandomVariable(0.0, np.random.default_rng(1).normal(size=10_000))
    anchors, frequencies = values.get_histogram_around(11, 3.0)
    assert anchors.shape == (12,)
    assert frequencies.shape == (12,)
    assert frequencies.sum() == pytest.approx(1.0)
    assert anchors[0] < anchors[-1]


def test_histogram_around_a_single_point():
    X = RandomVariable(0.0, [1.0, 2.0, 3.0, 4.0])
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        anchors, frequencies = X.get_histogram_around(1, 2.0)
    radius = 2.0 * X.get_standard_deviation()
    np.testing.assert_allclose(anchors, [2.5 - radius, 2.5 + radius])
    np.testing.assert_allclose(frequencies, [0.5, 0.5])


def test_average_of_large_mixed_sign_values_is_compensated():
    values = np.tile([1e8, 3e-9, -1e8, 3e-9], 250_000)
    X = RandomVariable(0.0, values)
    reference = math.fsum(values) / values.size
    assert X.get_average() == pytest.approx(reference, rel=1e-10)


def test_float32_storage_is_preserved():
    X = RandomVariable(0.0, [1.0, 2.0, 3.0], dtype=np.float32)
    assert X.dtype == np.float32
    assert X.add(1.0).dtype == np.float32
    assert X.mult(X).exp().dtype == np.float32
    assert X.add(RandomVariable(0.0, [1.0, 1.0, 1.0])).dtype == np.float64
    assert X.get_average() == pytest.approx(2.0)


def test_from_function_and_equals_tolerance():
    X = RandomVariable.from_function(1.0, lambda i: i * 2.0, 4)
    np.testing.assert_array_equal(X.get_realizations(), [0.0, 2.0, 4.0, 6.0])
    Y = RandomVariable.from_function(1.0, lambda i: i * 2.0 + 1e-9, 4, vectorized=False)
    assert not X.equals(Y)
    assert X.equals(Y, tolerance=1e-6)
    assert not X.equals(RandomVariable(2.0, [0.0, 2.0, 4.0, 6.0]))


def test_values_are_immutable():
    X = _x()
    with pytest.raises(ValueError):
        X.get_realizations()[0] = 100.0
    X.add(1.0)
    assert X.get(0) == 1.0


def test_concurrent_readers_of_dense_values():
    X = _x()
    results = []

    def read():
        results.append(X.squared().get_average())

    threads = [threading.Thread(target=read) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert results == [7.5] * 4
