import threading

import pytest

from aad_montecarlo import ADVar, PreconditionViolation, RandomVariable, Tape, TapeReleasedError, use_tape
from aad_montecarlo.aad import NodeKind, OperatorType
from aad_montecarlo.errors import OperatorArityError


def test_ids_are_arena_positions_and_operands_point_backwards():
    with use_tape() as tape:
        x = tape.variable(2.0)
        y = x * x + 1.0
        assert x.id == 0
        assert len(tape) == 4
        for node in tape.nodes:
            assert all(operand < node.id for operand in node.operands)
        assert tape.node(y.id).operator is OperatorType.ADD
        assert tape.node(1).operands == (0, 0)


def test_plain_operands_become_constant_leaves():
    with use_tape() as tape:
        x = tape.variable(2.0)
        y = x.mult(3.0)
        constant = tape.node(tape.node(y.id).operands[1])
        assert constant.kind is NodeKind.CONSTANT
        assert constant.is_leaf
        assert constant.value.double_value() == 3.0
        assert tape.node(x.id).kind is NodeKind.VARIABLE
        assert tape.node(y.id).kind is NodeKind.EXPRESSION


def test_operators_on_constants_record_constants():
    with use_tape() as tape:
        c = tape.constant(2.0)
        d = c * 3.0
        assert d.is_constant
        assert d.value.double_value() == 6.0
        assert tape.node(d.id).is_leaf


def test_push_node_checks_arity_and_order():
    with use_tape() as tape:
        value = RandomVariable(0.0, 1.0)
        tape.push_node(value=value, kind=NodeKind.VARIABLE)
        with pytest.raises(OperatorArityError):
            tape.push_node(value=value, kind=NodeKind.EXPRESSION, operator=OperatorType.ADD, operands=(0,))
        with pytest.raises(OperatorArityError):
            tape.push_node(value=value, kind=NodeKind.VARIABLE, operands=(0,))
        with pytest.raises(PreconditionViolation):
            tape.push_node(value=value, kind=NodeKind.EXPRESSION, operator=OperatorType.ADD, operands=(0, 1))
        assert len(tape) == 1


def test_operator_arity_table():
    assert OperatorType.ADD.arity == 2
    assert OperatorType.EXP.arity == 1
    assert OperatorType.BARRIER.arity == 3
    assert OperatorType.AVERAGE.arity == 1
    assert OperatorType.POW.tag == "pow"
    assert len(OperatorType) == 28


def test_released_tape_rejects_use():
    with use_tape() as tape:
        x = tape.variable(2.0)
        y = x * x
    assert tape.released
    with pytest.raises(TapeReleasedError):
        len(tape)
    with pytest.raises(TapeReleasedError):
        x + 1.0
    with pytest.raises(TapeReleasedError):
        y.get_gradient()
    tape.release()


def test_tape_as_context_manager_releases():
    tape = Tape()
    with tape:
        tape.variable(1.0)
    assert tape.released


def test_handles_of_different_tapes_do_not_mix():
    with use_tape() as first, use_tape() as second:
        x = first.variable(1.0)
        y = second.variable(2.0)
        with pytest.raises(PreconditionViolation):
            x + y
        with pytest.raises(PreconditionViolation):
            x.lift(y)


def test_only_the_creating_thread_may_record():
    errors = []
    with use_tape() as tape:
        def record():
            try:
                tape.variable(1.0)
            except PreconditionViolation as error:
                errors.append(error)

        thread = threading.Thread(target=record)
        thread.start()
        thread.join()
        assert len(errors) == 1
        assert len(tape) == 0


def test_random_variable_operations_with_handles_become_differentiable():
    with use_tape() as tape:
        x = tape.variable(2.0)
        rv = RandomVariable(0.0, [1.0, 2.0])
        for result in (rv + x, rv * x, rv - x, rv.add(x), rv.choose(x, 0.0), rv.bus(x), 2.0 - x):
            assert isinstance(result, ADVar)
        assert (rv - x).get_realizations().tolist() == [-1.0, 0.0]
        assert rv.bus(x).get_realizations().tolist() == [1.0, 0.0]


def test_handle_delegates_value_queries():
    with use_tape() as tape:
        x = tape.variable([1.0, 2.0, 3.0, 4.0], time=1.0, name="x")
        assert x.filtration_time == 1.0
        assert x.size() == 4
        assert not x.is_deterministic()
        assert x.get(1) == 2.0
        assert x.get_average() == 2.5
        assert x.get_variance() == 1.25
        assert x.get_quantile(1.0) == 4.0
        assert x.get_min() == 1.0
        assert x.get_max() == 4.0
        assert x.get_sum() == 10.0
        assert x.equals(RandomVariable(1.0, [1.0, 2.0, 3.0, 4.0]))
        assert "x" in repr(x)
        with pytest.raises(TypeError):
            tape.variable("not a number")
