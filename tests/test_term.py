from __future__ import annotations

import numpy as np
import pytest

import admmterms as at


def _state(values, step_size: float = 1.0) -> at.ConsensusState:
    return at.ConsensusState.from_array(values, step_size)


def test_hinge_inactive_leaves_unconstrained_point() -> None:
    term = at.hinge_loss_term([0], [1.0], 5.0, 1.0)
    term.minimize(_state([2.0]))
    assert np.array_equal(term.x, [2.0])


def test_hinge_active_keeps_shifted_point_when_it_stays_above() -> None:
    term = at.hinge_loss_term([0], [1.0], 5.0, 1.0)
    term.minimize(_state([10.0]))
    # argmin max(x - 5, 0) + 1/2 (x - 10)^2
    assert np.allclose(term.x, [9.0])


def test_hinge_active_projects_when_shift_crosses_hinge() -> None:
    term = at.hinge_loss_term([0], [1.0], 5.0, 10.0)
    term.minimize(_state([10.0]))
    assert np.allclose(term.x, [5.0])


def test_linear_constraint_slack_keeps_unconstrained_point() -> None:
    term = at.linear_constraint_term([0], [1.0], 4.0, 'leq', tolerance=0.5)
    term.minimize(_state([4.3]))
    assert np.array_equal(term.x, [4.3])


def test_implication_constraint_clamps_head_only() -> None:
    term = at.hinge_loss_constraint_term([0, 1, 2], [1.0, 1.0, -1.0], 1.5, head_index=2)
    term.minimize(_state([0.2, 0.3, -1.0]))
    assert np.array_equal(term.x, [0.2, 0.3, 0.0])
    assert term.evaluate_at({0: 0.2, 1: 0.3, 2: 0.0}) == 0.0


def test_implication_head_is_located_by_global_index() -> None:
    term = at.hinge_loss_constraint_term([7, 3, 9], [-1.0, 1.0, 1.0], 0.0, head_index=7)
    assert term.potential.head == 0


def test_minimize_uses_dual_and_step_size() -> None:
    term = at.squared_linear_loss_term([4, 1], [1.0, 1.0], 1.0, 0.5)
    term.y[:] = [1.0, -1.0]
    state = at.ConsensusState(2.0, {1: 0.5, 4: 1.0})

    p = term.proximal_point(state)
    assert np.allclose(p, [0.5, 1.0])

    term.minimize(state)
    expected = at.minimize_weighted_squared(
        term.potential.hyperplane, p, weight=0.5, step_size=2.0
    )
    assert np.allclose(term.x, expected)


def test_minimize_is_idempotent() -> None:
    state = _state([0.9, 0.8, 0.1, 0.4], 1.5)
    terms = [
        at.hinge_loss_term([0, 1, 2], [1.0, 2.0, -1.0], 0.5, 2.0),
        at.squared_hinge_loss_term([1, 3], [1.0, 1.0], 0.5, 1.0),
        at.squared_linear_loss_term([0, 3], [2.0, -1.0], 0.0, 3.0),
        at.linear_constraint_term([0, 1, 2, 3], [1.0, 1.0, 1.0, 1.0], 1.0, 'eq'),
        at.hinge_loss_constraint_term([0, 1, 2], [1.0, 1.0, -1.0], 0.5, 2),
    ]
    for term in terms:
        term.y[:] = 0.1
        term.minimize(state)
        first = term.x.copy()
        term.minimize(state)
        assert np.array_equal(term.x, first)


def test_minimize_ignores_previous_x() -> None:
    state = _state([3.0, 3.0])
    a = at.hinge_loss_term([0, 1], [1.0, 1.0], 1.0)
    b = at.hinge_loss_term([0, 1], [1.0, 1.0], 1.0)
    b.x[:] = [-100.0, 42.0]
    a.minimize(state)
    b.minimize(state)
    assert np.array_equal(a.x, b.x)


def test_minimize_updates_x_in_place() -> None:
    term = at.hinge_loss_term([0, 1], [1.0, 1.0], 1.0)
    x_ref = term.x
    term.minimize(_state([3.0, 3.0]))
    assert term.x is x_ref


def test_update_lagrange_uses_new_consensus() -> None:
    term = at.hinge_loss_term([0], [1.0], 5.0)
    state = _state([2.0], 2.0)
    term.minimize(state)
    assert np.array_equal(term.x, [2.0])

    out = term.update_lagrange(state.with_consensus({0: 1.5}))
    assert out is term
    assert np.allclose(term.y, [1.0])

    # The next minimize sees the shifted proximal point z - y / rho.
    term.minimize(state.with_consensus({0: 1.5}))
    assert np.allclose(term.x, [1.0])


def test_update_lagrange_is_zero_at_consensus() -> None:
    state = _state([0.3, 0.6])
    term = at.squared_hinge_loss_term([0, 1], [1.0, 1.0], 5.0, state=state)
    term.update_lagrange(state)
    assert np.array_equal(term.y, [0.0, 0.0])


def test_initial_x_is_seeded_from_known_consensus() -> None:
    state = at.ConsensusState(1.0, {0: 0.3, 2: 0.7})
    term = at.hinge_loss_term([2, 5, 0], [1.0, 1.0, 1.0], 1.0, state=state)
    assert np.array_equal(term.x, [0.7, 0.0, 0.3])
    assert np.array_equal(term.y, [0.0, 0.0, 0.0])


def test_initial_x_is_zero_without_state() -> None:
    term = at.squared_linear_loss_term([1, 2], [1.0, 1.0], 1.0)
    assert np.array_equal(term.x, [0.0, 0.0])
    assert len(term) == 2


def test_minimize_requires_all_indices_in_consensus() -> None:
    term = at.hinge_loss_term([0, 3], [1.0, 1.0], 1.0)
    with pytest.raises(KeyError):
        term.minimize(at.ConsensusState(1.0, {0: 1.0}))


def test_evaluate_at_ignores_step_size_and_local_state() -> None:
    term = at.hinge_loss_term([0, 1], [1.0, 1.0], 1.0, 2.0)
    term.minimize(_state([3.0, 3.0], 1.0))
    x = term.x.copy()
    y = term.y.copy()
    assignment = {0: float(x[0]), 1: float(x[1])}
    v1 = term.evaluate_at(assignment)

    term.minimize(_state([3.0, 3.0], 1.0))
    v2 = term.evaluate_at(assignment)
    assert v1 == v2 == pytest.approx(2.0 * (x.sum() - 1.0))
    assert np.array_equal(term.x, x)
    assert np.array_equal(term.y, y)


def test_evaluate_at_step_size_independent_for_fixed_assignment() -> None:
    term = at.squared_hinge_loss_term([0], [1.0], 0.0, 1.0)
    for rho in (0.1, 1.0, 10.0):
        term.minimize(_state([2.0], rho))
    assert term.evaluate_at({0: 1.0}) == pytest.approx(1.0)


def test_evaluate_at_treats_missing_indices_as_zero() -> None:
    term = at.hinge_loss_term([0, 1], [1.0, 1.0], 1.0, 2.0)
    assert term.evaluate_at({0: 3.0}) == pytest.approx(4.0)
    assert term.evaluate_at(np.array([3.0])) == pytest.approx(4.0)
    assert term.evaluate_at(np.array([3.0, 1.0])) == pytest.approx(6.0)


def test_set_weight_replaces_weight_and_keeps_state() -> None:
    term = at.hinge_loss_term([0], [1.0], 5.0, 1.0)
    term.minimize(_state([10.0]))
    term.y[:] = 0.25
    x = term.x.copy()

    term.set_weight(10.0)
    assert term.weight == 10.0
    assert np.array_equal(term.x, x)
    assert np.array_equal(term.y, [0.25])
    assert term.evaluate_at({0: 6.0}) == pytest.approx(10.0)


def test_set_weight_rejected_for_constraints() -> None:
    term = at.linear_constraint_term([0], [1.0], 1.0, 'geq')
    assert term.weight is None
    with pytest.raises(at.TermDefinitionError, match='no weight'):
        term.set_weight(2.0)


def test_set_weight_rejects_negative() -> None:
    term = at.squared_hinge_loss_term([0], [1.0], 1.0)
    with pytest.raises(at.TermDefinitionError, match='non-negative'):
        term.set_weight(-1.0)


def test_primal_residual() -> None:
    state = _state([1.0, 2.0])
    term = at.linear_constraint_term([0, 1], [1.0, 1.0], 1.0, 'leq')
    term.minimize(state)
    assert np.allclose(term.primal_residual(state), [-1.0, -1.0])


def test_repr_shows_local_state() -> None:
    term = at.squared_hinge_loss_term([3, 4], [1.0, -2.0], 0.5)
    text = repr(term)
    assert 'SquaredHingeLoss' in text
    assert 'x=[0.0, 0.0]' in text
    assert 'coeffs=[1.0, -2.0]' in text
    assert 'indices=[3, 4]' in text
