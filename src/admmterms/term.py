"""Per-term local ADMM state.

A :class:`Term` couples a potential with the global variable indices it
touches and owns two local vectors:

- ``x``: the term's local copy of its variables (primal),
- ``y``: the scaled Lagrange multipliers paired with ``x`` (dual).

Both arrays are allocated once and updated in place; they are never resized
or shared with another term. Terms only *read* the :class:`ConsensusState`
passed to them, so a driver may call :meth:`Term.minimize` on many terms
concurrently as long as the snapshot itself is not swapped mid-round.

One outer ADMM iteration, as seen from a single term::

    term.minimize(state)            # x <- prox_f(z - y / rho)
    # ... driver averages all x's into a new consensus vector ...
    term.update_lagrange(new_state) # y <- y + rho (x - z_new)
"""

from __future__ import annotations

from dataclasses import replace
from typing import Sequence

import numpy as np

from ._util import Assignment, TermDefinitionError, as_index_vector, gather
from .potentials import (
    POTENTIAL_TYPES,
    WEIGHTED_TYPES,
    Comparator,
    HingeLoss,
    HingeLossConstraint,
    LinearConstraint,
    Potential,
    SquaredHingeLoss,
    SquaredLinearLoss,
    evaluate,
    prox,
)
from .state import ConsensusState


class Term:
    """ADMM objective term: local primal/dual state plus a potential.

    Args:
        indices: Global variable indices touched by the term (n,).
        potential: Potential record whose coefficients have length n.
        state: Optional initial snapshot. When given, ``x`` is seeded with the
            consensus value at each index that the snapshot knows about, and
            with 0 elsewhere, so the first dual update starts from zero drift.

    Raises:
        TermDefinitionError: If indices and potential are inconsistent.
    """

    __slots__ = ('indices', 'potential', 'x', 'y')

    def __init__(
        self,
        indices: Sequence[int] | np.ndarray,
        potential: Potential,
        *,
        state: ConsensusState | None = None,
    ) -> None:
        if not isinstance(potential, POTENTIAL_TYPES):
            raise TermDefinitionError(
                f'unsupported potential type: {type(potential).__name__}'
            )
        idx = as_index_vector(indices)
        if idx.shape[0] != potential.coeffs.shape[0]:
            raise TermDefinitionError('indices and coeffs must have the same length')

        self.indices = idx
        self.potential = potential
        if state is None:
            self.x = np.zeros(idx.shape[0], dtype=np.float64)
        else:
            self.x = gather(state.consensus, idx, fill=0.0)
        self.y = np.zeros(idx.shape[0], dtype=np.float64)

    def __len__(self) -> int:
        return int(self.indices.shape[0])

    def __repr__(self) -> str:
        return (
            f'{type(self).__name__}({type(self.potential).__name__}, '
            f'x={self.x.tolist()}, y={self.y.tolist()}, '
            f'coeffs={self.potential.coeffs.tolist()}, '
            f'constant={self.potential.constant}, '
            f'indices={self.indices.tolist()})'
        )

    @property
    def weight(self) -> float | None:
        """Loss weight, or None for hard constraints."""
        if isinstance(self.potential, WEIGHTED_TYPES):
            return self.potential.weight
        return None

    def set_weight(self, weight: float) -> None:
        """Replace the weight of a soft loss; the local state is kept."""

        if not isinstance(self.potential, WEIGHTED_TYPES):
            raise TermDefinitionError(
                f'{type(self.potential).__name__} has no weight'
            )
        self.potential = replace(self.potential, weight=weight)

    def proximal_point(self, state: ConsensusState) -> np.ndarray:
        """Return the unconstrained minimizer ``z_local - y / step_size``."""
        return state.restrict(self.indices) - self.y / state.step_size

    def minimize(self, state: ConsensusState) -> None:
        """Set ``x`` to argmin f(x) + rho/2 ||x - z + y/rho||^2 (in place)."""
        self.x[:] = prox(self.potential, self.proximal_point(state), state.step_size)

    def update_lagrange(self, state: ConsensusState) -> 'Term':
        """Dual ascent step ``y += rho (x - z)`` against the *new* consensus.

        Returns:
            The term itself, for chaining.
        """
        self.y += state.step_size * (self.x - state.restrict(self.indices))
        return self

    def primal_residual(self, state: ConsensusState) -> np.ndarray:
        return self.x - state.restrict(self.indices)

    def evaluate_at(self, assignment: Assignment) -> float:
        """Evaluate the bare potential at a full assignment.

        Indices missing from `assignment` contribute 0 to the linear form.
        Neither ``x``, ``y`` nor the potential are modified.
        """
        return evaluate(self.potential, gather(assignment, self.indices, fill=0.0))


def hinge_loss_term(
    indices: Sequence[int],
    coeffs: Sequence[float],
    constant: float,
    weight: float = 1.0,
    *,
    state: ConsensusState | None = None,
) -> Term:
    return Term(indices, HingeLoss(coeffs, constant, weight), state=state)


def squared_hinge_loss_term(
    indices: Sequence[int],
    coeffs: Sequence[float],
    constant: float,
    weight: float = 1.0,
    *,
    state: ConsensusState | None = None,
) -> Term:
    return Term(indices, SquaredHingeLoss(coeffs, constant, weight), state=state)


def squared_linear_loss_term(
    indices: Sequence[int],
    coeffs: Sequence[float],
    constant: float,
    weight: float = 1.0,
    *,
    state: ConsensusState | None = None,
) -> Term:
    return Term(indices, SquaredLinearLoss(coeffs, constant, weight), state=state)


def linear_constraint_term(
    indices: Sequence[int],
    coeffs: Sequence[float],
    constant: float,
    comparator: Comparator | str,
    tolerance: float = 0.0,
    *,
    state: ConsensusState | None = None,
) -> Term:
    potential = LinearConstraint(coeffs, constant, comparator, tolerance)
    return Term(indices, potential, state=state)


def hinge_loss_constraint_term(
    indices: Sequence[int],
    coeffs: Sequence[float],
    constant: float,
    head_index: int,
    *,
    tolerance: float = 0.01,
    state: ConsensusState | None = None,
) -> Term:
    """Build an implication constraint whose head is the *global* `head_index`.

    Raises:
        TermDefinitionError: If `head_index` does not occur exactly once in
            `indices`.
    """

    idx = as_index_vector(indices)
    positions = np.flatnonzero(idx == int(head_index))
    if positions.size != 1:
        raise TermDefinitionError('head_index must occur exactly once in indices')
    potential = HingeLossConstraint(
        coeffs, constant, head=int(positions[0]), tolerance=tolerance
    )
    return Term(idx, potential, state=state)
