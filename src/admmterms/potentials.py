"""Potential kinds and their closed-form proximal operators.

Each potential is a frozen record over a hyperplane ``coeffs . x = constant``:

    HingeLoss            weight * max(a.x - c, 0)
    SquaredHingeLoss     weight * max(a.x - c, 0)^2
    SquaredLinearLoss    weight * (a.x - c)^2
    LinearConstraint     0 if a.x (<=, >=, ==) c within tolerance, else infeasible
    HingeLossConstraint  0 if head <= max(0, a_rest.x_rest - c), else infeasible

:func:`prox` computes

    argmin_x f(x) + step_size / 2 * ||x - point||^2

where ``point`` is the unconstrained proximal point ``z - y / step_size``.
Every branch is closed-form: the point is tested against the kink of the
potential and, depending on which side it falls, kept, shifted, passed to
:func:`~admmterms.hyperplane.minimize_weighted_squared` or projected with
:meth:`~admmterms.hyperplane.Hyperplane.project`.

:func:`evaluate` returns the bare potential value (no proximal term). Hard
constraints violated beyond their tolerance evaluate to :data:`INFEASIBLE`, a
large *finite* sentinel, so values can be summed without special casing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeAlias

import sys

import numpy as np

from ._util import TermDefinitionError, as_finite_float
from .hyperplane import Hyperplane, minimize_weighted_squared


INFEASIBLE: float = sys.float_info.max


class Comparator(Enum):
    """Sense of a linear constraint ``coeffs . x (sense) constant``."""

    LEQ = 'leq'
    GEQ = 'geq'
    EQ = 'eq'

    @classmethod
    def parse(cls, value: 'Comparator | str') -> 'Comparator':
        """Accept a Comparator, its value ('leq'/'geq'/'eq') or a symbol."""

        if isinstance(value, Comparator):
            return value
        key = str(value).strip().lower()
        aliases = {'<=': 'leq', '>=': 'geq', '=': 'eq', '==': 'eq'}
        key = aliases.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise ValueError(
                f'unknown comparator {value!r}; expected one of: leq, geq, eq'
            ) from None

    def violation(self, total: float, constant: float) -> float:
        """Return how far `total` is on the wrong side of `constant` (>= 0).

        For EQ, any difference counts: ``total != constant`` is tested exactly.
        A NaN `total` yields NaN for every sense.
        """

        if self is Comparator.LEQ:
            return 0.0 if total <= constant else total - constant
        if self is Comparator.GEQ:
            return 0.0 if total >= constant else constant - total
        return abs(total - constant) if total != constant else 0.0


def _check_weight(weight: Any) -> float:
    w = as_finite_float(weight, name='weight')
    if w < 0:
        raise TermDefinitionError('weight must be non-negative')
    return w


def _init_hyperplane(obj: Any) -> None:
    h = Hyperplane(obj.coeffs, obj.constant)
    object.__setattr__(obj, 'hyperplane', h)
    object.__setattr__(obj, 'coeffs', h.coeffs)
    object.__setattr__(obj, 'constant', h.constant)


@dataclass(frozen=True, slots=True, eq=False)
class HingeLoss:
    """``weight * max(coeffs . x - constant, 0)``."""

    coeffs: np.ndarray
    constant: float
    weight: float = 1.0
    hyperplane: Hyperplane = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        _init_hyperplane(self)
        object.__setattr__(self, 'weight', _check_weight(self.weight))


@dataclass(frozen=True, slots=True, eq=False)
class SquaredHingeLoss:
    """``weight * max(coeffs . x - constant, 0)^2``."""

    coeffs: np.ndarray
    constant: float
    weight: float = 1.0
    hyperplane: Hyperplane = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        _init_hyperplane(self)
        object.__setattr__(self, 'weight', _check_weight(self.weight))


@dataclass(frozen=True, slots=True, eq=False)
class SquaredLinearLoss:
    """``weight * (coeffs . x - constant)^2``."""

    coeffs: np.ndarray
    constant: float
    weight: float = 1.0
    hyperplane: Hyperplane = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        _init_hyperplane(self)
        object.__setattr__(self, 'weight', _check_weight(self.weight))


@dataclass(frozen=True, slots=True, eq=False)
class LinearConstraint:
    """Hard constraint ``coeffs . x (comparator) constant``.

    Args:
        coeffs: Nonzero coefficients (n,).
        constant: Right-hand side.
        comparator: :class:`Comparator` or one of 'leq', 'geq', 'eq'.
        tolerance: Violation allowed before the constraint counts as broken.
            A negative tolerance disables the slack entirely: :func:`prox`
            always projects and :func:`evaluate` reports the raw violation
            magnitude instead of :data:`INFEASIBLE`.
    """

    coeffs: np.ndarray
    constant: float
    comparator: Comparator = Comparator.LEQ
    tolerance: float = 0.0
    hyperplane: Hyperplane = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        _init_hyperplane(self)
        object.__setattr__(self, 'comparator', Comparator.parse(self.comparator))
        object.__setattr__(
            self, 'tolerance', as_finite_float(self.tolerance, name='tolerance')
        )


@dataclass(frozen=True, slots=True, eq=False)
class HingeLossConstraint:
    """Implication constraint ``x[head] <= max(0, sum_{i != head} a_i x_i - c)``.

    Args:
        coeffs: Nonzero coefficients (n,), including the head's own
            coefficient (used when projecting onto ``coeffs . x = constant``).
        constant: Right-hand side.
        head: Local position (0 <= head < n) of the head variable.
        tolerance: Slack on ``head - max(0, ...)`` used by :func:`evaluate`.
    """

    coeffs: np.ndarray
    constant: float
    head: int = 0
    tolerance: float = 0.01
    hyperplane: Hyperplane = field(init=False, repr=False, compare=False)
    rest: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        _init_hyperplane(self)
        n = self.hyperplane.dim
        head = int(self.head)
        if not 0 <= head < n:
            raise TermDefinitionError('head must be a valid local position')
        tol = as_finite_float(self.tolerance, name='tolerance')
        if tol < 0:
            raise TermDefinitionError('tolerance must be non-negative')
        rest = np.ones(n, dtype=bool)
        rest[head] = False
        rest.setflags(write=False)
        object.__setattr__(self, 'head', head)
        object.__setattr__(self, 'tolerance', tol)
        object.__setattr__(self, 'rest', rest)

    def body(self, x: np.ndarray) -> float:
        """Return ``max(0, a_rest . x_rest - constant)``."""
        total = float(np.dot(self.coeffs[self.rest], x[self.rest])) - self.constant
        return max(total, 0.0)


Potential: TypeAlias = (
    HingeLoss | SquaredHingeLoss | SquaredLinearLoss | LinearConstraint
    | HingeLossConstraint
)

POTENTIAL_TYPES = (
    HingeLoss,
    SquaredHingeLoss,
    SquaredLinearLoss,
    LinearConstraint,
    HingeLossConstraint,
)
WEIGHTED_TYPES = (HingeLoss, SquaredHingeLoss, SquaredLinearLoss)


def prox(potential: Potential, point: Any, step_size: float) -> np.ndarray:
    """Closed-form proximal operator of `potential` at `point`.

    Args:
        potential: One of the potential records of this module.
        point: Unconstrained proximal point ``z - y / step_size`` (n,).
        step_size: ADMM step size (rho), > 0.

    Returns:
        New array ``argmin_x f(x) + step_size/2 ||x - point||^2``.
    """

    p = np.array(point, dtype=np.float64, copy=True)
    h = potential.hyperplane
    rho = float(step_size)

    if isinstance(potential, HingeLoss):
        if h.dot(p) <= h.constant:
            return p
        # Linear branch: the loss is active, so its gradient is weight * coeffs.
        shifted = p - (potential.weight / rho) * h.coeffs
        if h.dot(shifted) >= h.constant:
            return shifted
        # Neither side holds: the minimizer sits on the hinge.
        return h.project(p)

    if isinstance(potential, SquaredHingeLoss):
        if h.dot(p) <= h.constant:
            return p
        return minimize_weighted_squared(h, p, weight=potential.weight, step_size=rho)

    if isinstance(potential, SquaredLinearLoss):
        return minimize_weighted_squared(h, p, weight=potential.weight, step_size=rho)

    if isinstance(potential, LinearConstraint):
        violation = potential.comparator.violation(h.dot(p), h.constant)
        if potential.tolerance >= 0 and violation <= potential.tolerance:
            return p
        return h.project(p)

    if isinstance(potential, HingeLossConstraint):
        total = potential.body(p)
        head = p[potential.head]
        if total >= head >= 0:
            return p
        if head < 0 and total == 0.0:
            p[potential.head] = 0.0
            if total >= p[potential.head] >= 0:
                return p
        return h.project(p)

    raise TypeError(f'unsupported potential type: {type(potential).__name__}')


def evaluate(potential: Potential, values: Any) -> float:
    """Return the value of `potential` at local `values` (n,).

    Soft losses return their weighted value. Hard constraints return 0 when
    satisfied within tolerance and :data:`INFEASIBLE` otherwise.
    """

    v = np.asarray(values, dtype=np.float64)
    h = potential.hyperplane

    if isinstance(potential, HingeLoss):
        r = h.residual(v)
        return 0.0 if r <= 0.0 else potential.weight * r

    if isinstance(potential, SquaredHingeLoss):
        r = h.residual(v)
        return 0.0 if r <= 0.0 else potential.weight * r * r

    if isinstance(potential, SquaredLinearLoss):
        r = h.residual(v)
        return potential.weight * r * r

    if isinstance(potential, LinearConstraint):
        violation = potential.comparator.violation(h.dot(v), h.constant)
        if potential.tolerance < 0 or np.isnan(violation):
            return violation
        return 0.0 if violation <= potential.tolerance else INFEASIBLE

    if isinstance(potential, HingeLossConstraint):
        gap = float(v[potential.head]) - potential.body(v)
        if np.isnan(gap):
            return gap
        return 0.0 if gap <= potential.tolerance else INFEASIBLE

    raise TypeError(f'unsupported potential type: {type(potential).__name__}')
