"""Closed-form geometric primitives shared by hyperplane-based potentials.

Two building blocks are provided:

1) :meth:`Hyperplane.project`: exact Euclidean projection of a point onto the
   affine set ``coeffs . x = constant``. The implementation is specialized by
   dimension:

   - n == 1: the set is a single point, ``constant / coeffs[0]``.
   - n == 2: ``x1`` is eliminated through the constraint and the resulting
     one-variable least-squares problem is solved for ``x0``; ``x1`` is then
     recovered from the constraint, so the result lies on the line exactly
     up to one rounding step.
   - n >= 3: the point is moved along the unit normal by its signed distance

         d(p) = (coeffs . p - constant) / ||coeffs||_2

     The unit normal is computed once per hyperplane.

2) :func:`minimize_weighted_squared`: minimizer of the smooth quadratic

       weight * (coeffs . x - constant)^2 + step_size / 2 * ||x - p||^2

   Setting the gradient to zero shows that the solution is ``p`` shifted along
   ``coeffs``:

       x = p - coeffs * weight * (coeffs . p - constant)
                        / (weight * ||coeffs||^2 + step_size / 2)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import numpy as np

from ._util import as_coeff_vector, as_finite_float


@dataclass(frozen=True, slots=True, eq=False)
class Hyperplane:
    """Affine set ``coeffs . x = constant``.

    Args:
        coeffs: Nonzero, finite coefficients (n,).
        constant: Right-hand side.

    Raises:
        TermDefinitionError: If coefficients are empty, zero or non-finite.
    """

    coeffs: np.ndarray
    constant: float
    norm: float = field(init=False, repr=False)
    unit_normal: np.ndarray | None = field(init=False, repr=False)

    def __post_init__(self) -> None:
        a = as_coeff_vector(self.coeffs)
        object.__setattr__(self, 'coeffs', a)
        object.__setattr__(
            self, 'constant', as_finite_float(self.constant, name='constant')
        )
        norm = float(np.linalg.norm(a))
        object.__setattr__(self, 'norm', norm)
        if a.shape[0] >= 3:
            u = a / norm
            u.setflags(write=False)
            object.__setattr__(self, 'unit_normal', u)
        else:
            object.__setattr__(self, 'unit_normal', None)

    @property
    def dim(self) -> int:
        return int(self.coeffs.shape[0])

    def dot(self, x: np.ndarray) -> float:
        """Return ``coeffs . x``."""
        return float(np.dot(self.coeffs, x))

    def residual(self, x: np.ndarray) -> float:
        """Return ``coeffs . x - constant``."""
        return self.dot(x) - self.constant

    def project(self, point: Any) -> np.ndarray:
        """Return the Euclidean projection of `point` onto the hyperplane.

        A new array is always returned; `point` is not modified.
        """

        p = np.asarray(point, dtype=np.float64)
        if p.shape != self.coeffs.shape:
            raise ValueError('point must have the same shape as coeffs')
        a = self.coeffs
        c = self.constant

        if a.shape[0] == 1:
            return np.array([c / a[0]], dtype=np.float64)

        if a.shape[0] == 2:
            ratio = a[0] / a[1]
            x0 = (p[0] - ratio * (p[1] - c / a[1])) / (1.0 + ratio * ratio)
            x1 = (c - a[0] * x0) / a[1]
            return np.array([x0, x1], dtype=np.float64)

        distance = self.residual(p) / self.norm
        return p - distance * self.unit_normal


def minimize_weighted_squared(
    hyperplane: Hyperplane,
    point: Any,
    *,
    weight: float,
    step_size: float,
) -> np.ndarray:
    """Minimize ``weight (a.x - c)^2 + step_size/2 ||x - point||^2`` exactly.

    Args:
        hyperplane: Supplies ``a`` (coeffs) and ``c`` (constant).
        point: Unconstrained proximal point (n,).
        weight: Non-negative loss weight.
        step_size: ADMM step size (rho).

    Returns:
        New array holding the minimizer.
    """

    p = np.asarray(point, dtype=np.float64)
    a = hyperplane.coeffs
    w = float(weight)
    denom = w * hyperplane.norm**2 + 0.5 * float(step_size)
    return p - (w * hyperplane.residual(p) / denom) * a
