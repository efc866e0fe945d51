"""Internal shared helpers.

This module exists to avoid duplicating small pieces of input coercion across
`state`, `hyperplane`, `potentials` and `term`.

The helpers here are intentionally lightweight and depend only on numpy.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeAlias

import numpy as np


Assignment: TypeAlias = Mapping[int, float] | np.ndarray


class TermDefinitionError(ValueError):
    """Raised when a term or potential is constructed from invalid parameters."""


def as_index_vector(indices: Any, *, name: str = 'indices') -> np.ndarray:
    """Return a read-only 1D int64 copy of global variable indices."""

    raw = np.asarray(indices)
    if raw.ndim != 1:
        raise TermDefinitionError(f'{name} must be 1D')
    if raw.size == 0:
        raise TermDefinitionError(f'{name} must be non-empty')
    if not np.issubdtype(raw.dtype, np.integer):
        raise TermDefinitionError(f'{name} must be integers')
    idx = raw.astype(np.int64, copy=True)
    if np.any(idx < 0):
        raise TermDefinitionError(f'{name} must be non-negative')
    idx.setflags(write=False)
    return idx


def as_coeff_vector(coeffs: Any, *, name: str = 'coeffs') -> np.ndarray:
    """Return a read-only 1D float64 copy of nonzero hyperplane coefficients."""

    a = np.array(coeffs, dtype=np.float64, copy=True)
    if a.ndim != 1:
        raise TermDefinitionError(f'{name} must be 1D')
    if a.size == 0:
        raise TermDefinitionError(f'{name} must be non-empty')
    if not np.all(np.isfinite(a)):
        raise TermDefinitionError(f'{name} must contain only finite values')
    if np.any(a == 0.0):
        raise TermDefinitionError(f'{name} must be nonzero')
    a.setflags(write=False)
    return a


def as_finite_float(value: Any, *, name: str) -> float:
    v = float(value)
    if not np.isfinite(v):
        raise TermDefinitionError(f'{name} must be finite')
    return v


def gather(
    assignment: Assignment, indices: np.ndarray, *, fill: float | None = None
) -> np.ndarray:
    """Pick the values of `assignment` at global `indices`.

    Args:
        assignment: Mapping from global index to value, or a 1D array indexed
            by global index.
        indices: Global indices (1D int array).
        fill: Value used for indices absent from the assignment. If None,
            absent indices raise (KeyError for mappings, IndexError for
            arrays).

    Returns:
        New float64 array of shape (len(indices),).
    """

    if isinstance(assignment, Mapping):
        if fill is None:
            return np.array([float(assignment[int(i)]) for i in indices], dtype=float)
        return np.array(
            [float(assignment.get(int(i), fill)) for i in indices], dtype=float
        )

    arr = np.asarray(assignment, dtype=np.float64)
    if arr.ndim != 1:
        raise ValueError('assignment array must be 1D')
    if fill is None:
        if np.any(indices >= arr.shape[0]):
            raise IndexError('assignment array is shorter than the largest index')
        return arr[indices].astype(np.float64, copy=True)
    out = np.full(indices.shape[0], float(fill), dtype=np.float64)
    present = indices < arr.shape[0]
    out[present] = arr[indices[present]]
    return out
