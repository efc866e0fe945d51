"""Shared consensus snapshot read by every term.

The driver owns the consensus vector and the step size. Terms only read them,
so both are bundled into an immutable :class:`ConsensusState` that is passed
explicitly to :meth:`~admmterms.Term.minimize` and
:meth:`~admmterms.Term.update_lagrange`. Between iterations the driver builds
a new snapshot (``with_consensus`` / ``with_step_size``) instead of mutating
the old one, which keeps the single-writer / many-reader contract visible in
the call sites.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Any

import numpy as np

from ._util import gather


def _freeze_consensus(values: Mapping[int, float]) -> Mapping[int, float]:
    frozen: dict[int, float] = {}
    for k, v in values.items():
        if not isinstance(k, (int, np.integer)) or isinstance(k, bool):
            raise ValueError('consensus indices must be integers')
        ki = int(k)
        if ki < 0:
            raise ValueError('consensus indices must be non-negative')
        frozen[ki] = float(v)
    return MappingProxyType(frozen)


def _check_step_size(step_size: Any) -> float:
    s = float(step_size)
    if not np.isfinite(s) or s <= 0.0:
        raise ValueError('step_size must be a positive finite number')
    return s


@dataclass(frozen=True, slots=True)
class ConsensusState:
    """Immutable (step size, consensus vector) pair for one ADMM iteration.

    Args:
        step_size: ADMM penalty parameter (rho). Must be positive and finite.
        consensus: Mapping from global variable index to its consensus value.
            A read-only copy is stored.

    Raises:
        ValueError: If the step size is not positive or an index is negative.
    """

    step_size: float
    consensus: Mapping[int, float]

    def __post_init__(self) -> None:
        object.__setattr__(self, 'step_size', _check_step_size(self.step_size))
        object.__setattr__(self, 'consensus', _freeze_consensus(self.consensus))

    @classmethod
    def from_array(cls, values: Any, step_size: float) -> 'ConsensusState':
        """Build a snapshot whose global index is the array position."""

        arr = np.asarray(values, dtype=float)
        if arr.ndim != 1:
            raise ValueError('values must be 1D')
        return cls(step_size=step_size, consensus=dict(enumerate(arr.tolist())))

    def with_consensus(self, values: Mapping[int, float]) -> 'ConsensusState':
        """Return a new snapshot with the same step size and new consensus."""
        return replace(self, consensus=values)

    def with_step_size(self, step_size: float) -> 'ConsensusState':
        return replace(self, step_size=step_size)

    def value(self, index: int, default: float | None = None) -> float | None:
        return self.consensus.get(int(index), default)

    def restrict(self, indices: np.ndarray) -> np.ndarray:
        """Return the consensus values at `indices` (KeyError if one is absent)."""
        return gather(self.consensus, np.asarray(indices, dtype=np.int64))

    def __len__(self) -> int:
        return len(self.consensus)
