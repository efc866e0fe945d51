"""Objective bookkeeping over a collection of terms.

:meth:`~admmterms.Term.evaluate_at` reports hard-constraint violations as the
finite sentinel :data:`~admmterms.INFEASIBLE` rather than raising. This module
turns a batch of such evaluations into a structured report, so callers can
tell a genuinely large objective from an infeasible assignment without
comparing against the sentinel themselves.

The public entry points are :func:`analyze_objective` (always returns
diagnostics) and :func:`validate_objective` (optionally warns or raises).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Literal

import warnings

import numpy as np

from ._util import Assignment
from .potentials import INFEASIBLE
from .term import Term


@dataclass(frozen=True, slots=True)
class ObjectiveIssue:
    code: str
    severity: Literal['info', 'warning', 'error']
    message: str
    examples: tuple[Any, ...] = ()


@dataclass(frozen=True, slots=True)
class ObjectiveDiagnostics:
    n_terms: int
    objective: float
    n_infeasible: int
    infeasible_terms: tuple[int, ...]
    n_nonfinite: int
    nonfinite_terms: tuple[int, ...]
    issues: tuple[ObjectiveIssue, ...]
    ok: bool


class InfeasibilityError(ValueError):
    """Raised when objective validation fails under strict settings."""

    def __init__(self, message: str, diagnostics: ObjectiveDiagnostics):
        super().__init__(message)
        self.diagnostics = diagnostics


def analyze_objective(
    terms: Iterable[Term],
    assignment: Assignment,
    *,
    max_examples: int = 10,
) -> ObjectiveDiagnostics:
    """Evaluate every term at `assignment` and summarize the result.

    The reported objective is the sum over terms whose value is finite and
    below the infeasibility sentinel; infeasible and non-finite (NaN/inf)
    evaluations are counted separately, by position in `terms`.

    Args:
        terms: Terms to evaluate.
        assignment: Mapping (or 1D array) from global index to value.
        max_examples: Max number of term positions attached per issue.

    Returns:
        ObjectiveDiagnostics
    """

    max_examples_i = int(max_examples)
    if max_examples_i <= 0:
        raise ValueError('max_examples must be > 0')

    objective = 0.0
    n_terms = 0
    infeasible: list[int] = []
    nonfinite: list[int] = []
    for k, term in enumerate(terms):
        n_terms += 1
        value = float(term.evaluate_at(assignment))
        if not np.isfinite(value):
            nonfinite.append(k)
        elif value >= INFEASIBLE:
            infeasible.append(k)
        else:
            objective += value

    issues: list[ObjectiveIssue] = []
    if infeasible:
        issues.append(
            ObjectiveIssue(
                'INFEASIBLE',
                'error',
                f'{len(infeasible)} hard constraints are violated beyond tolerance',
                examples=tuple(infeasible[:max_examples_i]),
            )
        )
    if nonfinite:
        issues.append(
            ObjectiveIssue(
                'NONFINITE',
                'error',
                f'{len(nonfinite)} terms evaluated to NaN or infinity',
                examples=tuple(nonfinite[:max_examples_i]),
            )
        )
    if n_terms == 0:
        issues.append(ObjectiveIssue('EMPTY', 'info', 'No terms were evaluated'))

    return ObjectiveDiagnostics(
        n_terms=n_terms,
        objective=float(objective),
        n_infeasible=len(infeasible),
        infeasible_terms=tuple(infeasible),
        n_nonfinite=len(nonfinite),
        nonfinite_terms=tuple(nonfinite),
        issues=tuple(issues),
        ok=not infeasible and not nonfinite,
    )


def validate_objective(
    terms: Iterable[Term],
    assignment: Assignment,
    *,
    level: Literal['basic', 'strict'] = 'basic',
    mode: Literal['return', 'warn'] = 'return',
    max_examples: int = 10,
) -> ObjectiveDiagnostics:
    """Validate that `assignment` is feasible for every term.

    This is a convenience wrapper around :func:`analyze_objective`.

    Args:
        terms: Terms to evaluate.
        assignment: Mapping (or 1D array) from global index to value.
        level: 'basic' returns diagnostics; 'strict' raises
            :class:`InfeasibilityError` when validation fails.
        mode: Behavior for failed validation at level 'basic':
            - 'return' (default): return diagnostics silently
            - 'warn': emit a RuntimeWarning and return diagnostics
        max_examples: Max number of term positions attached per issue.

    Returns:
        ObjectiveDiagnostics
    """

    if level not in ('basic', 'strict'):
        raise ValueError('level must be \'basic\' or \'strict\'')
    if mode not in ('return', 'warn'):
        raise ValueError('mode must be \'return\' or \'warn\'')

    diag = analyze_objective(terms, assignment, max_examples=max_examples)
    if diag.ok:
        return diag

    msg = '; '.join(i.message for i in diag.issues if i.severity == 'error')
    if level == 'strict':
        raise InfeasibilityError(f'Objective validation failed: {msg}', diag)
    if mode == 'warn':
        warnings.warn(
            f'Objective validation failed: {msg}', RuntimeWarning, stacklevel=2
        )
    return diag
