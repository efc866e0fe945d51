"""admmterms package.

This package provides closed-form local solvers for the per-term step of
consensus ADMM over hinge-loss style potentials.

Public API:
    - ConsensusState
    - Term and the *_term constructors
    - potential records (HingeLoss, SquaredHingeLoss, SquaredLinearLoss,
      LinearConstraint, HingeLossConstraint), prox, evaluate
    - Hyperplane, minimize_weighted_squared
    - analyze_objective, validate_objective
"""

from __future__ import annotations

from .__about__ import __version__

from ._util import TermDefinitionError
from .state import ConsensusState
from .hyperplane import Hyperplane, minimize_weighted_squared
from .potentials import (
    INFEASIBLE,
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
from .term import (
    Term,
    hinge_loss_term,
    squared_hinge_loss_term,
    squared_linear_loss_term,
    linear_constraint_term,
    hinge_loss_constraint_term,
)
from .diagnostics import (
    ObjectiveDiagnostics,
    ObjectiveIssue,
    InfeasibilityError,
    analyze_objective,
    validate_objective,
)

__all__ = [
    'ConsensusState',
    'TermDefinitionError',
    'Hyperplane',
    'minimize_weighted_squared',
    'INFEASIBLE',
    'Comparator',
    'HingeLoss',
    'HingeLossConstraint',
    'LinearConstraint',
    'Potential',
    'SquaredHingeLoss',
    'SquaredLinearLoss',
    'evaluate',
    'prox',
    'Term',
    'hinge_loss_term',
    'squared_hinge_loss_term',
    'squared_linear_loss_term',
    'linear_constraint_term',
    'hinge_loss_constraint_term',
    'ObjectiveDiagnostics',
    'ObjectiveIssue',
    'InfeasibilityError',
    'analyze_objective',
    'validate_objective',
    '__version__',
]
