"""
Error classification for deployment planning and execution.

Plan validation errors are raised before anything is submitted to a ledger;
execution errors describe how a run stopped and which nodes completed.
"""

from .plan_validation import (
    PlanValidationError,
    ShapeMismatch,
    UnknownParameter,
    MissingParameter,
    DuplicateParameter,
    DuplicateNodeName,
    UnresolvedReference,
    DependencyCycle,
    ResumeConflict,
)
from .execution_failures import (
    ExecutionError,
    DeploymentFailed,
    Cancelled,
    StateTransitionError,
    PersistenceError,
    ConfigurationError,
)

__all__ = [
    # Plan validation
    "PlanValidationError",
    "ShapeMismatch",
    "UnknownParameter",
    "MissingParameter",
    "DuplicateParameter",
    "DuplicateNodeName",
    "UnresolvedReference",
    "DependencyCycle",
    "ResumeConflict",
    # Execution
    "ExecutionError",
    "DeploymentFailed",
    "Cancelled",
    "StateTransitionError",
    "PersistenceError",
    "ConfigurationError",
]
