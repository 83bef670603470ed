"""
Plan validation errors.

These are detected while resolving parameters or building an execution plan,
before any operation reaches a transport. No partial plan is ever returned
alongside one of them.
"""

from typing import Any, Optional, Dict


class PlanValidationError(Exception):
    """Base class for errors found while validating a deployment plan."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = False


class ShapeMismatch(PlanValidationError):
    """Override value does not have the structural shape of the default."""

    def __init__(self, message: str, parameter: Optional[str] = None,
                 expected_shape: Optional[str] = None,
                 actual_shape: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.parameter = parameter
        self.expected_shape = expected_shape
        self.actual_shape = actual_shape


class UnknownParameter(PlanValidationError):
    """Override references a parameter the module never declared."""

    def __init__(self, message: str, parameter: Optional[str] = None,
                 declared: Optional[list] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.parameter = parameter
        self.declared = declared or []


class MissingParameter(PlanValidationError):
    """Parameter has no default and no override was supplied."""

    def __init__(self, message: str, parameter: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.parameter = parameter


class DuplicateParameter(PlanValidationError):
    """Two parameter declarations share a name."""

    def __init__(self, message: str, parameter: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.parameter = parameter


class DuplicateNodeName(PlanValidationError):
    """Two plan nodes share an identifier."""

    def __init__(self, message: str, node_name: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.node_name = node_name


class UnresolvedReference(PlanValidationError):
    """A node refers to a node or parameter that was not declared."""

    def __init__(self, message: str, node_name: Optional[str] = None,
                 reference: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.node_name = node_name
        self.reference = reference


class DependencyCycle(PlanValidationError):
    """Node dependencies form a cycle, so no execution order exists."""

    def __init__(self, message: str, nodes: Optional[list] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.nodes = nodes or []


class ResumeConflict(PlanValidationError):
    """A node recorded by an earlier run was submitted with other arguments."""

    def __init__(self, message: str, node_name: Optional[str] = None,
                 recorded_args: Optional[list] = None,
                 current_args: Optional[list] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.node_name = node_name
        self.recorded_args = recorded_args
        self.current_args = current_args
