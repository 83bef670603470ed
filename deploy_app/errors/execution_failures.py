"""
Execution-time error classifications.

A run that stops early keeps every handle it already produced; these errors
describe where it stopped. Ledger submissions are not revocable, so none of
them implies a rollback.
"""

from typing import Any, Optional, Dict


class ExecutionError(Exception):
    """Base class for errors that end a deployment run."""

    def __init__(self, message: str, node: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.node = node
        self.context = context or {}
        self.recoverable = False


class DeploymentFailed(ExecutionError):
    """The transport rejected the submission for a plan node."""

    def __init__(self, node: str, cause: BaseException, **kwargs):
        super().__init__(f"Deployment failed at node '{node}': {cause}", node=node, **kwargs)
        self.cause = cause
        # Resuming from the journal is possible after a failure
        self.recoverable = True


class Cancelled(ExecutionError):
    """The caller cancelled the run before the given node was submitted."""

    def __init__(self, node: Optional[str] = None,
                 completed: Optional[list] = None, **kwargs):
        where = f"before node '{node}'" if node else "after the last node"
        super().__init__(f"Deployment cancelled {where}", node=node, **kwargs)
        self.completed = completed or []
        self.recoverable = True


class StateTransitionError(Exception):
    """Invalid run state transition."""

    def __init__(self, message: str, current_state: Optional[str] = None,
                 attempted_transition: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.current_state = current_state
        self.attempted_transition = attempted_transition
        self.context = context or {}
        self.recoverable = False


class PersistenceError(Exception):
    """Deployment journal or address file could not be read or written."""

    def __init__(self, message: str, operation: Optional[str] = None,
                 target: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.operation = operation
        self.target = target
        self.context = context or {}
        self.recoverable = False


class ConfigurationError(Exception):
    """Runtime configuration failed validation."""

    def __init__(self, message: str, errors: Optional[list] = None):
        super().__init__(message)
        self.errors = errors or []
        self.recoverable = False
