"""
Plan execution and run results.
"""
from .executor import DeploymentRun, Executor, execute
from .models import (
    CallResult,
    CancellationToken,
    ContractHandle,
    DeploymentResult,
    ExecutionOutcome,
    RunState,
)

__all__ = [
    "CallResult",
    "CancellationToken",
    "ContractHandle",
    "DeploymentResult",
    "DeploymentRun",
    "ExecutionOutcome",
    "Executor",
    "RunState",
    "execute",
]
