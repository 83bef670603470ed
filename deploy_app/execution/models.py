"""
Execution data models.

Handles and call results are produced by transports; a DeploymentResult
collects them during a run and is handed to callers read-only.
"""

import threading
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Optional, Union

from ..errors import Cancelled, DeploymentFailed


class RunState(str, Enum):
    """Lifecycle states of a deployment run."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (RunState.COMPLETED, RunState.FAILED, RunState.CANCELLED)


@dataclass(frozen=True)
class ContractHandle:
    """Opaque reference to a deployed contract."""

    address: str
    contract_name: str
    abi: tuple = ()
    transaction_hash: Optional[str] = None
    block_number: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, "abi", tuple(self.abi))

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "contract_name": self.contract_name,
            "abi": list(self.abi),
            "transaction_hash": self.transaction_hash,
            "block_number": self.block_number,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ContractHandle":
        return cls(
            address=data["address"],
            contract_name=data["contract_name"],
            abi=tuple(data.get("abi") or ()),
            transaction_hash=data.get("transaction_hash"),
            block_number=data.get("block_number"),
        )


@dataclass(frozen=True)
class CallResult:
    """Outcome of a method call submitted by a Call node."""

    method: str
    address: str
    transaction_hash: Optional[str] = None
    block_number: Optional[int] = None
    return_value: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "method": self.method,
            "address": self.address,
            "transaction_hash": self.transaction_hash,
            "block_number": self.block_number,
            "return_value": self.return_value,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CallResult":
        return cls(
            method=data["method"],
            address=data["address"],
            transaction_hash=data.get("transaction_hash"),
            block_number=data.get("block_number"),
            return_value=data.get("return_value"),
        )


class DeploymentResult(Mapping):
    """
    Read-only mapping of Create node id to ContractHandle.

    Completed Call nodes are available through ``calls``. Only the executor
    and journal records add entries; callers see an immutable view.
    """

    def __init__(
        self,
        handles: Optional[Mapping[str, ContractHandle]] = None,
        calls: Optional[Mapping[str, CallResult]] = None,
        args: Optional[Mapping[str, list]] = None
    ):
        self._handles: dict[str, ContractHandle] = dict(handles or {})
        self._calls: dict[str, CallResult] = dict(calls or {})
        self._args: dict[str, list] = dict(args or {})

    def __getitem__(self, key: str) -> ContractHandle:
        return self._handles[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._handles)

    def __len__(self) -> int:
        return len(self._handles)

    def __repr__(self) -> str:
        return f"DeploymentResult({self._handles!r}, calls={list(self._calls)!r})"

    @property
    def calls(self) -> Mapping[str, CallResult]:
        return MappingProxyType(self._calls)

    def completed(self, node_id: str) -> bool:
        """Whether the given node already has a recorded result."""
        return node_id in self._handles or node_id in self._calls

    def addresses(self) -> dict[str, str]:
        return {name: handle.address for name, handle in self._handles.items()}

    def recorded_args(self, node_id: str) -> Optional[list]:
        """Arguments a completed node was submitted with, if they were recorded."""
        return self._args.get(node_id)

    def _record_handle(self, node_id: str, handle: ContractHandle,
                       args: Optional[list] = None) -> None:
        self._handles[node_id] = handle
        if args is not None:
            self._args[node_id] = args

    def _record_call(self, node_id: str, result: CallResult,
                     args: Optional[list] = None) -> None:
        self._calls[node_id] = result
        if args is not None:
            self._args[node_id] = args

    def copy(self) -> "DeploymentResult":
        return DeploymentResult(self._handles, self._calls, self._args)


class CancellationToken:
    """Thread-safe flag a caller sets to stop a run between nodes."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass
class ExecutionOutcome:
    """Final status of a run together with everything it produced."""

    run_id: str
    status: RunState
    result: DeploymentResult
    error: Optional[Union[DeploymentFailed, Cancelled]] = None
    executed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def ok(self) -> bool:
        return self.status == RunState.COMPLETED

    @property
    def failed_node(self) -> Optional[str]:
        return self.error.node if isinstance(self.error, DeploymentFailed) else None

    @property
    def cause(self) -> Optional[BaseException]:
        return self.error.cause if isinstance(self.error, DeploymentFailed) else None

    def raise_for_status(self) -> None:
        """Re-raise the error that ended the run, if any."""
        if self.error is not None:
            raise self.error

    def summary(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "status": self.status.value,
            "executed": list(self.executed),
            "skipped": list(self.skipped),
            "failed_node": self.failed_node,
            "error": str(self.error) if self.error else None,
            "addresses": self.result.addresses(),
        }
