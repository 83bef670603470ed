"""
Deployment journal and address registry.

Each network gets its own directory under the deployments root::

    deployments/<network>/journal.jsonl           one JSON event per line
    deployments/<network>/deployed_addresses.json node id -> address

The journal is append-only. Replaying it yields the DeploymentResult of
every node that completed, which the executor accepts as ``prior`` to
resume an interrupted deployment.
"""

import fcntl
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Union

from ..errors import PersistenceError
from ..execution.models import CallResult, ContractHandle, DeploymentResult, ExecutionOutcome
from ..graph.models import CallNode, CreateNode, ExecutionPlan
from ..logging.config import get_logger

logger = get_logger(__name__)

JOURNAL_FILE = "journal.jsonl"
ADDRESSES_FILE = "deployed_addresses.json"


class DeploymentStore:
    """File-based journal of deployment runs for one network."""

    def __init__(self, deployments_dir: Union[str, Path], network_name: str):
        self.network_name = network_name
        self.directory = Path(deployments_dir) / network_name
        self.journal_path = self.directory / JOURNAL_FILE
        self.addresses_path = self.directory / ADDRESSES_FILE
        self.logger = logger.bind(network=network_name)

    def _append(self, event: dict[str, Any]) -> None:
        event = dict(event, timestamp=datetime.now(timezone.utc).isoformat())
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            with open(self.journal_path, "a") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_EX)
                json.dump(event, f, default=str)
                f.write("\n")
        except OSError as e:
            raise PersistenceError(
                f"Cannot write deployment journal: {e}",
                operation="append",
                target=str(self.journal_path)
            ) from e

    def _write_addresses(self, addresses: dict[str, str]) -> None:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            with open(self.addresses_path, "w") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_EX)
                json.dump(addresses, f, indent=2, sort_keys=True)
                f.write("\n")
        except OSError as e:
            raise PersistenceError(
                f"Cannot write deployed addresses: {e}",
                operation="write",
                target=str(self.addresses_path)
            ) from e

    def record_run_started(self, run_id: str, plan: ExecutionPlan) -> None:
        self._append({
            "type": "run_started",
            "run_id": run_id,
            "module_id": plan.module_id,
            "nodes": plan.node_ids(),
        })

    def record_create(self, run_id: str, node: CreateNode, handle: ContractHandle,
                      args: Optional[list] = None) -> None:
        self._append({
            "type": "create_completed",
            "run_id": run_id,
            "node_id": node.name,
            "args": args,
            "handle": handle.to_dict(),
        })
        addresses = self.deployed_addresses()
        addresses[node.name] = handle.address
        self._write_addresses(addresses)

    def record_call(self, run_id: str, node: CallNode, result: CallResult,
                    args: Optional[list] = None) -> None:
        self._append({
            "type": "call_completed",
            "run_id": run_id,
            "node_id": node.name,
            "args": args,
            "result": result.to_dict(),
        })

    def record_failure(self, run_id: str, node: Union[CreateNode, CallNode], error: BaseException) -> None:
        self._append({
            "type": "node_failed",
            "run_id": run_id,
            "node_id": node.name,
            "error": str(error),
            "error_type": type(error).__name__,
        })

    def record_run_finished(self, run_id: str, outcome: ExecutionOutcome) -> None:
        self._append({
            "type": "run_finished",
            "run_id": run_id,
            "status": outcome.status.value,
            "error": str(outcome.error) if outcome.error else None,
        })
        self.logger.info("Run recorded", run_id=run_id, status=outcome.status.value,
                         journal=str(self.journal_path))

    def events(self) -> list[dict[str, Any]]:
        """Read every journal event, oldest first."""
        if not self.journal_path.exists():
            return []

        events = []
        try:
            with open(self.journal_path) as f:
                for line_no, line in enumerate(f, start=1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        events.append(json.loads(line))
                    except json.JSONDecodeError as e:
                        raise PersistenceError(
                            f"Corrupt journal line {line_no}: {e}",
                            operation="read",
                            target=str(self.journal_path)
                        ) from e
        except OSError as e:
            raise PersistenceError(
                f"Cannot read deployment journal: {e}",
                operation="read",
                target=str(self.journal_path)
            ) from e
        return events

    def load_result(self) -> DeploymentResult:
        """Replay the journal into the result of all completed nodes."""
        handles: dict[str, ContractHandle] = {}
        calls: dict[str, CallResult] = {}
        args: dict[str, list] = {}

        for event in self.events():
            if event.get("type") == "create_completed":
                handles[event["node_id"]] = ContractHandle.from_dict(event["handle"])
            elif event.get("type") == "call_completed":
                calls[event["node_id"]] = CallResult.from_dict(event["result"])
            else:
                continue
            if event.get("args") is not None:
                args[event["node_id"]] = event["args"]

        return DeploymentResult(handles, calls, args)

    def deployed_addresses(self) -> dict[str, str]:
        if not self.addresses_path.exists():
            return {}
        try:
            with open(self.addresses_path) as f:
                return dict(json.load(f))
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(
                f"Cannot read deployed addresses: {e}",
                operation="read",
                target=str(self.addresses_path)
            ) from e

    def reset(self) -> None:
        """Forget every recorded deployment for this network."""
        for path in (self.journal_path, self.addresses_path):
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                raise PersistenceError(
                    f"Cannot remove {path.name}: {e}",
                    operation="delete",
                    target=str(path)
                ) from e
        self.logger.info("Deployment journal reset", directory=str(self.directory))
