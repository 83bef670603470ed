"""Dry-run transport that prints every submission to stdout."""

import json
import sys
from datetime import datetime, timezone
from typing import Any, Optional, TextIO

from ..config.defaults import TransportParams
from ..execution.models import CallResult, ContractHandle
from .artifacts import ArtifactStore
from .memory_transport import MemoryTransport


class StdoutTransport(MemoryTransport):
    """
    Memory-ledger transport that also reports each operation.

    Used for ``--dry-run``: nothing leaves the process, but the output shows
    exactly which creations and calls a real run would submit.
    """

    def __init__(
        self,
        name: str = "dry-run",
        config: Optional[TransportParams] = None,
        artifacts: Optional[ArtifactStore] = None,
        format: str = "pretty",
        stream: Optional[TextIO] = None
    ):
        super().__init__(name, config, artifacts)
        self.format = format
        self.stream = stream or sys.stdout

    def _create(self, contract_name: str, args: list[Any]) -> ContractHandle:
        handle = super()._create(contract_name, args)
        self._emit({
            "operation": "create",
            "contract": contract_name,
            "args": args,
            "address": handle.address,
        })
        return handle

    def _call(self, handle: ContractHandle, method: str, args: list[Any]) -> CallResult:
        result = super()._call(handle, method, args)
        self._emit({
            "operation": "call",
            "contract": handle.contract_name,
            "address": handle.address,
            "method": method,
            "args": args,
        })
        return result

    def _emit(self, record: dict[str, Any]) -> None:
        if self.format == "pretty":
            args = ", ".join(json.dumps(arg, default=str) for arg in record["args"])
            if record["operation"] == "create":
                line = f"[DRY RUN] create {record['contract']}({args}) -> {record['address']}"
            else:
                line = f"[DRY RUN] call {record['contract']}@{record['address']}.{record['method']}({args})"
        else:
            record = dict(record, timestamp=datetime.now(timezone.utc).isoformat())
            line = json.dumps(record, default=str)
        print(line, file=self.stream, flush=True)

    def health_check(self) -> bool:
        try:
            return self.stream.writable()
        except (OSError, ValueError):
            return False
