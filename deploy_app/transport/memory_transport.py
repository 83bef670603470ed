"""In-memory ledger transport."""

import hashlib
import json
from dataclasses import dataclass, field
from typing import Any, Optional

from ..config.defaults import TransportParams
from ..execution.models import CallResult, ContractHandle
from .artifacts import ArtifactStore
from .base import BaseTransport, TransportPermanentError

DEFAULT_DEPLOYER = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


@dataclass
class DeployedContract:
    """A contract living on the in-memory ledger."""
    contract_name: str
    address: str
    constructor_args: list[Any]
    calls: list[tuple[str, list[Any]]] = field(default_factory=list)


class MemoryTransport(BaseTransport):
    """
    Transport backed by a process-local ledger.

    Addresses and transaction hashes are derived deterministically from the
    deployer and a nonce, so repeated runs in a fresh transport produce the
    same addresses. When an ArtifactStore is given, constructor arity and
    method names are checked against the ABI.
    """

    def __init__(
        self,
        name: str = "memory",
        config: Optional[TransportParams] = None,
        artifacts: Optional[ArtifactStore] = None,
        deployer: str = DEFAULT_DEPLOYER
    ):
        super().__init__(name, config)
        self.artifacts = artifacts
        self.deployer = deployer
        self.nonce = 0
        self.block_number = 0
        self.contracts: dict[str, DeployedContract] = {}

    def _next_transaction(self, payload: Any) -> tuple[str, int]:
        digest = hashlib.sha256(
            f"{self.deployer}:{self.nonce}:{json.dumps(payload, default=str, sort_keys=True)}".encode()
        ).hexdigest()
        self.nonce += 1
        self.block_number += 1
        return f"0x{digest}", self.block_number

    def _derive_address(self) -> str:
        digest = hashlib.sha256(f"{self.deployer.lower()}:{self.nonce}".encode()).hexdigest()
        return f"0x{digest[-40:]}"

    def _create(self, contract_name: str, args: list[Any]) -> ContractHandle:
        abi: tuple = ()
        if self.artifacts is not None:
            artifact = self.artifacts.get(contract_name)
            expected = len(artifact.constructor_inputs())
            if expected != len(args):
                raise TransportPermanentError(
                    f"{contract_name} constructor takes {expected} arguments, got {len(args)}"
                )
            abi = artifact.abi

        address = self._derive_address()
        tx_hash, block = self._next_transaction({"create": contract_name, "args": args})
        self.contracts[address] = DeployedContract(
            contract_name=contract_name,
            address=address,
            constructor_args=list(args)
        )

        self.logger.debug("Contract created on memory ledger",
                          contract=contract_name, address=address)
        return ContractHandle(
            address=address,
            contract_name=contract_name,
            abi=abi,
            transaction_hash=tx_hash,
            block_number=block
        )

    def _call(self, handle: ContractHandle, method: str, args: list[Any]) -> CallResult:
        contract = self.contracts.get(handle.address)
        if contract is None:
            raise TransportPermanentError(f"No contract at {handle.address}")

        if handle.abi and not any(
            entry.get("type") == "function" and entry.get("name") == method
            for entry in handle.abi
        ):
            raise TransportPermanentError(f"{handle.contract_name} has no method '{method}'")

        tx_hash, block = self._next_transaction(
            {"call": method, "address": handle.address, "args": args}
        )
        contract.calls.append((method, list(args)))

        return CallResult(
            method=method,
            address=handle.address,
            transaction_hash=tx_hash,
            block_number=block
        )

    def health_check(self) -> bool:
        return True
