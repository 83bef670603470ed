"""Pytest configuration and shared fixtures."""

import json
from pathlib import Path
from typing import Any, Dict

import pytest

from deploy_app.config.defaults import TransportParams
from deploy_app.execution.models import CallResult, ContractHandle
from deploy_app.transport.base import BaseTransport, TransportPermanentError
from deploy_app.transport.memory_transport import MemoryTransport


TOKENIZED_VOTING_ABI = [
    {
        "type": "constructor",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "_electionName", "type": "string"},
            {"name": "_categoryNames", "type": "string[]"},
            {"name": "_candidateNames", "type": "string[][]"},
        ],
    },
    {
        "type": "function",
        "name": "startVoting",
        "stateMutability": "nonpayable",
        "inputs": [],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "electionName",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "string"}],
    },
]


class RecordingTransport(BaseTransport):
    """Transport double that records submissions and fails on request."""

    def __init__(self, fail_creates=(), fail_calls=(), config=None):
        super().__init__("recording", config or TransportParams(retry_attempts=0, retry_delay_seconds=0))
        self.fail_creates = set(fail_creates)
        self.fail_calls = set(fail_calls)
        self.submissions = []

    def _create(self, contract_name, args):
        self.submissions.append(("create", contract_name, args))
        if contract_name in self.fail_creates:
            raise TransportPermanentError(f"create {contract_name} rejected")
        address = f"0x{len(self.submissions):040x}"
        return ContractHandle(address=address, contract_name=contract_name)

    def _call(self, handle, method, args):
        self.submissions.append(("call", method, args))
        if method in self.fail_calls:
            raise TransportPermanentError(f"call {method} reverted")
        return CallResult(method=method, address=handle.address,
                          transaction_hash=f"0x{len(self.submissions):064x}")

    def health_check(self):
        return True


@pytest.fixture
def voting_defaults() -> Dict[str, Any]:
    """Default parameters of the voting deployment."""
    return {
        "electionName": "Election 2024",
        "categoryNames": ["Best Developer", "Best Designer"],
        "candidates": [["Alice", "Bob"], ["Charlie", "Dave"]],
    }


@pytest.fixture
def recording_transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def memory_transport() -> MemoryTransport:
    return MemoryTransport(config=TransportParams(retry_attempts=0, retry_delay_seconds=0))


@pytest.fixture
def artifacts_dir(tmp_path: Path) -> Path:
    """Hardhat-style artifact tree containing TokenizedVoting."""
    contract_dir = tmp_path / "artifacts" / "contracts" / "TokenizedVoting.sol"
    contract_dir.mkdir(parents=True)
    (contract_dir / "TokenizedVoting.json").write_text(json.dumps({
        "_format": "hh-sol-artifact-1",
        "contractName": "TokenizedVoting",
        "sourceName": "contracts/TokenizedVoting.sol",
        "abi": TOKENIZED_VOTING_ABI,
        "bytecode": "0x6080604052",
    }))
    (contract_dir / "TokenizedVoting.dbg.json").write_text(json.dumps({
        "_format": "hh-sol-dbg-1",
        "buildInfo": "../../build-info/abc.json",
    }))
    return tmp_path / "artifacts"
