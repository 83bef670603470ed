"""
Compiled contract artifacts.

Reads Hardhat-style artifact files (``artifacts/contracts/<Source>.sol/<Name>.json``)
produced by an external compiler run. Debug files and build-info are ignored.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

from .base import TransportPermanentError


class ArtifactNotFound(TransportPermanentError):
    """No compiled artifact exists for the requested contract."""
    pass


@dataclass(frozen=True)
class ContractArtifact:
    """ABI and creation bytecode of one compiled contract."""
    contract_name: str
    abi: tuple
    bytecode: str
    source_name: Optional[str] = None

    def constructor_inputs(self) -> list[dict[str, Any]]:
        for entry in self.abi:
            if entry.get("type") == "constructor":
                return list(entry.get("inputs", []))
        return []

    def functions(self, name: str) -> list[dict[str, Any]]:
        return [entry for entry in self.abi
                if entry.get("type") == "function" and entry.get("name") == name]

    def is_read_only(self, name: str) -> bool:
        """True when every overload of ``name`` is view or pure."""
        entries = self.functions(name)
        return bool(entries) and all(
            entry.get("stateMutability") in ("view", "pure") for entry in entries
        )


class ArtifactStore:
    """Lazily indexes and caches artifacts under one directory."""

    def __init__(self, artifacts_dir: Union[str, Path]):
        self.artifacts_dir = Path(artifacts_dir)
        self._index: Optional[dict[str, Path]] = None
        self._cache: dict[str, ContractArtifact] = {}

    def _build_index(self) -> dict[str, Path]:
        index: dict[str, Path] = {}
        if not self.artifacts_dir.exists():
            return index

        for path in sorted(self.artifacts_dir.rglob("*.json")):
            if path.name.endswith(".dbg.json") or "build-info" in path.parts:
                continue
            index.setdefault(path.stem, path)
        return index

    def available(self) -> list[str]:
        if self._index is None:
            self._index = self._build_index()
        return sorted(self._index)

    def get(self, contract_name: str) -> ContractArtifact:
        """Load the artifact for a contract name."""
        if contract_name in self._cache:
            return self._cache[contract_name]

        if self._index is None:
            self._index = self._build_index()

        path = self._index.get(contract_name)
        if path is None:
            raise ArtifactNotFound(
                f"No artifact for contract '{contract_name}' under {self.artifacts_dir}"
            )

        try:
            with open(path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise TransportPermanentError(f"Unreadable artifact {path}: {e}") from e

        if "abi" not in data or "bytecode" not in data:
            raise TransportPermanentError(f"Artifact {path} lacks abi or bytecode")

        artifact = ContractArtifact(
            contract_name=data.get("contractName", contract_name),
            abi=tuple(data["abi"]),
            bytecode=data["bytecode"],
            source_name=data.get("sourceName"),
        )
        self._cache[contract_name] = artifact
        return artifact
