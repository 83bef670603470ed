"""
Ledger transports.
"""
from .artifacts import ArtifactNotFound, ArtifactStore, ContractArtifact
from .base import (
    BaseTransport,
    TransportError,
    TransportPermanentError,
    TransportRetryableError,
)
from .memory_transport import MemoryTransport
from .stdout_transport import StdoutTransport

__all__ = [
    "ArtifactNotFound",
    "ArtifactStore",
    "BaseTransport",
    "ContractArtifact",
    "MemoryTransport",
    "StdoutTransport",
    "TransportError",
    "TransportPermanentError",
    "TransportRetryableError",
]
