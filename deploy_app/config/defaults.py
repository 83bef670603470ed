"""Default configuration parameters for the deployment runner."""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class CompilerParams:
    """Compiler settings; bytecode itself comes from prebuilt artifacts."""
    version: str = "0.8.24"                          # Solidity compiler release
    artifacts_dir: str = "artifacts"                 # Hardhat-style artifact tree


@dataclass(frozen=True)
class NetworkParams:
    """Target network parameters."""
    name: str = "hardhat"
    endpoint: Optional[str] = None                   # JSON-RPC URL
    chain_id: Optional[int] = None


@dataclass(frozen=True)
class TransportParams:
    """Submission behaviour owned by the transport."""
    retry_attempts: int = 3
    retry_delay_seconds: float = 1.0
    timeout_seconds: int = 120                       # Receipt wait
    gas_limit: Optional[int] = None                  # None = estimate
    gas_price_gwei: Optional[float] = None           # None = node default


@dataclass(frozen=True)
class DeploymentParams:
    """Local bookkeeping of deployments."""
    deployments_dir: str = "deployments"
    journal_enabled: bool = True


@dataclass(frozen=True)
class DefaultConfig:
    """Complete default configuration."""
    compiler: CompilerParams
    network: NetworkParams
    transport: TransportParams
    deployment: DeploymentParams


@dataclass(frozen=True)
class RuntimeConfig:
    """
    Fully merged configuration for one run.

    Passed explicitly to transports and the runner; nothing reads process
    environment after this value has been built.
    """
    compiler_version: str
    network_name: str
    network_endpoint: Optional[str] = None
    signing_credential: Optional[str] = field(default=None, repr=False)
    chain_id: Optional[int] = None
    artifacts_dir: str = "artifacts"
    deployments_dir: str = "deployments"
    journal_enabled: bool = True
    transport: TransportParams = field(default_factory=TransportParams)


def get_default_config() -> DefaultConfig:
    """Get the default configuration instance."""
    return DefaultConfig(
        compiler=CompilerParams(),
        network=NetworkParams(),
        transport=TransportParams(),
        deployment=DeploymentParams(),
    )
