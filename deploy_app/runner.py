"""
Main deployment coordinator.

Wires configuration, transport, journal and executor together:
Parameters -> Plan -> Executor -> Transport, with every completed node
recorded so a later run resumes where an earlier one stopped.
"""

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

import structlog

from .config.defaults import RuntimeConfig
from .execution.executor import Executor
from .execution.models import CancellationToken, ExecutionOutcome
from .graph.module import DeploymentModule
from .persistence.deployment_store import DeploymentStore
from .transport.artifacts import ArtifactStore
from .transport.base import BaseTransport
from .transport.memory_transport import MemoryTransport
from .transport.stdout_transport import StdoutTransport
from .transport.web3_transport import Web3Transport

logger = structlog.get_logger(__name__)

# Networks simulated in-process when no endpoint is configured
LOCAL_NETWORKS = ("hardhat", "memory")


def create_transport(config: RuntimeConfig, dry_run: bool = False,
                     dry_run_format: str = "pretty") -> BaseTransport:
    """Pick the transport for a runtime configuration."""
    artifacts_dir = Path(config.artifacts_dir)
    artifacts = ArtifactStore(artifacts_dir) if artifacts_dir.exists() else None

    if dry_run:
        return StdoutTransport(config=config.transport, artifacts=artifacts, format=dry_run_format)

    if config.network_name in LOCAL_NETWORKS and not config.network_endpoint:
        return MemoryTransport(name=config.network_name, config=config.transport, artifacts=artifacts)

    return Web3Transport(config, artifacts=artifacts)


class DeploymentRunner:
    """
    Coordinates deployments of modules onto one network.

    Manages the pipeline:
    Overrides -> Resolved parameters -> Prior journal -> Execution -> Journal
    """

    def __init__(
        self,
        config: RuntimeConfig,
        transport: Optional[BaseTransport] = None,
        store: Optional[DeploymentStore] = None,
        dry_run: bool = False,
        dry_run_format: str = "pretty"
    ) -> None:
        self.logger = logger.bind(network=config.network_name)
        self.config = config
        self.dry_run = dry_run
        self.transport = transport or create_transport(
            config, dry_run=dry_run, dry_run_format=dry_run_format
        )

        # In-process ledgers do not outlive the process; nothing to resume
        ephemeral = isinstance(self.transport, MemoryTransport)
        if store is None and config.journal_enabled and not ephemeral:
            store = DeploymentStore(config.deployments_dir, config.network_name)
        self.store = store
        self.executor = Executor(journal=self.store)

        self.logger.info(
            "Deployment runner initialized",
            transport=self.transport.name,
            compiler_version=config.compiler_version,
            journal=str(self.store.directory) if self.store else None,
            dry_run=dry_run
        )

    def deploy(
        self,
        module: DeploymentModule,
        overrides: Optional[Mapping[str, Any]] = None,
        cancel_token: Optional[CancellationToken] = None,
        resume: bool = True
    ) -> ExecutionOutcome:
        """
        Deploy a module.

        Parameter validation runs before anything is submitted. With
        ``resume`` set, nodes recorded in this network's journal are skipped.
        """
        values = module.resolve(overrides)

        prior = None
        if resume and self.store is not None:
            prior = self.store.load_result()
            if len(prior) or prior.calls:
                self.logger.info(
                    "Resuming from journal",
                    module_id=module.module_id,
                    recorded_contracts=len(prior),
                    recorded_calls=len(prior.calls)
                )

        outcome = self.executor.execute(
            module.plan,
            self.transport,
            parameters=values,
            cancel_token=cancel_token,
            prior=prior
        )

        self.logger.info(
            "Deployment finished",
            module_id=module.module_id,
            status=outcome.status.value,
            executed=len(outcome.executed),
            skipped=len(outcome.skipped),
            transport_stats=self.transport.get_stats()
        )
        return outcome

    def reset(self) -> None:
        """Discard this network's journal so the next deploy starts fresh."""
        if self.store is not None:
            self.store.reset()

    def status(self) -> dict[str, str]:
        """Addresses recorded for this network."""
        if self.store is None:
            return {}
        return self.store.deployed_addresses()
