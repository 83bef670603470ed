#!/usr/bin/env python3
"""
Command line entry point.

Usage:
    deploy-app plan   [--module VotingModule] [--parameters params.json]
    deploy-app deploy [--module VotingModule] [--network sepolia] [--dry-run [--dry-run-format json]] [--reset]
    deploy-app status [--network sepolia]
"""

import argparse
import json
import signal
import sys
from typing import Optional

from .config.loader import ConfigLoader
from .errors import ConfigurationError, PersistenceError, PlanValidationError
from .execution.models import CancellationToken, RunState
from .logging.config import configure_logging, get_logger
from .modules import UnknownModule, get_module
from .params.loader import load_module_parameters
from .persistence.deployment_store import DeploymentStore
from .runner import DeploymentRunner
from .transport.base import TransportError

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INVALID = 2
EXIT_CANCELLED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="deploy-app",
        description="Resolve, plan and execute contract deployment modules"
    )
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    parser.add_argument("--json-logs", action="store_true", help="Emit logs as JSON")

    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_config_args(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("--network", help="Network name (default: from config, else hardhat)")
        sub.add_argument("--config", default="deploy.yaml", help="YAML configuration file")
        sub.add_argument("--env-file", default=".env", help="File holding <NETWORK>_RPC_URL and PRIVATE_KEY")

    def add_module_args(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("--module", default="VotingModule", help="Module id to deploy")
        sub.add_argument("--parameters", help="JSON or YAML file of parameter overrides per module")

    plan_parser = subparsers.add_parser("plan", help="Print the resolved execution plan")
    add_module_args(plan_parser)

    deploy_parser = subparsers.add_parser("deploy", help="Execute a module's plan")
    add_module_args(deploy_parser)
    add_config_args(deploy_parser)
    deploy_parser.add_argument("--dry-run", action="store_true",
                               help="Print submissions instead of sending them")
    deploy_parser.add_argument("--dry-run-format", choices=("pretty", "json"), default="pretty",
                               help="Output format of --dry-run (default: pretty)")
    deploy_parser.add_argument("--reset", action="store_true",
                               help="Ignore and clear the journal for this network")

    status_parser = subparsers.add_parser("status", help="Show deployed addresses for a network")
    add_config_args(status_parser)

    return parser


def _load_overrides(args: argparse.Namespace) -> dict:
    if not args.parameters:
        return {}
    return load_module_parameters(args.parameters, args.module)


def cmd_plan(args: argparse.Namespace) -> int:
    module = get_module(args.module)
    values = module.resolve(_load_overrides(args))

    print(f"Module: {module.module_id}")
    print("Parameters:")
    for name, value in values.items():
        print(f"  {name} = {json.dumps(value)}")
    print("Plan:")
    for line in module.plan.describe():
        print(f"  {line}")
    return EXIT_OK


def cmd_deploy(args: argparse.Namespace) -> int:
    module = get_module(args.module)
    overrides = _load_overrides(args)

    loader = ConfigLoader.create(args.config, args.env_file)
    config = loader.build_runtime_config(args.network)
    runner = DeploymentRunner(config, dry_run=args.dry_run, dry_run_format=args.dry_run_format)

    if args.reset:
        runner.reset()

    token = CancellationToken()

    def request_cancel(signum, frame):
        logger.warning("Cancellation requested; stopping after the current node")
        token.cancel()

    previous = signal.signal(signal.SIGINT, request_cancel)
    try:
        outcome = runner.deploy(module, overrides, cancel_token=token, resume=not args.reset)
    finally:
        signal.signal(signal.SIGINT, previous)

    summary = outcome.summary()
    summary["handles"] = {
        name: handle.address for name, handle in module.handles(outcome.result).items()
    }
    print(json.dumps(summary, indent=2))

    if outcome.status == RunState.COMPLETED:
        return EXIT_OK
    if outcome.status == RunState.CANCELLED:
        return EXIT_CANCELLED
    return EXIT_FAILED


def cmd_status(args: argparse.Namespace) -> int:
    loader = ConfigLoader.create(args.config, args.env_file)
    config = loader.build_runtime_config(args.network)
    store = DeploymentStore(config.deployments_dir, config.network_name)

    addresses = store.deployed_addresses()
    if not addresses:
        print(f"No deployments recorded for network '{config.network_name}'")
    for node_id, address in sorted(addresses.items()):
        print(f"{node_id}: {address}")
    return EXIT_OK


COMMANDS = {
    "plan": cmd_plan,
    "deploy": cmd_deploy,
    "status": cmd_status,
}


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(level=args.log_level, format_json=args.json_logs)

    try:
        return COMMANDS[args.command](args)
    except (PlanValidationError, ConfigurationError) as e:
        logger.error("Validation failed", error=str(e), error_type=type(e).__name__)
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_INVALID
    except UnknownModule as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_INVALID
    except (PersistenceError, TransportError) as e:
        logger.error("Deployment aborted", error=str(e), error_type=type(e).__name__)
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
