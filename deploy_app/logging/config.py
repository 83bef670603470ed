"""
Centralized logging configuration for the deployment runner.

This module provides standardized logging configuration using structlog
for all components. Executor, transports and the CLI all log through this
configuration so that a deployment run produces one consistent audit trail.
"""
import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import FilteringBoundLogger


def configure_logging(
    level: str = "INFO",
    format_json: bool = False,
    include_timestamp: bool = True,
    include_caller: bool = False,
    extra_processors: Optional[list] = None
) -> None:
    """
    Configure structlog for the entire application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_json: If True, output JSON format; otherwise human-readable
        include_timestamp: Include timestamp in log output
        include_caller: Include caller information (filename, line number)
        extra_processors: Additional structlog processors to include
    """
    log_level = getattr(logging, level.upper())

    # Log to stderr so stdout stays free for plan and dry-run output
    logging.basicConfig(
        level=log_level,
        stream=sys.stderr,
        format="%(message)s"
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder(
            parameters=[structlog.processors.CallsiteParameter.FILENAME,
                        structlog.processors.CallsiteParameter.LINENO]
        ))

    if extra_processors:
        processors.extend(extra_processors)

    if format_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)


def get_execution_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger bound with executor context.

    Every record emitted through it carries ``subsystem="executor"`` and is
    flagged as part of the deployment audit trail.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger for execution events
    """
    return get_logger(name).bind(
        subsystem="executor",
        audit_trail=True
    )


def get_transport_logger(name: str, transport_name: str) -> FilteringBoundLogger:
    """Get a logger bound with the name of a transport instance."""
    return get_logger(name).bind(
        subsystem="transport",
        transport_name=transport_name
    )


def log_run_transition(
    logger: FilteringBoundLogger,
    run_id: str,
    from_state: str,
    to_state: str,
    trigger: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log a deployment run state transition with standardized format.

    Args:
        logger: Structlog logger instance
        run_id: ID of the run transitioning
        from_state: Current state
        to_state: Target state
        trigger: What triggered the transition
        context: Additional context data
    """
    bound_logger = logger.bind(
        run_id=run_id,
        from_state=from_state,
        to_state=to_state,
        trigger=trigger,
        event_type="run_transition"
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    if to_state in ("failed", "cancelled"):
        bound_logger.warning("Run state transition")
    else:
        bound_logger.info("Run state transition")


def log_node_submission(
    logger: FilteringBoundLogger,
    run_id: str,
    node_id: str,
    kind: str,
    succeeded: bool,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log the outcome of submitting a single plan node.

    Args:
        logger: Structlog logger instance
        run_id: ID of the run the node belongs to
        node_id: Plan node identifier
        kind: "create" or "call"
        succeeded: Whether the transport accepted the submission
        context: Additional context data (address, tx hash, error)
    """
    bound_logger = logger.bind(
        run_id=run_id,
        node_id=node_id,
        node_kind=kind,
        node_result="OK" if succeeded else "FAIL",
        event_type="node_submission"
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    if succeeded:
        bound_logger.info("Node submitted")
    else:
        bound_logger.error("Node submission failed")
