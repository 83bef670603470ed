"""
Sequential plan executor.

Walks an ExecutionPlan in order, submitting each node to a transport and
recording what it returns. One node is in flight at a time because later
nodes may need addresses produced by earlier ones. Nothing is retried here;
retry and timeout policy belong to the transport.
"""

import copy
import json
import uuid
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Optional, Protocol, Union

from ..errors import Cancelled, DeploymentFailed, PersistenceError, ResumeConflict, StateTransitionError
from ..graph.models import CallNode, ContractRef, CreateNode, ExecutionPlan
from ..logging.config import get_execution_logger, log_node_submission, log_run_transition
from ..params.models import ParameterRef
from ..params.resolver import resolve
from .models import (
    CallResult,
    CancellationToken,
    ContractHandle,
    DeploymentResult,
    ExecutionOutcome,
    RunState,
)

logger = get_execution_logger(__name__)


class Transport(Protocol):
    """Capability the executor needs from a ledger transport."""

    def submit_create(self, contract_name: str, args: list[Any]) -> ContractHandle:
        ...

    def submit_call(self, handle: ContractHandle, method: str, args: list[Any]) -> CallResult:
        ...


class DeploymentRun:
    """State machine for a single run: PENDING -> RUNNING -> terminal."""

    _ALLOWED = {
        RunState.PENDING: {RunState.RUNNING, RunState.CANCELLED},
        RunState.RUNNING: {RunState.COMPLETED, RunState.FAILED, RunState.CANCELLED},
    }

    def __init__(self, run_id: str, module_id: Optional[str] = None):
        self.run_id = run_id
        self.module_id = module_id
        self.state = RunState.PENDING
        self.started_at: Optional[datetime] = None
        self.finished_at: Optional[datetime] = None

    def transition(self, to_state: RunState, trigger: str,
                   context: Optional[dict[str, Any]] = None) -> None:
        if to_state not in self._ALLOWED.get(self.state, set()):
            raise StateTransitionError(
                f"Cannot move run {self.run_id} from {self.state.value} to {to_state.value}",
                current_state=self.state.value,
                attempted_transition=to_state.value
            )

        log_run_transition(
            logger,
            run_id=self.run_id,
            from_state=self.state.value,
            to_state=to_state.value,
            trigger=trigger,
            context=dict(context or {}, module_id=self.module_id)
        )

        now = datetime.now(timezone.utc)
        if to_state == RunState.RUNNING:
            self.started_at = now
        elif to_state.is_terminal:
            self.finished_at = now
        self.state = to_state


class Executor:
    """
    Executes plans against a transport.

    An optional journal receives every run and node event so that an
    interrupted deployment can be resumed with ``prior``.
    """

    def __init__(self, journal: Optional[Any] = None):
        self.logger = logger
        self.journal = journal

    def execute(
        self,
        plan: ExecutionPlan,
        transport: Transport,
        parameters: Optional[Mapping[str, Any]] = None,
        cancel_token: Optional[CancellationToken] = None,
        prior: Optional[DeploymentResult] = None,
        run_id: Optional[str] = None
    ) -> ExecutionOutcome:
        """
        Execute every node of a plan in order.

        Args:
            plan: Plan produced by the graph builder
            transport: Object providing ``submit_create`` and ``submit_call``
            parameters: Parameter overrides or already resolved values
            cancel_token: Checked before each node is submitted
            prior: Result of an earlier run; nodes recorded there are skipped

        Returns:
            ExecutionOutcome with status COMPLETED, FAILED or CANCELLED. On
            FAILED and CANCELLED the result still holds every handle created
            before the run stopped.

        Raises:
            PlanValidationError: Parameters do not resolve, or a node in
                ``prior`` was completed with other arguments (ResumeConflict)
            PersistenceError: The journal could not record a completed node
        """
        values = resolve(plan.parameters, parameters)
        result = prior.copy() if prior is not None else DeploymentResult()
        if prior is not None:
            _check_prior(plan, values, result)

        run = DeploymentRun(run_id or uuid.uuid4().hex[:12], plan.module_id)
        outcome = ExecutionOutcome(run_id=run.run_id, status=run.state, result=result)

        run.transition(RunState.RUNNING, trigger="execute", context={"node_count": len(plan)})
        outcome.started_at = run.started_at
        if self.journal is not None:
            self.journal.record_run_started(run.run_id, plan)

        for node in plan:
            if result.completed(node.name):
                outcome.skipped.append(node.name)
                self.logger.info("Skipping node completed in a previous run",
                                 run_id=run.run_id, node_id=node.name)
                continue

            if cancel_token is not None and cancel_token.cancelled:
                outcome.error = Cancelled(node=node.name, completed=list(outcome.executed))
                return self._finish(run, outcome, RunState.CANCELLED, trigger="cancel_requested")

            args = [_substitute(arg, values, result) for arg in node.args]
            try:
                response = self._submit(node, transport, args, result)
            except Exception as e:
                log_node_submission(
                    self.logger,
                    run_id=run.run_id,
                    node_id=node.name,
                    kind=node.kind.value,
                    succeeded=False,
                    context={"error": str(e), "error_type": type(e).__name__}
                )
                outcome.error = DeploymentFailed(node=node.name, cause=e)
                if self.journal is not None:
                    self.journal.record_failure(run.run_id, node, e)
                return self._finish(run, outcome, RunState.FAILED, trigger="node_failed")

            try:
                self._record(run, node, response, args, result)
            except PersistenceError as e:
                # The submission landed; only its record is missing
                self.logger.error("Journal write failed after submission",
                                  run_id=run.run_id, node_id=node.name, error=str(e))
                raise
            outcome.executed.append(node.name)

        return self._finish(run, outcome, RunState.COMPLETED, trigger="plan_exhausted")

    def _submit(self, node: Union[CreateNode, CallNode], transport: Transport,
                args: list[Any], result: DeploymentResult) -> Union[ContractHandle, CallResult]:
        if isinstance(node, CreateNode):
            return transport.submit_create(node.contract, args)
        # Present because the plan orders targets before their calls
        return transport.submit_call(result[node.target], node.method, args)

    def _record(self, run: DeploymentRun, node: Union[CreateNode, CallNode],
                response: Union[ContractHandle, CallResult], args: list[Any],
                result: DeploymentResult) -> None:
        if isinstance(node, CreateNode):
            result._record_handle(node.name, response, args)
            context = {"contract": node.contract, "address": response.address,
                       "transaction_hash": response.transaction_hash}
        else:
            result._record_call(node.name, response, args)
            context = {"method": node.method, "address": response.address,
                       "transaction_hash": response.transaction_hash}

        log_node_submission(
            self.logger,
            run_id=run.run_id,
            node_id=node.name,
            kind=node.kind.value,
            succeeded=True,
            context=context
        )

        if self.journal is None:
            return
        if isinstance(node, CreateNode):
            self.journal.record_create(run.run_id, node, response, args)
        else:
            self.journal.record_call(run.run_id, node, response, args)

    def _finish(self, run: DeploymentRun, outcome: ExecutionOutcome,
                status: RunState, trigger: str) -> ExecutionOutcome:
        context = {"executed": len(outcome.executed), "skipped": len(outcome.skipped)}
        if outcome.error is not None:
            context["error"] = str(outcome.error)
        run.transition(status, trigger=trigger, context=context)

        outcome.status = run.state
        outcome.finished_at = run.finished_at
        if self.journal is not None:
            self.journal.record_run_finished(run.run_id, outcome)
        return outcome


def execute(
    plan: ExecutionPlan,
    transport: Transport,
    parameters: Optional[Mapping[str, Any]] = None,
    cancel_token: Optional[CancellationToken] = None,
    prior: Optional[DeploymentResult] = None
) -> ExecutionOutcome:
    """Execute a plan with a journal-less executor."""
    return Executor().execute(
        plan,
        transport,
        parameters=parameters,
        cancel_token=cancel_token,
        prior=prior
    )


def _substitute(value: Any, values: Mapping[str, Any], result: DeploymentResult) -> Any:
    if isinstance(value, ParameterRef):
        return copy.deepcopy(values[value.name])
    if isinstance(value, ContractRef):
        return result[value.node].address
    if isinstance(value, (list, tuple)):
        return [_substitute(item, values, result) for item in value]
    if isinstance(value, dict):
        return {key: _substitute(item, values, result) for key, item in value.items()}
    return value


def _check_prior(plan: ExecutionPlan, values: Mapping[str, Any], prior: DeploymentResult) -> None:
    """Refuse to skip nodes whose recorded arguments differ from this run's."""
    for node in plan:
        if not prior.completed(node.name):
            continue
        recorded = prior.recorded_args(node.name)
        if recorded is None:
            continue

        try:
            current = [_substitute(arg, values, prior) for arg in node.args]
        except KeyError:
            current = None

        if current is None or _normalized(current) != _normalized(recorded):
            raise ResumeConflict(
                f"Node '{node.name}' was completed by an earlier run with different "
                f"arguments; reset the deployment journal to redeploy it",
                node_name=node.name,
                recorded_args=recorded,
                current_args=current
            )


def _normalized(args: list[Any]) -> Any:
    # Journal replay yields JSON types
    return json.loads(json.dumps(args, default=str))
