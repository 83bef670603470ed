"""Tests for sequential plan execution."""

from unittest.mock import Mock

import pytest

from conftest import RecordingTransport
from deploy_app.errors import (
    Cancelled,
    DeploymentFailed,
    PersistenceError,
    ResumeConflict,
    ShapeMismatch,
    StateTransitionError,
)
from deploy_app.execution import (
    CancellationToken,
    ContractHandle,
    DeploymentResult,
    DeploymentRun,
    Executor,
    RunState,
    execute,
)
from deploy_app.graph import CallNode, ContractRef, CreateNode, build
from deploy_app.params import Parameter, ParameterRef
from deploy_app.transport.base import TransportPermanentError


def voting_plan():
    return build(
        [
            CreateNode(
                name="V",
                contract="TokenizedVoting",
                args=[ParameterRef("electionName"), ParameterRef("categoryNames"),
                      ParameterRef("candidates")],
            ),
            CallNode(target="V", method="startVoting", args=[]),
        ],
        [
            Parameter("electionName", "Election 2024"),
            Parameter("categoryNames", ["Best Developer", "Best Designer"]),
            Parameter("candidates", [["Alice", "Bob"], ["Charlie", "Dave"]]),
        ],
    )


class TestExecute:
    """Test executing plans against a transport."""

    def test_successful_run(self, recording_transport, voting_defaults):
        outcome = execute(voting_plan(), recording_transport)

        assert outcome.status == RunState.COMPLETED
        assert outcome.ok
        assert outcome.error is None
        assert list(outcome.result) == ["V"]
        assert outcome.result["V"].contract_name == "TokenizedVoting"
        assert "V.startVoting" in outcome.result.calls
        assert outcome.executed == ["V", "V.startVoting"]

        assert recording_transport.submissions == [
            ("create", "TokenizedVoting", [
                voting_defaults["electionName"],
                voting_defaults["categoryNames"],
                voting_defaults["candidates"],
            ]),
            ("call", "startVoting", []),
        ]

    def test_parameter_overrides_are_substituted(self, recording_transport):
        outcome = execute(voting_plan(), recording_transport,
                          parameters={"electionName": "Election 2025"})

        assert outcome.ok
        assert recording_transport.submissions[0][2][0] == "Election 2025"

    def test_invalid_override_fails_before_submission(self, recording_transport):
        with pytest.raises(ShapeMismatch):
            execute(voting_plan(), recording_transport, parameters={"candidates": ["Alice"]})

        assert recording_transport.submissions == []

    def test_call_failure_keeps_created_handle(self):
        transport = RecordingTransport(fail_calls={"startVoting"})
        outcome = execute(voting_plan(), transport)

        assert outcome.status == RunState.FAILED
        assert outcome.failed_node == "V.startVoting"
        assert isinstance(outcome.cause, TransportPermanentError)
        assert "V" in outcome.result
        assert outcome.result["V"].address.startswith("0x")
        assert outcome.executed == ["V"]

        with pytest.raises(DeploymentFailed) as exc_info:
            outcome.raise_for_status()
        assert exc_info.value.node == "V.startVoting"
        assert exc_info.value.cause is outcome.cause

    def test_create_failure_stops_before_call(self):
        transport = RecordingTransport(fail_creates={"TokenizedVoting"})
        outcome = execute(voting_plan(), transport)

        assert outcome.status == RunState.FAILED
        assert outcome.failed_node == "V"
        assert len(outcome.result) == 0
        assert [s[0] for s in transport.submissions] == ["create"]

    def test_unexpected_transport_exception_is_the_cause(self):
        transport = Mock()
        error = RuntimeError("socket closed")
        transport.submit_create.side_effect = error

        outcome = execute(voting_plan(), transport)

        assert outcome.status == RunState.FAILED
        assert outcome.cause is error
        transport.submit_call.assert_not_called()

    def test_contract_ref_resolves_to_address(self, recording_transport):
        plan = build([
            CreateNode(name="Token", contract="VoteToken"),
            CreateNode(name="Voting", contract="TokenizedVoting", args=[ContractRef("Token"), [ContractRef("Token")]]),
        ])
        outcome = execute(plan, recording_transport)

        token_address = outcome.result["Token"].address
        assert recording_transport.submissions[1] == (
            "create", "TokenizedVoting", [token_address, [token_address]]
        )

    def test_literal_arguments_pass_through(self, recording_transport):
        plan = build([
            CreateNode(name="V", contract="TokenizedVoting", args=["Local", ["A"], [["x", "y"]]]),
        ])
        execute(plan, recording_transport)

        assert recording_transport.submissions[0][2] == ["Local", ["A"], [["x", "y"]]]

    def test_result_is_read_only(self, recording_transport):
        outcome = execute(voting_plan(), recording_transport)

        with pytest.raises(TypeError):
            outcome.result["X"] = outcome.result["V"]
        with pytest.raises(TypeError):
            outcome.result.calls["X"] = None


class TestCancellation:
    """Test cancelling a run between nodes."""

    def test_cancel_before_start(self, recording_transport):
        token = CancellationToken()
        token.cancel()

        outcome = execute(voting_plan(), recording_transport, cancel_token=token)

        assert outcome.status == RunState.CANCELLED
        assert isinstance(outcome.error, Cancelled)
        assert outcome.error.node == "V"
        assert recording_transport.submissions == []

    def test_cancel_after_first_node(self):
        token = CancellationToken()

        class CancellingTransport(RecordingTransport):
            def _create(self, contract_name, args):
                handle = super()._create(contract_name, args)
                token.cancel()
                return handle

        transport = CancellingTransport()
        outcome = execute(voting_plan(), transport, cancel_token=token)

        assert outcome.status == RunState.CANCELLED
        assert outcome.status != RunState.FAILED
        assert "V" in outcome.result
        assert outcome.error.node == "V.startVoting"
        assert outcome.error.completed == ["V"]
        with pytest.raises(Cancelled):
            outcome.raise_for_status()


class TestResume:
    """Test resuming from a prior result."""

    def test_prior_nodes_are_skipped(self, recording_transport):
        handle = ContractHandle(address="0xabc", contract_name="TokenizedVoting")
        prior = DeploymentResult({"V": handle})

        outcome = execute(voting_plan(), recording_transport, prior=prior)

        assert outcome.ok
        assert outcome.skipped == ["V"]
        assert outcome.executed == ["V.startVoting"]
        assert outcome.result["V"] is handle
        assert recording_transport.submissions == [("call", "startVoting", [])]
        # The prior result itself is not modified
        assert "V.startVoting" not in prior.calls

    def test_matching_recorded_arguments_are_skipped(self, recording_transport, voting_defaults):
        handle = ContractHandle(address="0xabc", contract_name="TokenizedVoting")
        recorded = [voting_defaults["electionName"], voting_defaults["categoryNames"],
                    voting_defaults["candidates"]]
        prior = DeploymentResult({"V": handle}, args={"V": recorded})

        outcome = execute(voting_plan(), recording_transport, prior=prior)

        assert outcome.ok
        assert outcome.skipped == ["V"]

    def test_changed_parameter_conflicts_with_recorded_node(self, recording_transport):
        first = execute(voting_plan(), RecordingTransport(fail_calls={"startVoting"}))
        assert first.result.recorded_args("V")[0] == "Election 2024"

        with pytest.raises(ResumeConflict) as exc_info:
            execute(voting_plan(), recording_transport,
                    parameters={"electionName": "Election 2025"}, prior=first.result)

        assert exc_info.value.node_name == "V"
        assert exc_info.value.recorded_args[0] == "Election 2024"
        assert exc_info.value.current_args[0] == "Election 2025"
        assert recording_transport.submissions == []

    def test_tuples_match_recorded_lists(self, recording_transport):
        plan = build([CreateNode(name="V", contract="TokenizedVoting", args=[("a", "b")])])
        prior = DeploymentResult(
            {"V": ContractHandle(address="0xabc", contract_name="TokenizedVoting")},
            args={"V": [["a", "b"]]}
        )

        assert execute(plan, recording_transport, prior=prior).skipped == ["V"]

    def test_fully_recorded_plan_submits_nothing(self, recording_transport):
        first = execute(voting_plan(), recording_transport)
        second_transport = RecordingTransport()

        outcome = execute(voting_plan(), second_transport, prior=first.result)

        assert outcome.ok
        assert outcome.skipped == ["V", "V.startVoting"]
        assert second_transport.submissions == []


class TestJournalHooks:
    """Test that the executor reports events to its journal."""

    def test_events_on_success(self, recording_transport):
        journal = Mock()
        Executor(journal=journal).execute(voting_plan(), recording_transport, run_id="run-1")

        journal.record_run_started.assert_called_once()
        journal.record_create.assert_called_once()
        journal.record_call.assert_called_once()
        journal.record_failure.assert_not_called()
        run_id, outcome = journal.record_run_finished.call_args[0]
        assert run_id == "run-1"
        assert outcome.status == RunState.COMPLETED

    def test_events_on_failure(self):
        journal = Mock()
        transport = RecordingTransport(fail_calls={"startVoting"})
        Executor(journal=journal).execute(voting_plan(), transport)

        run_id, node, error = journal.record_failure.call_args[0]
        assert node.name == "V.startVoting"
        assert isinstance(error, TransportPermanentError)

    def test_arguments_passed_to_journal(self, recording_transport, voting_defaults):
        journal = Mock()
        Executor(journal=journal).execute(voting_plan(), recording_transport)

        _, node, handle, args = journal.record_create.call_args[0]
        assert node.name == "V"
        assert args[2] == voting_defaults["candidates"]
        assert journal.record_call.call_args[0][3] == []

    def test_journal_failure_is_not_a_deployment_failure(self, recording_transport):
        journal = Mock()
        journal.record_create.side_effect = PersistenceError("disk full", operation="append")

        with pytest.raises(PersistenceError, match="disk full"):
            Executor(journal=journal).execute(voting_plan(), recording_transport)

        journal.record_failure.assert_not_called()
        journal.record_call.assert_not_called()
        assert [s[0] for s in recording_transport.submissions] == ["create"]


class TestDeploymentRun:
    """Test the run state machine."""

    def test_lifecycle(self):
        run = DeploymentRun("r1")
        assert run.state == RunState.PENDING

        run.transition(RunState.RUNNING, trigger="test")
        assert run.started_at is not None

        run.transition(RunState.COMPLETED, trigger="test")
        assert run.state.is_terminal
        assert run.finished_at is not None

    def test_cannot_complete_from_pending(self):
        run = DeploymentRun("r1")

        with pytest.raises(StateTransitionError) as exc_info:
            run.transition(RunState.COMPLETED, trigger="test")
        assert exc_info.value.current_state == "pending"

    def test_terminal_states_are_final(self):
        run = DeploymentRun("r1")
        run.transition(RunState.RUNNING, trigger="test")
        run.transition(RunState.FAILED, trigger="test")

        with pytest.raises(StateTransitionError):
            run.transition(RunState.RUNNING, trigger="retry")
