"""
Error classification tests.

Validation errors are raised before anything is submitted; execution errors
describe where a run stopped and carry the underlying cause.
"""

import pytest

from deploy_app.errors import (
    Cancelled,
    ConfigurationError,
    DependencyCycle,
    DeploymentFailed,
    DuplicateNodeName,
    DuplicateParameter,
    ExecutionError,
    MissingParameter,
    PersistenceError,
    PlanValidationError,
    ShapeMismatch,
    StateTransitionError,
    UnknownParameter,
    UnresolvedReference,
)
from deploy_app.graph import CallNode, CreateNode, build
from deploy_app.params import resolve


class TestErrorClassification:
    """Test error classification system."""

    @pytest.mark.parametrize("error_class", [
        ShapeMismatch,
        UnknownParameter,
        MissingParameter,
        DuplicateParameter,
        DuplicateNodeName,
        UnresolvedReference,
        DependencyCycle,
    ])
    def test_plan_validation_hierarchy(self, error_class):
        error = error_class("invalid plan")

        assert isinstance(error, PlanValidationError)
        assert error.recoverable is False
        assert error.context == {}

    def test_shape_mismatch_attributes(self):
        error = ShapeMismatch(
            "bad shape",
            parameter="candidates",
            expected_shape="list[list[scalar]]",
            actual_shape="list[scalar]",
            context={"source": "cli"}
        )

        assert error.parameter == "candidates"
        assert error.expected_shape == "list[list[scalar]]"
        assert error.actual_shape == "list[scalar]"
        assert error.context == {"source": "cli"}

    def test_deployment_failed_wraps_cause(self):
        cause = TimeoutError("receipt not available")
        error = DeploymentFailed(node="V.startVoting", cause=cause)

        assert isinstance(error, ExecutionError)
        assert error.node == "V.startVoting"
        assert error.cause is cause
        assert error.recoverable is True
        assert str(error) == "Deployment failed at node 'V.startVoting': receipt not available"

    def test_cancelled(self):
        error = Cancelled(node="V.startVoting", completed=["V"])

        assert isinstance(error, ExecutionError)
        assert error.completed == ["V"]
        assert "before node 'V.startVoting'" in str(error)
        assert "after the last node" in str(Cancelled())

    def test_system_errors(self):
        state_error = StateTransitionError("invalid", current_state="pending",
                                           attempted_transition="completed")
        assert state_error.current_state == "pending"
        assert state_error.attempted_transition == "completed"

        persistence_error = PersistenceError("disk full", operation="append",
                                             target="journal.jsonl")
        assert persistence_error.operation == "append"
        assert persistence_error.recoverable is False

        config_error = ConfigurationError("bad config", errors=["x"])
        assert config_error.errors == ["x"]


class TestValidationBeforeSubmission:
    """Errors are raised by the pure stages, with no partial result."""

    def test_resolve_raises_unknown_parameter(self):
        with pytest.raises(PlanValidationError):
            resolve([("electionName", "Election 2024")], {"electionNmae": "typo"})

    def test_build_raises_unresolved_reference(self):
        with pytest.raises(PlanValidationError):
            build([CallNode(target="V", method="startVoting")])

    def test_build_raises_duplicate_name(self):
        with pytest.raises(PlanValidationError):
            build([CreateNode(name="V", contract="A"), CreateNode(name="V", contract="A")])
