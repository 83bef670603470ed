"""Tests for the command line interface."""

import json

import pytest

from conftest import RecordingTransport
from deploy_app.cli import EXIT_FAILED, EXIT_INVALID, EXIT_OK, build_parser, main
from deploy_app.persistence import DeploymentStore

CREATE_ID = "VotingModule#TokenizedVoting"


@pytest.fixture(autouse=True)
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return tmp_path


def write_parameters(path, section):
    path.write_text(json.dumps({"VotingModule": section}))
    return str(path)


class TestParser:
    """Test argument parsing."""

    def test_defaults(self):
        args = build_parser().parse_args(["deploy"])

        assert args.module == "VotingModule"
        assert args.config == "deploy.yaml"
        assert args.env_file == ".env"
        assert args.network is None
        assert not args.dry_run

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestPlanCommand:
    """Test `deploy-app plan`."""

    def test_default_plan(self, capsys):
        assert main(["plan"]) == EXIT_OK

        out = capsys.readouterr().out
        assert "Module: VotingModule" in out
        assert 'electionName = "Election 2024"' in out
        assert f"1. {CREATE_ID} = create TokenizedVoting(" in out
        assert f"2. {CREATE_ID}.startVoting = call {CREATE_ID}.startVoting()" in out

    def test_plan_with_parameters_file(self, capsys, workdir):
        path = write_parameters(workdir / "params.json", {"electionName": "Election 2025"})

        assert main(["plan", "--parameters", path]) == EXIT_OK
        assert 'electionName = "Election 2025"' in capsys.readouterr().out

    def test_shape_mismatch_is_invalid(self, capsys, workdir):
        path = write_parameters(workdir / "params.json", {"candidates": ["Alice", "Bob"]})

        assert main(["plan", "--parameters", path]) == EXIT_INVALID
        assert "candidates" in capsys.readouterr().err

    def test_unknown_module(self, capsys):
        assert main(["plan", "--module", "NoSuchModule"]) == EXIT_INVALID
        assert "Unknown module" in capsys.readouterr().err

    def test_missing_parameters_file(self):
        assert main(["plan", "--parameters", "missing.json"]) == EXIT_FAILED


class TestDeployCommand:
    """Test `deploy-app deploy`."""

    def test_deploy_to_local_network(self, capsys):
        assert main(["deploy"]) == EXIT_OK

        summary = json.loads(capsys.readouterr().out)
        assert summary["status"] == "completed"
        assert summary["executed"] == [CREATE_ID, f"{CREATE_ID}.startVoting"]
        assert summary["handles"]["tokenizedVoting"] == summary["addresses"][CREATE_ID]

    def test_dry_run(self, capsys, workdir):
        assert main(["deploy", "--dry-run"]) == EXIT_OK

        out = capsys.readouterr().out
        assert "[DRY RUN] create TokenizedVoting(" in out
        assert ".startVoting()" in out
        assert not (workdir / "deployments").exists()

    def test_dry_run_json_format(self, capsys):
        assert main(["deploy", "--dry-run", "--dry-run-format", "json"]) == EXIT_OK

        lines = capsys.readouterr().out.splitlines()
        create = json.loads(lines[0])
        call = json.loads(lines[1])
        assert create["operation"] == "create"
        assert create["contract"] == "TokenizedVoting"
        assert call["method"] == "startVoting"

    def test_malformed_config_file(self, capsys, workdir):
        (workdir / "deploy.yaml").write_text("networks: [unclosed\n")

        assert main(["deploy"]) == EXIT_INVALID
        assert "not valid YAML" in capsys.readouterr().err

    def test_invalid_config(self, capsys, workdir):
        (workdir / "deploy.yaml").write_text("transport:\n  retry_attempts: -1\n")

        assert main(["deploy"]) == EXIT_INVALID
        assert "transport.retry_attempts" in capsys.readouterr().err

    def test_remote_network_without_credential(self, capsys, workdir):
        (workdir / "deploy.yaml").write_text(
            "networks:\n  sepolia:\n    endpoint: https://sepolia.example.org\n"
        )

        assert main(["deploy", "--network", "sepolia"]) == EXIT_FAILED
        assert "No signing credential" in capsys.readouterr().err

    def test_failed_deployment(self, capsys, monkeypatch):
        monkeypatch.setattr(
            "deploy_app.runner.create_transport",
            lambda config, **kwargs: RecordingTransport(fail_calls={"startVoting"})
        )

        assert main(["deploy"]) == EXIT_FAILED

        summary = json.loads(capsys.readouterr().out)
        assert summary["status"] == "failed"
        assert summary["failed_node"] == f"{CREATE_ID}.startVoting"
        assert CREATE_ID in summary["addresses"]


class TestStatusCommand:
    """Test `deploy-app status`."""

    def test_no_deployments(self, capsys):
        assert main(["status", "--network", "sepolia"]) == EXIT_OK
        assert "No deployments recorded for network 'sepolia'" in capsys.readouterr().out

    def test_recorded_addresses(self, capsys, workdir):
        store = DeploymentStore(workdir / "deployments", "sepolia")
        store._write_addresses({CREATE_ID: "0x" + "ab" * 20})

        assert main(["status", "--network", "sepolia"]) == EXIT_OK
        assert f"{CREATE_ID}: 0x{'ab' * 20}" in capsys.readouterr().out
