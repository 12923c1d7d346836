# SPDX-License-Identifier: MIT
"""Tests for the CLI module."""

import json
from unittest.mock import Mock, patch

import pytest
from click.testing import CliRunner

from edge_replica.cli import main
from edge_replica.config import ConfigManager, set_config_manager
from edge_replica.exceptions import FlushError, RemoteLookupError
from edge_replica.models import PrefixBootstrap
from edge_replica.registry import ReplicaRuntime, set_runtime


@pytest.fixture
def runner():
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def mock_setup_logging():
    """Keep the CLI from attaching log handlers or writing log files."""
    with patch(
        "edge_replica.cli.setup_logging", return_value=(Mock(), Mock())
    ) as mock_setup:
        yield mock_setup


@pytest.fixture
def cli_runtime(runtime, config_manager):
    """Install the fake-backed runtime as the process-wide one."""
    set_config_manager(config_manager)
    set_runtime(runtime)
    return runtime


class TestMainGroup:
    """Test cases for the command group."""

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])

        assert result.exit_code == 0
        assert "edge-replica version" in result.output

    def test_help_lists_commands(self, runner):
        result = runner.invoke(main, ["--help"])

        assert result.exit_code == 0
        for command in ("query", "execute", "pull", "config"):
            assert command in result.output


class TestQueryCommand:
    """Test cases for the query command."""

    def test_query_prints_json(self, runner, cli_runtime, fake_connector):
        result = runner.invoke(
            main,
            ["query", "notes", "SELECT ? AS one, ? AS two", "--params", '[1, "b"]'],
        )

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {
            "columns": ["one", "two"],
            "rows": [[1, "b"]],
        }
        (connection,) = fake_connector.opened
        assert connection.request.bootstrap is None
        assert connection.closed

    def test_query_partial_sync(self, runner, cli_runtime, fake_connector):
        result = runner.invoke(main, ["query", "notes", "SELECT 1", "--partial-sync"])

        assert result.exit_code == 0, result.output
        assert fake_connector.opened[0].request.bootstrap is not None

    def test_query_uses_configured_partial_sync(
        self, runner, partial_sync_config_manager, fake_client, fake_connector
    ):
        set_config_manager(partial_sync_config_manager)
        set_runtime(
            ReplicaRuntime(
                partial_sync_config_manager,
                client_factory=lambda o, t: fake_client,
                connect=fake_connector,
            )
        )

        result = runner.invoke(main, ["query", "notes", "SELECT 1"])

        assert result.exit_code == 0, result.output
        assert fake_connector.opened[0].request.bootstrap == PrefixBootstrap(
            length=1024
        )

    def test_query_full_sync_flag_overrides_config(
        self, runner, partial_sync_config_manager, fake_client, fake_connector
    ):
        set_runtime(
            ReplicaRuntime(
                partial_sync_config_manager,
                client_factory=lambda o, t: fake_client,
                connect=fake_connector,
            )
        )

        result = runner.invoke(main, ["query", "notes", "SELECT 1", "--full-sync"])

        assert result.exit_code == 0, result.output
        assert fake_connector.opened[0].request.bootstrap is None

    def test_query_creates_missing_database(self, runner, cli_runtime, fake_client):
        result = runner.invoke(main, ["query", "notes", "SELECT 1"])

        assert result.exit_code == 0, result.output
        assert fake_client.create_calls == [("notes", "default")]

    @pytest.mark.parametrize("params", ["not json", '{"a": 1}'])
    def test_query_rejects_bad_params(self, runner, cli_runtime, params):
        result = runner.invoke(main, ["query", "notes", "SELECT 1", "--params", params])

        assert result.exit_code == 2
        assert "Invalid value for '--params'" in result.output

    def test_query_invalid_name(self, runner, cli_runtime, fake_client):
        result = runner.invoke(main, ["query", "Bad_Name", "SELECT 1"])

        assert result.exit_code == 1
        assert fake_client.get_calls == []

    def test_query_lookup_failure(self, runner, cli_runtime, fake_client):
        fake_client.get_error = RemoteLookupError("Lookup failed", status=500)

        result = runner.invoke(main, ["query", "notes", "SELECT 1"])

        assert result.exit_code == 1


class TestExecuteCommand:
    """Test cases for the execute command."""

    def test_execute_pushes_write(self, runner, cli_runtime, fake_connector):
        result = runner.invoke(main, ["execute", "notes", "CREATE TABLE t (x)"])

        assert result.exit_code == 0, result.output
        (connection,) = fake_connector.opened
        assert connection.push_calls == 1
        assert connection.closed

    def test_execute_reports_unpushed_write(self, runner, cli_runtime, fake_connector):
        fake_connector.push_error = FlushError("Replica push failed: offline")

        result = runner.invoke(main, ["execute", "notes", "CREATE TABLE t (x)"])

        assert result.exit_code == 1
        # max_attempts in the test config
        assert fake_connector.opened[0].push_calls == 3

    def test_execute_statement_error(self, runner, cli_runtime, fake_connector):
        result = runner.invoke(
            main, ["execute", "notes", "INSERT INTO missing VALUES (1)"]
        )

        assert result.exit_code == 1
        assert fake_connector.opened[0].push_calls == 0


class TestPullCommand:
    """Test cases for the pull command."""

    def test_pull(self, runner, cli_runtime, fake_connector):
        result = runner.invoke(main, ["pull", "notes"])

        assert result.exit_code == 0, result.output
        assert fake_connector.opened[0].pull_calls == 1


class TestConfigCommand:
    """Test cases for the config command."""

    def test_config_masks_token(self, runner, config_manager):
        set_config_manager(config_manager)

        result = runner.invoke(main, ["config"])

        assert result.exit_code == 0
        assert "organization: acme" in result.output
        assert "***" in result.output
        assert "api-token" not in result.output

    def test_config_reports_malformed_file(self, runner, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("platform: [unclosed\n", encoding="utf-8")
        set_config_manager(ConfigManager(path))

        with patch("edge_replica.cli.get_status_logger") as mock_get_logger:
            result = runner.invoke(main, ["config"])

        assert result.exit_code == 1
        message = mock_get_logger.return_value.error.call_args[0][0]
        assert "Invalid YAML" in message
