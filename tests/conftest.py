# SPDX-License-Identifier: MIT
"""Pytest configuration and shared fixtures."""

import pytest
import yaml

from edge_replica.background import TaskBackgroundRunner
from edge_replica.config import ConfigManager, reset_config_manager
from edge_replica.flush import FlushCoordinator
from edge_replica.registry import ReplicaRuntime, reset_runtime
from edge_replica.retry_utils import RetryBackoff

from .fakes import FakeConnector, FakePlatformClient, ManualRunner


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Keep real credentials and global state out of every test."""
    for name in (
        "TURSO_ORG",
        "TURSO_API_TOKEN",
        "TURSO_API_URL",
        "EDGE_REPLICA_SCRATCH_DIR",
        "EDGE_REPLICA_DEFAULT_GROUP",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_runtime()
    reset_config_manager()
    yield
    reset_runtime()
    reset_config_manager()


@pytest.fixture
def config_path(tmp_path):
    """Config file with platform credentials and instant retries."""
    path = tmp_path / "config.yaml"
    config_data = {
        "platform": {"organization": "acme", "api_token": "api-token"},
        "replica": {"scratch_dir": str(tmp_path / "replicas")},
        "flush": {"max_attempts": 3, "initial_backoff": 0.0, "max_backoff": 0.0},
    }
    path.write_text(yaml.dump(config_data), encoding="utf-8")
    return path


@pytest.fixture
def config_manager(config_path):
    return ConfigManager(config_path)


@pytest.fixture
def fake_client():
    return FakePlatformClient()


@pytest.fixture
def fake_connector():
    return FakeConnector()


@pytest.fixture
def manual_runner():
    runner = ManualRunner()
    yield runner
    runner.discard_all()


@pytest.fixture
def coordinator(manual_runner):
    """Flush coordinator whose cycles only run when the test says so."""
    return FlushCoordinator(
        manual_runner,
        RetryBackoff(max_attempts=3, initial_delay=0.0, max_delay=0.0),
    )


@pytest.fixture
def task_coordinator():
    """Flush coordinator running cycles as real asyncio tasks."""
    return FlushCoordinator(
        TaskBackgroundRunner(),
        RetryBackoff(max_attempts=3, initial_delay=0.0, max_delay=0.0),
    )


@pytest.fixture
def runtime(config_manager, fake_client, fake_connector):
    """Runtime wired to the fake control plane and fake connections."""
    return ReplicaRuntime(
        config_manager,
        client_factory=lambda organization, api_token: fake_client,
        connect=fake_connector,
    )


@pytest.fixture
def partial_sync_config_manager(tmp_path):
    """Config manager whose replicas default to a 1 KiB prefix bootstrap."""
    path = tmp_path / "partial.yaml"
    config_data = {
        "platform": {"organization": "acme", "api_token": "api-token"},
        "replica": {
            "scratch_dir": str(tmp_path / "replicas"),
            "partial_sync": True,
            "bootstrap_prefix_length": 1024,
        },
    }
    path.write_text(yaml.dump(config_data), encoding="utf-8")
    return ConfigManager(path)
