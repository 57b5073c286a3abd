import asyncio
import socket

import pytest
from fastapi.testclient import TestClient

from contract_indexer.bootstrap import BootstrapSequencer, BootstrapState
from contract_indexer.config import Settings
from contract_indexer.engine import EngineFactory
from contract_indexer.health import HealthCheckServer, create_health_api
from contract_indexer.service import Service

from conftest import FakeEngine


@pytest.fixture
def sequencer(config_file, abi_file):
    settings = Settings(config_path=str(config_file), abi_path=str(abi_file))
    return BootstrapSequencer(settings, engine_factory=EngineFactory(FakeEngine))


@pytest.fixture
def client(sequencer):
    return TestClient(create_health_api(sequencer, "test-indexer"))


def test_health_reports_state(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "alive", "state": "idle", "service": "test-indexer"}


def test_not_ready_before_running(client):
    response = client.get("/ready")
    assert response.status_code == 503
    assert response.json()["status"] == "not_ready"


@pytest.mark.asyncio
async def test_ready_once_running(sequencer, client):
    await sequencer.run()
    response = client.get("/ready")
    assert response.status_code == 200
    assert response.json()["state"] == "running"


@pytest.mark.asyncio
async def test_health_reports_failure_kind(tmp_path, config_file):
    settings = Settings(config_path=str(config_file), abi_path=str(tmp_path / "missing.json"))
    sequencer = BootstrapSequencer(settings, engine_factory=EngineFactory(FakeEngine))
    await sequencer.run()

    body = TestClient(create_health_api(sequencer, "svc")).get("/health").json()
    assert body["state"] == "failed"
    assert body["error_kind"] == "abi_not_found"


@pytest.mark.asyncio
async def test_metrics_track_bootstrap_state(config_file, abi_file):
    settings = Settings(config_path=str(config_file), abi_path=str(abi_file))
    svc = Service(settings, engine_factory=EngineFactory(FakeEngine))
    await svc.sequencer.run()

    response = TestClient(svc.health.app).get("/metrics")
    assert response.status_code == 200
    assert 'indexer_bootstrap_state{indexer_bootstrap_state="running"} 1.0' in response.text


def test_server_uses_configured_port(sequencer):
    settings = Settings(health_check_port=9123)
    server = HealthCheckServer(sequencer, settings)
    assert server.settings.health_check_port == 9123
    assert server.server is None
    server.stop()


@pytest.mark.asyncio
async def test_serve_on_taken_port_returns_instead_of_exiting(sequencer):
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as taken:
        taken.bind(("0.0.0.0", 0))
        taken.listen()
        server = HealthCheckServer(sequencer, Settings(health_check_port=taken.getsockname()[1]))

        await asyncio.wait_for(server.serve(), timeout=5.0)

    assert server.failed
    assert not server.server.started
