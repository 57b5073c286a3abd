import asyncio
import json
from unittest.mock import AsyncMock

import pytest

from contract_indexer.engine import EngineFactory


VALID_ENDPOINT = "wss://node.example/ws"

ERC20_ABI = [
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "name": "from", "type": "address"},
            {"indexed": True, "name": "to", "type": "address"},
            {"indexed": False, "name": "value", "type": "uint256"},
        ],
        "name": "Transfer",
        "type": "event",
    }
]


class FakeEngine:
    """Records its construction record; start() is an AsyncMock."""

    instances = []

    def __init__(self, config):
        self.config = config
        self.start = AsyncMock()
        FakeEngine.instances.append(self)


class HangingEngine:
    """Engine whose start() never completes unless cancelled."""

    def __init__(self, config):
        self.config = config
        self.start_calls = 0
        self.cancelled = False

    async def start(self):
        self.start_calls += 1
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            self.cancelled = True
            raise


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in (
        "CONFIG_PATH",
        "ABI_PATH",
        "INDEXER_ENGINE",
        "RPC_URL",
        "HEALTH_CHECK_ENABLED",
        "HEALTH_CHECK_PORT",
        "LOG_LEVEL",
        "LOG_FORMAT",
        "SERVICE_NAME",
    ):
        monkeypatch.delenv(var, raising=False)
    FakeEngine.instances = []


@pytest.fixture
def write_config(tmp_path):
    def _write(text, name="config.yaml"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def config_file(write_config):
    return write_config(
        f"rpcUrl: {VALID_ENDPOINT}\n"
        "name: test-indexer\n"
        "contract:\n"
        "  address: '0xabc'\n"
        "  startBlock: 100\n"
    )


@pytest.fixture
def abi_file(tmp_path):
    path = tmp_path / "abi.json"
    path.write_text(json.dumps(ERC20_ABI), encoding="utf-8")
    return path


@pytest.fixture
def fake_factory():
    return EngineFactory(FakeEngine)


async def wait_for_state(sequencer, state, timeout=2.0):
    async def _poll():
        while sequencer.state is not state:
            await asyncio.sleep(0.01)

    await asyncio.wait_for(_poll(), timeout)
