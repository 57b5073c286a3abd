import pytest

from contract_indexer.config import IndexerConfig
from contract_indexer.credentials import is_resolved_endpoint, validate_endpoint
from contract_indexer.errors import ErrorKind, MissingEndpointError


@pytest.mark.parametrize(
    "endpoint",
    ["wss://node.example/ws", "https://mainnet.example/v3/key", "http://127.0.0.1:8545"],
)
def test_resolved_endpoint_passes(endpoint):
    assert validate_endpoint(IndexerConfig(rpc_url=endpoint)) == endpoint


@pytest.mark.parametrize("endpoint", [None, "", "   ", 8545, ["wss://a"]])
def test_absent_or_empty_endpoint_rejected(endpoint):
    with pytest.raises(MissingEndpointError, match="missing") as exc_info:
        validate_endpoint(IndexerConfig(rpc_url=endpoint))
    assert exc_info.value.kind is ErrorKind.MISSING_ENDPOINT


@pytest.mark.parametrize("endpoint", ["${RPC_URL}", "wss://${HOST}/ws", "https://x/${API_KEY"])
def test_placeholder_endpoint_rejected(endpoint):
    with pytest.raises(MissingEndpointError, match="unresolved"):
        validate_endpoint(IndexerConfig(rpc_url=endpoint))


def test_config_without_endpoint_field():
    with pytest.raises(MissingEndpointError):
        validate_endpoint(IndexerConfig.model_validate({"name": "x"}))


def test_is_resolved_endpoint():
    assert is_resolved_endpoint("wss://a")
    assert not is_resolved_endpoint("$" + "{X}")
    assert not is_resolved_endpoint(None)
