"""Endpoint validation for the loaded configuration."""

from typing import Any

from .config import IndexerConfig
from .errors import MissingEndpointError


PLACEHOLDER_MARKER = "${"


def is_resolved_endpoint(value: Any) -> bool:
    return (
        isinstance(value, str)
        and bool(value.strip())
        and PLACEHOLDER_MARKER not in value
    )


def validate_endpoint(config: IndexerConfig) -> str:
    """Return the RPC endpoint, or raise if it is absent or still templated.

    A template marker left in the value means the environment variable it
    referenced was never set.
    """
    endpoint = config.rpc_url
    if is_resolved_endpoint(endpoint):
        return endpoint

    if isinstance(endpoint, str) and PLACEHOLDER_MARKER in endpoint:
        raise MissingEndpointError(
            f"rpc_url is unresolved ({endpoint!r}). "
            "RPC_URL environment variable is required. Set it in .env file."
        )
    raise MissingEndpointError(
        "rpc_url is missing from the configuration. "
        "RPC_URL environment variable is required. Set it in .env file."
    )
