"""Error taxonomy for the bootstrap sequence.

Every failure is fatal: nothing here is retried or recovered locally. The
sequencer catches a ``BootstrapError`` once and turns it into exit status 1.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    CONFIG_LOAD = "config_load"
    ABI_NOT_FOUND = "abi_not_found"
    ABI_PARSE = "abi_parse"
    MISSING_ENDPOINT = "missing_endpoint"
    ENGINE_LOAD = "engine_load"
    ENGINE_START = "engine_start"
    UNEXPECTED = "unexpected"


class BootstrapError(Exception):
    """Base class for failures that stop the indexer from reaching running."""

    kind: ErrorKind = ErrorKind.UNEXPECTED
    exit_code: int = 1


class ConfigLoadError(BootstrapError):
    """Configuration file missing or unparseable."""

    kind = ErrorKind.CONFIG_LOAD


class AbiNotFoundError(BootstrapError):
    """ABI path does not exist on disk."""

    kind = ErrorKind.ABI_NOT_FOUND

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"ABI file not found: {path}. Please add your contract ABI.")


class AbiParseError(BootstrapError):
    """ABI file exists but is not valid JSON."""

    kind = ErrorKind.ABI_PARSE


class MissingEndpointError(BootstrapError):
    """Connection endpoint absent, empty, or still templated."""

    kind = ErrorKind.MISSING_ENDPOINT


class EngineLoadError(BootstrapError):
    """Engine could not be resolved or constructed."""

    kind = ErrorKind.ENGINE_LOAD


class EngineStartError(BootstrapError):
    """The engine's start operation failed."""

    kind = ErrorKind.ENGINE_START


class UnexpectedBootstrapError(BootstrapError):
    """Wraps any non-taxonomy exception raised inside a bootstrap step."""

    kind = ErrorKind.UNEXPECTED
