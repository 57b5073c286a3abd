"""Engine construction.

The indexing engine lives outside this package. It is located by a dotted
path (``package.module:attr``), called with the merged configuration record,
and must expose an awaitable ``start()``.
"""

from __future__ import annotations

import importlib
from typing import Any, Callable, Dict, Optional, Protocol

from .config import IndexerConfig
from .errors import EngineLoadError
from .logging_setup import get_logger


log = get_logger(__name__)

ABI_KEY = "abi"


class Engine(Protocol):
    async def start(self) -> None: ...


EngineFactoryFn = Callable[[Dict[str, Any]], Engine]


def build_engine_config(config: IndexerConfig, abi: Any) -> Dict[str, Any]:
    """Merge the configuration record with the ABI under the ``abi`` key."""
    return {**config.as_record(), ABI_KEY: abi}


def resolve_engine_factory(path: Optional[str]) -> EngineFactoryFn:
    """Import the engine class or factory named by ``path``."""
    if not path:
        raise EngineLoadError(
            "No indexer engine configured. Set INDEXER_ENGINE to 'package.module:Class'."
        )

    if ":" in path:
        module_name, _, attr = path.partition(":")
    else:
        module_name, _, attr = path.rpartition(".")
    if not module_name or not attr:
        raise EngineLoadError(f"Invalid engine path {path!r}, expected 'package.module:Class'")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise EngineLoadError(f"Cannot import engine module {module_name!r}: {e}") from e

    try:
        factory = getattr(module, attr)
    except AttributeError as e:
        raise EngineLoadError(f"Module {module_name!r} has no attribute {attr!r}") from e

    if not callable(factory):
        raise EngineLoadError(f"Engine {path!r} is not callable")
    return factory


class EngineFactory:
    """Builds the engine from the merged record."""

    def __init__(self, factory: EngineFactoryFn):
        self.factory = factory

    @classmethod
    def from_path(cls, path: Optional[str]) -> "EngineFactory":
        return cls(resolve_engine_factory(path))

    def create(self, merged: Dict[str, Any]) -> Engine:
        name = getattr(self.factory, "__qualname__", repr(self.factory))
        try:
            engine = self.factory(merged)
        except Exception as e:
            raise EngineLoadError(f"Engine {name} failed to initialize: {e}") from e

        if not callable(getattr(engine, "start", None)):
            raise EngineLoadError(f"Engine {name} has no start() method")

        log.debug("engine_created", engine=name)
        return engine
