"""Bootstrap sequence: config -> ABI -> endpoint check -> engine -> start.

Steps run strictly in order and the first failure ends the sequence. Each
step raises a typed ``BootstrapError``; ``BootstrapSequencer.run`` catches it
once and returns a ``BootstrapResult`` rather than raising, so the caller
decides the exit status from a value.
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

from .abi import load_abi_async
from .config import IndexerConfig, Settings, load_config_from_file
from .credentials import validate_endpoint
from .engine import Engine, EngineFactory, build_engine_config
from .errors import BootstrapError, EngineStartError, UnexpectedBootstrapError
from .logging_setup import get_logger
from .threads import run_in_daemon_thread


log = get_logger(__name__)


class BootstrapState(str, Enum):
    IDLE = "idle"
    LOADING_CONFIG = "loading_config"
    LOADING_ABI = "loading_abi"
    VALIDATING = "validating"
    CONSTRUCTING = "constructing"
    STARTING = "starting"
    RUNNING = "running"
    FAILED = "failed"


TERMINAL_STATES = frozenset({BootstrapState.RUNNING, BootstrapState.FAILED})


@dataclass
class BootstrapResult:
    state: BootstrapState
    engine: Optional[Engine] = None
    error: Optional[BootstrapError] = None

    @property
    def ok(self) -> bool:
        return self.state is BootstrapState.RUNNING

    @property
    def exit_code(self) -> int:
        return 0 if self.error is None else self.error.exit_code


def format_error(error: BaseException) -> str:
    """Full traceback (with chained causes) when available, else ``str(error)``."""
    if error.__traceback__ is None and error.__cause__ is None:
        return str(error)
    return "".join(traceback.format_exception(error)).rstrip()


class BootstrapSequencer:
    """Runs the bootstrap steps once, in order, without retries."""

    def __init__(
        self,
        settings: Settings,
        engine_factory: Optional[EngineFactory] = None,
        config_loader: Callable[[Path], IndexerConfig] = load_config_from_file,
    ) -> None:
        self.settings = settings
        self.engine_factory = engine_factory
        self.config_loader = config_loader

        self.state = BootstrapState.IDLE
        self.engine: Optional[Engine] = None
        self.error: Optional[BootstrapError] = None
        self._observers: List[Callable[[BootstrapState], None]] = []

    def add_observer(self, callback: Callable[[BootstrapState], None]) -> None:
        self._observers.append(callback)

    def _transition(self, state: BootstrapState) -> None:
        if self.state in TERMINAL_STATES:
            raise RuntimeError(f"bootstrap already finished in state {self.state.value}")
        self.state = state
        for callback in self._observers:
            callback(state)

    async def run(self) -> BootstrapResult:
        """Execute every step; return RUNNING or FAILED with the error.

        Cancellation is not caught: cancelling the task abandons whatever step
        is in flight.
        """
        if self.state is not BootstrapState.IDLE:
            raise RuntimeError(f"bootstrap already ran (state {self.state.value})")

        try:
            engine = await self._run_steps()
        except BootstrapError as e:
            return self._fail(e)
        except Exception as e:
            wrapped = UnexpectedBootstrapError(f"{type(e).__name__}: {e}")
            wrapped.__cause__ = e
            return self._fail(wrapped)

        self._transition(BootstrapState.RUNNING)
        return BootstrapResult(BootstrapState.RUNNING, engine=engine)

    def _fail(self, error: BootstrapError) -> BootstrapResult:
        log.debug("bootstrap_failed", state=self.state.value, kind=error.kind.value)
        self.error = error
        self._transition(BootstrapState.FAILED)
        return BootstrapResult(BootstrapState.FAILED, engine=self.engine, error=error)

    async def _run_steps(self) -> Engine:
        self._transition(BootstrapState.LOADING_CONFIG)
        config_path = self.settings.resolved_config_path()
        log.info("Loading config", path=str(config_path))
        config = await run_in_daemon_thread(self.config_loader, config_path)

        self._transition(BootstrapState.LOADING_ABI)
        abi_path = self.settings.resolved_abi_path()
        log.info("Loading ABI", path=str(abi_path))
        abi = await load_abi_async(abi_path)

        self._transition(BootstrapState.VALIDATING)
        validate_endpoint(config)

        self._transition(BootstrapState.CONSTRUCTING)
        log.info("Initializing indexer")
        merged = build_engine_config(config, abi)
        factory = self.engine_factory or EngineFactory.from_path(self.settings.engine)
        self.engine = factory.create(merged)

        self._transition(BootstrapState.STARTING)
        await self._start_engine(self.engine)
        return self.engine

    async def _start_engine(self, engine: Engine) -> None:
        try:
            await engine.start()
        except Exception as e:
            raise EngineStartError(f"Indexer engine failed to start: {e}") from e

