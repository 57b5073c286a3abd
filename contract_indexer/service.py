"""Process lifecycle: bootstrap the indexer and wait for a termination signal."""

import asyncio
from pathlib import Path
from typing import Callable, Optional

from .bootstrap import BootstrapSequencer, BootstrapState, format_error
from .config import IndexerConfig, Settings, load_config_from_file
from .engine import EngineFactory
from .health import HealthCheckServer
from .logging_setup import configure_logging, get_logger
from .metrics import bootstrap_failures_total, bootstrap_state
from .shutdown import ShutdownController


log = get_logger(__name__)


def _record_state(state: BootstrapState) -> None:
    bootstrap_state.state(state.value)


class Service:
    """Races the bootstrap sequence against the shutdown listeners.

    Whichever finishes first decides the exit status: a signal exits 0 and
    abandons any in-flight step, a bootstrap failure exits 1. After a
    successful bootstrap the service only waits for a signal; the engine is
    never stopped explicitly.
    """

    def __init__(
        self,
        settings: Settings,
        engine_factory: Optional[EngineFactory] = None,
        shutdown: Optional[ShutdownController] = None,
        config_loader: Callable[[Path], IndexerConfig] = load_config_from_file,
    ) -> None:
        self.settings = settings
        self.shutdown = shutdown or ShutdownController()
        self.sequencer = BootstrapSequencer(
            settings, engine_factory=engine_factory, config_loader=config_loader
        )
        self.sequencer.add_observer(_record_state)

        self.health: Optional[HealthCheckServer] = None
        if settings.health_check_enabled:
            self.health = HealthCheckServer(self.sequencer, settings)

    async def run(self) -> int:
        self.shutdown.install()

        tasks: list[asyncio.Task] = []
        if self.health is not None:
            tasks.append(self.health.start())

        bootstrap_task = asyncio.create_task(self.sequencer.run(), name="bootstrap")
        signal_task = asyncio.create_task(self.shutdown.wait(), name="shutdown-wait")
        tasks.extend([bootstrap_task, signal_task])

        try:
            return await self._supervise(bootstrap_task, signal_task)
        finally:
            if self.health is not None:
                self.health.stop()
            for t in tasks:
                if not t.done():
                    t.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _supervise(self, bootstrap_task: asyncio.Task, signal_task: asyncio.Task) -> int:
        await asyncio.wait({bootstrap_task, signal_task}, return_when=asyncio.FIRST_COMPLETED)

        # Signal wins ties
        if signal_task.done():
            return 0

        result = bootstrap_task.result()
        if result.error is not None:
            bootstrap_failures_total.labels(kind=result.error.kind.value).inc()
            log.error(
                "Failed to start indexer",
                error=format_error(result.error),
                kind=result.error.kind.value,
            )
            return result.exit_code

        log.info("Indexer is running", service=self.settings.service_name)
        await signal_task
        return 0


async def run(settings: Settings) -> int:
    return await Service(settings).run()


def main() -> int:
    """Read settings, configure logging and run until a signal or a failure."""
    settings = Settings()
    configure_logging(settings.log_level, settings.log_format)
    return asyncio.run(run(settings))
