"""Termination signal handling."""

from __future__ import annotations

import asyncio
import signal
from typing import Optional, Sequence

from .logging_setup import get_logger
from .metrics import shutdown_signals_total


log = get_logger(__name__)

SHUTDOWN_SIGNALS = (signal.SIGTERM, signal.SIGINT)


class ShutdownController:
    """Owns the process's termination listeners.

    One listener per signal, installed once and never removed. The first
    signal resolves ``wait()``; the caller exits with status 0 from there,
    whatever the bootstrap sequence is doing.
    """

    def __init__(self, signals: Sequence[signal.Signals] = SHUTDOWN_SIGNALS) -> None:
        self.signals = tuple(signals)
        self.loop: Optional[asyncio.AbstractEventLoop] = None
        self.received: Optional[signal.Signals] = None
        self._event: Optional[asyncio.Event] = None

    @property
    def installed(self) -> bool:
        return self.loop is not None

    def install(self) -> None:
        """Register the listeners on the running loop."""
        if self.installed:
            raise RuntimeError("shutdown listeners already installed")

        self.loop = asyncio.get_running_loop()
        self._event = asyncio.Event()
        for sig in self.signals:
            try:
                self.loop.add_signal_handler(sig, self.handle_signal, sig)
            except NotImplementedError:
                # No loop signal support (Windows); hop back onto the loop
                signal.signal(sig, self._threadsafe_handler)

    def _threadsafe_handler(self, signum, frame) -> None:
        if self.loop is None:
            raise RuntimeError("shutdown listeners not installed")
        self.loop.call_soon_threadsafe(self.handle_signal, signal.Signals(signum))

    def handle_signal(self, sig: signal.Signals) -> None:
        if self._event is None:
            raise RuntimeError("shutdown listeners not installed")
        log.info("Received termination signal, shutting down gracefully", signal=sig.name)
        shutdown_signals_total.labels(signal=sig.name).inc()
        if self.received is None:
            self.received = sig
        self._event.set()

    async def wait(self) -> signal.Signals:
        """Block until a termination signal arrives and return it."""
        if self._event is None:
            raise RuntimeError("shutdown listeners not installed")
        await self._event.wait()
        if self.received is None:
            raise RuntimeError("shutdown event set without a signal")
        return self.received
