"""Blocking calls run on daemon threads.

The bootstrap reads must never keep the process alive after a termination
signal, so they do not go through the loop's default executor (which
``asyncio.run`` joins on exit).
"""

import asyncio
import threading
from typing import Any, Callable, TypeVar


T = TypeVar("T")


async def run_in_daemon_thread(func: Callable[..., T], *args: Any) -> T:
    loop = asyncio.get_running_loop()
    future: asyncio.Future = loop.create_future()

    def _settle(result: Any, error: BaseException | None) -> None:
        if future.done():
            return
        if error is not None:
            future.set_exception(error)
        else:
            future.set_result(result)

    def _target() -> None:
        result, error = None, None
        try:
            result = func(*args)
        except BaseException as e:
            error = e
        try:
            loop.call_soon_threadsafe(_settle, result, error)
        except RuntimeError:
            # Loop already closed: the caller was abandoned on shutdown.
            return

    threading.Thread(target=_target, name=f"bootstrap-{getattr(func, '__name__', 'call')}", daemon=True).start()
    return await future
