"""Health check server exposing the bootstrap state."""

import asyncio
import contextlib
from typing import Optional

from fastapi import FastAPI, Response
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
import uvicorn

from .bootstrap import BootstrapSequencer, BootstrapState
from .config import Settings
from .logging_setup import get_logger


log = get_logger(__name__)


class _Server(uvicorn.Server):
    """uvicorn server that leaves signal handling to ShutdownController."""

    def install_signal_handlers(self) -> None:
        pass

    @contextlib.contextmanager
    def capture_signals(self):
        yield


def create_health_api(sequencer: BootstrapSequencer, service_name: str) -> FastAPI:
    app = FastAPI(
        title="Contract Indexer Health",
        description="Bootstrap state and metrics for the contract indexer",
        version="1.0.0",
    )

    @app.get("/health")
    async def health_check():
        """Liveness: answers while the process is up."""
        content = {
            "status": "alive",
            "state": sequencer.state.value,
            "service": service_name,
        }
        if sequencer.error is not None:
            content["error_kind"] = sequencer.error.kind.value
        return JSONResponse(content=content)

    @app.get("/ready")
    async def readiness_check():
        """Kubernetes readiness probe endpoint."""
        is_ready = sequencer.state is BootstrapState.RUNNING
        return JSONResponse(
            content={
                "status": "ready" if is_ready else "not_ready",
                "state": sequencer.state.value,
                "service": service_name,
            },
            status_code=200 if is_ready else 503,
        )

    @app.get("/metrics")
    async def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app


class HealthCheckServer:
    """Serves the health API in the current event loop."""

    def __init__(self, sequencer: BootstrapSequencer, settings: Settings):
        self.settings = settings
        self.app = create_health_api(sequencer, settings.service_name)
        self.server: Optional[uvicorn.Server] = None
        self.failed = False

    async def serve(self) -> None:
        config = uvicorn.Config(
            app=self.app,
            host="0.0.0.0",
            port=self.settings.health_check_port,
            log_level=self.settings.log_level.lower(),
            access_log=False,
        )
        self.server = _Server(config)
        port = self.settings.health_check_port
        log.info("Health check server starting", port=port)

        # uvicorn calls sys.exit when it cannot bind; exit status belongs to Service
        try:
            await self.server.serve()
        except (SystemExit, OSError) as e:
            code = e.code if isinstance(e, SystemExit) else None
            log.error("Health check server failed to start", port=port, error=str(e), exit_code=code)
            self.failed = True
            return

        if not self.server.started and not self.server.should_exit:
            log.error("Health check server failed to start", port=port)
            self.failed = True

    def start(self) -> asyncio.Task:
        return asyncio.create_task(self.serve(), name="health-server")

    def stop(self) -> None:
        if self.server:
            self.server.should_exit = True
