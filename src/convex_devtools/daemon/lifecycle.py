"""Server lifecycle management."""

from __future__ import annotations

import asyncio
import signal
from dataclasses import dataclass, field
from pathlib import Path

import structlog
import uvicorn

from convex_devtools.config.models import DevtoolsConfig
from convex_devtools.daemon.distributor import SnapshotDistributor
from convex_devtools.daemon.service import SchemaService, SchemaUpdated

logger = structlog.get_logger()


@dataclass
class ServerController:
    """
    Orchestrates server components.

    Components:
    - SchemaService: Scans the functions directory and keeps it watched
    - SnapshotDistributor: Pushes installed snapshots to WebSocket clients
    """

    project_dir: Path
    config: DevtoolsConfig = field(default_factory=DevtoolsConfig)

    service: SchemaService = field(init=False)
    distributor: SnapshotDistributor = field(init=False)

    def __post_init__(self) -> None:
        self.service = SchemaService(
            functions_dir=self.project_dir / self.config.project.functions_dir,
            schema_file=self.config.project.schema_file,
            watcher_config=self.config.watcher,
        )
        self.distributor = SnapshotDistributor(get_snapshot=self.service.get_current_snapshot)
        self.service.add_update_listener(self._publish)

    async def _publish(self, event: SchemaUpdated) -> None:
        await self.distributor.on_update(event.snapshot)

    async def start(self) -> None:
        """Run the first scan and start watching.

        Raises:
            SchemaError: If the functions directory cannot be read.
        """
        logger.info("server starting", project_dir=str(self.project_dir))
        await self.service.start()

        host_port = f"{self.config.server.host}:{self.config.server.port}"
        logger.info("server started")
        logger.info("endpoint", name="schema", url=f"http://{host_port}/api/schema")
        logger.info("endpoint", name="updates", url=f"ws://{host_port}/ws")

    def stop(self) -> None:
        """Stop watching. Connected clients are closed by the HTTP server."""
        logger.info("server stopping")
        self.service.stop()
        logger.info("server stopped")


async def run_server(project_dir: Path, config: DevtoolsConfig) -> None:
    """Run the server until a shutdown signal arrives.

    The first scan completes before the HTTP server starts listening, so
    ``/api/schema`` never answers 503 in normal operation.
    """
    from convex_devtools.cli.up import _print_banner
    from convex_devtools.daemon.app import create_app

    controller = ServerController(project_dir=project_dir, config=config)
    await controller.start()

    # Ready only once the first scan has installed a snapshot
    _print_banner(config.server.host, config.server.port, controller.service.functions_dir)

    app = create_app(controller)
    uvicorn_config = uvicorn.Config(
        app,
        host=config.server.host,
        port=config.server.port,
        log_level="warning",  # Use structlog instead
    )
    server = uvicorn.Server(uvicorn_config)

    # Setup signal handlers with force exit on second signal
    loop = asyncio.get_running_loop()
    shutdown_count = 0
    force_exit_task: asyncio.Task[None] | None = None

    async def force_exit_after_timeout() -> None:
        """Force exit if graceful shutdown takes too long."""
        await asyncio.sleep(config.timeouts.force_exit_sec)
        logger.info("forcing_exit_after_timeout")
        server.force_exit = True

    def signal_handler() -> None:
        nonlocal shutdown_count, force_exit_task
        shutdown_count += 1
        logger.info("shutdown_signal_received", count=shutdown_count)
        server.should_exit = True
        if shutdown_count == 1:
            force_exit_task = loop.create_task(force_exit_after_timeout())
        else:
            # Second signal - force immediate exit
            server.force_exit = True
            if force_exit_task:
                force_exit_task.cancel()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler)

    try:
        await server.serve()
    finally:
        controller.stop()
        if force_exit_task is not None:
            force_exit_task.cancel()
