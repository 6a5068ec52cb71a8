"""HTTP and WebSocket routes for the devtools server."""

from __future__ import annotations

import importlib.metadata
import time
from typing import TYPE_CHECKING

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import BaseRoute, Route, WebSocketRoute
from starlette.websockets import WebSocket

from convex_devtools.core.errors import SchemaError

if TYPE_CHECKING:
    from convex_devtools.daemon.lifecycle import ServerController


def _get_version() -> str:
    """Get package version from installed metadata."""
    try:
        return importlib.metadata.version("convex-devtools")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def create_routes(controller: ServerController) -> list[BaseRoute]:
    """Create routes bound to the server controller."""
    start_time = time.time()
    version = _get_version()

    async def health(request: Request) -> JSONResponse:
        _ = request  # unused
        return JSONResponse(
            {
                "status": "ok",
                "projectDir": str(controller.project_dir),
                "functionsDir": str(controller.service.functions_dir),
                "version": version,
            }
        )

    async def schema(request: Request) -> JSONResponse:
        """Current schema snapshot; 503 until the first scan completes."""
        _ = request  # unused
        snapshot = controller.service.get_current_snapshot()
        if snapshot is None:
            error = SchemaError.not_ready()
            return JSONResponse(
                {"error": error.message, "code": error.code.value},
                status_code=503,
            )
        return JSONResponse(snapshot.to_dict())

    async def status(request: Request) -> JSONResponse:
        """Diagnostics for the schema service and its subscribers."""
        _ = request  # unused
        service_status = controller.service.status
        return JSONResponse(
            {
                "version": version,
                "uptime_seconds": round(time.time() - start_time, 1),
                "service": {
                    "state": service_status.state.value,
                    "generation": service_status.generation,
                    "functions": service_status.function_count,
                    "tables": service_status.table_count,
                    "last_error": service_status.last_error,
                },
                "watcher": {
                    "running": service_status.watcher_running,
                    "degraded": service_status.watcher_degraded,
                },
                "subscribers": controller.distributor.subscriber_count,
            }
        )

    async def schema_socket(websocket: WebSocket) -> None:
        """Push the current snapshot, then every update, until the client leaves."""
        await websocket.accept()
        if not await controller.distributor.subscribe(websocket):
            return
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
        finally:
            controller.distributor.unsubscribe(websocket)

    return [
        Route("/api/health", health, methods=["GET"]),
        Route("/api/schema", schema, methods=["GET"]),
        Route("/api/status", status, methods=["GET"]),
        WebSocketRoute("/ws", schema_socket),
    ]
