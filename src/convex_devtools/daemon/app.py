"""Starlette application factory."""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware

from convex_devtools.daemon.middleware import RequestIdMiddleware
from convex_devtools.daemon.routes import create_routes

if TYPE_CHECKING:
    from convex_devtools.daemon.lifecycle import ServerController


def create_app(controller: ServerController) -> Starlette:
    """Create the Starlette application serving the schema API and push socket."""
    app = Starlette(routes=create_routes(controller))

    # The console front end may be served from its own dev server
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIdMiddleware)

    return app
