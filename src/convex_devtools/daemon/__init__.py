"""Devtools server - schema service, file watching and snapshot push."""

from convex_devtools.daemon.app import create_app
from convex_devtools.daemon.distributor import SnapshotDistributor
from convex_devtools.daemon.lifecycle import ServerController
from convex_devtools.daemon.service import SchemaService, SchemaUpdated
from convex_devtools.daemon.watcher import FileWatcher

__all__ = [
    "FileWatcher",
    "SchemaService",
    "SchemaUpdated",
    "ServerController",
    "SnapshotDistributor",
    "create_app",
]
