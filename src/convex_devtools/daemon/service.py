"""Live schema service: initial scan, watch-triggered rescans, publication.

The service owns the single current-snapshot slot. Scans run in a worker
thread; installing the result is one attribute assignment on the event loop,
so readers see either the old snapshot or the new one.

Overlapping scans are ordered by generation: every scan takes the next
generation number when it is triggered, and a finished scan is installed
only if it is newer than the installed snapshot. A slow scan that finishes
after a newer one is dropped.
"""

from __future__ import annotations

import asyncio
import functools
from collections.abc import Awaitable, Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

import structlog

from convex_devtools.config.models import WatcherConfig
from convex_devtools.core.errors import SchemaError
from convex_devtools.daemon.watcher import FileWatcher
from convex_devtools.schema.builder import DEFAULT_SCHEMA_FILE, build_snapshot
from convex_devtools.schema.models import SchemaSnapshot

logger = structlog.get_logger()


class ServiceState(Enum):
    """Schema service state."""

    STOPPED = "stopped"
    WATCHING = "watching"


@dataclass(frozen=True, slots=True)
class SchemaUpdated:
    """Emitted after a rescan installs a new snapshot."""

    snapshot: SchemaSnapshot


UpdateListener = Callable[[SchemaUpdated], Awaitable[None]]


@dataclass
class ServiceStatus:
    """Current service status."""

    state: ServiceState
    generation: int
    function_count: int
    table_count: int
    watcher_running: bool
    watcher_degraded: bool
    last_error: str | None = None


@dataclass
class SchemaService:
    """Keeps an immutable schema snapshot in step with the functions directory."""

    functions_dir: Path
    schema_file: str = DEFAULT_SCHEMA_FILE
    watcher_config: WatcherConfig = field(default_factory=WatcherConfig)

    _state: ServiceState = field(default=ServiceState.STOPPED, init=False)
    _snapshot: SchemaSnapshot | None = field(default=None, init=False)
    _generation: int = field(default=0, init=False)
    _watcher: FileWatcher | None = field(default=None, init=False)
    _executor: ThreadPoolExecutor | None = field(default=None, init=False)
    _listeners: list[UpdateListener] = field(default_factory=list, init=False)
    _rescans: set[asyncio.Task[SchemaSnapshot | None]] = field(default_factory=set, init=False)
    _last_error: str | None = field(default=None, init=False)

    @property
    def state(self) -> ServiceState:
        return self._state

    def get_current_snapshot(self) -> SchemaSnapshot | None:
        """The installed snapshot, or None before the first scan completes."""
        return self._snapshot

    def add_update_listener(self, listener: UpdateListener) -> None:
        """Register a coroutine called with every installed update."""
        self._listeners.append(listener)

    async def start(self) -> None:
        """Scan once, then watch for changes.

        Raises:
            SchemaError: If the functions directory cannot be read.
        """
        if self._state is ServiceState.WATCHING:
            return

        self._executor = ThreadPoolExecutor(
            max_workers=1,
            thread_name_prefix="devtools-scan",
        )
        try:
            snapshot = await self._scan(self._next_generation())
        except SchemaError:
            self._executor.shutdown(wait=False)
            self._executor = None
            raise
        self._install(snapshot)

        self._watcher = FileWatcher(
            root=self.functions_dir,
            on_change=self._on_files_changed,
            poll_interval=self.watcher_config.poll_interval_sec,
            debounce_window=self.watcher_config.debounce_sec,
            max_debounce_wait=self.watcher_config.max_debounce_wait_sec,
        )
        await self._watcher.start()
        self._state = ServiceState.WATCHING
        logger.info("schema_service_started", functions_dir=str(self.functions_dir))

    def stop(self) -> None:
        """Detach the filesystem watch. A scan already running may still install."""
        if self._watcher is not None:
            self._watcher.stop()
            self._watcher = None
        if self._executor is not None:
            self._executor.shutdown(wait=False)
            self._executor = None
        self._state = ServiceState.STOPPED
        logger.info("schema_service_stopped")

    async def refresh(self) -> SchemaSnapshot | None:
        """Rescan now. Returns the installed snapshot, or None if nothing was installed."""
        generation = self._next_generation()
        try:
            snapshot = await self._scan(generation)
        except Exception as e:
            # The previous snapshot stays installed
            self._last_error = str(e)
            logger.error("schema_rescan_failed", error=str(e), generation=generation)
            return None

        if not self._install(snapshot):
            return None
        await self._emit(SchemaUpdated(snapshot))
        return snapshot

    @property
    def status(self) -> ServiceStatus:
        snapshot = self._snapshot
        return ServiceStatus(
            state=self._state,
            generation=snapshot.generation if snapshot else 0,
            function_count=snapshot.function_count if snapshot else 0,
            table_count=len(snapshot.tables) if snapshot else 0,
            watcher_running=self._watcher is not None and self._watcher.running,
            watcher_degraded=self._watcher is not None and self._watcher.degraded,
            last_error=self._last_error,
        )

    def _next_generation(self) -> int:
        self._generation += 1
        return self._generation

    async def _scan(self, generation: int) -> SchemaSnapshot:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self._executor,
            functools.partial(
                build_snapshot,
                self.functions_dir,
                self.schema_file,
                generation=generation,
            ),
        )

    def _install(self, snapshot: SchemaSnapshot) -> bool:
        current = self._snapshot
        if current is not None and snapshot.generation <= current.generation:
            logger.info(
                "schema_update_dropped",
                generation=snapshot.generation,
                installed=current.generation,
            )
            return False
        self._snapshot = snapshot
        self._last_error = None
        return True

    async def _emit(self, event: SchemaUpdated) -> None:
        for listener in list(self._listeners):
            try:
                await listener(event)
            except Exception as e:
                logger.error("update_listener_failed", error=str(e))

    def _on_files_changed(self, paths: list[Path]) -> None:
        """Watcher callback: schedule a rescan for the settled batch."""
        logger.debug("rescan_scheduled", paths=[str(p) for p in paths[:5]], count=len(paths))
        task = asyncio.get_running_loop().create_task(self.refresh())
        self._rescans.add(task)
        task.add_done_callback(self._rescans.discard)
