"""File watcher using watchfiles for async filesystem monitoring.

Design:
- One recursive watch on the functions directory
- A relevance filter drops events outside source files, generated output
  and tests before they reach the debounce buffer
- Added, modified and deleted files all count as changes
- Sliding-window debounce turns a burst of saves into one callback
- Cross-filesystem mounts (WSL /mnt/*) are watched by polling
- If the watched directory disappears the watcher stops itself and stays
  stopped (degraded) until restarted
"""

from __future__ import annotations

import asyncio
import contextlib
import time
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path, PurePath

import structlog
from watchfiles import Change, awatch

from convex_devtools.core.excludes import is_excluded_name, is_relevant_path

logger = structlog.get_logger()

# Debouncing configuration
DEBOUNCE_WINDOW_SEC = 0.3  # Sliding window for batching rapid changes
MAX_DEBOUNCE_WAIT_SEC = 2.0  # Maximum wait before forcing flush
ERROR_BACKOFF_SEC = 1.0


def _is_cross_filesystem(path: Path) -> bool:
    """Detect if path is on a cross-filesystem mount (WSL /mnt/*, network drives, etc.)."""
    resolved = path.resolve()
    path_str = str(resolved)
    # WSL accessing Windows filesystem: /mnt/c/, /mnt/d/, etc.
    # Must be single letter followed by / (not /mnt/data/ which is a regular mount)
    if (
        path_str.startswith("/mnt/")
        and len(path_str) > 6
        and path_str[5].isalpha()
        and path_str[6] == "/"
    ):
        return True
    return path_str.startswith(("/run/user/", "/media/", "/net/"))


def _summarize_changes(changes: dict[Path, Change]) -> str:
    """Summarize a batch like "2 modified, 1 added" with the largest group first."""
    counts = Counter(change.name for change in changes.values())
    return ", ".join(f"{count} {name}" for name, count in counts.most_common())


def is_relevant_change(root: Path, change: Change, path: str) -> bool:
    """Relevance filter applied to raw watch events.

    Source files count for any change type. A deleted path without an
    extension may be a whole directory of functions, so it counts too unless
    it sits in an excluded directory.
    """
    try:
        rel_path = PurePath(path).relative_to(root)
    except ValueError:
        return False
    if is_relevant_path(rel_path):
        return True
    if change == Change.deleted and rel_path.parts and not rel_path.suffix:
        return not any(is_excluded_name(part, is_dir=True) for part in rel_path.parts)
    return False


@dataclass
class FileWatcher:
    """
    Async watcher for the functions directory with sliding-window debouncing.

    ``on_change`` receives the batch of changed paths (relative to ``root``)
    once the batch settles. It is called on the event loop.
    """

    root: Path
    on_change: Callable[[list[Path]], None]
    poll_interval: float = 1.0  # Seconds between polls (cross-filesystem)
    debounce_window: float = DEBOUNCE_WINDOW_SEC
    max_debounce_wait: float = MAX_DEBOUNCE_WAIT_SEC

    _watch_task: asyncio.Task[None] | None = field(default=None, init=False)
    _stop_event: asyncio.Event = field(default_factory=asyncio.Event, init=False)
    _is_cross_fs: bool = field(init=False)
    _degraded: bool = field(default=False, init=False)
    # Debouncing state
    _pending_changes: dict[Path, Change] = field(default_factory=dict, init=False)
    _last_change_time: float = field(default=0.0, init=False)
    _first_change_time: float = field(default=0.0, init=False)
    _debounce_task: asyncio.Task[None] | None = field(default=None, init=False)

    def __post_init__(self) -> None:
        # watchfiles reports absolute, resolved paths
        self.root = self.root.resolve()
        self._is_cross_fs = _is_cross_filesystem(self.root)

    @property
    def running(self) -> bool:
        return self._watch_task is not None and not self._watch_task.done()

    @property
    def degraded(self) -> bool:
        """True once the watcher has given up after losing its directory."""
        return self._degraded

    async def start(self) -> None:
        """Start watching for file changes."""
        if self._watch_task is not None:
            return

        self._stop_event.clear()
        self._degraded = False
        self._watch_task = asyncio.create_task(self._watch_loop())
        self._debounce_task = asyncio.create_task(self._debounce_flush_loop())
        logger.info(
            "file_watcher_started",
            root=str(self.root),
            mode="polling" if self._is_cross_fs else "native",
            debounce_window=self.debounce_window,
        )

    def stop(self) -> None:
        """Detach from the filesystem. Pending unflushed changes are dropped."""
        self._stop_event.set()

        for task in (self._debounce_task, self._watch_task):
            if task is not None and not task.done():
                task.cancel()
        self._debounce_task = None
        self._watch_task = None

        if self._pending_changes:
            logger.debug("pending_changes_dropped", count=len(self._pending_changes))
            self._pending_changes.clear()

        logger.info("file_watcher_stopped")

    def _queue_change(self, path: Path, change: Change) -> None:
        """Queue a change for debounced delivery."""
        now = time.monotonic()

        if not self._pending_changes:
            self._first_change_time = now

        self._pending_changes[path] = change
        self._last_change_time = now

    def _should_flush(self) -> bool:
        """Check if we should flush pending changes."""
        if not self._pending_changes:
            return False

        now = time.monotonic()
        time_since_last = now - self._last_change_time
        time_since_first = now - self._first_change_time

        # Flush if quiet window elapsed OR max wait exceeded
        return time_since_last >= self.debounce_window or time_since_first >= self.max_debounce_wait

    def _flush_pending(self) -> None:
        """Flush pending changes to callback."""
        if not self._pending_changes:
            return

        changes = dict(self._pending_changes)
        self._pending_changes.clear()
        self._first_change_time = 0.0
        self._last_change_time = 0.0

        logger.info("changes_detected", count=len(changes), summary=_summarize_changes(changes))

        self.on_change(list(changes))

    async def _debounce_flush_loop(self) -> None:
        """Background task that flushes when debounce window elapses."""
        while not self._stop_event.is_set():
            await asyncio.sleep(0.05)

            if self._should_flush():
                self._flush_pending()

    def _accepts(self, change: Change, path: str) -> bool:
        return is_relevant_change(self.root, change, path)

    async def _watch_loop(self) -> None:
        """Main watch loop. Retries transient errors, gives up if the root is gone."""
        while not self._stop_event.is_set():
            try:
                async for changes in awatch(
                    self.root,
                    watch_filter=self._accepts,
                    stop_event=self._stop_event,
                    force_polling=self._is_cross_fs,
                    poll_delay_ms=int(self.poll_interval * 1000),
                    step=50,
                    rust_timeout=5_000,
                    ignore_permission_denied=True,
                ):
                    self._handle_changes(changes)
                return
            except asyncio.CancelledError:
                raise
            except Exception as e:
                if self._stop_event.is_set():
                    return
                if not self.root.is_dir():
                    self._degraded = True
                    logger.error("watcher_degraded", root=str(self.root), error=str(e))
                    if self._debounce_task is not None:
                        self._debounce_task.cancel()
                    return
                logger.error("watcher_error", error=str(e))
                await asyncio.sleep(ERROR_BACKOFF_SEC)

    def _handle_changes(self, changes: set[tuple[Change, str]]) -> None:
        """Queue a batch of already-filtered raw events for debouncing."""
        for change_type, path_str in changes:
            try:
                rel_path = Path(path_str).relative_to(self.root)
            except ValueError:
                continue

            self._queue_change(rel_path, change_type)
            logger.debug("path_queued", path=str(rel_path), change_type=change_type.name)
