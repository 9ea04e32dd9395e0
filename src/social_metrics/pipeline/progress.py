"""Best-effort progress accounting for one job run.

State machine::

    NOT_STARTED -> STARTED(row, total) -> UPDATED(processed)* -> FINISHED

Every store call runs in a worker thread.  A store failure is logged and
swallowed: progress is observability, never a reason to abort a job.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum

from social_metrics.core.exceptions import SinkError
from social_metrics.sinks.base import ProgressStore

logger = logging.getLogger(__name__)


class ProgressState(str, Enum):
    NOT_STARTED = "not_started"
    STARTED = "started"
    UPDATED = "updated"
    FINISHED = "finished"


class ProgressTracker:
    """Drives a :class:`ProgressStore` for a single job.

    Args:
        store: Backend persisting the progress row.  ``None`` disables
            tracking (synchronous single-item lookups).
        spreadsheet_id: Spreadsheet the progress sheet lives in.
    """

    def __init__(self, store: ProgressStore | None, spreadsheet_id: str = "") -> None:
        self.store = store
        self.spreadsheet_id = spreadsheet_id
        self.state = ProgressState.NOT_STARTED
        self.row: int | None = None
        self.total = 0
        self.processed = 0

    async def _call(self, operation: str, func, *args):  # type: ignore[no-untyped-def]
        if self.store is None:
            return None
        try:
            return await asyncio.to_thread(func, self.spreadsheet_id, *args)
        except SinkError as exc:
            logger.error("progress: %s failed for %s: %s", operation, self.spreadsheet_id, exc)
            return None
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "progress: %s failed for %s with unexpected %s: %s",
                operation,
                self.spreadsheet_id,
                type(exc).__name__,
                exc,
            )
            return None

    async def ensure_sheet(self) -> None:
        """Idempotently prepare the progress store."""
        if self.store is not None:
            await self._call("ensure_progress_sheet", self.store.ensure_progress_sheet)

    async def start(self, total: int) -> int | None:
        """Create the tracking row and return its handle (``None`` on failure)."""
        self.total = total
        self.processed = 0
        if self.store is not None:
            self.row = await self._call("start_parsing", self.store.start_parsing, total)
        self.state = ProgressState.STARTED
        return self.row

    async def update(self, processed: int) -> None:
        """Record the cumulative number of processed inputs."""
        if self.state not in (ProgressState.STARTED, ProgressState.UPDATED):
            logger.debug("progress: update(%d) ignored in state %s", processed, self.state.value)
            return
        self.processed = processed
        self.state = ProgressState.UPDATED
        if self.store is not None and self.row is not None:
            await self._call("update_progress", self.store.update_progress, self.row, processed)

    async def finish(self) -> None:
        """Record the completion time.  Calling it twice is a no-op."""
        if self.state is ProgressState.FINISHED:
            return
        was_started = self.state is not ProgressState.NOT_STARTED
        self.state = ProgressState.FINISHED
        if was_started and self.store is not None and self.row is not None:
            await self._call("finish_parsing", self.store.finish_parsing, self.row)
