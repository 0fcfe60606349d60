# src/taskgate/sync/coordinator.py

from __future__ import annotations

"""
Sync coordinator.

Writes the change list of a converged pass back to the system of record:
- one independent write per change,
- dispatched concurrently through a bounded pool (no ordering between writes),
- a failure is caught, logged and reported; siblings keep going,
- no retry and no rollback: the next full refresh resolves any divergence.
"""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from ..core.models import StateChange
from ..core.ports import StateWriter

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class SyncResult:
    change: StateChange
    ok: bool
    error: Exception | None = None


@dataclass(slots=True)
class SyncReport:
    results: list[SyncResult] = field(default_factory=list)

    @property
    def succeeded(self) -> list[SyncResult]:
        return [r for r in self.results if r.ok]

    @property
    def failed(self) -> list[SyncResult]:
        return [r for r in self.results if not r.ok]

    @property
    def ok(self) -> bool:
        return all(r.ok for r in self.results)


class SyncCoordinator:
    def __init__(self, writer: StateWriter, *, max_concurrency: int = 8) -> None:
        self._writer = writer
        self.max_concurrency = max(1, int(max_concurrency))

    async def dispatch(self, changes: Sequence[StateChange]) -> SyncReport:
        if not changes:
            return SyncReport()

        sem = asyncio.Semaphore(self.max_concurrency)

        async def _write_one(change: StateChange) -> SyncResult:
            async with sem:
                try:
                    await self._writer.write_state(change.task_id, change.state)
                except Exception as exc:
                    logger.warning(
                        "State sync failed task_id=%s state=%s: %s",
                        change.task_id,
                        change.state.value,
                        exc,
                        exc_info=True,
                    )
                    return SyncResult(change=change, ok=False, error=exc)

            logger.debug("Synced task_id=%s -> %s", change.task_id, change.state.value)
            return SyncResult(change=change, ok=True)

        results = await asyncio.gather(*(_write_one(c) for c in changes))
        report = SyncReport(results=list(results))

        if report.failed:
            logger.warning(
                "Sync finished with failures: ok=%d failed=%d (local view kept until next refresh)",
                len(report.succeeded),
                len(report.failed),
            )
        else:
            logger.info("Synced %d state change(s)", len(report.results))
        return report
