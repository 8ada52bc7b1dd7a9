"""Polling export worker.

Runs inside the API process as an asyncio task. Each tick opens a fresh
database session and runs at most one pending job in a thread executor, so the
event loop never blocks on export work. Several processes may run workers
against the same database; the conditional claim keeps each job to one of them.
"""

import asyncio
import logging
from typing import Callable, Optional

from sqlalchemy.orm import Session

from app.services.export_services import ExportJobService, build_export_job_service

logger = logging.getLogger(__name__)

ServiceFactory = Callable[[Session], ExportJobService]


class ExportWorker:
    """Runs one pending export job every ``interval_seconds``."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        interval_seconds: float,
        service_factory: Optional[ServiceFactory] = None,
    ):
        self._session_factory = session_factory
        self._service_factory = service_factory or (lambda db: build_export_job_service(db))
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def tick(self) -> Optional[str]:
        """Run the next pending job synchronously; returns its id, if one ran."""
        db = self._session_factory()
        try:
            job = self._service_factory(db).run_next_pending_job()
            if job is None:
                return None
            logger.info("Export worker ran job", extra={"job_id": job.id, "status": job.status})
            return job.id
        finally:
            db.close()

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._worker_loop())
        logger.info("Export worker started", extra={"interval_seconds": self.interval_seconds})

    async def stop(self) -> None:
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Export worker stopped")

    async def _worker_loop(self) -> None:
        loop = asyncio.get_running_loop()
        while self._running:
            try:
                # Awaited before the next sleep: ticks never overlap
                await loop.run_in_executor(None, self.tick)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Export worker tick failed")
            await asyncio.sleep(self.interval_seconds)
