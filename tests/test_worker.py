import asyncio
import os
import sys

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from app.db.models.export_job import ExportJob
from app.exports.worker import ExportWorker
from app.schemas.export import ExportJobCreate
from app.services.export_services import build_export_job_service


def _worker(session_factory, storage, interval_seconds=60.0, calls=None):
    def service_factory(db):
        if calls is not None:
            calls.append(db)
        return build_export_job_service(db, storage=storage)
    return ExportWorker(session_factory, interval_seconds, service_factory=service_factory)


def test_tick_without_pending_jobs(session_factory, storage, tenant):
    assert _worker(session_factory, storage).tick() is None


def test_tick_runs_one_pending_job(db, session_factory, storage, owner):
    service = build_export_job_service(db, storage=storage)
    first = service.create_job(owner, ExportJobCreate(type="BRANCHES"))
    second = service.create_job(owner, ExportJobCreate(type="SUPPLIERS"))
    worker = _worker(session_factory, storage)

    assert worker.tick() == first.id

    with session_factory() as check:
        statuses = {job.id: job.status for job in check.query(ExportJob).all()}
    assert statuses == {first.id: "COMPLETED", second.id: "PENDING"}


def test_tick_uses_a_fresh_session_each_time(session_factory, storage, tenant):
    calls = []
    worker = _worker(session_factory, storage, calls=calls)

    worker.tick()
    worker.tick()

    assert len(calls) == 2
    assert calls[0] is not calls[1]


class RecordingWorker(ExportWorker):
    """Keeps the result of every finished tick."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.ticks = []

    def tick(self):
        result = super().tick()
        self.ticks.append(result)
        return result


def test_start_and_stop_run_the_loop(db, session_factory, storage, owner):
    service = build_export_job_service(db, storage=storage)
    job_id = service.create_job(owner, ExportJobCreate(type="PRICE_UPDATES")).id
    db.close()
    worker = RecordingWorker(
        session_factory,
        60.0,
        service_factory=lambda session: build_export_job_service(session, storage=storage),
    )

    async def scenario():
        await worker.start()
        assert worker.running
        # The first tick runs immediately; the next one is a minute away
        for _ in range(500):
            if worker.ticks:
                break
            await asyncio.sleep(0.01)
        await worker.stop()
        assert not worker.running

    asyncio.run(scenario())

    assert worker.ticks == [job_id]
    with session_factory() as check:
        assert check.get(ExportJob, job_id).status == "COMPLETED"
