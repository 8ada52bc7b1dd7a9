# app/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI
from app.api.endpoints import exports
from app.core.config import settings
from app.core.observability import RequestLoggingMiddleware, configure_logging
from app.exports.worker import ExportWorker
# Import all models to ensure relationships are properly resolved
from app.db import base  # This imports all models
from app.db.session import SessionLocal

configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
	worker = None
	if settings.EXPORTS_WORKER_ENABLED:
		worker = ExportWorker(SessionLocal, settings.EXPORTS_WORKER_INTERVAL_SECONDS)
		await worker.start()
	app.state.export_worker = worker
	try:
		yield
	finally:
		if worker is not None:
			await worker.stop()


app = FastAPI(title="Tenant Export Engine", lifespan=lifespan)
app.add_middleware(RequestLoggingMiddleware)

app.include_router(exports.router, prefix="/exports", tags=["exports"])
