from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import Body, Depends, HTTPException, Query
from app.api.router import create_router
from app.api.dependencies.auth import get_current_principal
from app.api.dependencies.services import get_export_job_service
from app.schemas.auth import Principal
from app.schemas.export import (
	CsvExportResult,
	ExportJobCreate,
	ExportJobPage,
	ExportJobRead,
	ExportJobRun,
	WorkerStatus,
)
from app.services.exceptions import ServiceError
from app.services.export_services import ExportJobService


router = create_router(name="exports")


def _http_error(e: ServiceError) -> HTTPException:
	status_code = e.http_status.value
	# Client errors carry the specific reason; server errors stay generic
	detail = e.message if status_code < 500 else e.user_message
	return HTTPException(status_code=status_code, detail=detail)


@router.get("/stock", response_model=CsvExportResult)
def export_stock(
	branch_id: Optional[str] = Query(default=None, alias="branchId"),
	principal: Principal = Depends(get_current_principal),
	export_service: ExportJobService = Depends(get_export_job_service),
):
	"""Stock levels as CSV, generated immediately instead of queued."""
	try:
		payload = export_service.export_stock_csv(principal, branch_id)
	except ServiceError as e:
		raise _http_error(e)
	return CsvExportResult(filename=payload.filename, csv=payload.csv)


@router.post("/jobs", status_code=201, response_model=ExportJobRead)
def create_export_job(
	data: ExportJobCreate,
	principal: Principal = Depends(get_current_principal),
	export_service: ExportJobService = Depends(get_export_job_service),
):
	try:
		return export_service.create_job(principal, data)
	except ServiceError as e:
		raise _http_error(e)


@router.get("/jobs", response_model=ExportJobPage)
def list_export_jobs(
	status: Optional[str] = Query(default=None),
	job_type: Optional[str] = Query(default=None, alias="type"),
	branch_id: Optional[str] = Query(default=None, alias="branchId"),
	created_from: Optional[datetime] = Query(default=None, alias="from"),
	created_to: Optional[datetime] = Query(default=None, alias="to"),
	search: Optional[str] = Query(default=None),
	limit: Optional[int] = Query(default=None, ge=1),
	cursor: Optional[str] = Query(default=None),
	include_total: bool = Query(default=False, alias="includeTotal"),
	principal: Principal = Depends(get_current_principal),
	export_service: ExportJobService = Depends(get_export_job_service),
):
	try:
		return export_service.list_jobs(
			principal,
			status=status,
			job_type=job_type,
			branch_id=branch_id,
			created_from=created_from,
			created_to=created_to,
			search=search,
			limit=limit,
			cursor=cursor,
			include_total=include_total,
		)
	except ServiceError as e:
		raise _http_error(e)


@router.post("/jobs/{job_id}/run", response_model=ExportJobRead)
def run_export_job(
	job_id: str,
	data: Optional[ExportJobRun] = Body(default=None),
	principal: Principal = Depends(get_current_principal),
	export_service: ExportJobService = Depends(get_export_job_service),
):
	"""Run a job now; export failures are reported on the returned job, not as errors."""
	acknowledgement = data.acknowledgement if data else None
	try:
		return export_service.run_job_for(principal, job_id, acknowledgement)
	except ServiceError as e:
		raise _http_error(e)


@router.get("/jobs/{job_id}/download", response_model=Dict[str, Any])
def download_export_job(
	job_id: str,
	principal: Principal = Depends(get_current_principal),
	export_service: ExportJobService = Depends(get_export_job_service),
):
	try:
		return export_service.download(principal, job_id)
	except ServiceError as e:
		raise _http_error(e)


@router.get("/worker/status", response_model=WorkerStatus)
def export_worker_status(
	principal: Principal = Depends(get_current_principal),
	export_service: ExportJobService = Depends(get_export_job_service),
):
	return export_service.get_worker_status(principal.business_id)
