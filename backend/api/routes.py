"""
API Routes
Sampling plan derivation, context reconciliation and plan document export.
"""
import io
import logging
from urllib.parse import quote

from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse

import config
from models.schemas import (
    ErrorCode,
    HealthResponse,
    InspectionContext,
    PlanExportRequest,
    PlanRequest,
    PlanResponse,
    ReconcileRequest,
)
from services.sampling_service import sampling_service
from services.sync_service import SyncServiceError, reconcile
from services.export_service import ExportServiceError, export_service

logger = logging.getLogger(__name__)

router = APIRouter()  # NO PREFIX - main.py mounts it under /api


def _content_disposition(filename: str) -> str:
    """Attachment header that survives non-latin-1 PO/style numbers (RFC 5987)."""
    fallback = filename.encode("ascii", "replace").decode("ascii").replace('"', "'")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


# ==================
# API Endpoints
# ==================

@router.post("/sampling/plan", response_model=PlanResponse)
async def get_sampling_plan(request: PlanRequest):
    """
    Derive the ISO 2859-1 single sampling plan.

    A missing or non-positive lot size is not an error: the response
    carries plan = null.
    """
    plan = sampling_service.derive_plan(
        request.lot_size,
        request.level,
        request.major_aql,
        request.minor_aql
    )

    if plan is None:
        return PlanResponse(success=True, plan=None, message="Enter a positive lot size to calculate a plan")

    return PlanResponse(success=True, plan=plan)


@router.post("/sampling/reconcile", response_model=InspectionContext)
async def reconcile_context(request: ReconcileRequest):
    """Merge changed plan inputs into an inspection context."""
    try:
        return reconcile(request.context, request.inputs)
    except SyncServiceError as e:
        raise HTTPException(
            status_code=422,
            detail={"code": ErrorCode.INVALID_INPUT.value, "message": str(e)}
        )


@router.get("/sampling/tables")
async def get_sampling_tables():
    """Reference tables used for derivation (for audit screens)."""
    return sampling_service.describe_tables()


@router.post("/sampling/export")
async def export_sampling_plan(request: PlanExportRequest):
    """
    Export the inspection plan as CSV, Excel or PDF.
    """
    # Exports always reflect the derived plan for the submitted inputs
    context = reconcile(request.context)

    try:
        file_bytes, content_type, filename = export_service.generate_plan_export(
            context=context,
            format=request.format,
            metadata=request.metadata,
            filename=request.filename or "inspection_plan"
        )
    except ExportServiceError as e:
        code = ErrorCode.NO_PLAN if context.plan is None else ErrorCode.EXPORT_FAILED
        raise HTTPException(
            status_code=422,
            detail={"code": code.value, "message": str(e)}
        )

    return StreamingResponse(
        io.BytesIO(file_bytes),
        media_type=content_type,
        headers={"Content-Disposition": _content_disposition(filename)}
    )


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint"""
    return HealthResponse(status="ok", version=config.APP_VERSION)
