"""
Models Package - Exposes all schemas
"""
from .schemas import (
    # Enums
    ErrorCode,
    InspectionLevel,
    InspectionType,
    ExportFormat,

    # Core Models
    AcceptReject,
    SamplingPlanResult,
    AcceptanceLimits,
    AQLConfig,
    InspectionContext,
    PlanInputs,
    PlanMetadata,

    # Request/Response Models
    PlanRequest,
    PlanResponse,
    ReconcileRequest,
    PlanExportRequest,
    ErrorResponse,
    HealthResponse
)

__all__ = [
    "ErrorCode",
    "InspectionLevel",
    "InspectionType",
    "ExportFormat",
    "AcceptReject",
    "SamplingPlanResult",
    "AcceptanceLimits",
    "AQLConfig",
    "InspectionContext",
    "PlanInputs",
    "PlanMetadata",
    "PlanRequest",
    "PlanResponse",
    "ReconcileRequest",
    "PlanExportRequest",
    "ErrorResponse",
    "HealthResponse"
]
