"""
Pydantic models for the Sampling Plan API
Single source of truth for all data models.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Dict, Any
from enum import Enum


# ==================
# Enums
# ==================

class ErrorCode(str, Enum):
    """Error codes for API responses"""
    INVALID_INPUT = "INVALID_INPUT"
    NO_PLAN = "NO_PLAN"
    UNSUPPORTED_FORMAT = "UNSUPPORTED_FORMAT"
    EXPORT_FAILED = "EXPORT_FAILED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class InspectionLevel(str, Enum):
    """General inspection levels (I = relaxed, II = normal, III = tight)"""
    I = "I"
    II = "II"
    III = "III"


class InspectionType(str, Enum):
    """Where in the flow the lot is inspected"""
    INCOMING = "incoming"
    FINISHED_GOODS = "finished_goods"
    IN_PROCESS = "in_process"


class ExportFormat(str, Enum):
    """Supported plan document formats"""
    CSV = "csv"
    XLSX = "xlsx"
    PDF = "pdf"


# ==================
# Core Models
# ==================

class AcceptReject(BaseModel):
    """Accept / Reject numbers for one defect severity"""
    model_config = ConfigDict(frozen=True)

    ac: int = Field(..., ge=0)
    re: int = Field(..., ge=1)


class SamplingPlanResult(BaseModel):
    """A derived single sampling plan. Recomputed, never edited."""
    model_config = ConfigDict(frozen=True)

    sample_size: int = Field(..., ge=2)
    code_letter: str
    major: AcceptReject
    minor: AcceptReject


class AcceptanceLimits(BaseModel):
    """Flat Ac/Re shape written back onto the inspection record"""
    model_config = ConfigDict(frozen=True)

    major_ac: int
    major_re: int
    minor_ac: int
    minor_re: int

    @classmethod
    def from_plan(cls, plan: SamplingPlanResult) -> "AcceptanceLimits":
        return cls(
            major_ac=plan.major.ac,
            major_re=plan.major.re,
            minor_ac=plan.minor.ac,
            minor_re=plan.minor.re,
        )


class AQLConfig(BaseModel):
    """Per-item AQL defaults (item master)"""
    level: InspectionLevel = InspectionLevel.II
    major: float = 2.5
    minor: float = 4.0


class InspectionContext(BaseModel):
    """
    The sampling part of an inspection record.

    lot_size / aql_level / aql_major / aql_minor are inputs; plan,
    sample_size and acceptance_limits are written back by the sync
    service. sample_size and tag_quantity may be edited by the user.
    """
    model_config = ConfigDict(frozen=True)

    lot_size: Optional[int] = None
    aql_level: Optional[InspectionLevel] = InspectionLevel.II
    aql_major: Optional[float] = 2.5
    aql_minor: Optional[float] = 4.0

    # Write-back
    plan: Optional[SamplingPlanResult] = None
    sample_size: Optional[int] = Field(default=None, ge=0)
    acceptance_limits: Optional[AcceptanceLimits] = None

    # User controlled
    sample_size_is_manual: bool = False
    tag_quantity: int = Field(default=4, ge=0)


class PlanInputs(BaseModel):
    """Partial update of the plan-affecting fields. Unset fields are left alone."""
    lot_size: Optional[int] = None
    aql_level: Optional[InspectionLevel] = None
    aql_major: Optional[float] = None
    aql_minor: Optional[float] = None


class PlanMetadata(BaseModel):
    """Header information for the printed plan document"""
    inspection_type: InspectionType = InspectionType.INCOMING
    supplier_name: Optional[str] = None
    brand: Optional[str] = None
    inspector_name: Optional[str] = None
    item_name: Optional[str] = None
    po_number: Optional[str] = None
    style_number: Optional[str] = None
    batch_lot_number: Optional[str] = None


# ==================
# Request/Response Models
# ==================

class PlanRequest(BaseModel):
    """Request body for /api/sampling/plan"""
    lot_size: Optional[int] = None
    level: InspectionLevel = InspectionLevel.II
    major_aql: float = 2.5
    minor_aql: float = 4.0


class PlanResponse(BaseModel):
    """Response from /api/sampling/plan"""
    success: bool
    plan: Optional[SamplingPlanResult] = None
    message: Optional[str] = None


class ReconcileRequest(BaseModel):
    """Request body for /api/sampling/reconcile"""
    context: InspectionContext = Field(default_factory=InspectionContext)
    inputs: PlanInputs = Field(default_factory=PlanInputs)


class PlanExportRequest(BaseModel):
    """Request body for /api/sampling/export"""
    format: ExportFormat = ExportFormat.PDF
    context: InspectionContext
    metadata: PlanMetadata = Field(default_factory=PlanMetadata)
    filename: str = "inspection_plan"


class ErrorResponse(BaseModel):
    """Error details"""
    code: ErrorCode
    message: str
    details: Optional[Dict[str, Any]] = None


class HealthResponse(BaseModel):
    """Response from /api/health endpoint"""
    status: str
    version: str
