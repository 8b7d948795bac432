from .sampling_service import SamplingService, sampling_service, derive_plan
from .sync_service import (
    SyncServiceError,
    PlanSynchronizer,
    new_context,
    reconcile,
    set_sample_size,
    set_tag_quantity,
    apply_item_config,
)
from .export_service import ExportService, ExportServiceError, export_service

__all__ = [
    # Tables + derivation
    "SamplingService",
    "sampling_service",
    "derive_plan",

    # Context synchronisation
    "SyncServiceError",
    "PlanSynchronizer",
    "new_context",
    "reconcile",
    "set_sample_size",
    "set_tag_quantity",
    "apply_item_config",

    # Plan documents
    "ExportService",
    "ExportServiceError",
    "export_service",
]
