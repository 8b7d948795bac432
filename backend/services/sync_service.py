"""
Sync Service - keeps an inspection context in step with its sampling plan.

The form changes lot size, level and AQLs independently. Each change goes
through reconcile(), which re-derives the plan and writes sample size and
acceptance limits back without clobbering what the inspector typed:

- sample_size follows the plan until the inspector overrides it
  (sample_size_is_manual).
- tag_quantity follows sample_size while the two are equal; once a caller
  sets a different tag quantity it is left alone.

Contexts are frozen pydantic models, so every change yields a new object
and an unchanged input yields the very same object.
"""
import logging
import math
import threading
from typing import Any, Dict, Optional, Union

import config
from models.schemas import AQLConfig, AcceptanceLimits, InspectionContext, InspectionLevel, PlanInputs
from services.sampling_service import sampling_service

logger = logging.getLogger(__name__)

PLAN_FIELDS = ("lot_size", "aql_level", "aql_major", "aql_minor")


class SyncServiceError(Exception):
    """Raised for user edits the context cannot hold"""
    pass


# ==================
# Input normalisation
# ==================

def _parse_lot_size(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(number) or not number.is_integer():
        return None
    return int(number)


def _parse_level(value: Any) -> Optional[InspectionLevel]:
    if value is None or isinstance(value, InspectionLevel):
        return value
    try:
        return InspectionLevel(str(value).strip().upper())
    except ValueError:
        logger.warning(f"Ignoring unknown inspection level {value!r}")
        return None


def _parse_aql(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


_PARSERS = {
    "lot_size": _parse_lot_size,
    "aql_level": _parse_level,
    "aql_major": _parse_aql,
    "aql_minor": _parse_aql,
}


def _input_changes(inputs: Union[PlanInputs, Dict[str, Any], None]) -> Dict[str, Any]:
    """Only the plan fields the caller actually supplied."""
    if inputs is None:
        return {}
    if isinstance(inputs, PlanInputs):
        raw = inputs.model_dump(exclude_unset=True)
    else:
        raw = dict(inputs)

    unknown = set(raw) - set(PLAN_FIELDS)
    if unknown:
        raise SyncServiceError(f"Not plan inputs: {sorted(unknown)}")

    return {name: _PARSERS[name](value) for name, value in raw.items()}


# ==================
# Tag quantity tracking
# ==================

def _track_tag_quantity(context: InspectionContext, new_sample_size: Optional[int]) -> Dict[str, Any]:
    """tag_quantity moves with sample_size only while it still mirrors it."""
    if not new_sample_size or new_sample_size <= 0:
        return {}
    if context.sample_size is None or context.tag_quantity == context.sample_size:
        return {"tag_quantity": new_sample_size}
    return {}


# ==================
# Public API
# ==================

def new_context(**fields) -> InspectionContext:
    """Empty context carrying the configured AQL defaults."""
    defaults = {
        "aql_level": InspectionLevel(config.DEFAULT_AQL_LEVEL),
        "aql_major": config.DEFAULT_AQL_MAJOR,
        "aql_minor": config.DEFAULT_AQL_MINOR,
        "tag_quantity": config.DEFAULT_TAG_QUANTITY,
    }
    defaults.update(fields)
    return InspectionContext(**defaults)


def reconcile(
    previous: InspectionContext,
    inputs: Union[PlanInputs, Dict[str, Any], None] = None
) -> InspectionContext:
    """
    Applies input changes, re-derives the plan and merges it back.

    Returns `previous` itself when nothing that affects the plan changed.
    """
    changes = {
        name: value for name, value in _input_changes(inputs).items()
        if getattr(previous, name) != value
    }
    context = previous.model_copy(update=changes) if changes else previous

    # Missing level / AQLs fall back to the form defaults
    plan = sampling_service.derive_plan(
        context.lot_size,
        context.aql_level or config.DEFAULT_AQL_LEVEL,
        config.DEFAULT_AQL_MAJOR if context.aql_major is None else context.aql_major,
        config.DEFAULT_AQL_MINOR if context.aql_minor is None else context.aql_minor,
    )

    if plan == context.plan:
        return context

    if plan is None:
        logger.debug(f"Lot size {context.lot_size!r} gives no plan; clearing derived plan")
        return context.model_copy(update={"plan": None, "acceptance_limits": None})

    updates: Dict[str, Any] = {
        "plan": plan,
        "acceptance_limits": AcceptanceLimits.from_plan(plan),
    }
    if not context.sample_size_is_manual and context.sample_size != plan.sample_size:
        updates.update(_track_tag_quantity(context, plan.sample_size))
        updates["sample_size"] = plan.sample_size

    logger.debug(
        f"Plan updated: lot={context.lot_size} level={context.aql_level} "
        f"code={plan.code_letter} n={plan.sample_size}"
    )
    return context.model_copy(update=updates)


def set_sample_size(context: InspectionContext, value: Optional[int]) -> InspectionContext:
    """
    Inspector override of the sample size.

    None drops the override and restores the derived sample size.
    """
    if value is None:
        derived = context.plan.sample_size if context.plan else context.sample_size
        if not context.sample_size_is_manual and derived == context.sample_size:
            return context
        updates: Dict[str, Any] = {"sample_size_is_manual": False, "sample_size": derived}
        updates.update(_track_tag_quantity(context, derived))
        return context.model_copy(update=updates)

    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise SyncServiceError(f"Sample size must be a non-negative integer, got {value!r}")

    if context.sample_size_is_manual and context.sample_size == value:
        return context

    updates = {"sample_size_is_manual": True, "sample_size": value}
    updates.update(_track_tag_quantity(context, value))
    return context.model_copy(update=updates)


def set_tag_quantity(context: InspectionContext, value: int) -> InspectionContext:
    """Caller-chosen tag print quantity; not forced back to sample_size."""
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise SyncServiceError(f"Tag quantity must be a non-negative integer, got {value!r}")
    if context.tag_quantity == value:
        return context
    return context.model_copy(update={"tag_quantity": value})


def apply_item_config(context: InspectionContext, aql_config: Optional[AQLConfig]) -> InspectionContext:
    """Seeds level and AQLs from an item's stored AQL configuration."""
    aql_config = aql_config or AQLConfig()
    return reconcile(context, {
        "aql_level": aql_config.level,
        "aql_major": aql_config.major,
        "aql_minor": aql_config.minor,
    })


class PlanSynchronizer:
    """
    Holds the current context for one inspection.

    Every operation builds a new immutable context and publishes it by
    swapping the reference, so readers see either the old or the new
    context, never a mix.
    """

    def __init__(self, context: Optional[InspectionContext] = None):
        self._context = context if context is not None else new_context()
        self._lock = threading.Lock()

    @property
    def current(self) -> InspectionContext:
        return self._context

    def update(self, inputs: Union[PlanInputs, Dict[str, Any], None] = None, **changes) -> InspectionContext:
        """Reconcile with new plan inputs (mapping, PlanInputs or keywords)."""
        if changes:
            merged = _input_changes(inputs) if inputs is not None else {}
            merged.update(changes)
            inputs = merged
        return self._publish(reconcile, inputs)

    def load_item(self, aql_config: Optional[AQLConfig]) -> InspectionContext:
        return self._publish(apply_item_config, aql_config)

    def override_sample_size(self, value: Optional[int]) -> InspectionContext:
        return self._publish(set_sample_size, value)

    def override_tag_quantity(self, value: int) -> InspectionContext:
        return self._publish(set_tag_quantity, value)

    def _publish(self, operation, *args) -> InspectionContext:
        with self._lock:
            updated = operation(self._context, *args)
            if updated is not self._context:
                self._context = updated
                logger.debug(f"{operation.__name__}: context replaced")
            return updated
