"""
Model Stats API Module

FastAPI endpoints over the reconciliation service: the merged model list,
single-model lookup, a pricing view with a cost calculator, health, and a
config refresh hook.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel
import logging

from model_reconciler.models import ARENA_PREFIX, MergedModel
from model_reconciler.service import ModelReconciliationService

# Configure logging
logger = logging.getLogger(__name__)

# Create router for the model stats endpoints
router = APIRouter(prefix="/api", tags=["models"])

PER_MILLION = 1_000_000


class HealthResponse(BaseModel):
    status: str
    total_models: int
    configured_models: int
    timestamp: str
    warnings: List[str] = []
    cached_sources: int = 0


class RefreshResponse(BaseModel):
    status: str
    models_loaded: int


def get_service(request: Request) -> ModelReconciliationService:
    """Dependency to get the reconciliation service from app state."""
    if not hasattr(request.app.state, "reconciliation_service"):
        raise HTTPException(status_code=500, detail="Reconciliation service not initialized")
    return request.app.state.reconciliation_service


# ============================================================================
# Sorting
# ============================================================================

MODEL_SORT_FIELDS: Dict[str, Callable[[MergedModel], Any]] = {
    "name": lambda m: m.name,
    "provider": lambda m: m.provider,
    "context_length": lambda m: m.context_length,
    "input_price": lambda m: m.pricing.input_per_million,
    "output_price": lambda m: m.pricing.output_per_million,
}

PRICING_SORT_FIELDS: Dict[str, Callable[[MergedModel], Any]] = {
    "input": lambda m: m.pricing.input_per_million,
    "output": lambda m: m.pricing.output_per_million,
}


def _model_sort_key(field: str) -> Optional[Callable[[MergedModel], Any]]:
    if field in MODEL_SORT_FIELDS:
        return MODEL_SORT_FIELDS[field]
    if field.startswith(ARENA_PREFIX):
        category = field[len(ARENA_PREFIX):]
        return lambda m: m.benchmark_rating(category)
    return None


def sort_models(
    models: List[MergedModel],
    sort: Optional[str],
    fields: Callable[[str], Optional[Callable[[MergedModel], Any]]] = _model_sort_key,
    default_field: Optional[str] = None,
) -> List[MergedModel]:
    """
    Sort by "field:dir" (dir is "asc" or "desc"). Missing values always sort
    last; an unknown field leaves the order unchanged.
    """
    if not sort:
        return models

    field, _, direction = sort.partition(":")
    getter = fields(field) or (fields(default_field) if default_field else None)
    if getter is None:
        return models

    def key(model: MergedModel) -> Any:
        value = getter(model)
        return value.lower() if isinstance(value, str) else value

    present = [m for m in models if getter(m) is not None]
    missing = [m for m in models if getter(m) is None]
    present.sort(key=key, reverse=direction == "desc")
    return present + missing


def calculated_cost(
    model: MergedModel, input_tokens: int, output_tokens: int, requests: int
) -> Dict[str, Optional[float]]:
    """Cost of ``requests`` calls with the given token counts, in USD."""
    pricing = model.pricing
    input_cost = (
        input_tokens / PER_MILLION * pricing.input_per_million * requests
        if pricing.input_per_million is not None
        else None
    )
    output_cost = (
        output_tokens / PER_MILLION * pricing.output_per_million * requests
        if pricing.output_per_million is not None
        else None
    )
    total_cost = (
        input_cost + output_cost
        if input_cost is not None and output_cost is not None
        else None
    )
    return {"input_cost": input_cost, "output_cost": output_cost, "total_cost": total_cost}


# ============================================================================
# Endpoints
# ============================================================================


@router.get("/models")
async def list_models(
    include_unconfigured: bool = False,
    provider: Optional[str] = None,
    search: Optional[str] = None,
    sort: Optional[str] = None,
    service: ModelReconciliationService = Depends(get_service),
) -> Dict[str, Any]:
    """
    List reconciled models.

    Returns:
        JSON with ``data`` (models), ``total`` and the pass ``warnings``
    """
    try:
        result = await service.get_all_models(include_unconfigured)
    except Exception as e:
        logger.error(f"Failed to fetch models: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch models")

    models = result.models
    if provider:
        models = [m for m in models if m.provider.lower() == provider.lower()]
    if search:
        needle = search.lower()
        models = [
            m
            for m in models
            if needle in m.id.lower()
            or needle in m.name.lower()
            or needle in m.provider.lower()
        ]
    models = sort_models(models, sort)

    return {
        "data": [m.to_dict() for m in models],
        "total": len(models),
        "warnings": result.warnings,
    }


@router.get("/models/{model_id:path}")
async def get_model(
    model_id: str,
    service: ModelReconciliationService = Depends(get_service),
) -> Dict[str, Any]:
    """Get one reconciled model by id (ids contain slashes)."""
    try:
        model = await service.get_model_by_id(model_id)
    except Exception as e:
        logger.error(f"Failed to fetch model {model_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch model")

    if model is None:
        raise HTTPException(status_code=404, detail="Model not found")
    return model.to_dict()


@router.get("/pricing")
async def get_pricing(
    sort: Optional[str] = None,
    input_tokens: int = Query(0, ge=0),
    output_tokens: int = Query(0, ge=0),
    requests: int = Query(1, ge=1),
    service: ModelReconciliationService = Depends(get_service),
) -> Dict[str, Any]:
    """
    Configured models that carry any price, optionally with a cost estimate.

    Sort fields are ``input`` and ``output``; any other field sorts by input.
    """
    try:
        result = await service.get_all_models()
    except Exception as e:
        logger.error(f"Failed to fetch pricing: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch pricing")

    models = [m for m in result.models if m.pricing.has_price]
    models = sort_models(models, sort, PRICING_SORT_FIELDS.get, default_field="input")

    data = []
    for model in models:
        record = model.to_dict()
        if input_tokens > 0 or output_tokens > 0:
            record["calculated_cost"] = calculated_cost(
                model, input_tokens, output_tokens, requests
            )
        data.append(record)

    return {"data": data, "total": len(data)}


@router.get("/health", response_model=HealthResponse)
async def health(service: ModelReconciliationService = Depends(get_service)):
    """Run a pass and report counts plus any degraded sources."""
    try:
        result = await service.get_all_models()
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        raise HTTPException(status_code=500, detail="Health check failed")

    status = service.status()
    return HealthResponse(
        status="ok" if status["healthy"] else "degraded",
        total_models=len(result.models),
        configured_models=sum(1 for m in result.models if m.is_configured),
        timestamp=datetime.now(timezone.utc).isoformat(),
        warnings=result.warnings,
        cached_sources=status["cached_sources"],
    )


@router.post("/config/refresh", response_model=RefreshResponse)
async def refresh_config(service: ModelReconciliationService = Depends(get_service)):
    """Flush cached source data and reload the model list."""
    try:
        result = await service.refresh()
    except Exception as e:
        logger.error(f"Config refresh failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to refresh config")

    return RefreshResponse(status="ok", models_loaded=result["models_loaded"])
