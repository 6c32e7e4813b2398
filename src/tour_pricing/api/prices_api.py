"""
Prices API - FastAPI router for price configuration, commissions,
propagation and snapshots.
"""
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..engine.calculator import TierInputs, additional_cost_totals, calculate
from ..engine.models import Category, CommissionTable, ProductLine, Tier, decode_items
from ..errors import PropagationError, RemoteReadFailed, ValidationFailed
from .state import EngineState, get_engine

router = APIRouter(prefix="/api", tags=["prices"])


# Pydantic models for API
class ItemsPayload(BaseModel):
    """Request model for saving a record."""
    items: Any


class PercentagePayload(BaseModel):
    """Request model for updating one tier's commission."""
    percentage: Any


class PropagateRequest(BaseModel):
    """Request model for tier propagation."""
    product_line: str
    source_tier: str
    category: Optional[str] = None  # None propagates every tier-specific category
    confirm: bool = False
    pending_items: Optional[list[dict]] = None


class SaveResponse(BaseModel):
    """Response model for any write."""
    status: str
    durable: bool


def _save_response(status) -> SaveResponse:
    return SaveResponse(status=status.value, durable=status.value == "ok")


def _bad_request(e: Exception) -> HTTPException:
    detail = {"error": str(e)}
    if isinstance(e, ValidationFailed) and e.field:
        detail["field"] = e.field
    return HTTPException(status_code=400, detail=detail)


def _unavailable(e: RemoteReadFailed) -> HTTPException:
    # nothing was written; the operator can retry once the remote store is back
    return HTTPException(status_code=503, detail={"error": str(e)})


def _encode(items) -> Any:
    if isinstance(items, CommissionTable):
        return items.to_dict()
    return [item.to_dict() for item in items]


# Endpoints

@router.get("/prices/{product_line}/calculate/{tier}")
async def calculate_tier(product_line: str, tier: str, state: EngineState = Depends(get_engine)):
    """Live calculation for one tier (not a snapshot)."""
    try:
        tier = Tier.parse(tier)
        inputs = TierInputs()
        warnings = []
        for category in Category.priced():
            loaded = await state.repository.fetch(product_line, category, tier)
            inputs.set_items(category, loaded.items)
            warnings.extend(loaded.warnings)
        commission = await state.commission.get_table(product_line)
    except ValidationFailed as e:
        raise _bad_request(e)

    breakdown = calculate(inputs, tier, commission)
    return {"breakdown": breakdown.to_dict(), "warnings": warnings}


@router.get("/prices/{product_line}/additional-costs")
async def get_additional_costs(product_line: str, state: EngineState = Depends(get_engine)):
    """Additional costs and their per-currency totals."""
    try:
        loaded = await state.repository.fetch(product_line, Category.ADDITIONAL_COSTS)
    except ValidationFailed as e:
        raise _bad_request(e)
    totals = additional_cost_totals(loaded.items)
    return {
        "items": _encode(loaded.items),
        "totals": {currency: float(total) for currency, total in totals.items()},
        "source": loaded.source,
        "warnings": loaded.warnings,
    }


@router.get("/prices/{product_line}/{category}/{tier}")
async def get_prices(product_line: str, category: str, tier: str, state: EngineState = Depends(get_engine)):
    """Items of one record with their source."""
    try:
        loaded = await state.repository.fetch(product_line, category, tier)
    except ValidationFailed as e:
        raise _bad_request(e)
    return {"items": _encode(loaded.items), "source": loaded.source, "warnings": loaded.warnings}


@router.put("/prices/{product_line}/{category}/{tier}", response_model=SaveResponse)
async def save_prices(
    product_line: str, category: str, tier: str, payload: ItemsPayload,
    state: EngineState = Depends(get_engine),
):
    """Save one record. A partial status means the edit is cached but not yet durable."""
    try:
        parsed_category = Category.parse(category)
        items = decode_items(parsed_category, payload.items)
        status = await state.repository.save(product_line, parsed_category, tier, items)
    except ValidationFailed as e:
        raise _bad_request(e)
    return _save_response(status)


@router.delete("/prices/{product_line}/{category}/{tier}/items/{item_id}", response_model=SaveResponse)
async def remove_item(
    product_line: str, category: str, tier: str, item_id: int,
    state: EngineState = Depends(get_engine),
):
    """Remove one row from a record."""
    try:
        status = await state.repository.remove_item(product_line, category, tier, item_id)
    except ValidationFailed as e:
        if e.field == 'id':
            raise HTTPException(status_code=404, detail=str(e))
        raise _bad_request(e)
    except RemoteReadFailed as e:
        raise _unavailable(e)
    return _save_response(status)


@router.get("/commission/{product_line}")
async def get_commission(product_line: str, state: EngineState = Depends(get_engine)):
    try:
        table = await state.commission.get_table(product_line)
    except ValidationFailed as e:
        raise _bad_request(e)
    return {"percentages": table.to_dict()}


@router.put("/commission/{product_line}/{tier}", response_model=SaveResponse)
async def set_commission(
    product_line: str, tier: str, payload: PercentagePayload,
    state: EngineState = Depends(get_engine),
):
    try:
        status = await state.commission.set_percentage(product_line, tier, payload.percentage)
    except ValidationFailed as e:
        raise _bad_request(e)
    except RemoteReadFailed as e:
        raise _unavailable(e)
    return _save_response(status)


@router.post("/propagate")
async def propagate(request: PropagateRequest, state: EngineState = Depends(get_engine)):
    """Copy a tier onto its target tiers. Irreversible; needs confirm=true."""
    try:
        if request.category is None:
            if request.pending_items is not None:
                raise PropagationError("pending_items requires a category")
            results = await state.propagator.propagate_all(
                request.product_line, request.source_tier, confirm=request.confirm
            )
        else:
            category = Category.parse(request.category)
            pending = None
            if request.pending_items is not None:
                pending = decode_items(category, request.pending_items)
            results = [await state.propagator.propagate(
                request.product_line, category, request.source_tier,
                confirm=request.confirm, pending_items=pending,
            )]
    except (ValidationFailed, PropagationError) as e:
        raise _bad_request(e)
    except RemoteReadFailed as e:
        raise _unavailable(e)

    reload = {tier for r in results for tier in r.reload_tiers}
    return {
        "results": [r.to_dict() for r in results],
        "reload": [tier.value for tier in Tier if tier in reload],
    }


@router.post("/snapshots/{product_line}/capture")
async def capture_snapshot(product_line: str, state: EngineState = Depends(get_engine)):
    """Make the current calculation the official prices for invoicing."""
    try:
        capture = await state.snapshots.capture(product_line)
    except ValidationFailed as e:
        raise _bad_request(e)
    except OSError as e:
        raise HTTPException(status_code=500, detail=f"Snapshot could not be stored: {e}")
    return capture.to_dict()


@router.get("/snapshots/{product_line}")
async def get_snapshots(product_line: str, state: EngineState = Depends(get_engine)):
    try:
        snapshots = state.snapshots.get_all(product_line)
    except ValidationFailed as e:
        raise _bad_request(e)
    return {"snapshots": {tier.value: snap.to_dict() for tier, snap in snapshots.items()}}


@router.get("/snapshots/{product_line}/group/{travelers}")
async def get_snapshot_for_group(product_line: str, travelers: int, state: EngineState = Depends(get_engine)):
    """Captured prices for an actual group size."""
    try:
        tier = Tier.for_group_size(travelers)
        snapshot = state.snapshots.get(ProductLine.parse(product_line), tier)
    except ValidationFailed as e:
        raise _bad_request(e)
    if snapshot is None:
        raise HTTPException(status_code=404, detail=f"No captured prices for {product_line} tier {tier.value}")
    return {"tier": tier.value, **snapshot.to_dict()}
