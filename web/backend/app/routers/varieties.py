"""Varieties router -- registration, stewardship and lifecycle endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from seedreg.registry.models import CallContext, ErrorKind, OperationResult, VarietyRecord
from seedreg.registry.service import VarietyRegistry
from web.backend.app.middleware.context import get_call_context, get_registry, registry_lock
from web.backend.app.models.api import (
    AddStewardRequest,
    AuditEntryResponse,
    IsStewardResponse,
    NextIdResponse,
    OperationResponse,
    RegisterVarietyRequest,
    RegisterVarietyResponse,
    StewardResponse,
    UpdateVarietyRequest,
    VarietyResponse,
)

router = APIRouter(prefix="/api/varieties", tags=["varieties"])

_ERROR_STATUS = {
    ErrorKind.INVALID_RARITY: 422,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.UNAUTHORIZED: status.HTTP_403_FORBIDDEN,
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _raise_for(result: OperationResult) -> None:
    """Translate a refused operation into an HTTP error."""
    if result.ok:
        return
    raise HTTPException(
        status_code=_ERROR_STATUS[result.error],
        detail={"error": result.error.name, "code": int(result.error)},
    )


def _variety_response(variety: VarietyRecord) -> VarietyResponse:
    return VarietyResponse(
        id=variety.id,
        name=variety.name,
        species=variety.species,
        origin=variety.origin,
        description=variety.description,
        year_documented=variety.year_documented,
        rarity_level=variety.rarity_level,
        registered_by=variety.registered_by,
        registration_height=variety.registration_height,
        active=variety.active,
    )


# ---------------------------------------------------------------------------
# Varieties
# ---------------------------------------------------------------------------


@router.post("", response_model=RegisterVarietyResponse, status_code=status.HTTP_201_CREATED)
def register_variety(
    body: RegisterVarietyRequest,
    ctx: CallContext = Depends(get_call_context),
    registry: VarietyRegistry = Depends(get_registry),
):
    """Register a new variety; the caller becomes its first steward."""
    with registry_lock:
        result = registry.register_variety(
            ctx,
            body.name,
            body.species,
            body.origin,
            body.description,
            body.year_documented,
            body.rarity_level,
        )
    _raise_for(result)
    return RegisterVarietyResponse(variety_id=result.value)


@router.get("", response_model=list[VarietyResponse])
def list_varieties(
    active_only: bool = Query(False),
    registry: VarietyRegistry = Depends(get_registry),
):
    """List all varieties ordered by id."""
    with registry_lock:
        varieties = registry.list_varieties(active_only=active_only)
    return [_variety_response(v) for v in varieties]


@router.get("/next-id", response_model=NextIdResponse)
def next_variety_id(registry: VarietyRegistry = Depends(get_registry)):
    """Return the id the next registration will receive."""
    with registry_lock:
        next_id = registry.get_next_variety_id()
    return NextIdResponse(next_variety_id=next_id)


@router.get("/{variety_id}", response_model=VarietyResponse)
def get_variety(variety_id: int, registry: VarietyRegistry = Depends(get_registry)):
    """Get a single variety."""
    with registry_lock:
        variety = registry.get_variety(variety_id)
    if variety is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": ErrorKind.NOT_FOUND.name, "code": int(ErrorKind.NOT_FOUND)},
        )
    return _variety_response(variety)


@router.patch("/{variety_id}", response_model=OperationResponse)
def update_variety(
    variety_id: int,
    body: UpdateVarietyRequest,
    ctx: CallContext = Depends(get_call_context),
    registry: VarietyRegistry = Depends(get_registry),
):
    """Replace a variety's name, description and rarity level."""
    with registry_lock:
        result = registry.update_variety_details(
            ctx, variety_id, body.name, body.description, body.rarity_level
        )
    _raise_for(result)
    return OperationResponse(variety_id=variety_id, height=ctx.height)


@router.post("/{variety_id}/deactivate", response_model=OperationResponse)
def deactivate_variety(
    variety_id: int,
    ctx: CallContext = Depends(get_call_context),
    registry: VarietyRegistry = Depends(get_registry),
):
    """Deactivate a variety."""
    with registry_lock:
        result = registry.deactivate_variety(ctx, variety_id)
    _raise_for(result)
    return OperationResponse(variety_id=variety_id, height=ctx.height)


# ---------------------------------------------------------------------------
# Stewards
# ---------------------------------------------------------------------------


@router.get("/{variety_id}/stewards", response_model=list[StewardResponse])
def list_stewards(variety_id: int, registry: VarietyRegistry = Depends(get_registry)):
    """List the stewards of a variety."""
    with registry_lock:
        stewards = registry.list_stewards(variety_id)
    return [
        StewardResponse(
            variety_id=variety_id,
            steward=identity,
            since=record.since,
            active=record.active,
        )
        for identity, record in stewards
    ]


@router.post("/{variety_id}/stewards", response_model=OperationResponse)
def add_steward(
    variety_id: int,
    body: AddStewardRequest,
    ctx: CallContext = Depends(get_call_context),
    registry: VarietyRegistry = Depends(get_registry),
):
    """Grant stewardship of a variety to another identity."""
    with registry_lock:
        result = registry.add_steward(ctx, variety_id, body.steward)
    _raise_for(result)
    return OperationResponse(variety_id=variety_id, height=ctx.height)


@router.get("/{variety_id}/stewards/{identity}", response_model=IsStewardResponse)
def is_steward(variety_id: int, identity: str, registry: VarietyRegistry = Depends(get_registry)):
    """Check whether an identity is an active steward of a variety."""
    with registry_lock:
        steward = registry.is_steward(variety_id, identity)
    return IsStewardResponse(variety_id=variety_id, identity=identity, is_steward=steward)


# ---------------------------------------------------------------------------
# Audit
# ---------------------------------------------------------------------------


@router.get("/{variety_id}/audit", response_model=list[AuditEntryResponse])
def variety_audit(variety_id: int, registry: VarietyRegistry = Depends(get_registry)):
    """Return the audit trail of a variety, newest first."""
    if registry.audit is None:
        return []
    with registry_lock:
        events = registry.audit.get_events_for_variety(variety_id)
    return [
        AuditEntryResponse(
            id=e.id,
            timestamp=e.timestamp,
            actor=e.actor,
            action=e.action,
            variety_id=e.variety_id,
            height=e.height,
            success=e.success,
            error_code=e.error_code,
            details=e.details,
        )
        for e in events
    ]
