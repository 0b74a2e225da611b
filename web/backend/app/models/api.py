"""Pydantic models for API request/response serialization.

These models mirror the registry dataclasses and provide JSON
serialization for the FastAPI endpoints.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Variety models
# ---------------------------------------------------------------------------


class VarietyResponse(BaseModel):
    """Mirrors seedreg.registry.models.VarietyRecord."""

    id: int
    name: str
    species: str
    origin: str
    description: str
    year_documented: int
    rarity_level: int
    registered_by: str
    registration_height: int
    active: bool


class RegisterVarietyRequest(BaseModel):
    """Body for registering a variety."""

    name: str
    species: str
    origin: str = ""
    description: str = ""
    year_documented: int
    rarity_level: int


class RegisterVarietyResponse(BaseModel):
    variety_id: int


class UpdateVarietyRequest(BaseModel):
    """Body for replacing a variety's mutable details."""

    name: str
    description: str
    rarity_level: int


class NextIdResponse(BaseModel):
    next_variety_id: int


# ---------------------------------------------------------------------------
# Steward models
# ---------------------------------------------------------------------------


class AddStewardRequest(BaseModel):
    steward: str


class StewardResponse(BaseModel):
    """Mirrors seedreg.registry.models.StewardRecord plus its identity."""

    variety_id: int
    steward: str
    since: int
    active: bool


class IsStewardResponse(BaseModel):
    variety_id: int
    identity: str
    is_steward: bool


# ---------------------------------------------------------------------------
# Operation / audit models
# ---------------------------------------------------------------------------


class OperationResponse(BaseModel):
    """Acknowledgement of an accepted mutation."""

    success: bool = True
    variety_id: int
    height: int


class AuditEntryResponse(BaseModel):
    """Mirrors seedreg.security.audit_log.AuditEntry."""

    id: str
    timestamp: str
    actor: str
    action: str
    variety_id: Optional[int] = None
    height: int
    success: bool = True
    error_code: int = 0
    details: dict[str, Any] = Field(default_factory=dict)
