"""Call-context middleware -- FastAPI dependencies for caller and height.

The registry does not authenticate anyone; the deployment in front of it
is expected to. Requests carry:
1. ``X-Caller-Identity: <identity>`` -- required for every mutation
2. ``X-Current-Height: <int>`` -- optional; defaults to the last height + 1
"""

from __future__ import annotations

import threading
from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from seedreg.config import load_settings
from seedreg.registry.models import CallContext
from seedreg.registry.service import VarietyRegistry

# Shared registry instance
_registry: Optional[VarietyRegistry] = None

# Guards every registry access; sync endpoints run in a thread pool
registry_lock = threading.Lock()


def get_registry() -> VarietyRegistry:
    """Return the singleton VarietyRegistry built from the settings."""
    global _registry
    if _registry is None:
        settings = load_settings()
        _registry = VarietyRegistry.open(
            settings.state_path,
            audit_dir=settings.audit_dir if settings.audit_enabled else None,
            admin=settings.default_caller,
        )
    return _registry


def get_call_context(
    registry: VarietyRegistry = Depends(get_registry),
    x_caller_identity: Optional[str] = Header(None, alias="X-Caller-Identity"),
    x_current_height: Optional[int] = Header(None, alias="X-Current-Height"),
) -> CallContext:
    """FastAPI dependency that builds the ``CallContext`` of a mutation.

    Raises ``401 Unauthorized`` if no caller identity is supplied.
    """
    if not x_caller_identity:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-Caller-Identity header required",
        )
    if x_current_height is not None:
        height = x_current_height
    else:
        with registry_lock:
            height = registry.last_height + 1
    return CallContext(caller=x_caller_identity, height=height)
