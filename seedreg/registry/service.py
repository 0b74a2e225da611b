"""Variety registry service.

Holds the variety map, the steward map and the id counter, and enforces
that only an active steward of a variety may change it. Operations return
an ``OperationResult`` instead of raising; refusals leave state untouched.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import Optional

from seedreg.registry import MAX_RARITY_LEVEL
from seedreg.registry.models import (
    CallContext,
    ErrorKind,
    OperationResult,
    StewardRecord,
    VarietyRecord,
)
from seedreg.registry.store import RegistryState, StateFile
from seedreg.security.audit_log import AuditLogger

logger = logging.getLogger(__name__)


class VarietyRegistry:
    """Registry of seed varieties and their stewards."""

    def __init__(
        self,
        state: Optional[RegistryState] = None,
        state_file: Optional[StateFile] = None,
        audit: Optional[AuditLogger] = None,
    ):
        if state is None:
            state = state_file.load() if state_file is not None else RegistryState()
        self._state = state
        self._state_file = state_file
        self._audit = audit

    @classmethod
    def open(
        cls,
        state_path: str | Path,
        audit_dir: str | Path | None = None,
        admin: str = "",
    ) -> VarietyRegistry:
        """Open (or create) a registry persisted at ``state_path``.

        ``admin`` is recorded only when the snapshot does not exist yet.
        """
        state_file = StateFile(state_path)
        state = state_file.load()
        if not state_file.exists() and admin:
            state.admin = admin
        audit = AuditLogger(audit_dir) if audit_dir else None
        return cls(state=state, state_file=state_file, audit=audit)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def register_variety(
        self,
        ctx: CallContext,
        name: str,
        species: str,
        origin: str,
        description: str,
        year_documented: int,
        rarity_level: int,
    ) -> OperationResult:
        """Register a new variety; the caller becomes its first steward.

        Returns the assigned variety id.
        """
        if rarity_level > MAX_RARITY_LEVEL:
            return self._refuse(ctx, "register_variety", None, ErrorKind.INVALID_RARITY)

        variety_id = self._state.next_variety_id
        staged = self._state.copy()
        staged.varieties[variety_id] = VarietyRecord(
            id=variety_id,
            name=name,
            species=species,
            origin=origin,
            description=description,
            year_documented=year_documented,
            rarity_level=rarity_level,
            registered_by=ctx.caller,
            registration_height=ctx.height,
            active=True,
        )
        staged.stewards[(variety_id, ctx.caller)] = StewardRecord(since=ctx.height)
        staged.next_variety_id = variety_id + 1

        result = self._accept(ctx, staged, "register_variety", variety_id, variety_id, {"name": name})
        logger.info("Variety %d (%s) registered by %s", variety_id, name, ctx.caller)
        return result

    def update_variety_details(
        self,
        ctx: CallContext,
        variety_id: int,
        name: str,
        description: str,
        rarity_level: int,
    ) -> OperationResult:
        """Replace the name, description and rarity level of a variety."""
        variety = self._state.varieties.get(variety_id)
        if variety is None:
            return self._refuse(ctx, "update_variety_details", variety_id, ErrorKind.NOT_FOUND)
        if not self.is_steward(variety_id, ctx.caller):
            return self._refuse(ctx, "update_variety_details", variety_id, ErrorKind.UNAUTHORIZED)
        if rarity_level > MAX_RARITY_LEVEL:
            return self._refuse(ctx, "update_variety_details", variety_id, ErrorKind.INVALID_RARITY)

        staged = self._state.copy()
        staged.varieties[variety_id] = replace(
            variety,
            name=name,
            description=description,
            rarity_level=rarity_level,
        )

        result = self._accept(
            ctx,
            staged,
            "update_variety_details",
            variety_id,
            True,
            {"name": name, "rarity_level": rarity_level},
        )
        logger.info("Variety %d updated by %s", variety_id, ctx.caller)
        return result

    def add_steward(self, ctx: CallContext, variety_id: int, new_steward: str) -> OperationResult:
        """Grant stewardship of a variety; re-adding resets ``since``."""
        if variety_id not in self._state.varieties:
            return self._refuse(ctx, "add_steward", variety_id, ErrorKind.NOT_FOUND)
        if not self.is_steward(variety_id, ctx.caller):
            return self._refuse(ctx, "add_steward", variety_id, ErrorKind.UNAUTHORIZED)

        staged = self._state.copy()
        staged.stewards[(variety_id, new_steward)] = StewardRecord(since=ctx.height)

        result = self._accept(ctx, staged, "add_steward", variety_id, True, {"steward": new_steward})
        logger.info("Steward %s added to variety %d by %s", new_steward, variety_id, ctx.caller)
        return result

    def deactivate_variety(self, ctx: CallContext, variety_id: int) -> OperationResult:
        """Mark a variety inactive. There is no way back."""
        variety = self._state.varieties.get(variety_id)
        if variety is None:
            return self._refuse(ctx, "deactivate_variety", variety_id, ErrorKind.NOT_FOUND)
        if not self.is_steward(variety_id, ctx.caller):
            return self._refuse(ctx, "deactivate_variety", variety_id, ErrorKind.UNAUTHORIZED)

        staged = self._state.copy()
        staged.varieties[variety_id] = replace(variety, active=False)

        result = self._accept(ctx, staged, "deactivate_variety", variety_id, True)
        logger.info("Variety %d deactivated by %s", variety_id, ctx.caller)
        return result

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_variety(self, variety_id: int) -> Optional[VarietyRecord]:
        return self._state.varieties.get(variety_id)

    def is_steward(self, variety_id: int, identity: str) -> bool:
        record = self._state.stewards.get((variety_id, identity))
        return record is not None and record.active

    def get_next_variety_id(self) -> int:
        return self._state.next_variety_id

    def get_steward(self, variety_id: int, identity: str) -> Optional[StewardRecord]:
        return self._state.stewards.get((variety_id, identity))

    def list_stewards(self, variety_id: int) -> list[tuple[str, StewardRecord]]:
        """Stewards of a variety, ordered by identity."""
        stewards = [
            (steward, record)
            for (vid, steward), record in list(self._state.stewards.items())
            if vid == variety_id
        ]
        return sorted(stewards, key=lambda pair: pair[0])

    def list_varieties(self, active_only: bool = False) -> list[VarietyRecord]:
        """All varieties ordered by id."""
        varieties = [v for _, v in sorted(self._state.varieties.items())]
        if active_only:
            varieties = [v for v in varieties if v.active]
        return varieties

    def get_admin(self) -> str:
        return self._state.admin

    @property
    def last_height(self) -> int:
        return self._state.last_height

    @property
    def audit(self) -> Optional[AuditLogger]:
        return self._audit

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _accept(
        self,
        ctx: CallContext,
        staged: RegistryState,
        action: str,
        variety_id: int,
        value,
        details: Optional[dict] = None,
    ) -> OperationResult:
        """Persist ``staged`` and make it the live state.

        The live state is swapped only after the snapshot is written, so a
        failed save leaves the registry as it was. Readers holding the old
        maps never see them change.
        """
        staged.last_height = max(staged.last_height, ctx.height)
        if self._state_file is not None:
            self._state_file.save(staged)
        self._state = staged
        if self._audit is not None:
            self._audit.log_event(
                actor=ctx.caller,
                action=action,
                variety_id=variety_id,
                height=ctx.height,
                details=details,
            )
        return OperationResult.success(value)

    def _refuse(
        self,
        ctx: CallContext,
        action: str,
        variety_id: Optional[int],
        error: ErrorKind,
    ) -> OperationResult:
        logger.warning(
            "%s refused for %s on variety %s: %s", action, ctx.caller, variety_id, error.name
        )
        if self._audit is not None:
            self._audit.log_event(
                actor=ctx.caller,
                action=action,
                variety_id=variety_id,
                height=ctx.height,
                success=False,
                error_code=int(error),
            )
        return OperationResult.failure(error)
