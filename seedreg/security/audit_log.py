"""Audit logging for registry operations.

Every mutation attempt (accepted or refused) is recorded as one JSON line
in a daily log file under the configured audit directory. The trail can be
filtered by actor, action, variety and outcome, and exported as JSON or CSV.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)


@dataclass
class AuditEntry:
    """A single audit log entry."""

    id: str
    timestamp: str
    actor: str
    action: str
    variety_id: Optional[int]
    height: int
    success: bool = True
    error_code: int = 0
    details: dict[str, Any] = field(default_factory=dict)


class AuditLogger:
    """File-based JSON audit logger.

    Events are persisted as newline-delimited JSON in ``<base_dir>/YYYY-MM-DD.jsonl``.
    """

    def __init__(self, base_dir: str | Path) -> None:
        self._base_dir = Path(base_dir)
        self._base_dir.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _log_file_for_date(self, dt: datetime) -> Path:
        return self._base_dir / f"{dt.strftime('%Y-%m-%d')}.jsonl"

    def _read_all_entries(self) -> list[AuditEntry]:
        """Read every entry from all log files, oldest first."""
        entries: list[AuditEntry] = []
        for path in sorted(self._base_dir.glob("*.jsonl")):
            for lineno, line in enumerate(path.read_text(encoding="utf-8").splitlines(), 1):
                if not line.strip():
                    continue
                try:
                    entries.append(AuditEntry(**json.loads(line)))
                except (json.JSONDecodeError, TypeError):
                    logger.warning("Skipping malformed audit line %s:%d", path.name, lineno)
        return entries

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def log_event(
        self,
        actor: str,
        action: str,
        variety_id: Optional[int],
        height: int,
        success: bool = True,
        error_code: int = 0,
        details: Optional[dict[str, Any]] = None,
    ) -> AuditEntry:
        """Record an audit event and return the created entry."""
        now = datetime.now(timezone.utc)
        entry = AuditEntry(
            id=uuid.uuid4().hex[:16],
            timestamp=now.isoformat(),
            actor=actor,
            action=action,
            variety_id=variety_id,
            height=height,
            success=success,
            error_code=error_code,
            details=details or {},
        )
        with self._log_file_for_date(now).open("a", encoding="utf-8") as fh:
            fh.write(json.dumps(asdict(entry)) + "\n")
        return entry

    def get_events(
        self,
        *,
        actor: Optional[str] = None,
        action: Optional[str] = None,
        variety_id: Optional[int] = None,
        success: Optional[bool] = None,
        limit: int = 200,
    ) -> list[AuditEntry]:
        """Return filtered audit events, newest first."""
        indexed = list(enumerate(self._read_all_entries()))

        if actor:
            indexed = [(i, e) for i, e in indexed if e.actor == actor]
        if action:
            indexed = [(i, e) for i, e in indexed if e.action == action]
        if variety_id is not None:
            indexed = [(i, e) for i, e in indexed if e.variety_id == variety_id]
        if success is not None:
            indexed = [(i, e) for i, e in indexed if e.success == success]

        # Newest first; file order breaks timestamp ties
        indexed.sort(key=lambda pair: (pair[1].timestamp, pair[0]), reverse=True)
        return [e for _, e in indexed[:limit]]

    def get_events_for_variety(self, variety_id: int) -> list[AuditEntry]:
        """Return all events that touched a specific variety."""
        return self.get_events(variety_id=variety_id, limit=10000)

    def export_events(
        self,
        fmt: str = "json",
        *,
        actor: Optional[str] = None,
        action: Optional[str] = None,
        variety_id: Optional[int] = None,
        limit: int = 10000,
    ) -> str:
        """Export audit events in the specified format (``json`` or ``csv``)."""
        entries = self.get_events(
            actor=actor,
            action=action,
            variety_id=variety_id,
            limit=limit,
        )

        if fmt == "csv":
            lines = ["id,timestamp,actor,action,variety_id,height,success,error_code"]
            for e in entries:
                variety = "" if e.variety_id is None else e.variety_id
                lines.append(
                    f"{e.id},{e.timestamp},{e.actor},{e.action},{variety},"
                    f"{e.height},{e.success},{e.error_code}"
                )
            return "\n".join(lines)

        return json.dumps([asdict(e) for e in entries], indent=2)
