"""Registry state and its JSON snapshot file.

The in-memory ``RegistryState`` is what the service mutates. ``StateFile``
persists it as a single JSON document so separate CLI invocations see the
same registry; it gives no durability guarantees beyond a plain file write.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from pathlib import Path

from seedreg.registry.models import StewardRecord, VarietyRecord


class StateFileError(Exception):
    """The snapshot file exists but cannot be read as registry state."""


@dataclass
class RegistryState:
    """Everything the registry owns: two maps and the id counter."""

    varieties: dict[int, VarietyRecord] = field(default_factory=dict)
    stewards: dict[tuple[int, str], StewardRecord] = field(default_factory=dict)
    next_variety_id: int = 1
    admin: str = ""
    last_height: int = 0

    def copy(self) -> RegistryState:
        """Copy with fresh maps; records are frozen and shared."""
        return replace(self, varieties=dict(self.varieties), stewards=dict(self.stewards))


class StateFile:
    """JSON snapshot of a ``RegistryState`` at ``path``."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> RegistryState:
        """Read the snapshot; a missing file yields an empty state."""
        if not self.path.exists():
            return RegistryState()
        try:
            with open(self.path) as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise StateFileError(f"Registry state in {self.path} must be a JSON object")
            return _dict_to_state(data)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise StateFileError(f"Cannot read registry state from {self.path}: {e}") from e

    def save(self, state: RegistryState) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w") as f:
            json.dump(_state_to_dict(state), f, indent=2)
        tmp_path.replace(self.path)


def _variety_to_dict(v: VarietyRecord) -> dict:
    return {
        "id": v.id,
        "name": v.name,
        "species": v.species,
        "origin": v.origin,
        "description": v.description,
        "year_documented": v.year_documented,
        "rarity_level": v.rarity_level,
        "registered_by": v.registered_by,
        "registration_height": v.registration_height,
        "active": v.active,
    }


def _dict_to_variety(d: dict) -> VarietyRecord:
    return VarietyRecord(
        id=int(d["id"]),
        name=d["name"],
        species=d.get("species", ""),
        origin=d.get("origin", ""),
        description=d.get("description", ""),
        year_documented=int(d.get("year_documented", 0)),
        rarity_level=int(d["rarity_level"]),
        registered_by=d["registered_by"],
        registration_height=int(d.get("registration_height", 0)),
        active=bool(d.get("active", True)),
    )


def _state_to_dict(state: RegistryState) -> dict:
    return {
        "next_variety_id": state.next_variety_id,
        "admin": state.admin,
        "last_height": state.last_height,
        "varieties": [_variety_to_dict(v) for _, v in sorted(state.varieties.items())],
        "stewards": [
            {
                "variety_id": variety_id,
                "steward": steward,
                "since": record.since,
                "active": record.active,
            }
            for (variety_id, steward), record in sorted(state.stewards.items())
        ],
    }


def _dict_to_state(data: dict) -> RegistryState:
    varieties = {}
    for d in data.get("varieties", []):
        variety = _dict_to_variety(d)
        varieties[variety.id] = variety

    stewards = {}
    for d in data.get("stewards", []):
        key = (int(d["variety_id"]), d["steward"])
        stewards[key] = StewardRecord(
            since=int(d.get("since", 0)),
            active=bool(d.get("active", True)),
        )

    return RegistryState(
        varieties=varieties,
        stewards=stewards,
        next_variety_id=int(data.get("next_variety_id", 1)),
        admin=data.get("admin", ""),
        last_height=int(data.get("last_height", 0)),
    )
