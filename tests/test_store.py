"""Tests for registry state snapshots and persistence."""

import json
import tempfile
from pathlib import Path

import pytest

from seedreg.registry.models import CallContext
from seedreg.registry.service import VarietyRegistry
from seedreg.registry.store import RegistryState, StateFile, StateFileError


def _populate(reg: VarietyRegistry) -> None:
    reg.register_variety(
        CallContext("alice", 10), "Moon and Stars", "Citrullus lanatus", "Missouri", "Speckled", 1926, 4
    )
    reg.add_steward(CallContext("alice", 12), 1, "bob")
    reg.deactivate_variety(CallContext("bob", 15), 1)


def test_missing_file_yields_empty_state():
    with tempfile.TemporaryDirectory() as tmpdir:
        state = StateFile(Path(tmpdir) / "state.json").load()
        assert state == RegistryState()
        assert state.next_variety_id == 1


def test_save_and_load_roundtrip():
    with tempfile.TemporaryDirectory() as tmpdir:
        state_file = StateFile(Path(tmpdir) / "nested" / "state.json")
        reg = VarietyRegistry(state_file=state_file)
        _populate(reg)

        reloaded = VarietyRegistry(state_file=state_file)
        assert reloaded.get_next_variety_id() == 2
        assert reloaded.get_variety(1) == reg.get_variety(1)
        assert reloaded.get_variety(1).active is False
        assert reloaded.is_steward(1, "alice")
        assert reloaded.is_steward(1, "bob")
        assert reloaded.get_steward(1, "bob").since == 12
        assert reloaded.last_height == 15


def test_refused_operation_does_not_write():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "state.json"
        reg = VarietyRegistry(state_file=StateFile(path))
        reg.register_variety(CallContext("alice", 1), "X", "Y", "", "", 2000, 9)
        assert not path.exists()


def test_snapshot_format():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "state.json"
        reg = VarietyRegistry(state_file=StateFile(path))
        _populate(reg)

        data = json.loads(path.read_text())
        assert data["next_variety_id"] == 2
        assert data["varieties"][0]["name"] == "Moon and Stars"
        assert {s["steward"] for s in data["stewards"]} == {"alice", "bob"}


def test_malformed_snapshot_raises():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "state.json"
        path.write_text("{not json")
        with pytest.raises(StateFileError):
            StateFile(path).load()


def test_open_records_admin_only_on_creation():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "state.json"
        reg = VarietyRegistry.open(path, admin="deployer")
        assert reg.get_admin() == "deployer"
        _populate(reg)

        reopened = VarietyRegistry.open(path, admin="someone-else")
        assert reopened.get_admin() == "deployer"


def test_open_with_audit_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        reg = VarietyRegistry.open(Path(tmpdir) / "state.json", audit_dir=Path(tmpdir) / "audit")
        assert reg.audit is not None
        _populate(reg)
        assert len(reg.audit.get_events_for_variety(1)) == 3


def test_non_object_snapshot_raises():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "state.json"
        for content in ("[]", "3", '"state"'):
            path.write_text(content)
            with pytest.raises(StateFileError):
                StateFile(path).load()


def test_failed_save_leaves_state_unchanged():
    with tempfile.TemporaryDirectory() as tmpdir:
        blocker = Path(tmpdir) / "not-a-directory"
        blocker.write_text("")
        reg = VarietyRegistry(state_file=StateFile(blocker / "state.json"))

        with pytest.raises(OSError):
            reg.register_variety(CallContext("alice", 10), "Name", "Species", "", "", 1900, 3)

        assert reg.get_next_variety_id() == 1
        assert reg.get_variety(1) is None
        assert not reg.is_steward(1, "alice")
        assert reg.last_height == 0


def test_failed_save_keeps_previous_committed_state():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "state.json"
        state_file = StateFile(path)
        reg = VarietyRegistry(state_file=state_file)
        reg.register_variety(CallContext("alice", 10), "Name", "Species", "", "", 1900, 3)

        state_file.path = Path(tmpdir) / "state.json" / "blocked.json"
        with pytest.raises(OSError):
            reg.add_steward(CallContext("alice", 11), 1, "bob")
        with pytest.raises(OSError):
            reg.deactivate_variety(CallContext("alice", 12), 1)

        assert not reg.is_steward(1, "bob")
        assert reg.get_variety(1).active is True
        assert reg.last_height == 10
