"""Unit tests for startup: load or create, migrate, persist."""

import base64
import pytest
from conftest import vehicle_fields
from gatelog.config import Settings
from gatelog.exceptions import StorageError
from gatelog.runtime import bootstrap, open_record_store
from gatelog.services.persistence_gateway import MemorySlot, PersistenceGateway, encode_snapshot
from gatelog.services.record_store import RecordStore


def settings_for_tests(**overrides):
    return Settings(VEHICLE_MODELS_SOURCE="", **overrides)


def legacy_snapshot() -> bytes:
    store = RecordStore()
    with store.engine.begin() as conn:
        conn.exec_driver_sql(
            "CREATE TABLE vehicles (id INTEGER PRIMARY KEY AUTOINCREMENT, plate TEXT, name TEXT, "
            "reason TEXT, model TEXT, color TEXT, destination TEXT, date TEXT, time TEXT)"
        )
        conn.exec_driver_sql(
            "INSERT INTO vehicles (plate, name, destination) VALUES ('OLD111', 'Marta', 'Casa 4')"
        )
    snapshot = store.export_bytes()
    store.close()
    return snapshot


class TestOpenRecordStore:
    def test_fresh_database_is_saved(self):
        slot = MemorySlot()
        store, report = open_record_store(PersistenceGateway(slot))
        try:
            assert "access_control_db" in slot.items
            assert report.applied == []
            assert store.count_vehicles() == 0
        finally:
            store.close()

    def test_existing_database_is_reloaded(self):
        slot = MemorySlot()
        gateway = PersistenceGateway(slot)
        store, _ = open_record_store(gateway)
        store.insert_vehicle(vehicle_fields())
        gateway.save(store)
        store.close()

        reloaded, report = open_record_store(gateway)
        try:
            assert reloaded.count_vehicles() == 1
            assert report.changed is False
        finally:
            reloaded.close()

    def test_legacy_database_is_migrated_and_saved(self):
        slot = MemorySlot()
        slot.items["access_control_db"] = encode_snapshot(legacy_snapshot())
        gateway = PersistenceGateway(slot)
        store, report = open_record_store(gateway)
        store.close()
        assert report.changed is True

        reloaded = gateway.load()
        try:
            assert "evidence_plate" in reloaded.column_names("vehicles")
            assert reloaded.query_all("vehicles")[0].plate == "OLD111"
        finally:
            reloaded.close()

    def test_full_slot_at_startup_is_not_fatal(self):
        store, _ = open_record_store(PersistenceGateway(MemorySlot(quota_bytes=10)))
        try:
            assert store.count_guards() == 0
        finally:
            store.close()

    def test_corrupt_slot_aborts_and_is_kept(self):
        slot = MemorySlot()
        slot.items["access_control_db"] = base64.b64encode(b"not sqlite" * 300).decode("ascii")
        original = slot.items["access_control_db"]
        with pytest.raises(StorageError):
            open_record_store(PersistenceGateway(slot))
        assert slot.items["access_control_db"] == original


class TestBootstrap:
    def test_bootstrap_wires_runtime(self):
        slot = MemorySlot()
        runtime = bootstrap(settings_for_tests(SLOT_KEY="test_db"), slot=slot, blob_url="sqlite://")
        try:
            assert runtime.vehicle_models == []
            assert runtime.linker.record_store is runtime.record_store
            assert runtime.linker.blob_store is runtime.blob_store
            assert set(slot.items) == {"test_db"}
        finally:
            runtime.close()

    def test_bootstrap_with_file_slot(self, tmp_path):
        cfg = settings_for_tests(DATA_DIR=str(tmp_path / "data"))
        runtime = bootstrap(cfg, blob_url=f"sqlite:///{tmp_path / 'data' / 'media.db'}")
        runtime.close()
        assert (tmp_path / "data" / "access_control_db.b64").exists()
        assert (tmp_path / "data" / "media.db").exists()
