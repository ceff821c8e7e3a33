"""Unit tests for startup schema migrations."""

from unittest.mock import patch
from gatelog.exceptions import StorageError
from gatelog.services.migration_runner import TARGET_COLUMNS, VEHICLE_TABLE, run_migrations
from gatelog.services.record_store import RecordStore

LEGACY_VEHICLES_DDL = """
CREATE TABLE vehicles (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    plate TEXT, name TEXT, reason TEXT, model TEXT, color TEXT,
    destination TEXT, date TEXT, time TEXT
)
"""

TARGET_NAMES = [name for name, _ in TARGET_COLUMNS]


def legacy_store():
    store = RecordStore()
    with store.engine.begin() as conn:
        conn.exec_driver_sql(LEGACY_VEHICLES_DDL)
        conn.exec_driver_sql(
            "INSERT INTO vehicles (plate, name, reason, model, color, destination, date, time) "
            "VALUES ('OLD111', 'Marta', 'Visita', 'Jetta', '#000000', 'Casa 4', '2025-01-05', '09:00:00')"
        )
    store.create_schema()
    return store


class TestRunMigrations:
    def test_adds_all_missing_columns(self):
        store = legacy_store()
        try:
            report = run_migrations(store)
            assert report.applied == TARGET_NAMES
            assert report.failed == {}
            assert report.changed is True
            assert set(TARGET_NAMES) <= store.column_names(VEHICLE_TABLE)
        finally:
            store.close()

    def test_legacy_rows_survive_with_null_movement(self):
        store = legacy_store()
        try:
            run_migrations(store)
            old = store.query_all("vehicles")[0]
            assert old.plate == "OLD111"
            assert old.movement is None
            assert old.evidence_person is None
            assert store.query_history()[0].movement == ""
        finally:
            store.close()

    def test_second_run_is_noop(self):
        store = legacy_store()
        try:
            run_migrations(store)
            before = store.column_names(VEHICLE_TABLE)
            report = run_migrations(store)
            assert report.applied == []
            assert report.changed is False
            assert store.column_names(VEHICLE_TABLE) == before
        finally:
            store.close()

    def test_current_schema_needs_nothing(self, record_store):
        report = run_migrations(record_store)
        assert report.applied == []
        assert report.failed == {}

    def test_failed_column_is_skipped_not_fatal(self):
        store = legacy_store()
        original = store.add_column

        def flaky_add(table, column, ddl_type="TEXT"):
            if column == "evidence_plate":
                raise StorageError("database is locked")
            return original(table, column, ddl_type)

        try:
            with patch.object(store, "add_column", side_effect=flaky_add):
                report = run_migrations(store)
            assert report.applied == ["movement", "evidence_person", "evidence_id"]
            assert "evidence_plate" in report.failed
            assert "evidence_plate" not in store.column_names(VEHICLE_TABLE)
        finally:
            store.close()

    def test_missing_table_never_raises(self):
        store = RecordStore()
        try:
            report = run_migrations(store)
            assert report.applied == []
            assert set(report.failed) == set(TARGET_NAMES)
        finally:
            store.close()

    def test_uninspectable_store_reports_failure(self):
        store = RecordStore()
        try:
            with patch.object(store, "column_names", side_effect=StorageError("boom")):
                report = run_migrations(store)
            assert report.failed == {VEHICLE_TABLE: "boom"}
            assert report.applied == []
        finally:
            store.close()
