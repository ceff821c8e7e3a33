"""HTTP-level tests for the routers, run against an in-memory runtime."""

import pytest
from fastapi.testclient import TestClient
from conftest import PNG_DATA_URL, vehicle_fields, pedestrian_fields
from gatelog.main import app
from gatelog.services.persistence_gateway import MemorySlot, PersistenceGateway

API = "/api/v1"


@pytest.fixture
def client(runtime):
    app.state.runtime = runtime
    return TestClient(app)


class TestVehicleRoutes:
    def test_register_and_suggest(self, client):
        payload = {"plate": "abc1234", "name": "Juan", "destination": "Casa 12",
                   "model": "Aveo", "photo_person": PNG_DATA_URL}
        response = client.post(f"{API}/vehicles", json=payload)
        assert response.status_code == 201
        body = response.json()
        assert body["ok"] is True and body["durable"] is True

        suggestions = client.get(f"{API}/vehicles/suggestions", params={"prefix": "abc"}).json()
        assert suggestions[0]["plate"] == "ABC1234"
        assert suggestions[0]["model"] == "Aveo"

        evidence = client.get(f"{API}/vehicles/{body['id']}/evidence").json()
        assert evidence["images"] == [PNG_DATA_URL]

    def test_blocked_visit_is_rejected(self, client):
        payload = {"plate": "X1", "name": "Juan", "destination": "Casa 1", "visit_type": "boletinado"}
        assert client.post(f"{API}/vehicles", json=payload).status_code == 400

    def test_not_durable_is_reported(self, client, runtime):
        runtime.gateway = PersistenceGateway(MemorySlot(quota_bytes=100))
        response = client.post(f"{API}/vehicles", json={"plate": "A1", "name": "N", "destination": "D"})
        assert response.status_code == 201
        assert response.json()["durable"] is False
        assert response.json()["warnings"]

    def test_evidence_of_unknown_vehicle(self, client):
        assert client.get(f"{API}/vehicles/99/evidence").status_code == 404

    def test_evidence_of_out_of_range_vehicle(self, client):
        assert client.get(f"{API}/vehicles/99999999999999999999999/evidence").status_code == 404

    def test_malformed_evidence_handles_resolve_to_nothing(self, client, runtime):
        runtime.record_store.insert_vehicle(vehicle_fields(evidence_person="idb:photo:\u00b2"))
        response = client.get(f"{API}/vehicles/1/evidence")
        assert response.status_code == 200
        assert response.json()["images"] == []


class TestHistoryRoutes:
    def test_filter_sort_and_export(self, client, runtime):
        runtime.record_store.insert_vehicle(vehicle_fields(date="2026-03-01"))
        runtime.record_store.insert_vehicle(vehicle_fields(plate="OUT1", movement="salida", date="2026-03-02"))
        runtime.record_store.insert_pedestrian(pedestrian_fields(date="2026-03-03"))

        rows = client.get(f"{API}/history").json()
        assert [r["date"] for r in rows] == ["2026-03-03", "2026-03-02", "2026-03-01"]

        rows = client.get(f"{API}/history", params={"movement": "entrada"}).json()
        assert [r["plate"] for r in rows] == ["ABC1234"]

        rows = client.get(f"{API}/history", params={"sort": "date", "direction": "asc"}).json()
        assert rows[0]["date"] == "2026-03-01"

        rows = client.get(f"{API}/history", params={"sort": "plate"}).json()
        assert [r["plate"] for r in rows] == ["", "ABC1234", "OUT1"]

        rows = client.get(f"{API}/history", params={"sort": "date"}).json()
        assert rows[0]["date"] == "2026-03-03"

        export = client.get(f"{API}/history/export", params={"kind": "Peatón"})
        assert export.status_code == 200
        assert 'filename="historial.csv"' in export.headers["content-disposition"]
        assert export.text.count("\n") == 1

    def test_bad_sort_arguments(self, client):
        assert client.get(f"{API}/history", params={"direction": "sideways"}).status_code == 400
        assert client.get(f"{API}/history", params={"sort": "secret"}).status_code == 400


class TestNotesAndGuards:
    def test_notes_lifecycle(self, client):
        created = client.post(f"{API}/notes", json={"note": "Ronda 22:00 sin novedad", "shift": "Nocturno"})
        assert created.status_code == 201
        note_id = created.json()["id"]
        assert client.get(f"{API}/notes").json()[0]["note"] == "Ronda 22:00 sin novedad"
        assert client.get(f"{API}/notes/export").text.startswith("Fecha,Hora,Turno,Nota\n")
        assert client.delete(f"{API}/notes/{note_id}").status_code == 200
        assert client.delete(f"{API}/notes/{note_id}").status_code == 404

    def test_blank_note(self, client):
        assert client.post(f"{API}/notes", json={"note": " "}).status_code == 400

    def test_guards(self, client):
        created = client.post(f"{API}/guards", json={"name": "Luis", "username": "luis", "password": "pw"})
        assert created.status_code == 201
        guards = client.get(f"{API}/guards").json()
        assert guards == [{"id": 1, "name": "Luis", "username": "luis", "role": "Guardia"}]
        bad_role = {"name": "E", "username": "e", "password": "pw", "role": "Jefe"}
        assert client.post(f"{API}/guards", json=bad_role).status_code == 400
        assert client.delete(f"{API}/guards/1").status_code == 200


class TestAdminRoutes:
    def test_stats_and_export(self, client, runtime):
        client.post(f"{API}/pedestrians", json={"name": "Ana", "destination": "Depto 3B"})
        assert client.get(f"{API}/stats").json() == {"vehicles": 0, "pedestrians": 1, "notes": 0, "guards": 0}
        export = client.get(f"{API}/admin/export")
        assert export.content.startswith(b"SQLite format 3\x00")
        assert 'filename="accesos.sqlite"' in export.headers["content-disposition"]

    def test_compact(self, client):
        assert client.post(f"{API}/admin/compact").json()["ok"] is True

    def test_evidence_upkeep(self, client, runtime):
        runtime.record_store.insert_vehicle(vehicle_fields(evidence_plate="idb:photo:5"))
        dangling = client.get(f"{API}/admin/evidence/dangling").json()
        assert dangling == [{"vehicle_id": 1, "field": "evidence_plate", "handle": "idb:photo:5"}]
        assert client.post(f"{API}/admin/evidence/sweep").json() == {"removed": [], "count": 0}

    def test_vehicle_models(self, client):
        assert client.get(f"{API}/vehicle-models").json() == ["Aveo", "Versa"]

    def test_health(self, client):
        body = client.get(f"{API}/health").json()
        assert body["status"] == "ok"
        assert body["database"] == "ok"
        assert body["evidence_store"] == "ok"
        assert body["migrations_failed"] == {}
