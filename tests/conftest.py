"""Shared fixtures: in-memory record store, blob store and durable slot."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import base64
import pytest
from gatelog.runtime import GateLogRuntime
from gatelog.services.blob_store import BlobStore
from gatelog.services.evidence_linker import EvidenceLinker
from gatelog.services.persistence_gateway import MemorySlot, PersistenceGateway
from gatelog.services.record_store import RecordStore

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
PNG_DATA_URL = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode("ascii")


def vehicle_fields(**overrides):
    fields = {
        "plate": "ABC1234",
        "name": "Juan Pérez",
        "reason": "Visita",
        "model": "Aveo",
        "color": "#FF0000",
        "destination": "Casa 12",
        "date": "2026-03-01",
        "time": "10:00:00",
        "movement": "entrada",
    }
    fields.update(overrides)
    return fields


def pedestrian_fields(**overrides):
    fields = {
        "name": "Ana López",
        "reason": "Entrega",
        "destination": "Depto 3B",
        "id_optional": "INE-998",
        "date": "2026-03-01",
        "time": "11:00:00",
    }
    fields.update(overrides)
    return fields


@pytest.fixture
def record_store():
    store = RecordStore()
    store.create_schema()
    yield store
    store.close()


@pytest.fixture
def blob_store():
    store = BlobStore("sqlite://")
    yield store
    store.close()


@pytest.fixture
def slot():
    return MemorySlot()


@pytest.fixture
def runtime(record_store, blob_store, slot):
    return GateLogRuntime(
        record_store=record_store,
        blob_store=blob_store,
        gateway=PersistenceGateway(slot),
        linker=EvidenceLinker(record_store, blob_store),
        vehicle_models=["Aveo", "Versa"],
    )
