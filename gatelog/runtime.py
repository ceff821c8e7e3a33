"""
Application runtime: the one RecordStore, BlobStore and PersistenceGateway
of a process, built once at startup and closed at shutdown.

Routers get it through the get_runtime dependency; nothing reaches the
stores through module globals.
"""

from dataclasses import dataclass, field
from typing import Optional

from fastapi import Request

from gatelog.config import Settings, settings
from gatelog.exceptions import BlobIOError, StorageError
from gatelog.services.blob_store import BlobStore
from gatelog.services.evidence_linker import EvidenceLinker
from gatelog.services.migration_runner import MigrationReport, run_migrations
from gatelog.services.persistence_gateway import DurableSlot, FileSlot, PersistenceGateway
from gatelog.services.record_store import RecordStore
from gatelog.services.reference_data import load_vehicle_models
from gatelog.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class GateLogRuntime:
    record_store: RecordStore
    blob_store: BlobStore
    gateway: PersistenceGateway
    linker: EvidenceLinker
    vehicle_models: list[str] = field(default_factory=list)
    migration_report: MigrationReport = field(default_factory=MigrationReport)

    def close(self):
        self.record_store.close()
        self.blob_store.close()
        logger.info("[RUNTIME] Stores closed")


def open_record_store(gateway: PersistenceGateway) -> tuple[RecordStore, MigrationReport]:
    """
    Load the saved database (or create an empty one), bring its schema up
    to date, and persist if anything changed.
    """
    store = gateway.load()
    fresh = store is None
    if fresh:
        store = RecordStore()
        logger.info("[RUNTIME] Created new database")
    store.create_schema()
    report = run_migrations(store)
    if fresh or report.changed:
        try:
            gateway.save(store)
        except StorageError as e:
            logger.error(f"[RUNTIME] Schema ready but not saved, will retry on next change: {e}")
    return store, report


def bootstrap(cfg: Settings = settings, slot: Optional[DurableSlot] = None,
              blob_url: Optional[str] = None) -> GateLogRuntime:
    slot = slot if slot is not None else FileSlot(cfg.DATA_DIR, quota_bytes=cfg.SLOT_QUOTA_BYTES)
    gateway = PersistenceGateway(slot, key=cfg.SLOT_KEY)
    record_store, report = open_record_store(gateway)
    try:
        blob_store = BlobStore(blob_url or cfg.BLOB_DATABASE_URL)
    except BlobIOError:
        record_store.close()
        raise
    runtime = GateLogRuntime(
        record_store=record_store,
        blob_store=blob_store,
        gateway=gateway,
        linker=EvidenceLinker(record_store, blob_store),
        vehicle_models=load_vehicle_models(cfg.VEHICLE_MODELS_SOURCE),
        migration_report=report,
    )
    logger.info(
        f"[RUNTIME] Ready: {record_store.count_vehicles()} vehicle(s), "
        f"{record_store.count_pedestrians()} pedestrian(s)"
    )
    return runtime


def get_runtime(request: Request) -> GateLogRuntime:
    """FastAPI dependency: the runtime created at startup."""
    return request.app.state.runtime
