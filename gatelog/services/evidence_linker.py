"""
EvidenceLinker: keeps vehicle rows and evidence blobs consistent.

Every evidence column of a vehicle row must be "" or a handle that resolves
in the blob store. Photos are written BEFORE the row that references them,
so a row never points at an unwritten blob. The reverse can happen (a blob
whose row insert then failed); sweep_orphans() reclaims those on demand.
Rows are never cascade-deleted into the blob store.
"""

from dataclasses import dataclass, field
from typing import Mapping, Optional, Union

from starlette.concurrency import run_in_threadpool

from gatelog.exceptions import BlobIOError
from gatelog.services.blob_store import BlobStore, make_handle, parse_handle
from gatelog.services.record_store import EVIDENCE_FIELDS, RecordStore
from gatelog.utils.data_url import is_data_url
from gatelog.utils.logger import get_logger

logger = get_logger(__name__)

EVIDENCE_LABELS = {
    "evidence_person": "person photo",
    "evidence_plate": "plate photo",
    "evidence_id": "ID photo",
}


@dataclass
class PersistedEvidence:
    refs: dict[str, str] = field(default_factory=lambda: {f: "" for f in EVIDENCE_FIELDS})
    warnings: list[str] = field(default_factory=list)


@dataclass
class DanglingReference:
    vehicle_id: int
    field: str
    handle: str


class EvidenceLinker:
    def __init__(self, record_store: RecordStore, blob_store: BlobStore):
        self.record_store = record_store
        self.blob_store = blob_store

    async def persist(self, captures: Mapping[str, Union[bytes, str, None]]) -> PersistedEvidence:
        """
        Write each non-empty capture to the blob store. A capture that fails
        to store leaves its reference empty and adds a warning; it never
        blocks the visit itself from being recorded.
        """
        result = PersistedEvidence()
        for field_name in EVIDENCE_FIELDS:
            capture = captures.get(field_name)
            if not capture:
                continue
            try:
                result.refs[field_name] = await self.blob_store.put(capture)
            except BlobIOError as e:
                logger.warning(f"[EVIDENCE] {field_name} not stored, continuing without it: {e}")
                result.warnings.append(
                    f"The {EVIDENCE_LABELS[field_name]} could not be saved locally; "
                    f"the visit was recorded without it."
                )
        return result

    async def resolve(self, row) -> list[str]:
        """Data URLs for a row's evidence, skipping empty or unresolvable references."""
        urls = []
        for field_name in EVIDENCE_FIELDS:
            handle = getattr(row, field_name, None) or ""
            if not handle:
                continue
            try:
                url = await self.blob_store.get_data_url(handle)
            except BlobIOError as e:
                logger.warning(f"[EVIDENCE] Cannot read {handle} of vehicle #{row.id}: {e}")
                continue
            if url:
                urls.append(url)
        return urls

    async def find_dangling(self) -> list[DanglingReference]:
        """References that point to no live blob."""
        live = set(await self.blob_store.list_ids())
        refs = await run_in_threadpool(self.record_store.evidence_references)
        dangling = []
        for vehicle_id, field_name, handle in refs:
            if is_data_url(handle):
                continue    # legacy inline capture
            blob_id = parse_handle(handle)
            if blob_id is None or blob_id not in live:
                dangling.append(DanglingReference(vehicle_id, field_name, handle))
        if dangling:
            logger.warning(f"[EVIDENCE] {len(dangling)} dangling reference(s)")
        return dangling

    async def sweep_orphans(self) -> list[int]:
        """Delete blobs no vehicle row references. Returns the deleted ids."""
        refs = await run_in_threadpool(self.record_store.evidence_references)
        referenced = {parse_handle(handle) for _, _, handle in refs}
        removed = []
        for blob_id in await self.blob_store.list_ids():
            if blob_id in referenced:
                continue
            if await self.blob_store.delete(make_handle(blob_id)):
                removed.append(blob_id)
        logger.info(f"[EVIDENCE] Orphan sweep removed {len(removed)} blob(s)")
        return removed


def captures_from(photo_person: Optional[Union[bytes, str]] = None,
                  photo_plate: Optional[Union[bytes, str]] = None,
                  photo_id: Optional[Union[bytes, str]] = None) -> dict:
    return {
        "evidence_person": photo_person,
        "evidence_plate": photo_plate,
        "evidence_id": photo_id,
    }
