"""
BlobStore: durable storage for evidence photos.

Separate engine, separate file, separate lifecycle from the record store:
the two are never written in one transaction. Rows keep only the handle
returned by put(), of the form idb:photo:<id>.

  put("")          -> ""      (empty reference means "no evidence")
  get("")          -> None
  get("junk")      -> None    (legacy / malformed references are tolerated)

Session work runs in the threadpool so the event loop keeps serving
requests while SQLite reads or writes.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from starlette.concurrency import run_in_threadpool

from gatelog.database import MAX_ROW_ID, create_blob_engine, create_blob_tables
from gatelog.exceptions import BlobIOError
from gatelog.models.evidence_blob import EvidenceBlob
from gatelog.utils.data_url import DEFAULT_MIME, is_data_url, parse_data_url, to_data_url
from gatelog.utils.logger import get_logger

logger = get_logger(__name__)

NAMESPACE = "idb"
KIND = "photo"
HANDLE_PREFIX = f"{NAMESPACE}:{KIND}:"


@dataclass
class StoredEvidence:
    id: int
    payload: bytes
    mime_type: str
    created_at: datetime

    def to_data_url(self) -> str:
        return to_data_url(self.mime_type, self.payload)


def make_handle(blob_id: int) -> str:
    return f"{HANDLE_PREFIX}{blob_id}"


def parse_handle(handle: Optional[str]) -> Optional[int]:
    """Numeric id of a well-formed handle in our namespace, else None."""
    if not handle or not handle.startswith(HANDLE_PREFIX):
        return None
    raw_id = handle[len(HANDLE_PREFIX):]
    # isdigit() alone admits non-ASCII digits such as "²"
    if not (raw_id.isascii() and raw_id.isdigit()):
        return None
    blob_id = int(raw_id)
    if not 1 <= blob_id <= MAX_ROW_ID:
        return None
    return blob_id


class BlobStore:
    def __init__(self, url: str = "sqlite://"):
        self.url = url
        try:
            self.engine = create_blob_engine(url)
            create_blob_tables(self.engine)
        except SQLAlchemyError as e:
            raise BlobIOError(f"Cannot open blob store {url}: {e}") from e
        self.SessionLocal = sessionmaker(autoflush=False, expire_on_commit=False, bind=self.engine)

    # ── Blocking session work (threadpool) ────────────────────────────────
    def _insert(self, payload: bytes, mime_type: str) -> int:
        blob = EvidenceBlob(payload=payload, mime_type=mime_type, created_at=datetime.utcnow())
        db = self.SessionLocal()
        try:
            db.add(blob)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise BlobIOError(f"Cannot store evidence: {e}") from e
        finally:
            db.close()
        return blob.id

    def _fetch(self, blob_id: int) -> Optional[EvidenceBlob]:
        db = self.SessionLocal()
        try:
            return db.get(EvidenceBlob, blob_id)
        except SQLAlchemyError as e:
            raise BlobIOError(f"Cannot read {make_handle(blob_id)}: {e}") from e
        finally:
            db.close()

    def _remove(self, blob_id: int) -> bool:
        db = self.SessionLocal()
        try:
            blob = db.get(EvidenceBlob, blob_id)
            if blob is None:
                return False
            db.delete(blob)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise BlobIOError(f"Cannot delete {make_handle(blob_id)}: {e}") from e
        finally:
            db.close()
        return True

    def _all_ids(self) -> list[int]:
        db = self.SessionLocal()
        try:
            return [row_id for (row_id,) in db.query(EvidenceBlob.id).order_by(EvidenceBlob.id).all()]
        except SQLAlchemyError as e:
            raise BlobIOError(f"Cannot list evidence: {e}") from e
        finally:
            db.close()

    # ── Public API ────────────────────────────────────────────────────────
    async def put(self, payload: Union[bytes, str, None], mime_type: Optional[str] = None) -> str:
        """
        Store a photo and return its handle. Accepts raw bytes or a data URL.
        Empty input stores nothing and returns "".
        """
        if not payload:
            return ""
        if isinstance(payload, str):
            try:
                mime_type, payload = parse_data_url(payload)
            except ValueError as e:
                raise BlobIOError(f"Unreadable capture: {e}") from e
        mime_type = mime_type or DEFAULT_MIME
        blob_id = await run_in_threadpool(self._insert, payload, mime_type)
        handle = make_handle(blob_id)
        logger.info(f"[BLOB] Stored {handle} ({len(payload)} bytes, {mime_type})")
        return handle

    async def get(self, handle: Optional[str]) -> Optional[StoredEvidence]:
        blob_id = parse_handle(handle)
        if blob_id is None:
            return None
        blob = await run_in_threadpool(self._fetch, blob_id)
        if blob is None or not blob.payload:
            return None
        return StoredEvidence(id=blob.id, payload=blob.payload,
                              mime_type=blob.mime_type, created_at=blob.created_at)

    async def get_data_url(self, handle: Optional[str]) -> str:
        """
        Displayable form of a reference. Legacy rows may hold the data URL
        inline; those pass through unchanged. Anything absent gives "".
        """
        if is_data_url(handle or ""):
            return handle
        evidence = await self.get(handle)
        return evidence.to_data_url() if evidence else ""

    async def delete(self, handle: str) -> bool:
        blob_id = parse_handle(handle)
        if blob_id is None:
            return False
        deleted = await run_in_threadpool(self._remove, blob_id)
        if deleted:
            logger.info(f"[BLOB] Deleted {handle}")
        return deleted

    async def list_ids(self) -> list[int]:
        return await run_in_threadpool(self._all_ids)

    def close(self):
        self.engine.dispose()
