"""
PersistenceGateway: keeps the in-memory RecordStore durable.

The whole database image is exported, base64-encoded and written under one
key of a string-only durable slot after every committed change. On startup
the same key is read back and the store rebuilt from it.

Slots:
  - FileSlot:   one file per key in a data directory, with a byte quota
  - MemorySlot: a dict, with an optional quota (tests, ephemeral runs)

A slot that is full raises QuotaExceededError. The change that triggered the
save is already applied in memory but is NOT durable; callers must say so.
"""

import base64
import binascii
import errno
import os
import re
from typing import Optional, Protocol

from gatelog.exceptions import QuotaExceededError, StorageError
from gatelog.services.record_store import RecordStore
from gatelog.utils.logger import get_logger

logger = get_logger(__name__)

CHUNK_SIZE = 0x8000  # 32 KiB
EXPORT_FILENAME = "accesos.sqlite"

_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class DurableSlot(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemorySlot:
    def __init__(self, quota_bytes: Optional[int] = None):
        self.quota_bytes = quota_bytes
        self.items: dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self.quota_bytes is not None and len(value) > self.quota_bytes:
            raise QuotaExceededError(f"{len(value)} bytes exceeds slot quota of {self.quota_bytes}")
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)


class FileSlot:
    def __init__(self, directory: str, quota_bytes: Optional[int] = None):
        self.directory = directory
        self.quota_bytes = quota_bytes

    def _path(self, key: str) -> str:
        if not _KEY_RE.match(key):
            raise StorageError(f"Invalid slot key: {key!r}")
        return os.path.join(self.directory, f"{key}.b64")

    def get_item(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            with open(path, "r", encoding="ascii") as f:
                return f.read()
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Cannot read slot {path}: {e}") from e

    def set_item(self, key: str, value: str) -> None:
        if self.quota_bytes is not None and len(value) > self.quota_bytes:
            raise QuotaExceededError(f"{len(value)} bytes exceeds slot quota of {self.quota_bytes}")
        path = self._path(key)
        tmp_path = f"{path}.tmp"
        try:
            os.makedirs(self.directory, exist_ok=True)
            with open(tmp_path, "w", encoding="ascii") as f:
                f.write(value)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)      # Old copy survives a failed write
        except OSError as e:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            if e.errno in (errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC)):
                raise QuotaExceededError(f"No space left for slot {path}: {e}") from e
            raise StorageError(f"Cannot write slot {path}: {e}") from e

    def remove_item(self, key: str) -> None:
        try:
            os.remove(self._path(key))
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StorageError(f"Cannot remove slot {key}: {e}") from e


def encode_snapshot(data: bytes, chunk_size: int = CHUNK_SIZE) -> str:
    """
    Base64-encode in bounded chunks. Leftover bytes that do not fill a
    3-byte group are carried into the next chunk, so the output is identical
    to encoding the whole buffer at once.
    """
    parts = []
    carry = b""
    for start in range(0, len(data), chunk_size):
        block = carry + data[start:start + chunk_size]
        cut = len(block) - len(block) % 3
        parts.append(base64.b64encode(block[:cut]).decode("ascii"))
        carry = block[cut:]
    if carry:
        parts.append(base64.b64encode(carry).decode("ascii"))
    return "".join(parts)


def decode_snapshot(text: str) -> bytes:
    try:
        return base64.b64decode(text.strip(), validate=True)
    except (binascii.Error, ValueError) as e:
        raise StorageError(f"Durable slot does not hold valid base64: {e}") from e


class PersistenceGateway:
    def __init__(self, slot: DurableSlot, key: str = "access_control_db", chunk_size: int = CHUNK_SIZE):
        self.slot = slot
        self.key = key
        self.chunk_size = chunk_size

    def load(self) -> Optional[RecordStore]:
        """
        Rebuild the store from the slot. Returns None when there is no prior
        state. A corrupt slot raises StorageError and is left untouched.
        """
        text = self.slot.get_item(self.key)
        if not text:
            logger.info(f"[PERSIST] No saved database under '{self.key}'")
            return None
        snapshot = decode_snapshot(text)
        store = RecordStore(snapshot=snapshot)
        logger.info(f"[PERSIST] Loaded database '{self.key}' ({len(snapshot)} bytes)")
        return store

    def save(self, store: RecordStore):
        """
        Write the full database image to the slot.
        Raises QuotaExceededError when the slot is full, StorageError otherwise.
        """
        snapshot = store.export_bytes()
        text = encode_snapshot(snapshot, self.chunk_size)
        try:
            self.slot.set_item(self.key, text)
        except QuotaExceededError:
            logger.error(
                f"[PERSIST] Slot '{self.key}' full: {len(text)} chars rejected, "
                f"last change exists only in memory"
            )
            raise
        except StorageError as e:
            logger.error(f"[PERSIST] Save to '{self.key}' failed: {e}")
            raise
        logger.debug(f"[PERSIST] Saved '{self.key}' ({len(snapshot)} bytes, {len(text)} chars)")

    def export_snapshot(self, store: RecordStore) -> bytes:
        """Raw database image for a user-initiated download."""
        return store.export_bytes()
