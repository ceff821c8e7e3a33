"""
Operation boundary between the HTTP layer and the data layer.

Every committed change runs mutate → save and returns an OperationResult
the caller can show the operator as-is:

  - ValidationError / StorageError while mutating → ok=False, nothing written
  - QuotaExceededError / StorageError while saving → ok=True, durable=False:
    the change exists in memory only and may be lost on reload
  - Evidence that cannot be stored → warning; the visit is still recorded
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from starlette.concurrency import run_in_threadpool

from gatelog.exceptions import GateLogError, StorageError, ValidationError
from gatelog.models.vehicle_entry import MOVEMENTS
from gatelog.schemas.guard_account import GuardAccountCreate
from gatelog.schemas.log_note import LogNoteCreate
from gatelog.schemas.pedestrian_entry import PedestrianEntryCreate
from gatelog.schemas.vehicle_entry import VehicleEntryCreate
from gatelog.services.evidence_linker import captures_from
from gatelog.services.record_store import normalize_plate, require_fields
from gatelog.utils.logger import get_logger

logger = get_logger(__name__)

VISIT_FREQUENT = "frecuente"
VISIT_BLOCKED = "boletinado"

NOT_DURABLE_WARNING = (
    "The change was recorded but could not be saved to local storage "
    "(insufficient space). It may be lost on reload: export or clean up and retry."
)

Clock = Callable[[], datetime]


@dataclass
class OperationResult:
    ok: bool
    message: str
    record_id: Optional[int] = None
    durable: bool = True
    not_found: bool = False
    warnings: list[str] = field(default_factory=list)
    error: Optional[GateLogError] = None


def _stamp(clock: Clock) -> tuple[str, str]:
    now = clock()
    return now.strftime("%Y-%m-%d"), now.strftime("%H:%M:%S")


def _failed(error: GateLogError, warnings: Optional[list[str]] = None) -> OperationResult:
    if isinstance(error, ValidationError):
        logger.warning(f"[OP] Rejected: {error}")
    else:
        logger.error(f"[OP] Failed: {error}")
    return OperationResult(ok=False, message=str(error), warnings=warnings or [], error=error)


def _commit(runtime, message: str, record_id: Optional[int] = None,
            warnings: Optional[list[str]] = None) -> OperationResult:
    """Persist after a successful mutation; a failed save is reported, not raised."""
    warnings = list(warnings or [])
    try:
        runtime.gateway.save(runtime.record_store)
    except StorageError as e:
        return OperationResult(
            ok=True, message=message, record_id=record_id, durable=False,
            warnings=warnings + [NOT_DURABLE_WARNING], error=e,
        )
    return OperationResult(ok=True, message=message, record_id=record_id, warnings=warnings)


async def register_vehicle(runtime, entry: VehicleEntryCreate, clock: Clock = datetime.now) -> OperationResult:
    if entry.visit_type == VISIT_BLOCKED:
        reason = f": {entry.block_reason}" if entry.block_reason else ""
        return _failed(ValidationError(f"Blocked visit, no movement recorded{reason}"))

    # Checked before any photo is written, so a rejected form leaves no orphan blobs
    try:
        require_fields({**entry.model_dump(), "plate": normalize_plate(entry.plate)},
                       "plate", "name", "destination")
        if entry.movement not in MOVEMENTS:
            raise ValidationError(f"Movement must be one of {MOVEMENTS}, got {entry.movement!r}")
    except ValidationError as e:
        return _failed(e)

    evidence = await runtime.linker.persist(
        captures_from(entry.photo_person, entry.photo_plate, entry.photo_id)
    )
    date, time = _stamp(clock)
    try:
        row_id = await run_in_threadpool(runtime.record_store.insert_vehicle, {
            "plate": entry.plate,
            "name": entry.name,
            "reason": entry.reason,
            "model": entry.model,
            "color": entry.color,
            "destination": entry.destination,
            "date": date,
            "time": time,
            "movement": entry.movement,
            **evidence.refs,
        })
    except GateLogError as e:
        return _failed(e, evidence.warnings)
    # Insert and snapshot save block on SQLite and the slot; both run off the loop
    return await run_in_threadpool(
        _commit, runtime, f"Vehicle registered ({entry.movement}).", row_id, evidence.warnings,
    )


def register_pedestrian(runtime, entry: PedestrianEntryCreate, clock: Clock = datetime.now) -> OperationResult:
    date, time = _stamp(clock)
    try:
        row_id = runtime.record_store.insert_pedestrian({**entry.model_dump(), "date": date, "time": time})
    except GateLogError as e:
        return _failed(e)
    return _commit(runtime, "Pedestrian registered.", row_id)


def add_note(runtime, entry: LogNoteCreate, clock: Clock = datetime.now) -> OperationResult:
    date, time = _stamp(clock)
    try:
        row_id = runtime.record_store.insert_note({**entry.model_dump(), "date": date, "time": time})
    except GateLogError as e:
        return _failed(e)
    return _commit(runtime, "Note added.", row_id)


def delete_note(runtime, note_id: int) -> OperationResult:
    try:
        deleted = runtime.record_store.delete_note(note_id)
    except GateLogError as e:
        return _failed(e)
    if not deleted:
        return OperationResult(ok=False, message=f"Note {note_id} not found", not_found=True)
    return _commit(runtime, "Note deleted.", note_id)


def add_guard(runtime, entry: GuardAccountCreate) -> OperationResult:
    try:
        row_id = runtime.record_store.insert_guard(entry.model_dump())
    except GateLogError as e:
        return _failed(e)
    return _commit(runtime, f"Guard {entry.username} added.", row_id)


def delete_guard(runtime, guard_id: int) -> OperationResult:
    try:
        deleted = runtime.record_store.delete_guard(guard_id)
    except GateLogError as e:
        return _failed(e)
    if not deleted:
        return OperationResult(ok=False, message=f"Guard {guard_id} not found", not_found=True)
    return _commit(runtime, "Guard deleted.", guard_id)


def compact_database(runtime) -> OperationResult:
    try:
        runtime.record_store.compact()
    except GateLogError as e:
        return _failed(e)
    return _commit(runtime, "Database compacted.")
