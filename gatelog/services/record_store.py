"""
RecordStore: the embedded relational database of the gate log.

Holds vehicles, pedestrians, shift notes and guard accounts in a private
in-memory SQLite database driven through SQLAlchemy. The whole database image
can be exported as bytes (export_bytes) and a store can be rebuilt from such
an image, which is how PersistenceGateway keeps it durable.

Rules:
  - Required columns are checked before anything reaches the engine (ValidationError)
  - Any engine failure rolls the session back and raises StorageError,
    leaving the in-memory database as it was
  - Operations are serialized on a re-entrant lock: one writer at a time
"""

import re
import sqlite3
import threading
from contextlib import contextmanager
from enum import Enum
from typing import Mapping, Optional

from sqlalchemy import func, inspect
from sqlalchemy.exc import NoSuchTableError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from gatelog.database import MAX_ROW_ID, create_snapshot_engine, create_tables, open_memory_connection
from gatelog.exceptions import StorageError, ValidationError
from gatelog.models.guard_account import GuardAccount, ROLES, ROLE_GUARD
from gatelog.models.log_note import LogNote
from gatelog.models.pedestrian_entry import PedestrianEntry
from gatelog.models.vehicle_entry import VehicleEntry, MOVEMENTS, DEFAULT_COLOR
from gatelog.schemas.guard_account import GuardAccountOut
from gatelog.schemas.history import HistoryRow
from gatelog.schemas.log_note import LogNoteOut
from gatelog.schemas.pedestrian_entry import PedestrianEntryOut
from gatelog.schemas.vehicle_entry import VehicleEntryOut
from gatelog.utils.logger import get_logger
from gatelog.utils.passwords import check_secret, hash_secret

logger = get_logger(__name__)

VEHICLE_KIND = "Vehículo"
PEDESTRIAN_KIND = "Peatón"
SUGGESTION_LIMIT = 5
EVIDENCE_FIELDS = ("evidence_person", "evidence_plate", "evidence_id")

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class EntityKind(str, Enum):
    VEHICLES = "vehicles"
    PEDESTRIANS = "pedestrians"
    NOTES = "notes"
    GUARDS = "guards"


_KIND_MAP = {
    EntityKind.VEHICLES: (VehicleEntry, VehicleEntryOut),
    EntityKind.PEDESTRIANS: (PedestrianEntry, PedestrianEntryOut),
    EntityKind.NOTES: (LogNote, LogNoteOut),
    EntityKind.GUARDS: (GuardAccount, GuardAccountOut),
}


def normalize_plate(plate: Optional[str]) -> str:
    return (plate or "").strip().upper()


def require_fields(fields: Mapping, *names: str):
    missing = [n for n in names if not str(fields.get(n) or "").strip()]
    if missing:
        raise ValidationError(f"Required field(s) empty: {', '.join(missing)}")


def _valid_id(row_id) -> bool:
    """Ids outside SQLite's INTEGER range cannot be bound, and no row has them."""
    return isinstance(row_id, int) and 1 <= row_id <= MAX_ROW_ID


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class RecordStore:
    def __init__(self, snapshot: Optional[bytes] = None):
        self._raw = open_memory_connection()
        if snapshot is not None:
            try:
                self._raw.deserialize(snapshot)
                # deserialize() accepts any bytes; the first read tells
                self._raw.execute("SELECT count(*) FROM sqlite_master").fetchone()
            except sqlite3.Error as e:
                self._raw.close()
                raise StorageError(f"Snapshot is not a readable database: {e}") from e
        self.engine = create_snapshot_engine(self._raw)
        self.SessionLocal = sessionmaker(autoflush=False, expire_on_commit=False, bind=self.engine)
        self._lock = threading.RLock()

    @contextmanager
    def _session(self):
        with self._lock:
            session = self.SessionLocal()
            try:
                yield session
            except SQLAlchemyError as e:
                session.rollback()
                logger.error(f"[STORE] Engine failure: {e}")
                raise StorageError(str(e)) from e
            finally:
                session.close()

    def _add(self, row) -> int:
        with self._session() as session:
            session.add(row)
            session.commit()
            return row.id

    # ── Schema ────────────────────────────────────────────────────────────
    def create_schema(self):
        """Create any missing tables. Existing tables are not altered."""
        with self._lock:
            try:
                create_tables(self.engine)
            except SQLAlchemyError as e:
                raise StorageError(f"Cannot create schema: {e}") from e

    def column_names(self, table: str) -> set[str]:
        with self._lock:
            try:
                return {c["name"] for c in inspect(self.engine).get_columns(table)}
            except NoSuchTableError:
                return set()
            except SQLAlchemyError as e:
                raise StorageError(f"Cannot inspect {table}: {e}") from e

    def add_column(self, table: str, column: str, ddl_type: str = "TEXT"):
        if not (_IDENTIFIER_RE.match(table) and _IDENTIFIER_RE.match(column)):
            raise ValidationError(f"Invalid identifier: {table}.{column}")
        with self._lock:
            try:
                with self.engine.begin() as conn:
                    conn.exec_driver_sql(f'ALTER TABLE "{table}" ADD COLUMN "{column}" {ddl_type}')
            except SQLAlchemyError as e:
                raise StorageError(f"Cannot add {table}.{column}: {e}") from e

    # ── Inserts / deletes ─────────────────────────────────────────────────
    def insert_vehicle(self, fields: Mapping) -> int:
        plate = normalize_plate(fields.get("plate"))
        require_fields({**fields, "plate": plate}, "plate", "name", "destination")
        movement = fields.get("movement") or None
        if movement is not None and movement not in MOVEMENTS:
            raise ValidationError(f"Movement must be one of {MOVEMENTS}, got {movement!r}")

        row = VehicleEntry(
            plate=plate,
            name=fields["name"],
            reason=fields.get("reason") or "",
            model=fields.get("model") or "",
            color=fields.get("color") or DEFAULT_COLOR,
            destination=fields["destination"],
            date=fields.get("date") or "",
            time=fields.get("time") or "",
            movement=movement,
            **{f: fields.get(f) or "" for f in EVIDENCE_FIELDS},
        )
        row_id = self._add(row)
        logger.info(f"[STORE] Vehicle #{row_id} plate={plate} movement={movement}")
        return row_id

    def insert_pedestrian(self, fields: Mapping) -> int:
        require_fields(fields, "name", "destination")
        row_id = self._add(PedestrianEntry(
            name=fields["name"],
            reason=fields.get("reason") or "",
            destination=fields["destination"],
            id_optional=fields.get("id_optional") or "",
            date=fields.get("date") or "",
            time=fields.get("time") or "",
        ))
        logger.info(f"[STORE] Pedestrian #{row_id} destination={fields['destination']}")
        return row_id

    def insert_note(self, fields: Mapping) -> int:
        require_fields(fields, "note")
        row_id = self._add(LogNote(
            note=fields["note"],
            shift=fields.get("shift") or "",
            date=fields.get("date") or "",
            time=fields.get("time") or "",
        ))
        logger.info(f"[STORE] Note #{row_id} shift={fields.get('shift') or '-'}")
        return row_id

    def insert_guard(self, fields: Mapping) -> int:
        """Expects the plain secret under `password`; only its hash is stored."""
        require_fields(fields, "name", "username", "password")
        role = fields.get("role") or ROLE_GUARD
        if role not in ROLES:
            raise ValidationError(f"Role must be one of {ROLES}, got {role!r}")
        row_id = self._add(GuardAccount(
            name=fields["name"],
            username=fields["username"],
            secret=hash_secret(fields["password"]),
            role=role,
        ))
        logger.info(f"[STORE] Guard #{row_id} username={fields['username']} role={role}")
        return row_id

    def _delete(self, model, row_id: int) -> bool:
        if not _valid_id(row_id):
            return False
        with self._session() as session:
            row = session.get(model, row_id)
            if row is None:
                return False
            session.delete(row)
            session.commit()
            return True

    def delete_note(self, note_id: int) -> bool:
        deleted = self._delete(LogNote, note_id)
        logger.info(f"[STORE] Note #{note_id} {'deleted' if deleted else 'not found'}")
        return deleted

    def delete_guard(self, guard_id: int) -> bool:
        deleted = self._delete(GuardAccount, guard_id)
        logger.info(f"[STORE] Guard #{guard_id} {'deleted' if deleted else 'not found'}")
        return deleted

    # ── Queries ───────────────────────────────────────────────────────────
    def query_vehicles_by_plate_prefix(self, prefix: str, limit: int = SUGGESTION_LIMIT) -> list[VehicleEntryOut]:
        """
        Most recent visit per plate among plates starting with `prefix`,
        newest first. Used to auto-fill the entry form.
        """
        prefix = normalize_plate(prefix)
        if not prefix:
            return []
        with self._session() as session:
            latest = (
                session.query(VehicleEntry.plate, func.max(VehicleEntry.id).label("max_id"))
                .filter(VehicleEntry.plate.like(_escape_like(prefix) + "%", escape="\\"))
                .group_by(VehicleEntry.plate)
                .subquery()
            )
            rows = (
                session.query(VehicleEntry)
                .join(latest, VehicleEntry.id == latest.c.max_id)
                .order_by(VehicleEntry.id.desc())
                .limit(limit)
                .all()
            )
            return [VehicleEntryOut.model_validate(r) for r in rows]

    def query_all(self, kind) -> list:
        try:
            model, schema = _KIND_MAP[EntityKind(kind)]
        except ValueError:
            raise ValidationError(f"Unknown entity kind: {kind!r}") from None
        with self._session() as session:
            return [schema.model_validate(r) for r in session.query(model).order_by(model.id).all()]

    def query_history(self) -> list[HistoryRow]:
        """Vehicles and pedestrians as one row shape, tagged by kind."""
        with self._session() as session:
            vehicles = session.query(VehicleEntry).order_by(VehicleEntry.id).all()
            pedestrians = session.query(PedestrianEntry).order_by(PedestrianEntry.id).all()
            rows = [
                HistoryRow(
                    id=v.id, kind=VEHICLE_KIND, date=v.date or "", time=v.time or "",
                    name=v.name or "", plate=v.plate or "", destination=v.destination or "",
                    reason=v.reason or "", model=v.model or "", color=v.color or "",
                    movement=v.movement or "",
                    evidence_person=v.evidence_person or "",
                    evidence_plate=v.evidence_plate or "",
                    evidence_id=v.evidence_id or "",
                )
                for v in vehicles
            ]
            rows.extend(
                HistoryRow(
                    id=p.id, kind=PEDESTRIAN_KIND, date=p.date or "", time=p.time or "",
                    name=p.name or "", destination=p.destination or "", reason=p.reason or "",
                )
                for p in pedestrians
            )
            return rows

    def list_notes(self) -> list[LogNoteOut]:
        with self._session() as session:
            notes = (
                session.query(LogNote)
                .order_by(LogNote.date.desc(), LogNote.time.desc(), LogNote.id.desc())
                .all()
            )
            return [LogNoteOut.model_validate(n) for n in notes]

    def get_vehicle(self, vehicle_id: int) -> Optional[VehicleEntryOut]:
        if not _valid_id(vehicle_id):
            return None
        with self._session() as session:
            row = session.get(VehicleEntry, vehicle_id)
            return VehicleEntryOut.model_validate(row) if row else None

    def evidence_references(self) -> list[tuple[int, str, str]]:
        """(vehicle id, column, handle) for every non-empty evidence column."""
        with self._session() as session:
            refs = []
            for row in session.query(VehicleEntry).order_by(VehicleEntry.id).all():
                for field in EVIDENCE_FIELDS:
                    handle = getattr(row, field)
                    if handle:
                        refs.append((row.id, field, handle))
            return refs

    def verify_guard_secret(self, username: str, secret: str) -> Optional[GuardAccountOut]:
        """Return the account whose handle and secret match, else None."""
        with self._session() as session:
            for guard in session.query(GuardAccount).filter(GuardAccount.username == username).all():
                if check_secret(secret, guard.secret):
                    return GuardAccountOut.model_validate(guard)
            return None

    def _count(self, column) -> int:
        with self._session() as session:
            return session.query(func.count(column)).scalar() or 0

    def count_vehicles(self) -> int:
        return self._count(VehicleEntry.id)

    def count_pedestrians(self) -> int:
        return self._count(PedestrianEntry.id)

    def count_notes(self) -> int:
        return self._count(LogNote.id)

    def count_guards(self) -> int:
        return self._count(GuardAccount.id)

    # ── Whole-database operations ─────────────────────────────────────────
    def export_bytes(self) -> bytes:
        """Binary image of the whole database (a valid .sqlite file)."""
        with self._lock:
            try:
                return self._raw.serialize()
            except sqlite3.Error as e:
                raise StorageError(f"Cannot export database: {e}") from e

    def compact(self):
        """VACUUM. The caller must persist afterwards."""
        with self._lock:
            try:
                with self.engine.connect() as conn:
                    conn.execution_options(isolation_level="AUTOCOMMIT")
                    conn.exec_driver_sql("VACUUM")
            except SQLAlchemyError as e:
                raise StorageError(f"Cannot compact database: {e}") from e
        logger.info("[STORE] Database compacted")

    def close(self):
        with self._lock:
            self.engine.dispose()
            self._raw.close()
