"""
Startup schema migrations for the record store.

Databases saved by older releases have a `vehicles` table without the
movement and evidence columns. At startup each missing column is added;
nothing is ever dropped or renamed, since the durable slot holds the only copy.

A column that cannot be added is logged and skipped. The app still starts,
with that feature unavailable.
"""

from dataclasses import dataclass, field

from gatelog.exceptions import GateLogError
from gatelog.utils.logger import get_logger

logger = get_logger(__name__)

VEHICLE_TABLE = "vehicles"
TARGET_COLUMNS = (
    ("movement", "TEXT"),
    ("evidence_person", "TEXT"),
    ("evidence_plate", "TEXT"),
    ("evidence_id", "TEXT"),
)


@dataclass
class MigrationReport:
    applied: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def changed(self) -> bool:
        return bool(self.applied)


def run_migrations(store) -> MigrationReport:
    """Add any missing TARGET_COLUMNS to the vehicles table. Idempotent."""
    report = MigrationReport()
    try:
        existing = store.column_names(VEHICLE_TABLE)
    except GateLogError as e:
        logger.error(f"[MIGRATION] Cannot inspect {VEHICLE_TABLE}, migrations skipped: {e}")
        report.failed[VEHICLE_TABLE] = str(e)
        return report

    for column, ddl_type in TARGET_COLUMNS:
        if column in existing:
            continue
        try:
            store.add_column(VEHICLE_TABLE, column, ddl_type)
        except GateLogError as e:
            logger.error(f"[MIGRATION] {VEHICLE_TABLE}.{column} not added, continuing without it: {e}")
            report.failed[column] = str(e)
            continue
        logger.info(f"[MIGRATION] Added {VEHICLE_TABLE}.{column} {ddl_type}")
        report.applied.append(column)

    if not report.applied and not report.failed:
        logger.debug("[MIGRATION] Schema up to date")
    return report
