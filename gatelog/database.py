"""
Database engines and declarative bases.

Two independent SQLite engines back the gate log:
  - the record store: an in-memory database whose whole image is
    serialized into the durable slot after every committed change
  - the evidence blob store: an on-disk database with its own lifecycle

All record models are imported in create_tables() so one call creates every table.
"""

import os
import sqlite3

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

Base = declarative_base()        # vehicles, pedestrians, log_notes, guards
BlobBase = declarative_base()    # photos (evidence blob store)

MAX_ROW_ID = 2**63 - 1           # largest SQLite INTEGER; bigger ids cannot exist


def open_memory_connection() -> sqlite3.Connection:
    """
    Open a private in-memory SQLite connection. Shared across threads;
    RecordStore serializes access itself.
    """
    return sqlite3.connect(":memory:", check_same_thread=False)


def create_snapshot_engine(raw_conn: sqlite3.Connection) -> Engine:
    """Bind an engine to exactly one in-memory connection."""
    return create_engine(
        "sqlite://",
        creator=lambda: raw_conn,
        poolclass=StaticPool,        # One connection == one database image
        echo=False,                  # Set True to log all SQL queries (debug only)
    )


def create_blob_engine(url: str) -> Engine:
    sa_url = make_url(url)
    if sa_url.database in (None, "", ":memory:"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=False,
        )
    parent = os.path.dirname(sa_url.database)
    if parent:
        os.makedirs(parent, exist_ok=True)
    return create_engine(url, connect_args={"check_same_thread": False}, echo=False)


def create_tables(engine: Engine):
    """
    Creates all record tables. Safe to call multiple times; existing tables
    are left alone (column additions are MigrationRunner's job).
    """
    from gatelog.models.vehicle_entry import VehicleEntry          # noqa
    from gatelog.models.pedestrian_entry import PedestrianEntry    # noqa
    from gatelog.models.log_note import LogNote                    # noqa
    from gatelog.models.guard_account import GuardAccount          # noqa

    Base.metadata.create_all(bind=engine)


def create_blob_tables(engine: Engine):
    from gatelog.models.evidence_blob import EvidenceBlob          # noqa

    BlobBase.metadata.create_all(bind=engine)
