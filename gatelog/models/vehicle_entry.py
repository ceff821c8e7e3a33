"""
Vehicle visits (entry form + history view).
One row per gate movement; the same plate appears once per visit.
Evidence columns hold blob store handles (idb:photo:<id>) or "".
"""

from sqlalchemy import Column, Integer, String, Text
from gatelog.database import Base

MOVEMENT_ENTRY = "entrada"
MOVEMENT_EXIT = "salida"
MOVEMENTS = (MOVEMENT_ENTRY, MOVEMENT_EXIT)

DEFAULT_COLOR = "#2F855A"


class VehicleEntry(Base):
    __tablename__ = "vehicles"
    __table_args__ = {"sqlite_autoincrement": True}   # ids never reused

    id = Column(Integer, primary_key=True, autoincrement=True)
    plate = Column(String(20), nullable=False, index=True)   # always uppercase
    name = Column(String(200), nullable=False)
    reason = Column(Text)
    model = Column(String(100))
    color = Column(String(7))                                 # hex, e.g. #2F855A
    destination = Column(String(100), nullable=False)
    date = Column(String(10))                                 # YYYY-MM-DD
    time = Column(String(8))                                  # HH:MM:SS
    # Added by MigrationRunner on databases created before these existed
    movement = Column(String(10))                             # entrada | salida | NULL (legacy)
    evidence_person = Column(Text)
    evidence_plate = Column(Text)
    evidence_id = Column(Text)

    def __repr__(self):
        return f"<VehicleEntry {self.id} plate={self.plate} movement={self.movement}>"
