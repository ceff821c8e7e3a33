from pydantic import BaseModel
from typing import Optional


class HistoryRow(BaseModel):
    """
    One visit in the unified history. Vehicles and pedestrians share this
    shape; fields a kind does not have are "".
    """
    id: int
    kind: str                  # Vehículo | Peatón
    date: str = ""
    time: str = ""
    name: str = ""
    plate: str = ""
    destination: str = ""
    reason: str = ""
    model: str = ""
    color: str = ""
    movement: str = ""
    evidence_person: str = ""
    evidence_plate: str = ""
    evidence_id: str = ""


class HistoryFilters(BaseModel):
    kind: Optional[str] = None
    name: Optional[str] = None
    plate: Optional[str] = None
    destination: Optional[str] = None
    movement: Optional[str] = None
    date_from: Optional[str] = None     # inclusive, YYYY-MM-DD
    date_to: Optional[str] = None       # inclusive, YYYY-MM-DD


class OperationOut(BaseModel):
    ok: bool
    message: str
    id: Optional[int] = None
    durable: bool = True
    warnings: list[str] = []


class StatsOut(BaseModel):
    vehicles: int
    pedestrians: int
    notes: int
    guards: int
