from pydantic import BaseModel
from typing import Optional


class VehicleEntryCreate(BaseModel):
    plate: str
    name: str
    destination: str
    reason: str = ""
    model: str = ""
    color: str = "#2F855A"
    movement: str = "entrada"          # entrada | salida
    visit_type: str = ""               # "" | frecuente | boletinado
    block_reason: str = ""
    # Captures as data URLs (data:image/jpeg;base64,...), persisted to the blob store
    photo_person: Optional[str] = None
    photo_plate: Optional[str] = None
    photo_id: Optional[str] = None


class VehicleEntryOut(BaseModel):
    id: int
    plate: str
    name: str
    reason: Optional[str]
    model: Optional[str]
    color: Optional[str]
    destination: str
    date: Optional[str]
    time: Optional[str]
    movement: Optional[str]
    evidence_person: Optional[str]
    evidence_plate: Optional[str]
    evidence_id: Optional[str]

    class Config:
        from_attributes = True


class PlateSuggestionOut(BaseModel):
    """Last known visit for a plate, used to auto-fill the entry form."""
    id: int
    plate: str
    name: str
    reason: Optional[str]
    model: Optional[str]
    color: Optional[str]
    destination: str

    class Config:
        from_attributes = True
