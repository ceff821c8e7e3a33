from pydantic import BaseModel
from typing import Optional


class PedestrianEntryCreate(BaseModel):
    name: str
    destination: str
    reason: str = ""
    id_optional: str = ""


class PedestrianEntryOut(BaseModel):
    id: int
    name: str
    reason: Optional[str]
    destination: str
    id_optional: Optional[str]
    date: Optional[str]
    time: Optional[str]

    class Config:
        from_attributes = True
