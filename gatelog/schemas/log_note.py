from pydantic import BaseModel
from typing import Optional


class LogNoteCreate(BaseModel):
    note: str
    shift: str = ""


class LogNoteOut(BaseModel):
    id: int
    date: Optional[str]
    time: Optional[str]
    shift: Optional[str]
    note: str

    class Config:
        from_attributes = True
