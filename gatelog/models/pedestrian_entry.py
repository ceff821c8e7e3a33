"""Pedestrian visits. No plate, no movement, no evidence."""

from sqlalchemy import Column, Integer, String, Text
from gatelog.database import Base


class PedestrianEntry(Base):
    __tablename__ = "pedestrians"
    __table_args__ = {"sqlite_autoincrement": True}   # ids never reused

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    reason = Column(Text)
    destination = Column(String(100), nullable=False)
    id_optional = Column(String(100))       # badge, national ID, etc.
    date = Column(String(10))
    time = Column(String(8))

    def __repr__(self):
        return f"<PedestrianEntry {self.id} name={self.name}>"
