"""
Shift log (bitácora) notes.
Written by the guard on duty; deleted individually, never edited.
"""

from sqlalchemy import Column, Integer, String, Text
from gatelog.database import Base


class LogNote(Base):
    __tablename__ = "log_notes"
    __table_args__ = {"sqlite_autoincrement": True}   # ids never reused

    id = Column(Integer, primary_key=True, autoincrement=True)
    date = Column(String(10))
    time = Column(String(8))
    shift = Column(String(50))
    note = Column(Text, nullable=False)

    def __repr__(self):
        return f"<LogNote {self.id} shift={self.shift}>"
