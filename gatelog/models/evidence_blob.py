"""
Evidence photos. Lives in the blob store engine, not in the record store:
rows only keep the handle string idb:photo:<id>.
"""

from sqlalchemy import Column, Integer, String, DateTime, LargeBinary
from gatelog.database import BlobBase


class EvidenceBlob(BlobBase):
    __tablename__ = "photos"
    __table_args__ = {"sqlite_autoincrement": True}   # ids never reused

    id = Column(Integer, primary_key=True, autoincrement=True)
    payload = Column(LargeBinary, nullable=False)
    mime_type = Column(String(100), nullable=False, default="application/octet-stream")
    created_at = Column(DateTime, nullable=False, index=True)

    def __repr__(self):
        return f"<EvidenceBlob {self.id} type={self.mime_type} size={len(self.payload or b'')}>"
