"""
Guard and administrator accounts (admin panel).
`secret` stores a PBKDF2 hash, never the plain password.
"""

from sqlalchemy import Column, Integer, String
from gatelog.database import Base

ROLE_GUARD = "Guardia"
ROLE_ADMIN = "Administrador"
ROLES = (ROLE_GUARD, ROLE_ADMIN)


class GuardAccount(Base):
    __tablename__ = "guards"
    __table_args__ = {"sqlite_autoincrement": True}   # ids never reused

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    username = Column(String(100), nullable=False, index=True)   # unique in practice, not enforced
    secret = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=ROLE_GUARD)

    def __repr__(self):
        return f"<GuardAccount {self.id} username={self.username} role={self.role}>"
