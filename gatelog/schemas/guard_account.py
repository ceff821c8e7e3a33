from pydantic import BaseModel


class GuardAccountCreate(BaseModel):
    name: str
    username: str
    password: str
    role: str = "Guardia"       # Guardia | Administrador


class GuardAccountOut(BaseModel):
    """Never carries the secret."""
    id: int
    name: str
    username: str
    role: str

    class Config:
        from_attributes = True
