# app/schemas/admin.py
from datetime import datetime

from pydantic import EmailStr
from sqlmodel import SQLModel


class AdminUserRead(SQLModel):
    """Back-office admin profile returned to the admin UI."""

    id: str
    email: EmailStr
    name: str | None = None
    role: str
    created_at: datetime | None = None
    last_login: datetime | None = None
