# app/schemas/upload.py
from pydantic import ConfigDict
from sqlmodel import SQLModel, Field


class UploadRead(SQLModel):
    url: str
    path: str


class UploadDelete(SQLModel):
    model_config = ConfigDict(extra="forbid")

    url: str = Field(min_length=1)
