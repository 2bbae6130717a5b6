# app/schemas/common.py
from typing import Annotated, Any

from pydantic import (
    AfterValidator,
    BeforeValidator,
    ConfigDict,
    HttpUrl,
    StringConstraints,
    TypeAdapter,
)
from sqlmodel import SQLModel

_http_url = TypeAdapter(HttpUrl)


def blank_to_none(v: Any) -> Any:
    """Form inputs send "" for untouched optional fields; treat it as null."""
    if isinstance(v, str) and not v.strip():
        return None
    return v


def _check_url(v: str | None) -> str | None:
    # Validate the shape but keep the caller's string as stored.
    if v is None:
        return v
    try:
        _http_url.validate_python(v)
    except ValueError:
        raise ValueError("Please enter a valid URL")
    return v


OptionalUrl = Annotated[str | None, BeforeValidator(blank_to_none), AfterValidator(_check_url)]
RequiredUrl = Annotated[str, AfterValidator(_check_url)]

# Select inputs post ids as strings ("12") or "" for "none selected".
OptionalId = Annotated[int | None, BeforeValidator(blank_to_none)]

TagText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


def reject_null(v: Any) -> Any:
    """Partial updates may omit a NOT NULL column but never send it as null."""
    if v is None:
        raise ValueError("Field cannot be null")
    return v


def strip_required(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("field cannot be empty")
    return v


class DeleteRequest(SQLModel):
    """Body of the POST .../delete endpoints."""

    model_config = ConfigDict(extra="forbid")

    id: int


class MessageResponse(SQLModel):
    message: str
