# app/schemas/brand.py
from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from app.schemas.category import CatalogStatus
from app.schemas.common import OptionalUrl, blank_to_none, reject_null, strip_required


class BrandCreate(SQLModel):
    """
    Payload for creating a brand.

    - slug is optional: if omitted, generated from `name`.
    - URL fields accept "" as "not set".
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=2)
    slug: str | None = None
    description: str | None = None
    logo_url: OptionalUrl = None
    short_banner_url: OptionalUrl = None
    long_banner_url: OptionalUrl = None
    website: OptionalUrl = None
    status: CatalogStatus = "active"

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return strip_required(v)

    @field_validator("slug", mode="before")
    @classmethod
    def blank_slug(cls, v):
        return blank_to_none(v)


class BrandUpdate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    brands_id: int
    name: str | None = Field(default=None, min_length=2)
    slug: str | None = None
    description: str | None = None
    logo_url: OptionalUrl = None
    short_banner_url: OptionalUrl = None
    long_banner_url: OptionalUrl = None
    website: OptionalUrl = None
    status: CatalogStatus | None = None

    @field_validator("name", "status", mode="before")
    @classmethod
    def required_columns_not_null(cls, v):
        return reject_null(v)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return strip_required(v)

    @field_validator("slug", mode="before")
    @classmethod
    def blank_slug(cls, v):
        return blank_to_none(v)
