# app/schemas/category.py
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from app.schemas.common import (
    OptionalId,
    OptionalUrl,
    blank_to_none,
    reject_null,
    strip_required,
)

CatalogStatus = Literal["active", "inactive"]


class SubcategoryInline(SQLModel):
    """A subcategory submitted together with its parent category."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=2)
    slug: str | None = None
    description: str | None = None
    status: CatalogStatus = "active"
    display_order: int = Field(default=0, ge=0)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return strip_required(v)


class CategoryCreate(SQLModel):
    """
    Payload for creating a category.

    - slug is optional: if omitted, generated from `name`.
    - subcategories are inserted after the category, best effort.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=2)
    slug: str | None = None
    description: str | None = None
    parent_category_id: OptionalId = None
    short_banner_url: OptionalUrl = None
    long_banner_url: OptionalUrl = None
    status: CatalogStatus = "active"
    display_order: int = Field(default=0, ge=0)
    subcategories: list[SubcategoryInline] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return strip_required(v)

    @field_validator("slug", mode="before")
    @classmethod
    def blank_slug(cls, v):
        return blank_to_none(v)


class CategoryUpdate(SQLModel):
    """Partial update; only fields present in the body are written."""

    model_config = ConfigDict(extra="forbid")

    categories_id: int
    name: str | None = Field(default=None, min_length=2)
    slug: str | None = None
    description: str | None = None
    parent_category_id: OptionalId = None
    short_banner_url: OptionalUrl = None
    long_banner_url: OptionalUrl = None
    status: CatalogStatus | None = None
    display_order: int | None = Field(default=None, ge=0)

    @field_validator("name", "status", "display_order", mode="before")
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


class SubcategoryCreate(SubcategoryInline):
    category_id: int


class SubcategoryUpdate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    id: int
    category_id: int | None = None
    name: str | None = Field(default=None, min_length=2)
    slug: str | None = None
    description: str | None = None
    status: CatalogStatus | None = None
    display_order: int | None = Field(default=None, ge=0)

    @field_validator("category_id", "name", "status", "display_order", mode="before")
    @classmethod
    def required_columns_not_null(cls, v):
        return reject_null(v)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return strip_required(v)
