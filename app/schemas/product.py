# app/schemas/product.py
from typing import Literal

from pydantic import ConfigDict, ValidationInfo, field_validator, model_validator
from sqlmodel import SQLModel, Field

from app.schemas.common import (
    OptionalId,
    OptionalUrl,
    RequiredUrl,
    TagText,
    reject_null,
    strip_required,
)

ProductStatus = Literal["active", "draft"]

# Promotional labels shown on storefront product cards.
ProductMark = Literal[
    "selling fast",
    "Trending now",
    "Must Have",
    "Loved by Many",
    "best seller",
    "limited edition",
]

SHIPPING_FIELDS = (
    "shipping_class",
    "weight",
    "weight_unit",
    "dimensions_length",
    "dimensions_width",
    "dimensions_height",
    "dimensions_unit",
)


# ---------------------------------------------------------
# Child collections
# ---------------------------------------------------------


class ProductFeature(SQLModel):
    model_config = ConfigDict(extra="forbid")

    id: int | None = None
    feature_text: str = Field(min_length=1)
    icon_url: OptionalUrl = None


class VariantAttribute(SQLModel):
    """A name/value pair such as Color=Red."""

    model_config = ConfigDict(extra="forbid")

    id: int | None = None
    name: str = Field(min_length=1)
    value: str = Field(min_length=1)


class VariantFeature(SQLModel):
    model_config = ConfigDict(extra="forbid")

    id: int | None = None
    feature_text: str = Field(min_length=1)
    icon_url: OptionalUrl = None


class ProductVariant(SQLModel):
    """
    A purchasable variant of a product.

    Price, SKU, quantity and images override the product's own values
    when set. Attributes and variant features are stored against the
    variant id once the variant row exists.
    """

    model_config = ConfigDict(extra="forbid")

    id: int | None = None
    name: str = Field(min_length=1)
    price: float | None = Field(default=None, ge=0)
    compare_at_price: float | None = None
    sku: str | None = None
    quantity: int | None = Field(default=None, ge=0)
    image_url: OptionalUrl = None
    icon_url: OptionalUrl = None
    attributes: list[VariantAttribute] = Field(default_factory=list)
    variant_features: list[VariantFeature] = Field(default_factory=list)


class TestimonialVideo(SQLModel):
    model_config = ConfigDict(extra="forbid")

    id: int | None = None
    video_url: RequiredUrl
    title: str | None = None
    description: str | None = None
    uploader_name: str | None = None


class ProductTestimonial(SQLModel):
    """Customer testimonial entered on the product form."""

    model_config = ConfigDict(extra="forbid")

    id: int | None = None
    customer_name: str = Field(min_length=2)
    testimonial_text: str = Field(min_length=10)
    rating: float | None = Field(default=None, ge=0, le=5)
    customer_image_url: OptionalUrl = None


class FaqItem(SQLModel):
    model_config = ConfigDict(extra="forbid")

    id: int | None = None
    question: str = Field(min_length=1)
    answer: str = Field(min_length=1)


# ---------------------------------------------------------
# Shipping rules shared by create and update payloads
# ---------------------------------------------------------


class ShippingRulesMixin(SQLModel):
    """
    Conditional shipping validation.

    - When shipping is required, a unit is mandatory once its magnitude is given.
    - When shipping is not required, every shipping field is forced to null.

    Field order matters: the unit validators read the already-validated
    magnitudes from `info.data`, so units are declared after them.
    """

    @field_validator("weight_unit", check_fields=False)
    @classmethod
    def weight_unit_required_with_weight(
        cls, v: str | None, info: ValidationInfo
    ) -> str | None:
        v = v.strip() if isinstance(v, str) else v
        if (
            info.data.get("shipping_required") is not False
            and info.data.get("weight") is not None
            and not v
        ):
            raise ValueError("Weight unit is required when weight is provided")
        return v or None

    @field_validator("dimensions_unit", check_fields=False)
    @classmethod
    def dimensions_unit_required_with_dimensions(
        cls, v: str | None, info: ValidationInfo
    ) -> str | None:
        v = v.strip() if isinstance(v, str) else v
        has_dimensions = any(
            info.data.get(f) is not None
            for f in ("dimensions_length", "dimensions_width", "dimensions_height")
        )
        if info.data.get("shipping_required") is not False and has_dimensions and not v:
            raise ValueError("Dimensions unit is required when any dimension is provided")
        return v or None

    @model_validator(mode="after")
    def clear_shipping_when_not_required(self):
        if self.shipping_required is False:
            for name in SHIPPING_FIELDS:
                setattr(self, name, None)
        return self


# ---------------------------------------------------------
# Product payloads
# ---------------------------------------------------------


class ProductCreate(ShippingRulesMixin):
    """
    Payload for the full product create workflow.

    - slug is optional: it is always derived from `name` server-side.
    - Child arrays default to empty; each non-empty one is inserted
      after the core row (best effort).
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=2)
    slug: str | None = None
    description: str | None = None
    short_description: str | None = None
    sku: str | None = None
    category_id: OptionalId = None
    subcategory_id: OptionalId = None
    brand_id: OptionalId = None

    # Pricing
    price: float = Field(ge=0)
    compare_at_price: float | None = None
    cost_price: float | None = Field(default=None, gt=0)
    currency_code: str = "USD"

    # Inventory
    initial_stock: int | None = Field(default=None, ge=0)
    track_inventory: bool = True
    quantity: int = Field(default=0, ge=0)
    backorderable: bool = False
    low_stock_threshold: int = Field(default=5, ge=0)
    reserved_quantity: int = Field(default=0, ge=0)
    max_stock: int | None = Field(default=None, ge=0)

    # Shipping (order matters, see ShippingRulesMixin)
    shipping_required: bool = True
    shipping_class: str | None = None
    weight: float | None = Field(default=None, ge=0)
    weight_unit: str | None = "kg"
    dimensions_length: float | None = Field(default=None, ge=0)
    dimensions_width: float | None = Field(default=None, ge=0)
    dimensions_height: float | None = Field(default=None, ge=0)
    dimensions_unit: str | None = "cm"

    # Merchandising / SEO
    status: ProductStatus = "draft"
    mark: ProductMark | None = None
    is_limited_edition: bool = False
    seo_title: str | None = None
    seo_description: str | None = None
    seo_keywords: str | None = None  # comma-separated, stored as a list
    featured_in_collection_slug: str | None = None

    # Child collections
    images: list[RequiredUrl] = Field(default_factory=list)
    features: list[ProductFeature] = Field(default_factory=list)
    variants: list[ProductVariant] = Field(default_factory=list)
    tags: list[TagText] = Field(default_factory=list)
    faqs: list[FaqItem] = Field(default_factory=list)
    testimonial_videos: list[TestimonialVideo] = Field(default_factory=list)
    customer_testimonials: list[ProductTestimonial] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return strip_required(v)

    @field_validator("mark", mode="before")
    @classmethod
    def empty_mark(cls, v):
        return None if v == "" else v


class ProductUpdate(ShippingRulesMixin):
    """
    Payload for the full product update workflow.

    Scalars are all optional: only fields present in the body are written.
    Child arrays always replace the stored collections (missing => emptied).
    """

    model_config = ConfigDict(extra="forbid")

    products_id: int

    name: str | None = Field(default=None, min_length=2)
    slug: str | None = None
    description: str | None = None
    short_description: str | None = None
    sku: str | None = None
    category_id: OptionalId = None
    subcategory_id: OptionalId = None
    brand_id: OptionalId = None

    price: float | None = Field(default=None, ge=0)
    compare_at_price: float | None = None
    cost_price: float | None = Field(default=None, gt=0)
    currency_code: str | None = None

    initial_stock: int | None = Field(default=None, ge=0)
    track_inventory: bool | None = None
    quantity: int | None = Field(default=None, ge=0)
    backorderable: bool | None = None
    low_stock_threshold: int | None = Field(default=None, ge=0)
    reserved_quantity: int | None = Field(default=None, ge=0)
    max_stock: int | None = Field(default=None, ge=0)

    shipping_required: bool | None = None
    shipping_class: str | None = None
    weight: float | None = Field(default=None, ge=0)
    weight_unit: str | None = None
    dimensions_length: float | None = Field(default=None, ge=0)
    dimensions_width: float | None = Field(default=None, ge=0)
    dimensions_height: float | None = Field(default=None, ge=0)
    dimensions_unit: str | None = None

    status: ProductStatus | None = None
    mark: ProductMark | None = None
    is_limited_edition: bool | None = None
    seo_title: str | None = None
    seo_description: str | None = None
    seo_keywords: str | None = None
    featured_in_collection_slug: str | None = None

    images: list[RequiredUrl] = Field(default_factory=list)
    features: list[ProductFeature] = Field(default_factory=list)
    variants: list[ProductVariant] = Field(default_factory=list)
    tags: list[TagText] = Field(default_factory=list)
    faqs: list[FaqItem] = Field(default_factory=list)
    testimonial_videos: list[TestimonialVideo] = Field(default_factory=list)
    customer_testimonials: list[ProductTestimonial] = Field(default_factory=list)

    @field_validator(
        "name",
        "price",
        "currency_code",
        "track_inventory",
        "quantity",
        "backorderable",
        "low_stock_threshold",
        "reserved_quantity",
        "shipping_required",
        "status",
        "is_limited_edition",
        mode="before",
    )
    @classmethod
    def required_columns_not_null(cls, v):
        return reject_null(v)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return strip_required(v)

    @field_validator("mark", mode="before")
    @classmethod
    def empty_mark(cls, v):
        return None if v == "" else v


class ProductQuickCreate(SQLModel):
    """
    Minimal create payload used by the quick-add form.
    Only the core row and its images are written.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=2)
    slug: str = Field(min_length=2)
    description: str | None = None
    short_description: str | None = None
    sku: str | None = None
    category_id: OptionalId = None
    subcategory_id: OptionalId = None
    brand_id: OptionalId = None
    price: float = Field(ge=0)
    compare_at_price: float | None = None
    quantity: int = Field(default=0, ge=0)
    track_inventory: bool = True
    status: ProductStatus = "draft"
    images: list[RequiredUrl] = Field(default_factory=list)

    @field_validator("name", "slug")
    @classmethod
    def not_empty(cls, v: str) -> str:
        return strip_required(v)


class ProductPatch(SQLModel):
    """
    Partial scalar update for PATCH /products/{id}.

    `images`, when present, replaces the whole gallery; when absent the
    gallery is left untouched.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=2)
    description: str | None = None
    short_description: str | None = None
    sku: str | None = None
    category_id: OptionalId = None
    subcategory_id: OptionalId = None
    brand_id: OptionalId = None
    price: float | None = Field(default=None, ge=0)
    compare_at_price: float | None = None
    cost_price: float | None = Field(default=None, gt=0)
    quantity: int | None = Field(default=None, ge=0)
    track_inventory: bool | None = None
    low_stock_threshold: int | None = Field(default=None, ge=0)
    status: ProductStatus | None = None
    mark: ProductMark | None = None
    is_limited_edition: bool | None = None
    images: list[RequiredUrl] | None = None

    @field_validator(
        "name",
        "price",
        "quantity",
        "track_inventory",
        "low_stock_threshold",
        "status",
        "is_limited_edition",
        mode="before",
    )
    @classmethod
    def required_columns_not_null(cls, v):
        return reject_null(v)
