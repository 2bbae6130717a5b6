# app/schemas/testimonial.py
from pydantic import ConfigDict
from sqlmodel import SQLModel, Field

from app.schemas.common import OptionalId, OptionalUrl


class TestimonialCreate(SQLModel):
    """
    Standalone customer testimonial.

    `product_id` is optional; when given the product must exist.
    """

    model_config = ConfigDict(extra="forbid")

    product_id: OptionalId = None
    customer_name: str = Field(min_length=2)
    testimonial_text: str = Field(min_length=10)
    rating: float | None = Field(default=None, ge=0, le=5)
    customer_image_url: OptionalUrl = None
