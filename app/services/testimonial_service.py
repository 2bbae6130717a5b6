# app/services/testimonial_service.py
import logging
from typing import Any

from fastapi import HTTPException, status
from supabase import AsyncClient

from app.core.errors import DB_ERRORS, raise_for_db_error
from app.core.revalidation import product_path, revalidate_customer_app
from app.repositories.product_repo import ProductRepository
from app.repositories.testimonial_repo import TestimonialRepository
from app.schemas.testimonial import TestimonialCreate

logger = logging.getLogger(__name__)

TESTIMONIALS_PATH = "/testimonials"


class TestimonialService:
    """
    Standalone customer testimonials.

    A testimonial may point at a product; the product must exist.
    """

    def __init__(self, repo: TestimonialRepository, product_repo: ProductRepository):
        self.repo = repo
        self.product_repo = product_repo

    async def list_testimonials(self, db: AsyncClient) -> list[dict[str, Any]]:
        """Newest first, each with a `product` summary when product-scoped."""
        try:
            rows = await self.repo.list_all(db)
            products = await self.product_repo.get_many(
                db,
                sorted({r["product_id"] for r in rows if r.get("product_id")}),
                "products_id, name",
            )
        except DB_ERRORS as exc:
            raise_for_db_error(exc, "fetch", "testimonials")

        names = {p["products_id"]: p for p in products}
        return [{**r, "product": names.get(r.get("product_id"))} for r in rows]

    async def create_testimonial(
        self,
        db: AsyncClient,
        payload: TestimonialCreate,
    ) -> dict[str, Any]:
        product = None
        if payload.product_id is not None:
            product = await self.product_repo.get_by_id(db, payload.product_id, "products_id, slug")
            if product is None:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND, detail="Product not found"
                )

        try:
            testimonial = await self.repo.create(db, payload.model_dump())
        except DB_ERRORS as exc:
            raise_for_db_error(exc, "create", "testimonial")

        await revalidate_customer_app(
            paths=[TESTIMONIALS_PATH, product_path(product.get("slug")) if product else None]
        )
        return {"message": "Testimonial created successfully", "testimonial": testimonial}

    async def delete_testimonial(self, db: AsyncClient, testimonial_id: int) -> dict[str, Any]:
        current = await self.repo.get_by_id(db, testimonial_id)
        if current is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Testimonial not found"
            )

        try:
            await self.repo.delete(db, testimonial_id)
        except DB_ERRORS as exc:
            raise_for_db_error(exc, "delete", "testimonial")

        await revalidate_customer_app(path=TESTIMONIALS_PATH)
        return {"message": "Testimonial deleted successfully"}
