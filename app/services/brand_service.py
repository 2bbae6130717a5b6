# app/services/brand_service.py
import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import HTTPException, status
from supabase import AsyncClient

from app.core.errors import DB_ERRORS, raise_for_db_error
from app.core.revalidation import brand_path, revalidate_customer_app
from app.core.slugs import ensure_unique_slug, slugify
from app.core.storage_utils import delete_public_url
from app.repositories.brand_repo import BrandRepository
from app.repositories.product_repo import ProductRepository
from app.schemas.brand import BrandCreate, BrandUpdate

logger = logging.getLogger(__name__)

HOME_PATH = "/"
BRANDS_PATH = "/brands"
IMAGE_FIELDS = ("logo_url", "short_banner_url", "long_banner_url")


class BrandService:
    """
    Business logic for brands: slugs, reference checks, image clean-up
    and storefront revalidation.
    """

    def __init__(self, repo: BrandRepository, product_repo: ProductRepository):
        self.repo = repo
        self.product_repo = product_repo

    async def _unique_slug(
        self,
        db: AsyncClient,
        base_slug: str,
        exclude_id: int | None = None,
    ) -> str:
        async def exists(candidate: str) -> bool:
            return await self.repo.slug_exists(db, candidate, exclude_id=exclude_id)

        return await ensure_unique_slug(base_slug, exists)

    async def _get_or_404(self, db: AsyncClient, brand_id: int) -> dict[str, Any]:
        brand = await self.repo.get_by_id(db, brand_id)
        if brand is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Brand not found")
        return brand

    async def list_brands(self, db: AsyncClient) -> list[dict[str, Any]]:
        try:
            return await self.repo.list_all(db)
        except DB_ERRORS as exc:
            raise_for_db_error(exc, "fetch", "brands")

    async def get_brand(self, db: AsyncClient, brand_id: int) -> dict[str, Any]:
        return await self._get_or_404(db, brand_id)

    async def create_brand(self, db: AsyncClient, payload: BrandCreate) -> dict[str, Any]:
        row = payload.model_dump(exclude={"slug"})
        row["description"] = row.get("description") or None
        row["slug"] = await self._unique_slug(
            db, slugify(payload.slug or payload.name, fallback="brand")
        )

        try:
            brand = await self.repo.create(db, row)
        except DB_ERRORS as exc:
            logger.error("Brand insert failed: %s", exc)
            raise_for_db_error(exc, "create", "brand")

        await revalidate_customer_app(paths=[HOME_PATH, BRANDS_PATH, brand_path(brand["slug"])])
        return {"message": "Brand created successfully", "brand": brand}

    async def update_brand(self, db: AsyncClient, payload: BrandUpdate) -> dict[str, Any]:
        """
        Update a brand; the slug follows the name when it changes.
        """
        brand_id = payload.brands_id
        current = await self._get_or_404(db, brand_id)

        values = payload.model_dump(exclude_unset=True, exclude={"brands_id", "slug"})
        name = payload.name or current["name"]
        if (payload.name is not None and payload.name != current["name"]) or not payload.slug:
            base_slug = slugify(name, fallback="brand")
        else:
            base_slug = slugify(payload.slug, fallback="brand")
        values["slug"] = await self._unique_slug(db, base_slug, exclude_id=brand_id)
        values["updated_at"] = datetime.now(timezone.utc).isoformat()

        try:
            updated = await self.repo.update(db, brand_id, values)
        except DB_ERRORS as exc:
            logger.error("Brand %s update failed: %s", brand_id, exc)
            raise_for_db_error(exc, "update", "brand")
        if updated is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Brand not found")

        for field in IMAGE_FIELDS:
            old_url = current.get(field)
            if field in values and old_url and old_url != values[field]:
                await delete_public_url(db, old_url)

        await revalidate_customer_app(
            paths=[
                HOME_PATH,
                BRANDS_PATH,
                brand_path(current.get("slug")),
                brand_path(updated.get("slug")),
            ]
        )
        return {"message": "Brand updated successfully", "brand": updated}

    async def delete_brand(self, db: AsyncClient, brand_id: int) -> dict[str, Any]:
        """
        Delete a brand.

        Raises:
            HTTPException(404): brand does not exist.
            HTTPException(409): products still reference it.
        """
        current = await self._get_or_404(db, brand_id)

        if await self.product_repo.exists_with(db, "brand_id", brand_id):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Cannot delete brand: It is still used by one or more products.",
            )

        try:
            await self.repo.delete(db, brand_id)
        except DB_ERRORS as exc:
            raise_for_db_error(exc, "delete", "brand")
        logger.info("Deleted brand %s (%s)", brand_id, current.get("slug"))

        for field in IMAGE_FIELDS:
            await delete_public_url(db, current.get(field))

        await revalidate_customer_app(
            paths=[HOME_PATH, BRANDS_PATH, brand_path(current.get("slug"))]
        )
        return {"message": "Brand deleted successfully"}
