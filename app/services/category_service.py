# app/services/category_service.py
import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import HTTPException, status
from supabase import AsyncClient

from app.core.errors import DB_ERRORS, describe_db_error, raise_for_db_error
from app.core.revalidation import category_path, revalidate_customer_app
from app.core.slugs import ensure_unique_slug, slugify
from app.core.storage_utils import delete_public_url
from app.repositories.category_repo import CategoryRepository
from app.repositories.product_repo import ProductRepository
from app.schemas.category import (
    CategoryCreate,
    CategoryUpdate,
    SubcategoryCreate,
    SubcategoryInline,
    SubcategoryUpdate,
)

logger = logging.getLogger(__name__)

HOME_PATH = "/"
CATEGORIES_PATH = "/categories"
BANNER_FIELDS = ("short_banner_url", "long_banner_url")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class CategoryService:
    """
    Business logic for categories and subcategories.

    Responsibilities:
      - slug generation & uniqueness (global for categories,
        per parent category for subcategories)
      - reference checks before delete
      - banner clean-up in storage
      - storefront revalidation
    """

    def __init__(self, repo: CategoryRepository, product_repo: ProductRepository):
        self.repo = repo
        self.product_repo = product_repo

    # ----- Helpers -----

    async def _unique_slug(
        self,
        db: AsyncClient,
        base_slug: str,
        exclude_id: int | None = None,
    ) -> str:
        async def exists(candidate: str) -> bool:
            return await self.repo.slug_exists(db, candidate, exclude_id=exclude_id)

        return await ensure_unique_slug(base_slug, exists)

    async def _unique_subcategory_slug(
        self,
        db: AsyncClient,
        category_id: int,
        base_slug: str,
        exclude_id: int | None = None,
    ) -> str:
        async def exists(candidate: str) -> bool:
            return await self.repo.subcategory_slug_exists(
                db, category_id, candidate, exclude_id=exclude_id
            )

        return await ensure_unique_slug(base_slug, exists)

    async def _parent_path(self, db: AsyncClient, parent_id: int | None) -> str | None:
        if parent_id is None:
            return None
        try:
            parent = await self.repo.get_by_id(db, parent_id, "slug")
        except DB_ERRORS as exc:
            logger.warning("Could not load parent category %s: %s", parent_id, exc)
            return None
        return category_path(parent.get("slug")) if parent else None

    async def _get_or_404(self, db: AsyncClient, category_id: int) -> dict[str, Any]:
        category = await self.repo.get_by_id(db, category_id)
        if category is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
        return category

    async def _insert_subcategory(
        self,
        db: AsyncClient,
        category_id: int,
        sub: SubcategoryInline,
    ) -> dict[str, Any]:
        row = sub.model_dump(exclude={"slug", "category_id"})
        row["category_id"] = category_id
        row["description"] = row.get("description") or None
        row["slug"] = await self._unique_subcategory_slug(
            db, category_id, slugify(sub.slug or sub.name, fallback="subcategory")
        )
        return await self.repo.create_subcategory(db, row)

    # ----- Categories -----

    async def list_categories(self, db: AsyncClient) -> list[dict[str, Any]]:
        """All categories, each with its subcategories."""
        try:
            categories = await self.repo.list_all(db)
            subcategories = await self.repo.list_subcategories(
                db, [c["categories_id"] for c in categories]
            )
        except DB_ERRORS as exc:
            raise_for_db_error(exc, "fetch", "categories")

        by_category: dict[int, list[dict[str, Any]]] = {}
        for sub in subcategories:
            by_category.setdefault(sub["category_id"], []).append(sub)
        return [
            {**c, "subcategories": by_category.get(c["categories_id"], [])} for c in categories
        ]

    async def get_category(self, db: AsyncClient, category_id: int) -> dict[str, Any]:
        category = await self._get_or_404(db, category_id)
        subcategories = await self.repo.list_subcategories(db, [category_id])
        return {**category, "subcategories": subcategories}

    async def create_category(self, db: AsyncClient, payload: CategoryCreate) -> dict[str, Any]:
        """
        Create a category, then its nested subcategories (best effort).
        """
        row = payload.model_dump(exclude={"subcategories", "slug"})
        row["description"] = row.get("description") or None
        row["slug"] = await self._unique_slug(
            db, slugify(payload.slug or payload.name, fallback="category")
        )

        try:
            category = await self.repo.create(db, row)
        except DB_ERRORS as exc:
            logger.error("Category insert failed: %s", exc)
            raise_for_db_error(exc, "create", "category")

        category_id = category["categories_id"]
        errors: list[str] = []
        for sub in payload.subcategories:
            try:
                await self._insert_subcategory(db, category_id, sub)
            except DB_ERRORS as exc:
                logger.error("Error inserting subcategory %r: %s", sub.name, exc)
                errors.append(f"Subcategory ({sub.name}): {describe_db_error(exc)}")

        await revalidate_customer_app(
            paths=[
                HOME_PATH,
                CATEGORIES_PATH,
                category_path(category["slug"]),
                await self._parent_path(db, category.get("parent_category_id")),
            ]
        )

        body: dict[str, Any] = {
            "message": (
                f"Category created, but errors occurred with subcategories: {'; '.join(errors)}"
                if errors
                else "Category created successfully"
            ),
            "category": category,
        }
        if errors:
            body["errors"] = errors
        return body

    async def update_category(self, db: AsyncClient, payload: CategoryUpdate) -> dict[str, Any]:
        """
        Update a category.

        Rules:
          - a category cannot be its own parent
          - slug is regenerated when the name changes or none is supplied
          - replaced banner files are removed from storage (best effort)
        """
        category_id = payload.categories_id
        if payload.parent_category_id is not None and payload.parent_category_id == category_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="A category cannot be its own parent",
            )

        current = await self._get_or_404(db, category_id)

        values = payload.model_dump(exclude_unset=True, exclude={"categories_id", "slug"})
        name = payload.name or current["name"]
        if (payload.name is not None and payload.name != current["name"]) or not payload.slug:
            base_slug = slugify(name, fallback="category")
        else:
            base_slug = slugify(payload.slug, fallback="category")
        values["slug"] = await self._unique_slug(db, base_slug, exclude_id=category_id)
        values["updated_at"] = _now()

        try:
            updated = await self.repo.update(db, category_id, values)
        except DB_ERRORS as exc:
            logger.error("Category %s update failed: %s", category_id, exc)
            raise_for_db_error(exc, "update", "category")
        if updated is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")

        for field in BANNER_FIELDS:
            old_url = current.get(field)
            if field in values and old_url and old_url != values[field]:
                await delete_public_url(db, old_url)

        paths = [
            HOME_PATH,
            CATEGORIES_PATH,
            category_path(current.get("slug")),
            category_path(updated.get("slug")),
        ]
        if current.get("parent_category_id") != updated.get("parent_category_id"):
            paths.append(await self._parent_path(db, current.get("parent_category_id")))
        paths.append(await self._parent_path(db, updated.get("parent_category_id")))
        await revalidate_customer_app(paths=paths)

        return {"message": "Category updated successfully", "category": updated}

    async def delete_category(self, db: AsyncClient, category_id: int) -> dict[str, Any]:
        """
        Delete a category.

        Raises:
            HTTPException(404): category does not exist.
            HTTPException(409): products still reference it.
        """
        current = await self._get_or_404(db, category_id)

        if await self.product_repo.exists_with(db, "category_id", category_id):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Cannot delete category: It is still used by one or more products.",
            )

        try:
            await self.repo.delete(db, category_id)
        except DB_ERRORS as exc:
            raise_for_db_error(exc, "delete", "category")
        logger.info("Deleted category %s (%s)", category_id, current.get("slug"))

        for field in BANNER_FIELDS:
            await delete_public_url(db, current.get(field))

        await revalidate_customer_app(
            paths=[
                HOME_PATH,
                CATEGORIES_PATH,
                category_path(current.get("slug")),
                await self._parent_path(db, current.get("parent_category_id")),
            ]
        )
        return {"message": "Category deleted successfully"}

    # ----- Subcategories -----

    async def list_subcategories(self, db: AsyncClient, category_id: int) -> list[dict[str, Any]]:
        await self._get_or_404(db, category_id)
        return await self.repo.list_subcategories(db, [category_id])

    async def create_subcategory(
        self,
        db: AsyncClient,
        payload: SubcategoryCreate,
    ) -> dict[str, Any]:
        parent = await self._get_or_404(db, payload.category_id)
        try:
            subcategory = await self._insert_subcategory(db, payload.category_id, payload)
        except DB_ERRORS as exc:
            raise_for_db_error(exc, "create", "subcategory")

        await revalidate_customer_app(paths=[CATEGORIES_PATH, category_path(parent.get("slug"))])
        return {"message": "Subcategory created successfully", "subcategory": subcategory}

    async def update_subcategory(
        self,
        db: AsyncClient,
        payload: SubcategoryUpdate,
    ) -> dict[str, Any]:
        current = await self.repo.get_subcategory(db, payload.id)
        if current is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Subcategory not found"
            )

        category_id = payload.category_id or current["category_id"]
        if category_id != current["category_id"]:
            await self._get_or_404(db, category_id)

        values = payload.model_dump(exclude_unset=True, exclude={"id", "slug"})
        name = payload.name or current["name"]
        if (payload.name is not None and payload.name != current["name"]) or not payload.slug:
            base_slug = slugify(name, fallback="subcategory")
        else:
            base_slug = slugify(payload.slug, fallback="subcategory")
        values["slug"] = await self._unique_subcategory_slug(
            db, category_id, base_slug, exclude_id=payload.id
        )
        values["updated_at"] = _now()

        try:
            updated = await self.repo.update_subcategory(db, payload.id, values)
        except DB_ERRORS as exc:
            raise_for_db_error(exc, "update", "subcategory")

        paths = [CATEGORIES_PATH, await self._parent_path(db, current["category_id"])]
        if category_id != current["category_id"]:
            paths.append(await self._parent_path(db, category_id))
        await revalidate_customer_app(paths=paths)

        return {"message": "Subcategory updated successfully", "subcategory": updated}

    async def delete_subcategory(self, db: AsyncClient, subcategory_id: int) -> dict[str, Any]:
        current = await self.repo.get_subcategory(db, subcategory_id)
        if current is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Subcategory not found"
            )

        if await self.product_repo.exists_with(db, "subcategory_id", subcategory_id):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Cannot delete subcategory: It is still used by one or more products.",
            )

        try:
            await self.repo.delete_subcategory(db, subcategory_id)
        except DB_ERRORS as exc:
            raise_for_db_error(exc, "delete", "subcategory")

        await revalidate_customer_app(
            paths=[CATEGORIES_PATH, await self._parent_path(db, current["category_id"])]
        )
        return {"message": "Subcategory deleted successfully"}
