# app/repositories/category_repo.py
from typing import Any

from supabase import AsyncClient


class CategoryRepository:
    """
    Data access layer for categories and subcategories.

    Responsibilities:
      - Pure PostgREST calls (CRUD + queries)
      - No FastAPI, no HTTP, no business logic
    """

    TABLE = "categories"
    PK = "categories_id"
    SUB_TABLE = "subcategories"

    # ----- Categories -----

    async def get_by_id(
        self,
        db: AsyncClient,
        category_id: int,
        columns: str = "*",
    ) -> dict[str, Any] | None:
        """Return a category row by primary key, or None if not found."""
        res = await (
            db.table(self.TABLE).select(columns).eq(self.PK, category_id).limit(1).execute()
        )
        return res.data[0] if res.data else None

    async def get_many(self, db: AsyncClient, category_ids: list[int]) -> list[dict[str, Any]]:
        """Return the categories whose ids are in `category_ids`."""
        if not category_ids:
            return []
        res = await db.table(self.TABLE).select("*").in_(self.PK, category_ids).execute()
        return res.data or []

    async def slug_exists(
        self,
        db: AsyncClient,
        slug: str,
        exclude_id: int | None = None,
    ) -> bool:
        query = db.table(self.TABLE).select(self.PK).eq("slug", slug)
        if exclude_id is not None:
            query = query.neq(self.PK, exclude_id)
        res = await query.limit(1).execute()
        return bool(res.data)

    async def list_all(self, db: AsyncClient) -> list[dict[str, Any]]:
        """All categories, by display order then name."""
        res = await db.table(self.TABLE).select("*").order("display_order").order("name").execute()
        return res.data or []

    async def create(self, db: AsyncClient, row: dict[str, Any]) -> dict[str, Any]:
        """Insert a category and return the persisted row."""
        res = await db.table(self.TABLE).insert(row).execute()
        return res.data[0]

    async def update(
        self,
        db: AsyncClient,
        category_id: int,
        values: dict[str, Any],
    ) -> dict[str, Any] | None:
        """Persist changes to an existing category."""
        res = await db.table(self.TABLE).update(values).eq(self.PK, category_id).execute()
        return res.data[0] if res.data else None

    async def delete(self, db: AsyncClient, category_id: int) -> None:
        """Delete a category."""
        await db.table(self.TABLE).delete().eq(self.PK, category_id).execute()

    # ----- Subcategories -----

    async def get_subcategory(self, db: AsyncClient, subcategory_id: int) -> dict[str, Any] | None:
        res = await db.table(self.SUB_TABLE).select("*").eq("id", subcategory_id).limit(1).execute()
        return res.data[0] if res.data else None

    async def list_subcategories(
        self,
        db: AsyncClient,
        category_ids: list[int],
    ) -> list[dict[str, Any]]:
        """Subcategories of the given categories, by display order then name."""
        if not category_ids:
            return []
        res = await (
            db.table(self.SUB_TABLE)
            .select("*")
            .in_("category_id", category_ids)
            .order("display_order")
            .order("name")
            .execute()
        )
        return res.data or []

    async def subcategory_slug_exists(
        self,
        db: AsyncClient,
        category_id: int,
        slug: str,
        exclude_id: int | None = None,
    ) -> bool:
        """Subcategory slugs are unique within their parent category."""
        query = (
            db.table(self.SUB_TABLE).select("id").eq("slug", slug).eq("category_id", category_id)
        )
        if exclude_id is not None:
            query = query.neq("id", exclude_id)
        res = await query.limit(1).execute()
        return bool(res.data)

    async def create_subcategory(self, db: AsyncClient, row: dict[str, Any]) -> dict[str, Any]:
        res = await db.table(self.SUB_TABLE).insert(row).execute()
        return res.data[0]

    async def update_subcategory(
        self,
        db: AsyncClient,
        subcategory_id: int,
        values: dict[str, Any],
    ) -> dict[str, Any] | None:
        res = await db.table(self.SUB_TABLE).update(values).eq("id", subcategory_id).execute()
        return res.data[0] if res.data else None

    async def delete_subcategory(self, db: AsyncClient, subcategory_id: int) -> None:
        await db.table(self.SUB_TABLE).delete().eq("id", subcategory_id).execute()
