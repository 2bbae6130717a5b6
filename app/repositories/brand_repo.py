# app/repositories/brand_repo.py
from typing import Any

from supabase import AsyncClient


class BrandRepository:
    """
    Data access layer for brands.

    - Pure PostgREST calls (CRUD + queries).
    - No FastAPI, no business logic.
    """

    TABLE = "brands"
    PK = "brands_id"

    async def get_by_id(
        self,
        db: AsyncClient,
        brand_id: int,
        columns: str = "*",
    ) -> dict[str, Any] | None:
        res = await db.table(self.TABLE).select(columns).eq(self.PK, brand_id).limit(1).execute()
        return res.data[0] if res.data else None

    async def get_many(self, db: AsyncClient, brand_ids: list[int]) -> list[dict[str, Any]]:
        if not brand_ids:
            return []
        res = await db.table(self.TABLE).select("*").in_(self.PK, brand_ids).execute()
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
        res = await db.table(self.TABLE).select("*").order("name").execute()
        return res.data or []

    async def create(self, db: AsyncClient, row: dict[str, Any]) -> dict[str, Any]:
        res = await db.table(self.TABLE).insert(row).execute()
        return res.data[0]

    async def update(
        self,
        db: AsyncClient,
        brand_id: int,
        values: dict[str, Any],
    ) -> dict[str, Any] | None:
        res = await db.table(self.TABLE).update(values).eq(self.PK, brand_id).execute()
        return res.data[0] if res.data else None

    async def delete(self, db: AsyncClient, brand_id: int) -> None:
        await db.table(self.TABLE).delete().eq(self.PK, brand_id).execute()
