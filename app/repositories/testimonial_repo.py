# app/repositories/testimonial_repo.py
from typing import Any

from supabase import AsyncClient


class TestimonialRepository:
    """
    Data access layer for customer testimonials (standalone or product-scoped).
    """

    TABLE = "customer_testimonials"

    async def get_by_id(self, db: AsyncClient, testimonial_id: int) -> dict[str, Any] | None:
        res = await db.table(self.TABLE).select("*").eq("id", testimonial_id).limit(1).execute()
        return res.data[0] if res.data else None

    async def list_all(self, db: AsyncClient) -> list[dict[str, Any]]:
        """All testimonials, newest first."""
        res = await db.table(self.TABLE).select("*").order("created_at", desc=True).execute()
        return res.data or []

    async def create(self, db: AsyncClient, row: dict[str, Any]) -> dict[str, Any]:
        res = await db.table(self.TABLE).insert(row).execute()
        return res.data[0]

    async def delete(self, db: AsyncClient, testimonial_id: int) -> None:
        await db.table(self.TABLE).delete().eq("id", testimonial_id).execute()
