# app/repositories/stats_repo.py
from supabase import AsyncClient


class StatsRepository:
    """
    Read-only aggregated queries for the admin dashboard.
    """

    async def count_rows(self, db: AsyncClient, table: str) -> int:
        # head=True: only the count header comes back, no rows
        res = await db.table(table).select("*", count="exact", head=True).execute()
        return int(res.count or 0)

    async def inventory_levels(self, db: AsyncClient) -> list[dict]:
        """
        Quantity and threshold of every product that tracks inventory.

        PostgREST cannot compare two columns in a filter, so the
        quantity <= threshold check happens in the service.
        """
        res = await (
            db.table("products")
            .select("products_id, quantity, low_stock_threshold")
            .eq("track_inventory", True)
            .execute()
        )
        return res.data or []
