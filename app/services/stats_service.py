# app/services/stats_service.py
import asyncio

from supabase import AsyncClient

from app.core.errors import DB_ERRORS, raise_for_db_error
from app.repositories.stats_repo import StatsRepository
from app.schemas.stats import DashboardStats

DEFAULT_LOW_STOCK_THRESHOLD = 5


class StatsService:
    """
    Orchestrates catalogue counters for the admin dashboard.
    """

    def __init__(self, repo: StatsRepository):
        self.repo = repo

    async def get_dashboard_stats(self, db: AsyncClient) -> DashboardStats:
        try:
            total_products, total_categories, total_brands, levels = await asyncio.gather(
                self.repo.count_rows(db, "products"),
                self.repo.count_rows(db, "categories"),
                self.repo.count_rows(db, "brands"),
                self.repo.inventory_levels(db),
            )
        except DB_ERRORS as exc:
            raise_for_db_error(exc, "fetch", "dashboard stats")

        low_stock = 0
        for row in levels:
            threshold = row.get("low_stock_threshold")
            if threshold is None:
                threshold = DEFAULT_LOW_STOCK_THRESHOLD
            if (row.get("quantity") or 0) <= threshold:
                low_stock += 1

        return DashboardStats(
            total_products=total_products,
            total_categories=total_categories,
            total_brands=total_brands,
            low_stock_products=low_stock,
        )
