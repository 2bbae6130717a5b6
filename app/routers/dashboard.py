# app/routers/dashboard.py
from fastapi import APIRouter, Depends
from supabase import AsyncClient

from app.core.auth import require_admin
from app.database import get_db
from app.repositories.stats_repo import StatsRepository
from app.schemas.stats import DashboardStats
from app.services.stats_service import StatsService

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])

repo = StatsRepository()
service = StatsService(repo)


@router.get(
    "/stats",
    response_model=DashboardStats,
    dependencies=[Depends(require_admin)],
)
async def get_dashboard_stats(db: AsyncClient = Depends(get_db)):
    """
    Catalogue counters for the admin dashboard.

    low_stock_products counts products that track inventory and whose
    quantity is at or below their low-stock threshold.
    """
    return await service.get_dashboard_stats(db)
