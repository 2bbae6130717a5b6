# app/schemas/stats.py
from pydantic import ConfigDict
from sqlmodel import SQLModel


class DashboardStats(SQLModel):
    """
    Catalogue counters for the admin dashboard.
    """
    model_config = ConfigDict(extra="forbid")

    total_products: int
    total_categories: int
    total_brands: int
    low_stock_products: int
