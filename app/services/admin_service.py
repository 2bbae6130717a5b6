# app/services/admin_service.py
from typing import Any

from app.schemas.admin import AdminUserRead


class AdminService:
    """Admin identity helpers (the row itself is loaded by `require_admin`)."""

    def get_me(self, current_admin: dict[str, Any]) -> AdminUserRead:
        return AdminUserRead.model_validate(current_admin)
