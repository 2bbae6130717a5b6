# app/routers/admin.py
from typing import Any

from fastapi import APIRouter, Depends

from app.core.auth import require_admin
from app.schemas.admin import AdminUserRead
from app.services.admin_service import AdminService

router = APIRouter(prefix="/admin", tags=["Admin"])

service = AdminService()


@router.get("/me", response_model=AdminUserRead)
async def read_me(current_admin: dict[str, Any] = Depends(require_admin)):
    """
    Return the signed-in admin's profile.

    Auth:
      - Requires a valid Supabase JWT whose user is listed in admin_users.
    """
    return service.get_me(current_admin)
