# app/repositories/admin_repo.py
from datetime import datetime, timezone
from typing import Any

from supabase import AsyncClient


class AdminUserRepository:
    """
    Data access layer for back-office admins.

    Rows in `admin_users` are keyed by the Supabase auth user id (`sub`).
    """

    TABLE = "admin_users"

    async def get_by_id(self, db: AsyncClient, user_id: str) -> dict[str, Any] | None:
        """Return the admin row for an auth user id, or None if not an admin."""
        res = await db.table(self.TABLE).select("*").eq("id", user_id).limit(1).execute()
        return res.data[0] if res.data else None

    async def touch_last_login(self, db: AsyncClient, user_id: str) -> None:
        await (
            db.table(self.TABLE)
            .update({"last_login": datetime.now(timezone.utc).isoformat()})
            .eq("id", user_id)
            .execute()
        )
