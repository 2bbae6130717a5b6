# app/core/supabase_client.py
from supabase import AsyncClient, acreate_client

from app.core.config import get_settings


async def supabase_admin() -> AsyncClient:
    """
    Create an async Supabase client with the service role key.

    Use cases:
      - every table read/write issued by the admin API
      - uploading to / removing from the storage bucket

    WARNING:
      - Never expose service role key to frontend.
      - Only backend should call this.

    Raises:
        RuntimeError: if SUPABASE_SERVICE_ROLE_KEY is not set.
    """
    settings = get_settings()
    if not settings.SUPABASE_SERVICE_ROLE_KEY:
        raise RuntimeError("Missing SUPABASE_SERVICE_ROLE_KEY in .env")
    return await acreate_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
