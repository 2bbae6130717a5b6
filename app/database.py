# app/database.py
import logging

from fastapi import HTTPException, status
from supabase import AsyncClient

from app.core.supabase_client import supabase_admin

logger = logging.getLogger(__name__)

# ---------------------------------------------------------
# One Supabase client per process.
#
# The client talks to PostgREST (tables) and Storage (buckets)
# over HTTP, so there is no connection pool to size here.
# It is created in the FastAPI lifespan and handed to routes
# through the `get_db` dependency.
# ---------------------------------------------------------

_client: AsyncClient | None = None


async def connect() -> AsyncClient:
    """
    Create the shared Supabase client.

    This is called once on application startup.
    """
    global _client
    _client = await supabase_admin()
    return _client


async def disconnect() -> None:
    """Drop the shared client; closing its HTTP sessions is best effort."""
    global _client
    client, _client = _client, None
    if client is None:
        return
    try:
        await client.postgrest.aclose()
    except Exception as exc:  # noqa: BLE001
        logger.warning("Closing Supabase client failed: %s", exc)


def get_db() -> AsyncClient:
    """
    FastAPI dependency that returns the shared Supabase client.

    Usage:

        from fastapi import Depends

        @router.get("/example")
        async def example_endpoint(db: AsyncClient = Depends(get_db)):
            ...
    """
    if _client is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database client not configured",
        )
    return _client
