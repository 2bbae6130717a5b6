# app/core/storage_utils.py
import logging
import time
import uuid

from supabase import AsyncClient

from app.core.config import get_settings
from app.core.errors import STORAGE_ERRORS

logger = logging.getLogger(__name__)


def public_url_for(path: str, bucket: str | None = None) -> str:
    """
    Public URL of an object in a public bucket.

    Example:
        'products/123.png'
        -> https://<proj>.supabase.co/storage/v1/object/public/<bucket>/products/123.png
    """
    settings = get_settings()
    bucket = bucket or settings.STORAGE_BUCKET
    base = settings.SUPABASE_URL.rstrip("/")
    return f"{base}/storage/v1/object/public/{bucket}/{path.lstrip('/')}"


async def upload_to_storage(
    db: AsyncClient,
    path: str,
    file_bytes: bytes,
    content_type: str,
    bucket: str | None = None,
) -> str:
    """
    Upload raw bytes to Supabase Storage and return a public URL.

    Args:
        path: Full object path inside the bucket.
              Example: "products/1718000000-3f2a.png"
        file_bytes: File content in bytes.
        content_type: MIME type stored with the object.

    Returns:
        Public URL to the uploaded file.

    Raises:
        Any exception raised by Supabase client if upload fails.
    """
    bucket = bucket or get_settings().STORAGE_BUCKET
    await db.storage.from_(bucket).upload(
        path,
        file_bytes,
        {"content-type": content_type, "cache-control": "3600", "upsert": "false"},
    )
    return public_url_for(path, bucket)


async def delete_from_storage(db: AsyncClient, path: str, bucket: str | None = None) -> None:
    """
    Delete a file from Supabase Storage by its object path.

    Example path (relative to bucket):
        'category-banners/outerwear-short.png'
    """
    bucket = bucket or get_settings().STORAGE_BUCKET
    await db.storage.from_(bucket).remove([path])


def extract_path_from_public_url(url: str, bucket: str | None = None) -> str | None:
    """
    Given a stored public URL, strip everything up to and including the
    bucket name and return the bucket-relative object path.

    Example:
        https://<proj>.supabase.co/storage/v1/object/public/<bucket>/products/a.png
        -> 'products/a.png'
    """
    bucket = bucket or get_settings().STORAGE_BUCKET
    marker = f"/{bucket}/"
    idx = url.find(marker)
    if idx == -1:
        return None
    path = url[idx + len(marker) :].split("?", 1)[0]
    return path or None


async def delete_public_url(db: AsyncClient, url: str | None) -> bool:
    """
    Convenience helper: delete a file by its public URL.

    No-op if the URL does not belong to this bucket. Failures are logged,
    never raised; returns True when a removal was issued successfully.
    """
    if not url:
        return False
    path = extract_path_from_public_url(url)
    if not path:
        return False
    try:
        await delete_from_storage(db, path)
    except STORAGE_ERRORS as exc:
        logger.warning("Failed to delete storage object %s: %s", path, exc)
        return False
    return True


def generate_object_path(folder: str, ext: str) -> str:
    """
    Generate a collision-resistant object path.

    Args:
        folder: bucket folder, e.g. "products" or "category-banners"
        ext: File extension without dot (e.g. "png", "jpg")

    Returns:
        A path like "products/1718000000000-9f1c2a7b.png"
    """
    folder = folder.strip("/") or "uploads"
    stamp = int(time.time() * 1000)
    return f"{folder}/{stamp}-{uuid.uuid4().hex[:12]}.{ext}"
