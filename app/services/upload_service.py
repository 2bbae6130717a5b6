# app/services/upload_service.py
import logging

from fastapi import HTTPException, status
from supabase import AsyncClient

from app.core.errors import STORAGE_ERRORS
from app.core.storage_utils import (
    delete_from_storage,
    extract_path_from_public_url,
    generate_object_path,
    upload_to_storage,
)
from app.schemas.upload import UploadRead

logger = logging.getLogger(__name__)

# --- Image config ---

MAX_IMAGE_BYTES = 5 * 1024 * 1024  # 5MB per image

ALLOWED_IMAGE_CONTENT_TYPES: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}


class UploadService:
    """
    Image uploads to the public bucket used by products, categories
    and brands. Rows only ever store the returned public URL.
    """

    @staticmethod
    def _validate_and_get_ext(content_type: str | None, file_bytes: bytes) -> str:
        if content_type not in ALLOWED_IMAGE_CONTENT_TYPES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Unsupported image type. Allowed: JPEG, PNG, WEBP.",
            )

        if len(file_bytes) > MAX_IMAGE_BYTES:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail="Image too large (max 5MB).",
            )

        return ALLOWED_IMAGE_CONTENT_TYPES[content_type]

    async def upload_image(
        self,
        db: AsyncClient,
        folder: str,
        content_type: str | None,
        file_bytes: bytes,
    ) -> UploadRead:
        ext = self._validate_and_get_ext(content_type, file_bytes)
        path = generate_object_path(folder, ext)
        try:
            url = await upload_to_storage(db, path, file_bytes, content_type)
        except STORAGE_ERRORS as exc:
            logger.error("Upload of %s failed: %s", path, exc)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to upload file: {exc}",
            ) from exc
        logger.info("Uploaded %s (%d bytes)", path, len(file_bytes))
        return UploadRead(url=url, path=path)

    async def delete_image(self, db: AsyncClient, url: str) -> dict[str, str]:
        path = extract_path_from_public_url(url)
        if path is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="URL does not belong to the storage bucket",
            )
        try:
            await delete_from_storage(db, path)
        except STORAGE_ERRORS as exc:
            logger.error("Delete of %s failed: %s", path, exc)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to delete file: {exc}",
            ) from exc
        return {"message": "File deleted successfully", "path": path}
