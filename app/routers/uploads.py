# app/routers/uploads.py
from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from supabase import AsyncClient

from app.core.auth import require_admin
from app.database import get_db
from app.schemas.upload import UploadDelete, UploadRead
from app.services.upload_service import UploadService

router = APIRouter(
    prefix="/uploads",
    tags=["Uploads"],
    dependencies=[Depends(require_admin)],
)

service = UploadService()


@router.post(
    "",
    response_model=UploadRead,
    status_code=status.HTTP_201_CREATED,
    summary="Upload an image to the storage bucket",
)
async def upload_image(
    file: UploadFile = File(...),
    folder: str = Form("products"),
    db: AsyncClient = Depends(get_db),
):
    """
    Upload one image and return its public URL.

    - Accepts JPEG, PNG, WEBP (max 5MB).
    - `folder` picks the bucket folder, e.g. products, category-banners.
    """
    file_bytes = await file.read()
    return await service.upload_image(
        db,
        folder=folder,
        content_type=file.content_type,
        file_bytes=file_bytes,
    )


@router.post("/delete")
async def delete_image(payload: UploadDelete, db: AsyncClient = Depends(get_db)):
    """Remove a previously uploaded file by its public URL."""
    return await service.delete_image(db, payload.url)
