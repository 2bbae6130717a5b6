# app/routers/brands.py
from fastapi import APIRouter, Depends, status
from supabase import AsyncClient

from app.core.auth import require_admin
from app.database import get_db
from app.repositories.brand_repo import BrandRepository
from app.repositories.product_repo import ProductRepository
from app.schemas.brand import BrandCreate, BrandUpdate
from app.schemas.common import DeleteRequest, MessageResponse
from app.services.brand_service import BrandService

router = APIRouter(
    prefix="/brands",
    tags=["Brands"],
    dependencies=[Depends(require_admin)],
)

repo = BrandRepository()
service = BrandService(repo, ProductRepository())


@router.get("")
async def list_brands(db: AsyncClient = Depends(get_db)):
    return await service.list_brands(db)


@router.get("/{brand_id}")
async def get_brand(brand_id: int, db: AsyncClient = Depends(get_db)):
    return await service.get_brand(db, brand_id)


@router.post("/create", status_code=status.HTTP_201_CREATED)
async def create_brand(payload: BrandCreate, db: AsyncClient = Depends(get_db)):
    """Create a brand; the slug is derived from the name unless given."""
    return await service.create_brand(db, payload)


@router.post("/update")
async def update_brand(payload: BrandUpdate, db: AsyncClient = Depends(get_db)):
    return await service.update_brand(db, payload)


@router.post("/delete", response_model=MessageResponse)
async def delete_brand(payload: DeleteRequest, db: AsyncClient = Depends(get_db)):
    """
    Delete a brand. Rejected with 409 while products still use it.
    """
    return await service.delete_brand(db, payload.id)
