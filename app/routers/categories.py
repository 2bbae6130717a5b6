# app/routers/categories.py
from fastapi import APIRouter, Depends, status
from supabase import AsyncClient

from app.core.auth import require_admin
from app.database import get_db
from app.repositories.category_repo import CategoryRepository
from app.repositories.product_repo import ProductRepository
from app.schemas.category import (
    CategoryCreate,
    CategoryUpdate,
    SubcategoryCreate,
    SubcategoryUpdate,
)
from app.schemas.common import DeleteRequest, MessageResponse
from app.services.category_service import CategoryService

router = APIRouter(
    prefix="/categories",
    tags=["Categories"],
    dependencies=[Depends(require_admin)],
)
subcategories_router = APIRouter(
    prefix="/subcategories",
    tags=["Subcategories"],
    dependencies=[Depends(require_admin)],
)

repo = CategoryRepository()
service = CategoryService(repo, ProductRepository())


# -------- Categories --------


@router.get("")
async def list_categories(db: AsyncClient = Depends(get_db)):
    """All categories ordered for display, each with its subcategories."""
    return await service.list_categories(db)


@router.get("/{category_id}")
async def get_category(category_id: int, db: AsyncClient = Depends(get_db)):
    return await service.get_category(db, category_id)


@router.get("/{category_id}/subcategories")
async def list_subcategories(category_id: int, db: AsyncClient = Depends(get_db)):
    return await service.list_subcategories(db, category_id)


@router.post("/create", status_code=status.HTTP_201_CREATED)
async def create_category(payload: CategoryCreate, db: AsyncClient = Depends(get_db)):
    """
    Create a category.

    Nested `subcategories` are created afterwards; failures there are
    reported under `errors` without undoing the category.
    """
    return await service.create_category(db, payload)


@router.post("/update")
async def update_category(payload: CategoryUpdate, db: AsyncClient = Depends(get_db)):
    return await service.update_category(db, payload)


@router.post("/delete", response_model=MessageResponse)
async def delete_category(payload: DeleteRequest, db: AsyncClient = Depends(get_db)):
    """
    Delete a category. Rejected with 409 while products still use it.
    """
    return await service.delete_category(db, payload.id)


# -------- Subcategories --------


@subcategories_router.post("/create", status_code=status.HTTP_201_CREATED)
async def create_subcategory(payload: SubcategoryCreate, db: AsyncClient = Depends(get_db)):
    return await service.create_subcategory(db, payload)


@subcategories_router.post("/update")
async def update_subcategory(payload: SubcategoryUpdate, db: AsyncClient = Depends(get_db)):
    return await service.update_subcategory(db, payload)


@subcategories_router.post("/delete", response_model=MessageResponse)
async def delete_subcategory(payload: DeleteRequest, db: AsyncClient = Depends(get_db)):
    return await service.delete_subcategory(db, payload.id)
