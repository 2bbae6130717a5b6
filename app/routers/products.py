# app/routers/products.py
from typing import Literal

from fastapi import APIRouter, Depends, Query, status
from supabase import AsyncClient

from app.core.auth import require_admin
from app.database import get_db
from app.repositories.brand_repo import BrandRepository
from app.repositories.category_repo import CategoryRepository
from app.repositories.product_repo import ProductRepository
from app.schemas.common import DeleteRequest, MessageResponse
from app.schemas.product import (
    ProductCreate,
    ProductPatch,
    ProductQuickCreate,
    ProductUpdate,
)
from app.services.product_service import ProductService

router = APIRouter(
    prefix="/products",
    tags=["Products"],
    dependencies=[Depends(require_admin)],
)

repo = ProductRepository()
service = ProductService(repo, CategoryRepository(), BrandRepository())


# -------- Reads --------


@router.get("")
async def list_products(
    db: AsyncClient = Depends(get_db),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str | None = None,
    category: int | None = None,
    brand: int | None = None,
    status_filter: Literal["active", "draft"] | None = Query(None, alias="status"),
):
    """
    Paginated product listing.

    Filters:
      - search: case-insensitive match on name
      - category / brand: ids
      - status: active | draft
    """
    return await service.list_products(
        db,
        page=page,
        limit=limit,
        search=search,
        category_id=category,
        brand_id=brand,
        status_filter=status_filter,
    )


@router.get("/slug/{slug}")
async def get_product_by_slug(slug: str, db: AsyncClient = Depends(get_db)):
    """Full product detail looked up by slug (edit page)."""
    return await service.get_product_by_slug(db, slug)


@router.get("/{product_id}")
async def get_product(product_id: int, db: AsyncClient = Depends(get_db)):
    """
    Full product detail: category, subcategory, brand, images, features,
    variants (with attributes and variant features), tags, FAQs,
    testimonial videos and customer testimonials.
    """
    return await service.get_product(db, product_id)


# -------- Writes --------


@router.post("", status_code=status.HTTP_201_CREATED)
async def quick_create_product(
    payload: ProductQuickCreate,
    db: AsyncClient = Depends(get_db),
):
    """Create a product with its images only."""
    return await service.quick_create_product(db, payload)


@router.post("/create", status_code=status.HTTP_201_CREATED)
async def create_product(payload: ProductCreate, db: AsyncClient = Depends(get_db)):
    """
    Create a product with all of its related data.

    The core row is required to succeed; related collections are saved
    best effort and any failures are listed under `errors`.
    """
    return await service.create_product(db, payload)


@router.post("/update")
async def update_product(payload: ProductUpdate, db: AsyncClient = Depends(get_db)):
    """
    Update a product and replace all of its related collections.
    """
    return await service.update_product(db, payload)


@router.post("/delete", response_model=MessageResponse)
async def delete_product_by_body(payload: DeleteRequest, db: AsyncClient = Depends(get_db)):
    return await service.delete_product(db, payload.id)


@router.patch("/{product_id}")
async def patch_product(
    product_id: int,
    payload: ProductPatch,
    db: AsyncClient = Depends(get_db),
):
    """
    Partial update of scalar fields. Sending `images` replaces the gallery.
    """
    return await service.patch_product(db, product_id, payload)


@router.delete("/{product_id}", response_model=MessageResponse)
async def delete_product(product_id: int, db: AsyncClient = Depends(get_db)):
    """
    Delete a product. Related rows cascade; image files are removed
    from storage.
    """
    return await service.delete_product(db, product_id)
