# app/routers/testimonials.py
from fastapi import APIRouter, Depends, status
from supabase import AsyncClient

from app.core.auth import require_admin
from app.database import get_db
from app.repositories.product_repo import ProductRepository
from app.repositories.testimonial_repo import TestimonialRepository
from app.schemas.common import DeleteRequest, MessageResponse
from app.schemas.testimonial import TestimonialCreate
from app.services.testimonial_service import TestimonialService

router = APIRouter(
    prefix="/testimonials",
    tags=["Testimonials"],
    dependencies=[Depends(require_admin)],
)

repo = TestimonialRepository()
service = TestimonialService(repo, ProductRepository())


@router.get("")
async def list_testimonials(db: AsyncClient = Depends(get_db)):
    """All customer testimonials, newest first."""
    return await service.list_testimonials(db)


@router.post("/create", status_code=status.HTTP_201_CREATED)
async def create_testimonial(payload: TestimonialCreate, db: AsyncClient = Depends(get_db)):
    return await service.create_testimonial(db, payload)


@router.post("/delete", response_model=MessageResponse)
async def delete_testimonial(payload: DeleteRequest, db: AsyncClient = Depends(get_db)):
    return await service.delete_testimonial(db, payload.id)
