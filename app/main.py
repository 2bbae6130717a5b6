# app/main.py
from contextlib import asynccontextmanager
import logging

from fastapi.middleware.cors import CORSMiddleware
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from postgrest.exceptions import APIError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import get_settings
from app.core.errors import (
    database_exception_handler,
    http_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from app.database import connect, disconnect

# Routers
from app.routers.admin import router as admin_router
from app.routers.brands import router as brands_router
from app.routers.categories import router as categories_router
from app.routers.categories import subcategories_router
from app.routers.dashboard import router as dashboard_router
from app.routers.products import router as products_router
from app.routers.testimonials import router as testimonials_router
from app.routers.uploads import router as uploads_router

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
      - Create the shared Supabase client (service-role key).

    Shutdown:
      - Close the client's HTTP sessions.
    """
    logger.info("Startup: connecting to Supabase...")
    try:
        await connect()
        logger.info("Startup: Supabase client ready.")
    except Exception as e:
        logger.error(f"Startup: Supabase client FAILED: {e}")
        raise
    yield
    await disconnect()
    logger.info("Shutdown: Supabase client closed.")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


# --- CORS configuration ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Error rendering: every error is {"error": ..., "details"?: ...} ---
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(APIError, database_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# Admin API; every router enforces require_admin.
app.include_router(products_router, prefix=settings.API_PREFIX)
app.include_router(categories_router, prefix=settings.API_PREFIX)
app.include_router(subcategories_router, prefix=settings.API_PREFIX)
app.include_router(brands_router, prefix=settings.API_PREFIX)
app.include_router(testimonials_router, prefix=settings.API_PREFIX)
app.include_router(uploads_router, prefix=settings.API_PREFIX)
app.include_router(dashboard_router, prefix=settings.API_PREFIX)
app.include_router(admin_router, prefix=settings.API_PREFIX)


@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "haev-admin-backend"}
