import os

# Settings are read once at import time; configure before importing the app.
os.environ["SUPABASE_URL"] = "https://test-project.supabase.co"
os.environ["SUPABASE_SERVICE_ROLE_KEY"] = "service-role-key"
os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret"
os.environ["STORAGE_BUCKET"] = "haev-ecommerce-files"
os.environ["CUSTOMER_APP_BASE_URLS"] = ""
os.environ["REVALIDATION_SECRET"] = ""

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.core.auth import require_admin  # noqa: E402
from app.database import get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.services import (  # noqa: E402
    brand_service,
    category_service,
    product_service,
    testimonial_service,
)
from tests.fake_supabase import FakeSupabase  # noqa: E402

ADMIN = {
    "id": "6f1c8a52-9d0e-4b0f-8d7a-2d4f3c1b9a10",
    "email": "admin@haev-shop.com",
    "name": "Admin",
    "role": "admin",
    "created_at": "2024-01-01T00:00:00+00:00",
    "last_login": None,
}

BUCKET_URL = "https://test-project.supabase.co/storage/v1/object/public/haev-ecommerce-files"


@pytest.fixture
def db():
    return FakeSupabase()


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[require_admin] = lambda: ADMIN
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def revalidated(monkeypatch):
    """Capture revalidation requests made by the services."""
    calls: list[list[str]] = []

    async def fake_revalidate(path=None, paths=None, **kwargs):
        if paths is not None:
            calls.append([p for p in paths if p])
        elif path:
            calls.append([path])
        return []

    for module in (product_service, category_service, brand_service, testimonial_service):
        monkeypatch.setattr(module, "revalidate_customer_app", fake_revalidate)
    return calls
