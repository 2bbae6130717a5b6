# app/repositories/product_repo.py
from typing import Any

from supabase import AsyncClient

# Child tables owned by a product (FK column -> products.products_id)
PRODUCT_IMAGES = "product_images"
PRODUCT_FEATURES = "product_features"
PRODUCT_VARIANTS = "product_variants"
PRODUCT_TAGS = "product_tags"
PRODUCT_FAQS = "product_faqs"
PRODUCT_VIDEOS = "product_testimonial_videos"
CUSTOMER_TESTIMONIALS = "customer_testimonials"

# Child tables owned by a variant (FK column -> product_variants.id)
VARIANT_ATTRIBUTES = "variant_attributes"
VARIANT_FEATURES = "variant_features"


class ProductRepository:
    """
    Data access layer for products and their child collections.

    - Pure PostgREST calls (select / insert / update / delete).
    - No FastAPI, no business logic.
    - Database failures surface as postgrest APIError.
    """

    TABLE = "products"
    PK = "products_id"

    # ----- Products -----

    async def get_by_id(
        self,
        db: AsyncClient,
        product_id: int,
        columns: str = "*",
    ) -> dict[str, Any] | None:
        res = await (
            db.table(self.TABLE).select(columns).eq(self.PK, product_id).limit(1).execute()
        )
        return res.data[0] if res.data else None

    async def get_many(
        self,
        db: AsyncClient,
        product_ids: list[int],
        columns: str = "*",
    ) -> list[dict[str, Any]]:
        if not product_ids:
            return []
        res = await db.table(self.TABLE).select(columns).in_(self.PK, product_ids).execute()
        return res.data or []

    async def get_by_slug(self, db: AsyncClient, slug: str) -> dict[str, Any] | None:
        res = await db.table(self.TABLE).select("*").eq("slug", slug).limit(1).execute()
        return res.data[0] if res.data else None

    async def slug_exists(
        self,
        db: AsyncClient,
        slug: str,
        exclude_id: int | None = None,
    ) -> bool:
        query = db.table(self.TABLE).select(self.PK).eq("slug", slug)
        if exclude_id is not None:
            query = query.neq(self.PK, exclude_id)
        res = await query.limit(1).execute()
        return bool(res.data)

    async def list_page(
        self,
        db: AsyncClient,
        offset: int = 0,
        limit: int = 10,
        search: str | None = None,
        category_id: int | None = None,
        brand_id: int | None = None,
        status: str | None = None,
    ) -> tuple[list[dict[str, Any]], int]:
        """
        Paginated, filtered product listing, newest first.

        Returns:
            (rows, total matching rows)
        """
        query = db.table(self.TABLE).select("*", count="exact")
        if search:
            query = query.ilike("name", f"%{search}%")
        if category_id is not None:
            query = query.eq("category_id", category_id)
        if brand_id is not None:
            query = query.eq("brand_id", brand_id)
        if status:
            query = query.eq("status", status)
        query = query.order(self.PK, desc=True).range(offset, offset + limit - 1)
        res = await query.execute()
        return res.data or [], res.count or 0

    async def exists_with(self, db: AsyncClient, column: str, value: Any) -> bool:
        """True if at least one product has `column == value` (reference checks)."""
        res = await db.table(self.TABLE).select(self.PK).eq(column, value).limit(1).execute()
        return bool(res.data)

    async def create(self, db: AsyncClient, row: dict[str, Any]) -> dict[str, Any]:
        res = await db.table(self.TABLE).insert(row).execute()
        return res.data[0]

    async def update(
        self,
        db: AsyncClient,
        product_id: int,
        values: dict[str, Any],
    ) -> dict[str, Any] | None:
        res = await db.table(self.TABLE).update(values).eq(self.PK, product_id).execute()
        return res.data[0] if res.data else None

    async def delete(self, db: AsyncClient, product_id: int) -> None:
        await db.table(self.TABLE).delete().eq(self.PK, product_id).execute()

    # ----- Child collections -----

    async def insert_rows(
        self,
        db: AsyncClient,
        table: str,
        rows: list[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        res = await db.table(table).insert(rows).execute()
        return res.data or []

    async def insert_variant(self, db: AsyncClient, row: dict[str, Any]) -> dict[str, Any]:
        res = await db.table(PRODUCT_VARIANTS).insert(row).execute()
        return res.data[0]

    async def delete_for_product(self, db: AsyncClient, table: str, product_id: int) -> None:
        await db.table(table).delete().eq("product_id", product_id).execute()

    async def delete_where_in(
        self,
        db: AsyncClient,
        table: str,
        column: str,
        values: list[Any],
    ) -> None:
        await db.table(table).delete().in_(column, values).execute()

    async def list_for_product(
        self,
        db: AsyncClient,
        table: str,
        product_id: int,
        order_by: str = "id",
    ) -> list[dict[str, Any]]:
        res = await (
            db.table(table).select("*").eq("product_id", product_id).order(order_by).execute()
        )
        return res.data or []

    async def list_variant_ids(self, db: AsyncClient, product_id: int) -> list[int]:
        res = await db.table(PRODUCT_VARIANTS).select("id").eq("product_id", product_id).execute()
        return [row["id"] for row in res.data or []]

    async def list_for_variants(
        self,
        db: AsyncClient,
        table: str,
        variant_ids: list[int],
    ) -> list[dict[str, Any]]:
        if not variant_ids:
            return []
        res = await db.table(table).select("*").in_("variant_id", variant_ids).order("id").execute()
        return res.data or []

    async def list_images_for_products(
        self,
        db: AsyncClient,
        product_ids: list[int],
    ) -> list[dict[str, Any]]:
        """Images for a page of products, in gallery order."""
        if not product_ids:
            return []
        res = await (
            db.table(PRODUCT_IMAGES)
            .select("product_id, url, is_primary, sort_order")
            .in_("product_id", product_ids)
            .order("sort_order")
            .execute()
        )
        return res.data or []
