# app/services/product_service.py
import asyncio
import logging
import math
from datetime import datetime, timezone
from typing import Any

from fastapi import HTTPException, status
from supabase import AsyncClient

from app.core.errors import DB_ERRORS, describe_db_error, is_unique_violation, raise_for_db_error
from app.core.revalidation import (
    brand_path,
    category_path,
    product_path,
    revalidate_customer_app,
)
from app.core.slugs import ensure_unique_slug, slugify
from app.core.storage_utils import delete_public_url
from app.repositories.brand_repo import BrandRepository
from app.repositories.category_repo import CategoryRepository
from app.repositories.product_repo import (
    CUSTOMER_TESTIMONIALS,
    PRODUCT_FAQS,
    PRODUCT_FEATURES,
    PRODUCT_IMAGES,
    PRODUCT_TAGS,
    PRODUCT_VARIANTS,
    PRODUCT_VIDEOS,
    VARIANT_ATTRIBUTES,
    VARIANT_FEATURES,
    ProductRepository,
)
from app.schemas.product import (
    ProductCreate,
    ProductPatch,
    ProductQuickCreate,
    ProductUpdate,
    ProductVariant,
)

logger = logging.getLogger(__name__)

CHILD_FIELDS = {
    "images",
    "features",
    "variants",
    "tags",
    "faqs",
    "testimonial_videos",
    "customer_testimonials",
}

# Optional text columns stored as NULL rather than "".
_NULLABLE_TEXT = (
    "description",
    "short_description",
    "sku",
    "shipping_class",
    "seo_title",
    "seo_description",
    "featured_in_collection_slug",
    "mark",
)

_DIMENSIONS = ("dimensions_length", "dimensions_width", "dimensions_height")

# Attempts at inserting a new product when its slug loses a race.
SLUG_ATTEMPTS = 3

HOME_PATH = "/"
LISTING_PATH = "/products"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _keywords_list(raw: str | None) -> list[str] | None:
    if not raw:
        return None
    keywords = [kw.strip() for kw in raw.split(",") if kw.strip()]
    return keywords or None


def _core_values(fields: dict[str, Any]) -> dict[str, Any]:
    """
    Turn validated scalar fields into a products row.

    - blank optional text -> NULL
    - seo_keywords "a, b" -> ["a", "b"]
    - a unit is only written together with its magnitude, and nulled
      when that magnitude is cleared
    """
    values = dict(fields)
    values.pop("slug", None)

    for key in _NULLABLE_TEXT:
        if key in values and not values[key]:
            values[key] = None

    if "seo_keywords" in values:
        values["seo_keywords"] = _keywords_list(values["seo_keywords"])

    if "weight" not in values:
        values.pop("weight_unit", None)
    elif values["weight"] is None:
        values["weight_unit"] = None

    sent_dimensions = [d for d in _DIMENSIONS if d in values]
    if not sent_dimensions:
        values.pop("dimensions_unit", None)
    elif len(sent_dimensions) == len(_DIMENSIONS) and all(
        values[d] is None for d in _DIMENSIONS
    ):
        values["dimensions_unit"] = None

    return values


def _related_data_message(action: str, errors: list[str]) -> str:
    if errors:
        return f"Product {action}, but errors occurred with related data: {'; '.join(errors)}"
    return f"Product and all related data {action} successfully"


def _product_summary(row: dict[str, Any]) -> dict[str, Any]:
    return {
        "products_id": row["products_id"],
        "slug": row["slug"],
        "category_id": row.get("category_id"),
        "brand_id": row.get("brand_id"),
    }


class ProductService:
    """
    Business logic for products and their child collections.

    Responsibilities:
      - slug generation & uniqueness
      - the create / update workflows (core row first, children best effort)
      - delete with storage clean-up
      - storefront revalidation after every write
    """

    def __init__(
        self,
        repo: ProductRepository,
        category_repo: CategoryRepository,
        brand_repo: BrandRepository,
    ):
        self.repo = repo
        self.category_repo = category_repo
        self.brand_repo = brand_repo

    # ----- Helpers -----

    async def _unique_slug(
        self,
        db: AsyncClient,
        base_slug: str,
        exclude_id: int | None = None,
    ) -> str:
        async def exists(candidate: str) -> bool:
            return await self.repo.slug_exists(db, candidate, exclude_id=exclude_id)

        return await ensure_unique_slug(base_slug, exists)

    async def _related_paths(
        self,
        db: AsyncClient,
        category_id: int | None,
        brand_id: int | None,
    ) -> list[str]:
        """Storefront paths of a product's category and brand (best effort)."""
        paths: list[str] = []
        try:
            if category_id is not None:
                category = await self.category_repo.get_by_id(db, category_id, "slug")
                if category and (path := category_path(category.get("slug"))):
                    paths.append(path)
            if brand_id is not None:
                brand = await self.brand_repo.get_by_id(db, brand_id, "slug")
                if brand and (path := brand_path(brand.get("slug"))):
                    paths.append(path)
        except DB_ERRORS as exc:
            logger.warning("Could not resolve category/brand paths for revalidation: %s", exc)
        return paths

    async def _insert_rows(
        self,
        db: AsyncClient,
        label: str,
        table: str,
        rows: list[dict[str, Any]],
        errors: list[str],
    ) -> bool:
        if not rows:
            return True
        try:
            await self.repo.insert_rows(db, table, rows)
        except DB_ERRORS as exc:
            logger.error("Error inserting %s: %s", label.lower(), exc)
            errors.append(f"{label}: {describe_db_error(exc)}")
            return False
        return True

    async def _insert_images(
        self,
        db: AsyncClient,
        product_id: int,
        urls: list[str],
        errors: list[str],
    ) -> None:
        # First image is the primary one; sort order is the list index.
        rows = [
            {"product_id": product_id, "url": url, "is_primary": i == 0, "sort_order": i}
            for i, url in enumerate(urls)
        ]
        await self._insert_rows(db, "Images", PRODUCT_IMAGES, rows, errors)

    async def _insert_variant(
        self,
        db: AsyncClient,
        product_id: int,
        variant: ProductVariant,
        errors: list[str],
    ) -> None:
        """Insert one variant, then its attributes and features under the new id."""
        label = variant.name or "Unnamed"
        row = variant.model_dump(exclude={"id", "attributes", "variant_features"})
        row["product_id"] = product_id
        try:
            created = await self.repo.insert_variant(db, row)
        except DB_ERRORS as exc:
            logger.error("Error inserting variant %r: %s", label, exc)
            errors.append(f"Variant ({label}): {describe_db_error(exc)}")
            return

        variant_id = created["id"]
        attributes = [
            {"variant_id": variant_id, "name": a.name, "value": a.value}
            for a in variant.attributes
            if a.name and a.value
        ]
        await self._insert_rows(
            db, f"Variant Attributes ({label})", VARIANT_ATTRIBUTES, attributes, errors
        )

        features = [
            {"variant_id": variant_id, "feature_text": f.feature_text, "icon_url": f.icon_url}
            for f in variant.variant_features
            if f.feature_text
        ]
        await self._insert_rows(
            db, f"Variant Features ({label})", VARIANT_FEATURES, features, errors
        )

    async def _insert_children(
        self,
        db: AsyncClient,
        product_id: int,
        payload: ProductCreate | ProductUpdate,
        include_variants: bool = True,
    ) -> list[str]:
        """
        Insert every non-empty child collection for `product_id`.

        Each collection is independent: a failure is recorded and the
        remaining collections are still attempted.

        Returns:
            Error strings such as "Images: <message>".
        """
        errors: list[str] = []

        await self._insert_images(db, product_id, payload.images, errors)

        await self._insert_rows(
            db,
            "Features",
            PRODUCT_FEATURES,
            [
                {"product_id": product_id, "feature_text": f.feature_text, "icon_url": f.icon_url}
                for f in payload.features
            ],
            errors,
        )

        await self._insert_rows(
            db,
            "Tags",
            PRODUCT_TAGS,
            [{"product_id": product_id, "tag_text": tag} for tag in payload.tags],
            errors,
        )

        await self._insert_rows(
            db,
            "FAQs",
            PRODUCT_FAQS,
            [
                {"product_id": product_id, "question": f.question, "answer": f.answer}
                for f in payload.faqs
            ],
            errors,
        )

        await self._insert_rows(
            db,
            "Testimonial Videos",
            PRODUCT_VIDEOS,
            [
                {
                    "product_id": product_id,
                    "video_url": v.video_url,
                    "title": v.title or None,
                    "description": v.description or None,
                    "uploader_name": v.uploader_name or None,
                }
                for v in payload.testimonial_videos
            ],
            errors,
        )

        await self._insert_rows(
            db,
            "Customer Testimonials",
            CUSTOMER_TESTIMONIALS,
            [
                {
                    "product_id": product_id,
                    "customer_name": t.customer_name,
                    "testimonial_text": t.testimonial_text,
                    "rating": t.rating,
                    "customer_image_url": t.customer_image_url,
                }
                for t in payload.customer_testimonials
            ],
            errors,
        )

        if include_variants:
            for variant in payload.variants:
                await self._insert_variant(db, product_id, variant, errors)

        return errors

    async def _clear_children(self, db: AsyncClient, product_id: int) -> tuple[list[str], bool]:
        """
        Delete every child row of a product ahead of re-insertion.

        Deletes run concurrently; each failure is recorded against its
        table and the rest of the batch still runs. Variants are only
        removed once their attributes and features are gone.

        Returns:
            (error strings, whether the old variants were removed)
        """
        errors: list[str] = []

        variant_ids: list[int] | None
        try:
            variant_ids = await self.repo.list_variant_ids(db, product_id)
        except DB_ERRORS as exc:
            logger.error("Could not fetch variant ids for product %s: %s", product_id, exc)
            errors.append(f"Variants: could not load existing variants ({describe_db_error(exc)})")
            variant_ids = None

        batch = [
            ("Images", self.repo.delete_for_product(db, PRODUCT_IMAGES, product_id)),
            ("Features", self.repo.delete_for_product(db, PRODUCT_FEATURES, product_id)),
            ("Tags", self.repo.delete_for_product(db, PRODUCT_TAGS, product_id)),
            ("FAQs", self.repo.delete_for_product(db, PRODUCT_FAQS, product_id)),
            ("Testimonial Videos", self.repo.delete_for_product(db, PRODUCT_VIDEOS, product_id)),
            (
                "Customer Testimonials",
                self.repo.delete_for_product(db, CUSTOMER_TESTIMONIALS, product_id),
            ),
        ]
        if variant_ids:
            batch.append(
                (
                    "Variant Attributes",
                    self.repo.delete_where_in(db, VARIANT_ATTRIBUTES, "variant_id", variant_ids),
                )
            )
            batch.append(
                (
                    "Variant Features",
                    self.repo.delete_where_in(db, VARIANT_FEATURES, "variant_id", variant_ids),
                )
            )

        results = await asyncio.gather(*(coro for _, coro in batch), return_exceptions=True)

        failed: set[str] = set()
        for (label, _), result in zip(batch, results):
            if isinstance(result, DB_ERRORS):
                logger.error("Error deleting %s for product %s: %s", label.lower(), product_id, result)
                errors.append(f"Delete {label}: {describe_db_error(result)}")
                failed.add(label)
            elif isinstance(result, BaseException):
                raise result

        if variant_ids is None:
            # Existing variants are unknown; keep them rather than duplicating.
            return errors, False
        if not variant_ids:
            return errors, True
        if failed & {"Variant Attributes", "Variant Features"}:
            errors.append("Variants: existing variants were kept because their details could not be removed")
            return errors, False

        try:
            await self.repo.delete_where_in(db, PRODUCT_VARIANTS, "id", variant_ids)
        except DB_ERRORS as exc:
            logger.error("Error deleting variants for product %s: %s", product_id, exc)
            errors.append(f"Delete Variants: {describe_db_error(exc)}")
            return errors, False
        return errors, True

    # ----- Reads -----

    async def list_products(
        self,
        db: AsyncClient,
        page: int,
        limit: int,
        search: str | None = None,
        category_id: int | None = None,
        brand_id: int | None = None,
        status_filter: str | None = None,
    ) -> dict[str, Any]:
        """
        Paginated product listing with category/brand names and images.
        """
        try:
            rows, total = await self.repo.list_page(
                db,
                offset=(page - 1) * limit,
                limit=limit,
                search=search,
                category_id=category_id,
                brand_id=brand_id,
                status=status_filter,
            )
            category_ids = sorted({r["category_id"] for r in rows if r.get("category_id")})
            brand_ids = sorted({r["brand_id"] for r in rows if r.get("brand_id")})
            categories, brands, images = await asyncio.gather(
                self.category_repo.get_many(db, category_ids),
                self.brand_repo.get_many(db, brand_ids),
                self.repo.list_images_for_products(db, [r["products_id"] for r in rows]),
            )
        except DB_ERRORS as exc:
            raise_for_db_error(exc, "fetch", "products")

        categories_by_id = {c["categories_id"]: c for c in categories}
        brands_by_id = {b["brands_id"]: b for b in brands}
        images_by_product: dict[int, list[dict[str, Any]]] = {}
        for image in images:
            images_by_product.setdefault(image["product_id"], []).append(
                {"url": image["url"], "is_primary": image["is_primary"]}
            )

        data = []
        for row in rows:
            category = categories_by_id.get(row.get("category_id"))
            brand = brands_by_id.get(row.get("brand_id"))
            data.append(
                {
                    **row,
                    "category": (
                        {"categories_id": category["categories_id"], "name": category["name"]}
                        if category
                        else None
                    ),
                    "brand": (
                        {"brands_id": brand["brands_id"], "name": brand["name"]} if brand else None
                    ),
                    "images": images_by_product.get(row["products_id"], []),
                }
            )

        return {
            "data": data,
            "meta": {
                "total": total,
                "page": page,
                "limit": limit,
                "totalPages": math.ceil(total / limit) if limit else 0,
            },
        }

    async def _with_relations(self, db: AsyncClient, product: dict[str, Any]) -> dict[str, Any]:
        product_id = product["products_id"]

        async def lookup(fetch, key):
            value = product.get(key)
            return await fetch(db, value) if value is not None else None

        (
            category,
            subcategory,
            brand,
            images,
            features,
            variants,
            tags,
            faqs,
            videos,
            testimonials,
        ) = await asyncio.gather(
            lookup(self.category_repo.get_by_id, "category_id"),
            lookup(self.category_repo.get_subcategory, "subcategory_id"),
            lookup(self.brand_repo.get_by_id, "brand_id"),
            self.repo.list_for_product(db, PRODUCT_IMAGES, product_id, order_by="sort_order"),
            self.repo.list_for_product(db, PRODUCT_FEATURES, product_id),
            self.repo.list_for_product(db, PRODUCT_VARIANTS, product_id),
            self.repo.list_for_product(db, PRODUCT_TAGS, product_id),
            self.repo.list_for_product(db, PRODUCT_FAQS, product_id, order_by="faq_id"),
            self.repo.list_for_product(db, PRODUCT_VIDEOS, product_id),
            self.repo.list_for_product(db, CUSTOMER_TESTIMONIALS, product_id),
        )

        variant_ids = [v["id"] for v in variants]
        attributes, variant_features = await asyncio.gather(
            self.repo.list_for_variants(db, VARIANT_ATTRIBUTES, variant_ids),
            self.repo.list_for_variants(db, VARIANT_FEATURES, variant_ids),
        )
        for variant in variants:
            variant["attributes"] = [a for a in attributes if a["variant_id"] == variant["id"]]
            variant["variant_features"] = [
                f for f in variant_features if f["variant_id"] == variant["id"]
            ]

        return {
            **product,
            "category": category,
            "subcategory": subcategory,
            "brand": brand,
            "images": images,
            "features": features,
            "variants": variants,
            "tags": [t["tag_text"] for t in tags],
            "faqs": faqs,
            "testimonial_videos": videos,
            "customer_testimonials": testimonials,
        }

    async def get_product(self, db: AsyncClient, product_id: int) -> dict[str, Any]:
        """
        Product with every related collection.

        Raises:
            HTTPException(404): if not found.
        """
        product = await self.repo.get_by_id(db, product_id)
        if product is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
        return await self._with_relations(db, product)

    async def get_product_by_slug(self, db: AsyncClient, slug: str) -> dict[str, Any]:
        product = await self.repo.get_by_slug(db, slug)
        if product is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
        return await self._with_relations(db, product)

    # ----- Writes -----

    async def create_product(self, db: AsyncClient, payload: ProductCreate) -> dict[str, Any]:
        """
        Full create workflow.

        Steps:
          1. Derive a free slug from the name.
          2. Insert the core row (retrying with a fresh slug if another
             writer took it in between); failure here aborts.
          3. Insert child collections, best effort.
          4. Revalidate home, listing, the product and its category/brand.
        """
        row = _core_values(payload.model_dump(exclude=CHILD_FIELDS))
        base_slug = slugify(payload.name, fallback="product")

        product: dict[str, Any] | None = None
        for attempt in range(1, SLUG_ATTEMPTS + 1):
            row["slug"] = await self._unique_slug(db, base_slug)
            try:
                product = await self.repo.create(db, row)
                break
            except DB_ERRORS as exc:
                if is_unique_violation(exc, "slug") and attempt < SLUG_ATTEMPTS:
                    logger.warning(
                        "Slug %r was taken concurrently, retrying (%d/%d)",
                        row["slug"],
                        attempt,
                        SLUG_ATTEMPTS,
                    )
                    continue
                logger.error("Product insert failed: %s", exc)
                raise_for_db_error(exc, "create", "product")

        product_id = product["products_id"]
        logger.info("Created product %s (%s)", product_id, product["slug"])

        errors = await self._insert_children(db, product_id, payload)

        paths = [HOME_PATH, LISTING_PATH, product_path(product["slug"])]
        paths += await self._related_paths(db, product.get("category_id"), product.get("brand_id"))
        await revalidate_customer_app(paths=paths)

        body: dict[str, Any] = {
            "message": _related_data_message("created", errors),
            "product": _product_summary(product),
        }
        if errors:
            body["errors"] = errors
        return body

    async def update_product(self, db: AsyncClient, payload: ProductUpdate) -> dict[str, Any]:
        """
        Full update workflow.

        Steps:
          1. Load the current row (404 if missing) and recompute the slug.
          2. Remember the old category/brand paths.
          3. Delete every child collection (concurrent, failures recorded).
          4. Update the core row with only the fields present in the body.
          5. Re-insert child collections from the payload.
          6. Revalidate old and new paths.

        Nothing here is transactional: a failed core update does not
        restore the deleted children.
        """
        product_id = payload.products_id
        current = await self.repo.get_by_id(db, product_id)
        if current is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")

        name = payload.name or current["name"]
        name_changed = payload.name is not None and payload.name != current["name"]
        if name_changed or not payload.slug:
            base_slug = slugify(name, fallback="product")
        else:
            base_slug = slugify(payload.slug, fallback="product")
        slug = await self._unique_slug(db, base_slug, exclude_id=product_id)

        old_paths = await self._related_paths(db, current.get("category_id"), current.get("brand_id"))

        errors, variants_cleared = await self._clear_children(db, product_id)

        values = _core_values(
            payload.model_dump(exclude_unset=True, exclude=CHILD_FIELDS | {"products_id"})
        )
        values["slug"] = slug
        values["updated_at"] = _now()
        try:
            updated = await self.repo.update(db, product_id, values)
        except DB_ERRORS as exc:
            logger.error("Product %s core update failed: %s", product_id, exc)
            raise_for_db_error(exc, "update", "product")
        if updated is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")

        if not variants_cleared and payload.variants:
            errors.append("Variants: new variants were not saved to avoid duplicates")
        errors += await self._insert_children(
            db, product_id, payload, include_variants=variants_cleared
        )

        new_paths = await self._related_paths(db, updated.get("category_id"), updated.get("brand_id"))
        await revalidate_customer_app(
            paths=[
                HOME_PATH,
                LISTING_PATH,
                product_path(current.get("slug")),
                product_path(updated.get("slug")),
                *old_paths,
                *new_paths,
            ]
        )

        body: dict[str, Any] = {
            "message": (
                f"Product updated, but errors occurred with related data: {'; '.join(errors)}"
                if errors
                else "Product updated successfully"
            ),
            "product": _product_summary(updated),
        }
        if errors:
            body["errors"] = errors
        return body

    async def quick_create_product(
        self,
        db: AsyncClient,
        payload: ProductQuickCreate,
    ) -> dict[str, Any]:
        """Create the core row and its images only."""
        row = _core_values(payload.model_dump(exclude={"images"}))
        row["slug"] = await self._unique_slug(db, slugify(payload.slug, fallback="product"))
        try:
            product = await self.repo.create(db, row)
        except DB_ERRORS as exc:
            raise_for_db_error(exc, "create", "product")

        errors: list[str] = []
        await self._insert_images(db, product["products_id"], payload.images, errors)

        paths = [HOME_PATH, LISTING_PATH, product_path(product["slug"])]
        paths += await self._related_paths(db, product.get("category_id"), product.get("brand_id"))
        await revalidate_customer_app(paths=paths)

        body: dict[str, Any] = {
            "message": "Product created successfully",
            "id": product["products_id"],
        }
        if errors:
            body["errors"] = errors
        return body

    async def patch_product(
        self,
        db: AsyncClient,
        product_id: int,
        payload: ProductPatch,
    ) -> dict[str, Any]:
        """
        Partial update. `images`, when sent, replaces the gallery.
        """
        current = await self.repo.get_by_id(db, product_id)
        if current is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")

        values = _core_values(payload.model_dump(exclude_unset=True, exclude={"images"}))
        updated = current
        try:
            if values:
                values["updated_at"] = _now()
                updated = await self.repo.update(db, product_id, values) or current
            if payload.images is not None:
                await self.repo.delete_for_product(db, PRODUCT_IMAGES, product_id)
        except DB_ERRORS as exc:
            raise_for_db_error(exc, "update", "product")

        errors: list[str] = []
        if payload.images is not None:
            await self._insert_images(db, product_id, payload.images, errors)
            if errors:
                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail=f"Failed to update product images: {'; '.join(errors)}",
                )

        paths = [HOME_PATH, LISTING_PATH, product_path(updated.get("slug"))]
        paths += await self._related_paths(db, updated.get("category_id"), updated.get("brand_id"))
        await revalidate_customer_app(paths=paths)

        return {"message": "Product updated successfully", "product": updated}

    async def delete_product(self, db: AsyncClient, product_id: int) -> dict[str, Any]:
        """
        Delete a product. Child rows cascade in the database; image
        files are removed from the bucket afterwards, best effort.
        """
        current = await self.repo.get_by_id(db, product_id)
        if current is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")

        try:
            images = await self.repo.list_for_product(db, PRODUCT_IMAGES, product_id)
        except DB_ERRORS as exc:
            logger.warning("Could not list images of product %s before delete: %s", product_id, exc)
            images = []

        try:
            await self.repo.delete(db, product_id)
        except DB_ERRORS as exc:
            raise_for_db_error(exc, "delete", "product")
        logger.info("Deleted product %s (%s)", product_id, current.get("slug"))

        for image in images:
            await delete_public_url(db, image.get("url"))

        paths = [HOME_PATH, LISTING_PATH, product_path(current.get("slug"))]
        paths += await self._related_paths(db, current.get("category_id"), current.get("brand_id"))
        await revalidate_customer_app(paths=paths)

        return {"message": "Product deleted successfully"}
