from app.routers import products as products_router
from tests.conftest import BUCKET_URL


def _product_payload(**overrides):
    payload = {
        "name": "Winter Coat",
        "price": 120,
        "description": "Warm wool coat",
        "images": ["https://cdn.test/coat-front.jpg", "https://cdn.test/coat-back.jpg"],
        "features": [{"feature_text": "Water resistant"}],
        "variants": [
            {
                "name": "Large",
                "price": 125,
                "attributes": [{"name": "Size", "value": "L"}],
                "variant_features": [{"feature_text": "Longer sleeves"}],
            }
        ],
        "tags": ["winter", "wool"],
        "faqs": [{"question": "Is it warm?", "answer": "Very."}],
        "testimonial_videos": [{"video_url": "https://videos.test/coat.mp4", "title": "Review"}],
        "customer_testimonials": [
            {"customer_name": "Ana", "testimonial_text": "Best coat I have owned.", "rating": 5}
        ],
    }
    payload.update(overrides)
    return payload


def _create(client, **overrides):
    return client.post("/api/products/create", json=_product_payload(**overrides))


# -------- Create --------


def test_create_product_with_all_related_data(client, db, revalidated):
    res = _create(client)

    assert res.status_code == 201
    body = res.json()
    assert body["message"] == "Product and all related data created successfully"
    assert "errors" not in body
    assert body["product"]["slug"] == "winter-coat"

    product_id = body["product"]["products_id"]
    images = sorted(db.rows("product_images"), key=lambda r: r["sort_order"])
    assert [(i["url"], i["is_primary"], i["sort_order"]) for i in images] == [
        ("https://cdn.test/coat-front.jpg", True, 0),
        ("https://cdn.test/coat-back.jpg", False, 1),
    ]
    assert all(r["product_id"] == product_id for r in db.rows("product_features"))
    assert [t["tag_text"] for t in db.rows("product_tags")] == ["winter", "wool"]
    assert len(db.rows("product_faqs")) == 1
    assert len(db.rows("product_testimonial_videos")) == 1
    assert db.rows("customer_testimonials")[0]["product_id"] == product_id

    variant = db.rows("product_variants")[0]
    assert variant["name"] == "Large"
    assert db.rows("variant_attributes")[0]["variant_id"] == variant["id"]
    assert db.rows("variant_features")[0]["variant_id"] == variant["id"]

    assert revalidated[-1][:3] == ["/", "/products", "/products/winter-coat"]


def test_create_stores_units_only_with_magnitudes(client, db):
    res = _create(client, weight=None, dimensions_length=40, seo_keywords="coat, wool ,")

    assert res.status_code == 201
    row = db.rows("products")[0]
    assert row["weight_unit"] is None
    assert row["dimensions_unit"] == "cm"
    assert row["seo_keywords"] == ["coat", "wool"]


def test_create_gets_suffixed_slug_when_taken(client, db):
    db.seed("products", name="Red Hat", slug="red-hat", price=10)

    res = _create(client, name="Red Hat")

    assert res.status_code == 201
    assert res.json()["product"]["slug"] == "red-hat-1"
    assert {r["slug"] for r in db.rows("products")} == {"red-hat", "red-hat-1"}


def test_create_retries_when_slug_is_taken_concurrently(client, db, monkeypatch):
    db.seed("products", name="Red Hat", slug="red-hat", price=10)
    real_exists = products_router.repo.slug_exists
    checked = []

    async def racing_exists(db_, slug, exclude_id=None):
        # The first lookup misses the row another writer just inserted.
        checked.append(slug)
        if len(checked) == 1:
            return False
        return await real_exists(db_, slug, exclude_id=exclude_id)

    monkeypatch.setattr(products_router.repo, "slug_exists", racing_exists)

    res = _create(client, name="Red Hat")

    assert res.status_code == 201
    assert res.json()["product"]["slug"] == "red-hat-1"


def test_create_conflict_after_retries_exhausted(client, db, monkeypatch):
    db.seed("products", name="Red Hat", slug="red-hat", price=10)

    async def always_free(db_, slug, exclude_id=None):
        return False

    monkeypatch.setattr(products_router.repo, "slug_exists", always_free)

    res = _create(client, name="Red Hat")

    assert res.status_code == 409
    assert "already exists" in res.json()["error"]
    assert len(db.rows("products")) == 1


def test_create_reports_child_failures_but_keeps_product(client, db):
    db.fail("insert", "product_images")

    res = _create(client)

    assert res.status_code == 201
    body = res.json()
    assert body["errors"] == ["Images: simulated failure"]
    assert body["message"].startswith("Product created, but errors occurred with related data:")
    assert len(db.rows("products")) == 1
    assert len(db.rows("product_features")) == 1
    assert len(db.rows("product_variants")) == 1


def test_failed_variant_skips_only_its_nested_rows(client, db):
    db.fail("insert", "product_variants")

    res = _create(client)

    assert res.status_code == 201
    assert res.json()["errors"] == ["Variant (Large): simulated failure"]
    assert db.rows("variant_attributes") == []
    assert db.rows("variant_features") == []
    assert len(db.rows("product_tags")) == 2


def test_create_core_failure_aborts(client, db):
    db.fail("insert", "products")

    res = _create(client)

    assert res.status_code == 500
    assert res.json()["error"].startswith("Failed to create product")
    assert db.rows("product_images") == []


def test_create_with_unknown_category_is_a_conflict(client, db):
    res = _create(client, category_id=999)

    assert res.status_code == 409
    assert "referenced" in res.json()["error"]


def test_create_validation_errors_are_aggregated(client, db):
    res = _create(client, price=-5, weight=2, weight_unit=None, images=["nope"])

    assert res.status_code == 400
    body = res.json()
    assert body["error"] == "Invalid request data"
    fields = body["details"]["fieldErrors"]
    assert "price" in fields
    assert "weight_unit" in fields
    assert "images.0" in fields
    assert db.rows("products") == []


def test_malformed_json_is_rejected(client):
    res = client.post(
        "/api/products/create",
        content="{not json",
        headers={"Content-Type": "application/json"},
    )

    assert res.status_code == 400
    assert res.json() == {"error": "Invalid JSON body"}


# -------- Read --------


def test_outerwear_winter_coat_scenario(client):
    category = client.post("/api/categories/create", json={"name": "Outerwear"})
    assert category.status_code == 201
    category_id = category.json()["category"]["categories_id"]

    created = _create(client, category_id=str(category_id))
    assert created.status_code == 201

    res = client.get("/api/products/slug/winter-coat")

    assert res.status_code == 200
    product = res.json()
    assert product["category"]["name"] == "Outerwear"
    assert len(product["images"]) == 2
    assert product["images"][0]["is_primary"] is True
    assert product["variants"][0]["attributes"][0]["value"] == "L"
    assert product["variants"][0]["variant_features"][0]["feature_text"] == "Longer sleeves"
    assert product["tags"] == ["winter", "wool"]
    assert product["brand"] is None


def test_get_product_by_id_and_missing(client):
    product_id = _create(client).json()["product"]["products_id"]

    assert client.get(f"/api/products/{product_id}").json()["name"] == "Winter Coat"
    missing = client.get("/api/products/9999")
    assert missing.status_code == 404
    assert missing.json() == {"error": "Product not found"}
    assert client.get("/api/products/slug/nothing-here").status_code == 404


def test_list_products_filters_and_paginates(client, db):
    outerwear = db.seed("categories", name="Outerwear", slug="outerwear")
    acme = db.seed("brands", name="Acme", slug="acme")
    for i in range(12):
        db.seed(
            "products",
            name=f"Coat {i}",
            slug=f"coat-{i}",
            price=100 + i,
            status="active" if i % 2 else "draft",
            category_id=outerwear["categories_id"],
            brand_id=acme["brands_id"],
        )
    db.seed("products", name="Wool Hat", slug="wool-hat", price=20, status="active")
    db.seed("product_images", product_id=1, url="https://cdn.test/c0.jpg", is_primary=True, sort_order=0)

    page = client.get("/api/products", params={"page": 2, "limit": 5}).json()
    assert page["meta"] == {"total": 13, "page": 2, "limit": 5, "totalPages": 3}
    assert [p["products_id"] for p in page["data"]] == [8, 7, 6, 5, 4]

    coats = client.get("/api/products", params={"search": "COAT", "status": "active"}).json()
    assert coats["meta"]["total"] == 6
    assert all(p["category"] == {"categories_id": 1, "name": "Outerwear"} for p in coats["data"])
    assert all(p["brand"]["name"] == "Acme" for p in coats["data"])

    by_brand = client.get("/api/products", params={"brand": acme["brands_id"], "limit": 100}).json()
    assert by_brand["meta"]["total"] == 12
    first = next(p for p in by_brand["data"] if p["products_id"] == 1)
    assert first["images"] == [{"url": "https://cdn.test/c0.jpg", "is_primary": True}]

    assert client.get("/api/products", params={"limit": 0}).status_code == 400


# -------- Update --------


def test_update_replaces_images(client, db, revalidated):
    product_id = _create(
        client,
        images=["https://cdn.test/a.jpg", "https://cdn.test/b.jpg", "https://cdn.test/c.jpg"],
    ).json()["product"]["products_id"]

    res = client.post(
        "/api/products/update",
        json={
            "products_id": product_id,
            "images": ["https://cdn.test/x.jpg", "https://cdn.test/y.jpg"],
        },
    )

    assert res.status_code == 200
    assert res.json()["message"] == "Product updated successfully"
    images = sorted(db.rows("product_images"), key=lambda r: r["sort_order"])
    assert [(i["url"], i["is_primary"], i["sort_order"]) for i in images] == [
        ("https://cdn.test/x.jpg", True, 0),
        ("https://cdn.test/y.jpg", False, 1),
    ]


def test_update_replaces_every_child_collection(client, db):
    product_id = _create(client).json()["product"]["products_id"]

    res = client.post(
        "/api/products/update",
        json={
            "products_id": product_id,
            "variants": [{"name": "Small", "attributes": [{"name": "Size", "value": "S"}]}],
            "tags": ["sale"],
        },
    )

    assert res.status_code == 200
    assert [v["name"] for v in db.rows("product_variants")] == ["Small"]
    assert [a["value"] for a in db.rows("variant_attributes")] == ["S"]
    assert db.rows("variant_features") == []
    assert [t["tag_text"] for t in db.rows("product_tags")] == ["sale"]
    assert db.rows("product_features") == []
    assert db.rows("product_faqs") == []
    assert db.rows("customer_testimonials") == []


def test_invalid_update_leaves_product_unchanged(client, db):
    product_id = _create(client).json()["product"]["products_id"]
    before_products = db.rows("products")
    before_images = db.rows("product_images")

    res = client.post(
        "/api/products/update",
        json={"products_id": product_id, "price": -1, "images": []},
    )

    assert res.status_code == 400
    assert "price" in res.json()["details"]["fieldErrors"]
    assert db.rows("products") == before_products
    assert db.rows("product_images") == before_images


def test_update_only_writes_fields_sent(client, db):
    product_id = _create(client, sku="WC-1", quantity=7).json()["product"]["products_id"]

    res = client.post("/api/products/update", json={"products_id": product_id, "price": 99})

    assert res.status_code == 200
    row = db.rows("products")[0]
    assert row["price"] == 99
    assert row["sku"] == "WC-1"
    assert row["quantity"] == 7
    assert row["slug"] == "winter-coat"
    assert row["updated_at"]


def test_update_regenerates_slug_when_name_changes(client, db):
    db.seed("products", name="Rain Coat", slug="rain-coat", price=80)
    product_id = _create(client).json()["product"]["products_id"]

    res = client.post(
        "/api/products/update",
        json={"products_id": product_id, "name": "Rain Coat", "slug": "winter-coat"},
    )

    assert res.status_code == 200
    assert res.json()["product"]["slug"] == "rain-coat-1"


def test_update_keeps_supplied_slug_when_name_unchanged(client, db):
    product_id = _create(client).json()["product"]["products_id"]

    res = client.post(
        "/api/products/update",
        json={"products_id": product_id, "name": "Winter Coat", "slug": "Classic Winter Coat"},
    )

    assert res.json()["product"]["slug"] == "classic-winter-coat"


def test_update_revalidates_old_and_new_category(client, db, revalidated):
    old = db.seed("categories", name="Coats", slug="coats")
    new = db.seed("categories", name="Outerwear", slug="outerwear")
    product_id = _create(client, category_id=old["categories_id"]).json()["product"]["products_id"]

    client.post(
        "/api/products/update",
        json={"products_id": product_id, "category_id": new["categories_id"]},
    )

    paths = revalidated[-1]
    assert "/category/coats" in paths
    assert "/category/outerwear" in paths
    assert "/products/winter-coat" in paths


def test_update_missing_product(client):
    res = client.post("/api/products/update", json={"products_id": 404})

    assert res.status_code == 404


def test_update_keeps_variants_when_their_details_cannot_be_removed(client, db):
    product_id = _create(client).json()["product"]["products_id"]
    db.fail("delete", "variant_attributes")

    res = client.post(
        "/api/products/update",
        json={"products_id": product_id, "variants": [{"name": "Small"}]},
    )

    assert res.status_code == 200
    errors = res.json()["errors"]
    assert "Delete Variant Attributes: simulated failure" in errors
    assert [v["name"] for v in db.rows("product_variants")] == ["Large"]


def test_update_skips_variants_when_existing_ones_cannot_be_loaded(client, db):
    product_id = _create(client).json()["product"]["products_id"]
    db.fail("select", "product_variants")

    res = client.post(
        "/api/products/update",
        json={"products_id": product_id, "variants": [{"name": "Small"}], "tags": ["new"]},
    )

    assert res.status_code == 200
    errors = res.json()["errors"]
    assert any(e.startswith("Variants: could not load existing variants") for e in errors)
    assert [v["name"] for v in db.rows("product_variants")] == ["Large"]
    assert [t["tag_text"] for t in db.rows("product_tags")] == ["new"]


# -------- Quick create / patch / delete --------


def test_quick_create_and_patch(client, db):
    res = client.post(
        "/api/products",
        json={
            "name": "Wool Hat",
            "slug": "Wool Hat",
            "price": 25,
            "images": ["https://cdn.test/hat.jpg"],
        },
    )
    assert res.status_code == 201
    product_id = res.json()["id"]
    assert db.rows("products")[0]["slug"] == "wool-hat"

    patched = client.patch(
        f"/api/products/{product_id}",
        json={"price": 30, "images": ["https://cdn.test/hat-2.jpg", "https://cdn.test/hat-3.jpg"]},
    )
    assert patched.status_code == 200
    assert patched.json()["product"]["price"] == 30
    assert [i["url"] for i in db.rows("product_images")] == [
        "https://cdn.test/hat-2.jpg",
        "https://cdn.test/hat-3.jpg",
    ]

    untouched = client.patch(f"/api/products/{product_id}", json={"status": "active"})
    assert untouched.status_code == 200
    assert len(db.rows("product_images")) == 2

    assert client.patch("/api/products/999", json={"price": 1}).status_code == 404


def test_delete_product_cascades_and_cleans_storage(client, db, revalidated):
    product_id = _create(
        client,
        images=[f"{BUCKET_URL}/products/coat.png", "https://elsewhere.test/coat.png"],
    ).json()["product"]["products_id"]

    res = client.post("/api/products/delete", json={"id": product_id})

    assert res.status_code == 200
    assert res.json() == {"message": "Product deleted successfully"}
    assert db.rows("products") == []
    assert db.rows("product_images") == []
    assert db.rows("product_variants") == []
    assert db.rows("variant_attributes") == []
    assert db.storage.removed == [("haev-ecommerce-files", "products/coat.png")]
    assert "/products/winter-coat" in revalidated[-1]


def test_delete_missing_product(client):
    assert client.post("/api/products/delete", json={"id": 12}).status_code == 404
    assert client.delete("/api/products/12").status_code == 404


def test_delete_by_path(client, db):
    product_id = _create(client).json()["product"]["products_id"]

    assert client.delete(f"/api/products/{product_id}").status_code == 200
    assert db.rows("products") == []


# -------- Partial updates never null required columns --------


def test_update_rejects_null_for_required_columns(client, db):
    product_id = _create(client).json()["product"]["products_id"]
    before = db.rows("products")

    res = client.post(
        "/api/products/update",
        json={
            "products_id": product_id,
            "name": None,
            "price": None,
            "status": None,
            "track_inventory": None,
            "currency_code": None,
            "images": [],
        },
    )

    assert res.status_code == 400
    fields = res.json()["details"]["fieldErrors"]
    assert {"name", "price", "status", "track_inventory", "currency_code"} <= set(fields)
    assert "Field cannot be null" in fields["price"][0]
    assert db.rows("products") == before
    assert len(db.rows("product_images")) == 2


def test_patch_rejects_null_for_required_columns(client, db):
    product_id = _create(client).json()["product"]["products_id"]

    res = client.patch(f"/api/products/{product_id}", json={"quantity": None, "status": None})

    assert res.status_code == 400
    assert {"quantity", "status"} <= set(res.json()["details"]["fieldErrors"])
    assert db.rows("products")[0]["status"] == "draft"


def test_update_weight_alone_keeps_stored_unit(client, db):
    product_id = _create(client, weight=2, weight_unit="lb").json()["product"]["products_id"]

    res = client.post("/api/products/update", json={"products_id": product_id, "weight": 3})

    assert res.status_code == 200
    row = db.rows("products")[0]
    assert row["weight"] == 3
    assert row["weight_unit"] == "lb"


def test_update_unit_without_magnitude_is_not_written(client, db):
    product_id = _create(
        client, weight=2, weight_unit="lb", dimensions_length=40, dimensions_unit="in"
    ).json()["product"]["products_id"]

    res = client.post(
        "/api/products/update",
        json={"products_id": product_id, "weight_unit": "g", "dimensions_unit": "mm"},
    )

    assert res.status_code == 200
    row = db.rows("products")[0]
    assert row["weight_unit"] == "lb"
    assert row["dimensions_unit"] == "in"


def test_update_clearing_weight_clears_its_unit(client, db):
    product_id = _create(client, weight=2, weight_unit="lb").json()["product"]["products_id"]

    client.post("/api/products/update", json={"products_id": product_id, "weight": None})

    row = db.rows("products")[0]
    assert row["weight"] is None
    assert row["weight_unit"] is None
