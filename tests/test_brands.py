from tests.conftest import BUCKET_URL


def test_create_brand(client, db, revalidated):
    res = client.post(
        "/api/brands/create",
        json={
            "name": "Acme Outdoor",
            "logo_url": f"{BUCKET_URL}/brands/acme.png",
            "website": "",
        },
    )

    assert res.status_code == 201
    brand = res.json()["brand"]
    assert brand["slug"] == "acme-outdoor"
    assert brand["website"] is None
    assert brand["status"] == "active"
    assert revalidated[-1] == ["/", "/brands", "/brand/acme-outdoor"]


def test_create_brand_rejects_bad_urls(client, db):
    res = client.post("/api/brands/create", json={"name": "Acme", "website": "acme dot com"})

    assert res.status_code == 400
    assert "Please enter a valid URL" in res.json()["details"]["fieldErrors"]["website"][0]
    assert db.rows("brands") == []


def test_list_and_get_brands(client, db):
    db.seed("brands", name="Zeta", slug="zeta")
    acme = db.seed("brands", name="Acme", slug="acme")

    assert [b["name"] for b in client.get("/api/brands").json()] == ["Acme", "Zeta"]
    assert client.get(f"/api/brands/{acme['brands_id']}").json()["slug"] == "acme"
    assert client.get("/api/brands/404").status_code == 404


def test_update_brand_replaces_logo(client, db, revalidated):
    brand = db.seed(
        "brands", name="Acme", slug="acme", logo_url=f"{BUCKET_URL}/brands/old-logo.png"
    )

    res = client.post(
        "/api/brands/update",
        json={
            "brands_id": brand["brands_id"],
            "name": "Acme Co",
            "logo_url": f"{BUCKET_URL}/brands/new-logo.png",
        },
    )

    assert res.status_code == 200
    updated = res.json()["brand"]
    assert updated["slug"] == "acme-co"
    assert updated["logo_url"].endswith("new-logo.png")
    assert db.storage.removed == [("haev-ecommerce-files", "brands/old-logo.png")]
    assert "/brand/acme" in revalidated[-1]
    assert "/brand/acme-co" in revalidated[-1]


def test_update_brand_keeps_untouched_fields(client, db):
    brand = db.seed("brands", name="Acme", slug="acme", description="Outdoor gear")

    res = client.post(
        "/api/brands/update", json={"brands_id": brand["brands_id"], "status": "inactive"}
    )

    assert res.status_code == 200
    row = db.rows("brands")[0]
    assert row["status"] == "inactive"
    assert row["description"] == "Outdoor gear"
    assert row["slug"] == "acme"
    assert db.storage.removed == []


def test_update_missing_brand(client):
    assert client.post("/api/brands/update", json={"brands_id": 9}).status_code == 404


def test_delete_brand_in_use_is_rejected(client, db):
    brand = db.seed("brands", name="Acme", slug="acme")
    db.seed("products", name="Tent", slug="tent", price=300, brand_id=brand["brands_id"])

    res = client.post("/api/brands/delete", json={"id": brand["brands_id"]})

    assert res.status_code == 409
    assert res.json()["error"] == "Cannot delete brand: It is still used by one or more products."
    assert len(db.rows("brands")) == 1


def test_delete_brand_removes_images(client, db):
    brand = db.seed(
        "brands",
        name="Acme",
        slug="acme",
        logo_url=f"{BUCKET_URL}/brands/logo.png",
        long_banner_url="https://elsewhere.test/banner.png",
    )

    res = client.post("/api/brands/delete", json={"id": brand["brands_id"]})

    assert res.status_code == 200
    assert db.rows("brands") == []
    assert db.storage.removed == [("haev-ecommerce-files", "brands/logo.png")]


def test_update_brand_rejects_null_for_required_columns(client, db):
    brand = db.seed("brands", name="Acme", slug="acme", status="active")

    res = client.post("/api/brands/update", json={"brands_id": brand["brands_id"], "status": None})

    assert res.status_code == 400
    assert "status" in res.json()["details"]["fieldErrors"]
    assert db.rows("brands")[0]["status"] == "active"
