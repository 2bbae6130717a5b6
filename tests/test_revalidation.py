import asyncio
import json

import httpx

from app.core.config import Settings
from app.core.revalidation import revalidate_customer_app, unique_paths


def _settings(**overrides) -> Settings:
    values = {
        "SUPABASE_URL": "https://test-project.supabase.co",
        "SUPABASE_JWT_SECRET": "secret",
        "CUSTOMER_APP_BASE_URLS": "https://shop-a.test, https://shop-b.test/",
        "REVALIDATION_SECRET": "reval-secret",
    }
    values.update(overrides)
    return Settings(**values)


def test_no_storefronts_configured_is_a_noop():
    def handler(request):
        raise AssertionError("no request expected")

    results = asyncio.run(
        revalidate_customer_app(
            path="/",
            settings=_settings(CUSTOMER_APP_BASE_URLS=""),
            transport=httpx.MockTransport(handler),
        )
    )
    assert results == []


def test_missing_secret_is_a_noop():
    def handler(request):
        raise AssertionError("no request expected")

    results = asyncio.run(
        revalidate_customer_app(
            path="/",
            settings=_settings(REVALIDATION_SECRET=None),
            transport=httpx.MockTransport(handler),
        )
    )
    assert results == []


def test_posts_paths_to_every_storefront_with_bearer_secret():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(
            (str(request.url), request.headers["Authorization"], json.loads(request.content))
        )
        return httpx.Response(200, json={"revalidated": True})

    results = asyncio.run(
        revalidate_customer_app(
            paths=["/", "/products", "/", None, "/products/red-hat"],
            settings=_settings(),
            transport=httpx.MockTransport(handler),
        )
    )

    assert sorted(url for url, _, _ in seen) == [
        "https://shop-a.test/api/revalidate",
        "https://shop-b.test/api/revalidate",
    ]
    for _, auth, body in seen:
        assert auth == "Bearer reval-secret"
        assert body == {"paths": ["/", "/products", "/products/red-hat"]}
    assert all(r.ok for r in results)


def test_single_path_payload():
    bodies = []

    def handler(request):
        bodies.append(json.loads(request.content))
        return httpx.Response(200)

    asyncio.run(
        revalidate_customer_app(
            path="/brands",
            settings=_settings(CUSTOMER_APP_BASE_URLS="https://shop-a.test"),
            transport=httpx.MockTransport(handler),
        )
    )
    assert bodies == [{"path": "/brands"}]


def test_one_failing_storefront_does_not_affect_the_others():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "shop-a.test":
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200)

    results = asyncio.run(
        revalidate_customer_app(
            path="/",
            settings=_settings(),
            transport=httpx.MockTransport(handler),
        )
    )

    by_url = {r.url: r for r in results}
    assert by_url["https://shop-a.test"].ok is False
    assert by_url["https://shop-b.test/"].ok is True


def test_error_status_is_reported_not_raised():
    def handler(request):
        return httpx.Response(401, text="bad secret")

    results = asyncio.run(
        revalidate_customer_app(
            path="/",
            settings=_settings(CUSTOMER_APP_BASE_URLS="https://shop-a.test"),
            transport=httpx.MockTransport(handler),
        )
    )
    assert len(results) == 1
    assert results[0].ok is False
    assert results[0].status_code == 401


def test_unique_paths_keeps_first_seen_order():
    assert unique_paths(["/b", "/a", None, "", "/b"]) == ["/b", "/a"]
