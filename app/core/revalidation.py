# app/core/revalidation.py
"""
Storefront cache revalidation.

Responsibilities:
  - Read the storefront base URLs and the shared secret from settings.
  - POST ``{path}`` or ``{paths}`` to ``{base_url}/api/revalidate`` on every
    configured storefront, concurrently, with a bearer secret.
  - Log each attempt individually.

Revalidation is always best effort: missing configuration, network errors
and non-2xx answers are logged and never raised to the calling workflow.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Iterable

import httpx

from app.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

REVALIDATE_ENDPOINT = "/api/revalidate"


@dataclass
class RevalidationResult:
    """Outcome of one storefront call (for logging and tests only)."""

    url: str
    ok: bool
    status_code: int | None = None
    detail: str = ""


def unique_paths(paths: Iterable[str | None]) -> list[str]:
    """Drop empties and duplicates, keep first-seen order."""
    return list(dict.fromkeys(p for p in paths if p))


async def _post_revalidation(
    client: httpx.AsyncClient,
    semaphore: asyncio.Semaphore,
    base_url: str,
    payload: dict,
    secret: str,
) -> RevalidationResult:
    revalidate_url = f"{base_url.rstrip('/')}{REVALIDATE_ENDPOINT}"
    async with semaphore:
        logger.info("Revalidating %s at %s", payload, revalidate_url)
        try:
            response = await client.post(
                revalidate_url,
                json=payload,
                headers={"Authorization": f"Bearer {secret}"},
            )
        except httpx.HTTPError as exc:
            logger.error("Revalidation request to %s failed: %s", base_url, exc)
            return RevalidationResult(url=base_url, ok=False, detail=str(exc))

    if response.is_error:
        logger.error(
            "Revalidation failed for %s with status %s: %s",
            base_url,
            response.status_code,
            response.text,
        )
        return RevalidationResult(
            url=base_url,
            ok=False,
            status_code=response.status_code,
            detail=response.text,
        )

    logger.info("Storefront revalidation succeeded for %s: %s", base_url, response.text)
    return RevalidationResult(url=base_url, ok=True, status_code=response.status_code)


async def revalidate_customer_app(
    path: str | None = None,
    paths: Iterable[str | None] | None = None,
    *,
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[RevalidationResult]:
    """
    Ask every configured storefront to drop cached output for `path`/`paths`.

    Args:
        path: a single path to revalidate.
        paths: several paths; duplicates and empties are dropped.
        settings: override for tests; defaults to the cached settings.
        transport: optional httpx transport (tests use httpx.MockTransport).

    Returns:
        One RevalidationResult per storefront. Callers are free to ignore it;
        this function never raises for configuration or network failures.
    """
    settings = settings or get_settings()
    base_urls = settings.customer_app_base_urls
    secret = settings.REVALIDATION_SECRET

    if not base_urls:
        logger.warning("CUSTOMER_APP_BASE_URLS is not set or empty; skipping revalidation.")
        return []
    if not secret:
        logger.warning("REVALIDATION_SECRET is not set; skipping revalidation.")
        return []

    payload: dict
    if paths is not None:
        cleaned = unique_paths(paths)
        if not cleaned:
            return []
        payload = {"paths": cleaned}
    elif path:
        payload = {"path": path}
    else:
        return []

    semaphore = asyncio.Semaphore(max(1, settings.REVALIDATION_MAX_CONCURRENCY))
    async with httpx.AsyncClient(
        timeout=settings.REVALIDATION_TIMEOUT, transport=transport
    ) as client:
        outcomes = await asyncio.gather(
            *(
                _post_revalidation(client, semaphore, base_url, payload, secret)
                for base_url in base_urls
            ),
            return_exceptions=True,
        )

    results: list[RevalidationResult] = []
    for base_url, outcome in zip(base_urls, outcomes):
        if isinstance(outcome, BaseException):
            logger.error("Revalidation task for %s crashed: %s", base_url, outcome)
            results.append(RevalidationResult(url=base_url, ok=False, detail=str(outcome)))
        else:
            results.append(outcome)

    logger.info("Finished revalidation for %d storefront(s).", len(results))
    return results


def product_path(slug: str | None) -> str | None:
    return f"/products/{slug}" if slug else None


def category_path(slug: str | None) -> str | None:
    return f"/category/{slug}" if slug else None


def brand_path(slug: str | None) -> str | None:
    return f"/brand/{slug}" if slug else None
