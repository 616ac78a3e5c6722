import logging

import httpx
from fastapi import APIRouter, Depends, HTTPException, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.config import Settings, get_settings
from app.models.navigation import HeaderRecord
from app.models.request import NavigationRenderRequest
from app.models.response import NavigationResponse
from app.services.access import HEADER_READ, context_from_request
from app.services.builder import build_report, build_report_async
from app.services.cms import fetch_header
from app.services.renderer import render
from app.services.resolver import CMSResolver, StaticResolver, populated_routes

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)
router = APIRouter()


def _rate_limit() -> str:
    return get_settings().rate_limit


@router.post(
    "/navigation/render",
    response_model=NavigationResponse,
    summary="Render header navigation from a supplied header record",
)
@limiter.limit(_rate_limit)
async def render_navigation(request: Request, body: NavigationRenderRequest) -> NavigationResponse:
    """Build and render the navigation for a header record sent by the caller.

    Internal references are resolved from ``routes``, or from the document
    itself when the CMS populated it.  Entries that cannot be resolved are
    listed under ``skipped``; they never fail the request.
    """
    raw_links = body.header.raw_links()
    logger.info("Render request received", extra={"nav_items": len(raw_links)})

    routes = populated_routes(raw_links)
    routes.update(body.route_table())
    result = build_report(raw_links, StaticResolver(routes))

    return NavigationResponse(items=render(result.links, body.context), skipped=result.skipped)


@router.get(
    "/navigation",
    response_model=NavigationResponse,
    summary="Render header navigation from the CMS header global",
)
@limiter.limit(_rate_limit)
async def get_navigation(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> NavigationResponse:
    """Fetch the header global from the configured CMS and render it."""
    if not HEADER_READ(context_from_request(request)):
        raise HTTPException(status_code=403, detail="Not allowed to read the header.")

    if not settings.cms_url:
        logger.error("Navigation requested but no CMS URL is configured")
        raise HTTPException(status_code=503, detail="CMS is not configured.")

    header = await _fetch_header(settings)
    raw_links = header.raw_links()

    resolver = CMSResolver(
        settings.cms_url,
        timeout=settings.cms_timeout,
        seed=populated_routes(raw_links),
    )
    result = await build_report_async(raw_links, resolver, timeout=settings.resolve_timeout)
    if result.skipped:
        logger.warning("Navigation: %d of %d items skipped", len(result.skipped), len(raw_links))

    return NavigationResponse(items=render(result.links), skipped=result.skipped)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

async def _fetch_header(settings: Settings) -> HeaderRecord:
    """Fetch the header global and propagate errors as HTTP exceptions."""
    try:
        return await fetch_header(settings.cms_url, timeout=settings.cms_timeout)
    except httpx.TimeoutException:
        logger.error("Timeout fetching header from %s", settings.cms_url)
        raise HTTPException(status_code=504, detail="The CMS timed out.")
    except httpx.HTTPStatusError as exc:
        logger.error("HTTP error fetching header from %s: %s", settings.cms_url, exc)
        raise HTTPException(
            status_code=502, detail=f"CMS returned HTTP {exc.response.status_code}."
        )
    except (httpx.RequestError, ValueError) as exc:
        logger.error("Error fetching header from %s: %s", settings.cms_url, exc)
        raise HTTPException(status_code=502, detail=str(exc))
