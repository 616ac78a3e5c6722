"""Fetching the header global from the CMS REST API."""

import logging
from typing import Optional
from urllib.parse import urljoin

import httpx

from app.models.navigation import HeaderRecord

logger = logging.getLogger(__name__)

HEADER_GLOBAL = "header"
_CMS_TIMEOUT = 10


async def fetch_header(
    base_url: str,
    timeout: float = _CMS_TIMEOUT,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> HeaderRecord:
    """Fetch the header global from the CMS at *base_url*.

    The global is requested at ``depth=1`` so referenced documents come back
    populated and rarely need a separate lookup.

    Raises:
        httpx.HTTPError: on network or HTTP errors.
        ValueError: if the response body is not a valid header record.
    """
    url = urljoin(base_url.rstrip("/") + "/", f"api/globals/{HEADER_GLOBAL}")
    async with httpx.AsyncClient(
        timeout=timeout, follow_redirects=True, transport=transport
    ) as client:
        resp = await client.get(url, params={"depth": 1})
        resp.raise_for_status()
        payload = resp.json()

    header = HeaderRecord.model_validate(payload)
    logger.info("CMS: fetched header with %d nav items", len(header.nav_items or []))
    return header
