"""Reference resolvers: map ``(collection, document id)`` to a site path."""

import logging
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple
from urllib.parse import quote, urljoin

import httpx

from app.models.link import InternalReference
from app.services.errors import LinkError
from app.services.normalizer import parse_descriptor

logger = logging.getLogger(__name__)

# Documents in this collection are served from the site root
PAGES_COLLECTION = "pages"

_CMS_TIMEOUT = 10


def collection_path(collection_slug: str, slug: str) -> str:
    """Return the site path of the document *slug* in *collection_slug*.

    Pages live at ``/<slug>``; every other collection is prefixed with its
    own slug, e.g. ``/posts/<slug>``.
    """
    slug = slug.strip("/")
    if collection_slug == PAGES_COLLECTION:
        return f"/{slug}"
    return f"/{collection_slug}/{slug}"


def populated_routes(raw_descriptors: Iterable[Any]) -> Dict[Tuple[str, str], str]:
    """Collect paths for references whose document the CMS already populated.

    Descriptors that do not parse are ignored here; the builder reports them.
    """
    routes: Dict[Tuple[str, str], str] = {}
    for raw in raw_descriptors:
        try:
            target = parse_descriptor(raw).target
        except LinkError:
            continue
        if isinstance(target, InternalReference) and target.slug:
            key = (target.collection_slug, target.document_id)
            routes.setdefault(key, collection_path(target.collection_slug, target.slug))
    return routes


class StaticResolver:
    """Resolve references from an in-memory route table."""

    def __init__(self, routes: Optional[Mapping[Tuple[str, str], str]] = None) -> None:
        self._routes = dict(routes or {})

    def __call__(self, collection_slug: str, document_id: str) -> Optional[str]:
        return self._routes.get((collection_slug, document_id))


class CMSResolver:
    """Resolve references by fetching the document from the CMS REST API.

    Lookups are cached on the instance, so create one resolver per request:
    a page that links the same document twice costs one round-trip.

    Raises (from ``__call__``):
        httpx.HTTPError: on network errors or non-404 error responses.
        ValueError: if the CMS returns a body that is not JSON.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = _CMS_TIMEOUT,
        seed: Optional[Mapping[Tuple[str, str], str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/") + "/"
        self._timeout = timeout
        self._transport = transport
        self._cache: Dict[Tuple[str, str], Optional[str]] = dict(seed or {})

    def _document_url(self, collection_slug: str, document_id: str) -> str:
        return urljoin(
            self._base_url,
            f"api/{quote(collection_slug, safe='')}/{quote(document_id, safe='')}",
        )

    async def __call__(self, collection_slug: str, document_id: str) -> Optional[str]:
        key = (collection_slug, document_id)
        if key in self._cache:
            return self._cache[key]

        url = self._document_url(collection_slug, document_id)
        async with httpx.AsyncClient(
            timeout=self._timeout, follow_redirects=True, transport=self._transport
        ) as client:
            resp = await client.get(url, params={"depth": 0})

        if resp.status_code == 404:
            logger.info("CMS: %s/%s not found", collection_slug, document_id)
            path = None
        else:
            resp.raise_for_status()
            document = resp.json()
            slug = document.get("slug") if isinstance(document, dict) else None
            path = collection_path(collection_slug, str(slug)) if slug else None

        self._cache[key] = path
        return path
