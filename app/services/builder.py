"""Navigation list building for the site header.

The header record authored in the CMS is an ordered list of raw link
descriptors.  Each descriptor is normalised on its own; one that cannot be
normalised is left out (and reported) instead of breaking the whole header.
The surviving links are then deduplicated by ``href``, keeping the first
occurrence, so the output is always a subsequence of the input.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple, Union

from app.models.link import InternalReference, LinkDescriptor, ResolvedLink
from app.models.navigation import NavigationBuild, SkippedEntry
from app.services.errors import LinkError
from app.services.normalizer import RESOLVER_ERRORS, ReferenceResolver, normalize, parse_descriptor

logger = logging.getLogger(__name__)

AsyncReferenceResolver = Callable[[str, str], Awaitable[Optional[str]]]

# Seconds allowed for a single internal reference resolution in build_report_async
DEFAULT_RESOLVE_TIMEOUT = 5.0

DUPLICATE_HREF = "DuplicateHref"


def _assemble(
    items: List[Union[Any, LinkError]],
    resolver: ReferenceResolver,
) -> NavigationBuild:
    """Normalise *items* in order, skipping failures and duplicate hrefs."""
    links: List[ResolvedLink] = []
    skipped: List[SkippedEntry] = []
    seen: set[str] = set()

    for index, item in enumerate(items):
        if isinstance(item, LinkError):
            error: Optional[LinkError] = item
        else:
            try:
                link = normalize(item, resolver)
                error = None
            except LinkError as exc:
                error = exc

        if error is not None:
            logger.warning("Navigation: skipping item %d (%s) – %s", index, error.kind, error)
            skipped.append(SkippedEntry(index=index, reason=error.kind, detail=str(error)))
            continue

        if link.href in seen:
            logger.info("Navigation: dropping duplicate href %s at item %d", link.href, index)
            skipped.append(
                SkippedEntry(index=index, reason=DUPLICATE_HREF, detail=f"Duplicate of {link.href!r}.")
            )
            continue

        seen.add(link.href)
        links.append(link)

    return NavigationBuild(links=links, skipped=skipped)


def build_report(
    raw_descriptors: Iterable[Any],
    resolver: ReferenceResolver,
) -> NavigationBuild:
    """Build the navigation list and report every entry that was left out."""
    return _assemble(list(raw_descriptors), resolver)


def build(raw_descriptors: Iterable[Any], resolver: ReferenceResolver) -> List[ResolvedLink]:
    """Return the ordered, deduplicated list of links for *raw_descriptors*.

    Never raises for a bad descriptor: failing entries are skipped, and an
    empty list is a valid result.
    """
    return build_report(raw_descriptors, resolver).links


async def _resolve_one(
    resolver: AsyncReferenceResolver,
    collection_slug: str,
    document_id: str,
    timeout: float,
) -> Optional[str]:
    try:
        return await asyncio.wait_for(resolver(collection_slug, document_id), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(
            "Navigation: resolving %s/%s timed out after %ss", collection_slug, document_id, timeout
        )
    except RESOLVER_ERRORS as exc:
        logger.warning("Navigation: resolving %s/%s failed – %s", collection_slug, document_id, exc)
    return None


async def build_report_async(
    raw_descriptors: Iterable[Any],
    resolver: AsyncReferenceResolver,
    timeout: float = DEFAULT_RESOLVE_TIMEOUT,
) -> NavigationBuild:
    """Like :func:`build_report`, with an async resolver.

    Internal references are resolved concurrently, each under *timeout*
    seconds; a reference that times out or errors counts as unresolvable.
    The result keeps descriptor order whatever order resolutions finish in.
    """
    items: List[Union[LinkDescriptor, LinkError]] = []
    for raw in raw_descriptors:
        try:
            items.append(parse_descriptor(raw))
        except LinkError as exc:
            items.append(exc)

    # One resolution per distinct reference, in first-seen order
    keys: Dict[Tuple[str, str], None] = {}
    for item in items:
        if isinstance(item, LinkDescriptor) and isinstance(item.target, InternalReference):
            keys[(item.target.collection_slug, item.target.document_id)] = None

    paths = await asyncio.gather(
        *(_resolve_one(resolver, collection, doc_id, timeout) for collection, doc_id in keys)
    )
    resolved = dict(zip(keys, paths))

    return _assemble(items, lambda collection, doc_id: resolved.get((collection, doc_id)))
