"""Navigation rendering: resolved links -> :class:`RenderedElement` records."""

from typing import Dict, Iterable, List, Optional

from app.models.link import ResolvedLink
from app.models.navigation import RenderContext, RenderedElement

SEARCH_ICON = "search"


def _render_link(link: ResolvedLink, context: RenderContext) -> RenderedElement:
    attributes: Dict[str, str] = {"aria-label": link.label}
    if link.opens_in_new_tab:
        attributes["target"] = "_blank"
    if link.rel:
        attributes["rel"] = " ".join(sorted(link.rel))
    if context.class_name:
        attributes["class"] = context.class_name

    return RenderedElement(
        href=link.href,
        text=link.label,
        attributes=attributes,
        appearance=context.appearance or link.appearance,
    )


def _render_search(context: RenderContext) -> RenderedElement:
    attributes = {"aria-label": context.search_label}
    if context.class_name:
        attributes["class"] = context.class_name
    return RenderedElement(
        href=context.search_href,
        text="",
        attributes=attributes,
        sr_only_text=context.search_label,
        icon=SEARCH_ICON,
    )


def render(
    links: Iterable[ResolvedLink],
    context: Optional[RenderContext] = None,
) -> List[RenderedElement]:
    """Map *links* to rendered elements, followed by the search link.

    The search link is always the last element, so an empty navigation list
    renders as the search link alone.
    """
    context = context or RenderContext()
    elements = [_render_link(link, context) for link in links]
    elements.append(_render_search(context))
    return elements
