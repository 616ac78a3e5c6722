from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.link import Appearance, ResolvedLink


class HeaderRecord(BaseModel):
    """The header global as supplied by the CMS."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    nav_items: Optional[List[Any]] = Field(default=None, alias="navItems")
    """Raw items; each link is validated on its own by the builder."""

    def raw_links(self) -> List[Any]:
        """Return the raw link objects in authored order.

        A missing ``navItems`` list is treated as empty.  An item without a
        ``link`` yields an empty descriptor, and an item that is not an object
        is passed through as-is; the builder skips both as malformed.
        """
        links: List[Any] = []
        for item in self.nav_items or []:
            if isinstance(item, dict):
                link = item.get("link")
                links.append({} if link is None else link)
            else:
                links.append(item)
        return links


class SkippedEntry(BaseModel):
    index: int
    reason: str
    detail: str = ""


class NavigationBuild(BaseModel):
    """Result of building one navigation list, with the entries left out."""

    links: List[ResolvedLink]
    skipped: List[SkippedEntry] = []


class RenderContext(BaseModel):
    """Presentation settings for one render of the header navigation.

    The defaults reproduce the site header: every entry is drawn as a plain
    link, followed by an icon-only link to the search page.
    """

    appearance: Optional[Appearance] = "link"
    """Appearance forced on every entry; ``None`` keeps each link's own hint."""

    class_name: Optional[str] = None
    search_href: str = "/search"
    search_label: str = "Search"


class RenderedElement(BaseModel):
    """Framework-agnostic description of one interactive navigation element."""

    tag: Literal["anchor"] = "anchor"
    href: str
    text: str
    attributes: Dict[str, str] = {}
    sr_only_text: Optional[str] = None
    icon: Optional[str] = None
    appearance: Appearance = "link"
