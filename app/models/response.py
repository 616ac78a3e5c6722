from typing import List

from pydantic import BaseModel

from app.models.navigation import RenderedElement, SkippedEntry


class NavigationResponse(BaseModel):
    items: List[RenderedElement]
    """Rendered header elements; the search link is always last."""
    skipped: List[SkippedEntry]
