from typing import Dict, Tuple

from pydantic import BaseModel, Field, field_validator

from app.models.navigation import HeaderRecord, RenderContext


class NavigationRenderRequest(BaseModel):
    header: HeaderRecord
    routes: Dict[str, str] = Field(
        default_factory=dict,
        description="Paths for internal references, keyed by '<collection>/<document id>'.",
        examples=[{"pages/42": "/about", "posts/7": "/posts/hello-world"}],
    )
    context: RenderContext = Field(default_factory=RenderContext)

    @field_validator("routes")
    @classmethod
    def _check_route_keys(cls, routes: Dict[str, str]) -> Dict[str, str]:
        for key in routes:
            collection, _, document_id = key.partition("/")
            if not collection or not document_id:
                raise ValueError(f"Route key {key!r} must look like '<collection>/<document id>'.")
        return routes

    def route_table(self) -> Dict[Tuple[str, str], str]:
        """Return ``routes`` keyed by ``(collection, document id)`` tuples."""
        table = {}
        for key, path in self.routes.items():
            collection, _, document_id = key.partition("/")
            table[(collection, document_id)] = path
        return table
