"""Link descriptors as authored in the CMS and as resolved for rendering."""

from typing import Annotated, Any, Dict, FrozenSet, Literal, Optional, Union, get_args

from pydantic import BaseModel, ConfigDict, Field

Appearance = Literal["link", "button"]
APPEARANCES = get_args(Appearance)


# ---------------------------------------------------------------------------
# Raw CMS shape
# ---------------------------------------------------------------------------

class RawReference(BaseModel):
    """The ``reference`` relationship field of a CMS link."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    relation_to: str = Field(default="", alias="relationTo")
    value: Union[str, int, Dict[str, Any], None] = None
    """Either the bare document id or, at ``depth >= 1``, the populated document."""


class RawLink(BaseModel):
    """A link field exactly as the CMS serialises it."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: Optional[str] = None
    label: Optional[str] = None
    appearance: Optional[str] = None
    """Free-form hint; values other than ``"link"`` and ``"button"`` fall back to ``"link"``."""
    new_tab: Optional[bool] = Field(default=None, alias="newTab")
    reference: Optional[RawReference] = None
    url: Optional[str] = None
    anchor: Optional[str] = None


# ---------------------------------------------------------------------------
# Tagged variants
# ---------------------------------------------------------------------------

class InternalReference(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["reference"] = "reference"
    collection_slug: str
    document_id: str
    anchor: Optional[str] = None
    slug: Optional[str] = None  # present when the CMS populated the document


class CustomURL(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["custom"] = "custom"
    url: str
    new_tab: bool = False


class Anchor(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["anchor"] = "anchor"
    fragment_id: str


LinkTarget = Annotated[
    Union[InternalReference, CustomURL, Anchor], Field(discriminator="kind")
]


class LinkDescriptor(BaseModel):
    """A validated descriptor with exactly one populated variant."""

    model_config = ConfigDict(frozen=True)

    label: str = ""
    appearance: Appearance = "link"
    target: LinkTarget


class ResolvedLink(BaseModel):
    """A normalised link whose ``href`` can be used as-is."""

    model_config = ConfigDict(frozen=True)

    href: str
    label: str
    opens_in_new_tab: bool = False
    rel: FrozenSet[str] = frozenset()
    appearance: Appearance = "link"
