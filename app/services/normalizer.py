"""Link normalisation: raw CMS link descriptor -> :class:`ResolvedLink`."""

import re
from typing import Any, Callable, Mapping, Optional, Union
from urllib.parse import urlparse

import httpx
from pydantic import ValidationError

from app.models.link import (
    APPEARANCES,
    Anchor,
    CustomURL,
    InternalReference,
    LinkDescriptor,
    RawLink,
    ResolvedLink,
)
from app.services.errors import (
    EmptyLabel,
    InvalidAnchor,
    InvalidURL,
    MalformedDescriptor,
    UnresolvableReference,
)

ReferenceResolver = Callable[[str, str], Optional[str]]
"""Maps ``(collection_slug, document_id)`` to a path, or *None* when not found."""

# Always added to the rel attribute of links that open a new browsing context
NEW_TAB_REL = frozenset({"noopener", "noreferrer"})

# Resolver failures that make a reference unresolvable instead of failing the list
RESOLVER_ERRORS = (LookupError, ValueError, RuntimeError, OSError, httpx.HTTPError)

_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.\-]*$", re.IGNORECASE)

# Whitespace, control characters and characters RFC 3986 never allows unescaped
_UNSAFE_URL_CHARS_RE = re.compile(r'[\s\x00-\x1f\x7f<>"\\^`{|}]')

_SCRIPT_SCHEMES = {"javascript", "vbscript", "data"}
_HIERARCHICAL_SCHEMES = {"http", "https", "ftp"}


def is_valid_url(url: str) -> bool:
    """Return *True* when *url* is a usable absolute or relative URI reference."""
    if not url or _UNSAFE_URL_CHARS_RE.search(url):
        return False

    try:
        parsed = urlparse(url)
        # Accessing .port validates it (raises on non-numeric or out of range)
        parsed.port
    except ValueError:
        return False

    if parsed.scheme:
        scheme = parsed.scheme.lower()
        if not _SCHEME_RE.match(scheme) or scheme in _SCRIPT_SCHEMES:
            return False
        if scheme in _HIERARCHICAL_SCHEMES and not parsed.hostname:
            return False
    return True


def parse_descriptor(raw: Union[Mapping[str, Any], LinkDescriptor]) -> LinkDescriptor:
    """Turn a raw CMS link object into a :class:`LinkDescriptor`.

    The variant is chosen by which of ``reference``, ``url`` and ``anchor`` is
    present.  For a reference, ``anchor`` is its optional in-page anchor.
    Blank strings left behind by the CMS form are ignored when another
    variant is populated.

    Raises:
        MalformedDescriptor: when zero or several variants are populated, the
            declared ``type`` disagrees with them, or a field has the wrong shape.
    """
    if isinstance(raw, LinkDescriptor):
        return raw
    if not isinstance(raw, Mapping):
        raise MalformedDescriptor(f"Expected a link object, got {type(raw).__name__}.")

    try:
        link = RawLink.model_validate(raw)
    except ValidationError as exc:
        raise MalformedDescriptor(f"Invalid link fields: {exc.error_count()} error(s).") from exc

    candidates = {}
    if link.reference is not None:
        candidates["reference"] = link.reference
    if link.url is not None:
        candidates["custom"] = link.url
    if link.reference is None and link.anchor is not None:
        candidates["anchor"] = link.anchor

    if len(candidates) > 1:
        candidates = {k: v for k, v in candidates.items() if not (isinstance(v, str) and not v.strip())}
    if len(candidates) != 1:
        kinds = ", ".join(sorted(candidates)) or "none"
        raise MalformedDescriptor(f"Expected exactly one link variant, found: {kinds}.")

    kind, _ = candidates.popitem()
    if link.type is not None and link.type != kind:
        raise MalformedDescriptor(f"Link type {link.type!r} does not match its {kind!r} field.")

    if kind == "reference":
        target = _reference_target(link)
    elif kind == "custom":
        target = CustomURL(url=link.url, new_tab=bool(link.new_tab))
    else:
        target = Anchor(fragment_id=link.anchor)

    return LinkDescriptor(
        label=link.label or "",
        appearance=link.appearance if link.appearance in APPEARANCES else "link",
        target=target,
    )


def _reference_target(link: RawLink) -> InternalReference:
    ref = link.reference
    value = ref.value
    slug = None
    if isinstance(value, dict):
        slug = value.get("slug") or None
        value = value.get("id")

    if not ref.relation_to or value is None or str(value) == "":
        raise MalformedDescriptor("Reference needs both a collection and a document id.")

    return InternalReference(
        collection_slug=ref.relation_to,
        document_id=str(value),
        anchor=(link.anchor or "").strip() or None,
        slug=str(slug) if slug is not None else None,
    )


def _clean_fragment(fragment: str) -> str:
    fragment = fragment.strip().lstrip("#")
    if not fragment or re.search(r"\s", fragment):
        raise InvalidAnchor(f"Invalid anchor {fragment!r}.")
    return fragment


def _resolve_reference(target: InternalReference, resolver: ReferenceResolver) -> str:
    try:
        path = resolver(target.collection_slug, target.document_id)
    except RESOLVER_ERRORS as exc:
        raise UnresolvableReference(
            f"{target.collection_slug}/{target.document_id} could not be resolved: {exc}"
        ) from exc

    if not isinstance(path, str) or not path.strip():
        raise UnresolvableReference(
            f"{target.collection_slug}/{target.document_id} could not be resolved."
        )

    if target.anchor is not None:
        path = f"{path}#{_clean_fragment(target.anchor)}"
    return path


def normalize(
    descriptor: Union[Mapping[str, Any], LinkDescriptor],
    resolver: ReferenceResolver,
) -> ResolvedLink:
    """Validate *descriptor* and return the equivalent :class:`ResolvedLink`.

    Args:
        descriptor: A raw CMS link object or an already parsed descriptor.
        resolver:   Maps an internal reference to a path; only called for
                    internal references.

    Raises:
        LinkError: one of its subclasses, naming why the link is unusable.
    """
    descriptor = parse_descriptor(descriptor)
    target = descriptor.target
    opens_in_new_tab = False

    if isinstance(target, InternalReference):
        href = _resolve_reference(target, resolver)
    elif isinstance(target, CustomURL):
        if not is_valid_url(target.url):
            raise InvalidURL(f"Invalid URL {target.url!r}.")
        href = target.url
        opens_in_new_tab = target.new_tab
    else:
        href = "#" + _clean_fragment(target.fragment_id)

    label = descriptor.label.strip()
    if not label:
        raise EmptyLabel(f"Link to {href!r} has an empty label.")

    return ResolvedLink(
        href=href,
        label=label,
        opens_in_new_tab=opens_in_new_tab,
        rel=NEW_TAB_REL if opens_in_new_tab else frozenset(),
        appearance=descriptor.appearance,
    )
