"""Errors raised while turning a raw link descriptor into a navigable link.

Every error carries a ``kind`` string so the list builder can report why an
entry was skipped without inspecting exception classes.
"""


class LinkError(ValueError):
    """Base class for per-descriptor normalisation failures."""

    kind = "LinkError"


class EmptyLabel(LinkError):
    kind = "EmptyLabel"


class InvalidURL(LinkError):
    kind = "InvalidURL"


class InvalidAnchor(LinkError):
    kind = "InvalidAnchor"


class UnresolvableReference(LinkError):
    kind = "UnresolvableReference"


class MalformedDescriptor(LinkError):
    """Zero or several link variants populated, or a field of the wrong shape."""

    kind = "MalformedDescriptor"
