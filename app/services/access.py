"""Read-access policies for CMS-backed resources.

Policies are plain functions of an :class:`AccessContext`.  The caller builds
the context from the incoming request and passes it in; no policy looks at
global or request-local state on its own.
"""

from typing import Callable, FrozenSet, Optional

from fastapi import Request
from pydantic import BaseModel, ConfigDict

USER_HEADER = "x-user"
ROLES_HEADER = "x-user-roles"


class AccessContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    user: Optional[str] = None
    roles: FrozenSet[str] = frozenset()


AccessPolicy = Callable[[AccessContext], bool]


def public(context: AccessContext) -> bool:
    return True


def authenticated(context: AccessContext) -> bool:
    return context.user is not None


def has_role(role: str) -> AccessPolicy:
    """Return a policy granting access to authenticated users holding *role*."""

    def policy(context: AccessContext) -> bool:
        return authenticated(context) and role in context.roles

    return policy


# The header is shown to every visitor
HEADER_READ: AccessPolicy = public


def context_from_request(request: Request) -> AccessContext:
    """Build the access context for *request* from identity headers set upstream."""
    user = request.headers.get(USER_HEADER) or None
    raw_roles = request.headers.get(ROLES_HEADER, "")
    roles = frozenset(r.strip() for r in raw_roles.split(",") if r.strip())
    return AccessContext(user=user, roles=roles)
