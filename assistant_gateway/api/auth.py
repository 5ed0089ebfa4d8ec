"""
Caller identity.

Authentication happens upstream of the gateway; the authenticating proxy
forwards the verified identity as X-User-Id and X-User-Role. This module
turns those headers into an Identity and enforces role checks.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from fastapi import Depends, Header

from assistant_gateway.core.exceptions import AuthenticationError, AuthorizationError

USER_ID_HEADER = "X-User-Id"
USER_ROLE_HEADER = "X-User-Role"


class Role(str, Enum):
    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"


@dataclass(frozen=True)
class Identity:
    """Authenticated caller: opaque user id plus role claim."""

    user_id: str
    role: Role = Role.STUDENT


def get_current_identity(
    user_id: Optional[str] = Header(default=None, alias=USER_ID_HEADER),
    role: Optional[str] = Header(default=None, alias=USER_ROLE_HEADER),
) -> Identity:
    """
    FastAPI dependency resolving the caller.

    Raises:
        AuthenticationError: No user id header.
        AuthorizationError: Unknown role claim.
    """
    if not user_id or not user_id.strip():
        raise AuthenticationError()

    if not role:
        return Identity(user_id=user_id.strip())

    try:
        parsed = Role(role.strip().lower())
    except ValueError as e:
        raise AuthorizationError(f"Unknown role: {role}", role=role) from e
    return Identity(user_id=user_id.strip(), role=parsed)


def require_role(*roles: Role) -> Callable[..., Identity]:
    """
    Dependency factory restricting an endpoint to the given roles.

    Example:
        >>> @router.post("/circuit/reset")
        ... async def reset(identity: Identity = Depends(require_role(Role.ADMIN))):
        ...     ...
    """

    def dependency(identity: Identity = Depends(get_current_identity)) -> Identity:
        if identity.role not in roles:
            raise AuthorizationError(
                f"Role '{identity.role.value}' is not allowed to perform this action",
                role=identity.role.value,
            )
        return identity

    return dependency
