"""FastAPI dependencies that resolve the calling actor from a bearer token."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError

from coursegate.auth.models import Actor
from coursegate.auth.permissions import UserRole, has_permission
from coursegate.auth.security import decode_access_token
from coursegate.core.context import set_actor


def get_token_from_header(request: Request) -> str | None:
    """Extract Bearer token from Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    expected_parts = 2
    parts = auth_header.split()
    if len(parts) != expected_parts or parts[0].lower() != "bearer":
        return None

    return parts[1]


def _actor_from_token(token: str) -> Actor:
    payload = decode_access_token(token)
    try:
        actor_id = UUID(str(payload["sub"]))
        role = UserRole(payload.get("role", UserRole.USER.value))
    except ValueError as e:
        raise JWTError("Malformed token claims") from e

    set_actor(actor_id, role.value)
    return Actor(actor_id=actor_id, role=role, email=payload.get("email"))


async def get_current_actor(
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> Actor:
    """Get the authenticated actor.

    Raises:
        HTTPException(401): If token is missing, invalid, or expired
    """
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token not provided",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return _actor_from_token(token)
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


async def get_current_actor_optional(
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> Actor | None:
    """Get the actor if authenticated, None for anonymous callers."""
    if not token:
        return None
    try:
        return _actor_from_token(token)
    except JWTError:
        return None


def require_permission(required_role: UserRole):
    """Create dependency requiring at least a permission level."""

    async def permission_checker(
        actor: Annotated[Actor, Depends(get_current_actor)],
    ) -> Actor:
        if not has_permission(actor.role, required_role):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permission",
            )
        return actor

    return permission_checker


CurrentActor = Annotated[Actor, Depends(get_current_actor)]
OptionalActor = Annotated[Actor | None, Depends(get_current_actor_optional)]
TeacherActor = Annotated[Actor, Depends(require_permission(UserRole.TEACHER))]
