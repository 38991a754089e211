"""FastAPI dependencies for authentication and tenant scoping."""

from typing import Optional
from uuid import UUID
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.user import User
from app.services.auth import decode_access_token

security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Extract and validate the current user from JWT token.

    Raises 401 if no token or invalid token; the offline client treats a 401
    as "session gone" and stops replaying queued writes.
    """
    if not credentials:
        raise _unauthorized("Authentication required.")

    payload = decode_access_token(credentials.credentials)
    if not payload:
        raise _unauthorized("Could not validate credentials")

    user_id: Optional[str] = payload.get("sub")
    try:
        user_uuid = UUID(str(user_id))
    except ValueError:
        raise _unauthorized("Invalid token payload")

    result = await db.execute(select(User).where(User.id == user_uuid))
    user = result.scalar_one_or_none()

    if not user:
        raise _unauthorized("User not found")

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled",
        )

    return user


async def get_current_business_id(current_user: User = Depends(get_current_user)) -> UUID:
    """Tenant scope for every owner-facing query."""
    return current_user.business_id
