"""
Authentication dependencies for FastAPI.

Bearer tokens are issued by the external identity provider and stored in
the UserSession table; we only look them up.
"""
from typing import Optional
import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.permissions import AuthenticatedActor
from app.db.base import utcnow
from app.db.models.user import User, UserSession
from app.db.session import get_db

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl="auth/token",
    # Missing tokens are reported by get_current_user with our own message
    auto_error=False
)


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    Validate the bearer token and return the current user.

    Args:
        token: Session token from the Authorization header
        db: Database session

    Returns:
        User: The current authenticated user

    Raises:
        HTTPException: 401 if the token is missing, unknown, expired or
            belongs to an inactive user
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if not token:
        raise credentials_exception

    current_time = utcnow()
    result = await db.execute(
        select(UserSession).where(
            UserSession.session_token == token,
            UserSession.expires_at > current_time
        )
    )
    session = result.scalar_one_or_none()
    if not session:
        logger.info("[AUTH] Rejected unknown or expired session token")
        raise credentials_exception

    session.last_activity = current_time

    user = await db.get(User, session.user_id)
    if not user or not user.is_active:
        logger.warning(f"[AUTH] Session {session.id} points to a missing or inactive user")
        raise credentials_exception

    return user


async def get_current_actor(
    current_user: User = Depends(get_current_user)
) -> AuthenticatedActor:
    """
    The caller as passed to service calls: id, role and granted permissions.
    """
    return AuthenticatedActor.for_role(current_user.id, current_user.role)
