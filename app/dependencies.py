"""
Federation API Dependencies

Database access and admin permission checks
"""

from typing import Optional
from fastapi import Depends, HTTPException, status, Request
from loguru import logger

from app.config import get_settings
from database.supabase_client import FederationDB


class AdminContext:
    """Authenticated admin user"""

    def __init__(self, user_id: str, role: str, email: Optional[str] = None):
        self.user_id = user_id
        self.role = role
        self.email = email


def get_db() -> FederationDB:
    """Database access for a request"""
    return FederationDB()


def _bearer_token(request: Request) -> str:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required"
        )
    return auth_header.split(" ", 1)[1].strip()


async def require_admin(
    request: Request,
    db: FederationDB = Depends(get_db)
) -> AdminContext:
    """
    Admin permission required

    1. Bearer token from the Authorization header
    2. Supabase Auth user for the token
    3. `profiles.role` must be one of ADMIN_ROLES
    """
    token = _bearer_token(request)

    try:
        user_response = db.client.auth.get_user(token)
    except Exception as e:
        logger.warning(f"Token verification failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token"
        )

    if not user_response or not user_response.user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token"
        )

    user = user_response.user
    profile = await db.get_profile(user.id)
    role = (profile or {}).get("role")

    if role not in get_settings().admin_roles:
        logger.warning(f"Admin access denied: user={user.id} role={role}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin permission required"
        )

    return AdminContext(user_id=user.id, role=role, email=getattr(user, "email", None))
