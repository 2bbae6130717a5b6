# app/core/auth.py
import logging
from typing import Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from supabase import AsyncClient

from app.core.config import get_settings
from app.core.errors import DB_ERRORS
from app.database import get_db
from app.repositories.admin_repo import AdminUserRepository

logger = logging.getLogger(__name__)

# auto_error=False so a missing header answers 401 with our JSON body
# instead of FastAPI's default 403.
bearer_scheme = HTTPBearer(auto_error=False)

admin_repo = AdminUserRepository()


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and verify a Supabase access token (JWT).

    Verification:
      - signature (HS256 using SUPABASE_JWT_SECRET)
      - expiration time (exp)
      - audience is NOT verified (Supabase 'aud' may vary)

    Raises:
        HTTPException(401): if token is invalid/expired.
    """
    settings = get_settings()
    try:
        return jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[settings.SUPABASE_JWT_ALG],
            options={"verify_aud": False},
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )


async def require_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncClient = Depends(get_db),
) -> dict[str, Any]:
    """
    Enforce that the caller is a back-office admin.

    Flow:
      1. No Authorization header => 401.
      2. Decode JWT => extract 'sub' (auth user id).
      3. Look up 'sub' in admin_users => 403 if absent.
      4. Refresh last_login (best effort).

    Returns:
        The admin_users row.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )

    payload = decode_access_token(credentials.credentials)
    sub = payload.get("sub")
    if not sub:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token missing sub",
        )

    admin = await admin_repo.get_by_id(db, sub)
    if admin is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )

    try:
        await admin_repo.touch_last_login(db, sub)
    except DB_ERRORS as exc:
        logger.warning("Could not update last_login for admin %s: %s", sub, exc)

    return admin
