# loyalty_app/core/auth.py
from typing import Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError

from loyalty_app.core.config import get_settings
from loyalty_app.schemas.session import AuthSession

settings = get_settings()

# HTTP Bearer scheme:
# - auto_error=False => missing Authorization header will NOT raise immediately
#   so we can support "guest" mode (unauthenticated).
bearer_scheme = HTTPBearer(auto_error=False)


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


def get_current_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> AuthSession | None:
    """
    Resolve the caller from a Supabase JWT.

    Flow:
      1. If no Authorization header => guest => return None.
      2. Decode JWT => extract 'sub' (auth user id), 'email', 'exp'.

    Unlike the client core, the API never looks at profile rows here; the
    screens that need them fetch them explicitly.

    Raises:
        HTTPException(401): if token is malformed or missing 'sub'.
    """
    if credentials is None:
        return None  # guest mode

    payload = decode_access_token(credentials.credentials)
    sub = payload.get("sub")
    if not sub:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token missing sub",
        )

    return AuthSession(
        user_id=str(sub),
        email=payload.get("email"),
        access_token=credentials.credentials,
        expires_at=payload.get("exp"),
    )


def require_auth(identity: AuthSession | None = Depends(get_current_identity)) -> AuthSession:
    """
    Enforce authentication.

    Raises:
        HTTPException(401): if the caller is a guest.
    """
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return identity
