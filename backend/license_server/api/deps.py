# license_server/api/deps.py
from fastapi import Depends, Header, HTTPException, Request, status
from license_server.core.principal import Principal
from license_server.core.security import decode_access_token
from license_server.models.user import User

async def get_current_user(
    request: Request,
    authorization: str | None = Header(default=None),
) -> User:
    """
    FastAPI dependency to get the current authenticated user.

    The access token is read from:
    1. Authorization header (Bearer token) - preferred
    2. HttpOnly cookie (accessToken) - fallback for the browser client

    Raises:
        HTTPException (401): AUTH_REQUIRED / AUTH_INVALID_TOKEN / AUTH_USER_NOT_FOUND
    """
    token = None
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
    if not token:
        token = request.cookies.get("accessToken")

    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_REQUIRED")

    try:
        payload = decode_access_token(token)
        user_id: str = payload.get("sub")
    except Exception:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_INVALID_TOKEN")

    user = await User.get_or_none(id=user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_USER_NOT_FOUND")
    return user

async def require_admin(current: User = Depends(get_current_user)) -> User:
    """
    Builds on `get_current_user` and rejects non-admins with 403 FORBIDDEN_ADMIN_ONLY.
    """
    if not current.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="FORBIDDEN_ADMIN_ONLY")
    return current

async def get_principal(current: User = Depends(get_current_user)) -> Principal:
    """The authenticated caller as an explicit value for service calls."""
    return Principal(user_id=current.id, is_admin=current.is_admin)

async def get_admin_principal(current: User = Depends(require_admin)) -> Principal:
    return Principal(user_id=current.id, is_admin=True)
