# license_server/api/routers/auth.py
import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from license_server.api.deps import get_current_user
from license_server.core.clock import isoformat
from license_server.core.exceptions import EmailAlreadyRegisteredError, InvalidInputError
from license_server.core.security import create_access_token, hash_password, verify_password
from license_server.models.user import User
from license_server.schemas.auth import AuthOut, LoginRequest, RegisterIn, UserOut

logger = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/auth", tags=["auth"])


def _user_out(u: User) -> UserOut:
    return UserOut(
        id=str(u.id),
        email=u.email,
        firstName=u.first_name,
        lastName=u.last_name,
        role=u.role,
        isAdmin=u.is_admin,
        isVerified=u.is_verified,
        createdAt=isoformat(u.created_at),
    )


def _issue_session(response: Response, user: User) -> AuthOut:
    token = create_access_token(str(user.id), user.role)
    response.set_cookie("accessToken", token, httponly=True, secure=False, samesite="lax")
    return AuthOut(user=_user_out(user), token=token)


@router.post("/register", response_model=AuthOut, status_code=status.HTTP_201_CREATED)
async def register(body: RegisterIn, response: Response):
    """
    Register a new subscriber account and sign it in.

    Errors:
        400: email or password missing
        409: email already registered
    """
    email = (body.email or "").strip().lower()
    if not email or not body.password:
        raise InvalidInputError("Email and password required")
    if await User.filter(email=email).exists():
        raise EmailAlreadyRegisteredError()

    u = await User.create(
        email=email,
        first_name=(body.firstName or None),
        last_name=(body.lastName or None),
        password_hash=hash_password(body.password),
        role="user",
    )
    logger.info("[auth] Registered user id=%s", u.id)
    return _issue_session(response, u)


@router.post("/login", response_model=AuthOut)
async def login(payload: LoginRequest, response: Response):
    """
    Authenticate with email/password.
    The token is returned in the body and set as an HttpOnly "accessToken" cookie.

    Raises:
        HTTPException (400): missing credentials
        HTTPException (401): invalid credentials
    """
    email = (payload.email or "").strip().lower()
    if not email or not payload.password:
        raise InvalidInputError("Email and password required")
    user = await User.get_or_none(email=email)
    if not user or not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                            detail={"code": "AUTH_INVALID_CREDENTIALS", "message": "Invalid credentials"})
    return _issue_session(response, user)


@router.get("/user", response_model=UserOut)
async def current_user(user: User = Depends(get_current_user)):
    return _user_out(user)


@router.post("/logout")
async def logout(response: Response):
    """
    Clear the access token cookie. Always succeeds.
    Tokens themselves stay valid until they expire.
    """
    response.delete_cookie("accessToken")
    return {"message": "Logged out successfully"}
