# license_server/schemas/auth.py
"""
Pydantic schemas for authentication endpoints.
"""
from typing import Optional
from pydantic import BaseModel

class RegisterIn(BaseModel):
    """
    Request model for account registration.
    Fields are optional at the schema level so a missing email/password is
    reported as 400 by the route instead of a 422 validation error.
    """
    email: Optional[str] = None
    password: Optional[str] = None
    firstName: Optional[str] = None
    lastName: Optional[str] = None

class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None

class UserOut(BaseModel):
    """
    User information returned by auth endpoints (never includes the password hash).
    """
    id: str
    email: str
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    role: str = "user"
    isAdmin: bool = False
    isVerified: bool = False
    createdAt: Optional[str] = None

class AuthOut(BaseModel):
    """User plus the access token, returned by register and login."""
    user: UserOut
    token: str
