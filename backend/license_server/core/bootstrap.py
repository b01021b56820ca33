# license_server/core/bootstrap.py
"""
Bootstrap module for application initialization.
Creates the default admin account on first startup.
"""
import os
import logging
from license_server.models.user import User
from license_server.core.security import hash_password

logger = logging.getLogger("uvicorn.error")

async def ensure_default_admin() -> None:
    """
    If no admin exists in the database, create one from environment variables.
    Only takes effect when:
      - there is currently no user with role="admin"
      - and ADMIN_PASSWORD is set (no default weak password)
    Environment variables:
      ADMIN_EMAIL    (default: "admin@example.com")
      ADMIN_PASSWORD (required, otherwise nothing is created)
    If ADMIN_EMAIL already belongs to a regular user, that user is promoted.
    """
    if await User.filter(role="admin").exists():
        return

    admin_password = os.getenv("ADMIN_PASSWORD")
    if not admin_password:
        logger.warning("[bootstrap] No admin present, but ADMIN_PASSWORD not set -> skip creating default admin.")
        return

    admin_email = os.getenv("ADMIN_EMAIL", "admin@example.com").strip().lower()

    existing = await User.get_or_none(email=admin_email)
    if existing:
        existing.role = "admin"
        await existing.save(update_fields=["role", "updated_at"])
        logger.warning("[bootstrap] Promoted existing user to admin -> email=%s id=%s", existing.email, existing.id)
        return

    u = await User.create(
        email=admin_email,
        password_hash=hash_password(admin_password),
        role="admin",
        is_verified=True,
    )
    logger.warning("[bootstrap] Created default admin -> email=%s id=%s", u.email, u.id)
