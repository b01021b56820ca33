# license_server/models/user.py
"""
Database model for users.
Represents a subscriber (or administrator) account, containing authentication
credentials, profile information, and role-based access control.
"""
import uuid
from tortoise import fields, models

class User(models.Model):
    """
    User database model.

    Relationships:
    - Has many Subscriptions (one-to-many, via related_name="subscriptions")
    - Has at most one LicenseKey (one-to-one, via related_name="license_key")

    Security:
    - Password is stored as a hash (never store plain text passwords)
    - Email must be unique across all users; it is the login name
    - Role determines access level (user vs admin)
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)  # Primary key: unique user identifier
    email = fields.CharField(max_length=256, unique=True, index=True)  # Login name (unique, indexed)
    first_name = fields.CharField(max_length=128, null=True)
    last_name = fields.CharField(max_length=128, null=True)
    password_hash = fields.CharField(max_length=255)  # Argon2 hash, never plain text
    role = fields.CharField(max_length=16, default="user")  # "user" (default) or "admin"
    is_verified = fields.BooleanField(default=False)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        """Tortoise ORM metadata configuration."""
        table = "users"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def summary(self) -> dict:
        """Owner summary exposed next to a license key."""
        return {"id": str(self.id), "email": self.email}
