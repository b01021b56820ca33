# license_server/models/license_key.py
import uuid
from enum import Enum
from typing import Optional
from tortoise import fields, models


class LicenseKeyStatus(str, Enum):
    ACTIVE = "active"
    REVOKED = "revoked"
    EXPIRED = "expired"


class LicenseKey(models.Model):
    """
    Seat license key issued against a subscription.
    - key: plain token (QB-QBYT-XXXX-XXXX-XXXX), unique across the whole history
    - owner: subscriber; one-to-one, so an owner can never hold two key rows
    - subscription: subscription the key was issued against
    - seat_count: seats snapshotted from the subscription at issuance
    - status: active / revoked / expired
    - last_used_at, usage_count: validation telemetry
    Only status, last_used_at, usage_count and updated_at change after creation.
    Rows are never deleted; revoked and expired keys stay for audit.
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    key = fields.CharField(max_length=64, unique=True, index=True)

    owner: fields.OneToOneRelation["User"] = fields.OneToOneField(
        "models.User", related_name="license_key", on_delete=fields.CASCADE
    )
    subscription: fields.ForeignKeyRelation["Subscription"] = fields.ForeignKeyField(
        "models.Subscription", related_name="license_keys", on_delete=fields.CASCADE
    )

    seat_count = fields.IntField()
    status = fields.CharEnumField(LicenseKeyStatus, max_length=16, default=LicenseKeyStatus.ACTIVE)

    last_used_at: Optional[fields.DatetimeField] = fields.DatetimeField(null=True)
    usage_count = fields.IntField(default=0)

    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "license_keys"

    @property
    def is_active(self) -> bool:
        return self.status == LicenseKeyStatus.ACTIVE
