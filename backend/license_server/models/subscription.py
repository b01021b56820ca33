# license_server/models/subscription.py
"""
Database model for subscriptions.
A subscription records how many seats a user pays for (or trials), the billing
interval, and the current period. Payment collection itself happens elsewhere;
this table is the local source of truth the license registry reads.
"""
import datetime as dt
import uuid
from enum import Enum
from typing import Optional

from tortoise import fields, models

from license_server.core.clock import as_utc, isoformat, utc_now


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    INCOMPLETE = "incomplete"
    EXPIRED = "expired"


class BillingInterval(str, Enum):
    MONTH = "month"
    YEAR = "year"


class Subscription(models.Model):
    """
    Subscription database model.

    Relationships:
    - Belongs to a User (many-to-one)
    - Has many LicenseKeys (one-to-many, via related_name="license_keys")

    Trial subscriptions carry is_trial_mode=True and a trial_ends_at deadline;
    once that deadline passes the subscription is moved to "expired" (lazily by
    license validation, or by the trial sweeper).
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    user = fields.ForeignKeyField(
        "models.User",
        related_name="subscriptions",
        on_delete=fields.CASCADE,
    )
    user_count = fields.IntField()  # Number of seats purchased
    billing_interval = fields.CharEnumField(BillingInterval, max_length=8, default=BillingInterval.MONTH)
    total_price = fields.DecimalField(max_digits=10, decimal_places=2)  # Price per interval after discount
    status = fields.CharEnumField(SubscriptionStatus, max_length=16, default=SubscriptionStatus.ACTIVE)

    is_trial_mode = fields.BooleanField(default=False)
    trial_ends_at = fields.DatetimeField(null=True)

    has_email_support = fields.BooleanField(default=False)
    has_on_call_support = fields.BooleanField(default=False)

    current_period_start = fields.DatetimeField(null=True)
    current_period_end = fields.DatetimeField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "subscriptions"

    def trial_elapsed(self, now: Optional[dt.datetime] = None) -> bool:
        """True when this is a trial whose window has already closed."""
        if not self.is_trial_mode or self.trial_ends_at is None:
            return False
        return as_utc(self.trial_ends_at) <= (as_utc(now) or utc_now())

    def is_usable(self, now: Optional[dt.datetime] = None) -> bool:
        """Active, or trialing with the trial window still open."""
        if self.status not in (SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIALING):
            return False
        return not self.trial_elapsed(now)

    def summary(self) -> dict:
        """Subscription summary exposed next to a validated license key."""
        expires_at = self.trial_ends_at if self.is_trial_mode else self.current_period_end
        return {
            "userCount": self.user_count,
            "totalPrice": str(self.total_price),
            "status": SubscriptionStatus(self.status).value,
            "expiresAt": isoformat(expires_at),
        }

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "userCount": self.user_count,
            "billingInterval": BillingInterval(self.billing_interval).value,
            "totalPrice": str(self.total_price),
            "status": SubscriptionStatus(self.status).value,
            "isTrialMode": self.is_trial_mode,
            "trialEndsAt": isoformat(self.trial_ends_at),
            "hasEmailSupport": self.has_email_support,
            "hasOnCallSupport": self.has_on_call_support,
            "currentPeriodStart": isoformat(self.current_period_start),
            "currentPeriodEnd": isoformat(self.current_period_end),
            "createdAt": isoformat(self.created_at),
        }
