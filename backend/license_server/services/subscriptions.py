# license_server/services/subscriptions.py
"""
Local subscription lifecycle and pricing.

Seats cost `price_per_user` per month. Yearly billing is twelve months minus
`yearly_discount`, rounded to whole currency units. Payment collection is not
handled here: subscriptions are recorded as active immediately.
"""
import datetime as dt
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from license_server.config import settings
from license_server.core.clock import isoformat, utc_now
from license_server.core.exceptions import ConflictError, InvalidInputError
from license_server.models import BillingInterval, Subscription, SubscriptionStatus

logger = logging.getLogger(__name__)

PERIOD_DAYS = {
    BillingInterval.MONTH: 30,
    BillingInterval.YEAR: 365,
}

OPEN_STATUSES = (SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIALING)


def _parse_interval(raw: str | BillingInterval) -> BillingInterval:
    try:
        return BillingInterval(raw)
    except ValueError:
        raise InvalidInputError("billingInterval must be 'month' or 'year'")


def calculate_price(user_count: int, billing_interval: str | BillingInterval = BillingInterval.MONTH) -> Decimal:
    """
    Price for one billing period.

    >>> calculate_price(10, "month")
    Decimal('50.00')
    >>> calculate_price(10, "year")
    Decimal('540.00')
    """
    if user_count < 1:
        raise InvalidInputError("Valid user count is required")
    interval = _parse_interval(billing_interval)
    monthly = settings.price_per_user * user_count
    if interval == BillingInterval.MONTH:
        return monthly.quantize(Decimal("0.01"))
    yearly = (monthly * 12 * (Decimal(1) - settings.yearly_discount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return yearly.quantize(Decimal("0.01"))


def pricing_info() -> dict:
    return {
        "pricePerUser": str(settings.price_per_user),
        "yearlyDiscount": str(settings.yearly_discount),
        "trialDays": settings.trial_days,
        "trialSeatCount": settings.trial_seat_count,
    }


async def get_current_subscription(user_id) -> Optional[Subscription]:
    """Latest subscription of a user, whatever its status."""
    return await Subscription.filter(user_id=user_id).order_by("-created_at").first()


async def expire_trial(sub: Subscription, now: Optional[dt.datetime] = None) -> None:
    """
    Move a trial whose window has closed to "expired".
    Only the subscription changes; the owner's key stays as it is and starts
    validating again once a paid subscription replaces the trial.
    """
    if sub.status not in OPEN_STATUSES:
        return
    now = now or utc_now()
    await Subscription.filter(id=sub.id, status__in=list(OPEN_STATUSES)).update(
        status=SubscriptionStatus.EXPIRED, updated_at=now
    )
    sub.status = SubscriptionStatus.EXPIRED
    logger.info("[subscriptions] Trial subscription %s expired (trial ended %s)",
                sub.id, isoformat(sub.trial_ends_at))


async def _ensure_no_open_subscription(user_id) -> None:
    """
    Refuse a second open subscription. Trials past their window no longer
    count as open: they are expired on the way.
    """
    now = utc_now()
    for sub in await Subscription.filter(user_id=user_id, status__in=list(OPEN_STATUSES)):
        if sub.trial_elapsed(now):
            await expire_trial(sub, now)
            continue
        raise ConflictError("User already has an active subscription")


async def create_subscription(user_id, user_count: int, billing_interval: str = "month") -> Subscription:
    """
    Record a paid subscription for `user_count` seats.
    Monthly plans include email support; yearly plans add on-call support.
    """
    interval = _parse_interval(billing_interval)
    total_price = calculate_price(user_count, interval)
    await _ensure_no_open_subscription(user_id)

    now = utc_now()
    sub = await Subscription.create(
        user_id=user_id,
        user_count=user_count,
        billing_interval=interval,
        total_price=total_price,
        status=SubscriptionStatus.ACTIVE,
        has_email_support=True,
        has_on_call_support=interval == BillingInterval.YEAR,
        current_period_start=now,
        current_period_end=now + dt.timedelta(days=PERIOD_DAYS[interval]),
    )
    logger.info("[subscriptions] Created %s subscription id=%s user=%s seats=%s",
                interval.value, sub.id, user_id, user_count)
    return sub


async def start_trial(user_id) -> Subscription:
    """
    Start the free trial: `trial_seat_count` seats for `trial_days` days.
    Each user gets one trial.
    """
    if await Subscription.filter(user_id=user_id, is_trial_mode=True).exists():
        raise ConflictError("Free trial already used")
    await _ensure_no_open_subscription(user_id)

    now = utc_now()
    ends = now + dt.timedelta(days=settings.trial_days)
    sub = await Subscription.create(
        user_id=user_id,
        user_count=settings.trial_seat_count,
        billing_interval=BillingInterval.MONTH,
        total_price=Decimal("0.00"),
        status=SubscriptionStatus.TRIALING,
        is_trial_mode=True,
        trial_ends_at=ends,
        current_period_start=now,
        current_period_end=ends,
    )
    logger.info("[subscriptions] Started trial id=%s user=%s ends=%s", sub.id, user_id, ends.isoformat())
    return sub


async def cancel_subscription(user_id) -> Subscription:
    sub = await Subscription.filter(user_id=user_id, status__in=list(OPEN_STATUSES)).order_by("-created_at").first()
    if not sub:
        raise InvalidInputError("No active subscription found")
    sub.status = SubscriptionStatus.CANCELED
    await sub.save(update_fields=["status", "updated_at"])
    logger.info("[subscriptions] Canceled subscription id=%s user=%s", sub.id, user_id)
    return sub
