# license_server/services/license_registry.py
"""
License Registry: issues, validates and tracks usage of license keys.

Rules enforced here:
- An owner holds at most one key row, in any status. The transactional
  pre-check gives a friendly error; the one-to-one `owner` column is the
  constraint that actually holds under concurrent issuance.
- Key tokens are unique across the whole history (unique `key` column);
  a generated token that collides is redrawn.
- Usage telemetry (usage_count / last_used_at) is updated in place on the
  database side and never changes a validation verdict.
- Validation reads the owner's current subscription. A trial whose window has
  closed fails validation with the trial-expired signal, on every call, and is
  moved to "expired". The key itself is left alone so a paid subscription that
  replaces the trial brings it back.

State machine: active <-> revoked (admin). "expired" is a terminal status
that reactivation refuses.
"""
from __future__ import annotations

import datetime as dt
import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from tortoise.exceptions import IntegrityError
from tortoise.expressions import F
from tortoise.transactions import in_transaction

from license_server.config import settings
from license_server.core.clock import isoformat, utc_now
from license_server.core.exceptions import (
    AuthorizationError,
    ConflictError,
    InvalidInputError,
    KeyGenerationError,
    LicenseKeyAlreadyExistsError,
    LicenseKeyNotFoundError,
    NoActiveSubscriptionError,
)
from license_server.core.principal import Principal
from license_server.models import (
    LicenseKey,
    LicenseKeyStatus,
    Subscription,
    SubscriptionStatus,
)
from license_server.services.key_format import (
    generate_license_key,
    mask_license_key,
    normalize_license_key,
)
from license_server.services.subscriptions import OPEN_STATUSES, expire_trial, get_current_subscription

logger = logging.getLogger(__name__)

INVALID_KEY_MESSAGE = "License key not found or inactive"
TRIAL_EXPIRED_MESSAGE = "Trial period has expired"


@dataclass
class ValidationVerdict:
    """
    Result of validate_key.
    Invalid verdicts carry only a message (and the trial flag): callers cannot
    tell an unknown key from a revoked or expired one.
    """
    valid: bool
    message: Optional[str] = None
    trial_expired: bool = False
    license_key: Optional[LicenseKey] = None
    subscription: Optional[Subscription] = None

    def to_response(self) -> dict:
        if not self.valid:
            body = {"valid": False, "message": self.message}
            if self.trial_expired:
                body["trialExpired"] = True
            return body

        lk = self.license_key
        return {
            "valid": True,
            "license": {
                "key": lk.key,
                "status": LicenseKeyStatus(lk.status).value,
                "seatCount": lk.seat_count,
                "lastUsed": isoformat(lk.last_used_at),
                "usageCount": lk.usage_count,
            },
            "user": lk.owner.summary(),
            "subscription": self.subscription.summary() if self.subscription else None,
        }


def serialize_key(lk: LicenseKey, reveal: bool = False) -> dict:
    """
    API representation of a key. The full token is only included when
    `reveal` is set (issuance response, explicit owner request).
    """
    data = {
        "id": str(lk.id),
        "keyPreview": mask_license_key(lk.key),
        "subscriptionId": str(lk.subscription_id),
        "seatCount": lk.seat_count,
        "status": LicenseKeyStatus(lk.status).value,
        "lastUsedAt": isoformat(lk.last_used_at),
        "usageCount": lk.usage_count,
        "createdAt": isoformat(lk.created_at),
        "updatedAt": isoformat(lk.updated_at),
    }
    if reveal:
        data["key"] = lk.key
    return data


def _parse_key_id(key_id) -> uuid.UUID:
    try:
        return key_id if isinstance(key_id, uuid.UUID) else uuid.UUID(str(key_id))
    except ValueError:
        raise LicenseKeyNotFoundError()


def _require_admin(principal: Principal) -> None:
    if not principal.is_admin:
        raise AuthorizationError("Admin access required")


async def _get_key(key_id) -> LicenseKey:
    lk = await LicenseKey.get_or_none(id=_parse_key_id(key_id))
    if not lk:
        raise LicenseKeyNotFoundError()
    return lk


# ------------------------------------------------------------------------------
# Issuance
# ------------------------------------------------------------------------------
async def issue_key(owner_id, subscription_id, seat_count: int) -> LicenseKey:
    """
    Issue the owner's license key against `subscription_id`.

    The caller has already checked that the owner holds a usable subscription.
    The returned record is the only place the full token is handed out
    without an explicit reveal.

    Raises:
        InvalidInputError: seat_count < 1
        NoActiveSubscriptionError: `subscription_id` is not one of the owner's subscriptions
        LicenseKeyAlreadyExistsError: the owner already holds a key (any status)
        KeyGenerationError: every fresh draw collided with an existing token
    """
    if not isinstance(seat_count, int) or seat_count < 1:
        raise InvalidInputError("seatCount must be at least 1")
    if not await Subscription.filter(id=subscription_id, user_id=owner_id).exists():
        raise NoActiveSubscriptionError()

    for attempt in range(1, settings.license_key_max_attempts + 1):
        token = generate_license_key()
        try:
            async with in_transaction() as conn:
                if await LicenseKey.filter(owner_id=owner_id).using_db(conn).exists():
                    raise LicenseKeyAlreadyExistsError()
                lk = await LicenseKey.create(
                    key=token,
                    owner_id=owner_id,
                    subscription_id=subscription_id,
                    seat_count=seat_count,
                    status=LicenseKeyStatus.ACTIVE,
                    usage_count=0,
                    last_used_at=None,
                    using_db=conn,
                )
        except IntegrityError:
            # A concurrent issuance for the same owner won, or the token collided.
            if await LicenseKey.filter(owner_id=owner_id).exists():
                raise LicenseKeyAlreadyExistsError()
            if not await LicenseKey.filter(key=token).exists():
                raise
            logger.warning("[registry] Key collision on attempt %d, redrawing", attempt)
            continue

        logger.info("[registry] Issued key %s owner=%s subscription=%s seats=%d",
                    mask_license_key(lk.key), owner_id, subscription_id, seat_count)
        return lk

    raise KeyGenerationError()


async def issue_key_for_owner(principal: Principal) -> LicenseKey:
    """
    Owner-facing issuance: resolve the caller's current subscription and issue
    a key with its seat count.
    """
    sub = await get_current_subscription(principal.user_id)
    if not sub or not sub.is_usable():
        raise NoActiveSubscriptionError()
    return await issue_key(principal.user_id, sub.id, sub.user_count)


# ------------------------------------------------------------------------------
# Validation
# ------------------------------------------------------------------------------
def _trial_over(sub: Subscription, now: dt.datetime) -> bool:
    return sub.is_trial_mode and (sub.status == SubscriptionStatus.EXPIRED or sub.trial_elapsed(now))


async def _record_usage(lk: LicenseKey, now: dt.datetime) -> None:
    """Best-effort telemetry: failures are logged and never reach the caller."""
    try:
        await LicenseKey.filter(id=lk.id).update(
            usage_count=F("usage_count") + 1,
            last_used_at=now,
            updated_at=now,
        )
        await lk.refresh_from_db(fields=["usage_count", "last_used_at", "updated_at"])
    except Exception as e:
        logger.warning("[registry] Failed to record usage for key %s: %s",
                       mask_license_key(lk.key), e, exc_info=True)


async def validate_key(token: Optional[str]) -> ValidationVerdict:
    """
    Public validation contract used by self-hosted software.

    Valid only when the key exists and is active, and the owner's current
    subscription is not a trial past its window. The trial-expired verdict is
    repeated on every call until a new subscription replaces the trial.
    A successful validation bumps usage_count and last_used_at.

    Raises:
        InvalidInputError: empty or missing token
    """
    plain = normalize_license_key(token)
    if not plain:
        raise InvalidInputError("licenseKey is required")

    lk = await LicenseKey.filter(key=plain).prefetch_related("owner", "subscription").first()
    if not lk or not lk.is_active:
        return ValidationVerdict(valid=False, message=INVALID_KEY_MESSAGE)

    now = utc_now()
    sub = await get_current_subscription(lk.owner_id) or lk.subscription
    if _trial_over(sub, now):
        await expire_trial(sub, now)
        return ValidationVerdict(valid=False, message=TRIAL_EXPIRED_MESSAGE, trial_expired=True)

    await _record_usage(lk, now)
    return ValidationVerdict(valid=True, license_key=lk, subscription=sub)


# ------------------------------------------------------------------------------
# Lifecycle (admin)
# ------------------------------------------------------------------------------
async def revoke_key(principal: Principal, key_id) -> LicenseKey:
    """
    Revoke a key. Idempotent: revoking a revoked key succeeds unchanged.
    Expired keys stay expired.
    """
    _require_admin(principal)
    lk = await _get_key(key_id)
    if lk.status == LicenseKeyStatus.ACTIVE:
        lk.status = LicenseKeyStatus.REVOKED
        await lk.save(update_fields=["status", "updated_at"])
        logger.info("[registry] Revoked key %s (id=%s) by admin=%s",
                    mask_license_key(lk.key), lk.id, principal.user_id)
    return lk


async def reactivate_key(principal: Principal, key_id) -> LicenseKey:
    """
    Bring a revoked key back to active.

    Refused (ConflictError) for expired keys, and when the owner's current
    subscription is canceled, expired, or a trial past its window.
    Reactivating an active key is a no-op.
    """
    _require_admin(principal)
    lk = await _get_key(key_id)
    if lk.status == LicenseKeyStatus.ACTIVE:
        return lk
    if lk.status == LicenseKeyStatus.EXPIRED:
        raise ConflictError("Expired license keys cannot be reactivated")

    sub = await get_current_subscription(lk.owner_id)
    if not sub or sub.status in (SubscriptionStatus.CANCELED, SubscriptionStatus.EXPIRED) or sub.trial_elapsed():
        raise ConflictError("Subscription is no longer active")

    lk.status = LicenseKeyStatus.ACTIVE
    await lk.save(update_fields=["status", "updated_at"])
    logger.info("[registry] Reactivated key %s (id=%s) by admin=%s",
                mask_license_key(lk.key), lk.id, principal.user_id)
    return lk


async def expire_elapsed_trials(now: Optional[dt.datetime] = None) -> int:
    """
    Periodic sweep: expire every open trial subscription whose window closed.
    Keys are not touched. Returns the number of subscriptions expired.
    """
    now = now or utc_now()
    subs = await Subscription.filter(
        is_trial_mode=True,
        trial_ends_at__lte=now,
        status__in=list(OPEN_STATUSES),
    )
    for sub in subs:
        await expire_trial(sub, now)
    return len(subs)


# ------------------------------------------------------------------------------
# Queries
# ------------------------------------------------------------------------------
async def list_owner_keys(principal: Principal) -> list[LicenseKey]:
    return await LicenseKey.filter(owner_id=principal.user_id).order_by("-created_at")


async def reveal_key(principal: Principal, key_id) -> LicenseKey:
    """Explicit owner request to redisplay the full token."""
    lk = await _get_key(key_id)
    if str(lk.owner_id) != str(principal.user_id):
        raise AuthorizationError("Not the owner of this license key")
    logger.info("[registry] Owner %s revealed key id=%s", principal.user_id, lk.id)
    return lk


async def list_all_keys(principal: Principal) -> list[LicenseKey]:
    _require_admin(principal)
    return await LicenseKey.all().order_by("-created_at").prefetch_related("owner", "subscription")
