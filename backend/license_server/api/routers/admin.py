# license_server/api/routers/admin.py
from __future__ import annotations

from decimal import Decimal

from fastapi import APIRouter, Depends

from license_server.api.deps import get_admin_principal, require_admin
from license_server.core.clock import isoformat
from license_server.core.principal import Principal
from license_server.models import (
    BillingInterval,
    LicenseKey,
    Subscription,
    SubscriptionStatus,
    User,
)
from license_server.schemas.admin import AdminStatsOut, AdminUserListOut
from license_server.schemas.license_key import AdminLicenseKeyListOut
from license_server.services import license_registry
from license_server.services.license_registry import serialize_key

router = APIRouter(prefix="/admin", tags=["admin"])


# ==============================================================================
# I. Users
#     Prefix: /api/admin/users
# ==============================================================================
def _latest(subs: list[Subscription]) -> Subscription | None:
    return max(subs, key=lambda s: s.created_at) if subs else None


def _user_to_dict(u: User, key_owners: set[str]) -> dict:
    """
    Convert a User (with prefetched subscriptions) to the admin listing row.
    """
    sub = _latest(list(u.subscriptions))
    return {
        "id": str(u.id),
        "email": u.email,
        "firstName": u.first_name,
        "lastName": u.last_name,
        "role": u.role,
        "isVerified": u.is_verified,
        "createdAt": isoformat(u.created_at),
        "subscription": sub.to_dict() if sub else None,
        "hasLicenseKey": str(u.id) in key_owners,
    }


@router.get(
    "/users",
    response_model=AdminUserListOut,
    dependencies=[Depends(require_admin)],
)
async def list_users():
    """
    All users, newest first, each with their latest subscription (admin only).
    """
    rows = await User.all().order_by("-created_at").prefetch_related("subscriptions")
    key_owners = {str(owner_id) for owner_id in await LicenseKey.all().values_list("owner_id", flat=True)}
    items = [_user_to_dict(u, key_owners) for u in rows]
    return {"items": items, "total": len(items)}


# ==============================================================================
# II. License keys (list, revoke, reactivate)
#     Prefix: /api/admin/license-keys
#     Note: keys are listed masked, plaintext never leaves through this surface
# ==============================================================================
def _admin_key_to_dict(lk: LicenseKey) -> dict:
    owner = lk.owner
    sub = lk.subscription
    data = serialize_key(lk)
    data["user"] = {
        "id": str(owner.id),
        "email": owner.email,
        "firstName": owner.first_name,
        "lastName": owner.last_name,
    }
    data["subscription"] = {
        "id": str(sub.id),
        "userCount": sub.user_count,
        "billingInterval": BillingInterval(sub.billing_interval).value,
        "totalPrice": str(sub.total_price),
        "status": SubscriptionStatus(sub.status).value,
        "isTrialMode": sub.is_trial_mode,
        "trialEndsAt": isoformat(sub.trial_ends_at),
        "currentPeriodEnd": isoformat(sub.current_period_end),
    }
    return data


@router.get("/license-keys", response_model=AdminLicenseKeyListOut)
async def list_license_keys(principal: Principal = Depends(get_admin_principal)):
    """
    All license keys, newest first, with owner and subscription context (admin only).
    """
    rows = await license_registry.list_all_keys(principal)
    items = [_admin_key_to_dict(r) for r in rows]
    return {"items": items, "total": len(items)}


@router.delete("/license-keys/{key_id}")
async def revoke_license_key(key_id: str, principal: Principal = Depends(get_admin_principal)):
    """
    Revoke a license key (admin only). Idempotent; the row is kept for audit.

    Raises:
        404: unknown key id
    """
    lk = await license_registry.revoke_key(principal, key_id)
    return {"message": "License key revoked successfully", "license": serialize_key(lk)}


@router.patch("/license-keys/{key_id}/reactivate")
async def reactivate_license_key(key_id: str, principal: Principal = Depends(get_admin_principal)):
    """
    Reactivate a revoked license key (admin only).

    Raises:
        404: unknown key id
        409: key expired, or its subscription is canceled/expired
    """
    lk = await license_registry.reactivate_key(principal, key_id)
    return {"message": "License key reactivated successfully", "license": serialize_key(lk)}


# ==============================================================================
# III. Stats
# ==============================================================================
def _monthly_amount(sub: Subscription) -> Decimal:
    if sub.billing_interval == BillingInterval.YEAR:
        return Decimal(sub.total_price) / 12
    return Decimal(sub.total_price)


@router.get(
    "/stats",
    response_model=AdminStatsOut,
    dependencies=[Depends(require_admin)],
)
async def get_stats():
    """
    Totals from local data; monthly revenue normalizes yearly plans to one month.
    """
    active = await Subscription.filter(status=SubscriptionStatus.ACTIVE)
    revenue = sum((_monthly_amount(s) for s in active), Decimal("0"))
    return {
        "totalUsers": await User.all().count(),
        "activeSubscriptions": len(active),
        "totalLicenseKeys": await LicenseKey.all().count(),
        "monthlyRevenue": float(round(revenue, 2)),
    }
