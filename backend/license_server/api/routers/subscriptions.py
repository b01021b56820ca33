# license_server/api/routers/subscriptions.py
from fastapi import APIRouter, Depends

from license_server.api.deps import get_principal
from license_server.core.principal import Principal
from license_server.schemas.subscription import CreateSubscriptionIn, PricingOut, SubscriptionOut
from license_server.services import subscriptions

router = APIRouter(tags=["subscriptions"])


@router.get("/pricing", response_model=PricingOut)
async def get_pricing():
    return subscriptions.pricing_info()


@router.get("/user/subscription", response_model=SubscriptionOut | None)
async def get_my_subscription(principal: Principal = Depends(get_principal)):
    """Latest subscription of the caller, or null."""
    sub = await subscriptions.get_current_subscription(principal.user_id)
    return sub.to_dict() if sub else None


@router.post("/user/subscription", response_model=SubscriptionOut)
async def create_my_subscription(body: CreateSubscriptionIn, principal: Principal = Depends(get_principal)):
    """
    Record a paid per-seat subscription.

    Errors:
        400: userCount < 1 or unknown billingInterval
        409: caller already has an active or trialing subscription
    """
    sub = await subscriptions.create_subscription(principal.user_id, body.userCount, body.billingInterval)
    return sub.to_dict()


@router.post("/user/subscription/trial", response_model=SubscriptionOut)
async def start_my_trial(principal: Principal = Depends(get_principal)):
    sub = await subscriptions.start_trial(principal.user_id)
    return sub.to_dict()


@router.post("/user/subscription/cancel", response_model=SubscriptionOut)
async def cancel_my_subscription(principal: Principal = Depends(get_principal)):
    sub = await subscriptions.cancel_subscription(principal.user_id)
    return sub.to_dict()
