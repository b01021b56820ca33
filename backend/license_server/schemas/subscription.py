# license_server/schemas/subscription.py
"""
Pydantic schemas for subscription endpoints.
"""
from typing import Optional
from pydantic import BaseModel

class CreateSubscriptionIn(BaseModel):
    """
    Request model for recording a paid subscription.
    userCount < 1 and unknown intervals are rejected by the service with 400.
    """
    userCount: int
    billingInterval: str = "month"  # "month" or "year"

class SubscriptionOut(BaseModel):
    id: str
    userCount: int
    billingInterval: str
    totalPrice: str
    status: str
    isTrialMode: bool
    trialEndsAt: Optional[str] = None
    hasEmailSupport: bool
    hasOnCallSupport: bool
    currentPeriodStart: Optional[str] = None
    currentPeriodEnd: Optional[str] = None
    createdAt: Optional[str] = None

class PricingOut(BaseModel):
    pricePerUser: str
    yearlyDiscount: str
    trialDays: int
    trialSeatCount: int
