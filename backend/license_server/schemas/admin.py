# license_server/schemas/admin.py
"""
Pydantic schemas for admin endpoints.
"""
from pydantic import BaseModel
from typing import Optional, List

from .subscription import SubscriptionOut

class AdminUserItem(BaseModel):
    """
    User row in the admin listing, with the user's latest subscription.
    """
    id: str
    email: str
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    role: str
    isVerified: bool
    createdAt: Optional[str] = None
    subscription: Optional[SubscriptionOut] = None
    hasLicenseKey: bool = False

class AdminUserListOut(BaseModel):
    items: List[AdminUserItem]
    total: int

class AdminStatsOut(BaseModel):
    """Aggregates computed from local data."""
    totalUsers: int
    activeSubscriptions: int
    totalLicenseKeys: int
    monthlyRevenue: float
