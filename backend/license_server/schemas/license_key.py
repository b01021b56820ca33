# license_server/schemas/license_key.py
"""
Pydantic schemas for license key endpoints.
Keys are masked (keyPreview) everywhere except the issuance response and the
explicit owner reveal, which carry the full `key`.
"""
from __future__ import annotations
from pydantic import BaseModel
from typing import List, Optional

class ValidateLicenseIn(BaseModel):
    """
    Body of POST /api/validate-license.
    Optional at the schema level: an empty or missing key is a 400 from the registry.
    """
    licenseKey: Optional[str] = None

class LicenseKeyOut(BaseModel):
    id: str
    keyPreview: Optional[str] = None
    key: Optional[str] = None  # Only on issuance / reveal
    subscriptionId: str
    seatCount: int
    status: str
    lastUsedAt: Optional[str] = None
    usageCount: int = 0
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None

class LicenseKeyListOut(BaseModel):
    items: List[LicenseKeyOut]

class KeyOwnerOut(BaseModel):
    id: str
    email: str
    firstName: Optional[str] = None
    lastName: Optional[str] = None

class KeySubscriptionOut(BaseModel):
    id: str
    userCount: int
    billingInterval: str
    totalPrice: str
    status: str
    isTrialMode: bool = False
    trialEndsAt: Optional[str] = None
    currentPeriodEnd: Optional[str] = None

class AdminLicenseKeyOut(LicenseKeyOut):
    """Admin listing row: key (masked) with owner and subscription context."""
    user: KeyOwnerOut
    subscription: KeySubscriptionOut

class AdminLicenseKeyListOut(BaseModel):
    items: List[AdminLicenseKeyOut]
    total: int
