# license_server/models/__init__.py
"""
Database models module initialization.
Exports all database models for convenient imports throughout the application.

Models exported:
- User: subscriber / admin account
- Subscription: seat subscription (paid or trial)
- LicenseKey: seat license key issued against a subscription
"""
from .user import User
from .subscription import Subscription, SubscriptionStatus, BillingInterval
from .license_key import LicenseKey, LicenseKeyStatus
