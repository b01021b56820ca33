"""
Services Module

Business logic behind the HTTP routers:
- license_registry: license key issuance, validation, usage tracking, revoke/reactivate
- key_format: key generation, normalization and masking
- subscriptions: local subscription lifecycle and pricing
- trial_sweeper: periodic expiry of elapsed trials (CLI entry point)
"""
