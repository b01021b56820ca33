"""
Core application modules.
Contains essential infrastructure components:
- bootstrap: Application initialization and default admin creation
- db: Database configuration and connection management
- exceptions / exception_handlers: Error taxonomy and its HTTP mapping
- principal: Explicit authenticated caller passed to services
- security: Password hashing and access tokens
"""
