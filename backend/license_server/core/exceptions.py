# license_server/core/exceptions.py
"""
Error taxonomy for the license server.
Services raise these; core.exception_handlers maps them to HTTP responses.
None of them is retried: each is a terminal, user-visible outcome.
"""


class LicenseServerError(Exception):
    """Base exception for the license server."""
    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(self.message)


# --- Invalid Input (400) ---
class InvalidInputError(LicenseServerError):
    """Malformed request: missing/empty key, seat count < 1, unknown billing interval."""
    def __init__(self, message: str = "Invalid input"):
        super().__init__(message)

class NoActiveSubscriptionError(InvalidInputError):
    def __init__(self, message: str = "No active subscription found"):
        super().__init__(message)


# --- Conflict (409, key issuance 400) ---
class ConflictError(LicenseServerError):
    """Business-rule violation."""
    def __init__(self, message: str = "Conflict with current state"):
        super().__init__(message)

class LicenseKeyAlreadyExistsError(ConflictError):
    def __init__(self, message: str = "Only one license key per subscription allowed"):
        super().__init__(message)

class EmailAlreadyRegisteredError(ConflictError):
    def __init__(self, message: str = "User already exists"):
        super().__init__(message)


# --- Not Found (404) ---
class NotFoundError(LicenseServerError):
    def __init__(self, message: str = "Not found"):
        super().__init__(message)

class LicenseKeyNotFoundError(NotFoundError):
    def __init__(self, message: str = "License key not found"):
        super().__init__(message)

class UserNotFoundError(NotFoundError):
    def __init__(self, message: str = "User not found"):
        super().__init__(message)


# --- System (500) ---
class KeyGenerationError(LicenseServerError):
    def __init__(self, message: str = "Could not generate a unique license key"):
        super().__init__(message)


# --- Authorization (403) ---
class AuthorizationError(LicenseServerError):
    """Non-owner / non-admin acting on a key."""
    def __init__(self, message: str = "Permission denied"):
        super().__init__(message)
