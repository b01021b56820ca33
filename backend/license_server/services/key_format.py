# license_server/services/key_format.py
"""
License key formatting.
Keys look like QB-QBYT-A1B2-C3D4-E5F6: the fixed "QB" prefix, a four character
product code (LICENSE_KEY_PRODUCT_CODE) and three groups of four uppercase hex
characters drawn from `secrets`.
"""
import re
import secrets

from license_server.config import PRODUCT_CODE_RE, settings

KEY_PREFIX = "QB"
GROUP_COUNT = 3
GROUP_BYTES = 2  # 2 random bytes -> 4 hex characters

LICENSE_KEY_PATTERN = re.compile(r"^QB-[0-9A-Z]{4}(-[0-9A-F]{4}){3}$")


def generate_license_key(product_code: str | None = None) -> str:
    """
    Generate a fresh plaintext key, e.g. QB-QBYT-A1B2-C3D4-E5F6.
    Uniqueness is not assumed here; the registry relies on the database
    unique constraint and redraws on collision.
    """
    code = (product_code or settings.license_key_product_code).strip().upper()
    if not PRODUCT_CODE_RE.fullmatch(code):
        raise ValueError(f"Invalid product code: {code!r}")
    groups = [secrets.token_hex(GROUP_BYTES).upper() for _ in range(GROUP_COUNT)]
    return "-".join([KEY_PREFIX, code, *groups])


def normalize_license_key(raw: str | None) -> str:
    """Strip whitespace and uppercase user-supplied input."""
    return (raw or "").strip().upper()


def mask_license_key(key: str | None) -> str | None:
    """
    Display form used by every listing: QB-QBYT-****-****-E5F6.
    Only the last group is revealed.
    """
    if not key:
        return None
    parts = key.split("-")
    if len(parts) <= 2:
        return "****"
    head = parts[:-(GROUP_COUNT)] or parts[:1]
    hidden = ["****"] * (len(parts) - len(head) - 1)
    return "-".join([*head, *hidden, parts[-1]])
