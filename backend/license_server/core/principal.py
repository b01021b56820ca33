# license_server/core/principal.py
from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class Principal:
    """
    Authenticated caller handed explicitly to service operations.
    Built once per request by the auth dependency; services never read
    request state themselves.
    """
    user_id: UUID
    is_admin: bool = False
