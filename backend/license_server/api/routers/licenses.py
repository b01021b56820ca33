# license_server/api/routers/licenses.py
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from license_server.api.deps import get_principal
from license_server.core.principal import Principal
from license_server.schemas.license_key import LicenseKeyListOut, LicenseKeyOut, ValidateLicenseIn
from license_server.services import license_registry
from license_server.services.license_registry import serialize_key

router = APIRouter(tags=["licenses"])


# ==============================================================================
# I. Public validation contract for self-hosted software
# ==============================================================================
@router.post("/validate-license")
async def validate_license(body: ValidateLicenseIn):
    """
    Validate a license key (no authentication).

    Returns:
        200: {valid: true, license, user, subscription}
        404: {valid: false, message} for unknown, revoked or expired keys
        403: {valid: false, message, trialExpired: true} when the trial has ended
        400: empty or missing licenseKey
    """
    verdict = await license_registry.validate_key(body.licenseKey)
    if verdict.valid:
        return verdict.to_response()
    code = status.HTTP_403_FORBIDDEN if verdict.trial_expired else status.HTTP_404_NOT_FOUND
    return JSONResponse(status_code=code, content=verdict.to_response())


# ==============================================================================
# II. Owner key management
#     Prefix: /api/user/license-keys
# ==============================================================================
@router.get("/user/license-keys", response_model=LicenseKeyListOut)
async def list_my_license_keys(principal: Principal = Depends(get_principal)):
    """List the caller's keys (masked)."""
    rows = await license_registry.list_owner_keys(principal)
    return {"items": [serialize_key(r) for r in rows]}


@router.post("/user/license-keys", response_model=LicenseKeyOut)
async def create_my_license_key(principal: Principal = Depends(get_principal)):
    """
    Issue the caller's license key from their current subscription.
    The full key is returned in this response only.

    Errors:
        400: no usable subscription, or a key already exists
    """
    lk = await license_registry.issue_key_for_owner(principal)
    return serialize_key(lk, reveal=True)


@router.get("/user/license-keys/{key_id}/reveal", response_model=LicenseKeyOut)
async def reveal_my_license_key(key_id: str, principal: Principal = Depends(get_principal)):
    """Explicitly redisplay the full key to its owner."""
    lk = await license_registry.reveal_key(principal, key_id)
    return serialize_key(lk, reveal=True)
