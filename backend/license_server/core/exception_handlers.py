# license_server/core/exception_handlers.py
import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse

from license_server.core import exceptions

logger = logging.getLogger("uvicorn.error")


def status_code_for(exc: exceptions.LicenseServerError) -> int:
    """
    Pick the HTTP status for a service-layer error.

    LicenseKeyAlreadyExistsError is checked before ConflictError: the owner
    issuance endpoint reports an existing key as 400.
    """
    if isinstance(exc, exceptions.InvalidInputError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, exceptions.LicenseKeyAlreadyExistsError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, exceptions.ConflictError):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, exceptions.NotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, exceptions.AuthorizationError):
        return status.HTTP_403_FORBIDDEN
    if isinstance(exc, exceptions.KeyGenerationError):
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    return status.HTTP_400_BAD_REQUEST


async def license_server_exception_handler(request: Request, exc: exceptions.LicenseServerError):
    if isinstance(exc, exceptions.KeyGenerationError):
        logger.error("[error] %s on %s", exc.message, request.url.path)
    return JSONResponse(
        status_code=status_code_for(exc),
        content={"detail": exc.message},
    )


async def general_exception_handler(request: Request, exc: Exception):
    logger.error("[error] Unhandled exception on %s: %s", request.url.path, exc, exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal Server Error"},
    )
