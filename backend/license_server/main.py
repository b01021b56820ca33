# license_server/main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from license_server.config import settings
from license_server.core.db import init_db, close_db
from license_server.core.bootstrap import ensure_default_admin
from license_server.core.exceptions import LicenseServerError
from license_server.core.exception_handlers import (
    general_exception_handler,
    license_server_exception_handler,
)

from license_server.api.routers import admin, auth, licenses, subscriptions

logger = logging.getLogger("uvicorn.error")

app = FastAPI(title=settings.APP_NAME)

# CORS (with Cookie)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(LicenseServerError, license_server_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

@app.on_event("startup")
async def on_startup():
    await init_db()
    # Ensure there's a default admin account on first run
    await ensure_default_admin()
    logger.info("[startup] %s ready (env=%s)", settings.APP_NAME, settings.env)

@app.on_event("shutdown")
async def on_shutdown():
    await close_db()

# REST
app.include_router(auth.router, prefix="/api")
app.include_router(licenses.router, prefix="/api")
app.include_router(subscriptions.router, prefix="/api")
app.include_router(admin.router, prefix="/api")

@app.get("/healthz")
def healthz():
    return {"ok": True}
