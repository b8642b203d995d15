# app/main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.core.db import init_db, close_db

from app.api.v1.routers import admin, auth, cron, downloads, license, notifications, payment

from app.core.bootstrap import ensure_default_admin
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

@app.on_event("startup")
async def on_startup():
    await init_db()
    await ensure_default_admin()
    if not settings.cron_secret:
        logger.warning("[startup] CRON_SECRET is not set; the license cleanup endpoint will reject all calls")

@app.on_event("shutdown")
async def on_shutdown():
    await close_db()

# REST
app.include_router(auth.router, prefix="/api/v1")
app.include_router(license.router, prefix="/api/v1")
app.include_router(downloads.router, prefix="/api/v1")
app.include_router(notifications.router, prefix="/api/v1")
app.include_router(payment.router, prefix="/api/v1")
app.include_router(cron.router, prefix="/api/v1")
app.include_router(admin.router, prefix="/api/v1")

@app.get("/healthz")
def healthz():
    return {"ok": True}
