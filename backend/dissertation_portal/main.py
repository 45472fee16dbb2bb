# dissertation_portal/main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dissertation_portal.config import settings
from dissertation_portal.core.db import init_db, close_db
from dissertation_portal.core.bootstrap import ensure_default_admin, seed_demo_users

from dissertation_portal.api.v1.routers import auth, registration, admin

logger = logging.getLogger("uvicorn.error")

app = FastAPI(title=settings.APP_NAME)

# CORS (with Cookie)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Session-Token"],
)


@app.on_event("startup")
async def on_startup():
    await init_db()
    # Demo accounts first, so a seeded admin satisfies the default-admin check
    created = await seed_demo_users()
    await ensure_default_admin()
    logger.info("[startup] env=%s demo_accounts_created=%s", settings.env, created)


@app.on_event("shutdown")
async def on_shutdown():
    await close_db()


# REST
app.include_router(auth.router, prefix="/api/v1")
app.include_router(registration.router, prefix="/api/v1")
app.include_router(admin.router, prefix="/api/v1")


@app.get("/healthz")
def healthz():
    return {"ok": True}
