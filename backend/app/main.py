import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import auth
from app.api.admin import hospitals as admin_hospitals
from app.api.me import bookings as me_bookings
from app.api.me import favorites as me_favorites
from app.api.me import profile as me_profile
from app.api.public import hospitals as public_hospitals
from app.core.config import settings
from app.core.errors import register_exception_handlers
from app.core.security import verify_admin_key


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger(__name__).info(
        f"Surgery Hub API starting (env={settings.APP_ENV}, notifications={settings.NOTIFICATION_BACKEND})"
    )
    yield

app = FastAPI(
    title="Surgery Hub API",
    description="Karnataka hospital directory: search, compare and book surgical care",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Admin routers: X-Admin-Key required
admin_deps = [Depends(verify_admin_key)]
app.include_router(admin_hospitals.router, prefix="/api/v1", dependencies=admin_deps)

# Patient routers: bearer session checked per endpoint
app.include_router(auth.router, prefix="/api/v1")
app.include_router(me_bookings.router, prefix="/api/v1")
app.include_router(me_profile.router, prefix="/api/v1")
app.include_router(me_favorites.router, prefix="/api/v1")

# Public routers: no auth
app.include_router(public_hospitals.router, prefix="/api/v1")


@app.get("/health")
async def health():
    return {"status": "ok", "env": settings.APP_ENV}
