import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from .api.routes import auth, parents, therapists, bookings, admin, demo, notifications, misc
from .db.session import Base, engine, SessionLocal
from .config import get_settings
from .services.admin import ensure_admin_exists
from .workers.scheduler import get_scheduler


settings = get_settings()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="TheraConnect API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router, prefix="/api/v1")
app.include_router(parents.router, prefix="/api/v1")
app.include_router(therapists.router, prefix="/api/v1")
app.include_router(bookings.router, prefix="/api/v1")
app.include_router(admin.router, prefix="/api/v1")
app.include_router(demo.router, prefix="/api/v1")
app.include_router(notifications.router, prefix="/api/v1")
app.include_router(misc.router, prefix="/api/v1")

scheduler = get_scheduler()


@app.on_event("startup")
async def startup_event() -> None:
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as session:
        ensure_admin_exists(session, settings.default_admin_email, settings.default_admin_password)
    if settings.scheduler_enabled:
        scheduler.start()


@app.on_event("shutdown")
async def shutdown_event() -> None:
    if scheduler.running:
        scheduler.shutdown(wait=False)
