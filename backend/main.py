from dotenv import load_dotenv
load_dotenv()

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from database import close_db, get_db

# ENV
from config.env import CORS_ALLOWED_ORIGINS, ENV, is_production, validate_production_env

# ROUTES
from routes.auth import router as auth_router
from routes.confirm import router as confirm_router
from routes.enquiries import router as enquiries_router
from routes.leads import router as leads_router
from routes.notifications import router as notifications_router
from routes.products import router as products_router
from routes.sellers import router as sellers_router
from routes.uploads import router as uploads_router
from routes.users import router as users_router

from utils.admins import ensure_admin_account
from utils.errors import register_exception_handlers
from utils.indexes import ensure_indexes
from utils.log_config import configure_logging

configure_logging()
logger = logging.getLogger(__name__)

validate_production_env()

app = FastAPI(
    title="Green Cycle Hub API",
    version="1.0.0",
    docs_url=None if is_production() else "/docs",
    redoc_url=None if is_production() else "/redoc",
    openapi_url=None if is_production() else "/openapi.json",
)

register_exception_handlers(app)

# -----------------------------
# CORS
# -----------------------------

allowed_origins = [origin.strip() for origin in CORS_ALLOWED_ORIGINS if origin.strip()]
if not allowed_origins:
    allowed_origins = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -----------------------------
# ROUTES
# -----------------------------

app.include_router(auth_router, prefix="/api")
app.include_router(products_router, prefix="/api")
app.include_router(enquiries_router, prefix="/api")
app.include_router(notifications_router, prefix="/api")
app.include_router(users_router, prefix="/api")
app.include_router(sellers_router, prefix="/api")
app.include_router(uploads_router, prefix="/api")
app.include_router(leads_router, prefix="/api")
app.include_router(confirm_router)

# -----------------------------
# HEALTH CHECKS
# -----------------------------

@app.get("/api/health")
async def health():

    return {"status": "ok"}

@app.get("/api/health/db")
async def health_db():
    db = get_db()
    await db.command("ping")
    return {"status": "mongodb connected"}

# -----------------------------
# STARTUP / SHUTDOWN
# -----------------------------

@app.on_event("startup")
async def startup():
    db = get_db()
    await ensure_indexes(db)
    await ensure_admin_account(db)
    logger.info("STARTUP env=%s", ENV)


@app.on_event("shutdown")
async def shutdown():
    close_db()
