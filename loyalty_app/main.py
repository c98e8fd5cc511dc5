# loyalty_app/main.py
from contextlib import asynccontextmanager
import logging

from fastapi.middleware.cors import CORSMiddleware
from fastapi import FastAPI

from loyalty_app.core.config import get_settings
from loyalty_app.core.supabase_client import create_admin_client, create_public_client

# Routers
from loyalty_app.routers.users import router as users_router
from loyalty_app.routers.catalog import router as catalog_router
from loyalty_app.routers.notifications import router as notifications_router
from loyalty_app.routers.functions import router as functions_router

settings = get_settings()

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
      - Create the public (anon) Supabase client.
      - Create the admin (service role) client if the key is configured;
        without it the /me, /notifications and delete-account routes fail.

    Shutdown:
      - Nothing to close; the Supabase clients hold no pooled connections
        that need explicit teardown.
    """
    logger.info("🔄 Startup: Connecting to Supabase...")
    try:
        app.state.supabase_public = await create_public_client()
    except Exception as e:
        logger.error(f"❌ Startup: Supabase client FAILED: {e}")
        raise

    try:
        app.state.supabase_admin = await create_admin_client()
    except RuntimeError as e:
        logger.warning(f"⚠️ Startup: admin client disabled: {e}")
        app.state.supabase_admin = None

    logger.info("✅ Startup: Supabase clients ready.")
    yield


app = FastAPI(
    title=settings.PROJECT_NAME or "Loyalty Rewards API",
    version="0.1.0",
    lifespan=lifespan,
)


# --- CORS configuration ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Versioned API prefix, e.g. /api/v1
app.include_router(users_router, prefix=settings.API_V1_STR)
app.include_router(catalog_router, prefix=settings.API_V1_STR)
app.include_router(notifications_router, prefix=settings.API_V1_STR)

# Serverless-style functions, e.g. /functions/v1/delete-account
app.include_router(functions_router, prefix=settings.FUNCTIONS_PREFIX)


@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "loyalty-rewards-api"}
