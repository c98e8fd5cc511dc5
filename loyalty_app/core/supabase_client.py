# loyalty_app/core/supabase_client.py
from fastapi import HTTPException, Request, status
from supabase import AsyncClient, acreate_client

from loyalty_app.core.config import get_settings

settings = get_settings()


async def create_public_client() -> AsyncClient:
    """
    Create a Supabase client with the anon/public key.

    Use cases:
      - the client core (sign-in, sign-up, OTP, session events)
      - reading public catalogue tables (deals, rewards, stores)
      - verifying user tokens via `auth.get_user(jwt)`

    Note: This client still respects RLS.
    """
    return await acreate_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)


async def create_admin_client() -> AsyncClient:
    """
    Create a Supabase client with the service role key.

    Use cases:
      - the delete-account cascade (rows + auth identity)
      - reading a verified user's own rows on their behalf

    WARNING:
      - Never expose service role key to frontend.
      - Only backend should call this.

    Raises:
        RuntimeError: if SUPABASE_SERVICE_ROLE_KEY is not set.
    """
    if not settings.SUPABASE_SERVICE_ROLE_KEY:
        raise RuntimeError("Missing SUPABASE_SERVICE_ROLE_KEY in .env")
    return await acreate_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)


# -------- FastAPI dependencies --------
# Clients are created once in the app lifespan and stored on app.state.


def get_public_client(request: Request) -> AsyncClient:
    return request.app.state.supabase_public


def get_admin_client(request: Request) -> AsyncClient:
    client = getattr(request.app.state, "supabase_admin", None)
    if client is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Admin client not configured",
        )
    return client
