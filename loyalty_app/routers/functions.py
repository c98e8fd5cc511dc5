# loyalty_app/routers/functions.py
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials
from supabase import AsyncClient

from loyalty_app.core.auth import bearer_scheme
from loyalty_app.core.supabase_client import get_admin_client, get_public_client
from loyalty_app.repositories.account_repo import AccountRepository
from loyalty_app.services.account_service import AccountService

router = APIRouter(tags=["Functions"])

service = AccountService(AccountRepository())


@router.post("/delete-account")
async def delete_account(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    public_client: AsyncClient = Depends(get_public_client),
    admin_client: AsyncClient = Depends(get_admin_client),
):
    """
    Permanently delete the caller's account and all its data.

    Auth:
      - Bearer access token, checked with the gateway (not just decoded).

    Errors:
      - 401 "Not authenticated" / "Invalid session"
      - 500 "Failed to delete auth account" / "Internal server error"
      - 503 "Admin client not configured"
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    caller = await service.resolve_caller(public_client, credentials.credentials)
    await service.delete_account(admin_client, caller)
    return {"success": True}
