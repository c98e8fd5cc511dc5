# loyalty_app/services/account_service.py
import logging

from fastapi import HTTPException, status
from supabase import AsyncClient, AuthError

from loyalty_app.repositories.account_repo import AccountRepository
from loyalty_app.schemas.session import AuthSession

logger = logging.getLogger(__name__)

# Rows keyed by loyalty_account_id, deleted before the account itself.
LOYALTY_DEPENDENT_TABLES = ("redemptions", "purchases", "points_ledger")

# Rows keyed by user_id, deleted after the loyalty account.
USER_TABLES = ("notifications", "notification_preferences", "user_roles")


class AccountService:
    """
    Self-service hard deletion of an account.

    Cascade order (children before parents):
      1. redemptions, purchases, points_ledger (by loyalty account)
      2. loyalty_accounts
      3. notifications, notification_preferences, user_roles
      4. audit_logs entry (written before the point of no return)
      5. profiles
      6. auth identity (admin API)

    Supabase's HTTP API has no multi-statement transaction, so each step is
    an idempotent delete-by-key. A failed cascade is not retried here; the
    caller surfaces "contact support".
    """

    def __init__(self, repo: AccountRepository):
        self.repo = repo

    async def resolve_caller(self, public_client: AsyncClient, token: str) -> AuthSession:
        """
        Ask the gateway who owns `token`.

        Raises:
            HTTPException(401): if the token is rejected or has no user.
        """
        try:
            response = await public_client.auth.get_user(token)
        except AuthError as exc:
            logger.info("delete-account: token rejected: %s", exc)
            response = None

        user = getattr(response, "user", None)
        if user is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid session",
            )
        return AuthSession(user_id=str(user.id), email=user.email, access_token=token)

    async def delete_account(self, admin_client: AsyncClient, caller: AuthSession) -> None:
        """
        Run the full cascade for `caller`.

        Raises:
            HTTPException(500): "Failed to delete auth account" if the final
            identity delete fails, "Internal server error" for anything else.
        """
        user_id = caller.user_id
        try:
            await self._delete_rows(admin_client, caller)
        except Exception:
            logger.exception("delete-account: cascade failed for user %s", user_id)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Internal server error",
            )

        try:
            await self.repo.delete_auth_user(admin_client, user_id)
        except AuthError as exc:
            logger.error("delete-account: failed to delete auth user %s: %s", user_id, exc)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to delete auth account",
            )

        logger.info("delete-account: user %s permanently deleted", user_id)

    async def _delete_rows(self, admin_client: AsyncClient, caller: AuthSession) -> None:
        user_id = caller.user_id

        loyalty_account_id = await self.repo.find_loyalty_account_id(admin_client, user_id)
        if loyalty_account_id:
            for table in LOYALTY_DEPENDENT_TABLES:
                await self._step(admin_client, table, "loyalty_account_id", loyalty_account_id)
            await self._step(admin_client, "loyalty_accounts", "user_id", user_id)

        for table in USER_TABLES:
            await self._step(admin_client, table, "user_id", user_id)

        await self.repo.insert_audit_log(
            admin_client,
            user_id=user_id,
            action="account_hard_deleted",
            entity_type="profile",
            entity_id=user_id,
            details={"email": caller.email, "method": "self_service"},
        )

        await self._step(admin_client, "profiles", "user_id", user_id)

    async def _step(self, admin_client: AsyncClient, table: str, column: str, value: str) -> None:
        deleted = await self.repo.delete_where(admin_client, table, column, value)
        logger.info("delete-account: %s rows deleted from %s", deleted, table)
