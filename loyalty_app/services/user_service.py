# loyalty_app/services/user_service.py
from fastapi import HTTPException, status
from supabase import AsyncClient, PostgrestAPIError

from loyalty_app.core.config import get_settings
from loyalty_app.repositories.history_repo import HistoryRepository
from loyalty_app.repositories.loyalty_repo import LoyaltyAccountRepository
from loyalty_app.repositories.profile_repo import ProfileRepository
from loyalty_app.repositories.role_repo import RoleRepository
from loyalty_app.schemas.history import PointsLedgerEntry, PurchaseRead
from loyalty_app.schemas.loyalty import LoyaltyAccountRead, LoyaltyCard
from loyalty_app.schemas.profile import ProfileRead, ProfileUpdate
from loyalty_app.schemas.session import AuthSession, MeRead
from loyalty_app.services.tiers import tier_progress
from loyalty_app.session.synchronizer import UserDataSynchronizer

settings = get_settings()

# Postgres unique_violation
UNIQUE_VIOLATION = "23505"


class UserService:
    """
    Business logic for the signed-in user's own screens.

    Responsibilities:
      - build the home/profile payload from one synchronizer cycle
      - profile edits (upsert on user_id, duplicate phone -> 409)
      - loyalty card, points history, purchases
    """

    def __init__(
        self,
        profile_repo: ProfileRepository,
        loyalty_repo: LoyaltyAccountRepository,
        role_repo: RoleRepository,
        history_repo: HistoryRepository,
    ):
        self.profile_repo = profile_repo
        self.loyalty_repo = loyalty_repo
        self.role_repo = role_repo
        self.history_repo = history_repo

    # ----- Snapshot -----

    async def get_me(self, client: AsyncClient, identity: AuthSession) -> MeRead:
        synchronizer = UserDataSynchronizer(
            client,
            profile_repo=self.profile_repo,
            loyalty_repo=self.loyalty_repo,
            role_repo=self.role_repo,
            profile_retry_delay=settings.PROFILE_RETRY_DELAY_SECONDS,
        )
        # A per-request synchronizer has no competing syncs, so this publishes.
        await synchronizer.sync(identity.user_id)
        snapshot = synchronizer.snapshot
        account = snapshot.loyalty_account

        return MeRead(
            profile=snapshot.profile,
            loyalty_account=account,
            is_admin=snapshot.is_admin,
            is_staff=snapshot.is_staff,
            activation_pending=snapshot.activation_pending,
            is_member=snapshot.is_member,
            tier_progress=tier_progress(account) if account is not None else None,
            failed_fields=sorted(snapshot.failed_fields),
        )

    # ----- Profile -----

    async def update_profile(
        self,
        client: AsyncClient,
        identity: AuthSession,
        payload: ProfileUpdate,
    ) -> ProfileRead:
        """
        Upsert the editable profile fields.

        Raises:
            HTTPException(409): phone already linked to another account.
            HTTPException(500): gateway returned no row.
        """
        # Only fields sent in the request; an empty phone arrives here as None.
        changes = payload.model_dump(mode="json", exclude_unset=True)
        if identity.email:
            changes["email"] = identity.email

        try:
            profile = await self.profile_repo.upsert(client, identity.user_id, changes)
        except PostgrestAPIError as exc:
            if exc.code == UNIQUE_VIOLATION or "duplicate" in (exc.message or ""):
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="This phone number is already linked to another account.",
                )
            raise

        if profile is None:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Could not save profile. Please try again.",
            )
        return profile

    # ----- Loyalty -----

    async def get_account(
        self, client: AsyncClient, identity: AuthSession
    ) -> LoyaltyAccountRead | None:
        return await self.loyalty_repo.get_by_user_id(client, identity.user_id)

    async def get_card(self, client: AsyncClient, identity: AuthSession) -> LoyaltyCard:
        """
        Raises:
            HTTPException(404): loyalty account not activated yet.
        """
        account = await self.get_account(client, identity)
        if account is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Loyalty account not activated",
            )
        return LoyaltyCard(
            member_id=account.member_id,
            barcode_value=account.barcode_value,
            current_tier=account.current_tier,
            current_points=account.current_points,
            is_active=account.is_active,
        )

    async def points_history(
        self, client: AsyncClient, identity: AuthSession
    ) -> list[PointsLedgerEntry]:
        account = await self.get_account(client, identity)
        if account is None:
            return []
        return await self.history_repo.points_history(client, str(account.id))

    async def purchases(self, client: AsyncClient, identity: AuthSession) -> list[PurchaseRead]:
        account = await self.get_account(client, identity)
        if account is None:
            return []
        return await self.history_repo.purchases(client, str(account.id))
