# loyalty_app/routers/users.py
from fastapi import APIRouter, Depends
from supabase import AsyncClient

from loyalty_app.core.auth import require_auth
from loyalty_app.core.supabase_client import get_admin_client
from loyalty_app.repositories.catalog_repo import DealRepository, RewardRepository
from loyalty_app.repositories.history_repo import HistoryRepository
from loyalty_app.repositories.loyalty_repo import LoyaltyAccountRepository
from loyalty_app.repositories.notification_repo import NotificationRepository
from loyalty_app.repositories.profile_repo import ProfileRepository
from loyalty_app.repositories.role_repo import RoleRepository
from loyalty_app.schemas.catalog import RedemptionGroups
from loyalty_app.schemas.history import PointsLedgerEntry, PurchaseRead
from loyalty_app.schemas.loyalty import LoyaltyCard
from loyalty_app.schemas.notification import (
    NotificationPreferences,
    NotificationPreferencesUpdate,
)
from loyalty_app.schemas.profile import ProfileRead, ProfileUpdate
from loyalty_app.schemas.session import AuthSession, MeRead
from loyalty_app.services.catalog_service import CatalogService
from loyalty_app.services.notification_service import NotificationService
from loyalty_app.services.user_service import UserService

router = APIRouter(prefix="/me", tags=["Me"])

service = UserService(
    ProfileRepository(),
    LoyaltyAccountRepository(),
    RoleRepository(),
    HistoryRepository(),
)
catalog_service = CatalogService(DealRepository(), RewardRepository())
notification_service = NotificationService(NotificationRepository())


# -------- Profile & snapshot --------


@router.get("", response_model=MeRead)
async def read_me(
    identity: AuthSession = Depends(require_auth),
    client: AsyncClient = Depends(get_admin_client),
):
    """
    Profile, loyalty account, role flags and tier progress in one payload.

    - A missing loyalty account is not an error (`is_member=false`).
    - A fetch failure leaves the field null and lists it in `failed_fields`.
    """
    return await service.get_me(client, identity)


@router.patch("", response_model=ProfileRead)
async def update_me(
    payload: ProfileUpdate,
    identity: AuthSession = Depends(require_auth),
    client: AsyncClient = Depends(get_admin_client),
):
    """
    Edit name / phone / birthday.

    - 409 if the phone number belongs to another account.
    """
    return await service.update_profile(client, identity, payload)


# -------- Loyalty --------


@router.get("/card", response_model=LoyaltyCard)
async def read_card(
    identity: AuthSession = Depends(require_auth),
    client: AsyncClient = Depends(get_admin_client),
):
    """Barcode screen data. 404 until the loyalty account exists."""
    return await service.get_card(client, identity)


@router.get("/points-history", response_model=list[PointsLedgerEntry])
async def read_points_history(
    identity: AuthSession = Depends(require_auth),
    client: AsyncClient = Depends(get_admin_client),
):
    return await service.points_history(client, identity)


@router.get("/purchases", response_model=list[PurchaseRead])
async def read_purchases(
    identity: AuthSession = Depends(require_auth),
    client: AsyncClient = Depends(get_admin_client),
):
    return await service.purchases(client, identity)


@router.get("/redemptions", response_model=RedemptionGroups)
async def read_redemptions(
    identity: AuthSession = Depends(require_auth),
    client: AsyncClient = Depends(get_admin_client),
):
    """Redemptions split into active and used."""
    account = await service.get_account(client, identity)
    if account is None:
        return RedemptionGroups(active=[], used=[])
    return await catalog_service.list_redemptions(client, account)


# -------- Settings --------


@router.get("/preferences", response_model=NotificationPreferences)
async def read_preferences(
    identity: AuthSession = Depends(require_auth),
    client: AsyncClient = Depends(get_admin_client),
):
    return await notification_service.get_preferences(client, identity.user_id)


@router.patch("/preferences", response_model=NotificationPreferences)
async def update_preferences(
    payload: NotificationPreferencesUpdate,
    identity: AuthSession = Depends(require_auth),
    client: AsyncClient = Depends(get_admin_client),
):
    """Partial update; omitted toggles keep their stored value."""
    return await notification_service.update_preferences(client, identity.user_id, payload)
