# loyalty_app/routers/catalog.py
from fastapi import APIRouter, Depends, Query, Request
from supabase import AsyncClient

from loyalty_app.core.auth import get_current_identity
from loyalty_app.core.supabase_client import get_admin_client, get_public_client
from loyalty_app.repositories.catalog_repo import DealRepository, RewardRepository
from loyalty_app.repositories.loyalty_repo import LoyaltyAccountRepository
from loyalty_app.repositories.store_repo import StoreRepository
from loyalty_app.schemas.catalog import DealList, RewardView
from loyalty_app.schemas.session import AuthSession
from loyalty_app.schemas.store import Coordinate, StoreList
from loyalty_app.services.catalog_service import CatalogService
from loyalty_app.services.store_locator import filter_stores, list_cities, rank_stores

router = APIRouter(tags=["Catalog"])

service = CatalogService(DealRepository(), RewardRepository())
loyalty_repo = LoyaltyAccountRepository()
store_repo = StoreRepository()


@router.get("/deals", response_model=DealList)
async def list_deals(
    category: str | None = None,
    q: str | None = None,
    client: AsyncClient = Depends(get_public_client),
):
    """
    Active deals, newest first.

    - `category`: case-insensitive, "all" for every category
    - `q`: searches title and description
    """
    return await service.list_deals(client, category=category, query=q)


@router.get("/rewards", response_model=list[RewardView])
async def list_rewards(
    request: Request,
    identity: AuthSession | None = Depends(get_current_identity),
    client: AsyncClient = Depends(get_public_client),
):
    """
    Active rewards, cheapest first.

    - Guests get `affordable=null`.
    - Signed-in callers get `affordable` against their current points.
    """
    account = None
    if identity is not None:
        admin = get_admin_client(request)
        account = await loyalty_repo.get_by_user_id(admin, identity.user_id)
    return await service.list_rewards(client, account)


@router.get("/stores", response_model=StoreList)
async def list_stores(
    lat: float | None = Query(default=None, ge=-90, le=90),
    lng: float | None = Query(default=None, ge=-180, le=180),
    q: str | None = None,
    city: str | None = None,
    client: AsyncClient = Depends(get_public_client),
):
    """
    Store locator.

    - With `lat`/`lng`: nearest first; stores without coordinates last.
    - Without: alphabetical.
    """
    stores = await store_repo.list_active(client)
    origin = Coordinate(lat=lat, lng=lng) if lat is not None and lng is not None else None
    return StoreList(
        cities=list_cities(stores),
        stores=rank_stores(filter_stores(stores, q, city), origin),
    )
