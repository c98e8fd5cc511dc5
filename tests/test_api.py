"""
Screen data API: auth guards, /me payloads, catalogue, store locator,
notifications and notification settings.
"""
import uuid
from datetime import datetime, timedelta, timezone

import httpx
import pytest
from httpx import ASGITransport
from supabase import PostgrestAPIError

from fakes import loyalty_row, make_token, profile_row
from loyalty_app import main

pytestmark = pytest.mark.anyio

API = "/api/v1"


@pytest.fixture
def gateway(fake_supabase):
    main.app.state.supabase_public = fake_supabase
    main.app.state.supabase_admin = fake_supabase
    return fake_supabase


@pytest.fixture
def member(gateway):
    user = str(uuid.uuid4())
    account = loyalty_row(user, current_points=1_200, lifetime_points=12_500)
    gateway.tables["profiles"] = [profile_row(user)]
    gateway.tables["loyalty_accounts"] = [account]
    return user, account


async def _client(token: str | None = None) -> httpx.AsyncClient:
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    return httpx.AsyncClient(
        transport=ASGITransport(app=main.app), base_url="http://test", headers=headers
    )


def _iso(delta: timedelta) -> str:
    return (datetime.now(timezone.utc) + delta).isoformat()


# -------- auth guards --------


async def test_health():
    async with (await _client()) as c:
        r = await c.get("/")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


@pytest.mark.parametrize("path", ["/me", "/me/card", "/notifications", "/me/preferences"])
async def test_private_screens_require_auth(gateway, path):
    async with (await _client()) as c:
        r = await c.get(API + path)
    assert r.status_code == 401
    assert r.json()["detail"] == "Authentication required"


async def test_invalid_token_is_rejected(gateway):
    async with (await _client("not-a-jwt")) as c:
        r = await c.get(f"{API}/me")
    assert r.status_code == 401
    assert r.json()["detail"] == "Invalid or expired token"


# -------- /me --------


async def test_me_returns_snapshot_with_tier_progress(gateway, member):
    user, _ = member
    gateway.tables["user_roles"] = [{"user_id": user, "role": "admin"}]

    async with (await _client(make_token(user))) as c:
        r = await c.get(f"{API}/me")

    assert r.status_code == 200
    body = r.json()
    assert body["profile"]["user_id"] == user
    assert body["loyalty_account"]["current_points"] == 1_200
    assert body["is_admin"] is True
    assert body["is_staff"] is False
    assert body["is_member"] is True
    assert body["activation_pending"] is False
    assert body["tier_progress"]["next_tier"] == "gold"
    assert body["tier_progress"]["percent"] == 50.0
    assert body["failed_fields"] == []


async def test_me_for_fresh_signup_is_activation_pending(gateway):
    user = str(uuid.uuid4())

    async with (await _client(make_token(user))) as c:
        r = await c.get(f"{API}/me")

    body = r.json()
    assert r.status_code == 200
    assert body["profile"] is None
    assert body["loyalty_account"] is None
    assert body["activation_pending"] is True
    assert body["tier_progress"] is None


async def test_me_reports_failed_role_fetch(gateway, member):
    user, _ = member
    gateway.failures["rpc:has_role"] = RuntimeError("rpc down")

    async with (await _client(make_token(user))) as c:
        r = await c.get(f"{API}/me")

    body = r.json()
    assert body["is_admin"] is None
    assert body["is_staff"] is None
    assert body["failed_fields"] == ["is_admin", "is_staff"]


async def test_patch_me_upserts_profile(gateway, member):
    user, _ = member

    async with (await _client(make_token(user, email="member@example.com"))) as c:
        r = await c.patch(
            f"{API}/me",
            json={"full_name": "  New Name ", "phone": "0831112222", "birthday": "1990-05-17"},
        )

    assert r.status_code == 200
    assert r.json()["full_name"] == "New Name"
    [row] = gateway.tables["profiles"]
    assert row["phone"] == "0831112222"
    assert row["birthday"] == "1990-05-17"


async def test_patch_me_duplicate_phone_is_409(gateway, member):
    user, _ = member
    gateway.failures["profiles"] = PostgrestAPIError(
        {"message": "duplicate key value violates unique constraint", "code": "23505", "hint": None, "details": None}
    )

    async with (await _client(make_token(user))) as c:
        r = await c.patch(f"{API}/me", json={"full_name": "Thandi", "phone": "0831112222"})

    assert r.status_code == 409
    assert r.json()["detail"] == "This phone number is already linked to another account."


async def test_patch_me_rejects_bad_phone(gateway, member):
    user, _ = member
    async with (await _client(make_token(user))) as c:
        r = await c.patch(f"{API}/me", json={"full_name": "Thandi", "phone": "123"})
    assert r.status_code == 422


async def test_patch_me_name_only_keeps_phone_and_birthday(gateway, member):
    user, _ = member
    gateway.tables["profiles"][0]["birthday"] = "1990-05-17"

    async with (await _client(make_token(user))) as c:
        r = await c.patch(f"{API}/me", json={"full_name": "Renamed Member"})

    assert r.status_code == 200
    [row] = gateway.tables["profiles"]
    assert row["full_name"] == "Renamed Member"
    assert row["phone"] == "+27821234567"
    assert row["birthday"] == "1990-05-17"


async def test_patch_me_empty_phone_clears_it(gateway, member):
    user, _ = member

    async with (await _client(make_token(user))) as c:
        r = await c.patch(f"{API}/me", json={"full_name": "Thandi", "phone": ""})

    assert r.status_code == 200
    assert gateway.tables["profiles"][0]["phone"] is None


async def test_patch_me_without_email_claim_keeps_email(gateway, member):
    user, _ = member

    async with (await _client(make_token(user, email=None))) as c:
        r = await c.patch(f"{API}/me", json={"full_name": "Thandi"})

    assert r.status_code == 200
    assert gateway.tables["profiles"][0]["email"] == "member@example.com"


# -------- loyalty screens --------


async def test_card(gateway, member):
    user, account = member
    async with (await _client(make_token(user))) as c:
        r = await c.get(f"{API}/me/card")

    assert r.status_code == 200
    assert r.json()["barcode_value"] == account["barcode_value"]
    assert r.json()["member_id"] == account["member_id"]


async def test_card_without_account_is_404(gateway):
    async with (await _client(make_token(str(uuid.uuid4())))) as c:
        r = await c.get(f"{API}/me/card")
    assert r.status_code == 404
    assert r.json()["detail"] == "Loyalty account not activated"


async def test_points_history_and_purchases(gateway, member):
    user, account = member
    gateway.tables["points_ledger"] = [
        {
            "id": str(uuid.uuid4()),
            "loyalty_account_id": account["id"],
            "transaction_type": "earn",
            "description": "Purchase",
            "points": 120,
            "created_at": "2025-03-01T10:00:00+00:00",
        },
        {
            "id": str(uuid.uuid4()),
            "loyalty_account_id": account["id"],
            "transaction_type": "redeem",
            "description": "Coffee voucher",
            "points": -500,
            "created_at": "2025-03-05T10:00:00+00:00",
        },
    ]
    gateway.tables["purchases"] = [
        {
            "id": str(uuid.uuid4()),
            "loyalty_account_id": account["id"],
            "receipt_reference": "RCPT-1",
            "total_amount": 249.99,
            "purchase_date": "2025-03-01T10:00:00+00:00",
            "stores": {"name": "Canal Walk", "address": "Century Blvd", "city": "Cape Town"},
        }
    ]

    async with (await _client(make_token(user))) as c:
        history = (await c.get(f"{API}/me/points-history")).json()
        purchases = (await c.get(f"{API}/me/purchases")).json()

    assert [e["points"] for e in history] == [-500, 120]
    assert purchases[0]["store_name"] == "Canal Walk"


async def test_history_without_account_is_empty(gateway):
    async with (await _client(make_token(str(uuid.uuid4())))) as c:
        r = await c.get(f"{API}/me/points-history")
    assert r.status_code == 200
    assert r.json() == []


async def test_redemptions_grouped_with_titles(gateway, member):
    user, account = member

    def redemption(status, **extra):
        return {
            "id": str(uuid.uuid4()),
            "loyalty_account_id": account["id"],
            "redemption_code": f"RC-{status}",
            "status": status,
            "points_spent": 500,
            "expires_at": _iso(timedelta(days=30)),
            "created_at": _iso(timedelta(days=-1)),
            **extra,
        }

    gateway.tables["redemptions"] = [
        redemption("active", rewards={"title": "Free coffee"}, deals=None),
        redemption("used", rewards=None, deals={"title": "20% off shoes"}),
        redemption("expired"),
    ]

    async with (await _client(make_token(user))) as c:
        r = await c.get(f"{API}/me/redemptions")

    body = r.json()
    assert [x["title"] for x in body["active"]] == ["Free coffee"]
    assert [x["title"] for x in body["used"]] == ["20% off shoes"]


# -------- catalogue --------


def _deal(title, category, ends_in, created, **extra):
    return {
        "id": str(uuid.uuid4()),
        "title": title,
        "description": extra.pop("description", None),
        "discount_value": "20%",
        "category": category,
        "is_active": extra.pop("is_active", True),
        "valid_until": _iso(ends_in),
        "created_at": created,
        **extra,
    }


async def test_deals_categories_filter_and_ending_soon(gateway):
    gateway.tables["deals"] = [
        _deal("Winter jackets", "Fashion", timedelta(days=3), "2025-03-03T00:00:00+00:00"),
        _deal("Blender sale", "Home", timedelta(days=20), "2025-03-02T00:00:00+00:00", description="Kitchen deals"),
        _deal("Sneakers", "Fashion", timedelta(days=10), "2025-03-01T00:00:00+00:00"),
        _deal("Old promo", "Toys", timedelta(days=1), "2025-03-04T00:00:00+00:00", is_active=False),
    ]

    async with (await _client()) as c:
        all_deals = (await c.get(f"{API}/deals")).json()
        fashion = (await c.get(f"{API}/deals", params={"category": "fashion"})).json()
        kitchen = (await c.get(f"{API}/deals", params={"q": "KITCHEN"})).json()

    assert all_deals["categories"] == ["Fashion", "Home"]
    assert [d["title"] for d in all_deals["deals"]] == ["Winter jackets", "Blender sale", "Sneakers"]
    assert [d["ending_soon"] for d in all_deals["deals"]] == [True, False, False]
    assert [d["title"] for d in fashion["deals"]] == ["Winter jackets", "Sneakers"]
    assert [d["title"] for d in kitchen["deals"]] == ["Blender sale"]


def _reward(title, cost):
    return {
        "id": str(uuid.uuid4()),
        "title": title,
        "category": "voucher",
        "points_cost": cost,
        "is_active": True,
    }


async def test_rewards_affordability_for_guest_and_member(gateway, member):
    user, _ = member
    gateway.tables["rewards"] = [_reward("Spa day", 5_000), _reward("Coffee", 500)]

    async with (await _client()) as c:
        guest = (await c.get(f"{API}/rewards")).json()
    async with (await _client(make_token(user))) as c:
        mine = (await c.get(f"{API}/rewards")).json()

    assert [r["title"] for r in guest] == ["Coffee", "Spa day"]
    assert [r["affordable"] for r in guest] == [None, None]
    assert [r["affordable"] for r in mine] == [True, False]


# -------- store locator --------


def _store_row(name, lat=None, lng=None, city="Cape Town"):
    return {
        "id": str(uuid.uuid4()),
        "name": name,
        "address": "1 Main Rd",
        "city": city,
        "province": "Western Cape",
        "latitude": lat,
        "longitude": lng,
        "is_active": True,
    }


async def test_stores_nearest_first(gateway):
    gateway.tables["stores"] = [
        _store_row("A", -33.9249 + 5 / 111.195, 18.4241),
        _store_row("B"),
        _store_row("C", -33.9249 + 2 / 111.195, 18.4241),
        _store_row("D", -26.2041, 28.0473, city="Johannesburg"),
    ]

    async with (await _client()) as c:
        near = (await c.get(f"{API}/stores", params={"lat": -33.9249, "lng": 18.4241})).json()
        plain = (await c.get(f"{API}/stores")).json()
        joburg = (await c.get(f"{API}/stores", params={"city": "Johannesburg"})).json()

    assert [s["name"] for s in near["stores"]] == ["C", "A", "D", "B"]
    assert near["stores"][-1]["distance_km"] is None
    assert near["cities"] == ["Cape Town", "Johannesburg"]
    assert [s["name"] for s in plain["stores"]] == ["A", "B", "C", "D"]
    assert [s["name"] for s in joburg["stores"]] == ["D"]


async def test_stores_rejects_out_of_range_coordinates(gateway):
    async with (await _client()) as c:
        r = await c.get(f"{API}/stores", params={"lat": 120, "lng": 0})
    assert r.status_code == 422


# -------- notifications --------


def _notification(user, title, read, created):
    return {
        "id": str(uuid.uuid4()),
        "user_id": user,
        "title": title,
        "message": f"{title}!",
        "type": "points",
        "is_read": read,
        "created_at": created,
    }


async def test_notifications_inbox_and_mark_read(gateway, member):
    user, _ = member
    other = str(uuid.uuid4())
    first = _notification(user, "Points earned", False, "2025-03-01T10:00:00+00:00")
    second = _notification(user, "Tier up", False, "2025-03-02T10:00:00+00:00")
    foreign = _notification(other, "Not yours", False, "2025-03-03T10:00:00+00:00")
    gateway.tables["notifications"] = [first, second, foreign]

    async with (await _client(make_token(user))) as c:
        inbox = (await c.get(f"{API}/notifications")).json()
        assert inbox["unread_count"] == 2
        assert [n["title"] for n in inbox["notifications"]] == ["Tier up", "Points earned"]

        r = await c.post(f"{API}/notifications/{first['id']}/read")
        assert r.status_code == 204
        assert (await c.get(f"{API}/notifications")).json()["unread_count"] == 1

        r = await c.post(f"{API}/notifications/{foreign['id']}/read")
        assert r.status_code == 404

        r = await c.post(f"{API}/notifications/read-all")
        assert r.json()["unread_count"] == 0

    assert foreign["is_read"] is False
    assert all(n["is_read"] for n in gateway.tables["notifications"] if n["user_id"] == user)


async def test_preferences_default_then_partial_update(gateway, member):
    user, _ = member

    async with (await _client(make_token(user))) as c:
        defaults = (await c.get(f"{API}/me/preferences")).json()
        updated = (await c.patch(f"{API}/me/preferences", json={"sms_enabled": True, "promo_notifications": False})).json()
        again = (await c.get(f"{API}/me/preferences")).json()

    assert defaults["push_enabled"] is True
    assert defaults["sms_enabled"] is False
    assert updated["sms_enabled"] is True
    assert updated["promo_notifications"] is False
    assert updated["email_enabled"] is True
    assert again == updated
