# loyalty_app/services/tiers.py
"""
The one shared tier table.

Tier itself is derived by the gateway; this table only renders progress
towards the next tier. Every threshold lookup goes through here.
"""
import logging

from loyalty_app.schemas.loyalty import LoyaltyAccountRead, Tier, TierProgress

logger = logging.getLogger(__name__)

# Ordered lowest -> highest: (tier, lifetime points needed to reach it)
TIER_TABLE: tuple[tuple[Tier, int], ...] = (
    ("silver", 0),
    ("gold", 25_000),
    ("platinum", 50_000),
)


def _index_of(tier: Tier) -> int:
    for idx, (name, _) in enumerate(TIER_TABLE):
        if name == tier:
            return idx
    raise ValueError(f"Unknown tier: {tier}")


def tier_for_points(lifetime_points: int) -> Tier:
    """Highest tier whose threshold is <= lifetime_points."""
    current: Tier = TIER_TABLE[0][0]
    for name, threshold in TIER_TABLE:
        if lifetime_points >= threshold:
            current = name
    return current


def next_tier(tier: Tier) -> tuple[Tier, int] | None:
    """(next tier, its threshold), or None at the top tier."""
    idx = _index_of(tier)
    if idx + 1 >= len(TIER_TABLE):
        return None
    return TIER_TABLE[idx + 1]


def tier_progress(account: LoyaltyAccountRead) -> TierProgress:
    """
    Progress from the account's current tier to the next one.

    - The gateway's tier is displayed as-is; a disagreement with the local
      table is only logged.
    - Uses the gateway's `next_tier_points` when present.
    - percent is capped at 100.
    """
    tier = account.current_tier
    lifetime = account.lifetime_points

    expected = tier_for_points(lifetime)
    if expected != tier:
        logger.warning(
            "Tier table drift for account %s: gateway=%s local=%s (lifetime=%s)",
            account.id,
            tier,
            expected,
            lifetime,
        )

    upcoming = next_tier(tier)
    if upcoming is None:
        return TierProgress(
            current_tier=tier,
            multiplier=account.tier_multiplier,
            lifetime_points=lifetime,
        )

    name, threshold = upcoming
    if account.next_tier_points is not None:
        threshold = account.next_tier_points

    percent = min(lifetime / threshold * 100, 100.0) if threshold > 0 else 100.0

    return TierProgress(
        current_tier=tier,
        multiplier=account.tier_multiplier,
        lifetime_points=lifetime,
        next_tier=name,
        next_tier_points=threshold,
        points_to_next=max(threshold - lifetime, 0),
        percent=round(percent, 1),
    )
