# loyalty_app/schemas/session.py
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict
from sqlmodel import SQLModel

from loyalty_app.schemas.loyalty import LoyaltyAccountRead, TierProgress
from loyalty_app.schemas.profile import ProfileRead

# Events emitted by the gateway auth stream. Only the first four drive the
# synchronizer; the rest are passed through untouched.
AuthEventKind = Literal[
    "INITIAL_SESSION",
    "SIGNED_IN",
    "SIGNED_OUT",
    "TOKEN_REFRESHED",
    "USER_UPDATED",
    "PASSWORD_RECOVERY",
    "USER_DELETED",
    "MFA_CHALLENGE_VERIFIED",
]

SessionStatus = Literal["loading", "authenticated", "anonymous"]

SNAPSHOT_FIELDS = ("profile", "loyalty_account", "is_admin", "is_staff")


class AuthSession(SQLModel):
    """
    The authenticated identity plus its session token.

    Built either from a gateway session object (client core) or from a
    verified bearer token (API). The client never mints or validates tokens
    itself.
    """

    user_id: str
    email: str | None = None
    access_token: str
    refresh_token: str | None = None
    expires_at: int | None = None

    @classmethod
    def from_gateway(cls, session: Any) -> "AuthSession | None":
        """
        Convert a supabase-auth `Session` into an AuthSession.

        Returns None for a missing session or one without a user.
        """
        if session is None:
            return None
        user = getattr(session, "user", None)
        if user is None:
            return None
        return cls(
            user_id=str(user.id),
            email=getattr(user, "email", None),
            access_token=session.access_token,
            refresh_token=getattr(session, "refresh_token", None),
            expires_at=getattr(session, "expires_at", None),
        )


class UserSnapshot(BaseModel):
    """
    One atomic result of a synchronizer cycle.

    All four data fields are replaced together. `None` means "absent": either
    there is no identity, the row does not exist, or its fetch failed (see
    `failed_fields`). Role flags are never defaulted to False on failure.
    """

    model_config = ConfigDict(frozen=True)

    identity_id: str | None = None
    profile: ProfileRead | None = None
    loyalty_account: LoyaltyAccountRead | None = None
    is_admin: bool | None = None
    is_staff: bool | None = None
    failed_fields: frozenset[str] = frozenset()

    @classmethod
    def empty(cls) -> "UserSnapshot":
        return cls()

    @property
    def is_empty(self) -> bool:
        return self.identity_id is None

    @property
    def activation_pending(self) -> bool:
        """Identity known, profile row not there yet (and not a fetch error)."""
        return (
            self.identity_id is not None
            and self.profile is None
            and "profile" not in self.failed_fields
        )

    @property
    def is_member(self) -> bool:
        return self.loyalty_account is not None and self.loyalty_account.is_active


class MeRead(SQLModel):
    """Home/profile screen payload: the snapshot plus derived display data."""

    profile: ProfileRead | None = None
    loyalty_account: LoyaltyAccountRead | None = None
    is_admin: bool | None = None
    is_staff: bool | None = None
    activation_pending: bool = False
    is_member: bool = False
    tier_progress: TierProgress | None = None
    failed_fields: list[str] = []
