# loyalty_app/session/context.py
import logging

import httpx
from supabase import AsyncClient, AuthError, FunctionsError

from loyalty_app.core.config import Settings, get_settings
from loyalty_app.core.errors import (
    AccountDeletionError,
    AuthFailedError,
    GatewayError,
    NotAuthenticatedError,
)
from loyalty_app.repositories.loyalty_repo import LoyaltyAccountRepository
from loyalty_app.repositories.profile_repo import ProfileRepository
from loyalty_app.schemas.forms import LoginForm, OtpForm, PasswordResetForm, SignUpForm
from loyalty_app.schemas.profile import ProfileCreate
from loyalty_app.schemas.session import AuthSession, UserSnapshot
from loyalty_app.services.id_numbers import hash_id_number
from loyalty_app.session.store import SessionStore
from loyalty_app.session.synchronizer import UserDataSynchronizer

logger = logging.getLogger(__name__)

DELETE_ACCOUNT_FUNCTION = "delete-account"


class AuthContext:
    """
    The client's single owner of auth state.

    Wires one SessionStore to one UserDataSynchronizer and exposes the auth
    operations the screens call. Consumers hold a reference to this object;
    there is no module-level session.

    Usage:

        ctx = AuthContext(client)
        await ctx.start()
        await ctx.sign_in(LoginForm(email=..., password=...))
        ctx.snapshot.loyalty_account
        ...
        await ctx.close()
    """

    def __init__(
        self,
        client: AsyncClient,
        *,
        settings: Settings | None = None,
        store: SessionStore | None = None,
        synchronizer: UserDataSynchronizer | None = None,
        profile_repo: ProfileRepository | None = None,
        loyalty_repo: LoyaltyAccountRepository | None = None,
    ):
        self.client = client
        self.settings = settings or get_settings()
        self.profile_repo = profile_repo or ProfileRepository()
        self.loyalty_repo = loyalty_repo or LoyaltyAccountRepository()
        self.store = store or SessionStore(
            client.auth, init_timeout=self.settings.SESSION_INIT_TIMEOUT_SECONDS
        )
        self.synchronizer = synchronizer or UserDataSynchronizer(
            client,
            profile_repo=self.profile_repo,
            loyalty_repo=self.loyalty_repo,
            profile_retry_delay=self.settings.PROFILE_RETRY_DELAY_SECONDS,
        )
        self._unsubscribe = self.store.subscribe(self.synchronizer.on_session_change)

    # ----- Lifecycle -----

    async def start(self) -> UserSnapshot:
        """
        Resolve the existing session and, if there is one, load its data.
        """
        session = await self.store.start()
        if session is not None:
            await self.synchronizer.wait_idle()
        return self.synchronizer.snapshot

    async def close(self) -> None:
        self._unsubscribe()
        await self.store.close()
        await self.synchronizer.wait_idle()

    # ----- Reads -----

    @property
    def session(self) -> AuthSession | None:
        return self.store.get_current_session()

    @property
    def snapshot(self) -> UserSnapshot:
        return self.synchronizer.snapshot

    @property
    def is_loading(self) -> bool:
        return self.store.status == "loading"

    # ----- Auth operations -----

    async def sign_in(self, form: LoginForm) -> None:
        """
        Raises:
            AuthFailedError: invalid credentials, unconfirmed email, ...
        """
        try:
            await self.client.auth.sign_in_with_password(
                {"email": form.email, "password": form.password}
            )
        except AuthError as exc:
            raise AuthFailedError(exc.message, code=getattr(exc, "code", None)) from exc

    async def sign_up(self, form: SignUpForm) -> str:
        """
        Create the auth user, its profile and an inactive loyalty account,
        then email the signup OTP.

        Returns the new user id.

        Raises:
            AuthFailedError: the gateway refused the sign-up or the OTP send.
            GatewayError: the profile row could not be written.
        """
        try:
            response = await self.client.auth.sign_up(
                {
                    "email": form.email,
                    "password": form.password,
                    "options": {
                        "email_redirect_to": f"{self.settings.APP_BASE_URL}/",
                        "data": {"full_name": form.full_name},
                    },
                }
            )
        except AuthError as exc:
            raise AuthFailedError(exc.message, code=getattr(exc, "code", None)) from exc

        if response.user is None:
            raise AuthFailedError("Failed to create user.")
        user_id = str(response.user.id)

        try:
            await self.profile_repo.create(
                self.client,
                ProfileCreate(
                    user_id=user_id,
                    full_name=form.full_name,
                    email=form.email,
                    phone=form.phone,
                    id_number_hash=hash_id_number(form.id_number),
                ),
            )
            await self.loyalty_repo.create_for_user(
                self.client, user_id, referred_by_staff_code=form.staff_code
            )
        except Exception as exc:
            logger.error("Sign-up %s: creating profile rows failed: %s", user_id, exc)
            raise GatewayError("Could not create your profile. Please try again.") from exc

        await self.resend_otp(form.email)
        logger.info("Sign-up %s: profile created, OTP sent", user_id)
        return user_id

    async def verify_otp(self, form: OtpForm) -> None:
        """
        Raises:
            AuthFailedError: wrong or expired code.
        """
        try:
            await self.client.auth.verify_otp(
                {"email": form.email, "token": form.code, "type": form.purpose}
            )
        except AuthError as exc:
            raise AuthFailedError(exc.message, code=getattr(exc, "code", None)) from exc

    async def resend_otp(self, email: str) -> None:
        try:
            await self.client.auth.sign_in_with_otp({"email": email})
        except AuthError as exc:
            raise AuthFailedError(exc.message, code=getattr(exc, "code", None)) from exc

    async def request_password_reset(self, form: PasswordResetForm) -> None:
        try:
            await self.client.auth.reset_password_for_email(
                form.email,
                {"redirect_to": f"{self.settings.APP_BASE_URL}/auth?mode=reset"},
            )
        except AuthError as exc:
            raise AuthFailedError(exc.message, code=getattr(exc, "code", None)) from exc

    async def sign_out(self) -> None:
        """Local state is cleared before this returns control to the loop."""
        await self.store.sign_out()

    async def refresh_user_data(self) -> UserSnapshot | None:
        """Re-sync the current identity. No-op when signed out."""
        session = self.session
        if session is None:
            return None
        return await self.synchronizer.sync(session.user_id)

    # ----- Account deletion -----

    async def delete_account(self) -> None:
        """
        Invoke the delete-account function, then sign out.

        Raises:
            NotAuthenticatedError: no active session.
            AccountDeletionError: the function failed; never retried.
        """
        session = self.session
        if session is None:
            raise NotAuthenticatedError("No active session")

        try:
            await self.client.functions.invoke(
                DELETE_ACCOUNT_FUNCTION,
                invoke_options={
                    "headers": {"Authorization": f"Bearer {session.access_token}"},
                },
            )
        except (FunctionsError, httpx.HTTPError) as exc:
            logger.error("Delete account error: %s", exc)
            raise AccountDeletionError() from exc

        await self.sign_out()
