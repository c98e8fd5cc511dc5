# loyalty_app/session/store.py
import asyncio
import logging
from typing import Any, Callable

from loyalty_app.schemas.session import AuthEventKind, AuthSession, SessionStatus

logger = logging.getLogger(__name__)

SessionListener = Callable[[AuthEventKind, AuthSession | None], None]


class SessionStore:
    """
    Holder of the zero-or-one active identity and its session token.

    Lifecycle:
      - start(): subscribe to the gateway auth stream, then load the
        existing session (bounded by a timeout)
      - close(): unsubscribe

    Listeners are called synchronously, in the order the gateway emits
    events. They must not block; anything that needs the network is
    scheduled as a task (see UserDataSynchronizer.request_sync).
    """

    def __init__(self, auth: Any, *, init_timeout: float = 10.0):
        # auth: the gateway auth client (supabase AsyncGoTrueClient)
        self._auth = auth
        self._init_timeout = init_timeout
        self._session: AuthSession | None = None
        self._status: SessionStatus = "loading"
        self._listeners: list[SessionListener] = []
        self._subscription = None

    # ----- Reads -----

    def get_current_session(self) -> AuthSession | None:
        """Currently known session; never touches the network."""
        return self._session

    @property
    def status(self) -> SessionStatus:
        return self._status

    # ----- Subscriptions -----

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ----- Lifecycle -----

    async def start(self) -> AuthSession | None:
        """
        Subscribe FIRST so no event emitted during the initial check is lost,
        then resolve the existing session.

        A failing or hanging `get_session()` resolves to "no session".
        """
        if self._subscription is None:
            self._subscription = self._auth.on_auth_state_change(self._on_auth_event)

        try:
            raw = await asyncio.wait_for(self._auth.get_session(), timeout=self._init_timeout)
        except asyncio.TimeoutError:
            logger.warning("Initial session check timed out after %ss", self._init_timeout)
            raw = None
        except Exception:
            logger.exception("Initial session check failed")
            raw = None

        # An auth event may already have resolved the state while we waited.
        if self._status == "loading":
            session = AuthSession.from_gateway(raw)
            self._apply("INITIAL_SESSION", session)
        return self._session

    async def close(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        self._listeners.clear()

    # ----- Sign-out -----

    async def sign_out(self) -> None:
        """
        Clear local state synchronously (listeners included), then invalidate
        the token at the gateway. A gateway failure does not restore the
        local session.
        """
        self._apply("SIGNED_OUT", None)
        try:
            await self._auth.sign_out()
        except Exception:
            logger.exception("Gateway sign-out failed; local session already cleared")

    # ----- Internals -----

    def _on_auth_event(self, event: AuthEventKind, session: Any) -> None:
        """Callback handed to the gateway's on_auth_state_change."""
        self._apply(event, AuthSession.from_gateway(session))

    def _apply(self, event: AuthEventKind, session: AuthSession | None) -> None:
        self._session = session
        self._status = "authenticated" if session is not None else "anonymous"
        logger.debug("Auth event %s (user=%s)", event, session.user_id if session else None)

        for listener in list(self._listeners):
            listener(event, session)
