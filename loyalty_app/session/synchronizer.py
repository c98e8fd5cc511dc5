# loyalty_app/session/synchronizer.py
import asyncio
import logging
from typing import Any, Callable

from supabase import AsyncClient

from loyalty_app.repositories.loyalty_repo import LoyaltyAccountRepository
from loyalty_app.repositories.profile_repo import ProfileRepository
from loyalty_app.repositories.role_repo import RoleRepository
from loyalty_app.schemas.session import (
    SNAPSHOT_FIELDS,
    AuthEventKind,
    AuthSession,
    UserSnapshot,
)

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[UserSnapshot], None]


class UserDataSynchronizer:
    """
    Fetches profile, loyalty account and role flags for an identity and
    publishes them as one snapshot.

    Rules:
      - gather-then-publish: the four fetches run concurrently and the
        snapshot is replaced only once all of them settled
      - a failed fetch leaves its field absent (None) and is logged; nothing
        is carried over from the previous snapshot
      - last-requested wins: every sync(), request_sync() and clear() takes a
        new sequence number when called, and a sync publishes only if its
        number is still the latest when it completes. Superseded results are
        dropped, not cancelled.

    All mutation happens on the event loop thread, so the sequence check
    needs no lock.
    """

    def __init__(
        self,
        client: AsyncClient,
        profile_repo: ProfileRepository | None = None,
        loyalty_repo: LoyaltyAccountRepository | None = None,
        role_repo: RoleRepository | None = None,
        *,
        profile_retry_delay: float = 0.5,
    ):
        self.client = client
        self.profile_repo = profile_repo or ProfileRepository()
        self.loyalty_repo = loyalty_repo or LoyaltyAccountRepository()
        self.role_repo = role_repo or RoleRepository()
        self.profile_retry_delay = profile_retry_delay

        self._seq = 0
        self._snapshot = UserSnapshot.empty()
        self._listeners: list[SnapshotListener] = []
        self._tasks: set[asyncio.Task] = set()

    # ----- Reads -----

    @property
    def snapshot(self) -> UserSnapshot:
        return self._snapshot

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ----- Operations -----

    async def sync(self, identity_id: str) -> UserSnapshot | None:
        """
        Fetch and publish a fresh snapshot for `identity_id`.

        Returns the published snapshot, or None if a newer sync()/clear()
        superseded this one before it completed.
        """
        return await self._sync(identity_id, self._next_ticket())

    def request_sync(self, identity_id: str) -> asyncio.Task:
        """
        Schedule a sync in the background.

        The sequence number is taken here, before the task runs, so a clear()
        or sync() issued after this call supersedes it.

        Used from the auth-event callback, which runs inside the gateway's
        emitter and must not await gateway calls itself.
        """
        ticket = self._next_ticket()
        task = asyncio.get_running_loop().create_task(self._sync(identity_id, ticket))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def clear(self) -> None:
        """
        Publish the empty snapshot right now and invalidate every in-flight
        sync. A late result never resurrects the previous user.
        """
        self._next_ticket()
        self._publish(UserSnapshot.empty())

    def on_session_change(self, event: AuthEventKind, session: AuthSession | None) -> None:
        """SessionStore listener: session present -> resync, absent -> clear."""
        if session is None:
            self.clear()
        else:
            self.request_sync(session.user_id)

    async def wait_idle(self) -> None:
        """Wait for background syncs scheduled so far (used on shutdown)."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ----- Internals -----

    def _next_ticket(self) -> int:
        self._seq += 1
        return self._seq

    async def _sync(self, identity_id: str, ticket: int) -> UserSnapshot | None:
        results = await asyncio.gather(
            self.profile_repo.get_by_user_id(self.client, identity_id),
            self.loyalty_repo.get_by_user_id(self.client, identity_id),
            self.role_repo.has_role(self.client, identity_id, "admin"),
            self.role_repo.has_role(self.client, identity_id, "staff"),
            return_exceptions=True,
        )

        values: dict[str, Any] = {}
        failed: set[str] = set()
        for field, result in zip(SNAPSHOT_FIELDS, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.error("Error fetching %s for user %s: %s", field, identity_id, result)
                failed.add(field)
                values[field] = None
            else:
                values[field] = result

        # A brand-new sign-up may not have its profile row replicated yet.
        if values["profile"] is None and "profile" not in failed and ticket == self._seq:
            values["profile"], profile_failed = await self._retry_profile(identity_id)
            if profile_failed:
                failed.add("profile")

        if ticket != self._seq:
            logger.debug("Discarding stale sync #%s for user %s", ticket, identity_id)
            return None

        snapshot = UserSnapshot(
            identity_id=identity_id,
            failed_fields=frozenset(failed),
            **values,
        )
        self._publish(snapshot)
        return snapshot

    async def _retry_profile(self, identity_id: str):
        await asyncio.sleep(self.profile_retry_delay)
        try:
            profile = await self.profile_repo.get_by_user_id(self.client, identity_id)
        except Exception as exc:
            logger.error("Error re-fetching profile for user %s: %s", identity_id, exc)
            return None, True
        if profile is None:
            logger.info("Profile for user %s not found yet; activation pending", identity_id)
        return profile, False

    def _publish(self, snapshot: UserSnapshot) -> None:
        self._snapshot = snapshot
        for listener in list(self._listeners):
            listener(snapshot)
