"""
FILE: snackboard/core/sync.py
PURPOSE: Keep the store persisted locally and (when signed in) synced remotely
EXPORTS:
  - SyncCoordinator (class)
DEPENDENCIES:
  - asyncio (debounce handle, in-flight writes)
  - logging (stdlib)
  - snackboard.core.repository (local records, LocalPersistence)
  - snackboard.core.remote (RemoteBackend, Session, auth events)
  - snackboard.core.exceptions (RemoteStoreError, RemoteConflictError)
NOTES:
  - Local write: every store change, synchronously, signed in or not
  - Remote write: debounced; a new change reschedules, an in-flight write is never cancelled
  - Upsert: update by user id, insert when nothing matched, retry update on insert conflict
  - Sign-in: migrate local board if the remote has no row, then replace from remote
  - Outgoing data carries syncOrigin; feed events with our own origin are ignored
  - The timer is never sent to or restored from the remote
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Set

from .constants import (
    LOCAL_ONLY_CHANGES,
    NOTICE_ERROR,
    NOTICE_SUCCESS,
    SESSION_KEY,
    STORAGE_KEY,
    SYNC_DEBOUNCE_SECONDS,
    SYNC_RETRY_BACKOFF_SECONDS,
    SYNC_RETRY_LIMIT,
)
from .exceptions import AuthError, RemoteConflictError, RemoteStoreError
from .models import generate_id
from .remote import SIGNED_IN, SIGNED_OUT, FeedSubscription, RemoteBackend, Session
from .repository import LocalPersistence, delete_record, load_record, save_record
from .store import Store

logger = logging.getLogger(__name__)

ORIGIN_FIELD = "syncOrigin"

NoticeListener = Callable[[str, str], None]


class SyncCoordinator:
    """
    Wires a Store to local storage and, optionally, a remote backend.

    Example:
        coordinator = SyncCoordinator(store, backend).attach()
        await coordinator.sign_in("me@example.com", "secret")
        store.create_task("Write docs")   # saved locally now, remotely after the debounce
        await coordinator.flush()
    """

    def __init__(
        self,
        store: Store,
        backend: Optional[RemoteBackend] = None,
        debounce_seconds: float = SYNC_DEBOUNCE_SECONDS,
        retry_limit: int = SYNC_RETRY_LIMIT,
        retry_backoff: float = SYNC_RETRY_BACKOFF_SECONDS,
        storage_key: str = STORAGE_KEY,
    ):
        self.store = store
        self.backend = backend
        self.debounce_seconds = debounce_seconds
        self.retry_limit = retry_limit
        self.retry_backoff = retry_backoff
        self.storage_key = storage_key
        self.instance_id = generate_id()

        self.local = LocalPersistence(store, storage_key)
        self.session: Optional[Session] = None
        self.feed: Optional[FeedSubscription] = None

        self._debounce_handle: Optional[asyncio.TimerHandle] = None
        self._dirty = False
        self._in_flight: Set["asyncio.Future[Any]"] = set()
        self._notice_listeners: List[NoticeListener] = []
        self._unsubscribe: Optional[Callable[[], None]] = None

        if backend is not None:
            backend.on_auth_change(self._on_auth_change)

    # --- Wiring ---

    def attach(self) -> "SyncCoordinator":
        """Start receiving store changes."""
        if self._unsubscribe is None:
            self._unsubscribe = self.store.subscribe(self._on_change)
        return self

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def on_notice(self, listener: NoticeListener) -> None:
        """Register listener(message, level) for user-facing notices."""
        self._notice_listeners.append(listener)

    def _notice(self, message: str, level: str = NOTICE_SUCCESS) -> None:
        for listener in list(self._notice_listeners):
            listener(message, level)

    @property
    def signed_in(self) -> bool:
        return self.session is not None

    @property
    def pending(self) -> bool:
        """True while a remote write is scheduled, owed or in flight."""
        return self._debounce_handle is not None or self._dirty or bool(self._in_flight)

    # --- Store changes ---

    def _on_change(self, change: str) -> None:
        self.local(change)
        if self.signed_in and change not in LOCAL_ONLY_CHANGES:
            self.schedule_push()

    def schedule_push(self) -> None:
        """(Re)start the debounce window for a remote write of the latest board."""
        self._dirty = True
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop yet: the write is owed and goes out on the next flush()
            logger.debug("No running loop; remote write deferred")
            return

        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
        self._debounce_handle = loop.call_later(self.debounce_seconds, self._fire)

    def _fire(self) -> None:
        self._debounce_handle = None
        self._start_push()

    def _start_push(self) -> None:
        self._dirty = False
        future = asyncio.ensure_future(self.push())
        self._in_flight.add(future)
        future.add_done_callback(self._in_flight.discard)

    async def flush(self) -> None:
        """Send any scheduled or owed write now and wait for in-flight writes."""
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
            self._debounce_handle = None
        if self._dirty and self.signed_in:
            self._start_push()
        if self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)

    # --- Remote write ---

    async def push(self, data: Optional[Dict[str, Any]] = None) -> bool:
        """
        Upsert the board (or data) to the user's remote row.

        Returns:
            True if the write landed, False if it was given up (a notice is emitted)
        """
        if self.backend is None or self.session is None:
            return False

        user_id = self.session.user_id
        record = dict(data if data is not None else self.store.remote_record())
        record[ORIGIN_FIELD] = self.instance_id

        conflicts = 0
        while True:
            try:
                if await self.backend.update_board(user_id, record) > 0:
                    return True
                await self.backend.insert_board(user_id, record)
                return True
            except RemoteConflictError:
                conflicts += 1
                if conflicts > self.retry_limit:
                    logger.error("Giving up remote write after %s conflicts", conflicts)
                    self._notice("Failed to sync to cloud", NOTICE_ERROR)
                    return False
                logger.warning("Remote row created concurrently; retrying update (%s/%s)",
                               conflicts, self.retry_limit)
                await asyncio.sleep(self.retry_backoff)
            except RemoteStoreError as e:
                logger.error("Error saving to remote: %s", e)
                self._notice("Failed to sync to cloud", NOTICE_ERROR)
                return False

    # --- Auth ---

    async def sign_up(self, email: str, password: str) -> None:
        await self._require_backend().sign_up(email, password)

    async def sign_in(self, email: str, password: str) -> Session:
        """Sign in; the SIGNED_IN handler migrates, loads and subscribes."""
        return await self._require_backend().sign_in(email, password)

    async def sign_out(self) -> None:
        await self._require_backend().sign_out()

    async def resume(self, subscribe: bool = True) -> bool:
        """
        Resume a saved session, if any, and run the sign-in flow for it.

        Returns:
            True if a session was resumed
        """
        if self.backend is None:
            return False

        saved = load_record(SESSION_KEY)
        if saved is None:
            return False

        try:
            session = Session.from_dict(saved)
        except (KeyError, TypeError, ValueError) as e:
            logger.error("Discarding unreadable saved session: %s", e)
            delete_record(SESSION_KEY)
            return False

        self.backend.restore_session(session)
        if session.expired:
            try:
                session = await self.backend.refresh_session()
            except AuthError as e:
                logger.warning("Saved session could not be refreshed: %s", e)
                self._notice("Session expired, please sign in again", NOTICE_ERROR)
                self._signed_out()
                return False

        await self._signed_in(session, subscribe=subscribe)
        return True

    def _require_backend(self) -> RemoteBackend:
        if self.backend is None:
            raise RemoteStoreError("Remote sync is not configured")
        return self.backend

    async def _on_auth_change(self, event: str, session: Optional[Session]) -> None:
        if event == SIGNED_IN and session is not None:
            await self._signed_in(session)
        elif event == SIGNED_OUT:
            self._signed_out()

    async def _signed_in(self, session: Session, subscribe: bool = True) -> None:
        self.session = session
        save_record(session.to_dict(), SESSION_KEY)

        await self.migrate()
        await self.load()
        if subscribe:
            self.start_feed()

    def _signed_out(self) -> None:
        self.stop_feed()
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
            self._debounce_handle = None
        self._dirty = False
        self.session = None
        delete_record(SESSION_KEY)
        logger.info("Signed out; changes are saved locally only")

    # --- Sign-in flow ---

    async def migrate(self) -> bool:
        """
        Copy the local board to the remote once, if the user has no remote row yet.

        Returns:
            True if a migration write landed
        """
        if self.backend is None or self.session is None:
            return False

        try:
            existing = await self.backend.fetch_board(self.session.user_id)
        except RemoteStoreError as e:
            logger.error("Migration check failed: %s", e)
            self._notice("Failed to reach cloud", NOTICE_ERROR)
            return False

        if existing is not None or not self.store.has_content():
            return False

        if await self.push(self.store.remote_record()):
            self._notice("Local data migrated to cloud!")
            return True
        return False

    async def load(self) -> bool:
        """
        Replace the board with the remote row (timer kept local).

        Returns:
            True if remote data was applied
        """
        if self.backend is None or self.session is None:
            return False

        try:
            row = await self.backend.fetch_board(self.session.user_id)
        except RemoteStoreError as e:
            logger.error("Error loading from remote: %s", e)
            self._notice("Failed to load from cloud", NOTICE_ERROR)
            return False

        if not row or not row.get("data"):
            return False

        self.store.apply_remote_record(row["data"], include_layout=True)
        return True

    # --- Change feed ---

    def start_feed(self) -> None:
        if self.backend is None or self.session is None:
            return
        self.stop_feed()
        self.feed = self.backend.subscribe(self.session.user_id, self.handle_remote_change)

    def stop_feed(self) -> None:
        if self.feed is not None:
            self.feed.close()
            self.feed = None

    def handle_remote_change(self, row: Dict[str, Any]) -> bool:
        """
        Apply a change-feed row to the store.

        Returns:
            True if the store was replaced, False for empty rows and our own echoes
        """
        data = row.get("data") if row else None
        if not data:
            return False
        if data.get(ORIGIN_FIELD) == self.instance_id:
            logger.debug("Ignoring echo of our own write")
            return False

        self.store.apply_remote_record(data, include_layout=False)
        self._notice("Synced from another device")
        return True

    async def close(self) -> None:
        """Flush pending writes and stop the feed."""
        await self.flush()
        self.stop_feed()
