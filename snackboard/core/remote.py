"""
FILE: snackboard/core/remote.py
PURPOSE: Remote board storage, auth and change feed for multi-device sync
EXPORTS:
  - Session (dataclass)
  - RemoteBackend (Protocol)
  - SupabaseBackend (hosted auth + row store over HTTP)
  - FeedSubscription (polling change feed handle)
DEPENDENCIES:
  - httpx (async HTTP client)
  - asyncio, logging (stdlib)
  - snackboard.core.exceptions (AuthError, RemoteStoreError, RemoteConflictError)
NOTES:
  - One row per user: {user_id, data, updated_at}
  - fetch_board returns None when the user has no row yet (not an error)
  - insert_board raises RemoteConflictError on a unique violation
  - Auth listeners are awaited in order, like the provider's onAuthStateChange
  - The change feed polls the user's row and fires when updated_at moves
"""

import asyncio
import logging
import time
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol

import httpx

from .constants import FEED_POLL_SECONDS, REMOTE_TABLE
from .exceptions import AuthError, RemoteConflictError, RemoteStoreError

logger = logging.getLogger(__name__)

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"

# PostgREST / Postgres error codes
NO_ROWS_CODE = "PGRST116"
UNIQUE_VIOLATION_CODE = "23505"

AuthListener = Callable[[str, Optional["Session"]], Awaitable[None]]
FeedCallback = Callable[[Dict[str, Any]], None]


@dataclass
class Session:
    """An authenticated user session."""

    user_id: str
    email: str = ""
    access_token: str = ""
    refresh_token: str = ""
    expires_at: int = 0

    @property
    def expired(self) -> bool:
        return bool(self.expires_at) and self.expires_at <= int(time.time())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Session":
        return cls(
            user_id=str(data["user_id"]),
            email=data.get("email") or "",
            access_token=data.get("access_token") or "",
            refresh_token=data.get("refresh_token") or "",
            expires_at=int(data.get("expires_at") or 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class FeedSubscription:
    """Handle for a running change feed; close() stops it."""

    def __init__(self, task: "asyncio.Task"):
        self._task = task

    @property
    def closed(self) -> bool:
        return self._task.done()

    def close(self) -> None:
        if not self._task.done():
            self._task.cancel()


class RemoteBackend(Protocol):
    """What the sync coordinator needs from an auth + row-store provider."""

    def current_session(self) -> Optional[Session]: ...

    def restore_session(self, session: Session) -> None: ...

    def on_auth_change(self, listener: AuthListener) -> None: ...

    async def sign_up(self, email: str, password: str) -> None: ...

    async def sign_in(self, email: str, password: str) -> Session: ...

    async def sign_out(self) -> None: ...

    async def refresh_session(self) -> Session: ...

    async def fetch_board(self, user_id: str) -> Optional[Dict[str, Any]]: ...

    async def update_board(self, user_id: str, data: Dict[str, Any]) -> int: ...

    async def insert_board(self, user_id: str, data: Dict[str, Any]) -> None: ...

    def subscribe(self, user_id: str, callback: FeedCallback) -> FeedSubscription: ...


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _error_details(response: httpx.Response) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {"message": response.text}
    return body if isinstance(body, dict) else {"message": str(body)}


def _error_message(details: Dict[str, Any], fallback: str) -> str:
    for key in ("message", "msg", "error_description", "error"):
        if details.get(key):
            return str(details[key])
    return fallback


class SupabaseBackend:
    """
    Hosted auth (GoTrue) and row store (PostgREST) over httpx.

    Example:
        backend = SupabaseBackend(url, anon_key)
        session = await backend.sign_in("me@example.com", "secret")
        row = await backend.fetch_board(session.user_id)
    """

    def __init__(
        self,
        url: str,
        key: str,
        table: str = REMOTE_TABLE,
        poll_seconds: float = FEED_POLL_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url.rstrip("/")
        self.key = key
        self.table = table
        self.poll_seconds = poll_seconds
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._session: Optional[Session] = None
        self._listeners: List[AuthListener] = []

    # --- HTTP plumbing ---

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.url, timeout=30.0, transport=self._transport
            )
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def _headers(self, authenticated: bool = True) -> Dict[str, str]:
        token = self.key
        if authenticated and self._session and self._session.access_token:
            token = self._session.access_token
        return {"apikey": self.key, "Authorization": f"Bearer {token}"}

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        client = await self._get_client()
        try:
            return await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error("Request %s %s failed: %s", method, path, e)
            raise RemoteStoreError(f"Cannot reach {self.url}: {e}") from e

    # --- Auth ---

    def current_session(self) -> Optional[Session]:
        return self._session

    def restore_session(self, session: Session) -> None:
        """Adopt a previously saved session without emitting an auth event."""
        self._session = session

    def on_auth_change(self, listener: AuthListener) -> None:
        self._listeners.append(listener)

    async def _emit(self, event: str) -> None:
        for listener in list(self._listeners):
            await listener(event, self._session)

    def _session_from_token(self, body: Dict[str, Any]) -> Session:
        user = body.get("user") or {}
        expires_in = int(body.get("expires_in") or 0)
        return Session(
            user_id=str(user.get("id", "")),
            email=user.get("email") or "",
            access_token=body.get("access_token") or "",
            refresh_token=body.get("refresh_token") or "",
            expires_at=int(body.get("expires_at") or (int(time.time()) + expires_in if expires_in else 0)),
        )

    async def sign_up(self, email: str, password: str) -> None:
        """Register an account; the provider sends a confirmation email."""
        try:
            response = await self._request(
                "POST",
                "/auth/v1/signup",
                json={"email": email, "password": password},
                headers=self._headers(authenticated=False),
            )
        except RemoteStoreError as e:
            raise AuthError(str(e)) from e
        if response.status_code >= 400:
            raise AuthError(_error_message(_error_details(response), "Sign-up failed"))

    async def sign_in(self, email: str, password: str) -> Session:
        """Sign in with email + password, then notify auth listeners with SIGNED_IN."""
        try:
            response = await self._request(
                "POST",
                "/auth/v1/token",
                params={"grant_type": "password"},
                json={"email": email, "password": password},
                headers=self._headers(authenticated=False),
            )
        except RemoteStoreError as e:
            raise AuthError(str(e)) from e
        if response.status_code >= 400:
            raise AuthError(_error_message(_error_details(response), "Sign-in failed"))

        self._session = self._session_from_token(response.json())
        logger.info("Signed in as %s", self._session.email)
        await self._emit(SIGNED_IN)
        return self._session

    async def refresh_session(self) -> Session:
        """Exchange the refresh token for a new access token."""
        if self._session is None or not self._session.refresh_token:
            raise AuthError("No session to refresh")

        try:
            response = await self._request(
                "POST",
                "/auth/v1/token",
                params={"grant_type": "refresh_token"},
                json={"refresh_token": self._session.refresh_token},
                headers=self._headers(authenticated=False),
            )
        except RemoteStoreError as e:
            raise AuthError(str(e)) from e
        if response.status_code >= 400:
            raise AuthError(_error_message(_error_details(response), "Session expired"))

        self._session = self._session_from_token(response.json())
        return self._session

    async def sign_out(self) -> None:
        """End the session, then notify auth listeners with SIGNED_OUT."""
        if self._session is None:
            return

        try:
            response = await self._request("POST", "/auth/v1/logout", headers=self._headers())
            if response.status_code >= 400:
                # The token may already be revoked; the local session ends regardless
                logger.warning(
                    "Sign-out returned %s: %s",
                    response.status_code,
                    _error_message(_error_details(response), "unknown error"),
                )
        finally:
            self._session = None
            await self._emit(SIGNED_OUT)

    # --- Rows ---

    async def fetch_board(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Fetch the user's row, or None if there is none yet."""
        response = await self._request(
            "GET",
            f"/rest/v1/{self.table}",
            params={"user_id": f"eq.{user_id}", "select": "*"},
            headers=self._headers(),
        )
        if response.status_code >= 400:
            details = _error_details(response)
            if details.get("code") == NO_ROWS_CODE:
                return None
            raise RemoteStoreError(
                _error_message(details, "Failed to load board"),
                status_code=response.status_code,
                code=str(details.get("code") or ""),
            )

        rows = response.json()
        return rows[0] if rows else None

    async def update_board(self, user_id: str, data: Dict[str, Any]) -> int:
        """Update the user's row; returns the number of rows affected."""
        response = await self._request(
            "PATCH",
            f"/rest/v1/{self.table}",
            params={"user_id": f"eq.{user_id}"},
            json={"data": data, "updated_at": _utc_now()},
            headers={**self._headers(), "Prefer": "return=representation"},
        )
        if response.status_code >= 400:
            details = _error_details(response)
            raise RemoteStoreError(
                _error_message(details, "Failed to update board"),
                status_code=response.status_code,
                code=str(details.get("code") or ""),
            )
        return len(response.json() or [])

    async def insert_board(self, user_id: str, data: Dict[str, Any]) -> None:
        """Insert the user's row; a concurrent insert surfaces as RemoteConflictError."""
        response = await self._request(
            "POST",
            f"/rest/v1/{self.table}",
            json={"user_id": user_id, "data": data, "updated_at": _utc_now()},
            headers={**self._headers(), "Prefer": "return=minimal"},
        )
        if response.status_code >= 400:
            details = _error_details(response)
            code = str(details.get("code") or "")
            message = _error_message(details, "Failed to insert board")
            if response.status_code == 409 or code == UNIQUE_VIOLATION_CODE:
                raise RemoteConflictError(message, status_code=response.status_code, code=code)
            raise RemoteStoreError(message, status_code=response.status_code, code=code)

    # --- Change feed ---

    def subscribe(self, user_id: str, callback: FeedCallback) -> FeedSubscription:
        """Poll the user's row and call callback(row) whenever it changes."""
        task = asyncio.ensure_future(self._poll(user_id, callback))
        return FeedSubscription(task)

    async def _poll(self, user_id: str, callback: FeedCallback) -> None:
        last_seen: Optional[str] = None
        first = True
        while True:
            try:
                row = await self.fetch_board(user_id)
            except RemoteStoreError as e:
                logger.warning("Change feed poll failed: %s", e)
            else:
                stamp = row.get("updated_at") if row else None
                if not first and row is not None and stamp != last_seen:
                    callback(row)
                last_seen = stamp
                first = False
            await asyncio.sleep(self.poll_seconds)
