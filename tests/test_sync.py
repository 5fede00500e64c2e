"""Tests for the sync coordinator (local writes, debounced upsert, sign-in flow, change feed)."""

import asyncio

import pytest

from snackboard.core.constants import NOTICE_ERROR, SESSION_KEY
from snackboard.core.exceptions import AuthError, RemoteConflictError, RemoteStoreError
from snackboard.core.remote import SIGNED_IN, SIGNED_OUT, FeedSubscription, Session
from snackboard.core.repository import load_record, save_record
from snackboard.core.sync import ORIGIN_FIELD, SyncCoordinator

DEBOUNCE = 0.05


class FakeBackend:
    """In-memory auth + row store with the RemoteBackend surface."""

    def __init__(self, row=None):
        self.row = row
        self.session = None
        self.listeners = []
        self.update_calls = []
        self.insert_calls = []
        self.insert_conflicts = 0
        self.conflict_creates_row = True
        self.update_error = None
        self.update_delay = 0.0
        self.refresh_error = None
        self.feed_callbacks = []

    def current_session(self):
        return self.session

    def restore_session(self, session):
        self.session = session

    def on_auth_change(self, listener):
        self.listeners.append(listener)

    async def _emit(self, event):
        for listener in list(self.listeners):
            await listener(event, self.session)

    async def sign_up(self, email, password):
        pass

    async def sign_in(self, email, password):
        self.session = Session(user_id="user-1", email=email, access_token="token")
        await self._emit(SIGNED_IN)
        return self.session

    async def sign_out(self):
        self.session = None
        await self._emit(SIGNED_OUT)

    async def refresh_session(self):
        if self.refresh_error is not None:
            raise self.refresh_error
        self.session = Session(user_id=self.session.user_id, access_token="fresh")
        return self.session

    async def fetch_board(self, user_id):
        return self.row

    async def update_board(self, user_id, data):
        self.update_calls.append(data)
        if self.update_delay:
            await asyncio.sleep(self.update_delay)
        if self.update_error is not None:
            raise self.update_error
        if self.row is None:
            return 0
        self.row = {"user_id": user_id, "data": data}
        return 1

    async def insert_board(self, user_id, data):
        self.insert_calls.append(data)
        if self.insert_conflicts:
            self.insert_conflicts -= 1
            if self.conflict_creates_row:
                self.row = {"user_id": user_id, "data": {}}
            raise RemoteConflictError("duplicate key value", status_code=409, code="23505")
        self.row = {"user_id": user_id, "data": data}

    def subscribe(self, user_id, callback):
        self.feed_callbacks.append(callback)
        return FeedSubscription(asyncio.ensure_future(asyncio.sleep(3600)))


def remote_row(tasks=(), labels=("CRM",)):
    return {
        "user_id": "user-1",
        "data": {
            "projects": [],
            "tasks": list(tasks),
            "allLabels": list(labels),
            "leftSidebarCollapsed": True,
            "rightSidebarCollapsed": False,
        },
    }


@pytest.fixture
def notices():
    return []


def make_coordinator(store, backend, notices, **kwargs):
    kwargs.setdefault("debounce_seconds", DEBOUNCE)
    kwargs.setdefault("retry_backoff", 0)
    coordinator = SyncCoordinator(store, backend, **kwargs)
    coordinator.on_notice(lambda message, level: notices.append((message, level)))
    return coordinator.attach()


# --- Local write ---

def test_every_change_is_saved_locally(store, notices):
    make_coordinator(store, None, notices)

    task = store.create_task("Saved")
    store.timer.start(task.id)

    record = load_record()
    assert record["tasks"][0]["title"] == "Saved"
    assert record["activeTimerTaskId"] == task.id


def test_signed_out_changes_stay_local(store, notices):
    backend = FakeBackend(row=remote_row())
    make_coordinator(store, backend, notices)

    async def scenario():
        store.create_task("Local only")
        await asyncio.sleep(DEBOUNCE * 3)

    asyncio.run(scenario())

    assert backend.update_calls == []
    assert load_record()["tasks"][0]["title"] == "Local only"


# --- Debounced remote write ---

def test_rapid_changes_collapse_into_one_write(store, notices):
    backend = FakeBackend(row=remote_row())
    coordinator = make_coordinator(store, backend, notices)

    async def scenario():
        await coordinator.sign_in("me@example.com", "secret")
        for i in range(10):
            store.create_task(f"Task {i}")
        await asyncio.sleep(DEBOUNCE * 4)
        await coordinator.close()

    asyncio.run(scenario())

    assert len(backend.update_calls) == 1
    written = backend.update_calls[0]
    assert [t["title"] for t in written["tasks"]] == [f"Task {i}" for i in range(10)]
    assert written[ORIGIN_FIELD] == coordinator.instance_id
    assert "activeTimerTaskId" not in written


def test_filter_changes_are_not_synced(store, notices):
    backend = FakeBackend(row=remote_row())
    coordinator = make_coordinator(store, backend, notices)

    async def scenario():
        await coordinator.sign_in("me@example.com", "secret")
        store.toggle_label_filter("CRM")
        store.set_active_only(True)
        await asyncio.sleep(DEBOUNCE * 3)
        await coordinator.close()

    asyncio.run(scenario())

    assert backend.update_calls == []


def test_flush_sends_pending_write_now(store, notices):
    backend = FakeBackend(row=remote_row())
    coordinator = make_coordinator(store, backend, notices, debounce_seconds=60)

    async def scenario():
        await coordinator.sign_in("me@example.com", "secret")
        store.create_task("Urgent")
        assert coordinator.pending
        await coordinator.flush()

    asyncio.run(scenario())

    assert len(backend.update_calls) == 1
    assert not coordinator.pending


def test_change_without_loop_is_sent_on_flush(store, notices):
    backend = FakeBackend(row=remote_row())
    coordinator = make_coordinator(store, backend, notices)
    coordinator.session = Session(user_id="user-1")

    store.create_task("Made before the loop")
    assert coordinator.pending

    asyncio.run(coordinator.flush())

    assert [t["title"] for t in backend.update_calls[0]["tasks"]] == ["Made before the loop"]


def test_in_flight_write_is_not_cancelled(store, notices):
    backend = FakeBackend(row=remote_row())
    backend.update_delay = DEBOUNCE * 2
    coordinator = make_coordinator(store, backend, notices)

    async def scenario():
        await coordinator.sign_in("me@example.com", "secret")
        store.create_task("First")
        await asyncio.sleep(DEBOUNCE * 1.5)
        store.create_task("Second")
        await asyncio.sleep(DEBOUNCE * 5)
        await coordinator.close()

    asyncio.run(scenario())

    assert [len(call["tasks"]) for call in backend.update_calls] == [1, 2]
    assert [t["title"] for t in backend.row["data"]["tasks"]] == ["First", "Second"]


# --- Upsert ---

def test_push_inserts_when_no_row(store, notices):
    backend = FakeBackend(row=None)
    coordinator = make_coordinator(store, backend, notices)
    coordinator.session = Session(user_id="user-1")
    store.create_task("New")

    assert asyncio.run(coordinator.push()) is True

    assert len(backend.update_calls) == 1
    assert len(backend.insert_calls) == 1
    assert backend.row["data"]["tasks"][0]["title"] == "New"


def test_insert_conflict_retries_update(store, notices):
    backend = FakeBackend(row=None)
    backend.insert_conflicts = 1
    coordinator = make_coordinator(store, backend, notices)
    coordinator.session = Session(user_id="user-1")

    assert asyncio.run(coordinator.push()) is True

    assert len(backend.insert_calls) == 1
    assert len(backend.update_calls) == 2
    assert notices == []


def test_conflict_retry_budget_is_bounded(store, notices):
    backend = FakeBackend(row=None)
    backend.insert_conflicts = 100
    backend.conflict_creates_row = False
    coordinator = make_coordinator(store, backend, notices, retry_limit=2)
    coordinator.session = Session(user_id="user-1")

    assert asyncio.run(coordinator.push()) is False

    assert len(backend.insert_calls) == 3
    assert notices == [("Failed to sync to cloud", NOTICE_ERROR)]


def test_remote_error_surfaces_notice(store, notices):
    backend = FakeBackend(row=remote_row())
    backend.update_error = RemoteStoreError("service unavailable", status_code=503)
    coordinator = make_coordinator(store, backend, notices)
    coordinator.session = Session(user_id="user-1")

    assert asyncio.run(coordinator.push()) is False

    assert notices == [("Failed to sync to cloud", NOTICE_ERROR)]


# --- Sign-in flow ---

def test_first_sign_in_migrates_local_board(store, notices):
    backend = FakeBackend(row=None)
    coordinator = make_coordinator(store, backend, notices)
    project = store.create_project("Acme")

    asyncio.run(coordinator.sign_in("me@example.com", "secret"))

    assert len(backend.insert_calls) == 1
    assert backend.insert_calls[0]["projects"][0]["name"] == "Acme"
    assert ("Local data migrated to cloud!", "success") in notices
    assert [p.id for p in store.projects] == [project.id]
    assert load_record(SESSION_KEY)["user_id"] == "user-1"


def test_empty_local_board_is_not_migrated(store, notices):
    backend = FakeBackend(row=None)
    coordinator = make_coordinator(store, backend, notices)

    asyncio.run(coordinator.sign_in("me@example.com", "secret"))

    assert backend.insert_calls == []
    assert backend.update_calls == []


def test_sign_in_replaces_board_but_keeps_timer(store, notices):
    remote_task = {"id": "remote-1", "title": "From cloud"}
    backend = FakeBackend(row=remote_row(tasks=[remote_task]))
    coordinator = make_coordinator(store, backend, notices)
    local = store.create_task("Local")
    store.timer.start(local.id)

    asyncio.run(coordinator.sign_in("me@example.com", "secret"))

    assert backend.insert_calls == []
    assert [t.title for t in store.tasks] == ["From cloud"]
    assert store.all_labels == ["CRM"]
    assert store.left_sidebar_collapsed is True
    assert store.timer.state.task_id == local.id
    assert load_record()["tasks"][0]["id"] == "remote-1"


def test_sign_in_subscribes_to_feed(store, notices):
    backend = FakeBackend(row=remote_row())
    coordinator = make_coordinator(store, backend, notices)

    async def scenario():
        await coordinator.sign_in("me@example.com", "secret")
        assert coordinator.feed is not None
        feed = coordinator.feed
        await coordinator.close()
        await asyncio.sleep(0)
        return feed

    feed = asyncio.run(scenario())

    assert len(backend.feed_callbacks) == 1
    assert feed.closed


def test_sign_out_stops_remote_writes(store, notices):
    backend = FakeBackend(row=remote_row())
    coordinator = make_coordinator(store, backend, notices)

    async def scenario():
        await coordinator.sign_in("me@example.com", "secret")
        store.create_task("Pending")
        await coordinator.sign_out()
        store.create_task("After sign-out")
        await asyncio.sleep(DEBOUNCE * 3)

    asyncio.run(scenario())

    assert not coordinator.signed_in
    assert backend.update_calls == []
    assert load_record(SESSION_KEY) is None
    assert len(load_record()["tasks"]) == 2


def test_operations_need_a_backend(store, notices):
    coordinator = make_coordinator(store, None, notices)

    with pytest.raises(RemoteStoreError, match="not configured"):
        asyncio.run(coordinator.sign_in("me@example.com", "secret"))
    assert asyncio.run(coordinator.resume()) is False


# --- Resume ---

def test_resume_saved_session(store, notices):
    backend = FakeBackend(row=remote_row(tasks=[{"id": "r1", "title": "Cloud task"}]))
    save_record(Session(user_id="user-1", access_token="t").to_dict(), SESSION_KEY)
    coordinator = make_coordinator(store, backend, notices)

    assert asyncio.run(coordinator.resume(subscribe=False)) is True

    assert coordinator.signed_in
    assert backend.session.user_id == "user-1"
    assert [t.title for t in store.tasks] == ["Cloud task"]
    assert backend.feed_callbacks == []


def test_resume_without_saved_session(store, notices):
    coordinator = make_coordinator(store, FakeBackend(), notices)
    assert asyncio.run(coordinator.resume()) is False
    assert not coordinator.signed_in


def test_resume_expired_session_that_cannot_refresh(store, notices):
    backend = FakeBackend(row=remote_row())
    backend.refresh_error = AuthError("Invalid Refresh Token")
    save_record(Session(user_id="user-1", refresh_token="r", expires_at=1).to_dict(), SESSION_KEY)
    coordinator = make_coordinator(store, backend, notices)

    assert asyncio.run(coordinator.resume()) is False

    assert not coordinator.signed_in
    assert load_record(SESSION_KEY) is None
    assert notices == [("Session expired, please sign in again", NOTICE_ERROR)]


def test_resume_expired_session_refreshes(store, notices):
    backend = FakeBackend(row=remote_row())
    save_record(Session(user_id="user-1", refresh_token="r", expires_at=1).to_dict(), SESSION_KEY)
    coordinator = make_coordinator(store, backend, notices)

    assert asyncio.run(coordinator.resume(subscribe=False)) is True

    assert load_record(SESSION_KEY)["access_token"] == "fresh"


# --- Change feed ---

def test_remote_change_replaces_board(store, notices):
    coordinator = make_coordinator(store, FakeBackend(), notices)
    store.create_task("Stale")
    store.set_sidebar_collapsed("right", True)

    applied = coordinator.handle_remote_change(
        remote_row(tasks=[{"id": "r1", "title": "Fresh", ORIGIN_FIELD: "x"}])
    )

    assert applied is True
    assert [t.title for t in store.tasks] == ["Fresh"]
    assert store.right_sidebar_collapsed is True
    assert store.left_sidebar_collapsed is False
    assert notices == [("Synced from another device", "success")]


def test_own_echo_is_ignored(store, notices):
    coordinator = make_coordinator(store, FakeBackend(), notices)
    store.create_task("Mine")
    row = remote_row()
    row["data"][ORIGIN_FIELD] = coordinator.instance_id

    assert coordinator.handle_remote_change(row) is False
    assert [t.title for t in store.tasks] == ["Mine"]
    assert notices == []


def test_empty_feed_row_is_ignored(store, notices):
    coordinator = make_coordinator(store, FakeBackend(), notices)
    assert coordinator.handle_remote_change({"user_id": "user-1", "data": None}) is False
