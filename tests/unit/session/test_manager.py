"""Tests for the session manager."""

import asyncio
from datetime import timedelta

import pytest

from ntumiwa.core.modules.session import cookies
from ntumiwa.core.modules.session.errors import SessionNotFoundError, SessionRetiredError
from ntumiwa.core.modules.session.manager import SessionManager
from ntumiwa.core.modules.session.models import AUTHENTICATED, USERNAME, Session
from ntumiwa.core.modules.session.store import SessionStore
from ntumiwa.utils import now

COOKIE_NAME = "ntumiwa_session"


def cookie_for(manager: SessionManager, session: Session) -> str:
    """Signed cookie value as the browser would send it back."""
    return cookies.write_signed(COOKIE_NAME, session.id, manager._secret_key)


class TestConstruction:
    """Tests for manager configuration checks."""

    def test_short_secret_key_rejected(self, store):
        """Test that keys shorter than 32 bytes are refused."""
        with pytest.raises(ValueError, match="at least 32 bytes"):
            SessionManager(
                store,
                secret_key=b"k" * 31,
                cookie_name=COOKIE_NAME,
                idle_expiration=timedelta(hours=1),
                absolute_expiration=timedelta(hours=8),
                gc_interval=timedelta(hours=1),
            )

    def test_empty_cookie_name_rejected(self, store, secret_key):
        """Test that an empty cookie name is refused."""
        with pytest.raises(ValueError, match="cookie name"):
            SessionManager(
                store,
                secret_key=secret_key,
                cookie_name="",
                idle_expiration=timedelta(hours=1),
                absolute_expiration=timedelta(hours=8),
                gc_interval=timedelta(hours=1),
            )

    def test_from_config(self, config):
        """Test that config values are applied."""
        manager = SessionManager.from_config(config)
        assert manager.cookie_name == "ntumiwa_session"
        assert len(manager.store) == 0


class TestStart:
    """Tests for resolving the session of a request."""

    def test_no_cookie_mints_new_session(self, manager, store):
        """Test that a request without a cookie gets an unsaved anonymous session."""
        session = manager.start(None)
        assert session.get(AUTHENTICATED) is False
        assert session.csrf_token
        assert len(store) == 0

    def test_valid_cookie_resolves_stored_session(self, manager):
        """Test that a signed cookie for a stored session returns that session."""
        session = Session()
        manager.save(session)
        assert manager.start(cookie_for(manager, session)) is session

    def test_forged_cookie_mints_new_session(self, manager):
        """Test that an unsigned session id is ignored."""
        session = Session()
        manager.save(session)
        resolved = manager.start(session.id)
        assert resolved is not session
        assert resolved.id != session.id

    def test_unknown_session_mints_new_session(self, manager):
        """Test that a validly signed id missing from the store is replaced."""
        ghost = Session()
        resolved = manager.start(cookie_for(manager, ghost))
        assert resolved.id != ghost.id

    def test_idle_session_expires(self, manager, store):
        """Test that a session idle past the limit is destroyed and replaced."""
        session = Session(last_activity_at=now() - timedelta(hours=2))
        store.write(session)

        resolved = manager.start(cookie_for(manager, session))

        assert resolved.id != session.id
        with pytest.raises(SessionNotFoundError):
            store.read(session.id)

    def test_absolute_limit_expires_active_session(self, manager, store):
        """Test that a recently used but old session is replaced."""
        session = Session(created_at=now() - timedelta(hours=9))
        store.write(session)

        resolved = manager.start(cookie_for(manager, session))

        assert resolved.id != session.id
        assert len(store) == 0


class TestValidate:
    """Tests for expiration checks."""

    def test_live_session_valid(self, manager):
        """Test that a fresh session is valid."""
        assert manager.validate(Session())

    def test_expired_session_not_in_store_still_invalid(self, manager):
        """Test that a concurrently swept session is reported invalid without raising."""
        session = Session(last_activity_at=now() - timedelta(hours=2))
        assert not manager.validate(session)


class TestSave:
    """Tests for persisting sessions."""

    def test_save_touches_last_activity(self, manager, store):
        """Test that saving refreshes the idle clock."""
        session = Session(last_activity_at=now() - timedelta(minutes=30))
        before = session.last_activity_at
        manager.save(session)
        assert session.last_activity_at > before
        assert store.read(session.id) is session


class TestMigrate:
    """Tests for session id migration."""

    def test_migrate_changes_id_and_token(self, manager, store):
        """Test that migration issues a new id and CSRF token and drops the old id."""
        session = Session()
        session.put(USERNAME, "alice")
        manager.save(session)
        old_id, old_token = session.id, session.csrf_token

        migrated = manager.migrate(session)

        assert migrated.id != old_id
        assert migrated.csrf_token != old_token
        assert migrated.get(USERNAME) == "alice"
        assert migrated.created_at == session.created_at
        with pytest.raises(SessionNotFoundError):
            store.read(old_id)

    def test_migrated_session_saved_under_new_id(self, manager, store):
        """Test that the migrated session is persisted only once saved."""
        session = Session()
        manager.save(session)
        migrated = manager.migrate(session)
        assert len(store) == 0

        manager.save(migrated)
        assert store.read(migrated.id) is migrated

    def test_migrate_unsaved_session_raises(self, manager):
        """Test that migrating a session the store never held raises."""
        with pytest.raises(SessionNotFoundError):
            manager.migrate(Session())

    def test_old_cookie_no_longer_resolves(self, manager):
        """Test that the pre-migration cookie yields a fresh anonymous session."""
        session = Session()
        manager.save(session)
        old_cookie = cookie_for(manager, session)

        migrated = manager.migrate(session)
        manager.save(migrated)

        resolved = manager.start(old_cookie)
        assert resolved is not session
        assert resolved is not migrated

    def test_original_object_left_untouched(self, manager):
        """Test that holders of the pre-migration object see neither the new id nor new state."""
        session = Session()
        manager.save(session)
        old_id, old_token = session.id, session.csrf_token

        migrated = manager.migrate(session)
        migrated.put(AUTHENTICATED, True)

        assert session.id == old_id
        assert session.csrf_token == old_token
        assert session.get(AUTHENTICATED) is False
        assert session.retired
        assert not migrated.retired

    def test_retired_session_cannot_be_saved(self, manager, store):
        """Test that saving the pre-migration object does not bring its id back."""
        session = Session()
        manager.save(session)
        manager.migrate(session)

        with pytest.raises(SessionRetiredError):
            manager.save(session)
        with pytest.raises(SessionNotFoundError):
            store.read(session.id)


class TestDestroy:
    """Tests for removing sessions."""

    def test_destroy_is_idempotent(self, manager, store):
        """Test that destroying a missing session does not raise."""
        session = Session()
        manager.save(session)
        manager.destroy(session)
        manager.destroy(session)
        assert len(store) == 0


class TestCookieHeader:
    """Tests for the Set-Cookie value."""

    def test_cookie_attributes(self, manager):
        """Test that the cookie is HttpOnly, SameSite=Lax and scoped to the root path."""
        session = Session()
        header = manager.cookie_header(session)

        name, _, rest = header.partition("=")
        value = rest.split(";", 1)[0]
        assert name == COOKIE_NAME
        assert cookies.read_signed(COOKIE_NAME, value, manager._secret_key) == session.id
        assert "HttpOnly" in header
        assert "SameSite=lax" in header
        assert "Path=/" in header
        assert "Max-Age=3600" in header
        assert "expires=" in header
        assert "Secure" not in header

    def test_secure_flag(self, store, secret_key):
        """Test that the Secure attribute and domain are emitted when configured."""
        manager = SessionManager(
            store,
            secret_key=secret_key,
            cookie_name=COOKIE_NAME,
            idle_expiration=timedelta(hours=1),
            absolute_expiration=timedelta(hours=8),
            gc_interval=timedelta(hours=1),
            domain="example.org",
            secure=True,
        )
        header = manager.cookie_header(Session())
        assert "Secure" in header
        assert "Domain=example.org" in header


class TestSweeper:
    """Tests for expired session collection."""

    def test_sweep_removes_expired(self, manager, store):
        """Test that sweep drops expired sessions and keeps live ones."""
        store.write(Session(last_activity_at=now() - timedelta(hours=2)))
        live = Session()
        store.write(live)

        assert manager.sweep() == 1
        assert store.read(live.id) is live

    def test_sweep_never_raises(self, manager, monkeypatch):
        """Test that store failures are logged and swallowed."""

        def broken(*_args):
            raise RuntimeError("boom")

        monkeypatch.setattr(manager.store, "sweep", broken)
        assert manager.sweep() == 0

    async def test_sweeper_task_runs_and_stops(self, secret_key):
        """Test that the background task sweeps periodically and stops on request."""
        store = SessionStore()
        manager = SessionManager(
            store,
            secret_key=secret_key,
            cookie_name=COOKIE_NAME,
            idle_expiration=timedelta(hours=1),
            absolute_expiration=timedelta(hours=8),
            gc_interval=timedelta(milliseconds=10),
        )
        store.write(Session(last_activity_at=now() - timedelta(hours=2)))

        manager.start_sweeper()
        for _ in range(100):
            if len(store) == 0:
                break
            await asyncio.sleep(0.01)
        await manager.stop_sweeper()

        assert len(store) == 0
        assert manager._sweeper is None

    async def test_stop_without_start(self, manager):
        """Test that stopping an idle manager is a no-op."""
        await manager.stop_sweeper()
