"""End-to-end session scenarios through the FastAPI application."""

import pytest
from fastapi.testclient import TestClient

from ntumiwa.core.modules.session import cookies
from ntumiwa.core.modules.session.errors import SessionNotFoundError
from ntumiwa.core.modules.session.models import AUTHENTICATED, USERNAME

LOGIN = "/api/v1/auth/login"
LOGOUT = "/api/v1/auth/logout"
USERS = "/api/v1/users"


@pytest.fixture
def sessions(app_instance):
    return app_instance.session_manager.store


def session_id_from(response, app_instance) -> str:
    manager = app_instance.session_manager
    value = response.cookies[manager.cookie_name]
    return cookies.read_signed(manager.cookie_name, value, manager._secret_key)


def log_in(client: TestClient, username: str = "alice", password: str = "correct-horse"):
    token = client.get(LOGIN).json()["csrf_token"]
    return client.post(LOGIN, data={"username": username, "password": password, "csrf_token": token})


class TestHealth:
    """Tests for the public health endpoint."""

    def test_health(self, client):
        """Test that the health check answers and still issues a session cookie."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}
        assert len(response.headers.get_list("set-cookie")) == 1


class TestLoginFlow:
    """Tests for anonymous access followed by login."""

    def test_anonymous_request_denied(self, client):
        """Test that protected endpoints reject anonymous sessions."""
        response = client.get(USERS)
        assert response.status_code == 403
        assert response.json() == {"message": "Unauthenticated", "type": "access_denied"}

    def test_login_form_returns_csrf_token(self, client, app_instance, sessions):
        """Test that the login form data carries the session's token."""
        response = client.get(LOGIN)

        assert response.status_code == 200
        session = sessions.read(session_id_from(response, app_instance))
        assert response.json() == {"csrf_token": session.csrf_token}
        assert response.headers["x-csrf-token"] == session.csrf_token

    def test_login_migrates_session(self, client, app_instance, sessions):
        """Test that login issues a new session id and token and retires the old id."""
        form = client.get(LOGIN)
        anonymous_id = session_id_from(form, app_instance)
        anonymous_token = form.json()["csrf_token"]

        response = client.post(
            LOGIN, data={"username": "alice", "password": "correct-horse", "csrf_token": anonymous_token}
        )

        assert response.status_code == 200
        authenticated_id = session_id_from(response, app_instance)
        assert authenticated_id != anonymous_id
        assert response.json()["username"] == "alice"
        assert response.json()["csrf_token"] != anonymous_token
        assert response.headers["x-csrf-token"] == response.json()["csrf_token"]

        session = sessions.read(authenticated_id)
        assert session.get(AUTHENTICATED) is True
        assert session.get(USERNAME) == "alice"
        with pytest.raises(SessionNotFoundError):
            sessions.read(anonymous_id)

    def test_authenticated_request_allowed(self, client):
        """Test that the logged-in session reaches protected endpoints."""
        log_in(client)
        response = client.get(USERS)
        assert response.status_code == 200
        assert [user["username"] for user in response.json()] == ["alice", "bob"]

    def test_login_form_when_authenticated(self, client):
        """Test that the login form reports an existing login with 204."""
        log_in(client)
        assert client.get(LOGIN).status_code == 204

    def test_wrong_password_rejected(self, client, app_instance, sessions):
        """Test that bad credentials give 401 and leave the session anonymous."""
        response = log_in(client, password="wrong-password")

        assert response.status_code == 401
        assert response.json()["type"] == "authentication_error"
        session = sessions.read(session_id_from(response, app_instance))
        assert session.get(AUTHENTICATED) is False

    def test_unknown_user_rejected(self, client):
        """Test that unknown usernames get the same 401 as wrong passwords."""
        response = log_in(client, username="mallory")
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid username or password"

    def test_logout_migrates_and_demotes(self, client, app_instance, sessions):
        """Test that logout rotates the id and ends the authentication."""
        authenticated_id = session_id_from(log_in(client), app_instance)
        token = sessions.read(authenticated_id).csrf_token

        response = client.post(LOGOUT, headers={"X-CSRF-Token": token})

        assert response.status_code == 204
        new_id = session_id_from(response, app_instance)
        assert new_id != authenticated_id
        assert sessions.read(new_id).get(AUTHENTICATED) is False
        assert client.get(USERS).status_code == 403

    def test_anonymous_logout_is_noop(self, client, app_instance):
        """Test that logging out an anonymous session keeps its id."""
        form = client.get(LOGIN)
        session_id = session_id_from(form, app_instance)

        response = client.post(LOGOUT, headers={"X-CSRF-Token": form.json()["csrf_token"]})

        assert response.status_code == 204
        assert session_id_from(response, app_instance) == session_id


class TestDeletedUser:
    """Tests for sessions that outlive their user account."""

    def test_stale_session_rejected_and_migrated(self, client, app_instance, sessions, users):
        """Test that a session of a deleted user is denied, demoted and moved to a new id."""
        stale_id = session_id_from(log_in(client), app_instance)
        users.passwords.pop("alice")

        response = client.get(USERS)

        assert response.status_code == 403
        new_id = session_id_from(response, app_instance)
        assert new_id != stale_id
        assert sessions.read(new_id).get(AUTHENTICATED) is False
        with pytest.raises(SessionNotFoundError):
            sessions.read(stale_id)

    def test_user_cannot_delete_themselves(self, client, app_instance, sessions):
        """Test that deleting the current account is refused."""
        session_id = session_id_from(log_in(client), app_instance)
        token = sessions.read(session_id).csrf_token

        response = client.delete(f"{USERS}/alice", headers={"X-CSRF-Token": token})

        assert response.status_code == 400
        assert response.json()["message"] == "Cannot delete yourself"

    def test_deleting_another_user(self, client, app_instance, sessions, users):
        """Test that another account can be deleted and its absence is a 404 afterwards."""
        session_id = session_id_from(log_in(client), app_instance)
        token = sessions.read(session_id).csrf_token

        assert client.delete(f"{USERS}/bob", headers={"X-CSRF-Token": token}).status_code == 204
        assert "bob" not in users.passwords
        assert client.delete(f"{USERS}/bob", headers={"X-CSRF-Token": token}).status_code == 404


class TestCsrfContinuity:
    """Tests that CSRF rejections do not disturb the session."""

    def test_rejected_post_keeps_session(self, client, app_instance, sessions):
        """Test that a CSRF failure returns 403 with the same session id and state."""
        authenticated_id = session_id_from(log_in(client), app_instance)

        response = client.post(USERS, json={"username": "carol", "password": "long-enough"})

        assert response.status_code == 403
        assert response.json()["message"] == "CSRF token mismatch"
        assert session_id_from(response, app_instance) == authenticated_id
        assert sessions.read(authenticated_id).get(AUTHENTICATED) is True

    def test_login_without_token_rejected(self, client, app_instance):
        """Test that the login form itself is protected and the handler never runs."""
        form = client.get(LOGIN)
        anonymous_id = session_id_from(form, app_instance)

        response = client.post(LOGIN, data={"username": "alice", "password": "correct-horse"})

        assert response.status_code == 403
        assert session_id_from(response, app_instance) == anonymous_id

    def test_json_post_with_header_token(self, client, app_instance, sessions, users):
        """Test that JSON requests pass with the header token."""
        session_id = session_id_from(log_in(client), app_instance)
        token = sessions.read(session_id).csrf_token

        response = client.post(
            USERS, json={"username": "carol", "password": "long-enough"}, headers={"X-CSRF-Token": token}
        )

        assert response.status_code == 201
        assert response.json()["username"] == "carol"
        assert "carol" in users.passwords

    def test_stolen_token_from_other_session_rejected(self, fastapi_app, client, app_instance):
        """Test that a token is only valid for the session it was issued to."""
        other = TestClient(fastapi_app)
        other_token = other.get(LOGIN).json()["csrf_token"]
        client.get(LOGIN)

        response = client.post(LOGIN, data={"username": "alice", "password": "correct-horse", "csrf_token": other_token})

        assert response.status_code == 403


class TestPerformances:
    """Tests for the public listing endpoint."""

    def test_missing_timeframe_rejected(self, client):
        """Test that the public listing requires a timeframe, without authentication."""
        response = client.get("/api/v1/performances")
        assert response.status_code == 400
        assert response.json()["type"] == "validation_error"

    def test_invalid_timeframe_rejected(self, client):
        """Test that unknown timeframes are a 400."""
        response = client.get("/api/v1/performances", params={"timeframe": "someday"})
        assert response.status_code == 400
