"""Unit tests for landing, register, login and logout endpoints.

Services are patched at their import site in ``messenger.api.auth``.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

from messenger.models.user import User


def _make_user(username="testuser", is_admin=False, is_verified=True):
    return User(
        id=uuid4(),
        username=username,
        is_admin=is_admin,
        is_verified=is_verified,
        created_at=datetime.now(timezone.utc),
    )


class TestViews:
    """Tests for GET / and GET /register."""

    def test_landing_renders_login(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json() == {"view": "login"}

    def test_register_form(self, client):
        response = client.get("/register")
        assert response.status_code == 200
        assert response.json() == {"view": "register"}


class TestRegister:
    """Tests for POST /register."""

    def test_creates_user_and_redirects_home(self, client):
        with patch("messenger.api.auth.UserService") as MockUserService:
            user_svc = MockUserService.return_value
            user_svc.create_user = AsyncMock(return_value=_make_user("alice", is_verified=False))

            response = client.post("/register", json={"username": "alice", "password": "pw1"})

        assert response.status_code == 303
        assert response.headers["location"] == "/"
        user_svc.create_user.assert_awaited_once_with(username="alice", password="pw1")

    def test_store_error_is_generic_500(self, client):
        with patch("messenger.api.auth.UserService") as MockUserService:
            MockUserService.return_value.create_user = AsyncMock(
                side_effect=RuntimeError("duplicate key value violates unique constraint")
            )

            response = client.post("/register", json={"username": "alice", "password": "pw1"})

        assert response.status_code == 500
        assert response.text == "Error registering user"

    def test_accepts_form_post(self, client):
        with patch("messenger.api.auth.UserService") as MockUserService:
            user_svc = MockUserService.return_value
            user_svc.create_user = AsyncMock(return_value=_make_user("alice", is_verified=False))

            response = client.post("/register", data={"username": "alice", "password": "pw1"})

        assert response.status_code == 303
        assert response.headers["location"] == "/"
        user_svc.create_user.assert_awaited_once_with(username="alice", password="pw1")

    def test_missing_form_field_is_400(self, client):
        response = client.post("/register", data={"username": "alice"})

        assert response.status_code == 400
        assert "password" in response.json()["detail"]

    def test_malformed_json_is_400(self, client):
        response = client.post(
            "/register",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Validation error"

    def test_missing_password_is_400(self, client):
        response = client.post("/register", json={"username": "alice"})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Validation error"
        assert "password" in body["detail"]


class TestLogin:
    """Tests for POST /login."""

    def _login(self, client, user, password_ok=True, as_form=False):
        with (
            patch("messenger.api.auth.UserService") as MockUserService,
            patch("messenger.api.auth.AuthService") as MockAuthService,
        ):
            MockUserService.return_value.get_by_username = AsyncMock(
                return_value=(user, "hashed-pw") if user else None
            )
            MockAuthService.return_value.verify_password = MagicMock(return_value=password_ok)

            credentials = {"username": "alice", "password": "pw1"}
            if as_form:
                return client.post("/login", data=credentials)
            return client.post("/login", json=credentials)

    def test_regular_user_goes_to_user_list(self, client):
        response = self._login(client, _make_user("alice"))

        assert response.status_code == 303
        assert response.headers["location"] == "/users"
        assert "session_id" in response.cookies

    def test_form_login_sets_session(self, client):
        response = self._login(client, _make_user("alice"), as_form=True)

        assert response.status_code == 303
        assert response.headers["location"] == "/users"
        assert "session_id" in response.cookies

    def test_form_login_with_wrong_password(self, client):
        response = self._login(client, _make_user("alice"), password_ok=False, as_form=True)

        assert response.status_code == 200
        assert response.text == "Invalid credentials!"

    def test_admin_goes_to_admin_panel(self, client):
        response = self._login(client, _make_user("root", is_admin=True))

        assert response.status_code == 303
        assert response.headers["location"] == "/admin"

    def test_session_cookie_is_http_only(self, client):
        response = self._login(client, _make_user("alice"))

        set_cookie = response.headers["set-cookie"].lower()
        assert "httponly" in set_cookie
        assert "samesite=lax" in set_cookie

    def test_session_holds_user_snapshot(self, client):
        user = _make_user("alice")
        self._login(client, user)

        # Login is enough to pass the session gate
        with patch("messenger.api.users.UserService") as MockUserService:
            MockUserService.return_value.list_verified_users = AsyncMock(return_value=[])
            response = client.get("/users")

        assert response.status_code == 200
        assert response.json()["current_user"] == "alice"

    def test_wrong_password_and_unknown_user_are_identical(self, client):
        wrong_password = self._login(client, _make_user("alice"), password_ok=False)
        unknown_user = self._login(client, None)

        assert wrong_password.status_code == unknown_user.status_code == 200
        assert wrong_password.text == unknown_user.text == "Invalid credentials!"
        assert "session_id" not in wrong_password.cookies
        assert "session_id" not in unknown_user.cookies

    def test_store_error_is_generic_500(self, client):
        with patch("messenger.api.auth.UserService") as MockUserService:
            MockUserService.return_value.get_by_username = AsyncMock(
                side_effect=ConnectionError("database down")
            )

            response = client.post("/login", json={"username": "alice", "password": "pw1"})

        assert response.status_code == 500
        assert response.text == "Error logging in"


class TestLogout:
    """Tests for POST /logout."""

    def test_destroys_session_and_redirects(self, client, login_as):
        token = login_as(_make_user("alice"))

        response = client.post("/logout")

        assert response.status_code == 303
        assert response.headers["location"] == "/"
        store = client.app.state.session_store
        assert len(store) == 0
        assert token not in response.headers.get("set-cookie", "")

    def test_gate_redirects_after_logout(self, client, login_as):
        login_as(_make_user("alice"))
        client.post("/logout")

        response = client.get("/users")

        assert response.status_code == 303
        assert response.headers["location"] == "/"

    def test_logout_without_session_still_redirects(self, client):
        response = client.post("/logout")

        assert response.status_code == 303
        assert response.headers["location"] == "/"
