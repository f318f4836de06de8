"""API endpoint tests."""

import pytest

from app.auth.session import AuthError, AuthErrorType, SessionManager
from app.core.result import Err
from app.models.todo import Todo
from app.models.user import User
from app.services.todo_service import TodoService


def create_todo(client, title: str = "New Todo") -> dict:
    """Create a todo for the signed-in user and return it from the list."""
    response = client.post("/api/v1/todos", json={"title": title})
    assert response.json() == {"success": True, "message": "Todo created."}
    return next(todo for todo in client.get("/api/v1/todos").json() if todo["title"] == title)


class TestHealthCheck:
    """Tests for health check endpoint."""

    def test_health_check(self, client):
        """Test that health check returns healthy status."""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"


class TestSignUp:
    """Tests for the sign-up action."""

    def test_sign_up_sets_session_cookie(self, client, identity_provider, db_session):
        response = client.post(
            "/api/v1/auth/sign-up",
            json={
                "id_token": identity_provider.create_id_token("uid-new", "new@example.com"),
                "firebase_uid": "uid-new",
                "email": "new@example.com",
            },
        )
        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Account created."}
        assert "session" in response.cookies

        user = db_session.query(User).filter(User.firebase_uid == "uid-new").one()
        assert user.email == "new@example.com"

    def test_sign_up_twice_keeps_first_email(self, client, sign_up):
        sign_up("uid-1", "first@example.com")
        me = sign_up("uid-1", "second@example.com")
        assert me["email"] == "first@example.com"

    def test_email_already_in_use(self, client, sign_up, identity_provider, db_session):
        """Scenario: an email bound to another account cannot be reused."""
        sign_up("uid-1", "taken@example.com")
        client.cookies.clear()

        response = client.post(
            "/api/v1/auth/sign-up",
            json={
                "id_token": identity_provider.create_id_token("uid-2", "taken@example.com"),
                "firebase_uid": "uid-2",
                "email": "taken@example.com",
            },
        )

        data = response.json()
        assert data["success"] is False
        assert "already in use" in data["message"]
        assert "session" not in response.cookies
        assert db_session.query(User).filter(User.firebase_uid == "uid-2").count() == 0

    def test_invalid_token(self, client):
        response = client.post(
            "/api/v1/auth/sign-up",
            json={"id_token": "garbage", "firebase_uid": "uid-1", "email": "user@example.com"},
        )
        assert response.json() == {"success": False, "message": "Invalid token."}

    def test_token_for_another_subject(self, client, identity_provider):
        response = client.post(
            "/api/v1/auth/sign-up",
            json={
                "id_token": identity_provider.create_id_token("uid-1"),
                "firebase_uid": "uid-2",
                "email": "user@example.com",
            },
        )
        assert response.json()["success"] is False

    def test_invalid_email(self, client, identity_provider):
        response = client.post(
            "/api/v1/auth/sign-up",
            json={
                "id_token": identity_provider.create_id_token("uid-1"),
                "firebase_uid": "uid-1",
                "email": "not-an-email",
            },
        )
        data = response.json()
        assert data["success"] is False
        assert data["message"] == "Validation failed."
        assert "email" in data["errors"]


class TestSignIn:
    """Tests for the sign-in action."""

    def test_sign_in_existing_user(self, client, sign_up, identity_provider):
        sign_up("uid-1", "user@example.com")
        client.cookies.clear()

        response = client.post(
            "/api/v1/auth/sign-in",
            json={"id_token": identity_provider.create_id_token("uid-1"), "firebase_uid": "uid-1"},
        )

        assert response.json() == {"success": True, "message": "Signed in."}
        assert client.get("/api/v1/auth/me").json()["email"] == "user@example.com"

    def test_sign_in_unknown_user(self, client, identity_provider):
        response = client.post(
            "/api/v1/auth/sign-in",
            json={"id_token": identity_provider.create_id_token("uid-9"), "firebase_uid": "uid-9"},
        )
        assert response.json() == {"success": False, "message": "User not found."}
        assert "session" not in response.cookies

    def test_malformed_json(self, client):
        response = client.post(
            "/api/v1/auth/sign-in",
            content="not json",
            headers={"Content-Type": "application/json"},
        )

        data = response.json()
        assert data["success"] is False
        assert data["errors"] == {"_root": ["Request body is not valid JSON."]}
        assert "session" not in response.cookies

    def test_cookie_failure_is_reported(self, client, sign_up, identity_provider, monkeypatch):
        """A credential that cannot be stored is not a successful sign-in."""
        sign_up("uid-1", "user@example.com")
        client.cookies.clear()
        monkeypatch.setattr(
            SessionManager,
            "persist_session_credential",
            lambda self, response, credential: Err(AuthError(AuthErrorType.INTERNAL_ERROR, "boom")),
        )

        response = client.post(
            "/api/v1/auth/sign-in",
            json={"id_token": identity_provider.create_id_token("uid-1"), "firebase_uid": "uid-1"},
        )

        assert response.json()["success"] is False


class TestPasswordAuth:
    """Tests for the email and password convenience endpoints."""

    def test_sign_up_then_sign_in(self, client):
        response = client.post(
            "/api/v1/auth/sign-up/password",
            json={
                "email": "user@example.com",
                "password": "secret123",
                "confirm_password": "secret123",
                "display_name": "User",
            },
        )
        assert response.json() == {"success": True, "message": "Account created."}

        client.cookies.clear()
        response = client.post(
            "/api/v1/auth/sign-in/password",
            json={"email": "user@example.com", "password": "secret123"},
        )
        assert response.json() == {"success": True, "message": "Signed in."}
        assert client.get("/api/v1/auth/me").json()["display_name"] == "User"

    def test_wrong_password(self, client):
        client.post(
            "/api/v1/auth/sign-up/password",
            json={"email": "user@example.com", "password": "secret123", "confirm_password": "secret123"},
        )
        client.cookies.clear()

        response = client.post(
            "/api/v1/auth/sign-in/password",
            json={"email": "user@example.com", "password": "wrong-password"},
        )
        assert response.json() == {"success": False, "message": "Invalid email or password."}

    def test_duplicate_sign_up(self, client):
        payload = {"email": "user@example.com", "password": "secret123", "confirm_password": "secret123"}
        client.post("/api/v1/auth/sign-up/password", json=payload)
        client.cookies.clear()

        response = client.post("/api/v1/auth/sign-up/password", json=payload)
        assert response.json() == {"success": False, "message": "This email address is already in use."}

    def test_passwords_must_match(self, client):
        response = client.post(
            "/api/v1/auth/sign-up/password",
            json={"email": "user@example.com", "password": "secret123", "confirm_password": "secret321"},
        )
        data = response.json()
        assert data["success"] is False
        assert "confirm_password" in data["errors"]


class TestSignOut:
    """Tests for the sign-out action."""

    def test_sign_out_redirects_and_clears_cookie(self, client, test_user):
        response = client.post("/api/v1/auth/sign-out", follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/sign-in"
        assert "max-age=0" in response.headers["set-cookie"].lower()

    def test_signed_out_credential_no_longer_works(self, client, test_user):
        credential = client.cookies["session"]
        client.post("/api/v1/auth/sign-out", follow_redirects=False)

        client.cookies.set("session", credential)
        response = client.get("/api/v1/auth/me", follow_redirects=False)
        assert response.status_code == 303

    def test_sign_out_without_session(self, client):
        response = client.post("/api/v1/auth/sign-out", follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"] == "/sign-in"

    def test_sign_out_when_clearing_fails(self, client, test_user, monkeypatch):
        """Scenario: sign-out always ends at the sign-in page."""
        monkeypatch.setattr(
            SessionManager,
            "clear_session_credential",
            lambda self, response: Err(AuthError(AuthErrorType.INTERNAL_ERROR, "boom")),
        )

        response = client.post("/api/v1/auth/sign-out", follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/sign-in"

    def test_sign_out_when_provider_fails(self, client, test_user, identity_provider, monkeypatch):
        def broken_sign_out(credential):
            raise RuntimeError("provider unavailable")

        monkeypatch.setattr(identity_provider, "sign_out", broken_sign_out)

        response = client.post("/api/v1/auth/sign-out", follow_redirects=False)

        assert response.status_code == 303


class TestAuthenticationRequired:
    """Entry points that need a user divert anonymous callers to sign-in."""

    @pytest.mark.parametrize(
        "method, path, body",
        [
            ("get", "/api/v1/todos", None),
            ("get", "/api/v1/todos/some-id", None),
            ("post", "/api/v1/todos", {"title": "New Todo"}),
            ("patch", "/api/v1/todos/some-id", {"title": "New title"}),
            ("delete", "/api/v1/todos/some-id", None),
            ("post", "/api/v1/todos/some-id/toggle", None),
            ("get", "/api/v1/auth/me", None),
        ],
    )
    def test_anonymous_is_redirected(self, client, db_session, method, path, body):
        kwargs = {"follow_redirects": False}
        if body is not None:
            kwargs["json"] = body

        response = client.request(method.upper(), path, **kwargs)

        assert response.status_code == 303
        assert response.headers["location"] == "/sign-in"
        assert db_session.query(Todo).count() == 0

    def test_tampered_cookie_is_redirected(self, client):
        client.cookies.set("session", "tampered")
        response = client.post("/api/v1/todos/some-id/toggle", follow_redirects=False)
        assert response.status_code == 303

    def test_redirect_follows_application_settings(self, client, settings):
        settings.SIGN_IN_PATH = "/login"

        action = client.get("/api/v1/todos", follow_redirects=False)
        page = client.get("/todo", follow_redirects=False)
        sign_out = client.post("/api/v1/auth/sign-out", follow_redirects=False)

        assert action.headers["location"] == "/login"
        assert page.headers["location"] == "/login"
        assert sign_out.headers["location"] == "/login"

    def test_cookie_for_deleted_user_is_redirected(self, client, test_user, db_session):
        db_session.query(User).delete()
        db_session.commit()

        response = client.get("/api/v1/todos", follow_redirects=False)
        assert response.status_code == 303


class TestCreateTodo:
    """Tests for the create action."""

    def test_create_todo(self, client, test_user, db_session):
        """Scenario: a new todo is stored for the signed-in user."""
        response = client.post("/api/v1/todos", json={"title": "New Todo"})

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Todo created."}

        todo = db_session.query(Todo).one()
        assert todo.title == "New Todo"
        assert todo.completed is False
        assert todo.user_id == test_user["id"]

    @pytest.mark.parametrize("length, accepted", [(0, False), (1, True), (100, True), (101, False)])
    def test_title_length(self, client, test_user, db_session, length, accepted):
        response = client.post("/api/v1/todos", json={"title": "x" * length})

        data = response.json()
        assert data["success"] is accepted
        assert db_session.query(Todo).count() == (1 if accepted else 0)
        if not accepted:
            assert data["message"] == "Validation failed."
            assert "title" in data["errors"]

    @pytest.mark.parametrize("payload", [{}, {"title": 42}, {"title": None}, ["New Todo"]])
    def test_invalid_payload(self, client, test_user, db_session, payload):
        response = client.post("/api/v1/todos", json=payload)

        data = response.json()
        assert data["success"] is False
        assert data["errors"]
        assert db_session.query(Todo).count() == 0

    def test_missing_body(self, client, test_user, db_session):
        response = client.post("/api/v1/todos")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is False
        assert data["message"] == "Validation failed."
        assert "_root" in data["errors"]
        assert db_session.query(Todo).count() == 0

    def test_malformed_json(self, client, test_user, db_session):
        response = client.post(
            "/api/v1/todos",
            content="{\"title\": ",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": False,
            "message": "Validation failed.",
            "errors": {"_root": ["Request body is not valid JSON."]},
        }
        assert db_session.query(Todo).count() == 0


class TestReadTodos:
    """Tests for the list and detail views."""

    def test_list_newest_first(self, client, test_user):
        for title in ["one", "two", "three"]:
            client.post("/api/v1/todos", json={"title": title})

        titles = [todo["title"] for todo in client.get("/api/v1/todos").json()]
        assert titles == ["three", "two", "one"]

    def test_detail(self, client, test_user):
        todo = create_todo(client)

        response = client.get(f"/api/v1/todos/{todo['id']}")

        assert response.status_code == 200
        assert response.json()["title"] == "New Todo"
        assert response.json()["completed"] is False

    def test_detail_missing(self, client, test_user):
        response = client.get("/api/v1/todos/non-existent-id")
        assert response.status_code == 404
        assert response.json() == {"detail": "Todo not found."}

    def test_list_reflects_mutations(self, client, test_user, view_cache):
        """Each action invalidates the cached views it affects."""
        todo = create_todo(client)
        assert view_cache.get(test_user["id"], "/todo") is not None

        client.post(f"/api/v1/todos/{todo['id']}/toggle")
        assert view_cache.get(test_user["id"], "/todo") is None
        assert client.get("/api/v1/todos").json()[0]["completed"] is True

        client.get(f"/api/v1/todos/{todo['id']}")
        client.patch(f"/api/v1/todos/{todo['id']}", json={"title": "Renamed"})
        assert view_cache.get(test_user["id"], f"/todo/{todo['id']}") is None
        assert client.get(f"/api/v1/todos/{todo['id']}").json()["title"] == "Renamed"

        client.delete(f"/api/v1/todos/{todo['id']}")
        assert client.get("/api/v1/todos").json() == []
        assert client.get(f"/api/v1/todos/{todo['id']}").status_code == 404

    def test_view_read_during_a_mutation_is_not_cached(self, client, test_user, db_session, view_cache, monkeypatch):
        """A todo written between the read and the cache fill shows on the next read."""
        get_all = TodoService.get_all

        def get_all_then_write(self, user_id):
            result = get_all(self, user_id)
            db_session.add(Todo(user_id=user_id, title="Written meanwhile"))
            db_session.commit()
            view_cache.invalidate(user_id, "/todo")
            return result

        monkeypatch.setattr(TodoService, "get_all", get_all_then_write)
        assert client.get("/api/v1/todos").json() == []
        assert view_cache.get(test_user["id"], "/todo") is None

        monkeypatch.undo()
        titles = [todo["title"] for todo in client.get("/api/v1/todos").json()]
        assert titles == ["Written meanwhile"]


class TestUpdateTodo:
    """Tests for the update action."""

    def test_update_title_and_completed(self, client, test_user):
        todo = create_todo(client)

        response = client.patch(f"/api/v1/todos/{todo['id']}", json={"title": "Updated", "completed": True})

        assert response.json() == {"success": True, "message": "Todo updated."}
        updated = client.get(f"/api/v1/todos/{todo['id']}").json()
        assert updated["title"] == "Updated"
        assert updated["completed"] is True

    def test_update_non_existent(self, client, test_user):
        """Scenario: updating a missing todo fails with not found."""
        response = client.patch("/api/v1/todos/non-existent-id", json={"title": "Updated"})
        assert response.json() == {"success": False, "message": "Todo not found."}

    def test_update_rejects_non_boolean_completed(self, client, test_user):
        todo = create_todo(client)

        response = client.patch(f"/api/v1/todos/{todo['id']}", json={"completed": "yes"})

        data = response.json()
        assert data["success"] is False
        assert "completed" in data["errors"]
        assert client.get(f"/api/v1/todos/{todo['id']}").json()["completed"] is False

    def test_update_rejects_empty_title(self, client, test_user):
        todo = create_todo(client)
        response = client.patch(f"/api/v1/todos/{todo['id']}", json={"title": ""})
        assert "title" in response.json()["errors"]

    @pytest.mark.parametrize("field", ["title", "completed"])
    def test_update_rejects_null(self, client, test_user, field):
        """An explicit null is an error, not an omitted field."""
        todo = create_todo(client)

        response = client.patch(f"/api/v1/todos/{todo['id']}", json={field: None})

        data = response.json()
        assert data["success"] is False
        assert field in data["errors"]
        unchanged = client.get(f"/api/v1/todos/{todo['id']}").json()
        assert unchanged["title"] == "New Todo"
        assert unchanged["completed"] is False


class TestToggleAndDelete:
    """Tests for the toggle and delete actions."""

    def test_toggle_twice(self, client, test_user):
        todo = create_todo(client)

        first = client.post(f"/api/v1/todos/{todo['id']}/toggle")
        assert first.json() == {"success": True, "message": "Todo status updated."}
        assert client.get(f"/api/v1/todos/{todo['id']}").json()["completed"] is True

        client.post(f"/api/v1/todos/{todo['id']}/toggle")
        assert client.get(f"/api/v1/todos/{todo['id']}").json()["completed"] is False

    def test_toggle_atomic_mode(self, client, test_user, settings):
        settings.ATOMIC_TOGGLE = True
        todo = create_todo(client)

        client.post(f"/api/v1/todos/{todo['id']}/toggle")

        assert client.get(f"/api/v1/todos/{todo['id']}").json()["completed"] is True

    def test_toggle_missing(self, client, test_user):
        response = client.post("/api/v1/todos/non-existent-id/toggle")
        assert response.json() == {"success": False, "message": "Todo not found."}

    def test_delete(self, client, test_user, db_session):
        todo = create_todo(client)

        response = client.delete(f"/api/v1/todos/{todo['id']}")

        assert response.json() == {"success": True, "message": "Todo deleted."}
        assert db_session.query(Todo).count() == 0

    def test_delete_missing(self, client, test_user):
        response = client.delete("/api/v1/todos/non-existent-id")
        assert response.json() == {"success": False, "message": "Todo not found."}


class TestOwnership:
    """Another user's todos behave as if they did not exist."""

    @pytest.fixture
    def foreign_todo(self, client, sign_up):
        sign_up("uid-owner", "owner@example.com")
        todo = create_todo(client, "Owner's todo")
        client.cookies.clear()
        sign_up("uid-intruder", "intruder@example.com")
        return todo

    def test_not_listed(self, client, foreign_todo):
        assert client.get("/api/v1/todos").json() == []

    def test_detail_is_not_found(self, client, foreign_todo):
        foreign = client.get(f"/api/v1/todos/{foreign_todo['id']}")
        missing = client.get("/api/v1/todos/non-existent-id")
        assert foreign.status_code == missing.status_code == 404
        assert foreign.json() == missing.json()

    @pytest.mark.parametrize(
        "method, suffix, body",
        [
            ("PATCH", "", {"title": "Hijacked"}),
            ("DELETE", "", None),
            ("POST", "/toggle", None),
        ],
    )
    def test_actions_are_not_found(self, client, foreign_todo, db_session, method, suffix, body):
        kwargs = {"json": body} if body is not None else {}
        foreign = client.request(method, f"/api/v1/todos/{foreign_todo['id']}{suffix}", **kwargs)
        missing = client.request(method, f"/api/v1/todos/non-existent-id{suffix}", **kwargs)

        assert foreign.json() == missing.json() == {"success": False, "message": "Todo not found."}

        db_session.expire_all()
        todo = db_session.get(Todo, foreign_todo["id"])
        assert todo.title == "Owner's todo"
        assert todo.completed is False