"""Tests for users endpoints."""

import pytest

from crud_users.db import users_repository
from crud_users.errors import StoreUnavailableError


def _fail(*args, **kwargs):
    raise StoreUnavailableError("connection lost: secret-host:5432")


@pytest.fixture
def created(client, valid_user) -> dict:
    response = client.post("/api/users", json=valid_user)
    assert response.status_code == 201
    return response.json()


class TestListUsers:
    """Tests for GET /api/users."""

    def test_list_empty(self, client):
        """List returns empty array when no users."""
        response = client.get("/api/users")
        assert response.status_code == 200
        assert response.json() == []

    def test_list_after_create(self, client, created):
        """List returns created users as a plain array."""
        response = client.get("/api/users")
        assert response.status_code == 200
        assert response.json() == [created]

    def test_store_failure_is_500(self, client, monkeypatch):
        """Backend errors are generic 500s without internal details."""
        monkeypatch.setattr(users_repository, "list_users", _fail)
        response = client.get("/api/users")

        assert response.status_code == 500
        assert response.json() == {"detail": "Internal server error"}
        assert "secret-host" not in response.text


class TestCreateUser:
    """Tests for POST /api/users."""

    def test_create_returns_representation(self, client, valid_user):
        """201 with the stored fields and a generated uuid."""
        response = client.post("/api/users", json=valid_user)

        assert response.status_code == 201
        data = response.json()
        assert data["uuid"]
        assert data["fullname"] == "Ana Pop"
        assert data["study_level"] == "Bachelor"
        assert data["age"] == 21

    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"fullname": "Ana Pop", "study_level": "Bachelor"},
            {"fullname": "Ana Pop", "study_level": "Bachelor", "age": "21"},
            {"fullname": "Ana Pop", "study_level": "Bachelor", "age": 0},
            {"fullname": "Ana Pop", "study_level": "Bachelor", "age": -4},
            {"fullname": "Ana Pop", "study_level": "Bachelor", "age": 20.5},
            {"fullname": "Ana Pop", "study_level": "Bachelor", "age": 10**20},
            {"fullname": "Ana Pop", "study_level": "Bachelor", "age": 1e300},
            {"fullname": "", "study_level": "Bachelor", "age": 21},
            {"fullname": "Ana Pop", "study_level": None, "age": 21},
            ["Ana Pop", "Bachelor", 21],
        ],
    )
    def test_invalid_payload_is_400(self, client, body):
        """Invalid bodies are rejected with 400 and nothing is stored."""
        response = client.post("/api/users", json=body)

        assert response.status_code == 400
        assert response.json() == {"detail": "Invalid user data"}
        assert client.get("/api/users").json() == []

    def test_malformed_json_is_400(self, client):
        """A body that is not JSON is an invalid payload, not a 422."""
        response = client.post(
            "/api/users",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400

    def test_empty_body_is_400(self, client):
        response = client.post("/api/users")
        assert response.status_code == 400

    def test_store_failure_is_500(self, client, valid_user, monkeypatch):
        monkeypatch.setattr(users_repository, "insert_user", _fail)
        response = client.post("/api/users", json=valid_user)

        assert response.status_code == 500
        assert response.json() == {"detail": "Internal server error"}


class TestGetUser:
    """Tests for GET /api/users/{uuid}."""

    def test_round_trip(self, client, created):
        """Fetching by the returned uuid yields the same fields."""
        response = client.get(f"/api/users/{created['uuid']}")

        assert response.status_code == 200
        assert response.json() == {
            "uuid": created["uuid"],
            "fullname": "Ana Pop",
            "study_level": "Bachelor",
            "age": 21,
        }

    def test_not_found(self, client):
        response = client.get("/api/users/00000000-0000-4000-8000-000000000000")

        assert response.status_code == 404
        assert response.json() == {"detail": "User not found"}

    def test_store_failure_is_500(self, client, monkeypatch):
        monkeypatch.setattr(users_repository, "get_user", _fail)
        assert client.get("/api/users/anything").status_code == 500


class TestUpdateUser:
    """Tests for PUT /api/users/{uuid}."""

    def test_update_replaces_fields(self, client, created):
        """All fields are replaced and returned."""
        body = {"fullname": "Ana Maria Pop", "study_level": "Master", "age": 22}
        response = client.put(f"/api/users/{created['uuid']}", json=body)

        assert response.status_code == 200
        assert response.json() == {"uuid": created["uuid"], **body}
        assert client.get(f"/api/users/{created['uuid']}").json() == {
            "uuid": created["uuid"],
            **body,
        }

    def test_same_update_twice(self, client, created):
        """Repeating an update yields the same final state."""
        body = {"fullname": "Ana Pop", "study_level": "Master", "age": 22}
        first = client.put(f"/api/users/{created['uuid']}", json=body)
        second = client.put(f"/api/users/{created['uuid']}", json=body)

        assert first.status_code == second.status_code == 200
        assert first.json() == second.json()

    def test_partial_body_is_400(self, client, created):
        """Partial updates are not supported."""
        response = client.put(f"/api/users/{created['uuid']}", json={"age": 30})

        assert response.status_code == 400
        assert client.get(f"/api/users/{created['uuid']}").json() == created

    def test_not_found(self, client, valid_user):
        response = client.put("/api/users/missing", json=valid_user)

        assert response.status_code == 404
        assert client.get("/api/users").json() == []

    def test_oversized_age_is_400(self, client, created):
        """An age the column cannot hold is invalid data, not a server error."""
        response = client.put(
            f"/api/users/{created['uuid']}",
            json={"fullname": "Ana Pop", "study_level": "Bachelor", "age": 10**20},
        )

        assert response.status_code == 400
        assert response.json() == {"detail": "Invalid user data"}
        assert client.get(f"/api/users/{created['uuid']}").json() == created

    def test_invalid_body_on_missing_user_is_400(self, client):
        """Validation happens before the existence check."""
        response = client.put("/api/users/missing", json={"fullname": "x"})
        assert response.status_code == 400

    def test_store_failure_is_500(self, client, created, valid_user, monkeypatch):
        monkeypatch.setattr(users_repository, "update_user", _fail)
        response = client.put(f"/api/users/{created['uuid']}", json=valid_user)
        assert response.status_code == 500


class TestDeleteUser:
    """Tests for DELETE /api/users/{uuid}."""

    def test_delete_then_get(self, client, created):
        """Delete confirms, then the user is gone."""
        response = client.delete(f"/api/users/{created['uuid']}")

        assert response.status_code == 200
        assert response.json() == {"message": "User deleted"}
        assert client.get(f"/api/users/{created['uuid']}").status_code == 404

    def test_not_found(self, client):
        response = client.delete("/api/users/missing")

        assert response.status_code == 404
        assert response.json() == {"detail": "User not found"}

    def test_store_failure_is_500(self, client, monkeypatch):
        monkeypatch.setattr(users_repository, "delete_user", _fail)
        assert client.delete("/api/users/any").status_code == 500
