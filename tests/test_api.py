"""
HTTP tests for the API: auth endpoints, the gate, and both book families.
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest
from fastapi.testclient import TestClient

from bookshelf.api.app import create_app
from bookshelf.config import Settings

DUNE = {"title": "Dune", "author": "Herbert", "publishYear": 1965}


@pytest.fixture
def settings(secret):
    return Settings(
        environment="test",
        jwt_secret_key=secret,
        password_hash_iterations=1_000,
        sentry_dsn="",
    )


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as test_client:
        yield test_client


def signup(client, username):
    response = client.post("/auth/register", json={"username": username, "password": "secret123"})
    assert response.status_code == 201
    body = response.json()
    return {"Authorization": f"Bearer {body['access_token']}"}, body["user"]["id"]


@pytest.fixture
def alice(client):
    return signup(client, "alice")


@pytest.fixture
def bob(client):
    return signup(client, "bob")


def test_root(client):
    assert client.get("/").json() == {"message": "Bookstore API Running"}
    assert client.get("/health").json()["status"] == "healthy"


# =============================================================================
# Auth Endpoints
# =============================================================================


class TestAuthEndpoints:
    def test_register(self, client):
        response = client.post("/auth/register", json={"username": "alice", "password": "secret123"})

        assert response.status_code == 201
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["user"]["username"] == "alice"
        assert "password_hash" not in body["user"]

    def test_duplicate_username(self, client, alice):
        response = client.post("/auth/register", json={"username": "alice", "password": "another1"})
        assert response.status_code == 409

    def test_register_validation(self, client):
        response = client.post("/auth/register", json={"username": "alice", "password": "x"})
        assert response.status_code == 400
        assert response.json()["fields"] == ["password"]

    def test_login(self, client, alice):
        response = client.post("/auth/login", json={"username": "alice", "password": "secret123"})
        assert response.status_code == 200
        assert response.json()["access_token"]

    def test_login_wrong_password(self, client, alice):
        response = client.post("/auth/login", json={"username": "alice", "password": "nope"})
        assert response.status_code == 401
        assert response.json() == {"message": "Invalid username or password"}

    def test_me(self, client, alice):
        headers, user_id = alice
        response = client.get("/auth/me", headers=headers)
        assert response.status_code == 200
        assert response.json()["id"] == user_id
        assert response.json()["username"] == "alice"


# =============================================================================
# Gate
# =============================================================================


class TestGate:
    def _expired_token(self, secret, user_id):
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        return jwt.encode(
            {"sub": user_id, "iat": past, "exp": past + timedelta(hours=1), "type": "access"},
            secret,
            algorithm="HS256",
        )

    @pytest.mark.parametrize("path", ["/books", "/profilebooks", "/auth/me"])
    def test_missing_token(self, client, path):
        response = client.get(path)
        assert response.status_code == 401
        assert response.json() == {"message": "Not authenticated"}
        assert response.headers["www-authenticate"] == "Bearer"

    def test_failures_are_uniform(self, client, alice, secret):
        _, user_id = alice
        bad_headers = [
            {"Authorization": "Token abc"},
            {"Authorization": "Bearer not-a-jwt"},
            {"Authorization": f"Bearer {self._expired_token(secret, user_id)}"},
            {"Authorization": f"Bearer {self._expired_token('wrong-secret-but-long-enough-12345', user_id)}"},
        ]
        bodies = set()
        for headers in bad_headers:
            response = client.get("/books", headers=headers)
            assert response.status_code == 401
            bodies.add(response.text)
        assert len(bodies) == 1

    def test_mutations_gated(self, client):
        assert client.post("/books", json=DUNE).status_code == 401
        assert client.put("/books/book_x", json=DUNE).status_code == 401
        assert client.delete("/profilebooks/pbook_x").status_code == 401

    @pytest.mark.parametrize("method,path", [
        ("POST", "/books"),
        ("PUT", "/books/book_x"),
        ("POST", "/profilebooks"),
        ("PUT", "/profilebooks/pbook_x"),
    ])
    def test_gate_runs_before_body_parsing(self, client, method, path):
        response = client.request(
            method, path, content=b"{not json", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 401
        assert response.json() == {"message": "Not authenticated"}

    def test_malformed_body_after_gate(self, client, alice):
        headers, _ = alice
        response = client.post(
            "/books",
            content=b"{not json",
            headers={**headers, "Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json()["fields"] == ["body"]

    def test_malformed_register_body(self, client):
        response = client.post(
            "/auth/register", content=b"{not json", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400
        assert response.json()["fields"] == ["body"]


# =============================================================================
# Private Books
# =============================================================================


class TestBooksEndpoints:
    def test_create_and_list(self, client, alice):
        headers, user_id = alice

        response = client.post("/books", json=DUNE, headers=headers)

        assert response.status_code == 201
        book = response.json()
        assert book["owner"] == user_id
        assert book["publishYear"] == 1965

        listing = client.get("/books", headers=headers).json()
        assert listing["count"] == 1
        assert listing["data"][0]["id"] == book["id"]

    def test_create_missing_fields(self, client, alice):
        headers, _ = alice
        response = client.post("/books", json={"title": "Dune"}, headers=headers)

        assert response.status_code == 400
        assert set(response.json()["fields"]) == {"author", "publishYear"}

    def test_other_user_gets_not_found(self, client, alice, bob):
        book_id = client.post("/books", json=DUNE, headers=alice[0]).json()["id"]

        assert client.get(f"/books/{book_id}", headers=bob[0]).status_code == 404
        assert client.put(f"/books/{book_id}", json={"title": "X"}, headers=bob[0]).status_code == 404
        assert client.delete(f"/books/{book_id}", headers=bob[0]).status_code == 404
        assert client.get("/books", headers=bob[0]).json() == {"count": 0, "data": []}

    def test_owner_update_and_delete(self, client, alice):
        headers, _ = alice
        book_id = client.post("/books", json=DUNE, headers=headers).json()["id"]

        response = client.put(f"/books/{book_id}", json={"title": "Dune Messiah"}, headers=headers)
        assert response.status_code == 200
        assert response.json()["message"] == "Book updated successfully"
        assert client.get(f"/books/{book_id}", headers=headers).json()["title"] == "Dune Messiah"

        response = client.delete(f"/books/{book_id}", headers=headers)
        assert response.status_code == 200
        assert response.json()["message"] == "Book deleted successfully"
        assert client.delete(f"/books/{book_id}", headers=headers).status_code == 404


# =============================================================================
# Profile Books
# =============================================================================


class TestProfileBooksEndpoints:
    def test_shared_listing_shows_username(self, client, alice, bob):
        client.post("/profilebooks", json=DUNE, headers=alice[0])

        response = client.get("/profilebooks", headers=bob[0])

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 1
        assert body["data"][0]["user"] == {"id": alice[1], "username": "alice"}
        assert "password_hash" not in response.text

    def test_non_owner_reads_but_cannot_write(self, client, alice, bob):
        book_id = client.post("/profilebooks", json=DUNE, headers=alice[0]).json()["id"]

        response = client.get(f"/profilebooks/{book_id}", headers=bob[0])
        assert response.status_code == 200
        assert response.json()["user"]["username"] == "alice"

        response = client.put(f"/profilebooks/{book_id}", json={"title": "X"}, headers=bob[0])
        assert response.status_code == 403
        assert response.json()["message"] == "Not authorized to update this profile book"

        response = client.delete(f"/profilebooks/{book_id}", headers=bob[0])
        assert response.status_code == 403

    def test_owner_deletes(self, client, alice):
        headers, _ = alice
        book_id = client.post("/profilebooks", json=DUNE, headers=headers).json()["id"]

        response = client.delete(f"/profilebooks/{book_id}", headers=headers)
        assert response.json()["message"] == "Profile Book deleted successfully"
        assert client.get(f"/profilebooks/{book_id}", headers=headers).status_code == 404

    def test_mine(self, client, alice, bob):
        mine = client.post("/profilebooks", json=DUNE, headers=alice[0]).json()["id"]
        client.post("/profilebooks", json=DUNE, headers=bob[0])

        body = client.get("/profilebooks/mine", headers=alice[0]).json()
        assert [b["id"] for b in body["data"]] == [mine]
