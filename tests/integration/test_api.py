"""End-to-end flows through the HTTP API against the in-memory backend."""

import pytest
from fastapi import Depends
from fastapi.testclient import TestClient

from config import settings
from config.jwt import create_access_token
from dependencies.auth import get_anonymous_backend, get_backend, get_current_session
from main import app
from models.session import Session
from services.events import get_event_bus


@pytest.fixture
def client(backend, monkeypatch):
    monkeypatch.setattr(settings, "PGHOST", None)
    monkeypatch.setattr(settings, "INVITATION_EMAILS_ENABLED", False)

    async def bound_backend(session: Session = Depends(get_current_session)):
        backend.session = session
        return backend

    app.dependency_overrides[get_backend] = bound_backend
    app.dependency_overrides[get_anonymous_backend] = lambda: backend
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def signup(client, email, full_name):
    response = client.post("/api/v1/auth/signup", json={
        "email": email, "password": "secret123", "full_name": full_name
    })
    assert response.status_code == 200
    body = response.json()
    return {"Authorization": f"Bearer {create_access_token(body['user_id'], email)}"}, body["user_id"]


def test_requires_authentication(client):
    assert client.get("/api/v1/invitations/sent").status_code == 401
    response = client.get("/api/v1/persons", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401


def test_invitation_flow_delivers_affirmations_on_signup(client):
    alice, alice_id = signup(client, "a@x.com", "Alice")

    response = client.post("/api/v1/invitations", headers=alice, json={
        "invitee_name": "Bob", "invitee_email": "b@x.com"
    })
    assert response.status_code == 201
    created = response.json()
    assert created["invitation"]["inviter_name"] == "Alice"
    assert "invitee=b%40x.com" in created["share_url"]

    response = client.post("/api/v1/affirmations", headers=alice, json={
        "message": "You are wonderful", "category": "love", "recipient_email": "b@x.com"
    })
    assert response.status_code == 201
    assert response.json()["status"] == "pending"

    bob, bob_id = signup(client, "b@x.com", "Bob")

    received = client.get("/api/v1/affirmations", headers=bob, params={"box": "received"}).json()
    assert [(a["message"], a["status"]) for a in received] == [("You are wonderful", "delivered")]

    edges = client.get("/api/v1/connections", headers=bob).json()
    assert {(e["user_id"], e["connected_user_id"], e["status"]) for e in edges} == {
        (alice_id, bob_id, "accepted"), (bob_id, alice_id, "accepted")
    }

    persons = client.get("/api/v1/persons", headers=alice).json()
    assert [(p["name"], p["user_id"], p["connection_status"]) for p in persons] == [("Bob", bob_id, "accepted")]

    sent = client.get("/api/v1/invitations/sent", headers=alice).json()
    assert sent[0]["status"] == "accepted"


def test_accept_errors_map_to_status_codes(client):
    alice, _ = signup(client, "a@x.com", "Alice")
    carol, _ = signup(client, "c@x.com", "Carol")
    invitation = client.post("/api/v1/invitations", headers=alice, json={
        "invitee_name": "Bob", "invitee_email": "b@x.com"
    }).json()["invitation"]

    response = client.post(f"/api/v1/invitations/{invitation['id']}/accept", headers=carol)
    assert response.status_code == 403

    response = client.post("/api/v1/invitations/6f1c1c3e-4a7b-4c1e-9a55-3f0d1f8b2a10/accept", headers=carol)
    assert response.status_code == 404

    bob, _ = signup(client, "b@x.com", "Bob")
    response = client.post(f"/api/v1/invitations/{invitation['id']}/accept", headers=bob)
    assert response.status_code == 409


def test_validation_errors(client):
    alice, _ = signup(client, "a@x.com", "Alice")

    response = client.post("/api/v1/affirmations", headers=alice, json={
        "message": "  ", "category": "love", "recipient_email": "b@x.com"
    })
    assert response.status_code == 422

    response = client.post("/api/v1/invitations", headers=alice, json={
        "invitee_name": "Bob", "invitee_email": "nope"
    })
    assert response.status_code == 422


def test_affirmation_read_and_favorite(client):
    alice, _ = signup(client, "a@x.com", "Alice")
    bob, bob_id = signup(client, "b@x.com", "Bob")
    sent = client.post("/api/v1/affirmations", headers=alice, json={
        "message": "Thanks for everything", "category": "thanks", "recipient_id": bob_id
    }).json()
    assert sent["status"] == "delivered"

    read = client.post(f"/api/v1/affirmations/{sent['id']}/read", headers=bob).json()
    assert read["status"] == "read"

    favorite = client.put(f"/api/v1/affirmations/{sent['id']}/favorite", headers=bob, json={"is_favorite": True})
    assert favorite.json()["is_favorite"] is True
    assert len(client.get("/api/v1/affirmations", headers=bob, params={"box": "favorites"}).json()) == 1

    assert client.put(f"/api/v1/affirmations/{sent['id']}/favorite", headers=alice,
                      json={"is_favorite": True}).status_code == 404


def test_connection_lifecycle(client):
    alice, _ = signup(client, "a@x.com", "Alice")
    bob, bob_id = signup(client, "b@x.com", "Bob")

    response = client.post("/api/v1/connections", headers=alice, json={"connected_user_id": bob_id})
    assert response.status_code == 201
    assert {e["status"] for e in response.json()} == {"pending"}

    blocked = client.post(f"/api/v1/connections/{bob_id}/block", headers=alice).json()
    assert {e["status"] for e in blocked} == {"blocked"}

    assert client.delete(f"/api/v1/connections/{bob_id}", headers=alice).status_code == 204
    assert client.get("/api/v1/connections", headers=bob).json() == []


def test_profile_and_photo(client, backend):
    alice, alice_id = signup(client, "a@x.com", "Alice")

    me = client.get("/api/v1/profiles/me", headers=alice).json()
    assert me["full_name"] == "Alice"

    response = client.post(
        "/api/v1/profiles/me/photo",
        headers=alice,
        files={"file": ("me.png", b"\x89PNG", "image/png")}
    )
    assert response.status_code == 200
    assert response.json()["photo_url"].startswith(f"https://storage.test/avatars/profile-photos/{alice_id}-")
    assert list(backend.uploads.values()) == [b"\x89PNG"]


def test_logout_drops_event_subscriptions(client):
    alice, alice_id = signup(client, "a@x.com", "Alice")
    bus = get_event_bus()
    bus.subscribe("*", lambda event: None, owner=alice_id)

    assert client.post("/api/v1/auth/logout", headers=alice).status_code == 204
    assert bus.subscriber_count() == 0


def test_blocked_user_cannot_force_a_connection(client):
    alice, alice_id = signup(client, "a@x.com", "Alice")
    bob, bob_id = signup(client, "b@x.com", "Bob")
    client.post("/api/v1/connections", headers=alice, json={"connected_user_id": bob_id})
    client.post(f"/api/v1/connections/{bob_id}/block", headers=alice)

    response = client.post("/api/v1/connections", headers=bob, json={
        "connected_user_id": alice_id, "status": "accepted"
    })
    assert response.status_code == 422

    assert client.post("/api/v1/connections", headers=bob, json={"connected_user_id": alice_id}).status_code == 403
    assert client.post(f"/api/v1/connections/{alice_id}/accept", headers=bob).status_code == 403
    assert {e["status"] for e in client.get("/api/v1/connections", headers=alice).json()} == {"blocked"}
