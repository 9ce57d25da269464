"""HTTP surface: status codes, error bodies and end-to-end flows."""

from datetime import datetime, timedelta, timezone

from eventnest.config import settings
from tests.conftest import JPEG_BYTES, api_signup

API = "/api/v1"


def _future(days: int = 1) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


def _create_event(client, headers, title="Launch"):
    r = client.post(f"{API}/events", json={"title": title, "date": _future()}, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


def test_health(client):
    r = client.get(f"{API}/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_signup_signin_refresh_logout(client):
    ada = api_signup(client, "Ada")
    assert ada["user"]["email"] == "ada@example.com"
    assert ada["token_type"] == "bearer"

    r = client.post(f"{API}/auth/signup", json={
        "name": "Ada again", "email": "ada@example.com", "password": "correct-horse",
    })
    assert r.status_code == 409

    r = client.post(f"{API}/auth/signin", json={"email": "ada@example.com", "password": "wrong-pass"})
    assert r.status_code == 401
    assert r.json()["detail"] == "Invalid email or password"

    r = client.post(f"{API}/auth/signin", json={"email": "ada@example.com", "password": "correct-horse"})
    assert r.status_code == 200
    refresh = r.json()["refresh_token"]

    r = client.post(f"{API}/auth/refresh", json={"refresh_token": refresh})
    assert r.status_code == 200
    rotated = r.json()

    # Reusing the rotated-out token fails with the generic message
    r = client.post(f"{API}/auth/refresh", json={"refresh_token": refresh})
    assert r.status_code == 401
    assert r.json()["detail"] == "Invalid or expired token"

    headers = {"Authorization": f"Bearer {rotated['access_token']}"}
    r = client.post(f"{API}/auth/logout", headers=headers)
    assert r.status_code == 204

    r = client.post(f"{API}/auth/refresh", json={"refresh_token": rotated["refresh_token"]})
    assert r.status_code == 401


def test_token_errors_are_indistinguishable(client):
    ada = api_signup(client, "Ada")
    bad_signature = client.post(f"{API}/auth/refresh", json={"refresh_token": "x.y.z"})
    wrong_type = client.post(f"{API}/auth/refresh", json={"refresh_token": ada["access_token"]})
    assert bad_signature.status_code == wrong_type.status_code == 401
    assert bad_signature.json() == wrong_type.json()


def test_protected_routes_require_token(client):
    assert client.get(f"{API}/events").status_code == 401
    r = client.get(f"{API}/events", headers={"Authorization": "Bearer garbage"})
    assert r.status_code == 401
    assert r.json()["detail"] == "Invalid or expired token"


def test_signup_validation(client):
    r = client.post(f"{API}/auth/signup", json={"name": "Ada", "email": "not-an-email", "password": "correct-horse"})
    assert r.status_code == 422
    r = client.post(f"{API}/auth/signup", json={"name": "Ada", "email": "ada@example.com", "password": "short"})
    assert r.status_code == 422


def test_event_membership_flow(client):
    ada = api_signup(client, "Ada")
    bob = api_signup(client, "Bob")
    eve = api_signup(client, "Eve")

    event = _create_event(client, ada["headers"])
    assert event["access_level"] == 0
    event_id = event["id"]

    # Outsiders cannot tell the event exists
    assert client.get(f"{API}/events/{event_id}", headers=eve["headers"]).status_code == 404
    assert client.get(f"{API}/events/evt_nope", headers=eve["headers"]).status_code == 404

    r = client.post(f"{API}/events/join", json={"invitation_token": event["invitation_token"]}, headers=bob["headers"])
    assert r.status_code == 200
    assert r.json()["access_level"] == 1

    r = client.post(f"{API}/events/join", json={"invitation_token": "0" * 32}, headers=bob["headers"])
    assert r.status_code == 404
    r = client.post(f"{API}/events/join", json={"invitation_token": "short"}, headers=bob["headers"])
    assert r.status_code == 422

    # Bob is promoted, but only the creator may delete
    r = client.put(
        f"{API}/events/{event_id}/participants/{bob['user']['id']}/access",
        json={"access_level": 0},
        headers=ada["headers"],
    )
    assert r.status_code == 200
    assert r.json()["access_level"] == 0
    assert client.delete(f"{API}/events/{event_id}", headers=bob["headers"]).status_code == 403

    # Nobody can touch the creator
    r = client.put(
        f"{API}/events/{event_id}/participants/{ada['user']['id']}/access",
        json={"access_level": 2},
        headers=bob["headers"],
    )
    assert r.status_code == 409
    r = client.delete(f"{API}/events/{event_id}/participants/{ada['user']['id']}", headers=bob["headers"])
    assert r.status_code == 409
    assert client.post(f"{API}/events/{event_id}/leave", headers=ada["headers"]).status_code == 409

    r = client.put(
        f"{API}/events/{event_id}/participants/{bob['user']['id']}/access",
        json={"access_level": 5},
        headers=ada["headers"],
    )
    assert r.status_code == 422

    r = client.get(f"{API}/events/{event_id}/participants", headers=bob["headers"])
    assert [p["name"] for p in r.json()] == ["Ada", "Bob"]

    r = client.post(f"{API}/events/{event_id}/invitation", headers=bob["headers"])
    assert r.status_code == 200
    assert r.json()["invitation_token"] != event["invitation_token"]

    assert client.post(f"{API}/events/{event_id}/leave", headers=bob["headers"]).status_code == 204
    assert client.get(f"{API}/events", headers=bob["headers"]).json() == []

    assert client.delete(f"{API}/events/{event_id}", headers=ada["headers"]).status_code == 204
    assert client.get(f"{API}/events/{event_id}", headers=ada["headers"]).status_code == 404


def test_event_create_and_update_validation(client):
    ada = api_signup(client, "Ada")
    yesterday = (datetime.now(timezone.utc) - timedelta(days=1)).isoformat()

    r = client.post(f"{API}/events", json={"title": "Launch", "date": yesterday}, headers=ada["headers"])
    assert r.status_code == 422
    assert r.json()["detail"] == "Event date cannot be in the past"
    assert client.get(f"{API}/events", headers=ada["headers"]).json() == []

    r = client.post(f"{API}/events", json={"title": "", "date": _future()}, headers=ada["headers"])
    assert r.status_code == 422

    event = _create_event(client, ada["headers"])
    r = client.put(
        f"{API}/events/{event['id']}",
        json={"title": "Launch v2", "description": "With cake"},
        headers=ada["headers"],
    )
    assert r.status_code == 200
    assert r.json()["title"] == "Launch v2"
    assert r.json()["description"] == "With cake"

    r = client.put(f"{API}/events/{event['id']}", json={"date": yesterday}, headers=ada["headers"])
    assert r.status_code == 422


def test_photo_flow(client, blob_store):
    ada = api_signup(client, "Ada")
    uma = api_signup(client, "Uma")
    vic = api_signup(client, "Vic")
    event = _create_event(client, ada["headers"])
    for member in (uma, vic):
        client.post(f"{API}/events/join", json={"invitation_token": event["invitation_token"]}, headers=member["headers"])
    client.put(
        f"{API}/events/{event['id']}/participants/{vic['user']['id']}/access",
        json={"access_level": 2},
        headers=ada["headers"],
    )

    files = {"file": ("beach.jpg", JPEG_BYTES, "image/jpeg")}
    r = client.post(f"{API}/photos", data={"event_id": event["id"]}, files=files, headers=uma["headers"])
    assert r.status_code == 201, r.text
    photo = r.json()
    assert photo["user_id"] == uma["user"]["id"]

    r = client.post(f"{API}/photos", data={"event_id": event["id"]}, files=files, headers=vic["headers"])
    assert r.status_code == 403

    r = client.get(f"{API}/photos/event/{event['id']}/count", headers=vic["headers"])
    assert r.json()["count"] == 1
    r = client.get(f"{API}/photos/my-events", headers=vic["headers"])
    assert r.json()["photos"][0]["event_title"] == "Launch"
    assert client.get(f"{API}/photos/mine", headers=uma["headers"]).json()["total_count"] == 1

    assert client.delete(f"{API}/photos/{photo['id']}", headers=vic["headers"]).status_code == 403

    blob_store.fail_urls.add(photo["image_url"])
    r = client.delete(f"{API}/photos/{photo['id']}", headers=ada["headers"])
    assert r.status_code == 502
    assert client.get(f"{API}/photos/{photo['id']}", headers=vic["headers"]).status_code == 200

    blob_store.fail_urls.clear()
    assert client.delete(f"{API}/photos/{photo['id']}", headers=ada["headers"]).status_code == 204
    assert client.get(f"{API}/photos/{photo['id']}", headers=vic["headers"]).status_code == 404


def test_profile_management(client, blob_store):
    ada = api_signup(client, "Ada")
    bob = api_signup(client, "Bob")

    r = client.get(f"{API}/users/me", headers=ada["headers"])
    assert r.json()["email"] == "ada@example.com"

    r = client.put(f"{API}/users/me", json={"email": "bob@example.com"}, headers=ada["headers"])
    assert r.status_code == 409
    r = client.put(f"{API}/users/me", json={"name": "Ada L."}, headers=ada["headers"])
    assert r.json()["name"] == "Ada L."

    r = client.put(
        f"{API}/users/me/password",
        json={"current_password": "wrong-pass", "new_password": "brand-new-pass"},
        headers=ada["headers"],
    )
    assert r.status_code == 401
    r = client.put(
        f"{API}/users/me/password",
        json={"current_password": "correct-horse", "new_password": "brand-new-pass"},
        headers=ada["headers"],
    )
    assert r.status_code == 204
    r = client.post(f"{API}/auth/refresh", json={"refresh_token": ada["refresh_token"]})
    assert r.status_code == 401

    # Deleting Ada removes her event, including Bob's photo in it
    event = _create_event(client, ada["headers"])
    client.post(f"{API}/events/join", json={"invitation_token": event["invitation_token"]}, headers=bob["headers"])
    files = {"file": ("beach.jpg", JPEG_BYTES, "image/jpeg")}
    photo = client.post(f"{API}/photos", data={"event_id": event["id"]}, files=files, headers=bob["headers"]).json()

    assert client.delete(f"{API}/users/me", headers=ada["headers"]).status_code == 204
    assert client.get(f"{API}/events", headers=bob["headers"]).json() == []
    assert client.get(f"{API}/photos/mine", headers=bob["headers"]).json()["total_count"] == 0
    assert blob_store.deleted == [photo["image_url"]]
    r = client.post(f"{API}/auth/signin", json={"email": "ada@example.com", "password": "brand-new-pass"})
    assert r.status_code == 401


def test_non_member_cannot_tell_existing_events_from_missing_ones(client):
    ada = api_signup(client, "Ada")
    eve = api_signup(client, "Eve")
    event = _create_event(client, ada["headers"])
    files = {"file": ("beach.jpg", JPEG_BYTES, "image/jpeg")}

    def attempts(event_id):
        h = eve["headers"]
        return [
            client.get(f"{API}/events/{event_id}", headers=h),
            client.put(f"{API}/events/{event_id}", json={"title": "Mine now"}, headers=h),
            client.delete(f"{API}/events/{event_id}", headers=h),
            client.post(f"{API}/events/{event_id}/leave", headers=h),
            client.post(f"{API}/events/{event_id}/invitation", headers=h),
            client.get(f"{API}/events/{event_id}/participants", headers=h),
            client.get(f"{API}/photos/event/{event_id}", headers=h),
            client.get(f"{API}/photos/event/{event_id}/count", headers=h),
            client.post(f"{API}/photos", data={"event_id": event_id}, files=files, headers=h),
        ]

    existing = attempts(event["id"])
    missing = attempts("evt_000000000000")
    for seen, unseen in zip(existing, missing):
        assert seen.status_code == unseen.status_code == 404
        assert seen.json() == unseen.json()

    # The event is untouched
    assert client.get(f"{API}/events/{event['id']}", headers=ada["headers"]).json()["title"] == "Launch"


def test_deleted_account_token_gets_typed_errors(client):
    ada = api_signup(client, "Ada")
    bob = api_signup(client, "Bob")
    event = _create_event(client, ada["headers"])

    assert client.delete(f"{API}/users/me", headers=bob["headers"]).status_code == 204

    # Bob's access token is still signed and unexpired
    r = client.post(
        f"{API}/events/join",
        json={"invitation_token": event["invitation_token"]},
        headers=bob["headers"],
    )
    assert r.status_code == 404
    assert r.json() == {"detail": "User not found"}

    r = client.post(f"{API}/events", json={"title": "Ghost", "date": _future()}, headers=bob["headers"])
    assert r.status_code == 404
    assert client.get(f"{API}/users/me", headers=bob["headers"]).status_code == 404
    assert client.get(f"{API}/events", headers=bob["headers"]).json() == []

    participants = client.get(f"{API}/events/{event['id']}/participants", headers=ada["headers"]).json()
    assert [p["name"] for p in participants] == ["Ada"]


def test_oversized_upload_is_rejected(client, monkeypatch):
    ada = api_signup(client, "Ada")
    event = _create_event(client, ada["headers"])
    monkeypatch.setattr(settings, "max_upload_bytes", 16)

    files = {"file": ("big.jpg", JPEG_BYTES, "image/jpeg")}
    r = client.post(f"{API}/photos", data={"event_id": event["id"]}, files=files, headers=ada["headers"])
    assert r.status_code == 422
    assert client.get(f"{API}/photos/event/{event['id']}/count", headers=ada["headers"]).json()["count"] == 0
