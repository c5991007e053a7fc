import os
import sys
from uuid import uuid4

from fastapi.testclient import TestClient

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from app.main import app

client = TestClient(app)


def _signup(display_name: str) -> tuple[str, str]:
    response = client.post(
        "/auth/signup",
        json={
            "email": f"golden_{uuid4().hex[:8]}@example.com",
            "password": "golden-pass",
            "display_name": display_name,
        },
    )
    assert response.status_code == 200
    payload = response.json()
    return payload["user_id"], payload["access_token"]


def test_golden_path_publish_browse_book_and_read_inbox():
    provider_id, provider_token = _signup("Golden Provider")
    provider_headers = {"Authorization": f"Bearer {provider_token}"}

    profile = client.patch(
        "/profiles/me",
        json={"service": "Golden Yoga", "mode": "in-person", "rate": "$25", "tags": ["yoga"]},
        headers=provider_headers,
    )
    assert profile.status_code == 200

    for day, time in (("monday", "10:00"), ("monday", "11:00"), ("thursday", "18:00")):
        staged = client.post("/availability/editor/slots", json={"day": day, "time": time}, headers=provider_headers)
        assert staged.json()["staged"] is True
    committed = client.post("/availability/editor/commit", headers=provider_headers)
    assert committed.status_code == 200
    assert committed.json()["availability"] == {"monday": ["10:00", "11:00"], "thursday": ["18:00"]}

    requester_id, requester_token = _signup("Golden Requester")
    requester_headers = {"Authorization": f"Bearer {requester_token}"}

    providers = client.get("/providers", headers=requester_headers)
    assert providers.status_code == 200
    assert any(item["uid"] == provider_id and item["service"] == "Golden Yoga" for item in providers.json())

    details = client.get(f"/providers/{provider_id}", headers=requester_headers)
    assert details.status_code == 200
    template = details.json()["availability"]
    selected = [{"day": day, "time": times[0]} for day, times in template.items()]

    # Provider drops a slot after the requester loaded the page; the booking still goes through.
    removed = client.request(
        "DELETE", "/availability/slots", json={"day": "thursday", "time": "18:00"}, headers=provider_headers
    )
    assert removed.json()["availability"] == {"monday": ["10:00", "11:00"]}

    booking = client.post(
        "/bookings",
        json={"provider_id": provider_id, "slots": selected},
        headers=requester_headers,
    )
    assert booking.status_code == 200
    booked_ids = [item["id"] for item in booking.json()["bookings"]]
    assert len(booked_ids) == 2

    inbox = client.get("/bookings/received", headers=provider_headers)
    assert inbox.status_code == 200
    assert [item["id"] for item in inbox.json()] == booked_ids
    assert {item["from_user"] for item in inbox.json()} == {requester_id}
    assert {item["from_user_name"] for item in inbox.json()} == {"Golden Requester"}

    requester_inbox = client.get("/bookings/received", headers=requester_headers)
    assert requester_inbox.json() == []
