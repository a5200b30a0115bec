import pytest
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import httpx

OWNER_PAYLOAD = {
    "name": "API Tester",
    "email": "tester@example.com",
    "phone": "+420700000000",
    "address": "Václavské náměstí 1, Praha",
}

def future(hours):
    return (datetime.now(timezone.utc) + timedelta(hours=hours)).isoformat()

def create_owner(client):
    response = client.post("/owner", json=OWNER_PAYLOAD)
    assert response.status_code == 200
    return response.json()

def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"

def test_create_owner(client):
    owner = create_owner(client)
    for field, value in OWNER_PAYLOAD.items():
        assert owner[field] == value
    assert owner["id"]

def test_create_owner_missing_field(client):
    payload = dict(OWNER_PAYLOAD)
    del payload["email"]
    response = client.post("/owner", json=payload)
    assert response.status_code == 422

def test_create_dog_and_read_owner(client):
    owner = create_owner(client)
    response = client.post("/dog", json={"owner": owner["id"], "name": "Rex", "breed": "Beagle"})
    assert response.status_code == 200
    dog = response.json()
    assert dog["owner"] == owner["id"]
    assert dog["age"] is None

    details = client.get(f"/owner/{owner['id']}").json()
    assert details["owner"]["id"] == owner["id"]
    assert [d["id"] for d in details["dogs"]] == [dog["id"]]

def test_get_unknown_owner(client):
    response = client.get(f"/owner/{uuid4()}")
    assert response.status_code == 404

def test_create_booking(client):
    owner = create_owner(client)
    response = client.post("/booking", json={
        "owner": owner["id"], "start_time": future(24), "duration_in_minutes": 60
    })
    assert response.status_code == 200
    booking = response.json()
    assert booking["owner"] == owner["id"]
    assert booking["canceled"] is False
    assert booking["duration_in_minutes"] == 60

def test_create_booking_with_malformed_owner(client):
    response = client.post("/booking", json={
        "owner": "definitely-not-an-id", "start_time": future(24), "duration_in_minutes": 60
    })
    assert response.status_code == 400
    assert "owner" in response.json()["detail"]

def test_create_booking_for_unknown_owner(client):
    response = client.post("/booking", json={
        "owner": str(uuid4()), "start_time": future(24), "duration_in_minutes": 60
    })
    assert response.status_code == 404

@pytest.mark.parametrize("duration", [0, -30, 24 * 60 + 1, 10**12])
def test_create_booking_rejects_out_of_range_duration(client, duration):
    owner = create_owner(client)
    response = client.post("/booking", json={
        "owner": owner["id"], "start_time": future(24), "duration_in_minutes": duration
    })
    assert response.status_code == 422

def test_get_bookings_returns_full_bookings(client):
    owner = create_owner(client)
    client.post("/dog", json={"owner": owner["id"], "name": "Rex"})
    client.post("/dog", json={"owner": owner["id"], "name": "Fido"})

    upcoming = client.post("/booking", json={"owner": owner["id"], "start_time": future(5), "duration_in_minutes": 30}).json()
    client.post("/booking", json={"owner": owner["id"], "start_time": future(-5), "duration_in_minutes": 30})
    canceled = client.post("/booking", json={"owner": owner["id"], "start_time": future(6), "duration_in_minutes": 30}).json()
    client.put(f"/booking/{canceled['id']}/cancel")

    response = client.get("/bookings")
    assert response.status_code == 200
    data = response.json()
    assert len(data) == 1
    assert data[0]["id"] == upcoming["id"]
    assert data[0]["owner"]["email"] == OWNER_PAYLOAD["email"]
    assert sorted(d["name"] for d in data[0]["dogs"]) == ["Fido", "Rex"]

def test_get_bookings_sorted(client):
    owner = create_owner(client)
    late = client.post("/booking", json={"owner": owner["id"], "start_time": future(10), "duration_in_minutes": 30}).json()
    early = client.post("/booking", json={"owner": owner["id"], "start_time": future(2), "duration_in_minutes": 30}).json()

    data = client.get("/bookings", params={"sort": "true"}).json()
    assert [b["id"] for b in data] == [early["id"], late["id"]]

def test_cancel_booking_twice(client):
    owner = create_owner(client)
    booking = client.post("/booking", json={"owner": owner["id"], "start_time": future(3), "duration_in_minutes": 30}).json()

    first = client.put(f"/booking/{booking['id']}/cancel")
    assert first.status_code == 200
    assert first.json()["status"] == "canceled"

    second = client.put(f"/booking/{booking['id']}/cancel")
    assert second.status_code == 200
    assert second.json()["status"] == "already_canceled"

def test_cancel_unknown_booking(client):
    missing = str(uuid4())
    response = client.put(f"/booking/{missing}/cancel")
    assert response.status_code == 404
    assert response.json() == {"booking_id": missing, "status": "not_found"}

def test_cancel_malformed_id(client):
    response = client.put("/booking/abc/cancel")
    assert response.status_code == 400

def test_storage_failure_is_reported(client, fake_supabase):
    fake_supabase.fail = httpx.ReadTimeout("timed out")
    response = client.get("/bookings")
    assert response.status_code == 500
    body = response.json()
    assert body["message"] == "Storage Error"
    assert "timed out" in body["detail"]
