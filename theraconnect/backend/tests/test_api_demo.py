def demo_payload(day="2024-11-04", start="10:00"):
    return {
        "name": "Priya",
        "mobile": "+15550100",
        "email": "priya@example.com",
        "reason": "Speech delay",
        "date": day,
        "time": start,
    }


def test_public_demo_booking_flow(api_client, clock, make_admin, parent):
    client, login_as = api_client

    login_as(parent.user)
    forbidden = client.put(
        "/api/v1/admin/demo/slots", json={"year": 2024, "month": 11, "times": ["10:00"]}
    )
    assert forbidden.status_code == 403

    login_as(make_admin())
    published = client.put(
        "/api/v1/admin/demo/slots", json={"year": 2024, "month": 11, "times": ["10:00"]}
    )
    assert published.status_code == 200
    assert len(published.json()) == 21
    assert published.json()[0]["time"] == "10:00"

    days = client.get("/api/v1/demo/slots", params={"timezone": "Asia/Kolkata"}).json()
    assert days[0]["date"] == "2024-11-01"
    assert days[0]["slots"][0]["local_time"] == "15:30"

    created = client.post("/api/v1/demo/bookings", json=demo_payload())
    assert created.status_code == 201
    assert created.json()["demo_slot"]["start_time"] == "10:00"
    taken = client.post("/api/v1/demo/bookings", json=demo_payload())
    assert taken.status_code == 409
    missing = client.post("/api/v1/demo/bookings", json=demo_payload(start="11:00"))
    assert missing.status_code == 404

    demo_id = created.json()["id"]
    updated = client.patch(
        f"/api/v1/admin/demo/bookings/{demo_id}",
        json={"converted": True, "user_query": "Group sessions?"},
    )
    assert updated.json()["converted"] is True
    [listed] = client.get("/api/v1/admin/demo/bookings", params={"order": "slot"}).json()
    assert listed["user_query"] == "Group sessions?"
    monthly = client.get("/api/v1/admin/demo/slots", params={"year": 2024, "month": 11}).json()
    assert sum(slot["active_bookings"] for slot in monthly) == 1
    bad_zone = client.get("/api/v1/demo/slots", params={"timezone": "Mars/Olympus"})
    assert bad_zone.status_code == 400
