def booking_payload(child, therapist, day="2024-11-04", start="09:00"):
    return {"child_id": child.id, "therapist_id": therapist.id, "date": day, "time": start}


def test_create_booking_conflict(api_client, clock, make_parent, make_child, parent, child, therapist):
    client, login_as = api_client
    login_as(parent.user)

    first = client.post("/api/v1/bookings", json=booking_payload(child, therapist))
    assert first.status_code == 201
    assert first.json()["status"] == "scheduled"
    assert first.json()["time_slot"]["start_time"] == "09:00"

    other = make_parent(name="Other Parent")
    other_child = make_child(other, name="Leo")
    login_as(other.user)
    second = client.post("/api/v1/bookings", json=booking_payload(other_child, therapist))
    assert second.status_code == 409
    assert second.json()["detail"] == "Slot already booked"


def test_availability_and_day_slots(api_client, clock, parent, child, therapist):
    client, login_as = api_client
    login_as(parent.user)
    client.post("/api/v1/bookings", json=booking_payload(child, therapist))

    taken = client.get(
        "/api/v1/bookings/availability",
        params={"therapist_id": therapist.id, "date": "2024-11-04", "time": "09:00"},
    )
    free = client.get(
        "/api/v1/bookings/availability",
        params={"therapist_id": therapist.id, "date": "2024-11-04", "time": "10:00"},
    )
    weekend = client.get(
        "/api/v1/bookings/slots", params={"therapist_id": therapist.id, "date": "2024-11-02"}
    )
    monday = client.get(
        "/api/v1/bookings/slots", params={"therapist_id": therapist.id, "date": "2024-11-04"}
    )

    assert taken.json()["is_available"] is False
    assert free.json()["is_available"] is True
    assert weekend.json()["slots"] == []
    assert [(s["time"], s["is_available"]) for s in monday.json()["slots"]] == [
        ("09:00", False),
        ("10:00", True),
    ]


def test_invalid_requests_map_to_status_codes(api_client, clock, parent, child, therapist):
    client, login_as = api_client
    login_as(parent.user)

    weekend = client.post("/api/v1/bookings", json=booking_payload(child, therapist, day="2024-11-02"))
    unknown = client.get(
        "/api/v1/bookings/availability",
        params={"therapist_id": 9999, "date": "2024-11-04", "time": "09:00"},
    )

    assert weekend.status_code == 400
    assert unknown.status_code == 404


def test_only_parents_can_book(api_client, clock, child, therapist):
    client, login_as = api_client
    login_as(therapist.user)

    response = client.post("/api/v1/bookings", json=booking_payload(child, therapist))

    assert response.status_code == 403


def test_recurring_booking_flow(api_client, clock, parent, child, therapist):
    client, login_as = api_client
    login_as(parent.user)

    created = client.post(
        "/api/v1/bookings/recurring",
        json={
            "child_id": child.id,
            "therapist_id": therapist.id,
            "time": "10:00",
            "start_date": "2024-11-07",
        },
    )
    assert created.status_code == 201
    body = created.json()
    assert body["end_date"] == "2024-12-06"
    assert len(body["created"]) == 21
    assert body["skipped"] == []
    assert body["recurring_booking"]["slot_time"] == "10:00"

    weekend = client.post(
        "/api/v1/bookings/recurring",
        json={
            "child_id": child.id,
            "therapist_id": therapist.id,
            "time": "10:00",
            "start_date": "2024-11-09",
        },
    )
    assert weekend.status_code == 400

    [summary] = client.get("/api/v1/bookings/recurring").json()
    assert summary["total_sessions"] == 21

    group_id = body["recurring_booking"]["id"]
    canceled = client.post(f"/api/v1/bookings/recurring/{group_id}/cancel")
    assert canceled.status_code == 200
    assert canceled.json()["canceled_sessions"] == 21
    assert client.post(f"/api/v1/bookings/recurring/{group_id}/cancel").status_code == 409


def test_cancel_booking_twice(api_client, clock, parent, child, therapist):
    client, login_as = api_client
    login_as(parent.user)
    booking_id = client.post("/api/v1/bookings", json=booking_payload(child, therapist)).json()["id"]

    first = client.post(f"/api/v1/bookings/{booking_id}/cancel", json={"reason": "Travel"})
    second = client.post(f"/api/v1/bookings/{booking_id}/cancel", json={})

    assert first.status_code == 200
    assert first.json()["status"] == "cancelled"
    assert second.status_code == 409


def test_video_credentials_require_configuration(api_client, clock, parent, child, therapist):
    client, login_as = api_client
    login_as(parent.user)
    booking_id = client.post("/api/v1/bookings", json=booking_payload(child, therapist)).json()["id"]

    response = client.get(f"/api/v1/bookings/{booking_id}/video-credentials")

    assert response.status_code == 503
