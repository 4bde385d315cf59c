from jose import jwt

import pytest
from fastapi import HTTPException
from app.api import deps
from app.config import get_settings
from app.core.security import ALGORITHM


def test_leave_request_and_decision(api_client, clock, make_admin, parent, therapist):
    client, login_as = api_client
    login_as(therapist.user)

    created = client.post(
        "/api/v1/therapists/me/leaves",
        json={"leave_date": "2024-11-06", "type": "sick", "reason": "Flu"},
    )
    assert created.status_code == 201
    leave_id = created.json()["id"]
    balance = client.get("/api/v1/therapists/me/leave-balance").json()
    assert balance["sick_remaining"] == 5

    login_as(parent.user)
    assert client.get("/api/v1/admin/leaves").status_code == 403

    login_as(make_admin())
    [pending] = client.get("/api/v1/admin/leaves", params={"status": "pending"}).json()
    assert pending["id"] == leave_id
    assert pending["therapist_name"] == therapist.name

    approved = client.patch(f"/api/v1/admin/leaves/{leave_id}", json={"action": "APPROVE"})
    assert approved.status_code == 200
    assert approved.json()["status"] == "approved"
    again = client.patch(f"/api/v1/admin/leaves/{leave_id}", json={"action": "REJECT"})
    assert again.status_code == 409
    invalid = client.patch(f"/api/v1/admin/leaves/{leave_id}", json={"action": "MAYBE"})
    assert invalid.status_code == 422

    login_as(therapist.user)
    balance = client.get("/api/v1/therapists/me/leave-balance").json()
    assert balance["sick_remaining"] == 4


def test_activate_times_once(api_client, make_therapist):
    client, login_as = api_client
    therapist = make_therapist(times=())
    login_as(therapist.user)

    first = client.put("/api/v1/therapists/me/active-times", json={"times": ["10:00", "09:00"]})
    second = client.put("/api/v1/therapists/me/active-times", json={"times": ["12:00"]})

    assert first.status_code == 200
    assert first.json()["activated_times"] == ["09:00", "10:00"]
    assert second.status_code == 409


def test_register_and_login(api_client, db_session):
    client, _ = api_client

    registered = client.post(
        "/api/v1/auth/register/parent",
        json={"email": "mom@example.com", "password": "secret123", "name": "Anna"},
    )
    duplicate = client.post(
        "/api/v1/auth/register/parent",
        json={"email": "mom@example.com", "password": "secret123", "name": "Anna"},
    )
    login = client.post(
        "/api/v1/auth/login", data={"username": "mom@example.com", "password": "secret123"}
    )
    wrong = client.post(
        "/api/v1/auth/login", data={"username": "mom@example.com", "password": "nope"}
    )

    assert registered.status_code == 201
    assert duplicate.status_code == 409
    assert wrong.status_code == 400
    token = login.json()["access_token"]
    claims = jwt.decode(token, get_settings().jwt_secret, algorithms=[ALGORITHM])
    assert login.json()["user"]["role"] == "parent"
    assert login.json()["user"]["profile_id"] == registered.json()["id"]

    user = deps.get_current_user(token, db_session)
    assert user.id == int(claims["sub"])
    with pytest.raises(HTTPException):
        deps.get_current_user("not-a-token", db_session)
