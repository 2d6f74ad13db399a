"""
test_users.py - Profile Endpoint Tests

Covers: /users/me read + update (phone normalization, role profile fields,
null rejected for required columns), CTV CV and BTC profile read/upsert,
role guards, public BTC/CTV pages (reviews + past/ongoing/upcoming
grouping) and categorize_events.
"""

from datetime import datetime, timedelta

import pytest

from jobevent.domain.users.service import categorize_events
from jobevent.models import Event, Review


# ── Current user ─────────────────────────────────────────────────────


def test_get_me_returns_user_and_ctv_profile(client, ctv_user, auth_headers):
    resp = client.get("/api/users/me", headers=auth_headers(ctv_user))

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["user"]["email"] == ctv_user.email
    assert data["user"]["subscription"]["plan"] == "FREE"
    assert data["profile"]["trustScore"] == 10
    assert data["profile"]["reputation"] == {"score": 10, "totalReviews": 0}


def test_update_me_sets_phone_and_profile(client, db_session, ctv_user, auth_headers):
    resp = client.put(
        "/api/users/me",
        json={"phone": "84912345678", "fullName": "Tran Thi B", "skills": ["MC", "Ushering"]},
        headers=auth_headers(ctv_user),
    )

    assert resp.status_code == 200
    assert resp.json()["data"]["fullName"] == "Tran Thi B"
    db_session.refresh(ctv_user)
    assert ctv_user.phone == "0912345678"
    assert ctv_user.ctv_profile.skills == ["MC", "Ushering"]


def test_update_me_rejects_bad_phone(client, ctv_user, auth_headers):
    resp = client.put("/api/users/me", json={"phone": "999"}, headers=auth_headers(ctv_user))
    assert resp.status_code == 400


@pytest.mark.parametrize("path", ["/api/users/me", "/api/users/ctv/cv"])
@pytest.mark.parametrize("field", ["gender", "skills"])
def test_null_for_required_profile_field_is_rejected(
    client, db_session, ctv_user, auth_headers, path, field
):
    resp = client.put(path, json={field: None}, headers=auth_headers(ctv_user))

    assert resp.status_code == 400
    assert resp.json()["message"].startswith(f"{field}: ")
    db_session.refresh(ctv_user.ctv_profile)
    assert ctv_user.ctv_profile.gender == "OTHER"
    assert ctv_user.ctv_profile.skills == []


# ── Role profiles ────────────────────────────────────────────────────


def test_ctv_cv_upsert(client, db_session, ctv_user, auth_headers):
    resp = client.put(
        "/api/users/ctv/cv",
        json={"address": "Da Nang", "experiences": [{"title": "Usher", "description": "Expo 2024"}]},
        headers=auth_headers(ctv_user),
    )

    assert resp.status_code == 200
    assert resp.json()["data"]["address"] == "Da Nang"
    cv = client.get("/api/users/ctv/cv", headers=auth_headers(ctv_user)).json()["data"]
    assert cv["experiences"][0]["title"] == "Usher"


def test_ctv_cv_forbidden_for_btc(client, btc_user, auth_headers):
    resp = client.get("/api/users/ctv/cv", headers=auth_headers(btc_user))
    assert resp.status_code == 403


def test_btc_profile_update(client, btc_user, auth_headers):
    resp = client.put(
        "/api/users/btc/profile",
        json={"agencyName": "Moonlight", "website": "https://moonlight.vn"},
        headers=auth_headers(btc_user),
    )

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["agencyName"] == "Moonlight"
    assert data["website"] == "https://moonlight.vn"


def test_btc_profile_forbidden_for_ctv(client, ctv_user, auth_headers):
    resp = client.put("/api/users/btc/profile", json={"agencyName": "X"}, headers=auth_headers(ctv_user))
    assert resp.status_code == 403


# ── Public pages ─────────────────────────────────────────────────────


def test_public_btc_profile_groups_events_and_reviews(
    client, db_session, btc_user, ctv_user, make_event
):
    now = datetime.utcnow()
    past = make_event(btc_user, title="Past", start_time=now - timedelta(days=10))
    make_event(btc_user, title="Upcoming", start_time=now + timedelta(days=10))
    db_session.add(
        Review(
            event_id=past.id,
            from_user_id=ctv_user.id,
            to_user_id=btc_user.id,
            review_type="CTV_TO_BTC",
            rating=4,
        )
    )
    db_session.commit()

    resp = client.get(f"/api/users/btc/{btc_user.btc_profile.id}/public")

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["profile"]["user"]["id"] == btc_user.id
    assert [e["title"] for e in data["events"]["past"]] == ["Past"]
    assert [e["title"] for e in data["events"]["upcoming"]] == ["Upcoming"]
    assert len(data["events"]["all"]) == 2
    assert len(data["reviews"]) == 1


def test_public_ctv_profile_uses_joined_events(client, db_session, btc_user, ctv_user, make_event):
    event = make_event(btc_user, start_time=datetime.utcnow() - timedelta(days=5))
    ctv_user.ctv_profile.add_joined_event(event.id, "Usher")
    db_session.commit()

    resp = client.get(f"/api/users/ctv/{ctv_user.ctv_profile.id}/public")

    assert resp.status_code == 200
    assert [e["id"] for e in resp.json()["data"]["events"]["past"]] == [event.id]


def test_public_profile_not_found(client):
    assert client.get("/api/users/btc/999/public").json()["message"] == "BTC profile not found"
    assert client.get("/api/users/ctv/999/public").status_code == 404


# ── categorize_events ────────────────────────────────────────────────


def test_categorize_events_completed_counts_as_past():
    now = datetime(2025, 6, 1, 12, 0)

    def ev(start_offset, status="RECRUITING"):
        start = now + timedelta(hours=start_offset)
        return Event(id=start_offset, start_time=start, end_time=start + timedelta(hours=4), status=status)

    ongoing = ev(-1)
    finished_early = ev(-1, status="COMPLETED")
    upcoming = ev(24)
    result = categorize_events([ongoing, finished_early, upcoming], now=now)

    assert len(result["ongoing"]) == 1
    assert len(result["past"]) == 1
    assert result["past"][0]["status"] == "COMPLETED"
    assert len(result["upcoming"]) == 1
    assert len(result["all"]) == 3
