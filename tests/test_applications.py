"""
test_applications.py - Application Lifecycle Tests

Covers: apply (deadline/status/capacity/duplicate guards, applied counter,
organizer notification), CTV listings and dashboard, BTC applicant list,
approve/reject with approved_count bookkeeping, premium-only bulk actions,
complete (trust +1, joined event) and violation (trust -2, no-show entry).
"""

from datetime import datetime, timedelta

from jobevent.models import Application, Notification


# ── Apply ────────────────────────────────────────────────────────────


class TestApply:
    def test_apply_creates_pending_and_notifies_organizer(
        self, client, db_session, btc_user, ctv_user, make_event, auth_headers
    ):
        event = make_event(btc_user)

        resp = client.post(
            f"/api/events/{event.id}/apply",
            json={"coverLetter": "I have worked three festivals"},
            headers=auth_headers(ctv_user),
        )

        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["status"] == "PENDING"
        assert data["coverLetter"] == "I have worked three festivals"
        db_session.refresh(event)
        assert event.applied_count == 1
        note = db_session.query(Notification).filter(Notification.user_id == btc_user.id).one()
        assert note.type == "APPLICATION"
        assert note.related_model == "Application"

    def test_duplicate_application(self, client, btc_user, ctv_user, make_event, make_application, auth_headers):
        event = make_event(btc_user)
        make_application(event, ctv_user)

        resp = client.post(f"/api/events/{event.id}/apply", json={}, headers=auth_headers(ctv_user))

        assert resp.status_code == 400
        assert resp.json()["message"] == "You have already applied to this event"

    def test_deadline_passed(self, client, btc_user, ctv_user, make_event, auth_headers):
        event = make_event(btc_user, deadline=datetime.utcnow() - timedelta(hours=1))
        resp = client.post(f"/api/events/{event.id}/apply", json={}, headers=auth_headers(ctv_user))
        assert resp.status_code == 400
        assert resp.json()["message"] == "This event is not accepting applications"

    def test_event_full(self, client, btc_user, ctv_user, make_event, auth_headers):
        event = make_event(btc_user, quantity=2, approved_count=2)
        resp = client.post(f"/api/events/{event.id}/apply", json={}, headers=auth_headers(ctv_user))
        assert resp.status_code == 400

    def test_capacity_uses_job_detail_quantities(self, client, btc_user, ctv_user, make_event, auth_headers):
        event = make_event(
            btc_user,
            quantity=1,
            approved_count=1,
            job_details_items=[{"role": "Usher", "quantity": 2}, {"role": "MC", "quantity": 1}],
        )
        resp = client.post(f"/api/events/{event.id}/apply", json={}, headers=auth_headers(ctv_user))
        assert resp.status_code == 201

    def test_not_recruiting(self, client, btc_user, ctv_user, make_event, auth_headers):
        event = make_event(btc_user, status="PREPARING")
        resp = client.post(f"/api/events/{event.id}/apply", json={}, headers=auth_headers(ctv_user))
        assert resp.status_code == 400

    def test_unknown_event(self, client, ctv_user, auth_headers):
        resp = client.post("/api/events/999/apply", json={}, headers=auth_headers(ctv_user))
        assert resp.status_code == 404

    def test_btc_cannot_apply(self, client, btc_user, make_event, auth_headers):
        event = make_event(btc_user)
        resp = client.post(f"/api/events/{event.id}/apply", json={}, headers=auth_headers(btc_user))
        assert resp.status_code == 403


# ── CTV views ────────────────────────────────────────────────────────


class TestCTVViews:
    def test_my_applications_include_event(
        self, client, btc_user, ctv_user, make_event, make_application, auth_headers
    ):
        event = make_event(btc_user, title="Book Fair")
        make_application(event, ctv_user)
        make_application(make_event(btc_user), ctv_user, status="REJECTED")

        body = client.get(
            "/api/ctv/applications", params={"status": "PENDING"}, headers=auth_headers(ctv_user)
        ).json()

        assert body["total"] == 1
        assert body["data"][0]["event"]["title"] == "Book Fair"

    def test_dashboard_stats(self, client, btc_user, ctv_user, make_event, make_application, auth_headers):
        upcoming = make_event(btc_user, title="Soon")
        make_application(upcoming, ctv_user, status="APPROVED", assigned_role="Usher")
        make_application(make_event(btc_user), ctv_user, status="COMPLETED")
        make_application(make_event(btc_user), ctv_user)

        data = client.get(
            "/api/applications/ctv/dashboard/stats", headers=auth_headers(ctv_user)
        ).json()["data"]

        assert data["totalApplications"] == 3
        assert data["approvedCount"] == 1
        assert data["completedCount"] == 1
        assert data["eventsJoined"] == 1
        assert data["pendingCount"] == 1
        assert [e["title"] for e in data["upcomingEvents"]] == ["Soon"]
        assert data["upcomingEvents"][0]["role"] == "Usher"
        assert len(data["chartData"]) == 7


# ── BTC review ───────────────────────────────────────────────────────


class TestReviewApplicants:
    def test_event_applicants_with_profiles(
        self, client, btc_user, ctv_user, make_event, make_application, auth_headers
    ):
        event = make_event(btc_user)
        make_application(event, ctv_user)

        body = client.get(
            f"/api/btc/events/{event.id}/applications", headers=auth_headers(btc_user)
        ).json()

        assert body["total"] == 1
        row = body["data"][0]
        assert row["ctv"]["id"] == ctv_user.id
        assert row["ctvProfile"]["fullName"] == ctv_user.ctv_profile.full_name

    def test_other_organizer_cannot_list(self, client, make_btc, ctv_user, make_event, auth_headers):
        event = make_event(make_btc())
        resp = client.get(f"/api/btc/events/{event.id}/applications", headers=auth_headers(make_btc()))
        assert resp.status_code == 403

    def test_approve_sets_role_and_counts(
        self, client, db_session, btc_user, ctv_user, make_event, make_application, auth_headers
    ):
        event = make_event(btc_user)
        application = make_application(event, ctv_user)

        resp = client.post(
            f"/api/applications/{application.id}/approve",
            json={"assignedRole": "Usher"},
            headers=auth_headers(btc_user),
        )

        assert resp.status_code == 200
        assert resp.json()["data"]["status"] == "APPROVED"
        assert resp.json()["data"]["assignedRole"] == "Usher"
        db_session.refresh(event)
        assert event.approved_count == 1
        note = db_session.query(Notification).filter(Notification.user_id == ctv_user.id).one()
        assert note.type == "APPROVAL"

    def test_reject_after_approve_decrements(
        self, client, db_session, btc_user, ctv_user, make_event, make_application, auth_headers
    ):
        event = make_event(btc_user)
        application = make_application(event, ctv_user)
        headers = auth_headers(btc_user)
        client.post(f"/api/applications/{application.id}/approve", json={}, headers=headers)

        resp = client.post(
            f"/api/applications/{application.id}/reject",
            json={"rejectionReason": "Schedule clash"},
            headers=headers,
        )

        assert resp.json()["data"]["rejectionReason"] == "Schedule clash"
        db_session.refresh(event)
        assert event.approved_count == 0

    def test_approve_someone_elses_application(
        self, client, make_btc, ctv_user, make_event, make_application, auth_headers
    ):
        application = make_application(make_event(make_btc()), ctv_user)
        resp = client.post(
            f"/api/applications/{application.id}/approve", json={}, headers=auth_headers(make_btc())
        )
        assert resp.status_code == 403

    def test_approve_unknown(self, client, btc_user, auth_headers):
        resp = client.post("/api/applications/999/approve", json={}, headers=auth_headers(btc_user))
        assert resp.status_code == 404
        assert resp.json()["message"] == "Application not found"


# ── Bulk actions ─────────────────────────────────────────────────────


class TestBulkActions:
    def test_bulk_requires_premium(self, client, btc_user, auth_headers):
        resp = client.post(
            "/api/applications/bulk-approve", json={"applicationIds": [1]}, headers=auth_headers(btc_user)
        )
        assert resp.status_code == 403
        assert resp.json()["message"] == "This feature requires an active Premium subscription"

    def test_bulk_approve(
        self, client, db_session, premium_btc, make_ctv, make_event, make_application, auth_headers
    ):
        event = make_event(premium_btc)
        ids = [make_application(event, make_ctv()).id for _ in range(3)]

        resp = client.post(
            "/api/applications/bulk-approve",
            json={"applicationIds": ids, "role": "Staff"},
            headers=auth_headers(premium_btc),
        )

        assert resp.status_code == 200
        assert resp.json()["message"] == "3 applications approved successfully"
        statuses = {a.status for a in db_session.query(Application).all()}
        assert statuses == {"APPROVED"}
        db_session.refresh(event)
        assert event.approved_count == 3

    def test_bulk_reject(self, client, db_session, premium_btc, make_ctv, make_event, make_application, auth_headers):
        event = make_event(premium_btc)
        ids = [make_application(event, make_ctv()).id for _ in range(2)]

        resp = client.post(
            "/api/applications/bulk-reject",
            json={"applicationIds": ids, "rejectionReason": "Full"},
            headers=auth_headers(premium_btc),
        )

        assert resp.json()["message"] == "2 applications rejected successfully"
        assert db_session.query(Notification).filter(Notification.type == "REJECTION").count() == 2

    def test_bulk_empty_ids(self, client, premium_btc, auth_headers):
        resp = client.post(
            "/api/applications/bulk-approve", json={"applicationIds": []}, headers=auth_headers(premium_btc)
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == "Application IDs are required"

    def test_bulk_foreign_application_blocks_batch(
        self, client, db_session, premium_btc, make_btc, make_ctv, make_event, make_application, auth_headers
    ):
        mine = make_application(make_event(premium_btc), make_ctv())
        theirs = make_application(make_event(make_btc()), make_ctv())

        resp = client.post(
            "/api/applications/bulk-approve",
            json={"applicationIds": [mine.id, theirs.id]},
            headers=auth_headers(premium_btc),
        )

        assert resp.status_code == 403
        db_session.refresh(mine)
        assert mine.status == "PENDING"


# ── Close out ────────────────────────────────────────────────────────


class TestCloseOut:
    def test_complete_credits_trust_and_joined_event(
        self, client, db_session, btc_user, ctv_user, make_event, make_application, auth_headers
    ):
        ctv_user.ctv_profile.trust_score = 5
        db_session.commit()
        event = make_event(btc_user)
        application = make_application(event, ctv_user, status="APPROVED", assigned_role="MC")

        resp = client.post(f"/api/applications/{application.id}/complete", headers=auth_headers(btc_user))

        assert resp.status_code == 200
        assert resp.json()["data"]["status"] == "COMPLETED"
        profile = ctv_user.ctv_profile
        db_session.refresh(profile)
        assert profile.trust_score == 6
        assert profile.joined_events[0]["eventId"] == event.id
        assert profile.joined_events[0]["role"] == "MC"

    def test_trust_score_capped_at_ten(
        self, client, db_session, btc_user, ctv_user, make_event, make_application, auth_headers
    ):
        application = make_application(make_event(btc_user), ctv_user, status="APPROVED")
        client.post(f"/api/applications/{application.id}/complete", headers=auth_headers(btc_user))
        db_session.refresh(ctv_user.ctv_profile)
        assert ctv_user.ctv_profile.trust_score == 10

    def test_complete_requires_approved(
        self, client, btc_user, ctv_user, make_event, make_application, auth_headers
    ):
        application = make_application(make_event(btc_user), ctv_user)
        resp = client.post(f"/api/applications/{application.id}/complete", headers=auth_headers(btc_user))
        assert resp.status_code == 400
        assert resp.json()["message"] == "Only approved applications can be marked as completed"

    def test_violation_penalizes_and_records_no_show(
        self, client, db_session, btc_user, ctv_user, make_event, make_application, auth_headers
    ):
        event = make_event(btc_user)
        application = make_application(event, ctv_user, status="APPROVED")

        resp = client.post(
            f"/api/applications/{application.id}/violation", json={}, headers=auth_headers(btc_user)
        )

        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["status"] == "NO_SHOW"
        assert data["notes"] == "No-show / Violation reported by Organizer"
        profile = ctv_user.ctv_profile
        db_session.refresh(profile)
        assert profile.trust_score == 8
        assert profile.joined_events[-1]["role"] == "No-show"
        assert db_session.query(Notification).filter(Notification.type == "VIOLATION").count() == 1

    def test_violation_requires_approved(
        self, client, btc_user, ctv_user, make_event, make_application, auth_headers
    ):
        application = make_application(make_event(btc_user), ctv_user, status="COMPLETED")
        resp = client.post(
            f"/api/applications/{application.id}/violation",
            json={"reason": "Late"},
            headers=auth_headers(btc_user),
        )
        assert resp.status_code == 400
