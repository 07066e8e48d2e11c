"""Tests for the lead engine API endpoints."""

import pytest


def test_root_endpoint(client):
    resp = client.get("/")
    assert resp.status_code == 200
    data = resp.json()
    assert data["service"] == "Admissions Lead Engine"
    assert "version" in data


def test_health_endpoint(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] in ("healthy", "degraded")
    # No webhook URL in tests, so nothing is ever queued as undelivered
    assert data["services"]["webhook_failed"] == 0


def test_metrics_endpoint(client):
    client.get("/health")
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "leads_http_requests_total" in resp.text


# ── Page one ──────────────────────────────────────────

class TestEvaluate:
    def test_bch_lead_is_sent_to_booking(self, client, page_one_payload):
        resp = client.post("/api/v1/leads/evaluate", json=page_one_payload)
        assert resp.status_code == 200
        data = resp.json()
        assert data["category"] == "bch"
        assert data["routing"]["outcome"] == "booking_page"
        assert data["routing"]["counselor"]["id"] == "counselor_a"
        assert data["qualification"]["is_qualified"] is True
        assert data["funnel_stage"] == "lead_evaluated"
        assert "apply_qualfd_prnt" in data["events_fired"]
        assert data["session_id"]

    def test_student_submits_immediately(self, client, page_one_payload):
        page_one_payload["form_filler_type"] = "student"
        data = client.post("/api/v1/leads/evaluate", json=page_one_payload).json()
        assert data["category"] == "nurture"
        assert data["routing"]["outcome"] == "immediate_submit_nurture"
        assert data["funnel_stage"] == "form_complete"
        assert data["qualification"]["would_qualify_as_parent"] is True

    def test_spam_percentage(self, client, page_one_payload):
        page_one_payload.update(grade_format="percentage", gpa_value=None, percentage_value="100")
        data = client.post("/api/v1/leads/evaluate", json=page_one_payload).json()
        assert data["category"] == "nurture"
        assert data["qualification"]["is_spam"] is True
        assert data["routing"]["outcome"] == "contact_only_page"

    def test_invalid_grade_rejected(self, client, page_one_payload):
        page_one_payload["current_grade"] = "6"
        resp = client.post("/api/v1/leads/evaluate", json=page_one_payload)
        assert resp.status_code == 422

    @pytest.mark.parametrize("field, value", [
        ("gpa_value", "11"),
        ("gpa_value", "eight"),
        ("percentage_value", "120"),
    ])
    def test_off_scale_score_rejected(self, client, page_one_payload, field, value):
        page_one_payload[field] = value
        resp = client.post("/api/v1/leads/evaluate", json=page_one_payload)
        assert resp.status_code == 422

    def test_blank_score_is_absent(self, client, page_one_payload):
        page_one_payload.update(gpa_value="", percentage_value="")
        resp = client.post("/api/v1/leads/evaluate", json=page_one_payload)
        assert resp.status_code == 200
        assert resp.json()["category"] == "bch"

    def test_drop_fires_only_form_complete(self, client, page_one_payload):
        page_one_payload["current_grade"] = "7_below"
        data = client.post("/api/v1/leads/evaluate", json=page_one_payload).json()
        assert data["events_fired"] == ["apply_form_complete"]

    def test_resubmission_keeps_history(self, client, page_one_payload):
        page_one_payload["session_id"] = "resubmit-1"
        page_one_payload["scholarship_requirement"] = "full_scholarship"
        first = client.post("/api/v1/leads/evaluate", json=page_one_payload).json()
        assert first["category"] == "nurture"

        page_one_payload["scholarship_requirement"] = "scholarship_optional"
        second = client.post("/api/v1/leads/evaluate", json=page_one_payload).json()
        assert second["category"] == "bch"
        assert second["triggered_events"][:len(first["triggered_events"])] == first["triggered_events"]

    def test_stored_row(self, client, page_one_payload):
        page_one_payload["session_id"] = "row-1"
        client.post("/api/v1/leads/evaluate", json=page_one_payload)
        row = client.get("/api/v1/leads/row-1").json()
        assert row["lead_category"] == "bch"
        assert row["phone_number"] == "+919876543210"
        assert row["page_completed"] == 1


# ── Page two ──────────────────────────────────────────

class TestPageTwo:
    def _evaluate(self, client, payload, session_id):
        payload["session_id"] = session_id
        return client.post("/api/v1/leads/evaluate", json=payload).json()

    def test_view_then_book(self, client, page_one_payload, frozen_now):
        self._evaluate(client, page_one_payload, "book-1")

        view = client.post("/api/v1/leads/book-1/page-2-view").json()
        assert view["funnel_stage"] == "page2_view"
        assert "apply_bch_page_2_view" in view["events_fired"]

        resp = client.post("/api/v1/leads/book-1/submit", json={
            "parent_name": "Meera Rao",
            "email": "meera@example.com",
            "selected_date": "2026-10-21",
            "selected_slot": "11 AM",
        })
        assert resp.status_code == 200
        data = resp.json()
        assert data["funnel_stage"] == "counseling_booked"
        assert data["is_counselling_booked"] is True
        assert "apply_bch_form_complete" in data["events_fired"]

        row = client.get("/api/v1/leads/book-1").json()
        assert row["selected_date"] == "Wednesday, October 21, 2026"
        assert row["page_completed"] == 2

    def test_unavailable_slot_conflicts(self, client, page_one_payload, frozen_now):
        self._evaluate(client, page_one_payload, "book-2")
        resp = client.post("/api/v1/leads/book-2/submit", json={
            "parent_name": "Meera Rao",
            "email": "meera@example.com",
            "selected_date": "2026-10-26",
            "selected_slot": "11 AM",
        })
        assert resp.status_code == 409

    @pytest.mark.parametrize("selected_date", ["2026-10-13", "2030-01-01"])
    def test_date_outside_booking_window_conflicts(self, client, page_one_payload, frozen_now, selected_date):
        self._evaluate(client, page_one_payload, f"window-{selected_date}")
        resp = client.post(f"/api/v1/leads/window-{selected_date}/submit", json={
            "parent_name": "Meera Rao",
            "email": "meera@example.com",
            "selected_date": selected_date,
            "selected_slot": "11 AM",
        })
        assert resp.status_code == 409

    def test_contact_only_submission(self, client, page_one_payload, frozen_now):
        page_one_payload["current_grade"] = "masters"
        self._evaluate(client, page_one_payload, "contact-1")
        data = client.post("/api/v1/leads/contact-1/submit", json={
            "parent_name": "Meera Rao",
            "email": "meera@example.com",
        }).json()
        assert data["funnel_stage"] == "form_complete"
        assert data["is_counselling_booked"] is False

    def test_immediate_submit_has_no_page_two(self, client, page_one_payload):
        page_one_payload["current_grade"] = "7_below"
        self._evaluate(client, page_one_payload, "drop-1")
        assert client.post("/api/v1/leads/drop-1/page-2-view").status_code == 409

    def test_invalid_email(self, client, page_one_payload):
        self._evaluate(client, page_one_payload, "email-1")
        resp = client.post("/api/v1/leads/email-1/submit", json={
            "parent_name": "Meera Rao",
            "email": "not-an-email",
        })
        assert resp.status_code == 422

    def test_unknown_session(self, client):
        assert client.post("/api/v1/leads/missing/page-2-view").status_code == 404
        assert client.get("/api/v1/leads/missing").status_code == 404


# ── Counselors ────────────────────────────────────────

class TestCounselors:
    def test_list(self, client):
        ids = [c["id"] for c in client.get("/api/v1/counselors").json()["counselors"]]
        assert ids == ["counselor_a", "counselor_b"]

    def test_closed_day_has_empty_slots(self, client, frozen_now):
        resp = client.get("/api/v1/counselors/counselor_a/slots", params={"date": "2026-10-19"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["slots"] == []
        assert data["display_date"] == "Monday, October 19, 2026"

    def test_slot_labels(self, client, frozen_now):
        data = client.get("/api/v1/counselors/counselor_b/slots", params={"date": "2026-10-21"}).json()
        assert [s["label"] for s in data["slots"]][:4] == ["11 AM", "12 PM", "1 PM", "4 PM"]

    def test_calendar(self, client, frozen_now):
        data = client.get("/api/v1/counselors/counselor_a/calendar").json()
        assert len(data["days"]) == 7
        assert data["days"][0]["date"] == "2026-10-20"
        # The following Monday is closed
        assert data["days"][6]["slots"] == []

    def test_unknown_counselor(self, client):
        assert client.get("/api/v1/counselors/nobody/slots").status_code == 404


# ── Funnel events ─────────────────────────────────────

class TestEvents:
    def test_page_view(self, client):
        data = client.post("/api/v1/events/page-view", json={}).json()
        assert data["events_fired"] == ["apply_page_view"]
        assert data["dispatched"] == ["apply_page_view_stg"]

    @pytest.mark.parametrize("location", ["hero", "header"])
    def test_cta(self, client, location):
        data = client.post(f"/api/v1/events/cta/{location}", json={}).json()
        assert data["events_fired"] == [f"apply_cta_{location}"]

    def test_enrichment_attaches_to_session(self, client, page_one_payload):
        page_one_payload["session_id"] = "enrich-1"
        client.post("/api/v1/leads/evaluate", json=page_one_payload)

        data = client.post("/api/v1/events/enrichment", json={
            "session_id": "enrich-1",
            "phone_captured": True,
        }).json()
        assert data["events_fired"] == ["apply_phone_captured"]

        row = client.get("/api/v1/leads/enrich-1").json()
        assert row["triggered_events"][-1] == "apply_phone_captured"

    def test_unknown_cta_location(self, client):
        assert client.post("/api/v1/events/cta/footer", json={}).status_code == 422
