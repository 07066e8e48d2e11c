"""Tests for the two-page submission pipeline."""

from datetime import date, datetime

import pytest

from lead_categorization.classifier import Category
from lead_categorization.events import EventHistory
from lead_categorization.pipeline import (
    FunnelStage,
    InvalidStageError,
    PageTwoDetails,
    SlotUnavailableError,
    evaluate_page_one,
    submit_page_two,
    view_page_two,
)
from lead_categorization.routing import RoutingOutcome

NOW = datetime(2026, 10, 20, 8, 30)  # Tuesday
WEDNESDAY = date(2026, 10, 21)
MONDAY = date(2026, 10, 26)


def _contact(**overrides):
    fields = {"parent_name": "Meera Rao", "email": "meera@example.com"}
    fields.update(overrides)
    return PageTwoDetails(**fields)


class TestEvaluatePageOne:
    def test_booking_path_waits_for_interstitial(self, make_record):
        evaluation = evaluate_page_one(make_record())
        assert evaluation.category == Category.BCH
        assert evaluation.decision.outcome == RoutingOutcome.BOOKING_PAGE
        assert evaluation.funnel_stage == FunnelStage.LEAD_EVALUATED
        assert "apply_page_2_view" not in evaluation.history

    def test_contact_page_is_viewed_immediately(self, make_record):
        evaluation = evaluate_page_one(make_record(current_grade="masters"))
        assert evaluation.decision.outcome == RoutingOutcome.CONTACT_ONLY_PAGE
        assert evaluation.funnel_stage == FunnelStage.PAGE2_VIEW
        assert "apply_page_2_view" in evaluation.history

    def test_drop_completes_immediately(self, make_record):
        evaluation = evaluate_page_one(make_record(current_grade="7_below"))
        assert evaluation.is_complete
        assert evaluation.history.to_list() == ["apply_form_complete"]

    def test_student_completes_immediately(self, make_record):
        evaluation = evaluate_page_one(make_record(form_filler_type="student"))
        assert evaluation.decision.outcome == RoutingOutcome.IMMEDIATE_SUBMIT_NURTURE
        assert evaluation.funnel_stage == FunnelStage.FORM_COMPLETE
        assert "apply_qualfd_stdnt_form_complete" in evaluation.history

    def test_resubmission_carries_history(self, make_record):
        first = evaluate_page_one(make_record(scholarship_requirement="full_scholarship"))
        second = evaluate_page_one(make_record(), history=first.history)
        assert second.category == Category.BCH
        assert second.history.names[:len(first.history)] == first.history.names
        assert first.category == Category.NURTURE

    def test_history_starts_empty(self, make_record):
        evaluation = evaluate_page_one(make_record())
        assert isinstance(evaluation.history, EventHistory)
        assert "apply_page_1_continue" in evaluation.history


class TestPageTwo:
    def test_booking_flow(self, make_record):
        evaluation = view_page_two(evaluate_page_one(make_record()))
        assert evaluation.funnel_stage == FunnelStage.PAGE2_VIEW
        assert "apply_bch_page_2_view" in evaluation.history

        done = submit_page_two(
            evaluation, _contact(selected_date=WEDNESDAY, selected_slot="11 AM"), NOW
        )
        assert done.funnel_stage == FunnelStage.COUNSELING_BOOKED
        assert done.is_counselling_booked
        assert "apply_bch_form_complete" in done.history
        assert "apply_qualfd_prnt_page_2_submit" in done.history

    def test_view_is_idempotent(self, make_record):
        viewed = view_page_two(evaluate_page_one(make_record()))
        assert view_page_two(viewed) == viewed

    def test_submit_without_view_fires_view_first(self, make_record):
        done = submit_page_two(
            evaluate_page_one(make_record()),
            _contact(selected_date=WEDNESDAY, selected_slot="12 PM"),
            NOW,
        )
        names = done.history.to_list()
        assert names.index("apply_page_2_view") < names.index("apply_page_2_submit")

    def test_booking_requires_a_slot(self, make_record):
        with pytest.raises(SlotUnavailableError):
            submit_page_two(evaluate_page_one(make_record()), _contact(), NOW)

    def test_booking_rejects_past_date(self, make_record):
        last_week = date(2026, 10, 13)  # a Tuesday, counselor A works
        with pytest.raises(SlotUnavailableError):
            submit_page_two(
                evaluate_page_one(make_record()),
                _contact(selected_date=last_week, selected_slot="11 AM"),
                NOW,
            )

    def test_booking_rejects_date_beyond_window(self, make_record):
        with pytest.raises(SlotUnavailableError):
            submit_page_two(
                evaluate_page_one(make_record()),
                _contact(selected_date=date(2030, 1, 1), selected_slot="11 AM"),
                NOW,
            )

    def test_booking_window_length(self, make_record):
        evaluation = evaluate_page_one(make_record())
        details = _contact(selected_date=WEDNESDAY, selected_slot="11 AM")
        with pytest.raises(SlotUnavailableError):
            submit_page_two(evaluation, details, NOW, booking_window_days=1)
        done = submit_page_two(evaluation, details, NOW, booking_window_days=2)
        assert done.is_counselling_booked

    def test_booking_rejects_closed_day(self, make_record):
        # Counselor A does not work Mondays
        with pytest.raises(SlotUnavailableError):
            submit_page_two(
                evaluate_page_one(make_record()),
                _contact(selected_date=MONDAY, selected_slot="11 AM"),
                NOW,
            )

    def test_contact_page_drops_booking_fields(self, make_record):
        evaluation = evaluate_page_one(make_record(current_grade="masters"))
        done = submit_page_two(
            evaluation, _contact(selected_date=WEDNESDAY, selected_slot="11 AM"), NOW
        )
        assert done.funnel_stage == FunnelStage.FORM_COMPLETE
        assert not done.is_counselling_booked
        assert done.page_two.selected_slot is None

    def test_immediate_submit_has_no_page_two(self, make_record):
        evaluation = evaluate_page_one(make_record(current_grade="7_below"))
        with pytest.raises(InvalidStageError):
            view_page_two(evaluation)
        with pytest.raises(InvalidStageError):
            submit_page_two(evaluation, _contact(), NOW)

    def test_cannot_submit_twice(self, make_record):
        evaluation = evaluate_page_one(make_record(current_grade="masters"))
        done = submit_page_two(evaluation, _contact(), NOW)
        with pytest.raises(InvalidStageError):
            submit_page_two(done, _contact(), NOW)


class TestFunnelStages:
    def test_stages_reached_by_the_pipeline(self, make_record):
        booking = evaluate_page_one(make_record())
        viewed = view_page_two(booking)
        booked = submit_page_two(viewed, _contact(selected_date=WEDNESDAY, selected_slot="11 AM"), NOW)
        contact = evaluate_page_one(make_record(current_grade="masters"))
        dropped = evaluate_page_one(make_record(current_grade="7_below"))

        reached = {e.funnel_stage for e in (booking, viewed, booked, contact, dropped)}
        assert reached == {
            FunnelStage.LEAD_EVALUATED,
            FunnelStage.PAGE2_VIEW,
            FunnelStage.COUNSELING_BOOKED,
            FunnelStage.FORM_COMPLETE,
        }
