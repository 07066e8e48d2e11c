"""
Submission pipeline for the two-page lead form.

Each step takes the previous LeadEvaluation and returns a new one; the fired
event history travels inside the evaluation instead of living in shared state.
"""

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional

from .attributes import AttributeRecord
from .availability import booking_calendar, format_booking_date, is_slot_available
from .classifier import Category, classify
from .events import EventHistory, FormStage, select_events
from .qualification import QualificationView, qualify
from .routing import RoutingDecision, RoutingOutcome, decide_route

logger = logging.getLogger(__name__)


class FunnelStage(str, Enum):
    """
    Furthest point a form session has reached, as persisted.

    FORM_START, PAGE1_IN_PROGRESS, CONTACT_DETAILS_ENTERED and ABANDONED are
    written by the client-side incremental saves; this pipeline never
    produces them but stored rows may carry them.
    """
    FORM_START = "form_start"
    PAGE1_IN_PROGRESS = "page1_in_progress"
    PAGE1_SUBMITTED = "page1_submitted"
    LEAD_EVALUATED = "lead_evaluated"
    PAGE2_VIEW = "page2_view"
    CONTACT_DETAILS_ENTERED = "contact_details_entered"
    COUNSELING_BOOKED = "counseling_booked"
    FORM_COMPLETE = "form_complete"
    ABANDONED = "abandoned"


COMPLETED_STAGES = frozenset({FunnelStage.FORM_COMPLETE, FunnelStage.COUNSELING_BOOKED})


class LeadEngineError(Exception):
    """Base error for submission flow problems."""


class InvalidStageError(LeadEngineError):
    """Raised when a page-two action does not fit the evaluation's route or stage."""


class SlotUnavailableError(LeadEngineError):
    """Raised when a booking names a date/slot the counselor does not offer."""


@dataclass(frozen=True)
class PageTwoDetails:
    """Contact details, plus the booking for qualified leads."""
    parent_name: str
    email: str
    selected_date: Optional[date] = None
    selected_slot: Optional[str] = None

    @property
    def is_counselling_booked(self) -> bool:
        return bool(self.selected_date and self.selected_slot)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "parent_name": self.parent_name,
            "email": self.email,
            "selected_date": format_booking_date(self.selected_date) if self.selected_date else None,
            "selected_slot": self.selected_slot,
        }


@dataclass(frozen=True)
class LeadEvaluation:
    """One classified page-one submission and everything derived from it."""
    record: AttributeRecord
    category: Category
    view: QualificationView
    decision: RoutingDecision
    history: EventHistory
    funnel_stage: FunnelStage
    page_two: Optional[PageTwoDetails] = None

    @property
    def is_complete(self) -> bool:
        return self.funnel_stage in COMPLETED_STAGES

    @property
    def is_counselling_booked(self) -> bool:
        return self.page_two is not None and self.page_two.is_counselling_booked

    def _fire(self, stage: FormStage) -> EventHistory:
        return self.history.extend(select_events(stage, self.record, self.category, self.view))


def evaluate_page_one(
    record: AttributeRecord,
    history: Optional[EventHistory] = None,
    evaluation_delay_seconds: int = 10,
) -> LeadEvaluation:
    """
    Classify a page-one submission and decide what happens next.

    Args:
        record: Fresh attribute snapshot (resubmissions pass a new record)
        history: Events already fired in this session
        evaluation_delay_seconds: Interstitial length before the booking page

    Returns:
        LeadEvaluation; immediate-submit routes are already complete
    """
    category = classify(record)
    view = qualify(record, category)
    decision = decide_route(record, category, view, evaluation_delay_seconds)

    evaluation = LeadEvaluation(
        record=record,
        category=category,
        view=view,
        decision=decision,
        history=history if history is not None else EventHistory(),
        funnel_stage=FunnelStage.PAGE1_SUBMITTED,
    )
    # Drop leads skip page-one tracking and only report form completion
    if decision.outcome != RoutingOutcome.IMMEDIATE_SUBMIT_DROP:
        evaluation = replace(evaluation, history=evaluation._fire(FormStage.PAGE_1_COMPLETE))

    if decision.outcome.is_immediate_submit:
        evaluation = replace(
            evaluation,
            history=evaluation._fire(FormStage.FORM_COMPLETE),
            funnel_stage=FunnelStage.FORM_COMPLETE,
        )
    elif decision.outcome == RoutingOutcome.CONTACT_ONLY_PAGE:
        evaluation = replace(
            evaluation,
            history=evaluation._fire(FormStage.PAGE_2_VIEW),
            funnel_stage=FunnelStage.PAGE2_VIEW,
        )
    else:
        evaluation = replace(evaluation, funnel_stage=FunnelStage.LEAD_EVALUATED)

    logger.info(
        f"Page one evaluated: category={category.value} "
        f"outcome={decision.outcome.value} events={len(evaluation.history)}"
    )
    return evaluation


def view_page_two(evaluation: LeadEvaluation) -> LeadEvaluation:
    """Record that the booking page was shown after the evaluation interstitial."""
    if evaluation.decision.outcome.is_immediate_submit or evaluation.is_complete:
        raise InvalidStageError(
            f"Page two is not shown for {evaluation.decision.outcome.value} "
            f"at stage {evaluation.funnel_stage.value}"
        )
    if evaluation.funnel_stage != FunnelStage.LEAD_EVALUATED:
        return evaluation

    return replace(
        evaluation,
        history=evaluation._fire(FormStage.PAGE_2_VIEW),
        funnel_stage=FunnelStage.PAGE2_VIEW,
    )


def submit_page_two(
    evaluation: LeadEvaluation,
    details: PageTwoDetails,
    now: datetime,
    booking_window_days: int = 7,
) -> LeadEvaluation:
    """
    Accept the contact (and booking) page.

    Args:
        evaluation: Evaluation whose route shows a second page
        details: Parent contact details and optional booking
        now: Current local time, used to re-check the chosen slot
        booking_window_days: Days offered on the booking page, starting today

    Returns:
        Completed LeadEvaluation

    Raises:
        InvalidStageError: The route has no second page or it was already submitted
        SlotUnavailableError: Booking route without a currently offered slot
    """
    outcome = evaluation.decision.outcome
    if outcome.is_immediate_submit or evaluation.is_complete:
        raise InvalidStageError(
            f"Page two cannot be submitted for {outcome.value} "
            f"at stage {evaluation.funnel_stage.value}"
        )

    evaluation = view_page_two(evaluation)

    if outcome == RoutingOutcome.BOOKING_PAGE:
        counselor = evaluation.decision.counselor
        if not details.is_counselling_booked:
            raise SlotUnavailableError("A date and time slot are required to book counselling")
        if details.selected_date not in booking_calendar(now.date(), booking_window_days):
            raise SlotUnavailableError(
                f"{details.selected_date.isoformat()} is outside the {booking_window_days}-day booking window"
            )
        if not is_slot_available(counselor, details.selected_date, details.selected_slot, now):
            raise SlotUnavailableError(
                f"{details.selected_slot} on {details.selected_date.isoformat()} "
                f"is not available for {counselor.counselor_id.value}"
            )
        final_stage = FunnelStage.COUNSELING_BOOKED
    else:
        details = replace(details, selected_date=None, selected_slot=None)
        final_stage = FunnelStage.FORM_COMPLETE

    history = evaluation._fire(FormStage.PAGE_2_SUBMIT)
    evaluation = replace(evaluation, history=history)
    evaluation = replace(
        evaluation,
        history=evaluation._fire(FormStage.FORM_COMPLETE),
        funnel_stage=final_stage,
        page_two=details,
    )

    logger.info(
        f"Page two submitted: category={evaluation.category.value} "
        f"booked={evaluation.is_counselling_booked}"
    )
    return evaluation
