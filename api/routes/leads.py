"""
Lead form API routes.

Page one is classified and routed immediately; page two (contact details and,
for qualified leads, a counselling booking) completes the session.
"""

import logging
import uuid
from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, BackgroundTasks, HTTPException
from pydantic import BaseModel, Field, field_validator

from ..middleware.metrics import record_evaluation, record_events
from ..services import Services, get_services
from lead_categorization.attributes import (
    AttributeRecord,
    ContactDetails,
    Curriculum,
    FormFillerType,
    Grade,
    Gpa,
    GradeFormat,
    Percentage,
    ScholarshipRequirement,
    TargetGeography,
    academic_score_from_form,
)
from lead_categorization.events import EventHistory
from lead_categorization.pipeline import (
    LeadEngineError,
    LeadEvaluation,
    PageTwoDetails,
    evaluate_page_one,
    submit_page_two,
    view_page_two,
)
from lead_categorization.sinks import LeadSubmission

logger = logging.getLogger(__name__)

router = APIRouter()


# ── Request / Response Models ─────────────────────────────────────

class PageOneRequest(BaseModel):
    """Initial lead capture (page one)."""
    session_id: Optional[str] = None
    form_filler_type: FormFillerType
    current_grade: Grade
    curriculum_type: Curriculum
    scholarship_requirement: ScholarshipRequirement
    target_geographies: List[TargetGeography] = []
    grade_format: Optional[GradeFormat] = None
    gpa_value: Optional[str] = Field(default=None, max_length=10)
    percentage_value: Optional[str] = Field(default=None, max_length=10)
    student_name: Optional[str] = Field(default=None, max_length=200)
    school_name: Optional[str] = Field(default=None, max_length=200)
    location: Optional[str] = Field(default=None, max_length=200)
    phone_number: Optional[str] = Field(default=None, max_length=20)
    country_code: str = "+91"

    @field_validator("gpa_value")
    @classmethod
    def validate_gpa(cls, v):
        """GPA must be a number on the 1-10 scale."""
        if v and v.strip() and not Gpa(v).is_valid:
            raise ValueError("gpa_value must be a number between 1 and 10")
        return v

    @field_validator("percentage_value")
    @classmethod
    def validate_percentage(cls, v):
        """Percentage must be a number on the 1-100 scale."""
        if v and v.strip() and not Percentage(v).is_valid:
            raise ValueError("percentage_value must be a number between 1 and 100")
        return v

    def to_record(self) -> AttributeRecord:
        return AttributeRecord.build(
            form_filler_type=self.form_filler_type,
            current_grade=self.current_grade,
            curriculum_type=self.curriculum_type,
            scholarship_requirement=self.scholarship_requirement,
            target_geographies=self.target_geographies,
            academic_score=academic_score_from_form(
                self.grade_format, self.gpa_value, self.percentage_value
            ),
            contact=ContactDetails(
                student_name=self.student_name,
                phone_number=self.phone_number,
                country_code=self.country_code,
                school_name=self.school_name,
                location=self.location,
            ),
        )


class PageTwoRequest(BaseModel):
    """Contact details, plus a booking for qualified leads."""
    parent_name: str = Field(..., min_length=2, max_length=200)
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    selected_date: Optional[date] = None
    selected_slot: Optional[str] = None


class EvaluationResponse(BaseModel):
    session_id: str
    category: str
    qualification: Dict[str, Any]
    routing: Dict[str, Any]
    funnel_stage: str
    is_counselling_booked: bool
    events_fired: List[str]
    triggered_events: List[str]


# ── Helpers ───────────────────────────────────────────────────────

def _to_response(session_id: str, evaluation: LeadEvaluation, fired: List[str]) -> EvaluationResponse:
    return EvaluationResponse(
        session_id=session_id,
        category=evaluation.category.value,
        qualification=evaluation.view.to_dict(),
        routing=evaluation.decision.to_dict(),
        funnel_stage=evaluation.funnel_stage.value,
        is_counselling_booked=evaluation.is_counselling_booked,
        events_fired=fired,
        triggered_events=evaluation.history.to_list(),
    )


def _new_events(before: EventHistory, after: EventHistory) -> List[str]:
    return list(after.names[len(before):])


def _get_evaluation(services: Services, session_id: str) -> LeadEvaluation:
    evaluation = services.lead_store.get_evaluation(session_id)
    if evaluation is None:
        raise HTTPException(status_code=404, detail="Lead session not found")
    return evaluation


def _persist(
    services: Services,
    background_tasks: BackgroundTasks,
    session_id: str,
    evaluation: LeadEvaluation,
    fired: List[str],
    page: int,
):
    submission = LeadSubmission(
        session_id=session_id,
        evaluation=evaluation,
        environment=services.settings.event_suffix,
        page_completed=page,
    )
    services.lead_store.put(submission)
    record_events(fired)
    background_tasks.add_task(services.event_transport.dispatch, session_id, fired)
    background_tasks.add_task(services.webhook_sink.save, submission)


# ── Endpoints ─────────────────────────────────────────────────────

@router.post("/leads/evaluate", response_model=EvaluationResponse)
async def evaluate_lead(request: PageOneRequest, background_tasks: BackgroundTasks):
    """
    Classify a page-one submission.

    Resubmitting with the same session_id re-runs the whole evaluation on the
    new answers; previously fired events are kept in the history.
    """
    services = get_services()
    session_id = request.session_id or str(uuid.uuid4())

    previous = services.lead_store.get_evaluation(session_id)
    history = previous.history if previous else EventHistory()

    evaluation = evaluate_page_one(
        request.to_record(),
        history=history,
        evaluation_delay_seconds=services.settings.evaluation_delay_seconds,
    )
    fired = _new_events(history, evaluation.history)

    record_evaluation(evaluation.category.value, evaluation.decision.outcome.value)
    _persist(services, background_tasks, session_id, evaluation, fired, page=1)

    logger.info(f"Lead {session_id} evaluated as {evaluation.category.value}")
    return _to_response(session_id, evaluation, fired)


@router.post("/leads/{session_id}/page-2-view", response_model=EvaluationResponse)
async def page_two_view(session_id: str, background_tasks: BackgroundTasks):
    """Mark the booking page as shown once the evaluation interstitial ends."""
    services = get_services()
    evaluation = _get_evaluation(services, session_id)

    try:
        updated = view_page_two(evaluation)
    except LeadEngineError as e:
        raise HTTPException(status_code=409, detail=str(e))

    fired = _new_events(evaluation.history, updated.history)
    if fired:
        _persist(services, background_tasks, session_id, updated, fired, page=2)
    return _to_response(session_id, updated, fired)


@router.post("/leads/{session_id}/submit", response_model=EvaluationResponse)
async def submit_lead(session_id: str, request: PageTwoRequest, background_tasks: BackgroundTasks):
    """Submit page two and complete the session."""
    services = get_services()
    evaluation = _get_evaluation(services, session_id)

    details = PageTwoDetails(
        parent_name=request.parent_name,
        email=request.email,
        selected_date=request.selected_date,
        selected_slot=request.selected_slot,
    )

    try:
        updated = submit_page_two(
            evaluation,
            details,
            now=services.now(),
            booking_window_days=services.settings.booking_window_days,
        )
    except LeadEngineError as e:
        raise HTTPException(status_code=409, detail=str(e))

    fired = _new_events(evaluation.history, updated.history)
    _persist(services, background_tasks, session_id, updated, fired, page=2)

    logger.info(f"Lead {session_id} completed (booked={updated.is_counselling_booked})")
    return _to_response(session_id, updated, fired)


@router.get("/leads/{session_id}")
async def get_lead(session_id: str):
    """Get the stored row for a session."""
    row = get_services().lead_store.get_row(session_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Lead session not found")
    return row
