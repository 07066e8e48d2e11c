"""
Lead Categorization Module for the admissions lead engine.

This module provides lead qualification and routing capabilities:
- Lead categorization (BCH, Luminaire L1/L2, nurture, masters, drop)
- Qualification view and parent simulation for student forms
- Page routing and counselor assignment
- Counselor slot availability
- Tracking event selection per funnel stage
"""

from .attributes import (
    AttributeRecord,
    ContactDetails,
    Curriculum,
    FormFillerType,
    Gpa,
    Grade,
    GradeFormat,
    Percentage,
    ScholarshipRequirement,
    TargetGeography,
    academic_score_from_form,
)
from .classifier import Category, QUALIFIED_CATEGORIES, classify, classify_as
from .qualification import QualificationView, qualify
from .routing import Counselor, CounselorId, RoutingDecision, RoutingOutcome, decide_route, select_counselor
from .availability import TimeSlot, available_slots, booking_calendar
from .events import EventHistory, FormStage, select_events
from .pipeline import (
    FunnelStage,
    LeadEvaluation,
    PageTwoDetails,
    evaluate_page_one,
    submit_page_two,
    view_page_two,
)

__all__ = [
    "AttributeRecord",
    "ContactDetails",
    "Curriculum",
    "FormFillerType",
    "Gpa",
    "Grade",
    "GradeFormat",
    "Percentage",
    "ScholarshipRequirement",
    "TargetGeography",
    "academic_score_from_form",
    "Category",
    "QUALIFIED_CATEGORIES",
    "classify",
    "classify_as",
    "QualificationView",
    "qualify",
    "Counselor",
    "CounselorId",
    "RoutingDecision",
    "RoutingOutcome",
    "decide_route",
    "select_counselor",
    "TimeSlot",
    "available_slots",
    "booking_calendar",
    "EventHistory",
    "FormStage",
    "select_events",
    "FunnelStage",
    "LeadEvaluation",
    "PageTwoDetails",
    "evaluate_page_one",
    "submit_page_two",
    "view_page_two",
]
