"""
Routing policy for the admissions lead engine.

Decides which page follows page one and which counselor a qualified lead can
book with. The decision is made once per page-one submission.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union

from .attributes import AttributeRecord, FormFillerType
from .availability import MONDAY, SUNDAY, AvailabilityRules
from .classifier import Category
from .qualification import QualificationView

logger = logging.getLogger(__name__)


class RoutingOutcome(str, Enum):
    """Page shown after page one."""
    IMMEDIATE_SUBMIT_DROP = "immediate_submit_drop"
    IMMEDIATE_SUBMIT_NURTURE = "immediate_submit_nurture"
    BOOKING_PAGE = "booking_page"
    CONTACT_ONLY_PAGE = "contact_only_page"

    @property
    def is_immediate_submit(self) -> bool:
        return self in (
            RoutingOutcome.IMMEDIATE_SUBMIT_DROP,
            RoutingOutcome.IMMEDIATE_SUBMIT_NURTURE,
        )


class CounselorId(str, Enum):
    A = "counselor_a"
    B = "counselor_b"


@dataclass(frozen=True)
class Counselor:
    """Counselor identity shown on the booking page."""
    counselor_id: CounselorId
    name: str
    title: str
    bio: str
    profile_url: str
    availability: AvailabilityRules

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.counselor_id.value,
            "name": self.name,
            "title": self.title,
            "bio": self.bio,
            "profile_url": self.profile_url,
        }


COUNSELORS: Dict[CounselorId, Counselor] = {
    CounselorId.A: Counselor(
        counselor_id=CounselorId.A,
        name="Lead Admissions Counselor",
        title="Managing Partner",
        bio="Two decades in school education and early-stage admissions planning.",
        profile_url="/counselors/counselor-a",
        availability=AvailabilityRules(
            default_hours=frozenset(range(11, 21)),        # Tue-Sat 11 AM - 8 PM
            closed_days=frozenset({MONDAY}),
            hours_by_weekday={SUNDAY: frozenset(range(11, 16))},  # 11 AM - 3 PM
        ),
    ),
    CounselorId.B: Counselor(
        counselor_id=CounselorId.B,
        name="Senior Admissions Counselor",
        title="Managing Partner",
        bio="Former management consultant focused on international undergraduate admissions.",
        profile_url="/counselors/counselor-b",
        availability=AvailabilityRules(
            default_hours=frozenset({11, 12, 13, 16, 17, 18, 19, 20}),
            closed_days=frozenset({SUNDAY}),
        ),
    ),
}


def get_counselor(counselor_id: Union[CounselorId, str]) -> Counselor:
    """Look up a counselor profile; raises ValueError for an unknown id."""
    return COUNSELORS[CounselorId(counselor_id)]


def select_counselor(category: Category) -> Counselor:
    """BCH leads meet counselor A; every other qualified lead meets counselor B."""
    if category == Category.BCH:
        return get_counselor(CounselorId.A)
    return get_counselor(CounselorId.B)


@dataclass(frozen=True)
class RoutingDecision:
    """Where the applicant goes after page one."""
    outcome: RoutingOutcome
    counselor: Optional[Counselor] = None
    interstitial_seconds: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "outcome": self.outcome.value,
            "counselor": self.counselor.to_dict() if self.counselor else None,
            "interstitial_seconds": self.interstitial_seconds,
        }


def decide_route(
    record: AttributeRecord,
    category: Category,
    view: QualificationView,
    evaluation_delay_seconds: int = 10,
) -> RoutingDecision:
    """
    Select the page outcome for a classified record.

    Students always submit immediately, whatever the simulated parent
    qualification says.

    Args:
        record: Applicant attributes
        category: Category from classify()
        view: Qualification view for the same record
        evaluation_delay_seconds: Length of the evaluation interstitial
            shown before the booking page

    Returns:
        RoutingDecision
    """
    if category == Category.DROP:
        decision = RoutingDecision(RoutingOutcome.IMMEDIATE_SUBMIT_DROP)
    elif record.form_filler_type == FormFillerType.STUDENT:
        decision = RoutingDecision(RoutingOutcome.IMMEDIATE_SUBMIT_NURTURE)
    elif view.is_qualified:
        decision = RoutingDecision(
            RoutingOutcome.BOOKING_PAGE,
            counselor=select_counselor(category),
            interstitial_seconds=evaluation_delay_seconds,
        )
    else:
        decision = RoutingDecision(RoutingOutcome.CONTACT_ONLY_PAGE)

    logger.debug(f"Routing {category.value} lead to {decision.outcome.value}")
    return decision
