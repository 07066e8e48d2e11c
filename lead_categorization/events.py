"""
Tracking event selection for the admissions lead engine.

Walks the same category / role / spam signals as the classifier to decide
which named tracking events fire at each funnel stage. Selection is pure;
dispatching (and the environment suffix) belongs to the transport.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Iterable, List, Tuple

from .attributes import AttributeRecord, FormFillerType
from .classifier import Category
from .qualification import QualificationView

logger = logging.getLogger(__name__)

EVENT_PREFIX = "apply"


class FormStage(str, Enum):
    """Funnel stages at which progression events fire."""
    PAGE_1_COMPLETE = "page_1_complete"
    PAGE_2_VIEW = "page_2_view"
    PAGE_2_SUBMIT = "page_2_submit"
    FORM_COMPLETE = "form_complete"

    @property
    def event_suffix(self) -> str:
        return _STAGE_SUFFIXES[self]


_STAGE_SUFFIXES = {
    FormStage.PAGE_1_COMPLETE: "page_1_continue",
    FormStage.PAGE_2_VIEW: "page_2_view",
    FormStage.PAGE_2_SUBMIT: "page_2_submit",
    FormStage.FORM_COMPLETE: "form_complete",
}

_ROLE_TAGS = {
    FormFillerType.PARENT: "prnt",
    FormFillerType.STUDENT: "stdnt",
}

# Role events carry the historical names used by the ad account
_ROLE_EVENTS = {
    FormFillerType.PARENT: "apply_prnt_event",
    FormFillerType.STUDENT: "apply_stdnt",
}


class CtaLocation(str, Enum):
    HERO = "hero"
    HEADER = "header"


def primary_classification_event(record: AttributeRecord, view: QualificationView) -> str:
    """
    Pick the single role x {spam, qualified, disqualified} event.

    Students count as qualified when they would qualify had a parent filled
    the form.
    """
    role = _ROLE_TAGS[record.form_filler_type]
    if view.is_spam:
        outcome = "spam"
    elif _qualifies_for_role(record, view):
        outcome = "qualfd"
    else:
        outcome = "disqualfd"
    return f"{EVENT_PREFIX}_{outcome}_{role}"


def _qualifies_for_role(record: AttributeRecord, view: QualificationView) -> bool:
    if record.form_filler_type == FormFillerType.PARENT:
        return view.is_qualified
    return bool(view.would_qualify_as_parent)


def select_events(
    stage: FormStage,
    record: AttributeRecord,
    category: Category,
    view: QualificationView,
) -> FrozenSet[str]:
    """
    Select the tracking events for one funnel stage.

    Args:
        stage: Funnel stage being reached
        record: Applicant attributes
        category: Category from classify()
        view: Qualification view for the same record

    Returns:
        Set of unsuffixed event names
    """
    suffix = stage.event_suffix
    events = {f"{EVENT_PREFIX}_{suffix}"}

    if stage == FormStage.PAGE_1_COMPLETE:
        events.add(_ROLE_EVENTS[record.form_filler_type])
        events.add(primary_classification_event(record, view))

    if category.is_qualified:
        events.add(f"{EVENT_PREFIX}_{category.event_prefix}_{suffix}")

    if _qualifies_for_role(record, view):
        role = _ROLE_TAGS[record.form_filler_type]
        events.add(f"{EVENT_PREFIX}_qualfd_{role}_{suffix}")

    return frozenset(events)


def page_view_events() -> FrozenSet[str]:
    return frozenset({f"{EVENT_PREFIX}_page_view"})


def cta_click_events(location: CtaLocation) -> FrozenSet[str]:
    return frozenset({f"{EVENT_PREFIX}_cta_{CtaLocation(location).value}"})


def enrichment_events(phone_captured: bool = False, email_captured: bool = False) -> FrozenSet[str]:
    """Events fired as soon as contact data becomes available."""
    events = set()
    if phone_captured:
        events.add(f"{EVENT_PREFIX}_phone_captured")
    if email_captured:
        events.add(f"{EVENT_PREFIX}_email_captured")
    return frozenset(events)


@dataclass(frozen=True)
class EventHistory:
    """
    Append-only record of the events fired in one form session.

    Each extend() returns a new history; this one is left untouched.
    """
    names: Tuple[str, ...] = ()

    def extend(self, events: Iterable[str]) -> "EventHistory":
        # Sorted within a stage so persisted history is deterministic
        return EventHistory(self.names + tuple(sorted(events)))

    def __contains__(self, name: object) -> bool:
        return name in self.names

    def __len__(self) -> int:
        return len(self.names)

    def to_list(self) -> List[str]:
        return list(self.names)


def suffix_event_name(name: str, environment_suffix: str) -> str:
    """Apply the transport's environment suffix (apply_page_view -> apply_page_view_stg)."""
    return f"{name}_{environment_suffix}"
