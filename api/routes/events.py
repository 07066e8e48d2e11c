"""
Funnel tracking API routes.

Page views, CTA clicks and contact-capture events that fire independently of
lead classification.
"""

import logging
from dataclasses import replace
from typing import FrozenSet, List, Optional

from fastapi import APIRouter
from pydantic import BaseModel

from ..middleware.metrics import record_events
from ..services import get_services
from lead_categorization.events import (
    CtaLocation,
    cta_click_events,
    enrichment_events,
    page_view_events,
)
from lead_categorization.sinks import LeadSubmission

logger = logging.getLogger(__name__)

router = APIRouter()


class TrackingRequest(BaseModel):
    session_id: Optional[str] = None


class EnrichmentRequest(TrackingRequest):
    phone_captured: bool = False
    email_captured: bool = False


class TrackingResponse(BaseModel):
    events_fired: List[str]
    dispatched: List[str]


def _track(session_id: Optional[str], events: FrozenSet[str]) -> TrackingResponse:
    services = get_services()
    names = sorted(events)
    record_events(names)

    # Attach to the session's history when the session already exists
    if session_id:
        evaluation = services.lead_store.get_evaluation(session_id)
        if evaluation is not None:
            services.lead_store.put(LeadSubmission(
                session_id=session_id,
                evaluation=replace(evaluation, history=evaluation.history.extend(names)),
                environment=services.settings.event_suffix,
                page_completed=services.lead_store.get_row(session_id)["page_completed"],
            ))

    dispatched = services.event_transport.dispatch(session_id or "anonymous", names)
    return TrackingResponse(events_fired=names, dispatched=dispatched)


@router.post("/events/page-view", response_model=TrackingResponse)
async def track_page_view(request: TrackingRequest):
    return _track(request.session_id, page_view_events())


@router.post("/events/cta/{location}", response_model=TrackingResponse)
async def track_cta_click(location: CtaLocation, request: TrackingRequest):
    return _track(request.session_id, cta_click_events(location))


@router.post("/events/enrichment", response_model=TrackingResponse)
async def track_enrichment(request: EnrichmentRequest):
    """Fire phone/email capture events as soon as the data is entered."""
    return _track(
        request.session_id,
        enrichment_events(request.phone_captured, request.email_captured),
    )
