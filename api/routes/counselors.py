"""
Counselor availability API routes.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from ..middleware.metrics import record_empty_slots
from ..services import get_services
from lead_categorization.availability import (
    available_slots,
    booking_calendar,
    format_booking_date,
)
from lead_categorization.routing import COUNSELORS, Counselor, get_counselor

logger = logging.getLogger(__name__)

router = APIRouter()


class SlotList(BaseModel):
    counselor_id: str
    date: str
    display_date: str
    slots: List[Dict[str, Any]]


class CalendarDay(BaseModel):
    date: str
    display_date: str
    slots: List[Dict[str, Any]]


class Calendar(BaseModel):
    counselor: Dict[str, Any]
    days: List[CalendarDay]


def _get_counselor(counselor_id: str) -> Counselor:
    try:
        return get_counselor(counselor_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="Counselor not found")


def _slots_for(counselor: Counselor, day: date) -> List[Dict[str, Any]]:
    slots = available_slots(counselor, day, get_services().now())
    if not slots:
        record_empty_slots(counselor.counselor_id.value)
    return [s.to_dict() for s in slots]


@router.get("/counselors")
async def list_counselors():
    """List counselor profiles."""
    return {"counselors": [c.to_dict() for c in COUNSELORS.values()]}


@router.get("/counselors/{counselor_id}/slots", response_model=SlotList)
async def get_slots(counselor_id: str, day: Optional[date] = Query(None, alias="date")):
    """
    Bookable slots for one date (defaults to today).

    An empty list means nothing is bookable that day, not an error.
    """
    counselor = _get_counselor(counselor_id)
    day = day or get_services().now().date()

    return SlotList(
        counselor_id=counselor.counselor_id.value,
        date=day.isoformat(),
        display_date=format_booking_date(day),
        slots=_slots_for(counselor, day),
    )


@router.get("/counselors/{counselor_id}/calendar", response_model=Calendar)
async def get_calendar(counselor_id: str):
    """The booking window (today onwards) with slots for each day."""
    services = get_services()
    counselor = _get_counselor(counselor_id)
    today = services.now().date()

    days = [
        CalendarDay(
            date=day.isoformat(),
            display_date=format_booking_date(day),
            slots=_slots_for(counselor, day),
        )
        for day in booking_calendar(today, services.settings.booking_window_days)
    ]
    return Calendar(counselor=counselor.to_dict(), days=days)
