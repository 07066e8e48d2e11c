"""
Downstream sinks for evaluated leads and fired tracking events.

Persistence, CRM forwarding and pixel transport are collaborators of the
engine: they receive the flat lead row and event names, and their failures
never reach the submission flow.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import httpx

from .events import suffix_event_name
from .pipeline import LeadEvaluation

logger = logging.getLogger(__name__)


@dataclass
class LeadSubmission:
    """What the persistence and webhook sinks receive for one session."""
    session_id: str
    evaluation: LeadEvaluation
    environment: str = "stg"
    page_completed: int = 1
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_record(self) -> Dict[str, Any]:
        """Flat snake_case row matching the form_sessions table."""
        evaluation = self.evaluation
        record = evaluation.record
        contact = record.contact
        page_two = evaluation.page_two.to_dict() if evaluation.page_two else {}

        row = {
            "session_id": self.session_id,
            "environment": self.environment,
            "student_name": contact.student_name,
            "phone_number": contact.full_phone,
            "school_name": contact.school_name,
            "location": contact.location,
            "parent_name": page_two.get("parent_name") or contact.parent_name,
            "parent_email": page_two.get("email") or contact.email,
            "selected_date": page_two.get("selected_date"),
            "selected_slot": page_two.get("selected_slot"),
            "lead_category": evaluation.category.value,
            "is_qualified_lead": evaluation.view.is_qualified,
            "is_counselling_booked": evaluation.is_counselling_booked,
            "routing_outcome": evaluation.decision.outcome.value,
            "funnel_stage": evaluation.funnel_stage.value,
            "page_completed": self.page_completed,
            "triggered_events": evaluation.history.to_list(),
            "created_at": self.created_at.isoformat(),
        }
        row.update(record.to_dict())
        return row


class LeadSink(ABC):
    """Abstract receiver of lead submissions."""

    @abstractmethod
    async def save(self, submission: LeadSubmission) -> bool:
        """Persist or forward a submission; returns False on failure."""
        ...


class InMemoryLeadStore(LeadSink):
    """Session-keyed upsert store; the latest write for a session wins."""

    def __init__(self):
        self._rows: Dict[str, Dict[str, Any]] = {}
        self._evaluations: Dict[str, LeadEvaluation] = {}

    async def save(self, submission: LeadSubmission) -> bool:
        self.put(submission)
        return True

    def put(self, submission: LeadSubmission):
        self._rows[submission.session_id] = submission.to_record()
        self._evaluations[submission.session_id] = submission.evaluation

    def get_row(self, session_id: str) -> Optional[Dict[str, Any]]:
        return self._rows.get(session_id)

    def get_evaluation(self, session_id: str) -> Optional[LeadEvaluation]:
        return self._evaluations.get(session_id)

    def __len__(self) -> int:
        return len(self._rows)


class WebhookLeadSink(LeadSink):
    """
    Forwards lead rows to a CRM webhook.

    Supports:
    - Optional API key header
    - Retry with linear backoff
    - A bounded record of the most recent undelivered submissions
    """

    def __init__(
        self,
        webhook_url: Optional[str],
        api_key: Optional[str] = None,
        max_retries: int = 3,
        retry_delay: float = 2.0,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        max_failed: int = 100,
    ):
        """
        Initialize the webhook sink.

        Args:
            webhook_url: URL for webhook delivery
            api_key: Sent as X-API-Key when configured
            max_retries: Maximum delivery attempts
            retry_delay: Base delay between attempts in seconds
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests inject a mock)
            max_failed: How many undelivered submissions to remember
        """
        self.webhook_url = webhook_url
        self.api_key = api_key
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay
        self.timeout = timeout
        self._transport = transport
        self._failed: deque = deque(maxlen=max_failed)

    async def save(self, submission: LeadSubmission) -> bool:
        if not self.webhook_url:
            logger.warning("No lead webhook URL configured, submission not forwarded")
            return False

        for attempt in range(self.max_retries):
            if await self._post(submission):
                return True
            if attempt < self.max_retries - 1:
                logger.info(
                    f"Retrying lead webhook for session {submission.session_id} "
                    f"(attempt {attempt + 1}/{self.max_retries})"
                )
                await asyncio.sleep(self.retry_delay * (attempt + 1))

        self._failed.append(submission)
        logger.error(f"Lead webhook gave up on session {submission.session_id} after {self.max_retries} attempts")
        return False

    async def _post(self, submission: LeadSubmission) -> bool:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["X-API-Key"] = self.api_key

        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
                response = await client.post(
                    self.webhook_url,
                    json=submission.to_record(),
                    headers=headers,
                )
        except httpx.HTTPError as e:
            logger.error(f"Lead webhook error for session {submission.session_id}: {e}")
            return False

        if response.status_code in (200, 201, 202):
            logger.info(f"Lead forwarded for session {submission.session_id}")
            return True

        logger.error(
            f"Lead webhook failed for session {submission.session_id}: "
            f"status={response.status_code} body={response.text[:500]}"
        )
        return False

    def get_failed(self) -> List[LeadSubmission]:
        return list(self._failed)


class EventTransport(ABC):
    """Abstract dispatcher for tracking events (pixel / conversions API)."""

    @abstractmethod
    def dispatch(self, session_id: str, event_names: Iterable[str]) -> List[str]:
        """Send events; returns the names as actually dispatched."""
        ...


class LoggingEventTransport(EventTransport):
    """Applies the environment suffix and logs each event."""

    def __init__(self, environment_suffix: str = "stg"):
        self.environment_suffix = environment_suffix

    def dispatch(self, session_id: str, event_names: Iterable[str]) -> List[str]:
        dispatched = [suffix_event_name(name, self.environment_suffix) for name in sorted(event_names)]
        for name in dispatched:
            if self.environment_suffix == "stg":
                logger.info(f"Tracking event fired: {name} (session {session_id})")
            else:
                logger.debug(f"Tracking event fired: {name} (session {session_id})")
        return dispatched
