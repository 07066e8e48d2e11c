"""
Service initialization and dependency injection for the lead engine API.

Creates and manages the sinks and transport used by the routes.
"""

import logging
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from config.settings import get_settings, Settings
from lead_categorization.sinks import (
    EventTransport,
    InMemoryLeadStore,
    LoggingEventTransport,
    WebhookLeadSink,
)

logger = logging.getLogger(__name__)


class Services:
    """Container for all application services."""

    def __init__(self):
        self.settings: Optional[Settings] = None
        self.lead_store: Optional[InMemoryLeadStore] = None
        self.webhook_sink: Optional[WebhookLeadSink] = None
        self.event_transport: Optional[EventTransport] = None
        self._tz: Optional[ZoneInfo] = None
        self._initialized = False

    def initialize(self):
        """Initialize all services."""
        if self._initialized:
            return

        self.settings = get_settings()
        logger.info(f"Initializing services for environment: {self.settings.event_suffix}")

        self._tz = ZoneInfo(self.settings.timezone)
        self.lead_store = InMemoryLeadStore()
        self.webhook_sink = WebhookLeadSink(
            webhook_url=self.settings.lead_webhook_url,
            api_key=self.settings.lead_webhook_api_key,
            max_retries=self.settings.webhook_max_retries,
            retry_delay=self.settings.webhook_retry_delay,
        )
        self.event_transport = LoggingEventTransport(self.settings.event_suffix)

        if not self.settings.lead_webhook_url:
            logger.warning("LEAD_WEBHOOK_URL not set, leads are kept in memory only")

        self._initialized = True
        logger.info("All services initialized successfully")

    def now(self) -> datetime:
        """Current time in the business timezone."""
        return datetime.now(self._tz)

    @property
    def is_ready(self) -> bool:
        return self._initialized and self.lead_store is not None

    def health(self) -> dict:
        """Return health status of all services."""
        return {
            "initialized": self._initialized,
            "lead_store": self.lead_store is not None,
            "webhook": bool(self.webhook_sink and self.webhook_sink.webhook_url),
            "webhook_failed": len(self.webhook_sink.get_failed()) if self.webhook_sink else 0,
            "event_transport": self.event_transport is not None,
        }


# Singleton
_services = Services()


def get_services() -> Services:
    """Get the global services instance (initialized on first use)."""
    if not _services._initialized:
        _services.initialize()
    return _services


def initialize_services():
    """Initialize all services (called at startup)."""
    _services.initialize()
