"""Shared fixtures for lead engine tests."""

import os
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

# Ensure we use test settings
os.environ.setdefault("ENVIRONMENT", "stg")
os.environ.setdefault("LEAD_WEBHOOK_URL", "")

from lead_categorization.attributes import AttributeRecord, ContactDetails, Gpa


# 2026-10-20 is a Tuesday; 2026-10-19 a Monday; 2026-10-18 a Sunday
TUESDAY_MORNING = datetime(2026, 10, 20, 8, 30)


@pytest.fixture
def client():
    """Create a FastAPI test client."""
    from api.main import app
    return TestClient(app)


@pytest.fixture
def frozen_now(monkeypatch):
    """Pin the API clock to Tuesday 08:30."""
    from api.services import get_services
    services = get_services()
    monkeypatch.setattr(services, "now", lambda: TUESDAY_MORNING)
    return TUESDAY_MORNING


@pytest.fixture
def make_record():
    """Factory for attribute records with parent / grade 9 / IB defaults."""
    def _make(**overrides):
        fields = {
            "form_filler_type": "parent",
            "current_grade": "9",
            "curriculum_type": "IB",
            "scholarship_requirement": "scholarship_optional",
            "target_geographies": ["US"],
            "academic_score": Gpa("8.5"),
            "contact": ContactDetails(student_name="Asha Rao", phone_number="9876543210", country_code="+91"),
        }
        fields.update(overrides)
        return AttributeRecord.build(**fields)
    return _make


@pytest.fixture
def page_one_payload():
    """Page-one JSON for a BCH lead."""
    return {
        "form_filler_type": "parent",
        "current_grade": "9",
        "curriculum_type": "IB",
        "scholarship_requirement": "scholarship_optional",
        "target_geographies": ["US"],
        "grade_format": "gpa",
        "gpa_value": "8.5",
        "student_name": "Asha Rao",
        "school_name": "Greenwood High",
        "location": "Bengaluru",
        "phone_number": "9876543210",
    }
