"""
API Module for the admissions lead engine.

FastAPI application with routes for:
- Page-one lead evaluation and page-two submission
- Counselor availability
- Funnel tracking events
"""

from .main import create_app, app

__all__ = ["create_app", "app"]
