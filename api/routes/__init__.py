"""
API Routes for the admissions lead engine.
"""

from . import leads, counselors, events

__all__ = ["leads", "counselors", "events"]
