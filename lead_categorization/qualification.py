"""
Qualification view derived from a classification result.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .attributes import AttributeRecord, FormFillerType
from .classifier import Category, classify_as


@dataclass(frozen=True)
class QualificationView:
    """Derived booleans shared by routing and event selection."""
    is_qualified: bool
    is_spam: bool
    # Only set for student-filled forms; analytics only, never used for routing
    would_qualify_as_parent: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_qualified": self.is_qualified,
            "is_spam": self.is_spam,
            "would_qualify_as_parent": self.would_qualify_as_parent,
        }


def qualify(record: AttributeRecord, category: Category) -> QualificationView:
    """
    Build the qualification view for a classified record.

    Args:
        record: Applicant attributes
        category: Category produced by classify() for this record

    Returns:
        QualificationView
    """
    would_qualify = None
    if record.form_filler_type == FormFillerType.STUDENT:
        would_qualify = classify_as(record, FormFillerType.PARENT).is_qualified

    return QualificationView(
        is_qualified=category.is_qualified,
        is_spam=record.has_spam_score,
        would_qualify_as_parent=would_qualify,
    )
