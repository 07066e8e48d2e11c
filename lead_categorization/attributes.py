"""
Applicant attribute model for the admissions lead engine.

An AttributeRecord is the immutable snapshot of the page-one answers that
every downstream component (classifier, routing, event selection) consumes.
Editing page one produces a new record; records are never mutated.
"""

import logging
from dataclasses import dataclass, field, replace
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Optional, Union

logger = logging.getLogger(__name__)


class FormFillerType(str, Enum):
    """Who filled in the form."""
    PARENT = "parent"
    STUDENT = "student"


class Grade(str, Enum):
    """Student's current grade."""
    GRADE_7_OR_BELOW = "7_below"
    GRADE_8 = "8"
    GRADE_9 = "9"
    GRADE_10 = "10"
    GRADE_11 = "11"
    GRADE_12 = "12"
    MASTERS = "masters"


class Curriculum(str, Enum):
    """School curriculum / board."""
    IB = "IB"
    IGCSE = "IGCSE"
    CBSE = "CBSE"
    ICSE = "ICSE"
    STATE_BOARDS = "State_Boards"
    OTHERS = "Others"


class ScholarshipRequirement(str, Enum):
    """Level of financial aid the family needs."""
    OPTIONAL = "scholarship_optional"
    PARTIAL = "partial_scholarship"
    FULL = "full_scholarship"


class TargetGeography(str, Enum):
    """Study destinations the applicant is considering."""
    US = "US"
    UK = "UK"
    REST_OF_WORLD = "Rest of World"
    NEED_GUIDANCE = "Need Guidance"


class GradeFormat(str, Enum):
    """How the academic score was reported."""
    GPA = "gpa"
    PERCENTAGE = "percentage"


INDIAN_CURRICULA: FrozenSet[Curriculum] = frozenset(
    {Curriculum.CBSE, Curriculum.ICSE, Curriculum.STATE_BOARDS}
)


def _parse_decimal(raw: str) -> Optional[Decimal]:
    try:
        value = Decimal(raw.strip())
    except (InvalidOperation, AttributeError):
        return None
    return value if value.is_finite() else None


class _Score:
    """Shared behaviour of the two score representations."""
    raw: str
    sentinel: str
    minimum: Decimal
    maximum: Decimal

    @property
    def value(self) -> Optional[Decimal]:
        return _parse_decimal(self.raw)

    @property
    def is_valid(self) -> bool:
        """True when the raw entry parses and lies on the scale."""
        value = self.value
        return value is not None and self.minimum <= value <= self.maximum

    @property
    def is_sentinel(self) -> bool:
        # Exact string match: "10.0" is deliberately not the sentinel.
        return self.raw == self.sentinel


@dataclass(frozen=True)
class Gpa(_Score):
    """GPA on a 1-10 scale, kept exactly as entered."""
    raw: str

    kind = GradeFormat.GPA
    sentinel = "10"
    minimum = Decimal("1")
    maximum = Decimal("10")


@dataclass(frozen=True)
class Percentage(_Score):
    """Percentage on a 1-100 scale, kept exactly as entered."""
    raw: str

    kind = GradeFormat.PERCENTAGE
    sentinel = "100"
    minimum = Decimal("1")
    maximum = Decimal("100")


AcademicScore = Union[Gpa, Percentage]


def academic_score_from_form(
    grade_format: Optional[Union[GradeFormat, str]],
    gpa_value: Optional[str] = None,
    percentage_value: Optional[str] = None,
) -> Optional[AcademicScore]:
    """
    Build the academic score sum type from raw form fields.

    The declared grade format wins. Without a usable format, whichever value
    is present is used (GPA first). Blank strings count as absent.

    Args:
        grade_format: Declared format ("gpa" or "percentage"), may be None
        gpa_value: Raw GPA string as typed by the user
        percentage_value: Raw percentage string as typed by the user

    Returns:
        Gpa, Percentage, or None when no score was supplied
    """
    gpa = gpa_value if gpa_value and gpa_value.strip() else None
    percentage = percentage_value if percentage_value and percentage_value.strip() else None

    if grade_format is not None:
        try:
            fmt = GradeFormat(grade_format)
        except ValueError:
            logger.warning(f"Unknown grade format {grade_format!r}, inferring from values")
            fmt = None
        if fmt == GradeFormat.GPA and gpa is not None:
            return Gpa(gpa)
        if fmt == GradeFormat.PERCENTAGE and percentage is not None:
            return Percentage(percentage)

    if gpa is not None:
        return Gpa(gpa)
    if percentage is not None:
        return Percentage(percentage)
    return None


@dataclass(frozen=True)
class ContactDetails:
    """Identity and contact fields, carried through untouched."""
    student_name: Optional[str] = None
    phone_number: Optional[str] = None
    country_code: Optional[str] = None
    school_name: Optional[str] = None
    location: Optional[str] = None
    parent_name: Optional[str] = None
    email: Optional[str] = None

    @property
    def full_phone(self) -> str:
        return (self.country_code or "") + (self.phone_number or "")


@dataclass(frozen=True)
class AttributeRecord:
    """Normalized snapshot of one page-one submission."""

    form_filler_type: FormFillerType
    current_grade: Grade
    curriculum_type: Curriculum
    scholarship_requirement: ScholarshipRequirement
    target_geographies: FrozenSet[TargetGeography] = frozenset()
    academic_score: Optional[AcademicScore] = None
    contact: ContactDetails = field(default_factory=ContactDetails)

    @classmethod
    def build(
        cls,
        form_filler_type: Union[FormFillerType, str],
        current_grade: Union[Grade, str],
        curriculum_type: Union[Curriculum, str],
        scholarship_requirement: Union[ScholarshipRequirement, str],
        target_geographies: Iterable[Union[TargetGeography, str]] = (),
        academic_score: Optional[AcademicScore] = None,
        contact: Optional[ContactDetails] = None,
    ) -> "AttributeRecord":
        """Create a record from enum members or their wire values."""
        return cls(
            form_filler_type=FormFillerType(form_filler_type),
            current_grade=Grade(current_grade),
            curriculum_type=Curriculum(curriculum_type),
            scholarship_requirement=ScholarshipRequirement(scholarship_requirement),
            target_geographies=frozenset(TargetGeography(g) for g in target_geographies),
            academic_score=academic_score,
            contact=contact or ContactDetails(),
        )

    @property
    def is_parent(self) -> bool:
        return self.form_filler_type == FormFillerType.PARENT

    @property
    def is_student(self) -> bool:
        return self.form_filler_type == FormFillerType.STUDENT

    @property
    def has_spam_score(self) -> bool:
        return self.academic_score is not None and self.academic_score.is_sentinel

    @property
    def has_indian_curriculum(self) -> bool:
        return self.curriculum_type in INDIAN_CURRICULA

    def with_form_filler(self, form_filler_type: FormFillerType) -> "AttributeRecord":
        """Return a copy with the form filler overridden."""
        return replace(self, form_filler_type=form_filler_type)

    def to_dict(self) -> Dict[str, Any]:
        """Flat representation used in logs and payloads."""
        score = self.academic_score
        return {
            "form_filler_type": self.form_filler_type.value,
            "current_grade": self.current_grade.value,
            "curriculum_type": self.curriculum_type.value,
            "scholarship_requirement": self.scholarship_requirement.value,
            "target_geographies": sorted(g.value for g in self.target_geographies),
            "grade_format": score.kind.value if score else None,
            "gpa_value": score.raw if isinstance(score, Gpa) else None,
            "percentage_value": score.raw if isinstance(score, Percentage) else None,
        }
