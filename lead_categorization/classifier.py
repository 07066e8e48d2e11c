"""
Lead Classifier for the admissions lead engine.

Maps an AttributeRecord to exactly one of six lead categories using a fixed,
ordered rule ladder. The first matching rule wins.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, FrozenSet, Optional, Tuple

from .attributes import (
    AttributeRecord,
    FormFillerType,
    Grade,
    ScholarshipRequirement,
    TargetGeography,
)

logger = logging.getLogger(__name__)


class Category(str, Enum):
    """Lead categories."""
    BCH = "bch"              # Highest-priority qualified lead
    LUM_L1 = "lum-l1"        # Luminaire level 1
    LUM_L2 = "lum-l2"        # Luminaire level 2
    NURTURE = "nurture"      # Retained for follow-up
    MASTERS = "masters"      # Masters applicants
    DROP = "drop"            # Grade 7 or below

    @property
    def is_qualified(self) -> bool:
        return self in QUALIFIED_CATEGORIES

    @property
    def event_prefix(self) -> str:
        """Category as used inside tracking event names (lum-l1 -> lum_l1)."""
        return self.value.replace("-", "_")


QUALIFIED_CATEGORIES: FrozenSet[Category] = frozenset(
    {Category.BCH, Category.LUM_L1, Category.LUM_L2}
)

FALLBACK_CATEGORY = Category.NURTURE

JUNIOR_GRADES = frozenset({Grade.GRADE_8, Grade.GRADE_9, Grade.GRADE_10})
SENIOR_GRADES = frozenset({Grade.GRADE_11, Grade.GRADE_12})
AID_NOT_FULL = frozenset({ScholarshipRequirement.PARTIAL, ScholarshipRequirement.OPTIONAL})
NON_US_GEOGRAPHIES = frozenset(
    {TargetGeography.UK, TargetGeography.REST_OF_WORLD, TargetGeography.NEED_GUIDANCE}
)


@dataclass(frozen=True)
class Rule:
    """A single rung of the classification ladder."""
    name: str
    predicate: Callable[[AttributeRecord], bool]
    category: Category

    def matches(self, record: AttributeRecord) -> bool:
        return self.predicate(record)


def _targets_non_us(record: AttributeRecord) -> bool:
    return bool(record.target_geographies & NON_US_GEOGRAPHIES)


def _parent(predicate: Callable[[AttributeRecord], bool]) -> Callable[[AttributeRecord], bool]:
    """Restrict a predicate to parent-filled forms."""
    return lambda r: r.form_filler_type == FormFillerType.PARENT and predicate(r)


RULES: Tuple[Rule, ...] = (
    # Tier 1 - global overrides
    Rule("student_form", lambda r: r.form_filler_type == FormFillerType.STUDENT, Category.NURTURE),
    Rule("spam_score", lambda r: r.has_spam_score, Category.NURTURE),
    Rule(
        "full_scholarship",
        lambda r: r.scholarship_requirement == ScholarshipRequirement.FULL,
        Category.NURTURE,
    ),
    Rule("grade_7_or_below", lambda r: r.current_grade == Grade.GRADE_7_OR_BELOW, Category.DROP),
    Rule("masters", lambda r: r.current_grade == Grade.MASTERS, Category.MASTERS),

    # Tier 2a - Indian curricula, grades 8-10, partial aid
    Rule(
        "indian_junior_partial",
        _parent(lambda r: r.has_indian_curriculum
                and r.current_grade in JUNIOR_GRADES
                and r.scholarship_requirement == ScholarshipRequirement.PARTIAL),
        Category.NURTURE,
    ),

    # Tier 2b - BCH
    Rule(
        "bch_junior",
        _parent(lambda r: r.current_grade in JUNIOR_GRADES
                and r.scholarship_requirement in AID_NOT_FULL),
        Category.BCH,
    ),
    Rule(
        "bch_indian_senior",
        _parent(lambda r: r.has_indian_curriculum
                and r.current_grade in SENIOR_GRADES
                and r.scholarship_requirement in AID_NOT_FULL),
        Category.BCH,
    ),
    Rule(
        "bch_grade_11_us",
        _parent(lambda r: r.current_grade == Grade.GRADE_11
                and r.scholarship_requirement in AID_NOT_FULL
                and TargetGeography.US in r.target_geographies),
        Category.BCH,
    ),

    # Tier 2c - Luminaire L1
    Rule(
        "lum_l1_grade_11_non_us",
        _parent(lambda r: r.current_grade == Grade.GRADE_11
                and r.scholarship_requirement == ScholarshipRequirement.OPTIONAL
                and _targets_non_us(r)),
        Category.LUM_L1,
    ),
    Rule(
        "lum_l1_grade_12",
        _parent(lambda r: r.current_grade == Grade.GRADE_12
                and r.scholarship_requirement == ScholarshipRequirement.OPTIONAL),
        Category.LUM_L1,
    ),

    # Tier 2d - Luminaire L2
    Rule(
        "lum_l2_grade_11_non_us",
        _parent(lambda r: r.current_grade == Grade.GRADE_11
                and r.scholarship_requirement == ScholarshipRequirement.PARTIAL
                and _targets_non_us(r)),
        Category.LUM_L2,
    ),
    Rule(
        "lum_l2_grade_12",
        _parent(lambda r: r.current_grade == Grade.GRADE_12
                and r.scholarship_requirement == ScholarshipRequirement.PARTIAL),
        Category.LUM_L2,
    ),
)


def matching_rule(record: AttributeRecord, rules: Tuple[Rule, ...] = RULES) -> Optional[Rule]:
    """
    Find the first rule that matches a record.

    Args:
        record: Applicant attributes
        rules: Ordered rule ladder

    Returns:
        The winning rule, or None when the record falls through to the default
    """
    for rule in rules:
        if rule.matches(record):
            return rule
    return None


def classify(record: AttributeRecord, rules: Tuple[Rule, ...] = RULES) -> Category:
    """
    Determine the lead category for a record.

    Never raises: a defective rule or an out-of-range result is logged with
    the full attribute context and degrades to nurture.

    Args:
        record: Applicant attributes
        rules: Ordered rule ladder

    Returns:
        One of the six lead categories
    """
    try:
        rule = matching_rule(record, rules)
        category = rule.category if rule else FALLBACK_CATEGORY
    except Exception as e:
        logger.error(
            f"Lead classification failed, falling back to {FALLBACK_CATEGORY.value}: {e}",
            extra={"attributes": _safe_context(record)},
        )
        return FALLBACK_CATEGORY

    if not isinstance(category, Category):
        logger.error(
            f"Invalid lead category {category!r}, falling back to {FALLBACK_CATEGORY.value}",
            extra={"attributes": _safe_context(record), "rule": rule.name if rule else None},
        )
        return FALLBACK_CATEGORY

    logger.debug(f"Lead classified as {category.value} by rule {rule.name if rule else 'default'}")
    return category


def classify_as(record: AttributeRecord, forced_role: FormFillerType) -> Category:
    """
    Classify a copy of the record as if a different role had filled the form.

    Simulation only: the caller's record is untouched and the result must not
    drive routing.
    """
    return classify(record.with_form_filler(forced_role))


def _safe_context(record: AttributeRecord) -> dict:
    try:
        return record.to_dict()
    except Exception:
        return {"repr": repr(record)}
