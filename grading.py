"""Score normalisation, grading scales and aggregate rules for each school level."""

from __future__ import annotations

from enum import Enum
from typing import Callable, Dict, Iterable, List, NamedTuple, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

MAX_CLASS_SCORE = 30
MAX_EXAM_SCORE = 70


class Mode(str, Enum):
    PRIMARY = "PRIMARY"
    JHS = "JHS"
    SHS = "SHS"

    @classmethod
    def parse(cls, value: Union[str, "Mode"]) -> "Mode":
        if isinstance(value, cls):
            return value
        token = str(value).strip().upper()
        try:
            return cls(token)
        except ValueError:
            choices = ", ".join(m.value for m in cls)
            raise ValueError(f"Unknown mode '{value}'. Expected one of: {choices}") from None


class GradeResult(NamedTuple):
    grade: Union[int, str]
    remark: str
    points: int


# (lower bound, grade, remark, points), highest threshold first.
GradeBand = Tuple[int, Union[int, str], str, int]

PRIMARY_BANDS: Sequence[GradeBand] = (
    (80, 1, "Excellent", 1),
    (70, 2, "Very Good", 2),
    (60, 3, "Good", 3),
    (50, 4, "Credit", 4),
    (45, 5, "Pass", 5),
    (0, 6, "Fail", 6),
)

BECE_BANDS: Sequence[GradeBand] = (
    (80, 1, "Excellent", 1),
    (75, 2, "Very Good", 2),
    (70, 3, "Good", 3),
    (65, 4, "Credit", 4),
    (60, 5, "Average", 5),
    (55, 6, "Pass", 6),
    (40, 7, "Weak Pass", 7),
    (35, 8, "Fail", 8),
    (0, 9, "Fail", 9),
)

WASSCE_BANDS: Sequence[GradeBand] = (
    (80, "A1", "Excellent", 1),
    (75, "B2", "Very Good", 2),
    (70, "B3", "Good", 3),
    (65, "C4", "Credit", 4),
    (60, "C5", "Credit", 5),
    (55, "C6", "Pass", 6),
    (50, "D7", "Weak Pass", 7),
    (45, "E8", "Fail", 8),
    (0, "F9", "Fail", 9),
)

GRADE_BANDS: Dict[Mode, Sequence[GradeBand]] = {
    Mode.PRIMARY: PRIMARY_BANDS,
    Mode.JHS: BECE_BANDS,
    Mode.SHS: WASSCE_BANDS,
}

# Mode -> (required core subjects, best electives counted)
AGGREGATE_RULES: Dict[Mode, Tuple[int, int]] = {
    Mode.JHS: (4, 2),
    Mode.SHS: (3, 3),
}


def normalize_score(value, maximum: int) -> int:
    """Return *value* as an integer clamped to ``[0, maximum]``.

    Blank, textual or otherwise non-numeric cells become 0 instead of raising,
    so a partially filled sheet still produces a report. Halves round up.
    """

    if value is None:
        return 0
    if isinstance(value, str):
        value = value.strip()
    try:
        number = float(pd.to_numeric(value, errors="coerce"))
    except (TypeError, ValueError):
        return 0
    if np.isnan(number):
        return 0
    rounded = np.floor(number + 0.5)
    return int(min(maximum, max(0, rounded)))


def _grade_from_bands(total: int, bands: Sequence[GradeBand]) -> GradeResult:
    for lower, grade, remark, points in bands:
        if total >= lower:
            return GradeResult(grade, remark, points)
    # totals are never negative once normalised; fall back to the lowest band
    _, grade, remark, points = bands[-1]
    return GradeResult(grade, remark, points)


def grade_primary(total: int) -> GradeResult:
    """Primary 1-6 scale."""
    return _grade_from_bands(total, PRIMARY_BANDS)


def grade_bece(total: int) -> GradeResult:
    """JHS / BECE 1-9 scale; the grade number doubles as aggregate points."""
    return _grade_from_bands(total, BECE_BANDS)


def grade_wassce(total: int) -> GradeResult:
    """SHS / WASSCE A1-F9 scale."""
    return _grade_from_bands(total, WASSCE_BANDS)


GRADING_POLICIES: Dict[Mode, Callable[[int], GradeResult]] = {
    Mode.PRIMARY: grade_primary,
    Mode.JHS: grade_bece,
    Mode.SHS: grade_wassce,
}


def grading_policy(mode: Union[str, Mode]) -> Callable[[int], GradeResult]:
    return GRADING_POLICIES[Mode.parse(mode)]


def calculate_aggregate(
    results: Iterable[Tuple[Optional[bool], int]],
    mode: Union[str, Mode],
) -> Optional[int]:
    """Return the aggregate for one student's ``(is_core, points)`` pairs.

    Core subjects always count; the best (lowest-point) electives fill the
    remaining slots. Any subject not explicitly marked core is an elective
    candidate. ``None`` means the aggregate does not apply.
    """

    mode = Mode.parse(mode)
    rule = AGGREGATE_RULES.get(mode)
    if rule is None:
        return None

    required_core, best_electives = rule
    pairs: List[Tuple[Optional[bool], int]] = list(results)
    core_points = [points for is_core, points in pairs if is_core is True]
    elective_points = [points for is_core, points in pairs if is_core is not True]

    if len(core_points) < required_core:
        return None

    # sorted() is stable, so equal points keep subject order
    chosen = sorted(elective_points)[:best_electives]
    return int(sum(core_points) + sum(chosen))


def describe_aggregate_rule(mode: Union[str, Mode]) -> str:
    mode = Mode.parse(mode)
    rule = AGGREGATE_RULES.get(mode)
    if rule is None:
        return "No aggregate is computed."
    required_core, best_electives = rule
    return (
        f"Aggregate = all core subjects (at least {required_core} required) "
        f"+ best {best_electives} electives. Lower is better."
    )
