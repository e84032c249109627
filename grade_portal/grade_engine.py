import math
from collections import Counter
from decimal import Decimal, ROUND_HALF_UP
from numbers import Real
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np
import pydantic

from grade_portal.errors import DomainError
from grade_portal.models import CourseResult, Grade, WeightedCourseEntry

# ------------------------
# Grading scale
# ------------------------
# (inclusive lower bound, grade, grade point), highest band first
GRADE_SCALE: List[Tuple[int, Grade, float]] = [
    (90, Grade.A, 4.0),
    (80, Grade.AB, 3.5),
    (70, Grade.B, 3.0),
    (65, Grade.BC, 2.5),
    (60, Grade.C, 2.0),
    (55, Grade.CD, 1.5),
    (50, Grade.D, 1.0),
    (45, Grade.E, 0.5),
    (0, Grade.F, 0.0),
]

GRADE_POINTS: Dict[Grade, float] = {grade: point for _, grade, point in GRADE_SCALE}

MIN_SCORE = 0
MAX_SCORE = 100

STANDING_BANDS: List[Tuple[float, str]] = [
    (3.5, "Excellent"),
    (3.0, "Very Good"),
    (2.5, "Good"),
    (2.0, "Fair"),
]
LOWEST_STANDING = "Needs Improvement"

EntryLike = Union[WeightedCourseEntry, Tuple[float, int]]


# ------------------------
# Core logic
# ------------------------
def round_2dp_half_up(x) -> str:
    return str(Decimal(str(x)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def grade_of(score: float) -> Grade:
    """
    Map a score on the 0-100 scale to its letter grade.

    Scores outside 0-100, NaN/inf and non-numeric values raise DomainError
    rather than being clamped, so data-entry mistakes surface to the caller.
    """
    if isinstance(score, bool) or not isinstance(score, Real):
        raise DomainError(f"Score must be a number (got {score!r}).", score)
    if not math.isfinite(score):
        raise DomainError(f"Score must be finite (got {score!r}).", score)
    if score < MIN_SCORE or score > MAX_SCORE:
        raise DomainError(
            f"Score must be between {MIN_SCORE} and {MAX_SCORE} (got {score}).", score
        )

    for lower, grade, _ in GRADE_SCALE:
        if score >= lower:
            return grade
    return Grade.F


def grade_point_of(grade) -> float:
    """Grade point for a grade symbol; unknown symbols count as 0.0."""
    try:
        return GRADE_POINTS[Grade(grade)]
    except ValueError:
        return 0.0


def _as_array(entries: Iterable[EntryLike]) -> np.ndarray:
    # pairs go through the same checks as WeightedCourseEntry; bad ones carry no weight
    rows = []
    for entry in entries:
        if not isinstance(entry, WeightedCourseEntry):
            try:
                grade_point, credit_units = entry
                entry = WeightedCourseEntry(grade_point=grade_point, credit_units=credit_units)
            except (TypeError, ValueError, pydantic.ValidationError):
                continue
        rows.append((entry.grade_point, entry.credit_units))
    if not rows:
        return np.zeros((0, 2), dtype=float)
    return np.array(rows, dtype=float)


def aggregate_gpa(entries: Iterable[EntryLike]) -> str:
    """
    Credit-weighted grade point average, as a fixed two-decimal string.

    entries: WeightedCourseEntry objects or (grade_point, credit_units) pairs.
    Semester GPA and CGPA are both this function over different subsets.
    Pairs that are not valid entries (credits <= 0, points off the 0-4 scale,
    non-numeric values) are skipped. Returns "0.00" when there are no credits.
    """
    gc = _as_array(entries)
    if gc.size == 0:
        return "0.00"

    grade_points = gc[:, 0]
    credits = gc[:, 1]
    total_credits = float(credits.sum())
    if total_credits <= 0:
        return "0.00"

    total_points = float(np.dot(grade_points, credits))
    gpa = Decimal(str(total_points)) / Decimal(str(total_credits))
    return round_2dp_half_up(gpa)


# ------------------------
# Report card
# ------------------------
def _entries(results: Iterable[CourseResult]) -> List[WeightedCourseEntry]:
    return [
        WeightedCourseEntry(grade_point=grade_point_of(r.grade), credit_units=r.credit_units)
        for r in results
        if r.credit_units > 0
    ]


def filter_results(
    results: Sequence[CourseResult],
    session: Optional[str] = None,
    semester: Optional[str] = None,
) -> List[CourseResult]:
    return [
        r
        for r in results
        if (not session or r.session == session) and (not semester or r.semester == semester)
    ]


def semester_gpa(
    results: Sequence[CourseResult],
    session: Optional[str] = None,
    semester: Optional[str] = None,
) -> str:
    return aggregate_gpa(_entries(filter_results(results, session, semester)))


def cumulative_gpa(results: Sequence[CourseResult]) -> str:
    return aggregate_gpa(_entries(results))


def academic_standing(cgpa) -> str:
    value = float(cgpa)
    for threshold, label in STANDING_BANDS:
        if value >= threshold:
            return label
    return LOWEST_STANDING


def available_terms(results: Sequence[CourseResult]) -> Tuple[List[str], List[str]]:
    """Distinct session and semester names, first-seen order, blanks dropped."""
    sessions = list(dict.fromkeys(r.session for r in results if r.session))
    semesters = list(dict.fromkeys(r.semester for r in results if r.semester))
    return sessions, semesters


def average_score(results: Sequence[CourseResult]) -> int:
    if not results:
        return 0
    mean = sum(Decimal(str(r.score)) for r in results) / len(results)
    return int(mean.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def report_card_summary(
    results: Sequence[CourseResult],
    session: Optional[str] = None,
    semester: Optional[str] = None,
):
    """
    results: every stored result for one student.
    session / semester: the term shown on the card; None means all terms.
    """
    term_results = filter_results(results, session, semester)
    cgpa = cumulative_gpa(results)

    return {
        "total_courses": len(results),
        "average_score": average_score(results),
        "grade_distribution": dict(Counter(r.grade for r in results)),
        "term_results": term_results,
        "semester_gpa": aggregate_gpa(_entries(term_results)),
        "cumulative_gpa": cgpa,
        "standing": academic_standing(cgpa),
    }
