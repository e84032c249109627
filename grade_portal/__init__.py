from grade_portal.bulk_import import (
    ImportReport,
    ImportState,
    ResultImporter,
    StudentImporter,
    SubmissionOutcome,
)
from grade_portal.errors import (
    DomainError,
    DuplicateRecordError,
    GradePortalError,
    ParseError,
    SubmissionError,
)
from grade_portal.grade_engine import (
    academic_standing,
    aggregate_gpa,
    cumulative_gpa,
    grade_of,
    grade_point_of,
    report_card_summary,
    semester_gpa,
)
from grade_portal.models import Grade, ValidationError, WeightedCourseEntry
from grade_portal.reference import ReferenceSnapshot

__all__ = [
    "DomainError",
    "DuplicateRecordError",
    "Grade",
    "GradePortalError",
    "ImportReport",
    "ImportState",
    "ParseError",
    "ReferenceSnapshot",
    "ResultImporter",
    "StudentImporter",
    "SubmissionError",
    "SubmissionOutcome",
    "ValidationError",
    "WeightedCourseEntry",
    "academic_standing",
    "aggregate_gpa",
    "cumulative_gpa",
    "grade_of",
    "grade_point_of",
    "report_card_summary",
    "semester_gpa",
]
