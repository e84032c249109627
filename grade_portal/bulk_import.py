"""
All-or-nothing bulk import of students and results from delimited text.

A run walks Parsing -> Validating. If any row fails any check the whole
batch is rejected with the complete, row-ordered error list and nothing is
submitted. Otherwise every row is converted to a record and submitted one
at a time; a failing submission is recorded against its row and the
remaining rows still go through.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Generic, List, Optional, Sequence, Tuple, TypeVar, Union

from grade_portal.errors import DomainError, ParseError, SubmissionError
from grade_portal.grade_engine import grade_of
from grade_portal.io_csv import parse_rows
from grade_portal.logging_utils import create_logger
from grade_portal.models import ImportRow, ResultRecord, StudentRecord, ValidationError
from grade_portal.protocols import ReferenceDataProtocol
from grade_portal.reference import ReferenceSnapshot

logger = create_logger("bulk_import")

R = TypeVar("R", StudentRecord, ResultRecord)
NumberedRow = Tuple[int, ImportRow]

ALLOWED_LEVELS = ("100L", "200L", "300L", "400L", "500L")
ALLOWED_STATUSES = ("active", "inactive", "graduated")
ALLOWED_GENDERS = ("male", "female")
DEFAULT_STATUS = "active"

EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")


class ImportState(str, Enum):
    IDLE = "idle"
    PARSING = "parsing"
    VALIDATING = "validating"
    ALL_VALID = "all_valid"
    HAS_ERRORS = "has_errors"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    PARTIAL_FAILURE = "partial_failure"


@dataclass(frozen=True)
class SubmissionOutcome(Generic[R]):
    """What happened to one row during submission."""

    row: int
    record: R
    error: Optional[SubmissionError] = None

    @property
    def is_ok(self) -> bool:
        return self.error is None


@dataclass
class ImportReport(Generic[R]):
    states: List[ImportState] = field(default_factory=lambda: [ImportState.IDLE])
    errors: List[ValidationError] = field(default_factory=list)
    outcomes: List[SubmissionOutcome[R]] = field(default_factory=list)
    total: int = 0

    @property
    def state(self) -> ImportState:
        return self.states[-1]

    @property
    def success_count(self) -> int:
        return sum(1 for o in self.outcomes if o.is_ok)

    @property
    def error_count(self) -> int:
        return sum(1 for o in self.outcomes if not o.is_ok)

    @property
    def is_complete(self) -> bool:
        """True when every row was saved; the caller may close the upload dialog."""
        return self.total > 0 and self.success_count == self.total

    def _enter(self, state: ImportState) -> None:
        logger.debug("Import state change", state=state.value)
        self.states.append(state)


def _value(row: ImportRow, name: str) -> str:
    return (row.get(name) or "").strip()


def _optional(row: ImportRow, name: str) -> Optional[str]:
    return _value(row, name) or None


class BulkImporter(Generic[R]):
    """
    Shared Parsing/Validating/Submitting pipeline.

    Subclasses name their identity fields and supply ``validate_row`` and
    ``to_record``. ``reference`` may be a ready snapshot or a live source;
    a live source is snapshotted at the start of every run.
    """

    entity = "record"
    identity_fields: Tuple[str, ...] = ()

    def __init__(
        self,
        reference: Union[ReferenceSnapshot, ReferenceDataProtocol],
        submit: Callable[[R], Any],
        delimiter: str = ",",
    ) -> None:
        self._reference = reference
        self._submit = submit
        self.delimiter = delimiter

    # ---- hooks ----
    def validate_row(
        self, row: ImportRow, row_number: int, reference: ReferenceSnapshot
    ) -> List[ValidationError]:
        raise NotImplementedError

    def to_record(self, row: ImportRow, reference: ReferenceSnapshot) -> R:
        raise NotImplementedError

    # ---- phases ----
    def snapshot(self) -> ReferenceSnapshot:
        if isinstance(self._reference, ReferenceSnapshot):
            return self._reference
        return ReferenceSnapshot.take(self._reference)

    def parse(self, text: str) -> List[NumberedRow]:
        """
        Rows numbered 1.. in file order (header and blank lines excluded).

        Rows whose identity fields are all blank are dropped here without an
        error; the numbering of the remaining rows is unaffected.
        """
        rows = parse_rows(text, self.delimiter)
        numbered = [
            (number, row)
            for number, row in enumerate(rows, start=1)
            if any(_value(row, name) for name in self.identity_fields)
        ]
        dropped = len(rows) - len(numbered)
        if dropped:
            logger.info("Dropped rows without identity fields", entity=self.entity, dropped=dropped)
        if not numbered:
            raise ParseError(f"The file doesn't contain any valid {self.entity} data.")
        return numbered

    def validate(
        self, rows: Sequence[NumberedRow], reference: ReferenceSnapshot
    ) -> List[ValidationError]:
        errors: List[ValidationError] = []
        for number, row in rows:
            errors.extend(self.validate_row(row, number, reference))
        # stable: ties keep the per-row check order
        return sorted(errors, key=lambda e: e.row)

    def submit_all(
        self, rows: Sequence[NumberedRow], reference: ReferenceSnapshot
    ) -> List[SubmissionOutcome[R]]:
        outcomes: List[SubmissionOutcome[R]] = []
        for number, row in rows:
            record = self.to_record(row, reference)
            try:
                self._submit(record)
            except Exception as e:
                error = SubmissionError(number, e)
                logger.error(
                    "Row submission failed",
                    entity=self.entity,
                    row=number,
                    error=str(e),
                    exc_info=True,
                )
                outcomes.append(SubmissionOutcome(number, record, error))
            else:
                outcomes.append(SubmissionOutcome(number, record))
        return outcomes

    def run(self, text: str) -> ImportReport[R]:
        """
        Parse, validate and, if every row is valid, submit.

        Raises ParseError for an empty or unreadable file. Validation failures
        come back on the report with state HAS_ERRORS and nothing submitted.
        """
        report: ImportReport[R] = ImportReport()
        reference = self.snapshot()

        report._enter(ImportState.PARSING)
        try:
            rows = self.parse(text)
        except ParseError as e:
            logger.warning("Import file rejected", entity=self.entity, reason=e.message)
            raise
        report.total = len(rows)

        report._enter(ImportState.VALIDATING)
        report.errors = self.validate(rows, reference)
        if report.errors:
            report._enter(ImportState.HAS_ERRORS)
            logger.warning(
                "Import rejected by validation",
                entity=self.entity,
                rows=len(rows),
                error_count=len(report.errors),
            )
            return report
        report._enter(ImportState.ALL_VALID)

        report._enter(ImportState.SUBMITTING)
        report.outcomes = self.submit_all(rows, reference)
        report._enter(
            ImportState.SUCCESS if report.is_complete else ImportState.PARTIAL_FAILURE
        )
        logger.info(
            "Import finished",
            entity=self.entity,
            success_count=report.success_count,
            error_count=report.error_count,
        )
        return report


class StudentImporter(BulkImporter[StudentRecord]):
    entity = "student"
    identity_fields = ("matric_number", "first_name", "last_name", "email")

    def validate_row(
        self, row: ImportRow, row_number: int, reference: ReferenceSnapshot
    ) -> List[ValidationError]:
        errors: List[ValidationError] = []

        def fail(name: str, message: str) -> None:
            errors.append(ValidationError(row=row_number, field=name, message=message))

        if not _value(row, "matric_number"):
            fail("matric_number", "Matric number is required")
        if not _value(row, "first_name"):
            fail("first_name", "First name is required")
        if not _value(row, "last_name"):
            fail("last_name", "Last name is required")

        email = _value(row, "email")
        if not email:
            fail("email", "Email is required")
        elif not EMAIL_PATTERN.fullmatch(email):
            fail("email", "Invalid email format")

        level = _value(row, "level")
        if not level:
            fail("level", "Level is required")
        elif level not in ALLOWED_LEVELS:
            fail("level", "Level must be 100L, 200L, 300L, 400L, or 500L")

        status = _value(row, "status")
        if status and status not in ALLOWED_STATUSES:
            fail("status", "Status must be active, inactive, or graduated")

        gender = _value(row, "gender")
        if gender and gender.lower() not in ALLOWED_GENDERS:
            fail("gender", "Gender must be male or female")

        department_code = _value(row, "department_code")
        if department_code and reference.department_by_code(department_code) is None:
            fail("department_code", f"Department code '{department_code}' not found")

        session_name = _value(row, "session_name")
        if session_name and reference.session_by_name(session_name) is None:
            fail("session_name", f"Session '{session_name}' not found")

        return errors

    def to_record(self, row: ImportRow, reference: ReferenceSnapshot) -> StudentRecord:
        department = reference.department_by_code(_value(row, "department_code"))
        session = reference.session_by_name(_value(row, "session_name"))
        gender = _optional(row, "gender")

        return StudentRecord(
            matric_number=_value(row, "matric_number"),
            first_name=_value(row, "first_name"),
            last_name=_value(row, "last_name"),
            email=_value(row, "email"),
            phone=_optional(row, "phone"),
            level=_value(row, "level"),
            status=_value(row, "status") or DEFAULT_STATUS,
            date_of_birth=_optional(row, "date_of_birth"),
            gender=gender.lower() if gender else None,
            address=_optional(row, "address"),
            department_id=department.id if department else None,
            session_id=session.id if session else None,
        )


class ResultImporter(BulkImporter[ResultRecord]):
    """
    Result uploads resolve every reference by exact match. An unresolved
    student, course, semester or session is reported as a ValidationError,
    the same way the student upload reports unknown departments.
    """

    entity = "result"
    identity_fields = ("matric_number", "course_code")

    def validate_row(
        self, row: ImportRow, row_number: int, reference: ReferenceSnapshot
    ) -> List[ValidationError]:
        errors: List[ValidationError] = []

        def fail(name: str, message: str) -> None:
            errors.append(ValidationError(row=row_number, field=name, message=message))

        matric_number = _value(row, "matric_number")
        if not matric_number:
            fail("matric_number", "Matric number is required")
        elif reference.student_by_matric(matric_number) is None:
            fail("matric_number", f"Student with matric number '{matric_number}' not found")

        course_code = _value(row, "course_code")
        if not course_code:
            fail("course_code", "Course code is required")
        elif reference.course_by_code(course_code) is None:
            fail("course_code", f"Course code '{course_code}' not found")

        semester_code = _value(row, "semester_code")
        if not semester_code:
            fail("semester_code", "Semester code is required")
        elif reference.semester_by_code(semester_code) is None:
            fail("semester_code", f"Semester code '{semester_code}' not found")

        session_name = _value(row, "session_name")
        if not session_name:
            fail("session_name", "Session name is required")
        elif reference.session_by_name(session_name) is None:
            fail("session_name", f"Session '{session_name}' not found")

        score = _value(row, "score")
        if not score:
            fail("score", "Score is required")
        else:
            try:
                grade_of(float(score))
            except ValueError:
                fail("score", "Score must be a number")
            except DomainError as e:
                if math.isfinite(e.value):
                    fail("score", "Score must be between 0 and 100")
                else:
                    fail("score", "Score must be a finite number")

        return errors

    def to_record(self, row: ImportRow, reference: ReferenceSnapshot) -> ResultRecord:
        score = float(_value(row, "score"))
        return ResultRecord(
            student_id=reference.student_by_matric(_value(row, "matric_number")).id,
            course_id=reference.course_by_code(_value(row, "course_code")).id,
            semester_id=reference.semester_by_code(_value(row, "semester_code")).id,
            session_id=reference.session_by_name(_value(row, "session_name")).id,
            score=score,
            grade=grade_of(score),
            remarks=_optional(row, "remarks"),
        )
