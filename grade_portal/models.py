from __future__ import annotations

from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# One parsed line of an upload: column name -> trimmed, quote-stripped text.
ImportRow = Dict[str, str]


class Grade(str, Enum):
    A = "A"
    AB = "AB"
    B = "B"
    BC = "BC"
    C = "C"
    CD = "CD"
    D = "D"
    E = "E"
    F = "F"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class WeightedCourseEntry(_Frozen):
    grade_point: float = Field(ge=0.0, le=4.0)
    credit_units: int = Field(gt=0)


class ValidationError(_Frozen):
    """One failed check on one uploaded row (row is 1-based, header excluded)."""

    row: int
    field: str
    message: str

    def __str__(self) -> str:
        return f"Row {self.row}, {self.field}: {self.message}"


# ------------------------
# Reference entities
# ------------------------
class Department(_Frozen):
    id: str
    code: str
    name: str = ""


class Session(_Frozen):
    id: str
    name: str


class Semester(_Frozen):
    id: str
    code: str
    name: str = ""


class Course(_Frozen):
    id: str
    code: str
    name: str = ""
    units: int = 0


class Student(_Frozen):
    id: str
    matric_number: str
    first_name: str = ""
    last_name: str = ""


# ------------------------
# Import targets
# ------------------------
class StudentRecord(_Frozen):
    matric_number: str
    first_name: str
    last_name: str
    email: str
    level: str
    status: str = "active"
    phone: Optional[str] = None
    date_of_birth: Optional[str] = None
    gender: Optional[str] = None
    address: Optional[str] = None
    department_id: Optional[str] = None
    session_id: Optional[str] = None


class ResultRecord(_Frozen):
    student_id: str
    course_id: str
    semester_id: str
    session_id: str
    score: float
    grade: Grade
    remarks: Optional[str] = None


# ------------------------
# Report card input
# ------------------------
class CourseResult(_Frozen):
    """A stored result joined with its course, semester and session names."""

    course_code: str
    course_title: str = ""
    credit_units: int = Field(default=0, ge=0)
    score: float
    grade: str
    semester: str = ""
    session: str = ""
    remark: str = "Pass"

    @field_validator("remark", mode="before")
    @classmethod
    def _default_remark(cls, value: object) -> object:
        if value is None or (isinstance(value, str) and not value.strip()):
            return "Pass"
        return value

    @classmethod
    def from_row(cls, row: dict) -> "CourseResult":
        """Build from a joined results row; blank remarks read as "Pass"."""
        return cls(
            course_code=row.get("course_code") or "",
            course_title=row.get("course_title") or "",
            credit_units=int(row.get("credit_units") or 0),
            score=float(row.get("score") or 0),
            grade=row.get("grade") or "",
            semester=row.get("semester") or "",
            session=row.get("session") or "",
            remark=row.get("remark"),
        )
