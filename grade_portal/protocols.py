"""Contracts for the collaborators the core calls but does not implement."""

from __future__ import annotations

from typing import Protocol, Sequence

from grade_portal.models import (
    Course,
    Department,
    ResultRecord,
    Semester,
    Session,
    Student,
    StudentRecord,
)


class ReferenceDataProtocol(Protocol):
    """Read access to the reference collections an import resolves against."""

    def list_departments(self) -> Sequence[Department]: ...

    def list_sessions(self) -> Sequence[Session]: ...

    def list_semesters(self) -> Sequence[Semester]: ...

    def list_courses(self) -> Sequence[Course]: ...

    def list_students(self) -> Sequence[Student]: ...


class StudentSubmitterProtocol(Protocol):
    """Persists one student row; raises on failure (e.g. duplicate matric number)."""

    def add_student(self, record: StudentRecord) -> Student: ...


class ResultSubmitterProtocol(Protocol):
    """Persists one result row; raises on failure."""

    def add_result(self, record: ResultRecord) -> str: ...
