"""Shared fixtures for the grade portal tests."""

from __future__ import annotations

from typing import Callable, List

import pytest

from grade_portal.io_csv import (
    RESULT_COLUMNS,
    RESULT_SAMPLE_ROW,
    STUDENT_COLUMNS,
    STUDENT_SAMPLE_ROW,
)
from grade_portal.memory_store import InMemoryPortalStore
from grade_portal.models import Course, Department, Semester, Session, Student
from grade_portal.reference import ReferenceSnapshot

DEPARTMENTS = [
    Department(id="dep-csc", code="CSC", name="Computer Science"),
    Department(id="dep-mth", code="MTH", name="Mathematics"),
]
SESSIONS = [
    Session(id="ses-2324", name="2023/2024"),
    Session(id="ses-2425", name="2024/2025"),
]
SEMESTERS = [
    Semester(id="sem-1", code="FIRST", name="First Semester"),
    Semester(id="sem-2", code="SECOND", name="Second Semester"),
]
COURSES = [
    Course(id="crs-101", code="CSC101", name="Introduction to Computing", units=3),
    Course(id="crs-102", code="CSC102", name="Programming Fundamentals", units=2),
]


class RecordingSubmitter:
    """Collects every submitted record; raises on the given 1-based call numbers."""

    def __init__(self, fail_on: tuple[int, ...] = ()) -> None:
        self.fail_on = set(fail_on)
        self.calls: List[object] = []

    def __call__(self, record: object) -> None:
        self.calls.append(record)
        if len(self.calls) in self.fail_on:
            raise RuntimeError("duplicate key value violates unique constraint")


@pytest.fixture
def reference() -> ReferenceSnapshot:
    return ReferenceSnapshot.build(
        departments=DEPARTMENTS,
        sessions=SESSIONS,
        semesters=SEMESTERS,
        courses=COURSES,
        students=[Student(id="stu-1", matric_number="CSC/2024/001")],
    )


@pytest.fixture
def store() -> InMemoryPortalStore:
    return InMemoryPortalStore(
        departments=DEPARTMENTS, sessions=SESSIONS, semesters=SEMESTERS, courses=COURSES
    )


@pytest.fixture
def submitter() -> RecordingSubmitter:
    return RecordingSubmitter()


def _line(values: List[str]) -> str:
    return ",".join(f'"{v}"' for v in values)


@pytest.fixture
def student_line() -> Callable[..., str]:
    """One quoted student row: the template sample with field overrides."""

    def build(**overrides: str) -> str:
        values = dict(zip(STUDENT_COLUMNS, STUDENT_SAMPLE_ROW))
        values.update(overrides)
        return _line([values[c] for c in STUDENT_COLUMNS])

    return build


@pytest.fixture
def student_csv() -> Callable[..., str]:
    def build(*lines: str) -> str:
        return "\n".join([_line(STUDENT_COLUMNS), *lines])

    return build


@pytest.fixture
def result_line() -> Callable[..., str]:
    def build(**overrides: str) -> str:
        values = dict(zip(RESULT_COLUMNS, RESULT_SAMPLE_ROW))
        values.update(overrides)
        return ",".join(values[c] for c in RESULT_COLUMNS)

    return build


@pytest.fixture
def result_csv() -> Callable[..., str]:
    def build(*lines: str) -> str:
        return "\n".join([",".join(RESULT_COLUMNS), *lines])

    return build
