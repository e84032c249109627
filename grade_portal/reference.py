from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, TypeVar

from grade_portal.models import Course, Department, Semester, Session, Student
from grade_portal.protocols import ReferenceDataProtocol

T = TypeVar("T")


def _index(items: Iterable[T], key: str) -> Mapping[str, T]:
    # first entry wins when two share a key, matching a linear find()
    index: dict[str, T] = {}
    for item in items:
        index.setdefault(getattr(item, key), item)
    return MappingProxyType(index)


def _empty() -> Mapping:
    return MappingProxyType({})


@dataclass(frozen=True)
class ReferenceSnapshot:
    """
    Read-only lookups taken once per import.

    Every pass/fail decision in a batch reads from the same snapshot, so a
    refresh of the underlying collections mid-import cannot split the batch.
    Matching is exact and case-sensitive.
    """

    departments: Mapping[str, Department] = field(default_factory=_empty)
    sessions: Mapping[str, Session] = field(default_factory=_empty)
    semesters: Mapping[str, Semester] = field(default_factory=_empty)
    courses: Mapping[str, Course] = field(default_factory=_empty)
    students: Mapping[str, Student] = field(default_factory=_empty)

    @classmethod
    def build(
        cls,
        departments: Iterable[Department] = (),
        sessions: Iterable[Session] = (),
        semesters: Iterable[Semester] = (),
        courses: Iterable[Course] = (),
        students: Iterable[Student] = (),
    ) -> "ReferenceSnapshot":
        return cls(
            departments=_index(departments, "code"),
            sessions=_index(sessions, "name"),
            semesters=_index(semesters, "code"),
            courses=_index(courses, "code"),
            students=_index(students, "matric_number"),
        )

    @classmethod
    def take(cls, source: ReferenceDataProtocol) -> "ReferenceSnapshot":
        return cls.build(
            departments=list(source.list_departments()),
            sessions=list(source.list_sessions()),
            semesters=list(source.list_semesters()),
            courses=list(source.list_courses()),
            students=list(source.list_students()),
        )

    def department_by_code(self, code: str) -> Optional[Department]:
        return self.departments.get(code)

    def session_by_name(self, name: str) -> Optional[Session]:
        return self.sessions.get(name)

    def semester_by_code(self, code: str) -> Optional[Semester]:
        return self.semesters.get(code)

    def course_by_code(self, code: str) -> Optional[Course]:
        return self.courses.get(code)

    def student_by_matric(self, matric_number: str) -> Optional[Student]:
        return self.students.get(matric_number)
