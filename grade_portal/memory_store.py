from __future__ import annotations

import uuid
from typing import Iterable, List

from grade_portal.errors import DuplicateRecordError
from grade_portal.models import (
    Course,
    CourseResult,
    Department,
    ResultRecord,
    Semester,
    Session,
    Student,
    StudentRecord,
)


class InMemoryPortalStore:
    """
    Dict-backed stand-in for the portal database.

    Implements ReferenceDataProtocol and both submitter protocols. Matric
    numbers are unique, and one result is kept per (student, course,
    semester, session), the same constraints the real tables enforce.
    """

    def __init__(
        self,
        departments: Iterable[Department] = (),
        sessions: Iterable[Session] = (),
        semesters: Iterable[Semester] = (),
        courses: Iterable[Course] = (),
    ) -> None:
        self.departments: List[Department] = list(departments)
        self.sessions: List[Session] = list(sessions)
        self.semesters: List[Semester] = list(semesters)
        self.courses: List[Course] = list(courses)
        self.students: dict[str, StudentRecord] = {}
        self.student_ids: dict[str, str] = {}
        self.results: dict[str, ResultRecord] = {}

    # ---- reference data ----
    def list_departments(self) -> List[Department]:
        return list(self.departments)

    def list_sessions(self) -> List[Session]:
        return list(self.sessions)

    def list_semesters(self) -> List[Semester]:
        return list(self.semesters)

    def list_courses(self) -> List[Course]:
        return list(self.courses)

    def list_students(self) -> List[Student]:
        return [
            Student(
                id=self.student_ids[matric],
                matric_number=matric,
                first_name=record.first_name,
                last_name=record.last_name,
            )
            for matric, record in self.students.items()
        ]

    # ---- submitters ----
    def add_student(self, record: StudentRecord) -> Student:
        if record.matric_number in self.students:
            raise DuplicateRecordError("Student", record.matric_number)
        student_id = str(uuid.uuid4())
        self.students[record.matric_number] = record
        self.student_ids[record.matric_number] = student_id
        return Student(
            id=student_id,
            matric_number=record.matric_number,
            first_name=record.first_name,
            last_name=record.last_name,
        )

    def add_result(self, record: ResultRecord) -> str:
        key = (record.student_id, record.course_id, record.semester_id, record.session_id)
        for existing in self.results.values():
            if (
                existing.student_id,
                existing.course_id,
                existing.semester_id,
                existing.session_id,
            ) == key:
                raise DuplicateRecordError("Result", "/".join(key))
        result_id = str(uuid.uuid4())
        self.results[result_id] = record
        return result_id

    # ---- queries ----
    def results_for_student(self, student_id: str) -> List[CourseResult]:
        """Results joined with course, semester and session names, in insertion order."""
        courses = {c.id: c for c in self.courses}
        semesters = {s.id: s for s in self.semesters}
        sessions = {s.id: s for s in self.sessions}

        joined = []
        for record in self.results.values():
            if record.student_id != student_id:
                continue
            course = courses.get(record.course_id)
            semester = semesters.get(record.semester_id)
            session = sessions.get(record.session_id)
            joined.append(
                CourseResult(
                    course_code=course.code if course else "",
                    course_title=course.name if course else "",
                    credit_units=course.units if course else 0,
                    score=record.score,
                    grade=record.grade.value,
                    semester=semester.name if semester else "",
                    session=session.name if session else "",
                    remark=record.remarks,
                )
            )
        return joined
