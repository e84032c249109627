"""Tests for the bulk result import."""

from __future__ import annotations

import pytest

from grade_portal.bulk_import import ImportState, ResultImporter, StudentImporter
from grade_portal.errors import ParseError
from grade_portal.grade_engine import report_card_summary
from grade_portal.io_csv import result_template_csv
from grade_portal.models import Grade, ResultRecord

from .conftest import RecordingSubmitter


class TestResultValidation:
    def test_template_row_resolves_every_reference(self, reference, submitter) -> None:
        report = ResultImporter(reference, submitter).run(result_template_csv())

        assert report.errors == []
        assert report.state == ImportState.SUCCESS
        assert submitter.calls == [
            ResultRecord(
                student_id="stu-1",
                course_id="crs-101",
                semester_id="sem-1",
                session_id="ses-2425",
                score=78.0,
                grade=Grade.B,
                remarks="Good",
            )
        ]

    def test_unquoted_rows(self, reference, submitter, result_csv, result_line) -> None:
        report = ResultImporter(reference, submitter).run(
            result_csv(result_line(score="90", remarks=""))
        )
        assert report.errors == []
        assert submitter.calls[0].grade == Grade.A
        assert submitter.calls[0].remarks is None

    def test_unresolved_references_are_reported(
        self, reference, submitter, result_csv, result_line
    ) -> None:
        text = result_csv(
            result_line(
                matric_number="MTH/2024/404",
                course_code="PHY101",
                semester_code="THIRD",
                session_name="1999/2000",
            )
        )
        report = ResultImporter(reference, submitter).run(text)

        assert [(e.field, e.message) for e in report.errors] == [
            ("matric_number", "Student with matric number 'MTH/2024/404' not found"),
            ("course_code", "Course code 'PHY101' not found"),
            ("semester_code", "Semester code 'THIRD' not found"),
            ("session_name", "Session '1999/2000' not found"),
        ]
        assert submitter.calls == []

    def test_missing_required_fields(self, reference, submitter, result_csv, result_line) -> None:
        text = result_csv(result_line(semester_code="", session_name="", score=""))
        report = ResultImporter(reference, submitter).run(text)

        assert [(e.field, e.message) for e in report.errors] == [
            ("semester_code", "Semester code is required"),
            ("session_name", "Session name is required"),
            ("score", "Score is required"),
        ]

    @pytest.mark.parametrize(
        "score, message",
        [
            ("abc", "Score must be a number"),
            ("101", "Score must be between 0 and 100"),
            ("-5", "Score must be between 0 and 100"),
            ("nan", "Score must be a finite number"),
            ("inf", "Score must be a finite number"),
            ("-inf", "Score must be a finite number"),
        ],
    )
    def test_score_checks(
        self, reference, submitter, result_csv, result_line, score, message
    ) -> None:
        report = ResultImporter(reference, submitter).run(result_csv(result_line(score=score)))
        assert [(e.field, e.message) for e in report.errors] == [("score", message)]

    def test_extra_unquoted_remark_fields_are_dropped(
        self, reference, submitter, result_csv, result_line
    ) -> None:
        text = result_csv(
            result_line(), result_line(course_code="CSC102", remarks="Good, keep it up")
        )

        report = ResultImporter(reference, submitter).run(text)

        assert report.state == ImportState.SUCCESS
        assert [r.remarks for r in submitter.calls] == ["Good", "Good"]

    def test_fractional_score_is_graded(self, reference, submitter, result_csv, result_line):
        ResultImporter(reference, submitter).run(result_csv(result_line(score="44.5")))
        assert submitter.calls[0].score == 44.5
        assert submitter.calls[0].grade == Grade.F

    def test_one_bad_row_blocks_the_batch(
        self, reference, submitter, result_csv, result_line
    ) -> None:
        text = result_csv(
            result_line(),
            result_line(course_code="CSC102"),
            result_line(course_code="CSC102", score="200"),
        )
        report = ResultImporter(reference, submitter).run(text)

        assert [(e.row, e.field) for e in report.errors] == [(3, "score")]
        assert submitter.calls == []

    def test_rows_without_student_or_course_are_dropped(
        self, reference, submitter, result_csv, result_line
    ) -> None:
        text = result_csv(result_line(), result_line(matric_number="", course_code=""))
        report = ResultImporter(reference, submitter).run(text)

        assert report.total == 1
        assert report.success_count == 1

    def test_no_result_rows(self, reference, submitter, result_csv) -> None:
        with pytest.raises(ParseError, match="valid result data"):
            ResultImporter(reference, submitter).run(result_csv(",,FIRST,2024/2025,50,"))

    def test_submission_failure_is_isolated(self, reference, result_csv, result_line) -> None:
        submitter = RecordingSubmitter(fail_on=(1,))
        text = result_csv(result_line(), result_line(course_code="CSC102"))
        report = ResultImporter(reference, submitter).run(text)

        assert (report.success_count, report.error_count) == (1, 1)
        assert report.outcomes[0].error is not None
        assert report.outcomes[1].is_ok


class TestStudentsThenResults:
    def test_uploaded_results_reach_the_report_card(self, store, student_csv, student_line):
        students = student_csv(
            student_line(),
            student_line(matric_number="CSC/2024/002", email="jane@uni.edu", first_name="Jane"),
        )
        assert StudentImporter(store, store.add_student).run(students).is_complete

        results = "\n".join(
            [
                "matric_number,course_code,semester_code,session_name,score,remarks",
                "CSC/2024/001,CSC101,FIRST,2024/2025,92,",
                "CSC/2024/001,CSC102,FIRST,2024/2025,71,",
                "CSC/2024/001,CSC101,SECOND,2023/2024,40,Carry over",
                "CSC/2024/002,CSC101,FIRST,2024/2025,55,",
            ]
        )
        report = ResultImporter(store, store.add_result).run(results)
        assert report.is_complete

        student_id = store.student_ids["CSC/2024/001"]
        card = report_card_summary(
            store.results_for_student(student_id), session="2024/2025", semester="First Semester"
        )

        # A (4.0 x 3) + B (3.0 x 2) = 18 / 5
        assert card["semester_gpa"] == "3.60"
        # plus F (0.0 x 3) = 18 / 8
        assert card["cumulative_gpa"] == "2.25"
        assert card["standing"] == "Fair"
        assert card["total_courses"] == 3
        assert card["grade_distribution"] == {"A": 1, "B": 1, "F": 1}
        assert [r.remark for r in card["term_results"]] == ["Pass", "Pass"]

    def test_duplicate_result_is_a_submission_error(self, store, student_line, student_csv):
        StudentImporter(store, store.add_student).run(student_csv(student_line()))
        text = "\n".join(
            [
                "matric_number,course_code,semester_code,session_name,score,remarks",
                "CSC/2024/001,CSC101,FIRST,2024/2025,70,",
                "CSC/2024/001,CSC101,FIRST,2024/2025,75,",
            ]
        )
        report = ResultImporter(store, store.add_result).run(text)

        assert (report.success_count, report.error_count) == (1, 1)
        assert report.state == ImportState.PARTIAL_FAILURE
