import time

import pandas as pd
import streamlit as st

from grade_portal.bulk_import import ResultImporter, StudentImporter
from grade_portal.config import get_settings
from grade_portal.errors import ParseError
from grade_portal.grade_engine import GRADE_SCALE, available_terms, report_card_summary
from grade_portal.io_csv import read_upload_text, result_template_csv, student_template_csv
from grade_portal.logging_utils import configure_logging
from grade_portal.memory_store import InMemoryPortalStore
from grade_portal.models import Course, Department, Semester, Session
from grade_portal.session import PortalSession

# ------------------------
# Streamlit UI over the grade portal core
# ------------------------

settings = get_settings()
configure_logging(settings)

st.set_page_config(
    page_title="University Results Portal | Grades, GPA & Bulk Upload",
    page_icon="🎓",
    layout="wide",
)


def _demo_store() -> InMemoryPortalStore:
    return InMemoryPortalStore(
        departments=[
            Department(id="dep-csc", code="CSC", name="Computer Science"),
            Department(id="dep-mth", code="MTH", name="Mathematics"),
        ],
        sessions=[
            Session(id="ses-2324", name="2023/2024"),
            Session(id="ses-2425", name="2024/2025"),
        ],
        semesters=[
            Semester(id="sem-1", code="FIRST", name="First Semester"),
            Semester(id="sem-2", code="SECOND", name="Second Semester"),
        ],
        courses=[
            Course(id="crs-101", code="CSC101", name="Introduction to Computing", units=3),
            Course(id="crs-102", code="CSC102", name="Programming Fundamentals", units=2),
            Course(id="crs-111", code="MTH111", name="Elementary Mathematics", units=3),
        ],
    )


if "store" not in st.session_state:
    st.session_state["store"] = _demo_store()
store: InMemoryPortalStore = st.session_state["store"]

# Request start: load the signed-in user, if any
portal_session = PortalSession.load(st.session_state)

st.title("🎓 University Results Portal")

# ------------------------
# Sign in
# ------------------------
if portal_session is None:
    with st.form("sign_in_form"):
        st.subheader("Sign in")
        email = st.text_input("Email")
        role = st.selectbox("Role", ["lecturer", "student"])
        matric = st.text_input("Matric number (students only)")
        signed_in = st.form_submit_button("Sign in", type="primary")

    if signed_in and email:
        portal_session = PortalSession(
            user_id=f"demo-{role}-{int(time.time())}",
            email=email,
            role=role,
            matric_number=matric or None,
        )
        portal_session.save(st.session_state)
        st.rerun()
    st.stop()

with st.sidebar:
    st.write(f"Signed in as **{portal_session.email}** ({portal_session.role})")
    if st.button("Sign out"):
        PortalSession.clear(st.session_state)
        st.rerun()


def _show_errors(errors) -> None:
    limit = settings.ERROR_DISPLAY_LIMIT
    lines = [f"- {e}" for e in errors[:limit]]
    if len(errors) > limit:
        lines.append(f"- ... and {len(errors) - limit} more errors")
    st.error("**Validation Errors Found:**\n\n" + "\n".join(lines))


def _upload_panel(label: str, key: str, template: str, template_name: str, importer) -> None:
    st.markdown(f"**Step 1:** download the {label} template.")
    st.download_button(
        "Download CSV Template",
        data=template,
        file_name=template_name,
        mime="text/csv",
        key=f"{key}_template",
    )

    uploader_key = f"{key}_upload_{st.session_state.get(f'{key}_generation', 0)}"
    uploaded = st.file_uploader(f"**Step 2:** upload your {label} file", type=["csv"], key=uploader_key)
    if uploaded is None or not st.button(f"Upload {label}", type="primary", key=f"{key}_go"):
        return

    try:
        report = importer.run(read_upload_text(uploaded))
    except ParseError as e:
        st.error(f"No Data Found: {e.message}")
        return

    if report.errors:
        _show_errors(report.errors)
        return

    if report.success_count:
        st.success(f"Successfully uploaded {report.success_count} {label}.")
    if report.error_count:
        st.error(f"Failed to upload {report.error_count} {label}. Check the logs for details.")

    if report.is_complete:
        time.sleep(settings.AUTO_CLOSE_DELAY_SECONDS)
        st.session_state[f"{key}_generation"] = st.session_state.get(f"{key}_generation", 0) + 1
        st.rerun()


# ------------------------
# Lecturer: bulk uploads
# ------------------------
if portal_session.is_lecturer:
    tab_students, tab_results = st.tabs(["Bulk Upload Students", "Bulk Upload Results"])

    with tab_students:
        _upload_panel(
            "students",
            "students",
            student_template_csv(),
            "student_upload_template.csv",
            StudentImporter(store, store.add_student, delimiter=settings.CSV_DELIMITER),
        )
        if store.students:
            st.dataframe(
                pd.DataFrame([r.model_dump() for r in store.students.values()]),
                use_container_width=True,
            )

    with tab_results:
        _upload_panel(
            "results",
            "results",
            result_template_csv(),
            "result_upload_template.csv",
            ResultImporter(store, store.add_result, delimiter=settings.CSV_DELIMITER),
        )
        if store.results:
            st.dataframe(
                pd.DataFrame([r.model_dump(mode="json") for r in store.results.values()]),
                use_container_width=True,
            )

# ------------------------
# Student: report card
# ------------------------
else:
    student_id = store.student_ids.get(portal_session.matric_number or "")
    if student_id is None:
        st.info(
            "No student profile found. Please contact the administrator to set up "
            "your student profile with a matric number."
        )
    else:
        results = store.results_for_student(student_id)
        sessions, semesters = available_terms(results)

        c1, c2 = st.columns(2)
        with c1:
            session_name = st.selectbox("Session", sessions) if sessions else None
        with c2:
            semester_name = st.selectbox("Semester", semesters) if semesters else None

        summary = report_card_summary(results, session=session_name, semester=semester_name)

        m1, m2, m3, m4 = st.columns(4)
        with m1:
            st.metric("Total courses", summary["total_courses"])
        with m2:
            st.metric("Average score", summary["average_score"])
        with m3:
            st.metric("Semester GPA", summary["semester_gpa"])
        with m4:
            st.metric("Cumulative GPA", summary["cumulative_gpa"], help=summary["standing"])

        if summary["term_results"]:
            st.dataframe(
                pd.DataFrame([r.model_dump() for r in summary["term_results"]]),
                use_container_width=True,
            )
        else:
            st.info("No results recorded for this term yet.")

        st.caption(
            "Grading scale: "
            + ", ".join(f"{g.value} ({lower}+): {point}" for lower, g, point in GRADE_SCALE)
        )

# Request end: persist the session object
portal_session.save(st.session_state)
