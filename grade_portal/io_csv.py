import csv
import io
from typing import List, Sequence

import pandas as pd

from grade_portal.errors import ParseError
from grade_portal.models import ImportRow

# ------------------------
# Upload templates
# ------------------------
STUDENT_COLUMNS = [
    "matric_number",
    "first_name",
    "last_name",
    "email",
    "phone",
    "level",
    "status",
    "date_of_birth",
    "gender",
    "address",
    "department_code",
    "session_name",
]

STUDENT_SAMPLE_ROW = [
    "CSC/2024/001",
    "John",
    "Doe",
    "john.doe@university.edu",
    "+234-123-456-7890",
    "100L",
    "active",
    "2000-05-15",
    "male",
    "123 University Street",
    "CSC",
    "2024/2025",
]

RESULT_COLUMNS = [
    "matric_number",
    "course_code",
    "semester_code",
    "session_name",
    "score",
    "remarks",
]

RESULT_SAMPLE_ROW = ["CSC/2024/001", "CSC101", "FIRST", "2024/2025", "78", "Good"]


def template_csv(columns: Sequence[str], rows: Sequence[Sequence[str]]) -> str:
    """Header plus rows, every field double-quoted."""
    df = pd.DataFrame([list(r) for r in rows], columns=list(columns))
    return df.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator="\n")


def student_template_csv() -> str:
    return template_csv(STUDENT_COLUMNS, [STUDENT_SAMPLE_ROW])


def result_template_csv() -> str:
    return template_csv(RESULT_COLUMNS, [RESULT_SAMPLE_ROW])


# ------------------------
# CSV helpers
# ------------------------
def _clean_field(value) -> str:
    return str(value).replace('"', "").strip()


def _normalise_cols(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df.columns = [_clean_field(c).lower() for c in df.columns]
    return df


def read_upload_text(uploaded_file) -> str:
    """Text content of an uploaded file (Streamlit UploadedFile, bytes or str)."""
    if isinstance(uploaded_file, str):
        return uploaded_file
    data = uploaded_file.getvalue() if hasattr(uploaded_file, "getvalue") else uploaded_file
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ParseError("The uploaded file is not UTF-8 encoded text.") from e


def read_delimited(text: str, delimiter: str = ",") -> pd.DataFrame:
    """
    Blank lines are dropped; the first remaining line is the header.
    Every cell comes back as trimmed, quote-stripped text ("" when missing);
    fields beyond the header's width are dropped.
    """
    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        raise ParseError("The uploaded file is empty.")

    options = dict(
        sep=delimiter, header=None, dtype=str, keep_default_na=False, skipinitialspace=True
    )
    try:
        width = pd.read_csv(io.StringIO(lines[0]), **options).shape[1]
        raw = pd.read_csv(io.StringIO("\n".join(lines)), usecols=list(range(width)), **options)
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise ParseError(f"The uploaded file could not be read: {e}") from e

    raw = raw.fillna("").map(_clean_field)
    df = raw.iloc[1:].reset_index(drop=True)
    df.columns = raw.iloc[0].tolist()
    return _normalise_cols(df)


def parse_rows(text: str, delimiter: str = ",") -> List[ImportRow]:
    df = read_delimited(text, delimiter)
    if df.empty:
        raise ParseError("The file has a header row but no data rows.")

    columns = [c for c in df.columns if c]
    return [{c: row[c] for c in columns} for row in df.to_dict("records")]
