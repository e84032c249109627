"""Exception classes for the grade portal core."""

from __future__ import annotations


class GradePortalError(Exception):
    """Base exception for grade portal errors."""

    def __init__(self, message: str, error_code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class ParseError(GradePortalError):
    """Raised when an uploaded file is empty or malformed."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "PARSE_ERROR")


class DomainError(GradePortalError):
    """Raised when a score cannot be graded (not a number, or outside 0-100)."""

    def __init__(self, message: str, value: object = None) -> None:
        super().__init__(message, "DOMAIN_ERROR")
        self.value = value


class SubmissionError(GradePortalError):
    """Wraps a failure raised by the persistence collaborator for one row."""

    def __init__(self, row: int, cause: BaseException) -> None:
        message = f"Row {row} could not be saved: {cause}"
        super().__init__(message, "SUBMISSION_ERROR")
        self.row = row
        self.cause = cause


class DuplicateRecordError(GradePortalError):
    """Raised by a store when a record would break a uniqueness constraint."""

    def __init__(self, entity: str, key: str) -> None:
        super().__init__(f"{entity} '{key}' already exists", "DUPLICATE_RECORD")
        self.entity = entity
        self.key = key
