"""Record types shared by the header parser, the scorer and the ranking stage."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple, Union

ISSUE_SUBJECT_FORMAT = "subject_format"
ISSUE_NO_SUBJECTS = "no_subjects"
ISSUE_ROW_SKIP = "row_skip"


@dataclass(frozen=True)
class SubjectDescriptor:
    """One subject's column pair in the score sheet."""

    name: str
    raw_name: str
    is_core: Optional[bool]
    class_column: int
    exam_column: int

    @property
    def category(self) -> str:
        if self.is_core is True:
            return "CORE"
        if self.is_core is False:
            return "ELECTIVE"
        return ""


@dataclass(frozen=True)
class SubjectResult:
    subject: str
    is_core: Optional[bool]
    class_score: int
    exam_score: int
    total: int
    grade: Union[int, str]
    remark: str
    points: int
    position: Optional[str] = None


@dataclass(frozen=True)
class StudentRecord:
    """A scored student row; positions stay ``None`` until the roster is ranked."""

    student_name: str
    roll_number: object
    results: Tuple[SubjectResult, ...]
    overall_total: int
    aggregate_score: Optional[int]
    class_position: Optional[str] = None
    source_row: Optional[int] = None

    def result_for(self, subject_name: str) -> SubjectResult:
        for result in self.results:
            if result.subject == subject_name:
                return result
        raise KeyError(subject_name)


@dataclass(frozen=True)
class Issue:
    """A non-fatal problem found while reading the sheet."""

    kind: str
    message: str
    row: Optional[int] = None
    column: Optional[int] = None

    def __str__(self) -> str:
        return self.message
