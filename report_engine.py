"""Turn a score sheet grid into ranked student records.

Expected layout (0-based rows)::

    row 0 | roll_number | student_name | English (CORE) |            | ...
    row 1 |             |              | class_score    | exam_score | ...
    row 2+| 1           | Yoa Mark     | 30             | 50         | ...

Each subject name sits in the first column of a two-column pair; the second
cell is the tail of a merged region and is usually blank.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from grading import (
    MAX_CLASS_SCORE,
    MAX_EXAM_SCORE,
    Mode,
    calculate_aggregate,
    grading_policy,
    normalize_score,
)
from ranking import rank_students
from records import (
    ISSUE_NO_SUBJECTS,
    ISSUE_ROW_SKIP,
    ISSUE_SUBJECT_FORMAT,
    Issue,
    StudentRecord,
    SubjectDescriptor,
    SubjectResult,
)

REQUIRED_FIRST_ROW = ("roll_number", "student_name")
EXPECTED_SUBHEADERS = ("class_score", "exam_score")
FIRST_SUBJECT_COLUMN = 2
HEADER_ROWS = 2

CORE_RX = re.compile(r"\(\s*CORE\s*\)", flags=re.I)
ELECTIVE_RX = re.compile(r"\(\s*ELECTIVE\s*\)", flags=re.I)
MARKER_RX = re.compile(r"\s*\(\s*(?:CORE|ELECTIVE)\s*\)\s*", flags=re.I)

ProgressCallback = Callable[[int, int], None]
Grid = Union[Sequence[Sequence[object]], pd.DataFrame]


class ReportProcessingError(ValueError):
    """Base class for errors that abort a whole run."""


class StructuralError(ReportProcessingError):
    """Raised when the sheet is too short or the identifier columns are wrong."""


class NoSubjectsError(ReportProcessingError):
    """Raised when no subject column pair survives header validation."""


class EmptyResultError(ReportProcessingError):
    """Raised when no usable student row is left to score."""


@dataclass
class MetadataPreview:
    total_student_rows: int
    subjects: List[SubjectDescriptor]
    warnings: List[Issue] = field(default_factory=list)


@dataclass
class ProcessingResult:
    students: List[StudentRecord]
    subjects: List[SubjectDescriptor]
    warnings: List[Issue] = field(default_factory=list)
    mode: Mode = Mode.PRIMARY

    @property
    def warning_messages(self) -> List[str]:
        return [issue.message for issue in self.warnings]


def is_blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and np.isnan(value):
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return value is pd.NaT or value is pd.NA


def cell_text(value) -> str:
    """Return a stripped string for a header cell (blank/NaN -> "")."""

    if is_blank(value):
        return ""
    return str(value).strip()


def _cell(row: Sequence[object], col: int):
    return row[col] if col < len(row) else None


def _display(text: str) -> str:
    return text or "(empty)"


def normalize_roll_number(value):
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (float, np.floating)) and float(value).is_integer():
        return int(value)
    if isinstance(value, np.integer):
        return int(value)
    return value


def grid_rows(grid: Grid) -> List[List[object]]:
    """Return *grid* as a list of row lists; DataFrames are read headerless."""

    if isinstance(grid, pd.DataFrame):
        frame = grid.astype(object).where(pd.notna(grid), None)
        return [list(row) for row in frame.itertuples(index=False, name=None)]
    return [list(row) for row in grid]


def validate_identifier_columns(header_row: Sequence[object]) -> None:
    found = [cell_text(_cell(header_row, i)) for i in range(len(REQUIRED_FIRST_ROW))]
    if [text.lower() for text in found] != list(REQUIRED_FIRST_ROW):
        raise StructuralError(
            f'Row 1 must start with "{REQUIRED_FIRST_ROW[0]}" and "{REQUIRED_FIRST_ROW[1]}". '
            f'Found: "{_display(found[0])}", "{_display(found[1])}".'
        )


def detect_core_flag(raw_name: str, mode: Union[str, Mode]) -> Optional[bool]:
    """``True`` for (CORE), ``False`` for (ELECTIVE), ``None`` when unmarked.

    Markers are ignored entirely in PRIMARY mode.
    """

    if Mode.parse(mode) is Mode.PRIMARY:
        return None
    if CORE_RX.search(raw_name):
        return True
    if ELECTIVE_RX.search(raw_name):
        return False
    return None


def clean_subject_name(raw_name: str) -> str:
    return MARKER_RX.sub(" ", raw_name).strip()


def parse_header(
    header_row: Sequence[object],
    sub_row: Sequence[object],
    mode: Union[str, Mode],
) -> Tuple[List[SubjectDescriptor], List[Issue]]:
    """Read subject descriptors from the two header rows.

    The identifier columns are not checked here; see
    :func:`validate_identifier_columns`.
    """

    mode = Mode.parse(mode)
    subjects: List[SubjectDescriptor] = []
    issues: List[Issue] = []
    # lower-cased display name -> raw header of the first subject using it
    seen: Dict[str, str] = {}

    for col in range(FIRST_SUBJECT_COLUMN, len(header_row), 2):
        raw_name = cell_text(header_row[col])
        if not raw_name:
            continue

        labels = (
            cell_text(_cell(sub_row, col)).lower(),
            cell_text(_cell(sub_row, col + 1)).lower(),
        )
        if labels != EXPECTED_SUBHEADERS:
            issues.append(
                Issue(
                    ISSUE_SUBJECT_FORMAT,
                    f'Subject "{raw_name}" (column {col + 1}): sub-headers must be '
                    f'"{EXPECTED_SUBHEADERS[0]}" then "{EXPECTED_SUBHEADERS[1]}", '
                    f'but found "{_display(labels[0])}" and "{_display(labels[1])}".',
                    row=HEADER_ROWS,
                    column=col + 1,
                )
            )
            continue

        name = clean_subject_name(raw_name)
        if name.lower() in seen:
            issues.append(
                Issue(
                    ISSUE_SUBJECT_FORMAT,
                    f'Subject "{raw_name}" (column {col + 1}): "{name}" already appears '
                    f'as "{seen[name.lower()]}" - skipped.',
                    row=1,
                    column=col + 1,
                )
            )
            continue
        seen[name.lower()] = raw_name

        subjects.append(
            SubjectDescriptor(
                name=name,
                raw_name=raw_name,
                is_core=detect_core_flag(raw_name, mode),
                class_column=col,
                exam_column=col + 1,
            )
        )

    if not subjects:
        issues.append(
            Issue(
                ISSUE_NO_SUBJECTS,
                "No subject columns detected. Row 1 must contain subject names starting "
                'at column C, and row 2 must have "class_score" / "exam_score" beneath each one.',
            )
        )

    return subjects, issues


def _read_header(rows: List[List[object]], mode: Mode) -> Tuple[List[SubjectDescriptor], List[Issue]]:
    if len(rows) < HEADER_ROWS + 1:
        raise StructuralError(
            "The sheet must have at least 3 rows: a subject-name row, a score-type row, "
            f"and at least one student row (found {len(rows)})."
        )
    validate_identifier_columns(rows[0])
    return parse_header(rows[0], rows[1], mode)


def data_rows(rows: List[List[object]]) -> List[Tuple[int, List[object]]]:
    """Return ``(spreadsheet row number, cells)`` for every non-blank data row."""

    return [
        (idx + 1, row)
        for idx, row in enumerate(rows[HEADER_ROWS:], start=HEADER_ROWS)
        if not all(is_blank(cell) for cell in row)
    ]


def preview_metadata(grid: Grid, mode: Union[str, Mode] = Mode.PRIMARY) -> MetadataPreview:
    """Count student rows and list subjects without scoring anything."""

    mode = Mode.parse(mode)
    rows = grid_rows(grid)
    subjects, issues = _read_header(rows, mode)
    return MetadataPreview(
        total_student_rows=len(data_rows(rows)),
        subjects=subjects,
        warnings=issues,
    )


def score_row(
    row: Sequence[object],
    subjects: Sequence[SubjectDescriptor],
    mode: Mode,
) -> Tuple[List[SubjectResult], int, Optional[int]]:
    """Score one student's row; returns subject results, overall total and aggregate."""

    grade = grading_policy(mode)
    results: List[SubjectResult] = []
    overall_total = 0

    for subject in subjects:
        class_score = normalize_score(_cell(row, subject.class_column), MAX_CLASS_SCORE)
        exam_score = normalize_score(_cell(row, subject.exam_column), MAX_EXAM_SCORE)
        total = class_score + exam_score
        graded = grade(total)
        results.append(
            SubjectResult(
                subject=subject.name,
                is_core=subject.is_core,
                class_score=class_score,
                exam_score=exam_score,
                total=total,
                grade=graded.grade,
                remark=graded.remark,
                points=graded.points,
            )
        )
        overall_total += total

    aggregate = calculate_aggregate([(r.is_core, r.points) for r in results], mode)
    return results, overall_total, aggregate


def _check_identity(row_number: int, row: Sequence[object]) -> Optional[Issue]:
    roll_number = _cell(row, 0)
    student_name = cell_text(_cell(row, 1))

    if not student_name:
        return Issue(
            ISSUE_ROW_SKIP,
            f"Row {row_number}: missing student name - skipped.",
            row=row_number,
            column=2,
        )
    if is_blank(roll_number):
        return Issue(
            ISSUE_ROW_SKIP,
            f"Row {row_number} ({student_name}): missing roll number - skipped.",
            row=row_number,
            column=1,
        )
    return None


def process_grid(
    grid: Grid,
    mode: Union[str, Mode] = Mode.PRIMARY,
    on_progress: Optional[ProgressCallback] = None,
) -> ProcessingResult:
    """Score and rank every student row in *grid*.

    Raises a :class:`ReportProcessingError` subclass when nothing usable can
    be produced; otherwise the returned warnings list every subject or row
    that was dropped along the way.
    """

    mode = Mode.parse(mode)
    rows = grid_rows(grid)
    subjects, warnings = _read_header(rows, mode)

    if not subjects:
        details = " ".join(issue.message for issue in warnings)
        raise NoSubjectsError(f"No usable subject columns found. {details}".strip())

    candidates = data_rows(rows)
    if not candidates:
        raise EmptyResultError("No student rows found below the two header rows.")

    students: List[StudentRecord] = []
    rows_total = len(candidates)

    for done, (row_number, row) in enumerate(candidates, start=1):
        problem = _check_identity(row_number, row)
        if problem is not None:
            warnings.append(problem)
        else:
            results, overall_total, aggregate = score_row(row, subjects, mode)
            students.append(
                StudentRecord(
                    student_name=cell_text(_cell(row, 1)),
                    roll_number=normalize_roll_number(row[0]),
                    results=tuple(results),
                    overall_total=overall_total,
                    aggregate_score=aggregate,
                    source_row=row_number,
                )
            )
        if on_progress is not None:
            on_progress(done, rows_total)

    if not students:
        raise EmptyResultError("No valid student records were found in the sheet.")

    return ProcessingResult(
        students=rank_students(students, subjects),
        subjects=subjects,
        warnings=warnings,
        mode=mode,
    )


def summarize_issues(issues: Sequence[Issue], limit: int = 10) -> List[str]:
    """Return at most *limit* messages plus a trailing count of the rest."""

    messages = [issue.message for issue in issues]
    if limit < 0 or len(messages) <= limit:
        return messages
    hidden = len(messages) - limit
    return messages[:limit] + [f"... and {hidden} more issue(s)."]
