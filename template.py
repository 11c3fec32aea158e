"""Blank score-sheet templates in the layout the report engine reads."""

from __future__ import annotations

import datetime
import os
from typing import Dict, List, Optional, Sequence, Union

import numpy as np
import pandas as pd
from openpyxl.utils import get_column_letter

from grading import GRADE_BANDS, MAX_CLASS_SCORE, MAX_EXAM_SCORE, Mode, describe_aggregate_rule
from report_engine import EXPECTED_SUBHEADERS, FIRST_SUBJECT_COLUMN, REQUIRED_FIRST_ROW

SUBJECTS_BY_MODE: Dict[Mode, Sequence[str]] = {
    Mode.PRIMARY: (
        "English",
        "Mathematics",
        "Science",
        "Social Studies",
        "RME",
        "ICT",
        "French",
        "Twi",
        "BDT",
    ),
    Mode.JHS: (
        "English (CORE)",
        "Mathematics (CORE)",
        "Science (CORE)",
        "Social Studies (CORE)",
        "RME (ELECTIVE)",
        "ICT (ELECTIVE)",
        "French (ELECTIVE)",
        "Twi (ELECTIVE)",
        "BDT (ELECTIVE)",
    ),
    Mode.SHS: (
        "English (CORE)",
        "Mathematics (CORE)",
        "Science (CORE)",
        "Social Studies (CORE)",
        "Biology (ELECTIVE)",
        "Chemistry (ELECTIVE)",
        "Physics (ELECTIVE)",
        "Economics (ELECTIVE)",
        "Geography (ELECTIVE)",
        "French (ELECTIVE)",
    ),
}

SAMPLE_STUDENTS = (
    "John Doe",
    "Jane Smith",
    "Bob Johnson",
    "Alice Williams",
    "Charlie Brown",
)

SCORES_SHEET = "Student Scores"
INSTRUCTIONS_SHEET = "Instructions"
RULE = "=" * 72

MODE_NOTES = {
    Mode.PRIMARY: "No (CORE)/(ELECTIVE) markers required. Grades use a 1-6 scale.",
    Mode.JHS: 'Subject names must include "(CORE)" or "(ELECTIVE)". BECE 1-9 scale.',
    Mode.SHS: 'Subject names must include "(CORE)" or "(ELECTIVE)". WASSCE A1-F9 scale.',
}

SCALE_TITLES = {
    Mode.PRIMARY: "PRIMARY (1-6)",
    Mode.JHS: "JHS / BECE (1-9)",
    Mode.SHS: "SHS / WASSCE (A1-F9)",
}


def build_template_grid(
    mode: Union[str, Mode] = Mode.PRIMARY,
    sample_students: int = len(SAMPLE_STUDENTS),
    seed: Optional[int] = None,
) -> List[List[object]]:
    """Return header rows plus *sample_students* rows of random scores."""

    mode = Mode.parse(mode)
    subjects = SUBJECTS_BY_MODE[mode]
    rng = np.random.default_rng(seed)

    header_row: List[object] = list(REQUIRED_FIRST_ROW)
    sub_row: List[object] = [""] * FIRST_SUBJECT_COLUMN
    for subject in subjects:
        header_row.extend([subject, ""])
        sub_row.extend(EXPECTED_SUBHEADERS)

    rows: List[List[object]] = [header_row, sub_row]
    for idx in range(sample_students):
        name = SAMPLE_STUDENTS[idx % len(SAMPLE_STUDENTS)]
        row: List[object] = [idx + 1, name]
        for _ in subjects:
            row.append(int(rng.integers(18, MAX_CLASS_SCORE, endpoint=True)))
            row.append(int(rng.integers(45, MAX_EXAM_SCORE, endpoint=True)))
        rows.append(row)
    return rows


def _band_lines(mode: Mode) -> List[str]:
    bands = GRADE_BANDS[mode]
    cells = []
    upper = 100
    for lower, grade, remark, _ in bands:
        cells.append(f"{grade} ({lower}-{upper}) {remark}")
        upper = lower - 1
    return ["    " + "  |  ".join(cells[i:i + 3]) for i in range(0, len(cells), 3)]


def build_instructions(mode: Union[str, Mode] = Mode.PRIMARY) -> List[str]:
    mode = Mode.parse(mode)
    first_subject = SUBJECTS_BY_MODE[mode][0]
    lines = [
        RULE,
        "STUDENT REPORT CARD GENERATOR - TEMPLATE INSTRUCTIONS",
        f"MODE: {mode.value}",
        RULE,
        "",
        "MODE NOTES",
        f"  {MODE_NOTES[mode]}",
        f"  {describe_aggregate_rule(mode)}",
        "",
        RULE,
        "FILE STRUCTURE",
        RULE,
        "",
        "  Row 1 - Subject names",
        f"    * Column A: {REQUIRED_FIRST_ROW[0]}  (do not rename)",
        f"    * Column B: {REQUIRED_FIRST_ROW[1]} (do not rename)",
        "    * Column C onwards: one subject name per pair of columns",
        f'      e.g. "{first_subject}" spans columns C and D',
        "",
        "  Row 2 - Score type labels",
        f'    * Must alternate "{EXPECTED_SUBHEADERS[0]}" / "{EXPECTED_SUBHEADERS[1]}" for every subject',
        "    * Leave columns A and B blank",
        "",
        "  Row 3 onwards - Student data",
        "    * Column A: roll number",
        "    * Column B: student full name",
        "    * Remaining columns: class score then exam score for each subject",
        "",
        RULE,
        "SCORE LIMITS",
        RULE,
        "",
        f"  {EXPECTED_SUBHEADERS[0]} : 0 - {MAX_CLASS_SCORE}  (higher values are capped at {MAX_CLASS_SCORE})",
        f"  {EXPECTED_SUBHEADERS[1]}  : 0 - {MAX_EXAM_SCORE}  (higher values are capped at {MAX_EXAM_SCORE})",
        f"  total       : 0 - {MAX_CLASS_SCORE + MAX_EXAM_SCORE} (calculated automatically)",
        "  Empty or non-numeric score cells are treated as 0.",
        "",
        RULE,
        "ADDING / REMOVING SUBJECTS",
        RULE,
        "",
        f"  * Insert two columns for each new subject ({EXPECTED_SUBHEADERS[0]} + {EXPECTED_SUBHEADERS[1]}).",
        "  * Type the subject name in the first column of the pair (row 1).",
    ]
    if mode is Mode.PRIMARY:
        lines.append("  * No (CORE)/(ELECTIVE) markers needed for PRIMARY mode.")
    else:
        lines.append('  * Append " (CORE)" or " (ELECTIVE)" to the subject name.')
    lines.extend(["", RULE, "GRADING SCALE", RULE, "", f"  {SCALE_TITLES[mode]}:"])
    lines.extend(_band_lines(mode))
    lines.extend(
        [
            "",
            RULE,
            "IMPORTANT",
            RULE,
            "",
            f"  * Do NOT rename the {REQUIRED_FIRST_ROW[0]} or {REQUIRED_FIRST_ROW[1]} columns.",
            "  * Delete the sample rows before entering real student data.",
            "  * Rows without a student name or roll number are skipped.",
            "  * Save as .xlsx.",
            "",
            RULE,
        ]
    )
    return lines


def template_filename(mode: Union[str, Mode], day: Optional[datetime.date] = None) -> str:
    mode = Mode.parse(mode)
    day = day or datetime.date.today()
    return f"student_report_template_{mode.value.lower()}_{day.isoformat()}.xlsx"


def write_template(
    path: str,
    mode: Union[str, Mode] = Mode.PRIMARY,
    sample_students: int = len(SAMPLE_STUDENTS),
    seed: Optional[int] = None,
) -> str:
    """Write the template workbook (scores + instructions sheets) to *path*."""

    mode = Mode.parse(mode)
    grid = build_template_grid(mode, sample_students=sample_students, seed=seed)
    instructions = build_instructions(mode)
    subject_count = len(SUBJECTS_BY_MODE[mode])

    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with pd.ExcelWriter(path, engine="openpyxl") as w:
        pd.DataFrame(grid).to_excel(w, index=False, header=False, sheet_name=SCORES_SHEET)
        pd.DataFrame({"instructions": instructions}).to_excel(
            w, index=False, header=False, sheet_name=INSTRUCTIONS_SHEET
        )

        scores = w.sheets[SCORES_SHEET]
        for s in range(subject_count):
            col = FIRST_SUBJECT_COLUMN + s * 2 + 1  # openpyxl columns are 1-based
            scores.merge_cells(start_row=1, start_column=col, end_row=1, end_column=col + 1)
            scores.column_dimensions[get_column_letter(col)].width = 14
            scores.column_dimensions[get_column_letter(col + 1)].width = 12
        scores.column_dimensions["A"].width = 13
        scores.column_dimensions["B"].width = 22

        w.sheets[INSTRUCTIONS_SHEET].column_dimensions["A"].width = 90

    return path
