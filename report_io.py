"""Reading score sheets and writing the computed results tables."""

from __future__ import annotations

import csv
import os
from typing import Dict, List, Sequence

import pandas as pd

from grading import Mode
from records import Issue, SubjectDescriptor
from report_engine import ProcessingResult


def _csv_width(path: str) -> int:
    with open(path, "r", newline="", encoding="utf-8-sig") as f:
        return max((len(row) for row in csv.reader(f)), default=1) or 1


def read_grid(path: str) -> List[List[object]]:
    """Return the first worksheet of *path* as a list of row lists.

    Nothing is treated as a header; blank cells come back as ``None``.
    """

    if not os.path.isfile(path):
        raise FileNotFoundError(f"Score sheet not found: {path}")

    suffix = os.path.splitext(path)[1].lower()
    if suffix == ".csv":
        # hand-written sheets often drop the trailing comma of a merged subject cell
        df = pd.read_csv(
            path,
            header=None,
            names=range(_csv_width(path)),
            dtype=object,
            skip_blank_lines=False,
            engine="python",
        )
    else:
        df = pd.read_excel(path, sheet_name=0, header=None, dtype=object, engine="openpyxl")

    df = df.astype(object).where(pd.notna(df), None)
    return [list(row) for row in df.itertuples(index=False, name=None)]


def students_to_frame(result: ProcessingResult) -> pd.DataFrame:
    """Flatten the student records into one wide row per student."""

    rows: List[Dict[str, object]] = []
    for student in result.students:
        row: Dict[str, object] = {
            "roll_number": student.roll_number,
            "student_name": student.student_name,
        }
        for subject in student.results:
            row[f"{subject.subject}_class"] = subject.class_score
            row[f"{subject.subject}_exam"] = subject.exam_score
            row[f"{subject.subject}_total"] = subject.total
            row[f"{subject.subject}_grade"] = subject.grade
            row[f"{subject.subject}_remark"] = subject.remark
            row[f"{subject.subject}_position"] = subject.position
        row["overall_total"] = student.overall_total
        row["aggregate_score"] = student.aggregate_score
        row["class_position"] = student.class_position
        rows.append(row)

    df = pd.DataFrame(rows)
    if result.mode is Mode.PRIMARY and "aggregate_score" in df.columns:
        df = df.drop(columns=["aggregate_score"])
    return df


def subjects_to_frame(subjects: Sequence[SubjectDescriptor]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "subject": s.name,
                "raw_name": s.raw_name,
                "category": s.category or "UNSPECIFIED",
                "class_column": s.class_column + 1,
                "exam_column": s.exam_column + 1,
            }
            for s in subjects
        ],
        columns=["subject", "raw_name", "category", "class_column", "exam_column"],
    )


def issues_to_frame(issues: Sequence[Issue]) -> pd.DataFrame:
    """Data-quality report: one line per dropped subject or row."""

    return pd.DataFrame(
        [
            {"kind": i.kind, "row": i.row, "column": i.column, "issue": i.message}
            for i in issues
        ],
        columns=["kind", "row", "column", "issue"],
    )


def write_results(result: ProcessingResult, outdir: str) -> Dict[str, str]:
    """Write the results workbook and CSV copies into *outdir*; returns the paths."""

    os.makedirs(outdir, exist_ok=True)
    students = students_to_frame(result)
    subjects = subjects_to_frame(result.subjects)
    dq = issues_to_frame(result.warnings)

    paths = {
        "workbook": os.path.join(outdir, "report_results.xlsx"),
        "students": os.path.join(outdir, "student_results.csv"),
        "subjects": os.path.join(outdir, "subjects.csv"),
        "data_quality": os.path.join(outdir, "data_quality_report.csv"),
    }

    with pd.ExcelWriter(paths["workbook"], engine="openpyxl") as w:
        students.to_excel(w, index=False, sheet_name="students")
        subjects.to_excel(w, index=False, sheet_name="subjects")
        dq.to_excel(w, index=False, sheet_name="data_quality")

    students.to_csv(paths["students"], index=False)
    subjects.to_csv(paths["subjects"], index=False)
    dq.to_csv(paths["data_quality"], index=False)
    return paths
